"""Small Unix-style tools, a file-system image builder, a shell parser and a paged-memory model."""

__version__ = "0.1.0"