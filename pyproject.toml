[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xvtools"
version = "0.1.0"
description = "Small Unix-style tools, a disk-image builder, a shell parser and a paged-memory model"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "unix",
    "coreutils",
    "grep",
    "wc",
    "shell",
    "parser",
    "filesystem",
    "mkfs",
    "page-table",
    "virtio",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
    "Topic :: Education",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xv-grep = "xvtools.grep:main"
xv-wc = "xvtools.wc:main"
xv-cat = "xvtools.coreutils:main_cat"
xv-echo = "xvtools.coreutils:main_echo"
xv-ln = "xvtools.coreutils:main_ln"
xv-rm = "xvtools.coreutils:main_rm"
xv-mkdir = "xvtools.coreutils:main_mkdir"
xv-ls = "xvtools.ls:main"
xv-mkfs = "xvtools.mkfs:main"

[tool.hatch.build.targets.wheel]
packages = ["xvtools"]

[tool.hatch.build.targets.sdist]
include = ["xvtools", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
