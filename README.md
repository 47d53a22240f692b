# xvtools

Small, self-contained tools for a minimal Unix-like teaching system:

- simple commands (`xv-cat`, `xv-echo`, `xv-grep`, `xv-wc`, `xv-ls`,
  `xv-ln`, `xv-rm`, `xv-mkdir`) with plain, fixed output formats;
- `xv-mkfs`, which builds a file-system image (boot block, superblock, log,
  inode blocks, free bitmap, data blocks) and copies files into its root
  directory;
- a parser for a small shell language (pipes, lists, background jobs,
  redirections, parenthesised blocks);
- a model of three-level Sv39 page tables over simulated physical memory;
- binary layouts of virtio block-device descriptors, rings and requests;
- helpers: a minimal `printf`, a Park–Miller random number generator, a
  first-fit free-list allocator and column formatting for process and trap
  tables.

Only the Python standard library is needed (Python 3.10 or later).

## Installation

```
pip install .
```

Running the tests:

```
pip install ".[test]"
pytest
```

## Commands

| Command    | What it does                                                                  |
|------------|-------------------------------------------------------------------------------|
| `xv-cat`   | Copy the named files, or standard input, to standard output.                  |
| `xv-echo`  | Print the arguments separated by spaces and ended by a newline.               |
| `xv-grep`  | Print lines matching a pattern; only `^`, `.`, `*` and `$` are special.       |
| `xv-wc`    | Print `lines words bytes name` for each file, or for standard input.          |
| `xv-ls`    | Print `name type inode size` for a path, or for each entry of a directory.    |
| `xv-ln`    | Make a hard link: `xv-ln old new`.                                            |
| `xv-rm`    | Remove files and empty directories, stopping at the first failure.            |
| `xv-mkdir` | Create directories, stopping at the first failure.                            |
| `xv-mkfs`  | Build an image: `xv-mkfs fs.img file...`.                                     |

Examples:

```
xv-echo hello world
xv-grep '^#.*include' notes.txt
xv-wc notes.txt
xv-ls .
xv-mkfs fs.img notes.txt
```

Some details worth knowing:

- `xv-grep` prints only newline-terminated lines; a last line without a
  newline is not printed.
- `xv-ls` pads names to 14 characters and reports the type as 1 (directory),
  2 (regular file) or 3 (anything else). A directory listing shows `.` and
  `..` first, then the entries in sorted order.
- `xv-ln`, `xv-rm` and `xv-mkdir` print a message on failure but still exit
  with status 0; they exit with 1 only on a usage error.
- `xv-mkfs` drops a leading `user/` and then a leading `_` from each file
  name before writing it into the root directory; names must fit in 14
  bytes and must not contain `/`.

## Library use

Pattern matching (`xvtools.grep`):

```python
from xvtools.grep import match

match("^ab*c$", "abbbc")   # True
match("x.z", "wxyz")       # True
```

Formatting (`xvtools.fmt`), with 32-bit integer semantics for `%d`, `%u`
and `%x`:

```python
from xvtools.fmt import format_string

format_string("%d items at %p", 3, 0x1000)
# '3 items at 0x0000000000001000'
```

Shell parsing (`xvtools.shell`). `parse` returns a tree of `ExecCmd`,
`RedirCmd`, `PipeCmd`, `ListCmd` and `BackCmd`; malformed input raises
`ShellSyntaxError`. `tokenize` splits a line into words and operators.

```python
from xvtools.shell import parse, tokenize

tree = parse("cat < in.txt | grep foo > out.txt; echo done &")
tokenize("a>>b")   # ['a', '>>', 'b']
```

Pseudo-random numbers (`xvtools.rand`):

```python
from xvtools.rand import ParkMiller

rng = ParkMiller(1)
values = [rng.next() for _ in range(3)]
```

Page tables (`xvtools.vm`):

```python
from xvtools.vm import PageTable, PhysicalMemory, Pte

memory = PhysicalMemory(64)
table = PageTable(memory)
size = table.grow(0, 8192, Pte.W)
table.copyout(100, b"hello\0")
table.copyinstr(100, 64)   # b'hello'
```

Fatal inconsistencies raise `KernelPanic`, running out of pages raises
`OutOfMemory`, and an unmapped or inaccessible user address raises
`BadAddress`.

Other modules:

- `xvtools.mkfs` — `Geometry`, `Superblock`, `DiskInode`, `Dirent` and
  `FsBuilder`, which writes an image to any seekable binary stream.
- `xvtools.virtio` — `VirtqDesc`, `VirtqAvail`, `VirtqUsedElem`,
  `VirtqUsed` and `BlkRequest` with `pack`/`unpack`, register offsets and
  flag enums, and the `Buf` record.
- `xvtools.umalloc` — `Allocator`, a first-fit allocator over an
  `sbrk`-style callable.
- `xvtools.columns` — `format_children` and `format_reports` build
  fixed-width tables of `ProcInfo` and `TrapReport` records.
- `xvtools.ulib` — `atoi`, `strcmp`, `memcmp` and `gets`.
- `xvtools.wc` — `count` returns a `Counts` record.
- `xvtools.ls` — `fmtname` and `ls`.
- `xvtools.coreutils` — `cat` and `echo` as functions.

## What this package does not do

- The shell module only parses command lines; it does not run commands,
  and there is no interactive shell.
- The page-table module is a model over simulated memory; there is no
  kernel, scheduler, process table or system-call layer.
- The virtio module describes data layouts only; there is no disk driver.
- `xv-mkfs` writes images but nothing here mounts or reads them as a
  file system.