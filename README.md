# xvkit

xvkit models parts of a small teaching Unix for RISC-V in plain Python. You can
inspect, test and script these parts without an emulator. The package has no
dependencies beyond the standard library.

## Modules

- **`xvkit.riscv`**: page arithmetic (`pg_round_up`, `pg_round_down`), PTE
  encoding (`pa2pte`, `pte2pa`, `pte_flags`, `PteFlag`), Sv39 index extraction
  (`px_shift`, `px`) and `make_satp`. It also has constants for the qemu `virt`
  memory map (`KERNBASE`, `PHYSTOP`, `TRAMPOLINE`, `TRAPFRAME`, `MAXVA`, ...)
  and the address helpers `kstack`, `clint_mtimecmp`, `plic_menable`,
  `plic_senable`, `plic_mpriority`, `plic_spriority`, `plic_mclaim` and
  `plic_sclaim`.
- **`xvkit.elf`**: `ElfHeader` and `ProgramHeader` records for little-endian
  ELF64, each with `pack()`. `parse_elf_header` checks the magic number, and
  `parse_program_header` reads one program header. `ElfHeader.program_headers`
  yields every program header. Malformed input raises `ElfFormatError`.
- **`xvkit.vm`**: a three-level Sv39 `PageTable` whose PTEs are stored in a
  simulated `PhysicalMemory`. `PhysicalMemory` provides `kalloc`, `kfree`,
  `read`, `write`, `read_pte`, `write_pte` and `free_pages`. `PageTable`
  provides `create`, `walk`, `walkaddr`, `map_pages`, `kvmmap`, `unmap`,
  `load_first`, `grow`, `shrink`, `free_walk`, `free`, `copy_to`,
  `clear_user`, `copyout`, `copyin` and `copyinstr`. Violated invariants raise
  `KernelPanic`. Unmapped user addresses raise `AddressError`. Running out of
  pages raises `MemoryError`.
- **`xvkit.shell`**: `parse_command` turns a command line into a tree of
  `ExecCmd`, `RedirCmd`, `PipeCmd`, `ListCmd` and `BackCmd`. It handles `<`,
  `>`, `>>`, `|`, `;`, `&` and `( ... )`. Redirections carry `OpenMode` flags.
  Bad input raises `ShellSyntaxError`.
- **`xvkit.fmt`**: `render` and `fprintf` implement a small printf dialect:
  `%d %l %x %p %s %c %%`.
- **`xvkit.grep`**: `match` is a tiny regular-expression matcher for
  `^ . * $`. `grep` filters a text stream line by line.
- **`xvkit.umalloc`**: `Heap` is a first-fit free-list allocator with
  `malloc`, `free` and `sbrk`, working over a simulated program break.
- **`xvkit.ulib`**: `atoi`, `gets` and `strcmp` with their C-style semantics.
- **`xvkit.mkfs`**: `make_fs` writes a file-system image whose root directory
  holds the given files. `ImageWriter` gives lower-level access through
  `ialloc`, `iappend`, `read_inode`, `write_inode` and `balloc`. The layout
  comes from `FsGeometry`: 1024-byte blocks, 2000 blocks and 200 inodes by
  default. The on-disk records are `Superblock` and `DiskInode`.
- **`xvkit.rand`**: `do_rand` and the `ParkMiller` class implement the
  Park–Miller minimal-standard generator.
- **`xvkit.coreutils`**: `cat`, `wc`, `fmtname` and `ls`, together with the
  command functions `cat_main`, `echo_main`, `wc_main`, `ln_main`, `rm_main`,
  `mkdir_main`, `ls_main`, `kill_main`, `zombie_main` and `parent_main`.
  These act on the host file system and processes.
- **`xvkit.stressfs`**: `stress` runs several threads at once. Each thread
  writes and then re-reads its own file, `stressfs0`, `stressfs1`, and so on.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Command-line tools

Build a file-system image that holds some files. A leading `user/` and then a
leading `_` are stripped from each file name:

```
xv-mkfs fs.img README notes.txt
```

Search with the small matcher:

```
xv-grep '^ab*c$' input.txt
```

The user tools work on the host file system:

```
xv-cat file.txt
xv-echo hello world
xv-wc file.txt
xv-ls .
xv-ln old new
xv-rm new
xv-mkdir somedir
xv-stressfs
```

`xv-stressfs` runs five writers in the current directory and leaves the files
`stressfs0` to `stressfs4` there.

## Library use

```python
from xvkit.riscv import pg_round_up, px
from xvkit.grep import match
from xvkit.fmt import render
from xvkit.shell import parse_command
from xvkit.vm import PhysicalMemory, PageTable

pg_round_up(4097)            # 8192
px(0, 0x1000)                # 1
match("^ab*c$", "abbbc")     # True
render("%d items, %x", 3, 255)   # "3 items, FF"
tree = parse_command("cat < in | grep x > out; echo done &")

mem = PhysicalMemory(npages=64)
pt = PageTable.create(mem)
pt.grow(0, 8192)
pt.copyout(100, b"hello\0")
pt.copyinstr(100, 64)        # b"hello"
```

## What it does not do

There is no kernel, scheduler or emulator here, and nothing runs the programs
that an image holds. `parse_command` only parses a command line: no shell
executes the tree. The page tables and the heap live in simulated memory, not
in a running machine. `make_fs` writes a complete image, but the package has no
tool that reads an image back or mounts it.