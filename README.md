# xv6sim

A model, in plain Python, of the core pieces of a small Unix-like teaching
kernel and its user-space library. It has no dependencies outside the
standard library.

## Modules

- `xv6sim.mmu`: kernel parameters, memory layout and x86 paging constants;
  address helpers `pdx`, `ptx`, `pgaddr`, `pg_round_up`, `pg_round_down`,
  `pte_addr`, `pte_flags`, `v2p` and `p2v`; `SegmentDescriptor` and
  `GateDescriptor`, built with `segment`, `segment16` and `gate`, each with
  a `pack()` method that gives its 8-byte form.
- `xv6sim.elf`: parsing of 32-bit little-endian ELF headers with
  `parse_elf_header`, `parse_program_header` and `program_headers`, giving
  `ElfHeader` and `ProgramHeader` values. Bad input raises `ElfFormatError`.
- `xv6sim.cstring`: C-style string helpers over bytes: `memcmp`, `strcmp`,
  `strncmp`, `strncpy`, `safestrcpy`, `atoi`, and `gets`, which reads one
  line from a binary stream.
- `xv6sim.umalloc`: a first-fit free-list `Heap(limit)` with `malloc`,
  `free` and `free_blocks`. Addresses are byte offsets into a heap that
  grows a break up to `limit`; `OutOfMemory` is raised when it cannot grow.
- `xv6sim.shell`: the shell's command-line parser. `tokenize` splits a line
  into `(kind, text)` pairs; `parse_command` builds a tree of `ExecCmd`,
  `RedirCmd`, `PipeCmd`, `ListCmd` and `BackCmd`, raising
  `ShellSyntaxError` on bad input.
- `xv6sim.wc`: `count` gives a `WordCount` of lines, words and bytes;
  `main` is the `xv6sim-wc` command.
- `xv6sim.locks`: `SpinLock` and `SleepLock`, with per-`Cpu` interrupt
  nesting through `push_cli` and `pop_cli`. Misuse raises `LockError`.
  `SpinLock.held(cpu)` is a context manager.
- `xv6sim.vm`: `PhysicalMemory(start, end)` hands out pages with `kalloc`
  and `kfree`. `PageTable` is a two-level page table stored in that memory,
  with `walk`, `map_pages`, `init_user`, `alloc_user`, `dealloc_user`,
  `free`, `clear_user`, `copy`, `user_to_kernel` and `copy_out`.
  `kernel_mappings(data)` gives the kernel's fixed mappings. Failures raise
  `VmError`.
- `xv6sim.syscall`: `SyscallNumber`; a `Process` whose user memory is a
  `bytearray`, with `fetch_int`, `fetch_str`, `arg_int`, `arg_ptr` and
  `arg_str`; and `SyscallTable`, whose `dispatch` runs a registered handler
  and returns -1 for an unknown call or when the handler raises
  `SyscallError`.

## Install

```
pip install .
```

## Example

```python
from xv6sim.shell import parse_command
from xv6sim.vm import PhysicalMemory, PageTable

cmd = parse_command("cat < in | wc > out")
print(cmd)

mem = PhysicalMemory(0x400000, 0x800000)
pgdir = PageTable(mem)
size = pgdir.alloc_user(0, 8192)
pgdir.copy_out(100, b"hello")
```

## Command

Count lines, words and bytes in files, or in standard input when no file
is given:

```
xv6sim-wc README.md
```

## What it does not do

This is a set of models, not a running system. There is no scheduler and
no process creation, no file system, no disk or console drivers, and no
loader that runs ELF programs. The shell module parses command lines but
does not execute them. `SyscallTable` dispatches only the handlers you
register; it comes with none.

## Tests

```
pip install .[test]
pytest
```