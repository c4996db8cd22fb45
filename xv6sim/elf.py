"""Reading ELF executable headers."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterator

ELF_MAGIC = 0x464C457F

ELF_PROG_LOAD = 1

ELF_PROG_FLAG_EXEC = 1
ELF_PROG_FLAG_WRITE = 2
ELF_PROG_FLAG_READ = 4

_ELF_HEADER = struct.Struct("<I12sHHIIIIIHHHHHH")
_PROGRAM_HEADER = struct.Struct("<IIIIIIII")

ELF_HEADER_SIZE = _ELF_HEADER.size
PROGRAM_HEADER_SIZE = _PROGRAM_HEADER.size


class ElfFormatError(ValueError):
    """Raised when bytes do not hold a valid ELF structure."""


@dataclass(frozen=True)
class ElfHeader:
    """The ELF file header."""

    magic: int
    elf: bytes
    type: int
    machine: int
    version: int
    entry: int
    phoff: int
    shoff: int
    flags: int
    ehsize: int
    phentsize: int
    phnum: int
    shentsize: int
    shnum: int
    shstrndx: int


@dataclass(frozen=True)
class ProgramHeader:
    """An ELF program section header."""

    type: int
    off: int
    vaddr: int
    paddr: int
    filesz: int
    memsz: int
    flags: int
    align: int


def parse_elf_header(data: bytes) -> ElfHeader:
    """Parse the file header at the start of data."""
    if len(data) < _ELF_HEADER.size:
        raise ElfFormatError("truncated ELF header")
    header = ElfHeader(*_ELF_HEADER.unpack_from(data, 0))
    if header.magic != ELF_MAGIC:
        raise ElfFormatError(f"bad ELF magic {header.magic:#x}")
    return header


def parse_program_header(data: bytes, offset: int) -> ProgramHeader:
    """Parse one program header at the given byte offset."""
    if offset < 0 or offset + _PROGRAM_HEADER.size > len(data):
        raise ElfFormatError(f"program header at {offset} is out of range")
    return ProgramHeader(*_PROGRAM_HEADER.unpack_from(data, offset))


def program_headers(data: bytes) -> Iterator[ProgramHeader]:
    """Yield every program header named by the file header."""
    header = parse_elf_header(data)
    for index in range(header.phnum):
        yield parse_program_header(data, header.phoff + index * _PROGRAM_HEADER.size)