"""x86 memory-management constants, address arithmetic and descriptors."""

from __future__ import annotations

import struct
from dataclasses import dataclass, fields

_MASK32 = 0xFFFFFFFF

# Kernel parameters.
NPROC = 64
KSTACKSIZE = 4096
NCPU = 8
NOFILE = 16
NFILE = 100
NINODE = 50
NDEV = 10
ROOTDEV = 1
MAXARG = 32
MAXOPBLOCKS = 10
LOGSIZE = MAXOPBLOCKS * 3
NBUF = MAXOPBLOCKS * 3
FSSIZE = 1000

# Memory layout.
EXTMEM = 0x100000
PHYSTOP = 0xE000000
DEVSPACE = 0xFE000000
KERNBASE = 0x80000000
KERNLINK = KERNBASE + EXTMEM

# Eflags and control registers.
FL_IF = 0x00000200
CR0_PE = 0x00000001
CR0_WP = 0x00010000
CR0_PG = 0x80000000
CR4_PSE = 0x00000010

# Segment selectors.
SEG_KCODE = 1
SEG_KDATA = 2
SEG_UCODE = 3
SEG_UDATA = 4
SEG_TSS = 5
NSEGS = 6

DPL_USER = 0x3

# Application segment type bits.
STA_X = 0x8
STA_W = 0x2
STA_R = 0x2

# System segment type bits.
STS_T32A = 0x9
STS_IG32 = 0xE
STS_TG32 = 0xF

# Paging.
NPDENTRIES = 1024
NPTENTRIES = 1024
PGSIZE = 4096
PTXSHIFT = 12
PDXSHIFT = 22

PTE_P = 0x001
PTE_W = 0x002
PTE_U = 0x004
PTE_PS = 0x080


def pdx(va: int) -> int:
    """Page directory index of a virtual address."""
    return ((va & _MASK32) >> PDXSHIFT) & 0x3FF


def ptx(va: int) -> int:
    """Page table index of a virtual address."""
    return ((va & _MASK32) >> PTXSHIFT) & 0x3FF


def pgaddr(d: int, t: int, o: int) -> int:
    """Build a virtual address from directory index, table index and offset."""
    return ((d << PDXSHIFT) | (t << PTXSHIFT) | o) & _MASK32


def pg_round_up(sz: int) -> int:
    """Round a size up to a page boundary, with 32-bit wrap-around."""
    return (sz + PGSIZE - 1) & ~(PGSIZE - 1) & _MASK32


def pg_round_down(a: int) -> int:
    """Round an address down to a page boundary."""
    return a & ~(PGSIZE - 1) & _MASK32


def pte_addr(pte: int) -> int:
    """Physical address held in a page table entry."""
    return pte & ~0xFFF & _MASK32


def pte_flags(pte: int) -> int:
    """Flag bits of a page table entry."""
    return pte & 0xFFF


def v2p(a: int) -> int:
    """Kernel virtual address to physical address."""
    return (a - KERNBASE) & _MASK32


def p2v(a: int) -> int:
    """Physical address to kernel virtual address."""
    return (a + KERNBASE) & _MASK32


def _check_widths(obj, widths: dict[str, int]) -> None:
    for f in fields(obj):
        value = getattr(obj, f.name)
        width = widths[f.name]
        if not 0 <= value < (1 << width):
            raise ValueError(f"{f.name}={value:#x} does not fit in {width} bits")


_SEG_WIDTHS = {
    "limit_low": 16,
    "base_low": 16,
    "base_mid": 8,
    "kind": 4,
    "s": 1,
    "dpl": 2,
    "present": 1,
    "limit_high": 4,
    "avl": 1,
    "rsv1": 1,
    "db": 1,
    "g": 1,
    "base_high": 8,
}


@dataclass(frozen=True)
class SegmentDescriptor:
    """An x86 segment descriptor, field by field."""

    limit_low: int
    base_low: int
    base_mid: int
    kind: int
    s: int
    dpl: int
    present: int
    limit_high: int
    avl: int
    rsv1: int
    db: int
    g: int
    base_high: int

    def __post_init__(self) -> None:
        _check_widths(self, _SEG_WIDTHS)

    def pack(self) -> bytes:
        """The 8-byte in-memory form of the descriptor."""
        low = self.limit_low | (self.base_low << 16)
        high = (
            self.base_mid
            | (self.kind << 8)
            | (self.s << 12)
            | (self.dpl << 13)
            | (self.present << 15)
            | (self.limit_high << 16)
            | (self.avl << 20)
            | (self.rsv1 << 21)
            | (self.db << 22)
            | (self.g << 23)
            | (self.base_high << 24)
        )
        return struct.pack("<II", low, high)


def segment(kind: int, base: int, limit: int, dpl: int) -> SegmentDescriptor:
    """A normal 32-bit segment with 4 KiB limit granularity."""
    base &= _MASK32
    limit &= _MASK32
    return SegmentDescriptor(
        limit_low=(limit >> 12) & 0xFFFF,
        base_low=base & 0xFFFF,
        base_mid=(base >> 16) & 0xFF,
        kind=kind & 0xF,
        s=1,
        dpl=dpl & 0x3,
        present=1,
        limit_high=(limit >> 28) & 0xF,
        avl=0,
        rsv1=0,
        db=1,
        g=1,
        base_high=(base >> 24) & 0xFF,
    )


def segment16(kind: int, base: int, limit: int, dpl: int) -> SegmentDescriptor:
    """A segment with byte limit granularity."""
    base &= _MASK32
    limit &= _MASK32
    return SegmentDescriptor(
        limit_low=limit & 0xFFFF,
        base_low=base & 0xFFFF,
        base_mid=(base >> 16) & 0xFF,
        kind=kind & 0xF,
        s=1,
        dpl=dpl & 0x3,
        present=1,
        limit_high=(limit >> 16) & 0xF,
        avl=0,
        rsv1=0,
        db=1,
        g=0,
        base_high=(base >> 24) & 0xFF,
    )


_GATE_WIDTHS = {
    "offset_low": 16,
    "selector": 16,
    "args": 5,
    "rsv1": 3,
    "kind": 4,
    "s": 1,
    "dpl": 2,
    "present": 1,
    "offset_high": 16,
}


@dataclass(frozen=True)
class GateDescriptor:
    """An interrupt or trap gate descriptor."""

    offset_low: int
    selector: int
    args: int
    rsv1: int
    kind: int
    s: int
    dpl: int
    present: int
    offset_high: int

    def __post_init__(self) -> None:
        _check_widths(self, _GATE_WIDTHS)

    def pack(self) -> bytes:
        """The 8-byte in-memory form of the gate."""
        low = self.offset_low | (self.selector << 16)
        high = (
            self.args
            | (self.rsv1 << 5)
            | (self.kind << 8)
            | (self.s << 12)
            | (self.dpl << 13)
            | (self.present << 15)
            | (self.offset_high << 16)
        )
        return struct.pack("<II", low, high)


def gate(istrap: bool, selector: int, offset: int, dpl: int) -> GateDescriptor:
    """A trap gate if istrap, otherwise an interrupt gate."""
    offset &= _MASK32
    return GateDescriptor(
        offset_low=offset & 0xFFFF,
        selector=selector & 0xFFFF,
        args=0,
        rsv1=0,
        kind=STS_TG32 if istrap else STS_IG32,
        s=0,
        dpl=dpl & 0x3,
        present=1,
        offset_high=offset >> 16,
    )