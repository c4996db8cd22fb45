"""Two-level x86 page tables kept in simulated physical memory."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from .mmu import (
    DEVSPACE,
    EXTMEM,
    KERNBASE,
    KERNLINK,
    NPDENTRIES,
    PGSIZE,
    PHYSTOP,
    PTE_P,
    PTE_U,
    PTE_W,
    p2v,
    pdx,
    pg_round_down,
    pg_round_up,
    pgaddr,
    pte_addr,
    pte_flags,
    ptx,
    v2p,
)

_MASK32 = 0xFFFFFFFF
_WORD = struct.Struct("<I")


class VmError(RuntimeError):
    """Raised when a memory or page-table operation cannot be done."""


class _Exhausted(VmError):
    """No free physical page is left."""


class PhysicalMemory:
    """Page-granular physical memory between start and end.

    Pages are handed out by kalloc, most recently freed first, and only
    allocated pages can be read or written.
    """

    def __init__(self, start: int, end: int) -> None:
        if start % PGSIZE or end % PGSIZE:
            raise ValueError("memory bounds must be page aligned")
        if not 0 < start < end <= PHYSTOP:
            raise ValueError("memory bounds out of range")
        self.start = start
        self.end = end
        self._free = list(range(start, end, PGSIZE))
        self._pages: dict[int, bytearray] = {}

    @property
    def free_pages(self) -> int:
        """Number of pages kalloc can still hand out."""
        return len(self._free)

    def kalloc(self) -> int:
        """Allocate one zeroed page and return its physical address."""
        if not self._free:
            raise _Exhausted("out of physical memory")
        pa = self._free.pop()
        self._pages[pa] = bytearray(PGSIZE)
        return pa

    def kfree(self, pa: int) -> None:
        """Return a page obtained from kalloc."""
        if pa % PGSIZE or pa not in self._pages:
            raise VmError("kfree")
        del self._pages[pa]
        self._free.append(pa)

    def _spans(self, pa: int, n: int) -> Iterator[tuple[bytearray, int, int]]:
        while n > 0:
            page = pg_round_down(pa)
            frame = self._pages.get(page)
            if frame is None:
                raise VmError(f"physical address {pa:#x} is not allocated")
            off = pa - page
            take = min(n, PGSIZE - off)
            yield frame, off, take
            pa += take
            n -= take

    def read(self, pa: int, n: int) -> bytes:
        """Read n bytes starting at physical address pa."""
        if n < 0:
            raise ValueError("length must not be negative")
        return b"".join(bytes(frame[off : off + take]) for frame, off, take in self._spans(pa, n))

    def write(self, pa: int, data) -> None:
        """Write data starting at physical address pa."""
        data = bytes(data)
        pos = 0
        for frame, off, take in list(self._spans(pa, len(data))):
            frame[off : off + take] = data[pos : pos + take]
            pos += take


def _load(memory: PhysicalMemory, pa: int) -> int:
    return _WORD.unpack(memory.read(pa, 4))[0]


def _store(memory: PhysicalMemory, pa: int, value: int) -> None:
    memory.write(pa, _WORD.pack(value & _MASK32))


@dataclass(frozen=True)
class KernelMapping:
    """A kernel virtual range mapped onto physical memory."""

    virt: int
    phys_start: int
    phys_end: int
    perm: int

    @property
    def size(self) -> int:
        return (self.phys_end - self.phys_start) & _MASK32


def kernel_mappings(data: int) -> tuple[KernelMapping, ...]:
    """The kernel's mappings, given the virtual address where its data starts."""
    if data % PGSIZE or not KERNLINK < data < p2v(PHYSTOP):
        raise ValueError(f"bad kernel data address {data:#x}")
    if p2v(PHYSTOP) > DEVSPACE:
        raise VmError("PHYSTOP too high")
    return (
        KernelMapping(KERNBASE, 0, EXTMEM, PTE_W),
        KernelMapping(KERNLINK, v2p(KERNLINK), v2p(data), 0),
        KernelMapping(data, v2p(data), PHYSTOP, PTE_W),
        KernelMapping(DEVSPACE, DEVSPACE, 0, PTE_W),
    )


class PageTable:
    """One address space: a page directory plus the kernel mappings in kmap."""

    def __init__(self, memory: PhysicalMemory, kmap: Iterable[KernelMapping] = ()) -> None:
        self.memory = memory
        self.kmap = tuple(kmap)
        self.pgdir: Optional[int] = memory.kalloc()
        try:
            for k in self.kmap:
                self.map_pages(k.virt, k.size, k.phys_start, k.perm)
        except _Exhausted:
            self.free()
            raise

    def _root(self) -> int:
        if self.pgdir is None:
            raise VmError("freevm: no pgdir")
        return self.pgdir

    def walk(self, va: int, alloc: bool = False) -> Optional[int]:
        """Physical address of the entry for va, or None if its table is absent.

        With alloc, a missing page table page is allocated.
        """
        pde_pa = self._root() + 4 * pdx(va)
        pde = _load(self.memory, pde_pa)
        if pde & PTE_P:
            table = pte_addr(pde)
        else:
            if not alloc:
                return None
            table = self.memory.kalloc()
            _store(self.memory, pde_pa, table | PTE_P | PTE_W | PTE_U)
        return table + 4 * ptx(va)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map the pages covering [va, va+size) onto physical pages from pa."""
        if size <= 0:
            raise ValueError("size must be positive")
        a = pg_round_down(va)
        last = pg_round_down((va + size - 1) & _MASK32)
        while True:
            pte = self.walk(a, alloc=True)
            if _load(self.memory, pte) & PTE_P:
                raise VmError("remap")
            _store(self.memory, pte, pa | perm | PTE_P)
            if a == last:
                break
            a = (a + PGSIZE) & _MASK32
            pa = (pa + PGSIZE) & _MASK32

    def init_user(self, code: bytes) -> None:
        """Load code, less than a page, at address 0."""
        if len(code) >= PGSIZE:
            raise VmError("inituvm: more than a page")
        mem = self.memory.kalloc()
        self.map_pages(0, PGSIZE, mem, PTE_W | PTE_U)
        self.memory.write(mem, code)

    def alloc_user(self, oldsz: int, newsz: int) -> int:
        """Grow user memory from oldsz to newsz with zeroed pages; return the new size."""
        self._root()
        if newsz >= KERNBASE:
            raise VmError(f"size {newsz:#x} reaches kernel space")
        if newsz < oldsz:
            return oldsz
        a = pg_round_up(oldsz)
        while a < newsz:
            try:
                mem = self.memory.kalloc()
            except _Exhausted as exc:
                self.dealloc_user(newsz, oldsz)
                raise VmError("allocuvm out of memory") from exc
            try:
                self.map_pages(a, PGSIZE, mem, PTE_W | PTE_U)
            except _Exhausted as exc:
                self.dealloc_user(newsz, oldsz)
                self.memory.kfree(mem)
                raise VmError("allocuvm out of memory (2)") from exc
            a += PGSIZE
        return newsz

    def dealloc_user(self, oldsz: int, newsz: int) -> int:
        """Free user pages from newsz up to oldsz; return the new size."""
        self._root()
        if newsz >= oldsz:
            return oldsz
        a = pg_round_up(newsz)
        while a < oldsz:
            pte = self.walk(a)
            if pte is None:
                a = (pgaddr(pdx(a) + 1, 0, 0) - PGSIZE) & _MASK32
            else:
                entry = _load(self.memory, pte)
                if entry & PTE_P:
                    pa = pte_addr(entry)
                    if pa == 0:
                        raise VmError("kfree")
                    self.memory.kfree(pa)
                    _store(self.memory, pte, 0)
            following = (a + PGSIZE) & _MASK32
            if following <= a:
                break
            a = following
        return newsz

    def free(self) -> None:
        """Free all user pages, every page table page and the directory."""
        root = self._root()
        self.dealloc_user(KERNBASE, 0)
        for (pde,) in _WORD.iter_unpack(self.memory.read(root, NPDENTRIES * 4)):
            if pde & PTE_P:
                self.memory.kfree(pte_addr(pde))
        self.memory.kfree(root)
        self.pgdir = None

    def clear_user(self, va: int) -> None:
        """Make the page at va inaccessible to user code."""
        pte = self.walk(va)
        if pte is None:
            raise VmError("clearpteu")
        _store(self.memory, pte, _load(self.memory, pte) & ~PTE_U)

    def copy(self, sz: int) -> "PageTable":
        """A new address space holding a copy of the first sz bytes of this one."""
        child = PageTable(self.memory, self.kmap)
        for va in range(0, sz, PGSIZE):
            pte = self.walk(va)
            if pte is None:
                child.free()
                raise VmError("copyuvm: pte should exist")
            entry = _load(self.memory, pte)
            if not entry & PTE_P:
                child.free()
                raise VmError("copyuvm: page not present")
            try:
                mem = self.memory.kalloc()
            except _Exhausted:
                child.free()
                raise
            self.memory.write(mem, self.memory.read(pte_addr(entry), PGSIZE))
            try:
                child.map_pages(va, PGSIZE, mem, pte_flags(entry))
            except _Exhausted:
                self.memory.kfree(mem)
                child.free()
                raise
        return child

    def user_to_kernel(self, va: int) -> Optional[int]:
        """Kernel address of the user page at va, or None if it is not a present user page."""
        pte = self.walk(va)
        if pte is None:
            return None
        entry = _load(self.memory, pte)
        if not entry & PTE_P or not entry & PTE_U:
            return None
        return p2v(pte_addr(entry))

    def copy_out(self, va: int, data) -> None:
        """Copy data into user memory starting at va."""
        view = memoryview(bytes(data))
        while view:
            va0 = pg_round_down(va)
            ka = self.user_to_kernel(va0)
            if ka is None:
                raise VmError(f"copyout: {va0:#x} is not a user page")
            off = va - va0
            n = min(PGSIZE - off, len(view))
            self.memory.write(v2p(ka) + off, view[:n])
            view = view[n:]
            va = va0 + PGSIZE