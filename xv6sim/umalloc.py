"""A first-fit free-list allocator over a simulated break-grown heap."""

from __future__ import annotations

from bisect import bisect_left, bisect_right, insort

UNIT = 8
"""Size in bytes of one block header, the allocator's unit."""

MIN_GROWTH = 4096
"""Fewest units requested from the break at a time."""

_BASE = -1  # address of the zero-sized sentinel, below every heap block


class OutOfMemory(MemoryError):
    """Raised when the heap cannot grow enough to satisfy a request."""


class Heap:
    """A heap that grows a break from 0 up to limit bytes.

    Addresses handed out are byte offsets into the heap, each just past an
    8-byte block header. Free blocks stay sorted by address and are merged
    with their neighbours when freed.
    """

    def __init__(self, limit: int) -> None:
        if limit < 0:
            raise ValueError("limit must not be negative")
        self.limit = limit
        self._brk = 0
        self._addrs: list[int] = []
        self._sizes: dict[int, int] = {}
        self._allocated: dict[int, int] = {}
        self._freep: int | None = None

    def _next(self, addr: int) -> int:
        i = bisect_right(self._addrs, addr)
        return self._addrs[i] if i < len(self._addrs) else self._addrs[0]

    def _insert(self, addr: int, size: int) -> None:
        insort(self._addrs, addr)
        self._sizes[addr] = size

    def _remove(self, addr: int) -> int:
        """Take a block off the free list and return its size in units."""
        self._addrs.pop(bisect_left(self._addrs, addr))
        return self._sizes.pop(addr)

    def _morecore(self, nunits: int) -> int:
        nunits = max(nunits, MIN_GROWTH)
        nbytes = nunits * UNIT
        if self._brk + nbytes > self.limit:
            raise OutOfMemory(f"cannot grow heap by {nbytes} bytes")
        header = self._brk // UNIT
        self._brk += nbytes
        self._allocated[header] = nunits
        self.free((header + 1) * UNIT)
        return self._freep

    def malloc(self, nbytes: int) -> int:
        """Allocate nbytes and return the address of the block."""
        if nbytes < 0:
            raise ValueError("size must not be negative")
        nunits = (nbytes + UNIT - 1) // UNIT + 1
        if self._freep is None:
            self._insert(_BASE, 0)
            self._freep = _BASE
        prevp = self._freep
        p = self._next(prevp)
        while True:
            size = self._sizes[p]
            if size >= nunits:
                if size == nunits:
                    self._remove(p)
                else:
                    self._sizes[p] = size - nunits
                    p += size - nunits
                self._freep = prevp
                self._allocated[p] = nunits
                return (p + 1) * UNIT
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, self._next(p)

    def free(self, address: int) -> None:
        """Return a block obtained from malloc to the free list."""
        bp, rem = divmod(address, UNIT)
        bp -= 1
        if rem or bp not in self._allocated:
            raise ValueError(f"address {address} is not an allocated block")
        size = self._allocated.pop(bp)

        p = self._addrs[bisect_left(self._addrs, bp) - 1]
        upper = self._next(p)
        if bp + size == upper:
            size += self._remove(upper)
        self._insert(bp, size)

        if p + self._sizes[p] == bp:
            self._sizes[p] += self._remove(bp)
        self._freep = p

    def free_blocks(self) -> list[tuple[int, int]]:
        """Free blocks as (header address, size in bytes), by address."""
        return [(a * UNIT, self._sizes[a] * UNIT) for a in self._addrs if a != _BASE]