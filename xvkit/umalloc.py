"""A first-fit free-list allocator over a simulated ``sbrk`` heap."""

from __future__ import annotations

HEADER_SIZE = 16
MIN_CORE_UNITS = 4096

_BASE = 0  # address of the empty sentinel block, below every heap address


class Heap:
    """Addresses handed out by :meth:`malloc` lie in ``[start, break)``."""

    def __init__(self, start: int = 0x10000, limit: int | None = None) -> None:
        if start <= _BASE:
            raise ValueError("heap start must be above zero")
        self.start = start
        self.limit = start + 64 * 1024 * 1024 if limit is None else limit
        if self.limit < start:
            raise ValueError("limit lies below start")
        self._brk = start
        self._size: dict[int, int] = {}
        self._next: dict[int, int] = {}
        self._freep: int | None = None
        self._allocated: set[int] = set()

    def sbrk(self, n: int) -> int:
        """Move the break by ``n`` bytes and return the old break."""
        old = self._brk
        new = old + n
        if new < self.start or new > self.limit:
            raise MemoryError("sbrk: out of memory")
        self._brk = new
        return old

    def _morecore(self, nunits: int) -> int:
        nunits = max(nunits, MIN_CORE_UNITS)
        block = self.sbrk(nunits * HEADER_SIZE)
        self._size[block] = nunits
        self._release(block)
        assert self._freep is not None
        return self._freep

    def malloc(self, nbytes: int) -> int:
        """Allocate ``nbytes`` and return the address; raises MemoryError."""
        if nbytes < 0:
            raise ValueError("negative size")
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        if self._freep is None:
            self._next[_BASE] = _BASE
            self._size[_BASE] = 0
            self._freep = _BASE
        prevp = self._freep
        p = self._next[prevp]
        while True:
            if self._size[p] >= nunits:
                if self._size[p] == nunits:
                    self._next[prevp] = self._next.pop(p)
                else:
                    self._size[p] -= nunits
                    p += self._size[p] * HEADER_SIZE
                    self._size[p] = nunits
                self._freep = prevp
                self._allocated.add(p)
                return p + HEADER_SIZE
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, self._next[p]

    def free(self, addr: int) -> None:
        """Return a block obtained from :meth:`malloc`."""
        block = addr - HEADER_SIZE
        if block not in self._allocated:
            raise ValueError(f"address {addr:#x} was not allocated")
        self._allocated.remove(block)
        self._release(block)

    def _release(self, bp: int) -> None:
        assert self._freep is not None
        nxt = self._next
        size = self._size
        p = self._freep
        while not (p < bp < nxt[p]):
            if p >= nxt[p] and (bp > p or bp < nxt[p]):
                break
            p = nxt[p]
        after = nxt[p]
        if bp + size[bp] * HEADER_SIZE == after:
            size[bp] += size.pop(after)
            nxt[bp] = nxt.pop(after)
        else:
            nxt[bp] = after
        if p + size[p] * HEADER_SIZE == bp:
            size[p] += size.pop(bp)
            nxt[p] = nxt.pop(bp)
        else:
            nxt[p] = bp
        self._freep = p