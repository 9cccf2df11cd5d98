"""Sv39 page tables built in a simulated physical memory.

Page-table pages, user pages and kernel pages all live in a
:class:`PhysicalMemory`, addressed by physical address, so that a
:class:`PageTable` walks and edits real 64-bit PTEs exactly as the
hardware would see them.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterator

from xvkit.riscv import (
    KERNBASE,
    MAXVA,
    PGSIZE,
    PteFlag,
    pa2pte,
    pg_round_down,
    pg_round_up,
    pte2pa,
    pte_flags,
    px,
)

_U64 = (1 << 64) - 1
_PTE = struct.Struct("<Q")
_PTES_PER_PAGE = PGSIZE // _PTE.size


class KernelPanic(RuntimeError):
    """An invariant of the kernel was violated; the kernel would halt."""


class AddressError(ValueError):
    """A user virtual address is not mapped for user access."""


class PhysicalMemory:
    """A contiguous run of RAM handed out one page at a time."""

    def __init__(self, npages: int = 1024, base: int = KERNBASE) -> None:
        if npages <= 0:
            raise ValueError("npages must be positive")
        if base % PGSIZE:
            raise ValueError("base must be page aligned")
        self.base = base
        self.npages = npages
        self._ram = bytearray(npages * PGSIZE)
        # Popping from the end hands out the lowest page first.
        self._free = [base + i * PGSIZE for i in reversed(range(npages))]
        self._allocated: set[int] = set()

    @property
    def end(self) -> int:
        """One past the last physical address of this memory."""
        return self.base + self.npages * PGSIZE

    def kalloc(self) -> int:
        """Allocate one page and return its physical address."""
        if not self._free:
            raise MemoryError("out of physical memory")
        pa = self._free.pop()
        self._allocated.add(pa)
        return pa

    def kfree(self, pa: int) -> None:
        """Return a page obtained from :meth:`kalloc`."""
        if pa % PGSIZE or not self.base <= pa < self.end:
            raise KernelPanic("kfree")
        if pa not in self._allocated:
            raise KernelPanic("kfree: page is not allocated")
        self._allocated.remove(pa)
        self._free.append(pa)

    def free_pages(self) -> int:
        """Number of pages still available to :meth:`kalloc`."""
        return len(self._free)

    def _offset(self, pa: int, n: int) -> int:
        if n < 0 or pa < self.base or pa + n > self.end:
            raise KernelPanic(f"physical address {pa:#x} out of range")
        return pa - self.base

    def read(self, pa: int, n: int) -> bytes:
        """Read ``n`` bytes starting at physical address ``pa``."""
        off = self._offset(pa, n)
        return bytes(self._ram[off:off + n])

    def write(self, pa: int, data: bytes) -> None:
        """Store ``data`` starting at physical address ``pa``."""
        off = self._offset(pa, len(data))
        self._ram[off:off + len(data)] = data

    def read_pte(self, addr: int) -> int:
        """Read the 64-bit little-endian word at ``addr``."""
        off = self._offset(addr, _PTE.size)
        return _PTE.unpack_from(self._ram, off)[0]

    def write_pte(self, addr: int, value: int) -> None:
        """Store a 64-bit little-endian word at ``addr``."""
        off = self._offset(addr, _PTE.size)
        _PTE.pack_into(self._ram, off, value & _U64)

    def _zero_page(self, pa: int) -> None:
        self.write(pa, bytes(PGSIZE))


@dataclass
class PageTable:
    """A three-level Sv39 page table whose root page is at ``root``."""

    memory: PhysicalMemory
    root: int

    @classmethod
    def create(cls, memory: PhysicalMemory) -> "PageTable":
        """Allocate an empty page table; raises MemoryError when out of memory."""
        root = memory.kalloc()
        memory._zero_page(root)
        return cls(memory, root)

    def _entries(self) -> Iterator[tuple[int, int]]:
        page = self.memory.read(self.root, PGSIZE)
        for i, (pte,) in enumerate(_PTE.iter_unpack(page)):
            yield self.root + i * _PTE.size, pte

    def walk(self, va: int, alloc: bool = False) -> int | None:
        """Physical address of the level-0 PTE for ``va``.

        Missing page-table pages are created when ``alloc`` is true;
        otherwise, or if memory runs out, None is returned.
        """
        if va >= MAXVA:
            raise KernelPanic("walk")
        mem = self.memory
        table = self.root
        for level in (2, 1):
            pte_addr = table + _PTE.size * px(level, va)
            pte = mem.read_pte(pte_addr)
            if pte & PteFlag.V:
                table = pte2pa(pte)
                continue
            if not alloc:
                return None
            try:
                table = mem.kalloc()
            except MemoryError:
                return None
            mem._zero_page(table)
            mem.write_pte(pte_addr, pa2pte(table) | PteFlag.V)
        return table + _PTE.size * px(0, va)

    def walkaddr(self, va: int) -> int | None:
        """Physical page address of a user-accessible ``va``, or None."""
        if va >= MAXVA:
            return None
        pte_addr = self.walk(va)
        if pte_addr is None:
            return None
        pte = self.memory.read_pte(pte_addr)
        if not pte & PteFlag.V or not pte & PteFlag.U:
            return None
        return pte2pa(pte)

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map the pages covering ``[va, va+size)`` to physical pages from ``pa``.

        Raises MemoryError if a page-table page cannot be allocated.
        """
        if size == 0:
            raise KernelPanic("mappages: size")
        a = pg_round_down(va)
        last = pg_round_down(va + size - 1)
        while True:
            pte_addr = self.walk(a, True)
            if pte_addr is None:
                raise MemoryError("mappages: cannot allocate page-table page")
            if self.memory.read_pte(pte_addr) & PteFlag.V:
                raise KernelPanic("mappages: remap")
            self.memory.write_pte(pte_addr, pa2pte(pa) | perm | PteFlag.V)
            if a == last:
                break
            a += PGSIZE
            pa += PGSIZE

    def kvmmap(self, va: int, pa: int, sz: int, perm: int) -> None:
        """Add a boot-time kernel mapping; failure is fatal."""
        try:
            self.map_pages(va, sz, pa, perm)
        except MemoryError as exc:
            raise KernelPanic("kvmmap") from exc

    def unmap(self, va: int, npages: int, do_free: bool) -> None:
        """Remove ``npages`` existing leaf mappings from page-aligned ``va``."""
        if va % PGSIZE:
            raise KernelPanic("uvmunmap: not aligned")
        mem = self.memory
        for a in range(va, va + npages * PGSIZE, PGSIZE):
            pte_addr = self.walk(a)
            if pte_addr is None:
                raise KernelPanic("uvmunmap: walk")
            pte = mem.read_pte(pte_addr)
            if not pte & PteFlag.V:
                raise KernelPanic("uvmunmap: not mapped")
            if pte_flags(pte) == PteFlag.V:
                raise KernelPanic("uvmunmap: not a leaf")
            if do_free:
                mem.kfree(pte2pa(pte))
            mem.write_pte(pte_addr, 0)

    def load_first(self, src: bytes) -> None:
        """Place ``src`` (less than a page) at virtual address 0."""
        if len(src) >= PGSIZE:
            raise KernelPanic("uvmfirst: more than a page")
        page = self.memory.kalloc()
        self.memory._zero_page(page)
        self.map_pages(
            0, PGSIZE, page, PteFlag.W | PteFlag.R | PteFlag.X | PteFlag.U
        )
        self.memory.write(page, src)

    def grow(self, oldsz: int, newsz: int, xperm: int = 0) -> int:
        """Allocate zeroed user pages to grow from ``oldsz`` to ``newsz``.

        Returns the new size. On exhaustion the pages added so far are
        released and MemoryError is raised.
        """
        if newsz < oldsz:
            return oldsz
        mem = self.memory
        start = pg_round_up(oldsz)
        for a in range(start, newsz, PGSIZE):
            try:
                page = mem.kalloc()
            except MemoryError:
                self.shrink(a, start)
                raise
            mem._zero_page(page)
            try:
                self.map_pages(a, PGSIZE, page, PteFlag.R | PteFlag.U | xperm)
            except MemoryError:
                mem.kfree(page)
                self.shrink(a, start)
                raise
        return newsz

    def shrink(self, oldsz: int, newsz: int) -> int:
        """Free user pages to bring the size from ``oldsz`` down to ``newsz``."""
        if newsz >= oldsz:
            return oldsz
        if pg_round_up(newsz) < pg_round_up(oldsz):
            npages = (pg_round_up(oldsz) - pg_round_up(newsz)) // PGSIZE
            self.unmap(pg_round_up(newsz), npages, True)
        return newsz

    def free_walk(self) -> None:
        """Free every page-table page; all leaf mappings must be gone."""
        leaf_bits = PteFlag.R | PteFlag.W | PteFlag.X
        for addr, pte in self._entries():
            if pte & PteFlag.V and not pte & leaf_bits:
                PageTable(self.memory, pte2pa(pte)).free_walk()
                self.memory.write_pte(addr, 0)
            elif pte & PteFlag.V:
                raise KernelPanic("freewalk: leaf")
        self.memory.kfree(self.root)

    def free(self, sz: int) -> None:
        """Free ``sz`` bytes of user memory, then the page table itself."""
        if sz > 0:
            self.unmap(0, pg_round_up(sz) // PGSIZE, True)
        self.free_walk()

    def copy_to(self, new: "PageTable", sz: int) -> None:
        """Copy the first ``sz`` bytes of this address space into ``new``.

        On exhaustion the pages already copied are freed from ``new``
        and MemoryError is raised.
        """
        mem = self.memory
        for i in range(0, sz, PGSIZE):
            pte_addr = self.walk(i)
            if pte_addr is None:
                raise KernelPanic("uvmcopy: pte should exist")
            pte = mem.read_pte(pte_addr)
            if not pte & PteFlag.V:
                raise KernelPanic("uvmcopy: page not present")
            try:
                page = new.memory.kalloc()
            except MemoryError:
                new.unmap(0, i // PGSIZE, True)
                raise
            new.memory.write(page, mem.read(pte2pa(pte), PGSIZE))
            try:
                new.map_pages(i, PGSIZE, page, pte_flags(pte))
            except MemoryError:
                new.memory.kfree(page)
                new.unmap(0, i // PGSIZE, True)
                raise

    def clear_user(self, va: int) -> None:
        """Make the page at ``va`` inaccessible to user mode."""
        pte_addr = self.walk(va)
        if pte_addr is None:
            raise KernelPanic("uvmclear")
        pte = self.memory.read_pte(pte_addr)
        self.memory.write_pte(pte_addr, pte & ~PteFlag.U)

    def copyout(self, dstva: int, data: bytes) -> None:
        """Copy ``data`` to user virtual address ``dstva``."""
        pos = 0
        while pos < len(data):
            va0 = pg_round_down(dstva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise AddressError(f"user address {dstva:#x} is not mapped")
            n = min(PGSIZE - (dstva - va0), len(data) - pos)
            self.memory.write(pa0 + (dstva - va0), data[pos:pos + n])
            pos += n
            dstva = va0 + PGSIZE

    def copyin(self, srcva: int, length: int) -> bytes:
        """Copy ``length`` bytes from user virtual address ``srcva``."""
        out = bytearray()
        while len(out) < length:
            va0 = pg_round_down(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise AddressError(f"user address {srcva:#x} is not mapped")
            n = min(PGSIZE - (srcva - va0), length - len(out))
            out += self.memory.read(pa0 + (srcva - va0), n)
            srcva = va0 + PGSIZE
        return bytes(out)

    def copyinstr(self, srcva: int, max: int) -> bytes:
        """Copy a NUL-terminated string of at most ``max`` bytes, NUL included.

        Returns the bytes before the NUL; raises AddressError if an
        address is unmapped or no NUL occurs within ``max`` bytes.
        """
        out = bytearray()
        remaining = max
        while remaining > 0:
            va0 = pg_round_down(srcva)
            pa0 = self.walkaddr(va0)
            if pa0 is None:
                raise AddressError(f"user address {srcva:#x} is not mapped")
            n = min(PGSIZE - (srcva - va0), remaining)
            chunk = self.memory.read(pa0 + (srcva - va0), n)
            nul = chunk.find(0)
            if nul >= 0:
                out += chunk[:nul]
                return bytes(out)
            out += chunk
            remaining -= n
            srcva = va0 + PGSIZE
        raise AddressError("string is not terminated within the limit")