"""RISC-V Sv39 paging arithmetic and the qemu ``virt`` physical memory layout."""

from __future__ import annotations

import enum

_U64 = (1 << 64) - 1

PGSIZE = 4096
PGSHIFT = 12

PXMASK = 0x1FF

# One beyond the highest usable virtual address (one bit short of Sv39's limit).
MAXVA = 1 << (9 + 9 + 9 + 12 - 1)

SATP_SV39 = 8 << 60

# Machine status register fields.
MSTATUS_MPP_MASK = 3 << 11
MSTATUS_MPP_M = 3 << 11
MSTATUS_MPP_S = 1 << 11
MSTATUS_MPP_U = 0 << 11
MSTATUS_MIE = 1 << 3

# Supervisor status register fields.
SSTATUS_SPP = 1 << 8
SSTATUS_SPIE = 1 << 5
SSTATUS_UPIE = 1 << 4
SSTATUS_SIE = 1 << 1
SSTATUS_UIE = 1 << 0

# Supervisor interrupt enable bits.
SIE_SEIE = 1 << 9
SIE_STIE = 1 << 5
SIE_SSIE = 1 << 1

# Machine interrupt enable bits.
MIE_MEIE = 1 << 11
MIE_MTIE = 1 << 7
MIE_MSIE = 1 << 3

# Physical memory layout of the qemu virt machine.
UART0 = 0x10000000
UART0_IRQ = 10
VIRTIO0 = 0x10001000
VIRTIO0_IRQ = 1
CLINT = 0x2000000
CLINT_MTIME = CLINT + 0xBFF8
PLIC = 0x0C000000
PLIC_PRIORITY = PLIC + 0x0
PLIC_PENDING = PLIC + 0x1000
KERNBASE = 0x80000000
PHYSTOP = KERNBASE + 128 * 1024 * 1024

# Trampoline page at the top of every address space, trapframe just below.
TRAMPOLINE = MAXVA - PGSIZE
TRAPFRAME = TRAMPOLINE - PGSIZE


class PteFlag(enum.IntFlag):
    """Bits in the low part of a page-table entry."""

    V = 1 << 0
    R = 1 << 1
    W = 1 << 2
    X = 1 << 3
    U = 1 << 4


def pg_round_up(sz: int) -> int:
    """Round a size up to a whole number of pages."""
    return ((sz + PGSIZE - 1) & ~(PGSIZE - 1)) & _U64


def pg_round_down(a: int) -> int:
    """Round an address down to the start of its page."""
    return (a & ~(PGSIZE - 1)) & _U64


def pa2pte(pa: int) -> int:
    """Shift a physical address into the PPN field of a PTE."""
    return ((pa & _U64) >> 12) << 10


def pte2pa(pte: int) -> int:
    """Extract the physical page address held by a PTE."""
    return ((pte >> 10) << 12) & _U64


def pte_flags(pte: int) -> int:
    """Return the ten flag bits of a PTE."""
    return pte & 0x3FF


def px_shift(level: int) -> int:
    """Bit position of the page-table index for ``level``."""
    return PGSHIFT + 9 * level


def px(level: int, va: int) -> int:
    """The 9-bit page-table index of ``va`` at ``level``."""
    return ((va & _U64) >> px_shift(level)) & PXMASK


def make_satp(pagetable: int) -> int:
    """Value for the satp register selecting Sv39 and the given root table."""
    return SATP_SV39 | ((pagetable & _U64) >> 12)


def kstack(p: int) -> int:
    """Virtual address of process slot ``p``'s kernel stack, below a guard page."""
    return TRAMPOLINE - (p + 1) * 2 * PGSIZE


def clint_mtimecmp(hartid: int) -> int:
    """Address of the timer compare register for a hart."""
    return CLINT + 0x4000 + 8 * hartid


def plic_menable(hart: int) -> int:
    """Machine-mode interrupt enable bits of a hart."""
    return PLIC + 0x2000 + hart * 0x100


def plic_senable(hart: int) -> int:
    """Supervisor-mode interrupt enable bits of a hart."""
    return PLIC + 0x2080 + hart * 0x100


def plic_mpriority(hart: int) -> int:
    """Machine-mode priority threshold of a hart."""
    return PLIC + 0x200000 + hart * 0x2000


def plic_spriority(hart: int) -> int:
    """Supervisor-mode priority threshold of a hart."""
    return PLIC + 0x201000 + hart * 0x2000


def plic_mclaim(hart: int) -> int:
    """Machine-mode claim/complete register of a hart."""
    return PLIC + 0x200004 + hart * 0x2000


def plic_sclaim(hart: int) -> int:
    """Supervisor-mode claim/complete register of a hart."""
    return PLIC + 0x201004 + hart * 0x2000