import pytest

from xvkit.umalloc import HEADER_SIZE, MIN_CORE_UNITS, Heap

START = 0x10000


def test_first_malloc_grows_break_by_minimum_core():
    heap = Heap(start=START)
    addr = heap.malloc(1)
    assert heap.sbrk(0) - START == MIN_CORE_UNITS * HEADER_SIZE
    assert START < addr < heap.sbrk(0)


def test_blocks_do_not_overlap():
    heap = Heap(start=START)
    sizes = [1, 10, 100, 1000, 5000, 17, 64]
    blocks = sorted((heap.malloc(n), n) for n in sizes)
    brk = heap.sbrk(0)
    for (a, n), (b, _) in zip(blocks, blocks[1:]):
        assert a + n <= b - HEADER_SIZE
    for a, n in blocks:
        assert START + HEADER_SIZE <= a and a + n <= brk


def test_free_then_malloc_reuses_block():
    heap = Heap(start=START)
    heap.malloc(32)
    addr = heap.malloc(200)
    heap.free(addr)
    assert heap.malloc(200) == addr


def test_freed_blocks_coalesce():
    heap = Heap(start=START)
    addrs = [heap.malloc(100) for _ in range(20)]
    brk = heap.sbrk(0)
    for a in addrs[::2] + addrs[1::2]:
        heap.free(a)
    whole = heap.malloc((MIN_CORE_UNITS - 1) * HEADER_SIZE)
    assert heap.sbrk(0) == brk
    assert whole == START + HEADER_SIZE


def test_large_request_grows_by_its_size():
    heap = Heap(start=START)
    nunits = MIN_CORE_UNITS * 2
    heap.malloc((nunits - 1) * HEADER_SIZE)
    assert heap.sbrk(0) - START == nunits * HEADER_SIZE


def test_out_of_memory():
    heap = Heap(start=START, limit=START + 1000)
    with pytest.raises(MemoryError):
        heap.malloc(1)


def test_free_unknown_and_double_free():
    heap = Heap(start=START)
    addr = heap.malloc(8)
    with pytest.raises(ValueError):
        heap.free(addr + 8)
    heap.free(addr)
    with pytest.raises(ValueError):
        heap.free(addr)


def test_sbrk_returns_old_break_and_checks_bounds():
    heap = Heap(start=START, limit=START + 4096)
    assert heap.sbrk(100) == START
    assert heap.sbrk(-100) == START + 100
    with pytest.raises(MemoryError):
        heap.sbrk(-1)
    with pytest.raises(MemoryError):
        heap.sbrk(4097)
    assert heap.sbrk(0) == START