"""Models of a small teaching Unix: memory layout, page tables, ELF headers, mkfs, a shell parser and user tools."""

__version__ = "0.1.0"