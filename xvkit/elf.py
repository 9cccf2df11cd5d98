"""ELF64 executable header and program header records (little endian)."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, field
from typing import Iterator

ELF_MAGIC = 0x464C457F  # "\x7fELF" read as a little-endian word
ELF_PROG_LOAD = 1

_ELF_HEADER = struct.Struct("<I12sHHIQQQIHHHHHH")
_PROG_HEADER = struct.Struct("<IIQQQQQQ")

ELFHDR_SIZE = _ELF_HEADER.size
PROGHDR_SIZE = _PROG_HEADER.size


class ElfFormatError(ValueError):
    """Raised when bytes do not hold a well-formed ELF record."""


class ProgFlag(enum.IntFlag):
    """Permission bits of a program header."""

    EXEC = 1
    WRITE = 2
    READ = 4


@dataclass
class ProgramHeader:
    """One program section header."""

    type: int = ELF_PROG_LOAD
    flags: int = 0
    off: int = 0
    vaddr: int = 0
    paddr: int = 0
    filesz: int = 0
    memsz: int = 0
    align: int = 0

    @property
    def is_load(self) -> bool:
        return self.type == ELF_PROG_LOAD

    @property
    def prog_flags(self) -> ProgFlag:
        return ProgFlag(self.flags & 0x7)

    def pack(self) -> bytes:
        """Encode the header as it appears in the file."""
        return _PROG_HEADER.pack(
            self.type,
            self.flags,
            self.off,
            self.vaddr,
            self.paddr,
            self.filesz,
            self.memsz,
            self.align,
        )


@dataclass
class ElfHeader:
    """The ELF file header."""

    magic: int = ELF_MAGIC
    ident: bytes = field(default=bytes(12))
    type: int = 0
    machine: int = 0
    version: int = 0
    entry: int = 0
    phoff: int = 0
    shoff: int = 0
    flags: int = 0
    ehsize: int = ELFHDR_SIZE
    phentsize: int = PROGHDR_SIZE
    phnum: int = 0
    shentsize: int = 0
    shnum: int = 0
    shstrndx: int = 0

    def pack(self) -> bytes:
        """Encode the header as it appears at the start of the file."""
        if len(self.ident) > 12:
            raise ElfFormatError("ident is longer than 12 bytes")
        return _ELF_HEADER.pack(
            self.magic,
            self.ident,
            self.type,
            self.machine,
            self.version,
            self.entry,
            self.phoff,
            self.shoff,
            self.flags,
            self.ehsize,
            self.phentsize,
            self.phnum,
            self.shentsize,
            self.shnum,
            self.shstrndx,
        )

    def program_headers(self, data: bytes) -> Iterator[ProgramHeader]:
        """Yield the ``phnum`` program headers stored consecutively from ``phoff``."""
        for i in range(self.phnum):
            yield parse_program_header(data, self.phoff + i * PROGHDR_SIZE)


def parse_elf_header(data: bytes) -> ElfHeader:
    """Decode the file header at the start of ``data``, checking the magic."""
    if len(data) < ELFHDR_SIZE:
        raise ElfFormatError("data too short for an ELF header")
    fields = _ELF_HEADER.unpack_from(data, 0)
    header = ElfHeader(*fields)
    if header.magic != ELF_MAGIC:
        raise ElfFormatError(f"bad ELF magic {header.magic:#x}")
    return header


def parse_program_header(data: bytes, offset: int) -> ProgramHeader:
    """Decode the program header that starts at ``offset`` in ``data``."""
    if offset < 0 or offset + PROGHDR_SIZE > len(data):
        raise ElfFormatError(f"program header at {offset} lies outside the data")
    return ProgramHeader(*_PROG_HEADER.unpack_from(data, offset))