"""Build a file-system image holding a root directory and a set of files.

Disk layout, one block per sector:
``[ boot | superblock | log | inode blocks | free bitmap | data blocks ]``.
All on-disk integers are little endian.
"""

from __future__ import annotations

import enum
import os
import struct
import sys
from dataclasses import dataclass, field
from typing import Iterable, Sequence

ROOTINO = 1
DIRSIZ = 14

_SUPERBLOCK = struct.Struct("<8I")
_DINODE_HEAD = struct.Struct("<hhhhI")


class InodeType(enum.IntEnum):
    """Kinds of inode stored in ``DiskInode.type``."""

    DIR = 1
    FILE = 2
    DEVICE = 3


@dataclass(frozen=True)
class FsGeometry:
    """Sizes that fix the layout of an image."""

    bsize: int = 1024
    fssize: int = 2000
    nlog: int = 30
    ninodes: int = 200
    ndirect: int = 12
    dirsiz: int = DIRSIZ
    magic: int = 0x10203040

    def __post_init__(self) -> None:
        if self.bsize % self.dinode_size:
            raise ValueError("block size must be a multiple of the inode size")
        if self.bsize % self.dirent_size:
            raise ValueError("block size must be a multiple of the directory entry size")

    @property
    def dinode_size(self) -> int:
        return _DINODE_HEAD.size + 4 * (self.ndirect + 1)

    @property
    def dirent_size(self) -> int:
        return 2 + self.dirsiz

    @property
    def ipb(self) -> int:
        """Inodes per block."""
        return self.bsize // self.dinode_size

    @property
    def nindirect(self) -> int:
        return self.bsize // 4

    @property
    def maxfile(self) -> int:
        """Largest file size in blocks."""
        return self.ndirect + self.nindirect

    @property
    def nbitmap(self) -> int:
        return self.fssize // (self.bsize * 8) + 1

    @property
    def ninodeblocks(self) -> int:
        return self.ninodes // self.ipb + 1

    @property
    def nmeta(self) -> int:
        """Blocks used by boot, superblock, log, inodes and bitmap."""
        return 2 + self.nlog + self.ninodeblocks + self.nbitmap

    @property
    def nblocks(self) -> int:
        """Number of data blocks."""
        return self.fssize - self.nmeta

    @property
    def logstart(self) -> int:
        return 2

    @property
    def inodestart(self) -> int:
        return 2 + self.nlog

    @property
    def bmapstart(self) -> int:
        return 2 + self.nlog + self.ninodeblocks

    def iblock(self, inum: int) -> int:
        """Block holding inode ``inum``."""
        return inum // self.ipb + self.inodestart

    def superblock(self) -> "Superblock":
        return Superblock(
            magic=self.magic,
            size=self.fssize,
            nblocks=self.nblocks,
            ninodes=self.ninodes,
            nlog=self.nlog,
            logstart=self.logstart,
            inodestart=self.inodestart,
            bmapstart=self.bmapstart,
        )


@dataclass
class Superblock:
    """The layout record stored in block 1."""

    magic: int
    size: int
    nblocks: int
    ninodes: int
    nlog: int
    logstart: int
    inodestart: int
    bmapstart: int

    def pack(self) -> bytes:
        return _SUPERBLOCK.pack(
            self.magic,
            self.size,
            self.nblocks,
            self.ninodes,
            self.nlog,
            self.logstart,
            self.inodestart,
            self.bmapstart,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "Superblock":
        return cls(*_SUPERBLOCK.unpack_from(data, 0))


@dataclass
class DiskInode:
    """An inode as stored on disk."""

    type: int = 0
    major: int = 0
    minor: int = 0
    nlink: int = 0
    size: int = 0
    addrs: list[int] = field(default_factory=list)

    def pack(self) -> bytes:
        head = _DINODE_HEAD.pack(self.type, self.major, self.minor, self.nlink, self.size)
        return head + struct.pack(f"<{len(self.addrs)}I", *self.addrs)

    @classmethod
    def unpack(cls, data: bytes, geometry: FsGeometry) -> "DiskInode":
        type_, major, minor, nlink, size = _DINODE_HEAD.unpack_from(data, 0)
        naddrs = geometry.ndirect + 1
        addrs = list(struct.unpack_from(f"<{naddrs}I", data, _DINODE_HEAD.size))
        return cls(type_, major, minor, nlink, size, addrs)


class ImageWriter:
    """An image under construction, held in memory."""

    def __init__(self, geometry: FsGeometry | None = None) -> None:
        self.geometry = geometry or FsGeometry()
        g = self.geometry
        self.image = bytearray(g.fssize * g.bsize)
        self.freeinode = 1
        self.freeblock = g.nmeta
        self._wsect(1, g.superblock().pack().ljust(g.bsize, b"\0"))

    def _rsect(self, sec: int) -> bytes:
        bsize = self.geometry.bsize
        if not 0 <= sec < self.geometry.fssize:
            raise ValueError(f"sector {sec} is outside the image")
        return bytes(self.image[sec * bsize:(sec + 1) * bsize])

    def _wsect(self, sec: int, data: bytes) -> None:
        bsize = self.geometry.bsize
        if not 0 <= sec < self.geometry.fssize:
            raise ValueError(f"sector {sec} is outside the image")
        if len(data) != bsize:
            raise ValueError("sector data must be exactly one block")
        self.image[sec * bsize:(sec + 1) * bsize] = data

    def _take_block(self) -> int:
        if self.freeblock >= self.geometry.fssize:
            raise ValueError("out of data blocks")
        block = self.freeblock
        self.freeblock += 1
        return block

    def read_inode(self, inum: int) -> DiskInode:
        g = self.geometry
        block = self._rsect(g.iblock(inum))
        off = (inum % g.ipb) * g.dinode_size
        return DiskInode.unpack(block[off:off + g.dinode_size], g)

    def write_inode(self, inum: int, inode: DiskInode) -> None:
        g = self.geometry
        raw = inode.pack()
        if len(raw) != g.dinode_size:
            raise ValueError("inode does not have the geometry's size")
        bn = g.iblock(inum)
        block = bytearray(self._rsect(bn))
        off = (inum % g.ipb) * g.dinode_size
        block[off:off + g.dinode_size] = raw
        self._wsect(bn, bytes(block))

    def ialloc(self, type: int) -> int:
        """Allocate the next inode with one link and no contents."""
        g = self.geometry
        inum = self.freeinode
        if inum >= g.ninodes:
            raise ValueError("out of inodes")
        self.freeinode += 1
        self.write_inode(inum, DiskInode(type=int(type), nlink=1, addrs=[0] * (g.ndirect + 1)))
        return inum

    def iappend(self, inum: int, data: bytes) -> None:
        """Append ``data`` to the file of inode ``inum``, allocating blocks."""
        g = self.geometry
        din = self.read_inode(inum)
        off = din.size
        view = memoryview(bytes(data))
        pos = 0
        while pos < len(view):
            fbn = off // g.bsize
            if fbn >= g.maxfile:
                raise ValueError("file exceeds the maximum file size")
            if fbn < g.ndirect:
                if din.addrs[fbn] == 0:
                    din.addrs[fbn] = self._take_block()
                x = din.addrs[fbn]
            else:
                if din.addrs[g.ndirect] == 0:
                    din.addrs[g.ndirect] = self._take_block()
                ind = din.addrs[g.ndirect]
                entries = list(struct.unpack(f"<{g.nindirect}I", self._rsect(ind)))
                slot = fbn - g.ndirect
                if entries[slot] == 0:
                    entries[slot] = self._take_block()
                    self._wsect(ind, struct.pack(f"<{g.nindirect}I", *entries))
                x = entries[slot]
            n1 = min(len(view) - pos, (fbn + 1) * g.bsize - off)
            block = bytearray(self._rsect(x))
            start = off - fbn * g.bsize
            block[start:start + n1] = view[pos:pos + n1]
            self._wsect(x, bytes(block))
            pos += n1
            off += n1
        din.size = off
        self.write_inode(inum, din)

    def balloc(self, used: int) -> None:
        """Mark the first ``used`` blocks as allocated in the bitmap."""
        g = self.geometry
        if not 0 <= used < g.bsize * 8:
            raise ValueError("used blocks do not fit one bitmap block")
        buf = bytearray(g.bsize)
        for i in range(used):
            buf[i // 8] |= 1 << (i % 8)
        self._wsect(g.bmapstart, bytes(buf))


def _dirent(inum: int, name: bytes, geometry: FsGeometry) -> bytes:
    return struct.pack(f"<H{geometry.dirsiz}s", inum, name)


def make_fs(
    path: str | os.PathLike[str],
    files: Iterable[str],
    geometry: FsGeometry | None = None,
) -> ImageWriter:
    """Write an image to ``path`` whose root directory holds ``files``.

    A leading ``user/`` and then a leading ``_`` are removed from each
    name; the remaining name must not contain a ``/``.
    """
    g = geometry or FsGeometry()
    with open(path, "wb") as img:
        writer = ImageWriter(g)
        rootino = writer.ialloc(InodeType.DIR)
        if rootino != ROOTINO:
            raise ValueError("root inode is not the first inode")
        writer.iappend(rootino, _dirent(rootino, b".", g))
        writer.iappend(rootino, _dirent(rootino, b"..", g))

        for name in files:
            short = name[5:] if name.startswith("user/") else name
            if "/" in short:
                raise ValueError(f"{name}: name must not contain a directory")
            with open(name, "rb") as src:
                if short.startswith("_"):
                    short = short[1:]
                inum = writer.ialloc(InodeType.FILE)
                writer.iappend(rootino, _dirent(inum, os.fsencode(short), g))
                while chunk := src.read(g.bsize):
                    writer.iappend(inum, chunk)

        root = writer.read_inode(rootino)
        root.size = (root.size // g.bsize + 1) * g.bsize
        writer.write_inode(rootino, root)
        writer.balloc(writer.freeblock)
        img.write(writer.image)
    return writer


def main(argv: Sequence[str] | None = None) -> int:
    """Command entry point: ``mkfs fs.img files...``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        sys.stderr.write("Usage: mkfs fs.img files...\n")
        return 1
    g = FsGeometry()
    print(
        f"nmeta {g.nmeta} (boot, super, log blocks {g.nlog} inode blocks "
        f"{g.ninodeblocks}, bitmap blocks {g.nbitmap}) blocks {g.nblocks} total {g.fssize}"
    )
    try:
        writer = make_fs(args[0], args[1:], g)
    except OSError as exc:
        sys.stderr.write(f"{exc.filename}: {exc.strerror}\n")
        return 1
    except ValueError as exc:
        sys.stderr.write(f"mkfs: {exc}\n")
        return 1
    print(f"balloc: first {writer.freeblock} blocks have been allocated")
    print(f"balloc: write bitmap block at sector {g.bmapstart}")
    return 0