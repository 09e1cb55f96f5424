"""On-disk structures of a controller pak image."""

from __future__ import annotations

import string
import struct
from dataclasses import dataclass, field, replace
from typing import ClassVar

from .encoding import N64_FONT_CODE, EncodingError, decode, encode

__all__ = [
    "IDBlock",
    "IDSector",
    "Inode",
    "InodeTable",
    "Note",
    "NoteTable",
]


def _require(data: bytes, size: int, what: str) -> None:
    if len(data) < size:
        raise ValueError(f"{what} needs {size} bytes, got {len(data)}")


def _pack(fmt: struct.Struct, what: str, *values: object) -> bytes:
    try:
        return fmt.pack(*values)
    except struct.error as exc:
        raise ValueError(f"cannot pack {what}: {exc}") from exc


def _from_hex(text: str, size: int, what: str) -> bytes:
    if len(text) != size * 2 or any(c not in string.hexdigits for c in text):
        raise ValueError(f"invalid hex for {what}: {text!r}")
    return bytes.fromhex(text)


@dataclass(frozen=True)
class IDBlock:
    """The identification block, stored four times in the ID sector."""

    repaired: int = 0
    random: int = 0
    serial_mid: int = 0
    serial_low: int = 0
    deviceid: int = 0
    banks: int = 0
    version: int = 0
    checksum: int = 0
    inverted_checksum: int = 0

    SIZE: ClassVar[int] = 32
    _FORMAT: ClassVar[struct.Struct] = struct.Struct(">IIQQHBBHH")

    def pack(self) -> bytes:
        return _pack(
            self._FORMAT,
            "ID block",
            self.repaired,
            self.random,
            self.serial_mid,
            self.serial_low,
            self.deviceid,
            self.banks,
            self.version,
            self.checksum,
            self.inverted_checksum,
        )

    @classmethod
    def unpack(cls, data: bytes) -> IDBlock:
        _require(data, cls.SIZE, "ID block")
        return cls(*cls._FORMAT.unpack_from(data))

    def sum(self) -> int:
        """Wrapping 16-bit sum of the big-endian words before the checksums."""
        words = struct.unpack(">14H", self.pack()[:28])
        return sum(words) & 0xFFFF

    def check(self) -> bool:
        total = self.sum()
        return (
            total == self.checksum
            and (0xFFF2 - total) & 0xFFFF == self.inverted_checksum
        )

    def with_checksums(self) -> IDBlock:
        """Return a copy whose checksum fields match its contents."""
        total = self.sum()
        return replace(
            self, checksum=total, inverted_checksum=(0xFFF2 - total) & 0xFFFF
        )


@dataclass
class IDSector:
    """The first page of the pak: a label area and four copies of the ID block."""

    label_area: bytes = bytes(0x20)
    id_block: IDBlock = field(default_factory=IDBlock)
    id_block_backup: IDBlock = field(default_factory=IDBlock)
    id_block_backup_2: IDBlock = field(default_factory=IDBlock)
    id_block_backup_3: IDBlock = field(default_factory=IDBlock)

    SIZE: ClassVar[int] = 0x100
    _OFFSETS: ClassVar[tuple[int, ...]] = (0x20, 0x60, 0x80, 0xC0)

    def blocks(self) -> tuple[IDBlock, IDBlock, IDBlock, IDBlock]:
        return (
            self.id_block,
            self.id_block_backup,
            self.id_block_backup_2,
            self.id_block_backup_3,
        )

    def pack(self) -> bytes:
        if len(self.label_area) != 0x20:
            raise ValueError("label area must be 32 bytes")
        buf = bytearray(self.SIZE)
        buf[:0x20] = self.label_area
        for offset, block in zip(self._OFFSETS, self.blocks()):
            buf[offset : offset + IDBlock.SIZE] = block.pack()
        return bytes(buf)

    @classmethod
    def unpack(cls, data: bytes) -> IDSector:
        _require(data, cls.SIZE, "ID sector")
        blocks = [
            IDBlock.unpack(data[offset : offset + IDBlock.SIZE])
            for offset in cls._OFFSETS
        ]
        return cls(bytes(data[:0x20]), *blocks)


@dataclass(frozen=True)
class Inode:
    """A page reference: a bank and a page within it."""

    bank: int = 0
    page: int = 0

    def address(self) -> int:
        return (self.bank * 0x8000) | (self.page * 0x100)

    @classmethod
    def from_int(cls, value: int) -> Inode:
        return cls(bank=(value >> 8) & 0xFF, page=value & 0xFF)

    def __int__(self) -> int:
        return ((self.bank & 0xFF) << 8) | (self.page & 0xFF)


def _default_inodes() -> list[Inode]:
    return [Inode()] * InodeTable.NUM_INODES


@dataclass
class InodeTable:
    """One bank's page chain table, preceded by a pad byte and a checksum."""

    checksum: int = 0
    inodes: list[Inode] = field(default_factory=_default_inodes)

    NUM_INODES: ClassVar[int] = 128 - 1
    SIZE: ClassVar[int] = 0x100

    def pack(self) -> bytes:
        if len(self.inodes) != self.NUM_INODES:
            raise ValueError(
                f"inode table needs {self.NUM_INODES} inodes, got {len(self.inodes)}"
            )
        try:
            return bytes(
                [0, self.checksum]
                + [byte for inode in self.inodes for byte in (inode.bank, inode.page)]
            )
        except ValueError as exc:
            raise ValueError(f"cannot pack inode table: {exc}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> InodeTable:
        _require(data, cls.SIZE, "inode table")
        entries = iter(data[2 : cls.SIZE])
        return cls(
            checksum=data[1],
            inodes=[Inode(bank, page) for bank, page in zip(entries, entries)],
        )

    def sum(self) -> int:
        """Wrapping 8-bit sum of the inode bytes."""
        return sum(self.pack()[2:]) & 0xFF

    def check(self) -> bool:
        return self.sum() == self.checksum


def _code_text(value: int, size: int) -> str:
    raw = value.to_bytes(size, "big")
    if raw.isascii():
        return raw.decode("ascii")
    return f"{value:0{size * 2}X}"


def _code_value(text: str, size: int, what: str) -> int:
    raw = text.encode("utf-8")
    if len(raw) == size:
        return int.from_bytes(raw, "big")
    if len(raw) == size * 2:
        return int.from_bytes(_from_hex(text, size, what), "big")
    raise ValueError(f"invalid {what} length")


def _label_text(data: bytes) -> str:
    try:
        return decode(data, N64_FONT_CODE).rstrip("\0")
    except EncodingError:
        return "&" + data.hex().upper()


def _label_bytes(text: str, size: int, what: str) -> bytes:
    if text.startswith("&"):
        return _from_hex(text[1:], size, what)
    data = encode(text.ljust(size, "\0"), N64_FONT_CODE)
    if len(data) != size:
        raise ValueError(f"failed to encode note {what}")
    return data


@dataclass(frozen=True)
class Note:
    """A note table entry describing one saved game."""

    game_code: int = 0
    company_code: int = 0
    start_page: Inode = field(default_factory=Inode)
    status: int = 0
    reserved: int = 0
    data_sum: int = 0
    ext_name: bytes = bytes(4)
    game_name: bytes = bytes(16)

    SIZE: ClassVar[int] = 32
    _FORMAT: ClassVar[struct.Struct] = struct.Struct(">IHBBBbH4s16s")

    def pack(self) -> bytes:
        if len(self.ext_name) != 4:
            raise ValueError("note extension must be 4 bytes")
        if len(self.game_name) != 16:
            raise ValueError("note name must be 16 bytes")
        return _pack(
            self._FORMAT,
            "note",
            self.game_code,
            self.company_code,
            self.start_page.bank,
            self.start_page.page,
            self.status,
            self.reserved,
            self.data_sum,
            self.ext_name,
            self.game_name,
        )

    @classmethod
    def unpack(cls, data: bytes) -> Note:
        _require(data, cls.SIZE, "note")
        (
            game_code,
            company_code,
            bank,
            page,
            status,
            reserved,
            data_sum,
            ext_name,
            game_name,
        ) = cls._FORMAT.unpack_from(data)
        return cls(
            game_code,
            company_code,
            Inode(bank, page),
            status,
            reserved,
            data_sum,
            ext_name,
            game_name,
        )

    def name(self) -> str:
        return decode(self.game_name, N64_FONT_CODE)

    def ext(self) -> str:
        return decode(self.ext_name, N64_FONT_CODE)

    def __str__(self) -> str:
        return "£{}£{}£{}£{}£".format(
            _code_text(self.game_code, 4),
            _code_text(self.company_code, 2),
            _label_text(self.game_name),
            _label_text(self.ext_name),
        )

    @classmethod
    def parse(cls, text: str) -> Note:
        """Build a note from the form produced by ``str(note)``."""
        if len(text) < 2 or not text.startswith("£") or not text.endswith("£"):
            raise ValueError("failed to decode note from string")
        parts = text[1:-1].split("£", 3)
        if len(parts) != 4:
            raise ValueError("failed to decode note from string")
        game_code, company_code, name, extension = parts
        return cls(
            game_code=_code_value(game_code, 4, "game code"),
            company_code=_code_value(company_code, 2, "company code"),
            start_page=Inode(0, 0),
            status=0x02,
            reserved=0,
            data_sum=0,
            ext_name=_label_bytes(extension, 4, "extension"),
            game_name=_label_bytes(name, 16, "name"),
        )


def _default_notes() -> list[Note]:
    return [Note()] * NoteTable.NUM_NOTES


@dataclass
class NoteTable:
    """The table of all note entries."""

    notes: list[Note] = field(default_factory=_default_notes)

    NUM_NOTES: ClassVar[int] = 16
    SIZE: ClassVar[int] = 16 * 32

    def pack(self) -> bytes:
        if len(self.notes) != self.NUM_NOTES:
            raise ValueError(
                f"note table needs {self.NUM_NOTES} notes, got {len(self.notes)}"
            )
        return b"".join(note.pack() for note in self.notes)

    @classmethod
    def unpack(cls, data: bytes) -> NoteTable:
        _require(data, cls.SIZE, "note table")
        return cls(
            notes=[
                Note.unpack(data[offset : offset + Note.SIZE])
                for offset in range(0, cls.SIZE, Note.SIZE)
            ]
        )