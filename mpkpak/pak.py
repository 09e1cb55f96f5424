"""Reading and writing whole controller pak images."""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import replace

from .structures import IDBlock, IDSector, Inode, InodeTable, Note, NoteTable

__all__ = [
    "BANK_SIZE",
    "MAX_BANKS",
    "PAGE_SIZE",
    "PakError",
    "build",
    "extract",
]

MAX_BANKS = (128 - 3) >> 1
PAGE_SIZE = 0x100
BANK_SIZE = 0x8000

_END = Inode.from_int(0x0001)
_FREE = Inode.from_int(0x0003)
_USED = Inode.from_int(0x0000)
_PAGES_PER_BANK = 125
_STATUS_IN_USE = 0x02


class PakError(ValueError):
    """Raised when an image cannot be read or built."""


def _section(data: bytes, offset: int, size: int, what: str) -> bytes:
    end = offset + size
    if offset < 0 or end > len(data):
        raise PakError(f"unexpected end of image while reading {what}")
    return data[offset:end]


def _read_pages(
    data: bytes, note: Note, tables: Sequence[InodeTable]
) -> list[bytes]:
    pages: list[bytes] = []
    seen: set[Inode] = set()
    node = note.start_page
    while int(node) != int(_END):
        if node in seen:
            raise PakError(
                f"page chain loops back to bank {node.bank}, page {node.page}"
            )
        seen.add(node)
        pages.append(_section(data, node.address(), PAGE_SIZE, "note page"))
        if node.bank >= len(tables) or not 1 <= node.page <= InodeTable.NUM_INODES:
            raise PakError(
                f"page chain points outside the inode table "
                f"at bank {node.bank}, page {node.page}"
            )
        node = tables[node.bank].inodes[node.page - 1]
    return pages


def extract(data: bytes) -> list[tuple[Note, list[bytes]]]:
    """Return every note in use together with the pages of its data, in order."""
    data = bytes(data)
    sector = IDSector.unpack(_section(data, 0, IDSector.SIZE, "ID sector"))

    block = next((b for b in sector.blocks() if b.check()), None)
    if block is None:
        raise PakError("No ID block has a valid checksum")
    if block.banks > MAX_BANKS:
        raise PakError(
            f"specified number of banks ({block.banks}) exceeds maximum ({MAX_BANKS})"
        )

    offset = IDSector.SIZE
    copies: list[list[InodeTable]] = []
    for _ in range(2):
        tables = []
        for _ in range(block.banks):
            raw = _section(data, offset, InodeTable.SIZE, "inode table")
            tables.append(InodeTable.unpack(raw))
            offset += InodeTable.SIZE
        copies.append(tables)

    inode_tables = next(
        (tables for tables in copies if all(t.check() for t in tables)), None
    )
    if inode_tables is None:
        raise PakError("No inode table has a complete set of valid checksums")

    note_table = NoteTable.unpack(
        _section(data, offset, NoteTable.SIZE, "note table")
    )

    return [
        (note, _read_pages(data, note, inode_tables))
        for note in note_table.notes
        if note.status & _STATUS_IN_USE
    ]


def _next_page(page: Inode) -> Inode:
    if page.page == InodeTable.NUM_INODES:
        # The first page of every bank holds no data.
        return Inode(page.bank + 1, 1)
    return Inode(page.bank, page.page + 1)


def _free_after(page: Inode, tables: Sequence[InodeTable]) -> Inode | None:
    candidate = _next_page(page)
    while candidate.bank < len(tables):
        if int(tables[candidate.bank].inodes[candidate.page - 1]) == int(_FREE):
            return candidate
        candidate = _next_page(candidate)
    return None


def _link(tables: Sequence[InodeTable], page: Inode, target: Inode) -> None:
    tables[page.bank].inodes[page.page - 1] = target


def build(notes: Sequence[tuple[Note, bytes]]) -> bytes:
    """Lay out the given notes and their data as a complete pak image."""
    notes = list(notes)
    if len(notes) > NoteTable.NUM_NOTES:
        raise PakError(
            f"provided number of notes ({len(notes)}) exceeds maximum "
            f"({NoteTable.NUM_NOTES})"
        )

    total_pages = sum(-(-len(data) // PAGE_SIZE) for _, data in notes)
    # Each bank offers 125 data pages once the two header pages are taken.
    banks = -(-(total_pages + 2) // _PAGES_PER_BANK)
    if banks > MAX_BANKS:
        raise PakError(
            f"required number of banks ({banks}) exceeds maximum ({MAX_BANKS})"
        )

    tables = [
        InodeTable(checksum=0, inodes=[_FREE] * InodeTable.NUM_INODES)
        for _ in range(banks)
    ]
    # Both inode table copies and the two note table pages are reserved.
    for index in range(2 * banks + 2):
        tables[0].inodes[index] = _USED

    id_block = IDBlock(
        repaired=0xFFFFFFFF,
        random=random.getrandbits(32),
        serial_mid=0,
        serial_low=0,
        deviceid=1,
        banks=banks,
        version=0,
    ).with_checksums()
    sector = IDSector(bytes(0x20), id_block, id_block, id_block, id_block)

    note_table = NoteTable()
    mappings: list[tuple[Inode, bytes]] = []
    current: Inode | None = Inode.from_int(banks * 2 + 3)

    for index, (note, data) in enumerate(notes):
        if current is None:
            raise PakError("no free page left for note data")
        note_table.notes[index] = replace(note, start_page=current)
        previous = current
        for offset in range(0, len(data), PAGE_SIZE):
            if current is None:
                raise PakError("no free page left for note data")
            following = _free_after(current, tables)
            mappings.append((current, bytes(data[offset : offset + PAGE_SIZE])))
            _link(tables, current, following if following is not None else _END)
            previous = current
            current = following
        _link(tables, previous, _END)

    for table in tables:
        table.checksum = table.sum()

    inode_bytes = b"".join(table.pack() for table in tables)
    header = sector.pack() + inode_bytes + inode_bytes + note_table.pack()

    image = bytearray(banks * BANK_SIZE)
    image[: len(header)] = header
    for page, chunk in mappings:
        address = page.address()
        image[address : address + len(chunk)] = chunk
    return bytes(image)