import pytest

from mpkpak.encoding import N64_FONT_CODE, encode
from mpkpak.structures import (
    IDBlock,
    IDSector,
    Inode,
    InodeTable,
    Note,
    NoteTable,
)


def _block():
    return IDBlock(
        repaired=0xFFFFFFFF,
        random=0x12345678,
        serial_mid=0,
        serial_low=0,
        deviceid=1,
        banks=1,
        version=0,
    )


def _note(**changes):
    values = dict(
        game_code=int.from_bytes(b"NABE", "big"),
        company_code=int.from_bytes(b"01", "big"),
        status=0x02,
        game_name=encode("HELLO".ljust(16, "\0"), N64_FONT_CODE),
        ext_name=bytes(4),
    )
    values.update(changes)
    return Note(**values)


def test_id_block_round_trip():
    block = _block().with_checksums()
    packed = block.pack()
    assert len(packed) == IDBlock.SIZE
    assert IDBlock.unpack(packed) == block


def test_id_block_checksums_valid_after_with_checksums():
    block = _block().with_checksums()
    assert block.check()
    assert block.checksum == block.sum()
    assert (block.checksum + block.inverted_checksum) & 0xFFFF == 0xFFF2


def test_id_block_check_fails_when_tampered():
    block = _block().with_checksums()
    from dataclasses import replace

    assert not replace(block, banks=2).check()
    assert not replace(block, inverted_checksum=block.inverted_checksum ^ 1).check()


def test_id_block_sum_ignores_checksum_fields():
    block = _block()
    assert block.with_checksums().sum() == block.sum()


def test_id_block_unpack_too_short():
    with pytest.raises(ValueError):
        IDBlock.unpack(bytes(10))


def test_id_block_pack_out_of_range():
    with pytest.raises(ValueError):
        IDBlock(banks=300).pack()


def test_id_sector_layout_and_round_trip():
    block = _block().with_checksums()
    sector = IDSector(bytes(32), block, block, block, block)
    packed = sector.pack()
    assert len(packed) == 0x100
    assert packed[0x20:0x40] == block.pack()
    assert packed[0x40:0x60] == bytes(32)
    assert packed[0x60:0x80] == block.pack()
    assert packed[0xC0:0xE0] == block.pack()
    assert IDSector.unpack(packed) == sector


def test_id_sector_blocks_order():
    blocks = [IDBlock(random=n).with_checksums() for n in range(4)]
    sector = IDSector(bytes(32), *blocks)
    assert list(sector.blocks()) == blocks


def test_inode_int_round_trip():
    inode = Inode.from_int(0x0203)
    assert (inode.bank, inode.page) == (2, 3)
    assert int(inode) == 0x0203


def test_inode_address():
    assert Inode(1, 0).address() == 0x8000
    assert Inode(0, 1).address() == 0x100


def test_inode_table_round_trip_and_checksum():
    inodes = [Inode.from_int(0x0003)] * InodeTable.NUM_INODES
    inodes[0] = Inode.from_int(0x0001)
    table = InodeTable(checksum=0, inodes=inodes)
    table.checksum = table.sum()
    assert table.check()
    packed = table.pack()
    assert len(packed) == InodeTable.SIZE
    assert packed[0] == 0
    assert packed[1] == table.checksum
    assert InodeTable.unpack(packed) == table


def test_inode_table_sum_wraps_to_byte():
    table = InodeTable(inodes=[Inode(0xFF, 0xFF)] * InodeTable.NUM_INODES)
    assert 0 <= table.sum() <= 0xFF
    assert table.sum() == sum(table.pack()[2:]) % 256


def test_inode_table_wrong_length():
    with pytest.raises(ValueError):
        InodeTable(inodes=[Inode()]).pack()


def test_note_str_ascii_codes():
    assert str(_note()) == "£NABE£01£HELLO££"


def test_note_parse_round_trip():
    note = _note()
    assert Note.parse(str(note)) == note


def test_note_non_ascii_codes_use_hex():
    note = _note(game_code=0x80000001, company_code=0x8001)
    text = str(note)
    assert text.startswith("£80000001£8001£")
    assert Note.parse(text) == note


def test_note_parse_hex_name():
    note = Note.parse("£NABE£01£&" + "1A" * 16 + "£&00000000£")
    assert note.game_name == bytes([0x1A]) * 16
    assert note.ext_name == bytes(4)
    assert note.status == 0x02
    assert note.start_page == Inode(0, 0)


def test_note_name_and_ext_keep_padding():
    note = _note(ext_name=encode("A\0\0\0", N64_FONT_CODE))
    assert note.name() == "HELLO".ljust(16, "\0")
    assert note.ext() == "A\0\0\0"


def test_note_parse_errors():
    with pytest.raises(ValueError):
        Note.parse("not a note")
    with pytest.raises(ValueError):
        Note.parse("£ABC£01£X££")
    with pytest.raises(ValueError):
        Note.parse("£NABE£0£X££")
    with pytest.raises(ValueError):
        Note.parse("£NABE£01£" + "A" * 17 + "££")
    with pytest.raises(ValueError):
        Note.parse("£NABE£01£lower££")
    with pytest.raises(ValueError):
        Note.parse("£NABE£01£&ZZ££")


def test_note_pack_round_trip():
    note = _note(start_page=Inode(0, 5), reserved=-1, data_sum=0x1234)
    packed = note.pack()
    assert len(packed) == Note.SIZE
    assert packed[:4] == b"NABE"
    assert Note.unpack(packed) == note


def test_note_table_round_trip():
    notes = [Note()] * NoteTable.NUM_NOTES
    notes[3] = _note()
    table = NoteTable(notes=notes)
    packed = table.pack()
    assert len(packed) == NoteTable.SIZE
    assert NoteTable.unpack(packed) == table


def test_note_table_errors():
    with pytest.raises(ValueError):
        NoteTable(notes=[Note()]).pack()
    with pytest.raises(ValueError):
        NoteTable.unpack(bytes(100))