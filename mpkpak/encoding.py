"""Single-byte character tables and the N64 controller pak font."""

from __future__ import annotations

from collections.abc import Iterable

__all__ = [
    "EncodingError",
    "TableCodec",
    "N64_FONT_CODE",
    "decode",
    "encode",
]


class EncodingError(ValueError):
    """Raised when text holds a character that a table cannot represent."""


class TableCodec:
    """A codec mapping each byte value to one character through a 256-entry table."""

    __slots__ = ("_table", "_reverse")

    def __init__(self, table: str) -> None:
        if len(table) != 256:
            raise ValueError(f"a codec table needs 256 entries, got {len(table)}")
        self._table = table
        reverse: dict[str, int] = {}
        for index, char in enumerate(table):
            reverse.setdefault(char, index)
        self._reverse = reverse

    @property
    def table(self) -> str:
        return self._table

    def decode(self, data: Iterable[int]) -> str:
        """Map every byte to its character; values outside the table yield nothing."""
        return "".join(
            self._table[value] for value in data if 0 <= value < len(self._table)
        )

    def encode(self, text: str) -> bytes:
        """Map every character to the first byte whose table entry matches it."""
        out = bytearray()
        for char in text:
            try:
                out.append(self._reverse[char])
            except KeyError:
                raise EncodingError(f"failed to encode char {char}") from None
        return bytes(out)


def decode(data: Iterable[int], codec: TableCodec) -> str:
    """Decode bytes with the given codec."""
    return codec.decode(data)


def encode(text: str, codec: TableCodec) -> bytes:
    """Encode text with the given codec."""
    return codec.encode(text)


def _n64_table() -> str:
    rows = (
        "\0" * 15
        + " "
        + "0123456789"
        + "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
        + "!\"#'*+,-./:="
        + "?@。゛゜ァィゥ"
        + "ェォッャュョヲン"
        + "アイウエオカキク"
        + "ケコサシスセソタ"
        + "チツテトナニヌネ"
        + "ノハヒフヘホマミ"
        + "ムメモヤユヨラリ"
        + "ルレロワガギグゲ"
        + "ゴザジズゼゾダヂ"
        + "ヅデドバビブベボ"
        + "パピプペポ"
    )
    return rows.ljust(256, "\0")


N64_FONT_CODE = TableCodec(_n64_table())