# mpkpak

Read and write Nintendo 64 Controller Pak images (`.mpk` files).

A Controller Pak holds up to 16 save "notes". `mpkpak` unpacks every
note in use in an image into its own file, and packs a folder of such
files into a fresh image.

## Installation

```
pip install .
```

## Command line

```
mpkpak {build,extract} inpath outpath
```

Extract all notes from an image into a folder (created if missing):

```
mpkpak extract game.mpk notes/
```

Build an image from a folder of note files:

```
mpkpak build notes/ rebuilt.mpk
```

The input must exist and be a file (`extract`) or a folder (`build`); an
existing output path must be of the other kind. On any error the command
prints `Error: <message>` to standard error and exits with status 1.

`build` reads every regular file in the input folder (symbolic links and
sub-folders are skipped) in order of file name, so notes are laid out in
that order. The parent folders of the output file are created if needed.

### Note file names

Each extracted file is named after the note it holds, and `build` expects
every file to be named the same way:

```
£<game code>£<company code>£<name>£<extension>£
```

- The game code is four ASCII characters, or eight hex digits when its
  bytes are not ASCII; the company code is two ASCII characters, or four
  hex digits.
- The name (up to 16 characters) and extension (up to 4) use the
  Controller Pak character set: space, digits, upper-case letters, some
  punctuation and katakana. Trailing NUL characters are dropped when a
  name is written out and padded back when it is read.
- When building, a name or extension may instead be given as `&` followed
  by the raw bytes in hex (exactly 32 or 8 hex digits).

## Library use

```python
from mpkpak.pak import build, extract

with open("game.mpk", "rb") as fh:
    image = fh.read()

notes = extract(image)          # list of (Note, list of 256-byte pages)
for note, pages in notes:
    print(note, sum(len(p) for p in pages))

rebuilt = build([(note, b"".join(pages)) for note, pages in notes])
```

- `mpkpak.pak.extract(data)` picks the first ID block and the first inode
  table copy whose checksums are valid and follows each note's page chain.
- `mpkpak.pak.build(notes)` takes `(Note, bytes)` pairs and returns a new
  image sized to the fewest banks that hold the data (at most 62), with
  all checksums filled in.
- Both raise `mpkpak.pak.PakError`, a `ValueError`, for damaged images or
  input that does not fit a pak (more than 16 notes, too much data).

The on-disk structures (`IDBlock`, `IDSector`, `Inode`, `InodeTable`,
`Note`, `NoteTable`) are in `mpkpak.structures`, each with `pack()` and
`unpack()`. `Note.parse(text)` and `str(note)` convert to and from the
file-name form above. The character-set codec is
`mpkpak.encoding.N64_FONT_CODE`, with `decode` and `encode` helpers and
`EncodingError` for characters it cannot represent.

## Limitations

- Building always writes a blank label area, a random ID value and zero
  serial numbers; these are not carried over from an extracted image.
- Damaged images are not repaired; `extract` only reports them.
- The `data_sum` field of a note is not computed or checked.

## Tests

```
pip install .[test]
pytest
```