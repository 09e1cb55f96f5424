"""Command line entry point for extracting and building controller pak images."""

from __future__ import annotations

import argparse
import os
import sys
from enum import Enum
from pathlib import Path

from .pak import build, extract
from .structures import Note

__all__ = ["PathKind", "main"]


class PathKind(Enum):
    """Whether a path is expected to be a regular file or a folder."""

    FILE = "file"
    FOLDER = "folder"

    def __str__(self) -> str:
        return self.value

    def matches(self, path: Path) -> bool:
        return path.is_file() if self is PathKind.FILE else path.is_dir()


_KINDS = {
    "extract": (PathKind.FILE, PathKind.FOLDER),
    "build": (PathKind.FOLDER, PathKind.FILE),
}


class _UsageError(Exception):
    pass


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mpkpak",
        description="Extract notes from, or build, N64 controller pak images.",
    )
    parser.add_argument(
        "command",
        choices=sorted(_KINDS),
        help="extract: notes from a pak file; build: a pak file from notes",
    )
    parser.add_argument("inpath", type=Path, help="Input path")
    parser.add_argument("outpath", type=Path, help="Output path")
    return parser


def _check_paths(command: str, inpath: Path, outpath: Path) -> None:
    in_kind, out_kind = _KINDS[command]
    if not inpath.exists():
        raise _UsageError(f"input path {inpath} does not exist")
    if not in_kind.matches(inpath):
        raise _UsageError(f"input path {inpath} is not a {in_kind}")
    if outpath.exists() and not out_kind.matches(outpath):
        raise _UsageError(f"output path {outpath} is not a {out_kind}")


def _extract(inpath: Path, outpath: Path) -> None:
    data = inpath.read_bytes()
    outpath.mkdir(parents=True, exist_ok=True)
    for note, pages in extract(data):
        (outpath / str(note)).write_bytes(b"".join(pages))


def _build(inpath: Path, outpath: Path) -> None:
    with os.scandir(inpath) as entries:
        files = sorted(
            (e for e in entries if e.is_file(follow_symlinks=False)),
            key=lambda e: e.name,
        )
    notes = [(Note.parse(e.name), Path(e.path).read_bytes()) for e in files]
    image = build(notes)
    outpath.parent.mkdir(parents=True, exist_ok=True)
    outpath.write_bytes(image)


def main(argv: list[str] | None = None) -> int:
    """Run the command line tool and return its exit status."""
    args = _parser().parse_args(argv)
    try:
        _check_paths(args.command, args.inpath, args.outpath)
        if args.command == "extract":
            _extract(args.inpath, args.outpath)
        else:
            _build(args.inpath, args.outpath)
    except (_UsageError, OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())