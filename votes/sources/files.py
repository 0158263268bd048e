"""
Vote Table Files

Import and export of the flat text table on disk.
"""

from __future__ import annotations
from pathlib import Path
from typing import Iterable, List, Union

from ..codec import parse, serialize
from ..contracts import Vote
from ..log import get_logger

logger = get_logger("votes.sources.files")

TABLE_SUFFIX = ".csv"

PathLike = Union[str, Path]


def is_importable(path: PathLike) -> bool:
    """Only files named *.csv are considered for import."""
    return Path(path).name.endswith(TABLE_SUFFIX)


def read_text(path: PathLike) -> str:
    raw = Path(path).read_bytes()
    try:
        return raw.decode('utf-8-sig')
    except UnicodeDecodeError:
        return raw.decode('latin-1')


def import_files(paths: Iterable[PathLike]) -> List[Vote]:
    """
    Parse every importable file, in the given order.

    Files with another suffix are ignored; unreadable files are skipped.
    """
    votes: List[Vote] = []
    for path in paths:
        if not is_importable(path):
            logger.info(f"Skipping {path}: not a {TABLE_SUFFIX} file")
            continue
        try:
            text = read_text(path)
        except OSError as e:
            logger.warning(f"Skipping unreadable file {path}: {e}")
            continue
        parsed = parse(text)
        logger.info(f"Imported {len(parsed)} votes from {Path(path).name}")
        votes.extend(parsed)
    return votes


def export_file(votes: Iterable[Vote], path: PathLike) -> Path:
    """Write votes as a text table. Returns the written path."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(serialize(votes), encoding='utf-8')
    return target
