"""
Local Vote Store

Persistent per-variant vote slots.

PRINCIPLES:
===========
1. One named slot per variant, holding a JSON array of vote records
2. Corrupt or missing content reads as an empty array
3. Appends rewrite the full array
4. Storage failures are logged, never raised
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, List
import json

from ..contracts import Vote, Variant
from ..log import get_logger

logger = get_logger("votes.sources.local_store")

SLOT_PREFIX = "autonomy-demo-local-"


class LocalVoteStore:
    """
    File-backed vote slots.

    Records are kept exactly as written, including entries this version
    cannot interpret; only reads filter them out.
    """

    def __init__(self, base_path: Path):
        self._base_path = Path(base_path)

    def slot_path(self, variant: Variant) -> Path:
        return self._base_path / f"{SLOT_PREFIX}{variant.value}.json"

    def _read_records(self, variant: Variant) -> List[Any]:
        path = self.slot_path(variant)
        if not path.exists():
            return []
        try:
            records = json.loads(path.read_text(encoding='utf-8') or "[]")
        except (OSError, ValueError, RecursionError) as e:
            logger.warning(f"Failed to read slot {path.name}, treating as empty: {e}")
            return []
        if not isinstance(records, list):
            logger.warning(f"Slot {path.name} is not a JSON array, treating as empty")
            return []
        return records

    def _write_records(self, variant: Variant, records: List[Any]) -> bool:
        path = self.slot_path(variant)
        try:
            self._base_path.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(records, ensure_ascii=False), encoding='utf-8')
        except OSError as e:
            logger.error(f"Failed to persist slot {path.name}: {e}")
            return False
        return True

    def read(self, variant: Variant) -> List[Vote]:
        """Votes stored in one slot."""
        votes = []
        for record in self._read_records(variant):
            vote = Vote.from_record(record)
            if vote is not None:
                votes.append(vote)
        return votes

    def read_all(self) -> List[Vote]:
        """Votes from every slot, in variant declaration order."""
        votes: List[Vote] = []
        for variant in Variant:
            votes.extend(self.read(variant))
        return votes

    def append(self, vote: Vote) -> List[Vote]:
        """Append a vote to its slot. Returns the slot's votes afterwards."""
        records = self._read_records(vote.variant)
        records.append(vote.to_record())
        self._write_records(vote.variant, records)
        return [v for v in (Vote.from_record(r) for r in records) if v is not None]

    def clear(self) -> None:
        """Empty every slot. Safe to call repeatedly."""
        for variant in Variant:
            path = self.slot_path(variant)
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error(f"Failed to clear slot {path.name}: {e}")

    def get_stats(self) -> dict:
        return {variant.value: len(self.read(variant)) for variant in Variant}
