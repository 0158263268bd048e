"""
Vote Reconciler

Merges vote sequences from several sources into one deduplicated set.

GUARANTEES:
===========
1. First occurrence wins - later duplicates are dropped, never merged
2. Precedence is the caller-supplied order of the sources
3. Idempotent - merging a set with itself changes nothing
4. Linear in total input size (hash-based identity index)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Tuple

from .contracts import Vote, VoteKey, vote_key
from .log import get_logger

logger = get_logger("votes.reconcile")


class SourceKind(Enum):
    """
    Vote sources in precedence order.

    Remote records are authoritative, then votes already resident (local
    store and earlier imports), then newly imported files.
    """
    REMOTE = 1
    RESIDENT = 2
    IMPORTED = 3


@dataclass(frozen=True)
class DuplicateVote:
    """A dropped vote and the earlier vote that shares its identity."""
    vote: Vote
    kept: Vote

    @property
    def origin_differs(self) -> bool:
        return self.vote.user_agent != self.kept.user_agent


@dataclass
class MergeReport:
    """
    Report of one reconciliation pass.

    Every input vote ends up in exactly one of `votes` or `duplicates`.
    """
    processed_count: int = 0
    votes: Tuple[Vote, ...] = ()
    duplicates: List[DuplicateVote] = field(default_factory=list)

    @property
    def unique_count(self) -> int:
        return len(self.votes)

    @property
    def duplicate_count(self) -> int:
        return len(self.duplicates)

    def to_dict(self) -> dict:
        return {
            'processed_count': self.processed_count,
            'unique_count': self.unique_count,
            'duplicate_count': self.duplicate_count
        }


def merge(sources: Iterable[Iterable[Vote]]) -> MergeReport:
    """Merge sources in order, keeping the first vote seen for each identity."""
    report = MergeReport()
    kept: Dict[VoteKey, Vote] = {}
    result: List[Vote] = []

    for source in sources:
        for vote in source:
            report.processed_count += 1
            key = vote_key(vote)
            if key in kept:
                report.duplicates.append(DuplicateVote(vote=vote, kept=kept[key]))
                continue
            kept[key] = vote
            result.append(vote)

    report.votes = tuple(result)
    if report.duplicates:
        logger.debug(
            f"Merged {report.processed_count} votes into {report.unique_count} "
            f"({report.duplicate_count} duplicates absorbed)"
        )
    return report


def reconcile(*sources: Iterable[Vote]) -> Tuple[Vote, ...]:
    """Deduplicated snapshot of the given sources, earlier sources winning."""
    return merge(sources).votes


def merge_by_kind(sources: Mapping[SourceKind, Iterable[Vote]]) -> MergeReport:
    """Merge sources keyed by kind, always in SourceKind precedence order."""
    ordered = sorted(sources.items(), key=lambda item: item[0].value)
    return merge(votes for _, votes in ordered)
