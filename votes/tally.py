"""
Vote Tally

Reduces a deduplicated vote set into per-variant, per-choice counts.

The table is derived data: it is recomputed from a snapshot on demand and
never updated in place.
"""

from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple

from .contracts import Vote, Variant, Topic, TOPICS, topic_title


@dataclass(frozen=True)
class TallyRow:
    """One rendered row: a choice and its count under each variant."""
    choice: str
    title: str
    counts: Mapping[Variant, int]
    max_count: int
    in_catalog: bool = True

    def count(self, variant: Variant) -> int:
        return self.counts.get(variant, 0)

    def share(self, variant: Variant) -> float:
        """Count relative to the table-wide maximum, for bar scaling."""
        return self.count(variant) / self.max_count

    def to_dict(self) -> dict:
        return {
            'choice': self.choice,
            'title': self.title,
            'in_catalog': self.in_catalog,
            'counts': {v.value: self.count(v) for v in Variant},
            'shares': {v.value: round(self.share(v), 4) for v in Variant}
        }


@dataclass(frozen=True)
class TallyTable:
    """
    Group tally table: variant -> choice -> count.

    Every known variant is always present, mapping to an empty mapping when
    it has no votes. Both levels are read-only views.
    """
    counts: Mapping[Variant, Mapping[str, int]]

    def __post_init__(self):
        frozen = {
            variant: MappingProxyType(dict(self.counts.get(variant, {})))
            for variant in Variant
        }
        object.__setattr__(self, 'counts', MappingProxyType(frozen))

    def count(self, variant: Variant, choice: str) -> int:
        return self.counts[variant].get(choice, 0)

    @property
    def max_count(self) -> int:
        """Largest single count across the table, floored at 1."""
        return max(
            [1] + [n for per_choice in self.counts.values() for n in per_choice.values()]
        )

    def total(self, variant: Variant) -> int:
        return sum(self.counts[variant].values())

    @property
    def totals(self) -> Dict[Variant, int]:
        return {variant: self.total(variant) for variant in Variant}

    @property
    def total_votes(self) -> int:
        return sum(self.totals.values())

    def choices(self) -> List[str]:
        seen = set()
        for per_choice in self.counts.values():
            seen.update(per_choice)
        return sorted(seen)

    def rows(self, catalog: Tuple[Topic, ...] = TOPICS) -> Tuple[TallyRow, ...]:
        """
        Render table: one row per catalog topic, in catalog order, then any
        choices seen in the data but missing from the catalog.
        """
        max_count = self.max_count
        known = [topic.topic_id for topic in catalog]
        extra = [choice for choice in self.choices() if choice not in known]
        return tuple(
            TallyRow(
                choice=choice,
                title=topic_title(choice, catalog),
                counts=MappingProxyType({v: self.count(v, choice) for v in Variant}),
                max_count=max_count,
                in_catalog=choice in known
            )
            for choice in known + extra
        )

    def to_dict(self) -> dict:
        return {
            'counts': {v.value: dict(self.counts[v]) for v in Variant},
            'totals': {v.value: n for v, n in self.totals.items()},
            'max_count': self.max_count
        }


def aggregate(votes: Iterable[Vote]) -> TallyTable:
    """Count votes by (variant, choice)."""
    counts: Dict[Variant, Dict[str, int]] = {variant: {} for variant in Variant}
    for vote in votes:
        per_choice = counts[vote.variant]
        per_choice[vote.choice] = per_choice.get(vote.choice, 0) + 1
    return TallyTable(counts=counts)
