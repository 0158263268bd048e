"""
Vote Table Codec

Converts between votes and the flat text table used for export/import.

FORMAT:
=======
- Header row naming the columns: variant, choice, timestamp, userAgent
- One row per vote
- Every field is a JSON-encoded string; fields joined by ",", rows by "\n"

PRINCIPLES:
===========
1. Parse with maximum tolerance - a bad field falls back to its raw text
2. Columns are resolved by name, never by position
3. Rows with an unknown variant are dropped, never widened
4. Parsing never raises for text input
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence, Tuple
import json
import re

from .contracts import Vote, Variant, as_text
from .log import get_logger

logger = get_logger("votes.codec")

HEADER: Tuple[str, ...] = ("variant", "choice", "timestamp", "userAgent")

_LINE_BREAK = re.compile(r'\r?\n')
_BOM = "\ufeff"


def _reject_constant(name: str) -> float:
    raise ValueError(f"Non-standard JSON constant: {name}")


# NaN and Infinity are not JSON; such fields fall back to raw text.
_DECODER = json.JSONDecoder(parse_constant=_reject_constant)
_WHITESPACE = json.decoder.WHITESPACE


# =============================================================================
# REPORT CONTRACTS
# =============================================================================

@dataclass(frozen=True)
class DroppedRow:
    """Record of a data row that produced no vote."""
    line_number: int
    reason: str
    raw_sample: str  # First 200 chars for debugging

    def to_dict(self) -> dict:
        return {
            'line_number': self.line_number,
            'reason': self.reason,
            'raw_sample': self.raw_sample
        }


@dataclass
class ParseReport:
    """
    Complete report of one parse.

    Every data row results in exactly one of:
    - A vote in `votes`
    - An entry in `dropped_rows`
    """
    row_count: int = 0
    votes: List[Vote] = field(default_factory=list)
    dropped_rows: List[DroppedRow] = field(default_factory=list)
    fallback_fields: int = 0

    @property
    def success_count(self) -> int:
        return len(self.votes)

    @property
    def dropped_count(self) -> int:
        return len(self.dropped_rows)

    def to_dict(self) -> dict:
        return {
            'row_count': self.row_count,
            'success_count': self.success_count,
            'dropped_count': self.dropped_count,
            'fallback_fields': self.fallback_fields,
            'dropped_rows': [d.to_dict() for d in self.dropped_rows]
        }


# =============================================================================
# SERIALIZE
# =============================================================================

def _encode(value: str) -> str:
    return json.dumps(value if value is not None else "", ensure_ascii=False)


def serialize(votes: Iterable[Vote]) -> str:
    """Render votes as the flat text table, header first."""
    rows: List[Sequence[str]] = [HEADER]
    for vote in votes:
        rows.append((vote.variant.value, vote.choice, vote.timestamp, vote.user_agent))
    return "\n".join(",".join(_encode(cell) for cell in row) for row in rows)


# =============================================================================
# PARSE
# =============================================================================

def _decode_field(line: str, pos: int) -> Tuple[str, int, bool]:
    """
    Decode one field starting at `pos`.

    Returns (value, end position, decoded). A field is decoded only when a
    complete JSON value, optionally surrounded by JSON whitespace, ends at a
    comma or at the end of the line; otherwise the raw text up to the next
    comma is used.
    """
    start = _WHITESPACE.match(line, pos).end()
    try:
        obj, end = _DECODER.raw_decode(line, start)
    except (ValueError, RecursionError):
        end = -1

    if end != -1:
        end = _WHITESPACE.match(line, end).end()
        if end == len(line) or line[end] == ',':
            return as_text(obj), end, True

    comma = line.find(',', pos)
    if comma == -1:
        comma = len(line)
    return line[pos:comma], comma, False


def split_fields(line: str) -> Tuple[List[str], int]:
    """Split a row into decoded fields. Returns (fields, fallback count)."""
    fields = []
    fallbacks = 0
    pos = 0
    while True:
        value, pos, decoded = _decode_field(line, pos)
        fields.append(value)
        if not decoded:
            fallbacks += 1
        if pos >= len(line):
            break
        pos += 1  # skip the separating comma
    return fields, fallbacks


def _column_index(header: List[str]) -> Dict[str, int]:
    index: Dict[str, int] = {}
    for position, name in enumerate(header):
        index.setdefault(name, position)
    return index


def _column(cols: List[str], index: Dict[str, int], name: str) -> str:
    position = index.get(name, -1)
    if position < 0 or position >= len(cols):
        return ""
    return cols[position]


def parse_report(text: str) -> ParseReport:
    """
    Parse a text table into votes, recording every dropped row.

    Empty or header-only input yields an empty report.
    """
    report = ParseReport()
    if text.startswith(_BOM):
        text = text[len(_BOM):]
    lines = _LINE_BREAK.split(text.strip())
    if len(lines) <= 1:
        return report

    header, fallbacks = split_fields(lines[0])
    report.fallback_fields += fallbacks
    index = _column_index(header)

    for line_number, line in enumerate(lines[1:], start=2):
        report.row_count += 1
        cols, fallbacks = split_fields(line)
        report.fallback_fields += fallbacks

        raw_variant = _column(cols, index, 'variant')
        variant = Variant.parse(raw_variant)
        if variant is None:
            report.dropped_rows.append(DroppedRow(
                line_number=line_number,
                reason=f"Unknown variant: {raw_variant!r}",
                raw_sample=line[:200]
            ))
            continue

        report.votes.append(Vote(
            variant=variant,
            choice=_column(cols, index, 'choice'),
            timestamp=_column(cols, index, 'timestamp'),
            user_agent=_column(cols, index, 'userAgent')
        ))

    if report.dropped_rows or report.fallback_fields:
        logger.info(
            f"Parsed {report.success_count}/{report.row_count} rows "
            f"({report.dropped_count} dropped, {report.fallback_fields} raw fields)"
        )
    return report


def parse(text: str) -> List[Vote]:
    """Parse a text table into votes."""
    return parse_report(text).votes
