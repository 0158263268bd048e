"""
Vote Tally
==========

Collects vote events from untrusted sources (local store, remote endpoint,
exported files), merges them without double counting, and tallies them per
variant and topic.

Core pipeline:
    parse -> reconcile -> aggregate
"""

from .contracts import Vote, Variant, Topic, TOPICS, TARGET_TOPIC, vote_key, topic_title
from .codec import HEADER, serialize, parse, parse_report, ParseReport
from .reconcile import SourceKind, MergeReport, merge, merge_by_kind, reconcile
from .tally import TallyTable, TallyRow, aggregate

__all__ = [
    'Vote',
    'Variant',
    'Topic',
    'TOPICS',
    'TARGET_TOPIC',
    'vote_key',
    'topic_title',
    'HEADER',
    'serialize',
    'parse',
    'parse_report',
    'ParseReport',
    'SourceKind',
    'MergeReport',
    'merge',
    'merge_by_kind',
    'reconcile',
    'TallyTable',
    'TallyRow',
    'aggregate',
]
