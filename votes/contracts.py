"""
Vote Contracts

Immutable data structures for vote events.

BOUNDARY: every vote enters the system through these contracts.

IDENTITY:
=========
Two votes are the same event iff (variant, choice, timestamp) are equal.
The user agent is carried along but never takes part in identity.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Tuple


# =============================================================================
# ENUMS
# =============================================================================

class Variant(Enum):
    """Presentation condition a vote was captured under."""
    NEUTRAL = "neutral"  # baseline
    NUDGED = "nudged"    # treatment

    @classmethod
    def parse(cls, value: Any) -> Optional['Variant']:
        """Return the matching variant, or None for anything outside the set."""
        if isinstance(value, Variant):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


# =============================================================================
# TOPIC CATALOG
# =============================================================================

@dataclass(frozen=True)
class Topic:
    """One option on the ballot."""
    topic_id: str
    title: str


TOPICS: Tuple[Topic, ...] = (
    Topic("mental-health", "AI & Mental Health"),
    Topic("defenses", "AI Defenses"),
    Topic("personal-info", "Personal Information & AI"),
    Topic("politics", "AI & Politics"),
    Topic("education", "AI in Education"),
    Topic("creativity", "AI & Creativity"),
)

TARGET_TOPIC = "mental-health"


def topic_title(topic_id: str, catalog: Tuple[Topic, ...] = TOPICS) -> str:
    """Display title for a topic id; unknown ids are shown as-is."""
    for topic in catalog:
        if topic.topic_id == topic_id:
            return topic.title
    return topic_id


# =============================================================================
# VOTE
# =============================================================================

VoteKey = Tuple[str, str, str]


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def utc_now_iso() -> str:
    """Current instant as a millisecond ISO-8601 string with a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


@dataclass(frozen=True)
class Vote:
    """
    One vote event.

    ``timestamp`` is kept verbatim as received; it is never re-parsed, so
    identity stays byte-exact across every source.
    """
    variant: Variant
    choice: str
    timestamp: str
    user_agent: str = ""

    def __post_init__(self):
        if self.user_agent is None:
            object.__setattr__(self, 'user_agent', "")

    @property
    def key(self) -> VoteKey:
        return vote_key(self)

    @classmethod
    def create(
        cls,
        variant: Variant,
        choice: str,
        user_agent: Optional[str] = None,
        at: Optional[str] = None
    ) -> 'Vote':
        """Stamp a new submission with the current instant."""
        return cls(
            variant=variant,
            choice=choice,
            timestamp=at or utc_now_iso(),
            user_agent=user_agent or ""
        )

    def to_record(self) -> dict:
        """Record-like object used by the local store and the remote endpoint."""
        return {
            'variant': self.variant.value,
            'choice': self.choice,
            'ts': self.timestamp,
            'userAgent': self.user_agent
        }

    @classmethod
    def from_record(cls, obj: Any) -> Optional['Vote']:
        """
        Build a vote from a record-like object.

        Returns None when the object is not a mapping or its variant is not
        one of the known variants.
        """
        if not isinstance(obj, dict):
            return None
        variant = Variant.parse(obj.get('variant'))
        if variant is None:
            return None
        return cls(
            variant=variant,
            choice=as_text(obj.get('choice')),
            timestamp=as_text(obj.get('ts')),
            user_agent=as_text(obj.get('userAgent'))
        )


def vote_key(vote: Vote) -> VoteKey:
    """Identity key: (variant, choice, timestamp)."""
    return (vote.variant.value, vote.choice, vote.timestamp)
