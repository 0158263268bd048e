"""
Vote Service

Coordinates the local store, the remote endpoint and file imports around
one in-memory snapshot.

DESIGN:
=======
1. The snapshot is an immutable tuple, replaced wholesale on every change
2. Every source is folded in through the reconciler
3. Precedence: remote, then resident votes, then newly imported votes
4. A source that fails contributes nothing; the rest proceed
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from .codec import serialize, parse
from .config import Settings
from .contracts import Vote, Variant
from .log import get_logger
from .reconcile import SourceKind, merge_by_kind
from .sources.files import import_files as read_vote_files
from .sources.local_store import LocalVoteStore
from .sources.remote import RemoteVoteFetcher, FetchResult
from .tally import TallyTable, aggregate

logger = get_logger("votes.service")


class VoteService:
    """
    Holds the current deduplicated snapshot and the adapters that feed it.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[LocalVoteStore] = None,
        fetcher: Optional[RemoteVoteFetcher] = None
    ):
        self._settings = settings or Settings()
        self._store = store or LocalVoteStore(Path(self._settings.store_dir))
        self._fetcher = fetcher or RemoteVoteFetcher(
            endpoint=self._settings.endpoint,
            timeout=self._settings.timeout,
            user_agent=self._settings.user_agent
        )
        self._votes: Tuple[Vote, ...] = ()

    @property
    def votes(self) -> Tuple[Vote, ...]:
        return self._votes

    @property
    def settings(self) -> Settings:
        return self._settings

    def _absorb(self, sources: Dict[SourceKind, Iterable[Vote]]) -> int:
        """Replace the snapshot with the merge of `sources`. Returns growth."""
        before = len(self._votes)
        report = merge_by_kind(sources)
        self._votes = report.votes
        return len(self._votes) - before

    # =========================================================================
    # SOURCES
    # =========================================================================

    def load_local(self) -> int:
        """Fold the local store into the snapshot."""
        added = self._absorb({SourceKind.RESIDENT: self._votes + tuple(self._store.read_all())})
        logger.info(f"Loaded local store: {added} new votes")
        return added

    def absorb_remote(self, remote_votes: Iterable[Vote]) -> int:
        """Fold already-fetched remote votes in ahead of resident ones."""
        return self._absorb({SourceKind.REMOTE: remote_votes, SourceKind.RESIDENT: self._votes})

    def refresh_remote(self) -> FetchResult:
        """Fetch from the endpoint and fold the result in."""
        result, remote_votes = self._fetcher.fetch_sync()
        if result.success:
            added = self.absorb_remote(remote_votes)
            logger.info(f"Remote refresh: {added} new votes")
        return result

    async def refresh_remote_async(self) -> FetchResult:
        result, remote_votes = await self._fetcher.fetch()
        if result.success:
            self.absorb_remote(remote_votes)
        return result

    def import_texts(self, texts: Iterable[str]) -> int:
        """Parse text tables and fold them in. Returns number of new votes."""
        parsed: List[Vote] = []
        for text in texts:
            parsed.extend(parse(text))
        return self._absorb({SourceKind.RESIDENT: self._votes, SourceKind.IMPORTED: parsed})

    def import_files(self, paths: Iterable[Path]) -> int:
        """Import *.csv files and fold them in. Returns number of new votes."""
        return self._absorb({SourceKind.RESIDENT: self._votes, SourceKind.IMPORTED: read_vote_files(paths)})

    # =========================================================================
    # SUBMISSION / OUTPUT
    # =========================================================================

    def submit(
        self,
        variant: Variant | str,
        choice: str,
        user_agent: Optional[str] = None
    ) -> str:
        """
        Record a new vote.

        Returns the text table of the variant's local slot, as a backup the
        voter can download.
        """
        parsed = Variant.parse(variant)
        if parsed is None:
            raise ValueError(f"Unknown variant: {variant!r}")
        if not choice:
            raise ValueError("A choice is required")

        vote = Vote.create(parsed, choice, user_agent=user_agent)
        slot_votes = self._store.append(vote)
        self._absorb({SourceKind.RESIDENT: self._votes + (vote,)})
        logger.info(f"Recorded vote for {choice!r} under {parsed.value}")
        return serialize(slot_votes)

    def export(self) -> str:
        """Text table of the current snapshot."""
        return serialize(self._votes)

    def tally(self) -> TallyTable:
        return aggregate(self._votes)

    def clear(self) -> None:
        """Empty the local store and drop the snapshot."""
        self._store.clear()
        self._votes = ()
        logger.info("Cleared local votes")

    def get_stats(self) -> dict:
        return {
            'snapshot': len(self._votes),
            'local_store': self._store.get_stats(),
            'endpoint_configured': self._fetcher.configured
        }


def create_service(
    store_dir: Optional[str] = None,
    endpoint: Optional[str] = None,
    config_path: Optional[str] = None,
    load_local: bool = True
) -> VoteService:
    """Create a vote service with settings from config and environment."""
    settings = Settings.load(Path(config_path) if config_path else None)
    settings = settings.merged({'store_dir': store_dir, 'endpoint': endpoint})
    service = VoteService(settings)
    if load_local:
        service.load_local()
    return service
