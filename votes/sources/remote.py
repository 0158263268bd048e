"""
Remote Vote Fetcher

Pulls the vote list from the collection endpoint.

PRINCIPLES:
===========
1. One GET per request, no retries
2. Failed fetches are first-class results, not exceptions
3. Any failure means "no votes from this source"
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Tuple

import httpx

from ..contracts import Vote
from ..log import get_logger

logger = get_logger("votes.sources.remote")

PLACEHOLDER_MARKER = "SCRIPT_ID_GOES_HERE"


class FetchStatus(Enum):
    """Status of a fetch attempt."""
    SUCCESS = "success"
    NOT_CONFIGURED = "not_configured"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    PARSE_ERROR = "parse_error"
    NETWORK_ERROR = "network_error"
    UNKNOWN_ERROR = "unknown_error"


@dataclass(frozen=True)
class FetchResult:
    """
    Result of a fetch attempt (success or failure).

    Failed fetches are FIRST-CLASS outputs, not exceptions.
    """
    url: str
    attempted_at: datetime
    completed_at: datetime
    status: FetchStatus

    # On success
    votes_count: int = 0
    skipped_count: int = 0

    # On failure
    error_message: Optional[str] = None
    http_status: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.status == FetchStatus.SUCCESS

    @property
    def duration_ms(self) -> float:
        return (self.completed_at - self.attempted_at).total_seconds() * 1000

    def to_dict(self) -> dict:
        return {
            'url': self.url,
            'status': self.status.value,
            'attempted_at': self.attempted_at.isoformat(),
            'completed_at': self.completed_at.isoformat(),
            'votes_count': self.votes_count,
            'skipped_count': self.skipped_count,
            'error_message': self.error_message,
            'http_status': self.http_status
        }


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RemoteVoteFetcher:
    """
    Fetches the remote vote list.

    GUARANTEES:
    ===========
    1. Never raises for network, HTTP or payload problems
    2. Records with an unknown variant are skipped, not returned
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        user_agent: str = "VoteTally/1.0"
    ):
        self._endpoint = endpoint or ""
        self._timeout = timeout
        self._user_agent = user_agent

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def configured(self) -> bool:
        return bool(self._endpoint) and PLACEHOLDER_MARKER not in self._endpoint

    async def fetch(self) -> Tuple[FetchResult, List[Vote]]:
        """Fetch the remote vote list."""
        attempted_at = _now()
        if not self.configured:
            return self._not_configured_result(attempted_at), []

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(
                    self._endpoint,
                    headers={'User-Agent': self._user_agent},
                    follow_redirects=True
                )
            return self._handle_response(response, attempted_at)

        except httpx.TimeoutException:
            return self._error_result(attempted_at, FetchStatus.TIMEOUT, "Request timed out"), []

        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return self._error_result(attempted_at, FetchStatus.NETWORK_ERROR, str(e)), []

        except Exception as e:
            return self._error_result(attempted_at, FetchStatus.UNKNOWN_ERROR, f"{type(e).__name__}: {e}"), []

    def fetch_sync(self) -> Tuple[FetchResult, List[Vote]]:
        """Synchronous version of fetch."""
        attempted_at = _now()
        if not self.configured:
            return self._not_configured_result(attempted_at), []

        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.get(
                    self._endpoint,
                    headers={'User-Agent': self._user_agent},
                    follow_redirects=True
                )
            return self._handle_response(response, attempted_at)

        except httpx.TimeoutException:
            return self._error_result(attempted_at, FetchStatus.TIMEOUT, "Request timed out"), []

        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return self._error_result(attempted_at, FetchStatus.NETWORK_ERROR, str(e)), []

        except Exception as e:
            return self._error_result(attempted_at, FetchStatus.UNKNOWN_ERROR, f"{type(e).__name__}: {e}"), []

    def _handle_response(self, response: Any, attempted_at: datetime) -> Tuple[FetchResult, List[Vote]]:
        if not 200 <= response.status_code < 300:
            return self._error_result(
                attempted_at,
                FetchStatus.HTTP_ERROR,
                f"HTTP {response.status_code}",
                http_status=response.status_code
            ), []

        try:
            payload = response.json()
        except (ValueError, RecursionError) as e:
            return self._error_result(
                attempted_at, FetchStatus.PARSE_ERROR, f"Invalid JSON: {e}",
                http_status=response.status_code
            ), []

        if not isinstance(payload, list):
            return self._error_result(
                attempted_at, FetchStatus.PARSE_ERROR,
                f"Expected a JSON array, got {type(payload).__name__}",
                http_status=response.status_code
            ), []

        votes = []
        for record in payload:
            vote = Vote.from_record(record)
            if vote is not None:
                votes.append(vote)

        result = FetchResult(
            url=self._endpoint,
            attempted_at=attempted_at,
            completed_at=_now(),
            status=FetchStatus.SUCCESS,
            votes_count=len(votes),
            skipped_count=len(payload) - len(votes),
            http_status=response.status_code
        )
        logger.info(f"Fetched {result.votes_count} votes ({result.skipped_count} skipped)")
        return result, votes

    def _not_configured_result(self, attempted_at: datetime) -> FetchResult:
        return FetchResult(
            url=self._endpoint,
            attempted_at=attempted_at,
            completed_at=attempted_at,
            status=FetchStatus.NOT_CONFIGURED,
            error_message="No endpoint configured"
        )

    def _error_result(
        self,
        attempted_at: datetime,
        status: FetchStatus,
        message: str,
        http_status: Optional[int] = None
    ) -> FetchResult:
        logger.warning(f"Remote fetch failed ({status.value}): {message}")
        return FetchResult(
            url=self._endpoint,
            attempted_at=attempted_at,
            completed_at=_now(),
            status=status,
            error_message=message,
            http_status=http_status
        )
