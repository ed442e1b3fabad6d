"""Select stored URLs whose last fetch is older than a threshold."""

from datetime import datetime, timedelta, timezone
from typing import Callable

import logfire

from src.constants import REFRESH_BATCH_LIMIT
from src.db.repository import DocumentStore
from src.models.refresh_models import RefreshCandidate


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StalenessDetector:
    """Query the store for refresh candidates and apply the staleness policy."""

    def __init__(
        self,
        store: DocumentStore,
        batch_limit: int = REFRESH_BATCH_LIMIT,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Args:
            store: Store collaborator providing find_older_than
            batch_limit: Safety cap on candidates per cycle
            clock: Returns the current aware datetime
        """
        self._store = store
        self._batch_limit = batch_limit
        self._clock = clock

    async def find_stale(
        self, threshold: timedelta, limit: int | None = None
    ) -> list[RefreshCandidate]:
        """Candidates last scraped strictly before ``now - threshold``.

        Args:
            threshold: Maximum age before a record is stale
            limit: Requested batch size, never above the safety cap

        Returns:
            Candidates ordered oldest first, at most ``min(limit, batch_limit)``
        """
        if limit is None:
            effective_limit = self._batch_limit
        else:
            effective_limit = max(0, min(limit, self._batch_limit))
        if effective_limit == 0:
            return []
        cutoff = self._clock() - threshold

        rows = await self._store.find_older_than(cutoff, effective_limit)
        candidates = sorted(
            (row for row in rows if row.last_scraped_at < cutoff),
            key=lambda candidate: candidate.last_scraped_at,
        )[:effective_limit]

        logfire.info(
            "Stale documents selected",
            cutoff=cutoff.isoformat(),
            threshold_seconds=threshold.total_seconds(),
            candidate_count=len(candidates),
            limit=effective_limit,
        )
        return candidates
