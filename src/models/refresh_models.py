"""Refresh cycle models: candidates, per-URL outcomes and the aggregate report."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class RefreshCandidate:
    """A stored URL whose last fetch is older than the staleness threshold."""

    url: str
    last_scraped_at: datetime


@dataclass(frozen=True)
class RefreshOutcome:
    """Terminal state of one refresh task."""

    url: str
    success: bool
    timestamp: datetime
    error: str | None = None


@dataclass
class RefreshReport:
    """Aggregate of one refresh cycle.

    ``refreshed + failed`` always equals the number of candidates.
    """

    refreshed: int = 0
    failed: int = 0
    outcomes: list[RefreshOutcome] = field(default_factory=list)

    @classmethod
    def from_outcomes(cls, outcomes: list[RefreshOutcome]) -> "RefreshReport":
        refreshed = sum(1 for outcome in outcomes if outcome.success)
        return cls(
            refreshed=refreshed,
            failed=len(outcomes) - refreshed,
            outcomes=list(outcomes),
        )

    def counts(self) -> dict[str, int]:
        return {"refreshed": self.refreshed, "failed": self.failed}
