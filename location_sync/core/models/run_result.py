"""
Run result models: per-unit outcome and whole-run summary (not persisted).
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UnitState(str, Enum):
    """Lifecycle of one unit within a run."""

    IDLE = "idle"
    EXTRACTING = "extracting"
    LOADING = "loading"
    PURGING = "purging"
    DONE = "done"
    FAILED = "failed"


class RunOutcome(str, Enum):
    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    FAILURE = "failure"


class RunResult(BaseModel):
    """
    Outcome of migrating one unit in one run.

    Attributes:
        unit_id: Unit that was processed
        collection_id: Source collection of the unit
        records_extracted: Documents read from the source
        records_loaded: Rows committed at the destination
        records_purged: Source documents deleted after the commit
        state: Last state reached (done or failed once finalized)
        outcome: success, partial_failure or failure
        error_detail: Error summary for failures and partial failures
        started_at: When the unit started
        completed_at: When the unit finished
    """

    model_config = ConfigDict(validate_assignment=True)

    unit_id: str
    collection_id: str
    records_extracted: int = Field(0, ge=0)
    records_loaded: int = Field(0, ge=0)
    records_purged: int = Field(0, ge=0)
    state: UnitState = UnitState.IDLE
    outcome: RunOutcome | None = None
    error_detail: str | None = None
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: datetime | None = None

    @model_validator(mode="after")
    def check_purge_bound(self) -> "RunResult":
        """Nothing may be purged beyond what was committed."""
        if self.records_purged > self.records_loaded:
            raise ValueError(
                f"records_purged ({self.records_purged}) exceeds "
                f"records_loaded ({self.records_loaded})"
            )
        return self

    @property
    def duration_seconds(self) -> float | None:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    def finalize(self, outcome: RunOutcome, error_detail: str | None = None) -> "RunResult":
        """Mark the unit finished and return self."""
        self.outcome = outcome
        self.error_detail = error_detail
        self.state = UnitState.FAILED if outcome == RunOutcome.FAILURE else UnitState.DONE
        self.completed_at = _utcnow()
        return self


class RunSummary(BaseModel):
    """
    Summary of one orchestrator run across all units.

    Attributes:
        run_id: Identifier used to correlate log lines of one run
        results: Per-unit results in registry order
        skipped: True when another run was already in progress
    """

    run_id: str = Field(default_factory=lambda: uuid4().hex[:12])
    results: list[RunResult] = Field(default_factory=list)
    skipped: bool = False
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: datetime | None = None

    @property
    def total_extracted(self) -> int:
        return sum(r.records_extracted for r in self.results)

    @property
    def total_loaded(self) -> int:
        return sum(r.records_loaded for r in self.results)

    @property
    def total_purged(self) -> int:
        return sum(r.records_purged for r in self.results)

    @property
    def failed_units(self) -> list[str]:
        return [r.unit_id for r in self.results if r.outcome == RunOutcome.FAILURE]

    @property
    def succeeded(self) -> bool:
        """True when no unit ended in failure."""
        return not self.skipped and not self.failed_units

    def outcome_counts(self) -> dict[str, int]:
        counts = {outcome.value: 0 for outcome in RunOutcome}
        for result in self.results:
            if result.outcome is not None:
                counts[result.outcome.value] += 1
        return counts
