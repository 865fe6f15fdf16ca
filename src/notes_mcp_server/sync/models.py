"""Data contracts for the sync subsystem.

- ``SyncStage``: Orchestrator state machine stages.
- ``SyncAction``: What a single sync result refers to.
- ``SyncOutcome``: Aggregate outcome of a cycle.
- ``SyncResult``: Outcome of one record-level (or stage-level) operation.
- ``SyncReport``: Aggregate results for a full sync cycle.
- ``MergedResult``: Output of the reconciliation engine.

The pydantic models are frozen (immutable).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic

from pydantic import BaseModel

from ..records import RecordKind, RecordT


class SyncStage(str, Enum):
    """Stages of one sync cycle."""

    IDLE = "idle"
    PUSHING = "pushing"
    PULLING = "pulling"
    MERGING = "merging"
    PERSISTING = "persisting"
    FAILED = "failed"


class SyncAction(str, Enum):
    """Operation a ``SyncResult`` describes."""

    AUTHENTICATE = "authenticate"
    PUSH = "push"
    LIST = "list"
    PULL = "pull"
    PERSIST = "persist"


class SyncOutcome(str, Enum):
    """Aggregate outcome of a cycle."""

    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"
    CANCELLED = "cancelled"


class SyncResult(BaseModel):
    """Result of one operation within a sync cycle.

    Attributes:
        kind: Record kind, ``None`` for stage-level results (e.g. persist).
        record_id: Record id, ``None`` for stage-level results.
        action: What was attempted.
        success: Whether it succeeded.
        error: User-facing failure description (never raw transport text).
    """

    kind: RecordKind | None = None
    record_id: str | None = None
    action: SyncAction
    success: bool
    error: str | None = None

    model_config = {"frozen": True}


class SyncReport(BaseModel):
    """Aggregate report for a sync cycle.

    Attributes:
        outcome: Overall outcome.
        stage: Stage the cycle ended in (``persisting`` on success).
        results: Individual results.  Successful ``pull`` results are only
            recorded for records newly added to the local collection.
        started_at: ISO 8601 timestamp when the cycle started.
        completed_at: ISO 8601 timestamp when the cycle ended.
    """

    outcome: SyncOutcome
    stage: SyncStage
    results: list[SyncResult] = []
    started_at: str
    completed_at: str | None = None

    model_config = {"frozen": True}

    @property
    def pushed(self) -> list[SyncResult]:
        """Successful pushes."""
        return [
            r
            for r in self.results
            if r.action == SyncAction.PUSH and r.success
        ]

    @property
    def pulled(self) -> list[SyncResult]:
        """Records newly pulled into the local collection."""
        return [
            r
            for r in self.results
            if r.action == SyncAction.PULL and r.success
        ]

    @property
    def errors(self) -> list[SyncResult]:
        """Results where success is False."""
        return [r for r in self.results if not r.success]

    @property
    def pushed_count(self) -> int:
        return len(self.pushed)

    @property
    def pulled_count(self) -> int:
        return len(self.pulled)

    @property
    def failed_count(self) -> int:
        return len(self.errors)

    def summary(self) -> str:
        """One-line summary of the cycle.

        Returns:
            e.g. ``"Sync partial: 1 pushed, 2 pulled, 1 failed"``.
        """
        return (
            f"Sync {self.outcome.value}: "
            f"{self.pushed_count} pushed, "
            f"{self.pulled_count} pulled, "
            f"{self.failed_count} failed"
        )


@dataclass(frozen=True)
class MergedResult(Generic[RecordT]):
    """Output of ``reconcile`` for one record kind.

    Attributes:
        merged: Full merged collection, one entry per id.
        added: Entries that did not exist locally before the merge.
    """

    merged: list[RecordT] = field(default_factory=list)
    added: list[RecordT] = field(default_factory=list)

    @property
    def pending(self) -> list[RecordT]:
        """Merged records still waiting to be pushed."""
        return [r for r in self.merged if not r.synced]
