"""Sync orchestrator: one Push -> Pull -> Merge -> Persist cycle.

The ``SyncOrchestrator`` ties together the workspace, the remote store and
the reconciliation engine.  One cycle:

1. Checks the session user is authenticated (no I/O otherwise).
2. PUSHING: uploads every dirty folder and note, concurrently but bounded
   by ``max_parallel``.  A record is marked synced only when its upload is
   confirmed and the local copy is still the uploaded version.
3. PULLING: lists and downloads every remote folder and note.
4. MERGING: reconciles both kinds against the live workspace collections.
5. PERSISTING: writes both merged collections in one atomic local commit,
   then installs them in the workspace.
6. Builds and returns a ``SyncReport``.

Error handling is per-record during PUSHING and PULLING: a single failure
does not abort the cycle.  ``RemoteAuthExpired`` does: it ends the session
and fails the cycle.  Failing to list a kind or to persist also fails the
cycle; the workspace keeps its previous collections in every failure case.

MERGING and PERSISTING run without an ``await`` between them and the
workspace install, so no tool call can interleave with the commit.
"""

from __future__ import annotations

import asyncio
import logging

from ..core.async_utils import run_sync_timeout
from ..errors import (
    RemoteAuthExpired,
    RemoteError,
    RemoteIOError,
    StorageWriteError,
    SyncInProgressError,
    describe_error,
)
from ..records import Record, RecordKind, utc_now
from ..store.workspace import Workspace
from .models import (
    SyncAction,
    SyncOutcome,
    SyncReport,
    SyncResult,
    SyncStage,
)
from .reconcile import reconcile
from .remote import RemoteStore

logger = logging.getLogger(__name__)

_CANCELLED = "Sync cancelled"


class SyncOrchestrator:
    """Run sync cycles between a workspace and a remote store.

    Args:
        workspace: Owner of the local collections and the session user.
        remote: Remote store adapter (blocking calls).
        request_timeout: Seconds allowed for each remote call.
        max_parallel: Maximum remote calls in flight at once.
    """

    def __init__(
        self,
        workspace: Workspace,
        remote: RemoteStore,
        *,
        request_timeout: float = 30.0,
        max_parallel: int = 4,
    ) -> None:
        self.workspace = workspace
        self.remote = remote
        self.request_timeout = request_timeout
        self.max_parallel = max_parallel

        self.last_report: SyncReport | None = None
        self._lock = asyncio.Lock()
        self._stage = SyncStage.IDLE
        self._cancel_requested = False
        self._halt_reason: str | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def stage(self) -> SyncStage:
        """Current stage; ``IDLE`` between cycles."""
        return self._stage

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def cancel(self) -> bool:
        """Request cooperative cancellation of the running cycle.

        Uploads already confirmed stay synced; uploads not yet started are
        skipped and the cycle ends without pulling.  During the pull stage,
        downloads not yet started are skipped and nothing is committed.

        Returns:
            ``True`` if a cycle was running.
        """
        if not self.running:
            return False
        logger.info("Sync cancellation requested")
        self._cancel_requested = True
        return True

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def run(self) -> SyncReport:
        """Execute one sync cycle.

        Returns:
            A ``SyncReport`` summarising the cycle.

        Raises:
            SyncInProgressError: If a cycle is already running.
        """
        if self._lock.locked():
            raise SyncInProgressError("A sync cycle is already running")

        async with self._lock:
            self._cancel_requested = False
            self._halt_reason = None
            try:
                report = await self._run_cycle()
            finally:
                self._stage = SyncStage.IDLE

        self.last_report = report
        if report.outcome == SyncOutcome.COMPLETED:
            logger.info(report.summary())
        else:
            logger.warning(report.summary())
        return report

    async def _run_cycle(self) -> SyncReport:
        started_at = utc_now()
        results: list[SyncResult] = []

        def finish(outcome: SyncOutcome, stage: SyncStage) -> SyncReport:
            return SyncReport(
                outcome=outcome,
                stage=stage,
                results=results,
                started_at=started_at,
                completed_at=utc_now(),
            )

        if not self.workspace.user.is_authenticated:
            results.append(
                SyncResult(
                    action=SyncAction.AUTHENTICATE,
                    success=False,
                    error="Not signed in",
                )
            )
            return finish(SyncOutcome.FAILED, SyncStage.FAILED)

        # Step 1: push dirty records
        self._stage = SyncStage.PUSHING
        results.extend(await self._push())
        if self._cancel_requested:
            return finish(SyncOutcome.CANCELLED, SyncStage.PUSHING)
        if self._halt_reason is not None:
            return finish(SyncOutcome.FAILED, SyncStage.FAILED)

        # Step 2: pull remote snapshot
        self._stage = SyncStage.PULLING
        remote_records: dict[RecordKind, list[Record]] = {}
        for kind in (RecordKind.FOLDER, RecordKind.NOTE):
            if self._cancel_requested:
                break
            pulled, pull_errors, fatal = await self._pull(kind)
            results.extend(pull_errors)
            if fatal:
                return finish(SyncOutcome.FAILED, SyncStage.FAILED)
            remote_records[kind] = pulled

        if self._cancel_requested:
            return finish(SyncOutcome.CANCELLED, SyncStage.PULLING)

        # Step 3: merge against the live collections
        self._stage = SyncStage.MERGING
        notes = reconcile(
            self.workspace.records(RecordKind.NOTE),
            remote_records[RecordKind.NOTE],
        )
        folders = reconcile(
            self.workspace.records(RecordKind.FOLDER),
            remote_records[RecordKind.FOLDER],
        )

        # Step 4: single atomic commit
        self._stage = SyncStage.PERSISTING
        try:
            self.workspace.commit(notes.merged, folders.merged)  # type: ignore[arg-type]
        except StorageWriteError as exc:
            logger.error("Failed to persist merged collections: %s", exc)
            results.append(
                SyncResult(
                    action=SyncAction.PERSIST,
                    success=False,
                    error=describe_error(exc),
                )
            )
            return finish(SyncOutcome.FAILED, SyncStage.FAILED)

        for kind, merged in (
            (RecordKind.FOLDER, folders),
            (RecordKind.NOTE, notes),
        ):
            results.extend(
                SyncResult(
                    kind=kind,
                    record_id=record.id,
                    action=SyncAction.PULL,
                    success=True,
                )
                for record in merged.added
            )

        outcome = (
            SyncOutcome.PARTIAL
            if any(not r.success for r in results)
            else SyncOutcome.COMPLETED
        )
        return finish(outcome, SyncStage.PERSISTING)

    # ------------------------------------------------------------------
    # Pushing
    # ------------------------------------------------------------------

    async def _push(self) -> list[SyncResult]:
        dirty = self.workspace.dirty_records()
        if not dirty:
            return []
        logger.info("Pushing %d dirty records", len(dirty))
        semaphore = asyncio.Semaphore(self.max_parallel)
        return list(
            await asyncio.gather(
                *(
                    self._push_one(semaphore, kind, record)
                    for kind, record in dirty
                )
            )
        )

    async def _push_one(
        self,
        semaphore: asyncio.Semaphore,
        kind: RecordKind,
        record: Record,
    ) -> SyncResult:
        def failure(error: str) -> SyncResult:
            return SyncResult(
                kind=kind,
                record_id=record.id,
                action=SyncAction.PUSH,
                success=False,
                error=error,
            )

        async with semaphore:
            if self._cancel_requested:
                return failure(_CANCELLED)
            if self._halt_reason is not None:
                return failure(self._halt_reason)

            payload = record.model_copy(update={"synced": True})
            try:
                await self._call(self.remote.write_record, kind, payload)
            except RemoteAuthExpired as exc:
                self._halt(exc)
                return failure(describe_error(exc))
            except RemoteError as exc:
                logger.error("Failed to push %s %s: %s", kind.value, record.id, exc)
                return failure(describe_error(exc))
            except Exception as exc:
                logger.exception(
                    "Unexpected error pushing %s %s", kind.value, record.id
                )
                return failure(describe_error(exc))

        if not self.workspace.mark_synced(kind, record):
            logger.debug(
                "%s %s changed during upload, leaving it dirty",
                kind.value,
                record.id,
            )
        return SyncResult(
            kind=kind,
            record_id=record.id,
            action=SyncAction.PUSH,
            success=True,
        )

    # ------------------------------------------------------------------
    # Pulling
    # ------------------------------------------------------------------

    async def _pull(
        self, kind: RecordKind
    ) -> tuple[list[Record], list[SyncResult], bool]:
        """Download every remote record of *kind*.

        Returns:
            ``(records, failures, fatal)``; *fatal* is ``True`` when the
            listing failed or the session expired.
        """
        try:
            ids = await self._call(self.remote.list_record_ids, kind)
        except Exception as exc:
            if isinstance(exc, RemoteAuthExpired):
                self._halt(exc)
            logger.error("Failed to list remote %s records: %s", kind.value, exc)
            return (
                [],
                [
                    SyncResult(
                        kind=kind,
                        action=SyncAction.LIST,
                        success=False,
                        error=describe_error(exc),
                    )
                ],
                True,
            )

        logger.debug("Pulling %d remote %s records", len(ids), kind.value)
        semaphore = asyncio.Semaphore(self.max_parallel)
        outcomes = await asyncio.gather(
            *(self._pull_one(semaphore, kind, record_id) for record_id in ids)
        )

        records: list[Record] = []
        failures: list[SyncResult] = []
        for outcome in outcomes:
            if isinstance(outcome, SyncResult):
                failures.append(outcome)
            else:
                records.append(outcome)
        return records, failures, self._halt_reason is not None

    async def _pull_one(
        self,
        semaphore: asyncio.Semaphore,
        kind: RecordKind,
        record_id: str,
    ) -> Record | SyncResult:
        async with semaphore:
            if self._cancel_requested:
                error = _CANCELLED
            elif self._halt_reason is not None:
                error = self._halt_reason
            else:
                try:
                    return await self._call(
                        self.remote.read_record, kind, record_id
                    )
                except RemoteAuthExpired as exc:
                    self._halt(exc)
                    error = describe_error(exc)
                except RemoteError as exc:
                    logger.error(
                        "Failed to pull %s %s: %s", kind.value, record_id, exc
                    )
                    error = describe_error(exc)
                except Exception as exc:
                    logger.exception(
                        "Unexpected error pulling %s %s", kind.value, record_id
                    )
                    error = describe_error(exc)
        return SyncResult(
            kind=kind,
            record_id=record_id,
            action=SyncAction.PULL,
            success=False,
            error=error,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _call(self, func, *args):
        """Run one blocking remote call, mapping timeouts to I/O errors."""
        try:
            return await run_sync_timeout(self.request_timeout, func, *args)
        except TimeoutError as exc:
            raise RemoteIOError(str(exc)) from exc

    def _halt(self, exc: RemoteAuthExpired) -> None:
        if self._halt_reason is None:
            logger.warning("Remote session expired, aborting sync: %s", exc)
            self._halt_reason = describe_error(exc)
            self.workspace.end_session()
