"""
Orchestrator: runs extract, load and purge for every enabled unit.

Per unit state machine:

    idle -> extracting -> loading -> purging -> done
                 |            |         |
                 +------------+---------+--> failed

A unit with no documents goes straight from extracting to done. Purge
failures, and purges that delete fewer documents than were loaded, end the
unit in done with a partial_failure outcome, since the rows are already
committed at the destination.
"""

import threading
from datetime import datetime, timezone

from location_sync.core.errors import MigrationError, SourcePurgeError
from location_sync.core.models import (
    ExtractedDocument,
    MigrationUnit,
    RunOutcome,
    RunResult,
    RunSummary,
    UnitState,
)
from location_sync.core.registry import SourceRegistry
from location_sync.observability.logger import (
    UnitLogAdapter,
    bind_unit_context,
    get_logger,
    log_operation,
)
from location_sync.observability.metrics import (
    increment_counter,
    purge_batch_failures_total,
    record_error,
    record_run_summary,
    record_unit_result,
    run_in_progress,
)
from location_sync.warehouse.connection import DatabaseConnectionPool

from .extractor import Extractor
from .loader import Loader
from .purger import Purger

logger = get_logger(__name__)

# Held for the duration of a run; shared by every orchestrator in the process
_RUN_LOCK = threading.Lock()


class MigrationOrchestrator:
    """
    Sequential migration of all enabled units.

    Usage:
        orchestrator = MigrationOrchestrator(registry, extractor, loader, purger)
        summary = orchestrator.run()
    """

    def __init__(
        self,
        registry: SourceRegistry,
        extractor: Extractor,
        loader: Loader,
        purger: Purger,
        run_lock: "threading.Lock | None" = None,
    ):
        self.registry = registry
        self.extractor = extractor
        self.loader = loader
        self.purger = purger
        self._run_lock = run_lock or _RUN_LOCK

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def run(self) -> RunSummary:
        """
        Migrate every enabled unit once.

        If another run holds the lock, nothing is touched and a summary
        with skipped=True is returned.
        """
        if not self._run_lock.acquire(blocking=False):
            logger.warning("A migration run is already in progress; skipping this trigger")
            summary = RunSummary(skipped=True, completed_at=datetime.now(timezone.utc))
            record_run_summary(summary)
            return summary

        try:
            run_in_progress.set(1)
            summary = RunSummary()
            logger.info(
                "Starting migration run",
                extra={"run_id": summary.run_id, "unit_count": len(self.registry)},
            )

            for unit in self.registry:
                summary.results.append(self.run_unit(unit, run_id=summary.run_id))

            summary.completed_at = datetime.now(timezone.utc)
            record_run_summary(summary)

            logger.info(
                "Migration run finished",
                extra={
                    "run_id": summary.run_id,
                    "outcomes": summary.outcome_counts(),
                    "records_extracted": summary.total_extracted,
                    "records_loaded": summary.total_loaded,
                    "records_purged": summary.total_purged,
                    "failed_units": summary.failed_units,
                },
            )
            return summary
        finally:
            run_in_progress.set(0)
            self._run_lock.release()

    def run_unit(self, unit: MigrationUnit, run_id: str | None = None) -> RunResult:
        """
        Migrate one unit. Never raises; failures are reported in the result.

        Args:
            unit: Unit to migrate
            run_id: Run identifier for log correlation

        Returns:
            Finalized RunResult
        """
        result = RunResult(unit_id=unit.unit_id, collection_id=unit.collection_id)
        log = bind_unit_context(
            logger, unit_id=unit.unit_id, collection_id=unit.collection_id, run_id=run_id
        )
        pool: DatabaseConnectionPool | None = None

        try:
            result.state = UnitState.EXTRACTING
            with log_operation("Extracting documents", logger=log):
                documents = self.extractor.extract(unit.collection_id)
            result.records_extracted = len(documents)

            if not documents:
                log.info("No documents to migrate")
                return self._finish(result, RunOutcome.SUCCESS, log)

            result.state = UnitState.LOADING
            with log_operation("Loading records", logger=log, record_count=len(documents)):
                rows = self.loader.prepare(documents)
                pool = self.loader.connect(unit.destination)
                result.records_loaded = self.loader.insert(pool, rows, unit.destination.table)

            result.state = UnitState.PURGING
            return self._purge(unit, documents, result, log)

        except MigrationError as e:
            e.unit_id = e.unit_id or unit.unit_id
            e.collection_id = e.collection_id or unit.collection_id
            log.error(
                f"Unit failed while {result.state.value}: {e}",
                exc_info=True,
                extra={"error_type": type(e).__name__},
            )
            record_error(unit.unit_id, e, stage=result.state.value)
            return self._finish(result, RunOutcome.FAILURE, log, error_detail=str(e))

        except Exception as e:
            log.error(
                f"Unexpected error while {result.state.value}: {e}",
                exc_info=True,
                extra={"error_type": type(e).__name__},
            )
            record_error(unit.unit_id, e, stage=result.state.value)
            return self._finish(
                result, RunOutcome.FAILURE, log, error_detail=f"{type(e).__name__}: {e}"
            )

        finally:
            if pool is not None:
                pool.close()

    def _purge(
        self,
        unit: MigrationUnit,
        documents: list[ExtractedDocument],
        result: RunResult,
        log: UnitLogAdapter,
    ) -> RunResult:
        refs = [document.ref for document in documents]
        try:
            with log_operation("Purging source documents", logger=log, record_count=len(refs)):
                result.records_purged = self.purger.purge(unit.collection_id, refs)
        except SourcePurgeError as e:
            e.unit_id = unit.unit_id
            result.records_purged = e.deleted_count
            log.error(
                f"Source purge incomplete: {e}",
                extra={
                    "batch_number": e.batch_number,
                    "records_purged": e.deleted_count,
                    "records_remaining": len(refs) - e.deleted_count,
                },
            )
            record_error(unit.unit_id, e, stage=UnitState.PURGING.value)
            increment_counter(purge_batch_failures_total, 1, unit_id=unit.unit_id)
            return self._finish(result, RunOutcome.PARTIAL_FAILURE, log, error_detail=str(e))
        except Exception as e:
            # Rows are committed; leftovers are re-extracted next run
            log.error(
                f"Unexpected error while purging: {e}",
                exc_info=True,
                extra={"error_type": type(e).__name__},
            )
            record_error(unit.unit_id, e, stage=UnitState.PURGING.value)
            return self._finish(
                result,
                RunOutcome.PARTIAL_FAILURE,
                log,
                error_detail=f"{type(e).__name__}: {e}",
            )

        not_deleted = len(refs) - result.records_purged
        if not_deleted > 0:
            # Leftovers are re-extracted and inserted again next run
            log.error(
                f"Source purge deleted {result.records_purged} of {len(refs)} documents",
                extra={"records_purged": result.records_purged, "records_remaining": not_deleted},
            )
            return self._finish(
                result,
                RunOutcome.PARTIAL_FAILURE,
                log,
                error_detail=f"{not_deleted} of {len(refs)} loaded documents were not deleted from the source",
            )

        return self._finish(result, RunOutcome.SUCCESS, log)

    def _finish(
        self,
        result: RunResult,
        outcome: RunOutcome,
        log: UnitLogAdapter,
        error_detail: str | None = None,
    ) -> RunResult:
        result.finalize(outcome, error_detail=error_detail)
        record_unit_result(result)

        log.info(
            f"Unit {result.unit_id} finished: {outcome.value}",
            extra={
                "outcome": outcome.value,
                "state": result.state.value,
                "records_extracted": result.records_extracted,
                "records_loaded": result.records_loaded,
                "records_purged": result.records_purged,
                "duration_seconds": result.duration_seconds,
            },
        )
        return result
