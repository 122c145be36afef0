"""Resumable bulk ingestion from the upstream paged API into the record store.

One invocation walks pages sequentially:

    Starting -> Paging -> (Paused for backoff -> Paging)* -> Completed | Failed

and may also stop early at a page boundary (stop flag, page budget, time
budget), leaving the checkpoint in place for the next invocation. A run that
finds the status record taken over by another invocation stops without
writing anything further.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, replace
from datetime import datetime, timezone

from auto_catalog.domain.errors import FetchError, StoreWriteError, ValidationError
from auto_catalog.domain.ingestion import (
    Checkpoint,
    CompletionReason,
    IngestionPolicy,
    IngestionReport,
    PauseReason,
    RunStatus,
)
from auto_catalog.domain.listing import Listing
from auto_catalog.ports.checkpoint_store import CheckpointStore
from auto_catalog.ports.listing_repository import ListingRepository
from auto_catalog.ports.listing_source import ListingSource, SourcePage
from auto_catalog.ports.sync_status_repository import SyncStatusRepository

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_run_id() -> str:
    return uuid.uuid4().hex


def _batches(listings: Sequence[Listing], size: int) -> Iterator[Sequence[Listing]]:
    for start in range(0, len(listings), size):
        yield listings[start : start + size]


@dataclass(frozen=True, slots=True)
class IngestionRequest:
    resume: bool = True
    max_pages: int | None = None

    def validate(self) -> None:
        if self.max_pages is not None and self.max_pages < 1:
            raise ValidationError(
                errors=[
                    {
                        "field": "max_pages",
                        "message": "Must be >= 1 when provided",
                        "code": "INVALID_RANGE",
                    }
                ]
            )


@dataclass
class _RunState:
    """Mutable bookkeeping for one invocation."""

    run_id: str
    checkpoint: Checkpoint
    start_page: int
    page: int
    ceiling: int
    started_monotonic: float
    consecutive_errors: int = 0
    pages_fetched: int = 0
    skipped: int = 0
    known_total: int | None = None

    @property
    def total_processed(self) -> int:
        return self.checkpoint.total_processed

    @property
    def consecutive_empty(self) -> int:
        return self.checkpoint.empty_streak

    @property
    def last_fetched_page(self) -> int:
        return max(self.page - 1, self.checkpoint.last_page)


class RunIngestion:
    """
    Ingestion loop over a ListingSource into a ListingRepository.

    Owns the checkpoint and the sync status record for ``stream``. Every
    collaborator that blocks or reads the clock is injected so the loop can
    be driven deterministically.
    """

    def __init__(
        self,
        source: ListingSource,
        repository: ListingRepository,
        checkpoints: CheckpointStore,
        statuses: SyncStatusRepository,
        *,
        stream: str = "auctions",
        policy: IngestionPolicy | None = None,
        now: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
        run_id_factory: Callable[[], str] = _new_run_id,
    ) -> None:
        self._source = source
        self._repository = repository
        self._checkpoints = checkpoints
        self._statuses = statuses
        self._stream = stream
        self._policy = policy or IngestionPolicy()
        self._now = now
        self._sleep = sleep
        self._monotonic = monotonic
        self._run_id_factory = run_id_factory

        self._policy.validate()

    def execute(self, request: IngestionRequest) -> IngestionReport:
        """
        Run one ingestion invocation.

        Returns:
            IngestionReport; ``status`` is RUNNING with ``skipped_run`` when
            another live run holds the stream.

        Raises:
            ValidationError: If the request is invalid
        """
        request.validate()

        run_id = self._run_id_factory()
        now = self._now()
        previous = self._statuses.get(self._stream)

        claimed = self._statuses.try_start(self._stream, run_id, now, self._policy.stale_after)
        if claimed is None:
            current = self._statuses.get(self._stream)
            logger.info(
                "Ingestion already running, skipping invocation",
                extra={"stream": self._stream, "active_run_id": current.run_id},
            )
            return IngestionReport(
                status=RunStatus.RUNNING,
                run_id=current.run_id,
                start_page=current.current_page,
                last_page=current.current_page,
                total_processed=current.records_processed,
                skipped_records=current.skipped_records,
                skipped_run=True,
            )

        if previous.status is RunStatus.RUNNING:
            logger.warning(
                "Taking over stale ingestion run",
                extra={
                    "stream": self._stream,
                    "stale_run_id": previous.run_id,
                    "last_activity_at": previous.last_activity_at,
                },
            )

        state: _RunState | None = None
        try:
            state = self._starting(run_id, request, previous.status, now)
            return self._paging(state, request)
        except Exception as exc:
            logger.exception(
                "Ingestion run crashed",
                extra={"stream": self._stream, "run_id": run_id},
            )
            self._statuses.finish(
                self._stream,
                run_id,
                status=RunStatus.FAILED,
                current_page=state.last_fetched_page if state else 0,
                records_processed=state.total_processed if state else 0,
                skipped_records=state.skipped if state else 0,
                now=self._now(),
                error_message=str(exc),
            )
            raise

    # ==========================================================================
    # Starting
    # ==========================================================================

    def _starting(
        self,
        run_id: str,
        request: IngestionRequest,
        previous_status: RunStatus,
        now: datetime,
    ) -> _RunState:
        checkpoint: Checkpoint | None = None

        if not request.resume:
            self._checkpoints.clear(self._stream)
        elif previous_status is RunStatus.COMPLETED:
            logger.info(
                "Previous run completed, starting a new pass",
                extra={"stream": self._stream},
            )
        else:
            checkpoint = self._checkpoints.load(self._stream)

        if checkpoint is not None and checkpoint.is_fresh(now, self._policy.checkpoint_max_age):
            logger.info(
                "Resuming ingestion from checkpoint",
                extra={
                    "stream": self._stream,
                    "checkpoint_run_id": checkpoint.run_id,
                    "resume_page": checkpoint.next_page,
                    "total_processed": checkpoint.total_processed,
                    "empty_streak": checkpoint.empty_streak,
                },
            )
        else:
            if checkpoint is not None:
                logger.info(
                    "Ignoring stale checkpoint",
                    extra={
                        "stream": self._stream,
                        "checkpoint_run_id": checkpoint.run_id,
                        "last_update_time": checkpoint.last_update_time,
                    },
                )
            checkpoint = Checkpoint.start(run_id, now)
            self._checkpoints.save(self._stream, checkpoint)

        start_page = checkpoint.next_page
        return _RunState(
            run_id=run_id,
            checkpoint=checkpoint,
            start_page=start_page,
            page=start_page,
            ceiling=self._policy.page_ceiling(start_page),
            started_monotonic=self._monotonic(),
        )

    # ==========================================================================
    # Paging
    # ==========================================================================

    def _paging(self, state: _RunState, request: IngestionRequest) -> IngestionReport:
        logger.info(
            "Ingestion paging started",
            extra={
                "stream": self._stream,
                "run_id": state.run_id,
                "start_page": state.start_page,
                "page_ceiling": state.ceiling,
                "consecutive_empty": state.consecutive_empty,
            },
        )

        while True:
            pause = self._pause_reason(state, request)
            if pause is not None:
                return self._pause(state, pause)

            try:
                source_page = self._source.fetch_page(state.page)
            except FetchError as exc:
                state.consecutive_errors += 1
                if state.consecutive_errors > self._policy.max_fetch_retries:
                    return self._fail(state, exc)

                delay = self._policy.backoff_delay(state.consecutive_errors)
                logger.warning(
                    "Page fetch failed, backing off",
                    extra={
                        "stream": self._stream,
                        "page": state.page,
                        "attempt": state.consecutive_errors,
                        "delay_s": delay,
                        "error": exc.message,
                    },
                )
                self._sleep(delay)
                continue

            # The fetch may have outlived stale_after; nothing is written for
            # this page unless the status record still belongs to this run
            if not self._heartbeat(state):
                return self._superseded(state)

            state.consecutive_errors = 0
            state.pages_fetched += 1
            state.skipped += source_page.skipped
            if source_page.total is not None:
                state.known_total = source_page.total

            if source_page.is_empty:
                self._record_empty_page(state, source_page)
            else:
                try:
                    self._commit_page(state, source_page)
                except StoreWriteError as exc:
                    return self._fail(state, exc)

            state.page += 1
            if not self._heartbeat(state):
                return self._superseded(state)

            reason = self._completion_reason(state, source_page)
            if reason is not None:
                return self._complete(state, reason)

    def _heartbeat(self, state: _RunState) -> bool:
        return self._statuses.heartbeat(
            self._stream,
            state.run_id,
            current_page=state.last_fetched_page,
            records_processed=state.total_processed,
            skipped_records=state.skipped,
            now=self._now(),
        )

    def _record_empty_page(self, state: _RunState, source_page: SourcePage) -> None:
        # Empty pages move the checkpoint too, so a paused run does not
        # re-fetch them and the streak survives into the next invocation
        state.checkpoint = state.checkpoint.advanced_empty(page=source_page.page, now=self._now())
        self._checkpoints.save(self._stream, state.checkpoint)

        logger.info(
            "Empty page",
            extra={
                "stream": self._stream,
                "page": source_page.page,
                "consecutive_empty": state.consecutive_empty,
                "empty_page_threshold": self._policy.empty_page_threshold,
            },
        )

    def _commit_page(self, state: _RunState, source_page: SourcePage) -> None:
        listings = source_page.listings
        for batch in _batches(listings, self._policy.upsert_batch_size):
            self._upsert_with_retry(batch, source_page.page)

        state.checkpoint = state.checkpoint.advanced(
            page=source_page.page,
            total_processed=state.checkpoint.total_processed + len(listings),
            now=self._now(),
        )
        self._checkpoints.save(self._stream, state.checkpoint)

        logger.info(
            "Page committed",
            extra={
                "stream": self._stream,
                "page": source_page.page,
                "page_records": len(listings),
                "page_skipped": source_page.skipped,
                "total_processed": state.checkpoint.total_processed,
            },
        )

    def _upsert_with_retry(self, batch: Sequence[Listing], page: int) -> None:
        try:
            self._repository.upsert_many(batch)
        except StoreWriteError as exc:
            logger.warning(
                "Batch upsert failed, retrying once",
                extra={"stream": self._stream, "page": page, "error": exc.message},
            )
            self._repository.upsert_many(batch)

    def _pause_reason(self, state: _RunState, request: IngestionRequest) -> PauseReason | None:
        if self._statuses.is_stop_requested(self._stream):
            return PauseReason.STOP_REQUESTED
        if request.max_pages is not None and state.pages_fetched >= request.max_pages:
            return PauseReason.PAGE_BUDGET
        max_run_seconds = self._policy.max_run_seconds
        if (
            max_run_seconds is not None
            and self._monotonic() - state.started_monotonic >= max_run_seconds
        ):
            return PauseReason.TIME_BUDGET
        return None

    def _completion_reason(
        self, state: _RunState, source_page: SourcePage
    ) -> CompletionReason | None:
        if not source_page.has_more:
            return CompletionReason.END_OF_DATA
        if state.consecutive_empty >= self._policy.empty_page_threshold:
            return CompletionReason.EMPTY_PAGES
        if state.page > state.ceiling:
            return CompletionReason.PAGE_CEILING
        if self._known_total_reached(state):
            return CompletionReason.KNOWN_TOTAL_REACHED
        return None

    def _known_total_reached(self, state: _RunState) -> bool:
        threshold = self._policy.completion_threshold
        if threshold is None or not state.known_total:
            return False
        # Only shortens an empty tail; never stops a run that still receives data
        if state.consecutive_empty == 0:
            return False

        ratio = state.total_processed / state.known_total
        if ratio < threshold:
            return False

        logger.warning(
            "Completing on known-total override before empty-page threshold",
            extra={
                "stream": self._stream,
                "total_processed": state.total_processed,
                "known_total": state.known_total,
                "ratio": round(ratio, 4),
                "completion_threshold": threshold,
                "consecutive_empty": state.consecutive_empty,
            },
        )
        return True

    # ==========================================================================
    # Terminal transitions
    # ==========================================================================

    def _complete(self, state: _RunState, reason: CompletionReason) -> IngestionReport:
        now = self._now()
        state.checkpoint = replace(state.checkpoint, last_update_time=now)
        self._checkpoints.save(self._stream, state.checkpoint)
        self._statuses.finish(
            self._stream,
            state.run_id,
            status=RunStatus.COMPLETED,
            current_page=state.last_fetched_page,
            records_processed=state.total_processed,
            skipped_records=state.skipped,
            now=now,
        )

        logger.info(
            "Ingestion completed",
            extra={
                "stream": self._stream,
                "run_id": state.run_id,
                "completion_reason": reason.value,
                "last_page": state.last_fetched_page,
                "total_processed": state.total_processed,
                "pages_fetched": state.pages_fetched,
                "skipped_records": state.skipped,
            },
        )
        return self._report(state, RunStatus.COMPLETED, completion_reason=reason)

    def _pause(self, state: _RunState, reason: PauseReason) -> IngestionReport:
        self._statuses.finish(
            self._stream,
            state.run_id,
            status=RunStatus.IDLE,
            current_page=state.last_fetched_page,
            records_processed=state.total_processed,
            skipped_records=state.skipped,
            now=self._now(),
        )

        logger.info(
            "Ingestion paused at page boundary",
            extra={
                "stream": self._stream,
                "run_id": state.run_id,
                "pause_reason": reason.value,
                "next_page": state.page,
                "total_processed": state.total_processed,
            },
        )
        return self._report(state, RunStatus.IDLE, pause_reason=reason)

    def _superseded(self, state: _RunState) -> IngestionReport:
        # Another invocation owns the record and the checkpoint now; leave both
        logger.warning(
            "Ingestion run superseded, stopping without further writes",
            extra={
                "stream": self._stream,
                "run_id": state.run_id,
                "page": state.page,
                "last_committed_page": state.checkpoint.last_page,
            },
        )
        return self._report(state, RunStatus.IDLE, pause_reason=PauseReason.SUPERSEDED)

    def _fail(self, state: _RunState, exc: FetchError | StoreWriteError) -> IngestionReport:
        # The checkpoint is left as of the last committed page
        self._statuses.finish(
            self._stream,
            state.run_id,
            status=RunStatus.FAILED,
            current_page=state.last_fetched_page,
            records_processed=state.total_processed,
            skipped_records=state.skipped,
            now=self._now(),
            error_message=exc.message,
        )

        logger.error(
            "Ingestion failed",
            extra={
                "stream": self._stream,
                "run_id": state.run_id,
                "page": state.page,
                "error_code": exc.error_code,
                "error": exc.message,
                "last_committed_page": state.checkpoint.last_page,
            },
        )
        return self._report(state, RunStatus.FAILED, error=exc.message)

    def _report(
        self,
        state: _RunState,
        status: RunStatus,
        *,
        completion_reason: CompletionReason | None = None,
        pause_reason: PauseReason | None = None,
        error: str | None = None,
    ) -> IngestionReport:
        return IngestionReport(
            status=status,
            run_id=state.run_id,
            start_page=state.start_page,
            last_page=state.checkpoint.last_page,
            total_processed=state.total_processed,
            pages_fetched=state.pages_fetched,
            skipped_records=state.skipped,
            completion_reason=completion_reason,
            pause_reason=pause_reason,
            error=error,
        )
