from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from auto_catalog.domain.errors import ValidationError


class RunStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class CompletionReason(str, Enum):
    END_OF_DATA = "end_of_data"
    EMPTY_PAGES = "empty_pages"
    PAGE_CEILING = "page_ceiling"
    KNOWN_TOTAL_REACHED = "known_total_reached"


class PauseReason(str, Enum):
    STOP_REQUESTED = "stop_requested"
    PAGE_BUDGET = "page_budget"
    TIME_BUDGET = "time_budget"
    SUPERSEDED = "superseded"


@dataclass(frozen=True, slots=True)
class Checkpoint:
    """Durable progress of one ingestion run.

    ``last_page`` is the last page that was processed: its listings were
    committed, or it came back empty. ``0`` means nothing was processed yet.
    ``empty_streak`` counts the consecutive empty pages ending at
    ``last_page`` so a paused run picks the streak up where it left off.
    """

    run_id: str
    last_page: int
    total_processed: int
    start_time: datetime
    last_update_time: datetime
    empty_streak: int = 0

    @classmethod
    def start(cls, run_id: str, now: datetime) -> Checkpoint:
        return cls(
            run_id=run_id,
            last_page=0,
            total_processed=0,
            start_time=now,
            last_update_time=now,
        )

    def is_fresh(self, now: datetime, max_age: timedelta) -> bool:
        return now - self.last_update_time < max_age

    def advanced(self, page: int, total_processed: int, now: datetime) -> Checkpoint:
        return replace(
            self,
            last_page=page,
            total_processed=total_processed,
            last_update_time=now,
            empty_streak=0,
        )

    def advanced_empty(self, page: int, now: datetime) -> Checkpoint:
        return replace(
            self,
            last_page=page,
            last_update_time=now,
            empty_streak=self.empty_streak + 1,
        )

    @property
    def next_page(self) -> int:
        return self.last_page + 1


@dataclass(frozen=True, slots=True)
class SyncStatus:
    """Single-writer state record guarding one ingestion stream."""

    stream: str
    status: RunStatus = RunStatus.IDLE
    run_id: str | None = None
    current_page: int = 0
    records_processed: int = 0
    skipped_records: int = 0
    started_at: datetime | None = None
    last_activity_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None
    stop_requested: bool = False

    def is_active(self, now: datetime, stale_after: timedelta) -> bool:
        """True when another run holds the stream and has shown recent activity."""
        if self.status is not RunStatus.RUNNING:
            return False
        if self.last_activity_at is None:
            return False
        return now - self.last_activity_at < stale_after


@dataclass(frozen=True, slots=True)
class IngestionPolicy:
    checkpoint_max_age: timedelta = timedelta(hours=24)
    empty_page_threshold: int = 20
    page_floor: int = 5000
    page_lookahead: int = 5000
    max_fetch_retries: int = 3
    backoff_base_s: float = 1.0
    backoff_max_s: float = 15.0
    upsert_batch_size: int = 1000
    completion_threshold: float | None = 0.95
    stale_after: timedelta = timedelta(minutes=3)
    max_run_seconds: float | None = None

    def validate(self) -> None:
        if self.empty_page_threshold < 1:
            raise ValidationError("empty_page_threshold must be >= 1")
        if self.page_floor < 1 or self.page_lookahead < 0:
            raise ValidationError("page_floor must be >= 1 and page_lookahead >= 0")
        if self.max_fetch_retries < 0:
            raise ValidationError("max_fetch_retries must be >= 0")
        if not 1 <= self.upsert_batch_size <= 1000:
            raise ValidationError("upsert_batch_size must be between 1 and 1000")
        if self.completion_threshold is not None and not 0 < self.completion_threshold <= 1:
            raise ValidationError("completion_threshold must be in (0, 1]")

    def page_ceiling(self, start_page: int) -> int:
        # Always reachable from a resumed start page
        return max(self.page_floor, start_page + self.page_lookahead)

    def backoff_delay(self, attempt: int) -> float:
        return min(self.backoff_max_s, self.backoff_base_s * (2 ** max(0, attempt - 1)))


@dataclass(frozen=True, slots=True)
class IngestionReport:
    status: RunStatus
    run_id: str | None
    start_page: int
    last_page: int
    total_processed: int
    pages_fetched: int = 0
    skipped_records: int = 0
    skipped_run: bool = False
    completion_reason: CompletionReason | None = None
    pause_reason: PauseReason | None = None
    error: str | None = None
