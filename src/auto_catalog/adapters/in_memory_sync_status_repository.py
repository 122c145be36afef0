from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timedelta

from auto_catalog.domain.ingestion import RunStatus, SyncStatus
from auto_catalog.ports.sync_status_repository import SyncStatusRepository


class InMemorySyncStatusRepository(SyncStatusRepository):
    """Process-local status record; a lock gives try_start its compare-and-set."""

    def __init__(self, statuses: dict[str, SyncStatus] | None = None) -> None:
        self._statuses: dict[str, SyncStatus] = dict(statuses or {})
        self._lock = threading.Lock()

    def get(self, stream: str) -> SyncStatus:
        with self._lock:
            return self._statuses.get(stream, SyncStatus(stream=stream))

    def try_start(
        self, stream: str, run_id: str, now: datetime, stale_after: timedelta
    ) -> SyncStatus | None:
        with self._lock:
            current = self._statuses.get(stream, SyncStatus(stream=stream))
            if current.is_active(now, stale_after):
                return None
            started = replace(
                current,
                status=RunStatus.RUNNING,
                run_id=run_id,
                started_at=now,
                last_activity_at=now,
                completed_at=None,
                error_message=None,
                stop_requested=False,
            )
            self._statuses[stream] = started
            return started

    def heartbeat(
        self,
        stream: str,
        run_id: str,
        *,
        current_page: int,
        records_processed: int,
        skipped_records: int,
        now: datetime,
    ) -> bool:
        with self._lock:
            current = self._statuses.get(stream)
            if current is None or current.run_id != run_id:
                return False
            self._statuses[stream] = replace(
                current,
                current_page=current_page,
                records_processed=records_processed,
                skipped_records=skipped_records,
                last_activity_at=now,
            )
            return True

    def finish(
        self,
        stream: str,
        run_id: str,
        *,
        status: RunStatus,
        current_page: int,
        records_processed: int,
        skipped_records: int,
        now: datetime,
        error_message: str | None = None,
    ) -> None:
        with self._lock:
            current = self._statuses.get(stream)
            if current is None or current.run_id != run_id:
                return
            self._statuses[stream] = replace(
                current,
                status=status,
                current_page=current_page,
                records_processed=records_processed,
                skipped_records=skipped_records,
                last_activity_at=now,
                completed_at=now if status is RunStatus.COMPLETED else None,
                error_message=error_message,
                stop_requested=False,
            )

    def request_stop(self, stream: str) -> SyncStatus:
        with self._lock:
            current = self._statuses.get(stream, SyncStatus(stream=stream))
            updated = replace(current, stop_requested=True)
            self._statuses[stream] = updated
            return updated

    def is_stop_requested(self, stream: str) -> bool:
        with self._lock:
            current = self._statuses.get(stream)
            return bool(current and current.stop_requested)
