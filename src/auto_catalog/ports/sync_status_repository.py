from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta

from auto_catalog.domain.ingestion import RunStatus, SyncStatus


class SyncStatusRepository(ABC):
    """
    Port for the per-stream run status record.

    ``try_start`` must read and decide atomically (compare-and-set): it only
    succeeds when no other run is ``running`` with activity newer than
    ``stale_after``.
    """

    @abstractmethod
    def get(self, stream: str) -> SyncStatus: ...

    @abstractmethod
    def try_start(
        self, stream: str, run_id: str, now: datetime, stale_after: timedelta
    ) -> SyncStatus | None:
        """
        Claim the stream for ``run_id``.

        Returns:
            The new status record, or None if another run is active
        """
        ...

    @abstractmethod
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
        """
        Record progress and liveness for ``run_id``.

        Returns:
            False when another run has taken the stream over; nothing is written
        """
        ...

    @abstractmethod
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
    ) -> None: ...

    @abstractmethod
    def request_stop(self, stream: str) -> SyncStatus: ...

    @abstractmethod
    def is_stop_requested(self, stream: str) -> bool: ...
