"""Read and steer the ingestion status record from the operator surface."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta

from auto_catalog.domain.ingestion import RunStatus, SyncStatus
from auto_catalog.ports.sync_status_repository import SyncStatusRepository
from auto_catalog.use_cases.run_ingestion import IngestionRequest, utcnow

logger = logging.getLogger(__name__)


class GetSyncStatus:
    def __init__(self, statuses: SyncStatusRepository, stream: str) -> None:
        self._statuses = statuses
        self._stream = stream

    def execute(self) -> SyncStatus:
        return self._statuses.get(self._stream)


class RequestSyncStop:
    """Ask the running ingestion to stop at its next page boundary."""

    def __init__(self, statuses: SyncStatusRepository, stream: str) -> None:
        self._statuses = statuses
        self._stream = stream

    def execute(self) -> SyncStatus:
        status = self._statuses.request_stop(self._stream)
        logger.info(
            "Ingestion stop requested",
            extra={"stream": self._stream, "run_status": status.status.value},
        )
        return status


class TriggerSync:
    """
    Accept an ingestion request from the operator surface.

    The run itself is handed to ``schedule`` (a background task in the HTTP
    app). An early look at the status record avoids queueing a run that
    would only find the stream busy; the authoritative compare-and-set still
    happens inside the run.
    """

    def __init__(
        self,
        statuses: SyncStatusRepository,
        stream: str,
        stale_after: timedelta,
        schedule: Callable[[IngestionRequest], None],
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self._statuses = statuses
        self._stream = stream
        self._stale_after = stale_after
        self._schedule = schedule
        self._now = now

    def execute(self, request: IngestionRequest) -> tuple[bool, SyncStatus]:
        """
        Returns:
            (accepted, status) where status is the record the caller should report

        Raises:
            ValidationError: If the request is invalid
        """
        request.validate()

        current = self._statuses.get(self._stream)
        if current.is_active(self._now(), self._stale_after):
            logger.info(
                "Ingestion trigger ignored, run in progress",
                extra={"stream": self._stream, "active_run_id": current.run_id},
            )
            return False, current

        self._schedule(request)
        logger.info(
            "Ingestion scheduled",
            extra={
                "stream": self._stream,
                "resume": request.resume,
                "max_pages": request.max_pages,
            },
        )
        return True, replace(current, status=RunStatus.RUNNING)
