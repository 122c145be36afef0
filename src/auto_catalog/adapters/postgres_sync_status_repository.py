"""PostgreSQL implementation of SyncStatusRepository."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.orm import Session

from auto_catalog.domain.ingestion import RunStatus, SyncStatus
from auto_catalog.infra.db.models.sync import SyncStatusRow
from auto_catalog.ports.sync_status_repository import SyncStatusRepository

logger = logging.getLogger(__name__)


class PostgresSyncStatusRepository(SyncStatusRepository):
    """
    Status record in the ``sync_status`` table, one row per stream.

    ``try_start`` is a single conditional UPDATE, so two invocations racing
    for the same stream cannot both see rowcount 1.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, stream: str) -> SyncStatus:
        # populate_existing: rows may be cached from before a bulk UPDATE
        query = (
            select(SyncStatusRow)
            .where(SyncStatusRow.stream == stream)
            .execution_options(populate_existing=True)
        )
        row = self._session.execute(query).scalar_one_or_none()
        if row is None:
            return SyncStatus(stream=stream)
        return self._to_domain(row)

    def try_start(
        self, stream: str, run_id: str, now: datetime, stale_after: timedelta
    ) -> SyncStatus | None:
        self._ensure_row(stream)

        stale_cutoff = now - stale_after
        stmt = (
            update(SyncStatusRow)
            .where(SyncStatusRow.stream == stream)
            .where(
                or_(
                    SyncStatusRow.status != RunStatus.RUNNING.value,
                    SyncStatusRow.last_activity_at.is_(None),
                    SyncStatusRow.last_activity_at < stale_cutoff,
                )
            )
            .values(
                status=RunStatus.RUNNING.value,
                run_id=run_id,
                started_at=now,
                last_activity_at=now,
                completed_at=None,
                error_message=None,
                stop_requested=False,
            )
            .execution_options(synchronize_session=False)
        )
        result = self._session.execute(stmt)
        self._session.commit()

        if result.rowcount != 1:
            return None
        return self.get(stream)

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
        return self._update_owned(
            stream,
            run_id,
            current_page=current_page,
            records_processed=records_processed,
            skipped_records=skipped_records,
            last_activity_at=now,
        )

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
        self._update_owned(
            stream,
            run_id,
            status=status.value,
            current_page=current_page,
            records_processed=records_processed,
            skipped_records=skipped_records,
            last_activity_at=now,
            completed_at=now if status is RunStatus.COMPLETED else None,
            error_message=error_message,
            stop_requested=False,
        )

    def request_stop(self, stream: str) -> SyncStatus:
        self._ensure_row(stream)
        self._session.execute(
            update(SyncStatusRow)
            .where(SyncStatusRow.stream == stream)
            .values(stop_requested=True)
            .execution_options(synchronize_session=False)
        )
        self._session.commit()
        return self.get(stream)

    def is_stop_requested(self, stream: str) -> bool:
        query = select(SyncStatusRow.stop_requested).where(SyncStatusRow.stream == stream)
        return bool(self._session.execute(query).scalar_one_or_none())

    def _ensure_row(self, stream: str) -> None:
        stmt = (
            pg_insert(SyncStatusRow)
            .values(stream=stream, status=RunStatus.IDLE.value)
            .on_conflict_do_nothing(index_elements=[SyncStatusRow.stream])
        )
        self._session.execute(stmt)

    def _update_owned(self, stream: str, run_id: str, **values: object) -> bool:
        result = self._session.execute(
            update(SyncStatusRow)
            .where(SyncStatusRow.stream == stream)
            .where(SyncStatusRow.run_id == run_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        self._session.commit()
        if result.rowcount != 1:
            # Another invocation took the stream over after we went stale
            logger.warning(
                "Sync status no longer owned by run",
                extra={"stream": stream, "run_id": run_id},
            )
            return False
        return True

    @staticmethod
    def _to_domain(row: SyncStatusRow) -> SyncStatus:
        return SyncStatus(
            stream=row.stream,
            status=RunStatus(row.status),
            run_id=row.run_id,
            current_page=row.current_page,
            records_processed=row.records_processed,
            skipped_records=row.skipped_records,
            started_at=row.started_at,
            last_activity_at=row.last_activity_at,
            completed_at=row.completed_at,
            error_message=row.error_message,
            stop_requested=row.stop_requested,
        )
