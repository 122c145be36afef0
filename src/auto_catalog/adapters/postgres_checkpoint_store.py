"""PostgreSQL checkpoint store: one JSONB document per stream."""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.orm import Session

from auto_catalog.adapters.checkpoint_document import dump_checkpoint, parse_checkpoint
from auto_catalog.domain.errors import MalformedCheckpointError
from auto_catalog.domain.ingestion import Checkpoint
from auto_catalog.infra.db.models.sync import IngestionCheckpointRow
from auto_catalog.ports.checkpoint_store import CheckpointStore

logger = logging.getLogger(__name__)


class PostgresCheckpointStore(CheckpointStore):
    def __init__(self, session: Session) -> None:
        self._session = session

    def load(self, stream: str) -> Checkpoint | None:
        query = select(IngestionCheckpointRow.document).where(
            IngestionCheckpointRow.stream == stream
        )
        document = self._session.execute(query).scalar_one_or_none()
        if document is None:
            return None

        try:
            return parse_checkpoint(document)
        except MalformedCheckpointError as exc:
            logger.warning(
                "Checkpoint malformed, starting fresh",
                extra={"stream": stream, "error": exc.message},
            )
            return None

    def save(self, stream: str, checkpoint: Checkpoint) -> None:
        document = dump_checkpoint(checkpoint)
        stmt = pg_insert(IngestionCheckpointRow).values(stream=stream, document=document)
        stmt = stmt.on_conflict_do_update(
            index_elements=[IngestionCheckpointRow.stream],
            set_={"document": stmt.excluded.document, "updated_at": func.now()},
        )
        self._session.execute(stmt)
        self._session.commit()

    def clear(self, stream: str) -> None:
        self._session.execute(
            delete(IngestionCheckpointRow).where(IngestionCheckpointRow.stream == stream)
        )
        self._session.commit()
