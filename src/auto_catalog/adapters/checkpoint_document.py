"""Persisted checkpoint layout shared by the file and PostgreSQL stores.

Layout: {runId, lastPage, totalProcessed, startTime, lastUpdateTime, emptyStreak}
(``emptyStreak`` defaults to 0 for documents written before it existed)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from auto_catalog.domain.errors import MalformedCheckpointError
from auto_catalog.domain.ingestion import Checkpoint


class CheckpointDocument(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    run_id: str = Field(alias="runId", min_length=1)
    last_page: int = Field(alias="lastPage", ge=0)
    total_processed: int = Field(alias="totalProcessed", ge=0)
    start_time: datetime = Field(alias="startTime")
    last_update_time: datetime = Field(alias="lastUpdateTime")
    empty_streak: int = Field(default=0, alias="emptyStreak", ge=0)

    @field_validator("start_time", "last_update_time", mode="before")
    @classmethod
    def _epoch_millis(cls, value: Any) -> Any:
        # Older writers stored Date.now()-style epoch milliseconds
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            try:
                return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError) as exc:
                raise ValueError(f"epoch milliseconds out of range: {value!r}") from exc
        return value

    @field_validator("start_time", "last_update_time")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    @classmethod
    def from_domain(cls, checkpoint: Checkpoint) -> CheckpointDocument:
        return cls(
            run_id=checkpoint.run_id,
            last_page=checkpoint.last_page,
            total_processed=checkpoint.total_processed,
            start_time=checkpoint.start_time,
            last_update_time=checkpoint.last_update_time,
            empty_streak=checkpoint.empty_streak,
        )

    def to_domain(self) -> Checkpoint:
        return Checkpoint(
            run_id=self.run_id,
            last_page=self.last_page,
            total_processed=self.total_processed,
            start_time=self.start_time,
            last_update_time=self.last_update_time,
            empty_streak=self.empty_streak,
        )


def parse_checkpoint(data: Any) -> Checkpoint:
    """
    Parse a stored document (JSON text or already-decoded mapping).

    Raises:
        MalformedCheckpointError: If the document is not a valid checkpoint
    """
    try:
        if isinstance(data, (str, bytes)):
            document = CheckpointDocument.model_validate_json(data)
        else:
            document = CheckpointDocument.model_validate(data)
    except PydanticValidationError as exc:
        raise MalformedCheckpointError(
            "Stored checkpoint is malformed", error_count=exc.error_count()
        ) from exc
    return document.to_domain()


def dump_checkpoint(checkpoint: Checkpoint) -> dict[str, Any]:
    return CheckpointDocument.from_domain(checkpoint).model_dump(mode="json", by_alias=True)
