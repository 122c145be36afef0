from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SyncTriggerRequestDTO(BaseModel):
    """Operator request to start or resume an ingestion run."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"resume": True, "maxPages": 500}},
    )

    resume: bool = Field(
        default=True,
        description="Resume from a fresh checkpoint when one exists; false restarts at page 1",
    )
    max_pages: int | None = Field(
        default=None,
        alias="maxPages",
        description="Pages to fetch in this invocation before pausing",
        ge=1,
    )


class SyncStatusResponseDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["idle", "running", "completed", "failed"]
    total_processed: int = Field(alias="totalProcessed")
    last_page: int = Field(alias="lastPage")
    run_id: str | None = Field(default=None, alias="runId")
    skipped_records: int = Field(default=0, alias="skippedRecords")
    last_activity_at: datetime | None = Field(default=None, alias="lastActivityAt")
    completed_at: datetime | None = Field(default=None, alias="completedAt")
    error_message: str | None = Field(default=None, alias="errorMessage")
    stop_requested: bool = Field(default=False, alias="stopRequested")
