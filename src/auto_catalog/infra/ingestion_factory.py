"""Wiring for one ingestion invocation, shared by the HTTP trigger and the CLI."""

from __future__ import annotations

from sqlalchemy.orm import Session

from auto_catalog.adapters.auctions_api_listing_source import AuctionsApiListingSource
from auto_catalog.adapters.file_checkpoint_store import FileCheckpointStore
from auto_catalog.adapters.postgres_checkpoint_store import PostgresCheckpointStore
from auto_catalog.adapters.postgres_listing_repository import PostgresListingRepository
from auto_catalog.adapters.postgres_sync_status_repository import (
    PostgresSyncStatusRepository,
)
from auto_catalog.domain.ingestion import IngestionReport
from auto_catalog.infra.db.session import get_session
from auto_catalog.infra.settings import IngestionSettings, SourceSettings
from auto_catalog.ports.checkpoint_store import CheckpointStore
from auto_catalog.ports.listing_source import ListingSource
from auto_catalog.use_cases.run_ingestion import IngestionRequest, RunIngestion


def build_checkpoint_store(session: Session, settings: IngestionSettings) -> CheckpointStore:
    if settings.checkpoint_path:
        return FileCheckpointStore(settings.checkpoint_path)
    return PostgresCheckpointStore(session)


def build_run_ingestion(
    session: Session, source: ListingSource, settings: IngestionSettings
) -> RunIngestion:
    return RunIngestion(
        source=source,
        repository=PostgresListingRepository(session),
        checkpoints=build_checkpoint_store(session, settings),
        statuses=PostgresSyncStatusRepository(session),
        stream=settings.stream,
        policy=settings.policy,
    )


def run_ingestion_job(request: IngestionRequest) -> IngestionReport:
    """Run one invocation with its own session and HTTP client."""
    settings = IngestionSettings.from_env()

    with get_session() as session, AuctionsApiListingSource(SourceSettings.from_env()) as source:
        return build_run_ingestion(session, source, settings).execute(request)
