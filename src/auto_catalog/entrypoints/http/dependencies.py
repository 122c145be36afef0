"""
Dependency injection for FastAPI routes.

Key principle: Database sessions should be per-request, not cached.
Only stateless singletons should use lru_cache.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Generator

from fastapi import BackgroundTasks, Depends
from sqlalchemy.orm import Session

from auto_catalog.adapters.postgres_listing_repository import PostgresListingRepository
from auto_catalog.adapters.postgres_sync_status_repository import (
    PostgresSyncStatusRepository,
)
from auto_catalog.infra.db.session import get_session
from auto_catalog.infra.ingestion_factory import run_ingestion_job
from auto_catalog.infra.settings import IngestionSettings
from auto_catalog.ports.sync_status_repository import SyncStatusRepository
from auto_catalog.use_cases.get_listing_by_id import GetListingById
from auto_catalog.use_cases.run_ingestion import IngestionRequest
from auto_catalog.use_cases.search_listings import SearchListings
from auto_catalog.use_cases.sync_status import GetSyncStatus, RequestSyncStop, TriggerSync


def get_db() -> Generator[Session, None, None]:
    """
    Provides a database session for a single request.

    The underlying get_session() is a context manager that handles:
    - Session creation
    - Auto-commit on success
    - Auto-rollback on exception
    - Session cleanup

    Yields:
        Session: SQLAlchemy database session (per-request)
    """
    with get_session() as session:
        yield session


@lru_cache(maxsize=1)
def get_ingestion_settings() -> IngestionSettings:
    """Stream name and policy, read from the environment once per process."""
    return IngestionSettings.from_env()


def get_search_listings_use_case(db: Session = Depends(get_db)) -> SearchListings:
    """
    Factory function that returns a configured SearchListings use case.

    Args:
        db: Database session (injected by FastAPI via Depends(get_db))

    Returns:
        SearchListings: Configured use case instance
    """
    return SearchListings(listing_repository=PostgresListingRepository(session=db))


def get_listing_by_id_use_case(db: Session = Depends(get_db)) -> GetListingById:
    return GetListingById(listing_repository=PostgresListingRepository(session=db))


def get_sync_status_repository(db: Session = Depends(get_db)) -> SyncStatusRepository:
    return PostgresSyncStatusRepository(session=db)


def get_sync_status_use_case(
    statuses: SyncStatusRepository = Depends(get_sync_status_repository),
    settings: IngestionSettings = Depends(get_ingestion_settings),
) -> GetSyncStatus:
    return GetSyncStatus(statuses=statuses, stream=settings.stream)


def get_request_sync_stop_use_case(
    statuses: SyncStatusRepository = Depends(get_sync_status_repository),
    settings: IngestionSettings = Depends(get_ingestion_settings),
) -> RequestSyncStop:
    return RequestSyncStop(statuses=statuses, stream=settings.stream)


def get_trigger_sync_use_case(
    background_tasks: BackgroundTasks,
    statuses: SyncStatusRepository = Depends(get_sync_status_repository),
    settings: IngestionSettings = Depends(get_ingestion_settings),
) -> TriggerSync:
    """
    TriggerSync whose runs execute after the response is sent.

    The background run opens its own session and HTTP client; the request
    session is closed by then.
    """

    def schedule(request: IngestionRequest) -> None:
        background_tasks.add_task(run_ingestion_job, request)

    return TriggerSync(
        statuses=statuses,
        stream=settings.stream,
        stale_after=settings.policy.stale_after,
        schedule=schedule,
    )
