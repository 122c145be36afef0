"""
Unit tests for FastAPI dependency injection functions.

- get_db() yields a database session per request
- use case factories wire Postgres adapters onto the request session
- TriggerSync schedules the ingestion job as a background task

Tests use mocks to verify wiring without requiring a real database.
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock, Mock, patch

from fastapi import BackgroundTasks

from auto_catalog.adapters.postgres_listing_repository import PostgresListingRepository
from auto_catalog.adapters.postgres_sync_status_repository import (
    PostgresSyncStatusRepository,
)
from auto_catalog.domain.ingestion import IngestionPolicy, SyncStatus
from auto_catalog.entrypoints.http.dependencies import (
    get_db,
    get_listing_by_id_use_case,
    get_request_sync_stop_use_case,
    get_search_listings_use_case,
    get_sync_status_repository,
    get_sync_status_use_case,
    get_trigger_sync_use_case,
)
from auto_catalog.infra.ingestion_factory import run_ingestion_job
from auto_catalog.infra.settings import IngestionSettings
from auto_catalog.use_cases.get_listing_by_id import GetListingById
from auto_catalog.use_cases.run_ingestion import IngestionRequest
from auto_catalog.use_cases.search_listings import SearchListings
from auto_catalog.use_cases.sync_status import GetSyncStatus, RequestSyncStop, TriggerSync


# ==============================================================================
# get_db() - Database Session Provider
# ==============================================================================


def test_get_db_yields_session_from_get_session() -> None:
    mock_session = Mock()
    mock_context_manager = MagicMock()
    mock_context_manager.__enter__.return_value = mock_session
    mock_context_manager.__exit__.return_value = None

    with patch("auto_catalog.entrypoints.http.dependencies.get_session") as mock_get_session:
        mock_get_session.return_value = mock_context_manager

        generator = get_db()
        session = next(generator)

        mock_get_session.assert_called_once()
        assert session is mock_session

        # Complete the generator (simulates FastAPI cleanup)
        try:
            next(generator)
        except StopIteration:
            pass

        mock_context_manager.__exit__.assert_called_once()


def test_get_db_creates_new_session_each_call() -> None:
    with patch("auto_catalog.entrypoints.http.dependencies.get_session") as mock_get_session:
        mock_get_session.side_effect = [MagicMock(), MagicMock()]

        next(get_db())
        next(get_db())

        assert mock_get_session.call_count == 2


# ==============================================================================
# Use Case Factories
# ==============================================================================


def test_get_search_listings_use_case_wires_postgres_repository() -> None:
    mock_session = Mock()

    use_case = get_search_listings_use_case(db=mock_session)

    assert isinstance(use_case, SearchListings)
    assert isinstance(use_case._repository, PostgresListingRepository)
    assert use_case._repository._session is mock_session


def test_get_listing_by_id_use_case_creates_fresh_instances() -> None:
    mock_session = Mock()

    first = get_listing_by_id_use_case(db=mock_session)
    second = get_listing_by_id_use_case(db=mock_session)

    assert isinstance(first, GetListingById)
    assert first is not second


def test_sync_status_use_cases_use_configured_stream() -> None:
    statuses = get_sync_status_repository(db=Mock())
    settings = IngestionSettings(stream="auctions-eu")

    get_status = get_sync_status_use_case(statuses=statuses, settings=settings)
    stop = get_request_sync_stop_use_case(statuses=statuses, settings=settings)

    assert isinstance(statuses, PostgresSyncStatusRepository)
    assert isinstance(get_status, GetSyncStatus)
    assert isinstance(stop, RequestSyncStop)
    assert get_status._stream == "auctions-eu"
    assert stop._stream == "auctions-eu"


def test_trigger_sync_schedules_ingestion_job_as_background_task() -> None:
    background_tasks = BackgroundTasks()
    statuses = Mock()
    statuses.get.return_value = SyncStatus(stream="auctions")
    settings = IngestionSettings(policy=IngestionPolicy(stale_after=timedelta(minutes=5)))

    use_case = get_trigger_sync_use_case(
        background_tasks=background_tasks, statuses=statuses, settings=settings
    )
    request = IngestionRequest(max_pages=3)
    accepted, _ = use_case.execute(request)

    assert isinstance(use_case, TriggerSync)
    assert accepted is True
    assert len(background_tasks.tasks) == 1
    task = background_tasks.tasks[0]
    assert task.func is run_ingestion_job
    assert task.args == (request,)
