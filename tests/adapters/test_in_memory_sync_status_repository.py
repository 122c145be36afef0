from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

from auto_catalog.adapters.in_memory_sync_status_repository import InMemorySyncStatusRepository
from auto_catalog.domain.ingestion import RunStatus

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
STALE_AFTER = timedelta(minutes=3)


def test_get_unknown_stream_is_idle() -> None:
    status = InMemorySyncStatusRepository().get("auctions")

    assert status.status is RunStatus.IDLE
    assert status.records_processed == 0


def test_try_start_claims_idle_stream() -> None:
    repo = InMemorySyncStatusRepository()

    started = repo.try_start("auctions", "run-1", NOW, STALE_AFTER)

    assert started is not None
    assert started.status is RunStatus.RUNNING
    assert started.run_id == "run-1"
    assert started.started_at == NOW


def test_try_start_refuses_live_run() -> None:
    repo = InMemorySyncStatusRepository()
    repo.try_start("auctions", "run-1", NOW, STALE_AFTER)

    assert repo.try_start("auctions", "run-2", NOW + timedelta(minutes=1), STALE_AFTER) is None
    assert repo.get("auctions").run_id == "run-1"


def test_try_start_takes_over_stale_run() -> None:
    repo = InMemorySyncStatusRepository()
    repo.try_start("auctions", "run-1", NOW, STALE_AFTER)

    started = repo.try_start("auctions", "run-2", NOW + timedelta(minutes=5), STALE_AFTER)

    assert started is not None
    assert started.run_id == "run-2"


def test_only_one_of_many_concurrent_starts_wins() -> None:
    repo = InMemorySyncStatusRepository()
    barrier = threading.Barrier(8)
    winners: list[str] = []

    def start(run_id: str) -> None:
        barrier.wait()
        if repo.try_start("auctions", run_id, NOW, STALE_AFTER) is not None:
            winners.append(run_id)

    threads = [threading.Thread(target=start, args=(f"run-{i}",)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(winners) == 1


def test_heartbeat_and_finish_ignore_foreign_run() -> None:
    repo = InMemorySyncStatusRepository()
    repo.try_start("auctions", "run-1", NOW, STALE_AFTER)

    owned = repo.heartbeat(
        "auctions", "other", current_page=9, records_processed=9, skipped_records=0, now=NOW
    )
    repo.finish(
        "auctions",
        "other",
        status=RunStatus.FAILED,
        current_page=9,
        records_processed=9,
        skipped_records=0,
        now=NOW,
    )

    status = repo.get("auctions")
    assert status.status is RunStatus.RUNNING
    assert status.current_page == 0
    assert owned is False


def test_finish_completed_sets_completed_at_and_clears_stop() -> None:
    repo = InMemorySyncStatusRepository()
    repo.try_start("auctions", "run-1", NOW, STALE_AFTER)
    repo.request_stop("auctions")
    done = NOW + timedelta(minutes=10)

    repo.finish(
        "auctions",
        "run-1",
        status=RunStatus.COMPLETED,
        current_page=40,
        records_processed=8000,
        skipped_records=2,
        now=done,
    )

    status = repo.get("auctions")
    assert status.status is RunStatus.COMPLETED
    assert status.completed_at == done
    assert status.records_processed == 8000
    assert status.stop_requested is False


def test_request_stop_sets_flag() -> None:
    repo = InMemorySyncStatusRepository()

    status = repo.request_stop("auctions")

    assert status.stop_requested is True
    assert repo.is_stop_requested("auctions") is True
    assert repo.is_stop_requested("other") is False


def test_try_start_clears_previous_stop_request() -> None:
    repo = InMemorySyncStatusRepository()
    repo.request_stop("auctions")

    repo.try_start("auctions", "run-1", NOW, STALE_AFTER)

    assert repo.is_stop_requested("auctions") is False


def test_heartbeat_reports_ownership_lost_after_takeover() -> None:
    repo = InMemorySyncStatusRepository()
    repo.try_start("auctions", "run-1", NOW, STALE_AFTER)
    later = NOW + timedelta(minutes=10)
    repo.try_start("auctions", "run-2", later, STALE_AFTER)

    assert (
        repo.heartbeat(
            "auctions", "run-1", current_page=3, records_processed=600, skipped_records=0, now=later
        )
        is False
    )
    assert (
        repo.heartbeat(
            "auctions", "run-2", current_page=1, records_processed=200, skipped_records=0, now=later
        )
        is True
    )
    assert repo.get("auctions").current_page == 1
