from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from auto_catalog.adapters.checkpoint_document import dump_checkpoint, parse_checkpoint
from auto_catalog.domain.errors import MalformedCheckpointError
from auto_catalog.domain.ingestion import Checkpoint

START = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)
UPDATED = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


def test_dump_uses_camel_case_layout() -> None:
    checkpoint = Checkpoint("run-1", 108999, 21_799_800, START, UPDATED)

    assert dump_checkpoint(checkpoint) == {
        "runId": "run-1",
        "lastPage": 108999,
        "totalProcessed": 21_799_800,
        "startTime": "2026-03-01T08:00:00Z",
        "lastUpdateTime": "2026-03-01T09:30:00Z",
        "emptyStreak": 0,
    }


def test_parse_accepts_json_text() -> None:
    checkpoint = Checkpoint("run-1", 12, 2400, START, UPDATED)

    parsed = parse_checkpoint(json.dumps(dump_checkpoint(checkpoint)))

    assert parsed == checkpoint


def test_empty_streak_survives_a_save_and_load() -> None:
    checkpoint = Checkpoint("run-1", 14, 2400, START, UPDATED, empty_streak=12)

    document = dump_checkpoint(checkpoint)

    assert document["emptyStreak"] == 12
    assert parse_checkpoint(json.dumps(document)).empty_streak == 12


def test_parse_accepts_epoch_milliseconds() -> None:
    parsed = parse_checkpoint(
        {
            "runId": "legacy",
            "lastPage": 3,
            "totalProcessed": 600,
            "startTime": 1772352000000,
            "lastUpdateTime": 1772357400000,
        }
    )

    assert parsed.start_time == START
    assert parsed.last_update_time == UPDATED
    assert parsed.empty_streak == 0


def test_parse_treats_naive_timestamps_as_utc() -> None:
    parsed = parse_checkpoint(
        {
            "runId": "r",
            "lastPage": 0,
            "totalProcessed": 0,
            "startTime": "2026-03-01T08:00:00",
            "lastUpdateTime": "2026-03-01T09:30:00",
        }
    )

    assert parsed.start_time == START


@pytest.mark.parametrize(
    "data",
    [
        "not json",
        b"{",
        {},
        {"runId": "r", "lastPage": -1, "totalProcessed": 0, "startTime": 0, "lastUpdateTime": 0},
        {"runId": "", "lastPage": 1, "totalProcessed": 0, "startTime": 0, "lastUpdateTime": 0},
        {"runId": "r", "lastPage": "x", "totalProcessed": 0, "startTime": 0, "lastUpdateTime": 0},
        {
            "runId": "r",
            "lastPage": 1,
            "totalProcessed": 0,
            "startTime": 0,
            "lastUpdateTime": 0,
            "emptyStreak": -1,
        },
        ["runId"],
        # Epoch values far outside the datetime range
        {"runId": "r", "lastPage": 1, "totalProcessed": 1, "startTime": 1e300, "lastUpdateTime": 0},
        {"runId": "r", "lastPage": 1, "totalProcessed": 1, "startTime": -1e20, "lastUpdateTime": 0},
    ],
)
def test_parse_rejects_malformed_documents(data: object) -> None:
    with pytest.raises(MalformedCheckpointError):
        parse_checkpoint(data)
