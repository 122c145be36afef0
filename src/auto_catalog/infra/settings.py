"""Environment-driven settings for the upstream source and the ingestion loop.

Malformed numeric values fall back to their defaults rather than failing
process start-up; required values (API base URL) fail loudly when used.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta

from auto_catalog.domain.ingestion import IngestionPolicy


def int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def optional_float_env(name: str, default: float | None) -> float | None:
    raw = os.getenv(name)
    if raw is None:
        return default
    if not raw.strip() or raw.strip().lower() in {"none", "off", "0"}:
        return None
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True, slots=True)
class SourceSettings:
    base_url: str
    api_key: str | None = None
    per_page: int = 200
    request_timeout_s: float = 30.0
    user_agent: str = "AutoCatalog-Sync/1.0"

    @classmethod
    def from_env(cls) -> SourceSettings:
        base_url = os.getenv("AUCTIONS_API_BASE_URL")
        if not base_url:
            raise RuntimeError("AUCTIONS_API_BASE_URL environment variable is not set")

        return cls(
            base_url=base_url.rstrip("/"),
            api_key=os.getenv("AUCTIONS_API_KEY") or None,
            per_page=int_env("SYNC_PER_PAGE", 200),
            request_timeout_s=float_env("SYNC_REQUEST_TIMEOUT_S", 30.0),
            user_agent=os.getenv("SYNC_USER_AGENT", "AutoCatalog-Sync/1.0"),
        )


@dataclass(frozen=True, slots=True)
class IngestionSettings:
    stream: str = "auctions"
    checkpoint_path: str | None = None
    policy: IngestionPolicy = IngestionPolicy()

    @classmethod
    def from_env(cls) -> IngestionSettings:
        policy = IngestionPolicy(
            checkpoint_max_age=timedelta(seconds=int_env("SYNC_CHECKPOINT_MAX_AGE_S", 24 * 3600)),
            empty_page_threshold=int_env("SYNC_EMPTY_PAGE_THRESHOLD", 20),
            page_floor=int_env("SYNC_PAGE_FLOOR", 5000),
            page_lookahead=int_env("SYNC_PAGE_LOOKAHEAD", 5000),
            max_fetch_retries=int_env("SYNC_MAX_FETCH_RETRIES", 3),
            backoff_base_s=float_env("SYNC_BACKOFF_BASE_S", 1.0),
            backoff_max_s=float_env("SYNC_BACKOFF_MAX_S", 15.0),
            upsert_batch_size=int_env("SYNC_UPSERT_BATCH_SIZE", 1000),
            completion_threshold=optional_float_env("SYNC_COMPLETION_THRESHOLD", 0.95),
            stale_after=timedelta(seconds=int_env("SYNC_STALE_AFTER_S", 180)),
            max_run_seconds=optional_float_env("SYNC_MAX_RUN_SECONDS", None),
        )
        policy.validate()

        return cls(
            stream=os.getenv("SYNC_STREAM", "auctions"),
            checkpoint_path=os.getenv("SYNC_CHECKPOINT_PATH") or None,
            policy=policy,
        )
