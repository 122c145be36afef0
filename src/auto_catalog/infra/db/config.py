from __future__ import annotations

import os

from auto_catalog.infra.settings import int_env


def database_url() -> str:
    url = os.getenv("DATABASE_URL")

    if not url:
        raise RuntimeError("DATABASE_URL environment variable is not set")

    # SQLAlchemy 2.x rejects the bare 'postgres://' scheme that hosted providers hand out
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+psycopg://", 1)

    return url


def pool_options() -> dict[str, int]:
    return {
        "pool_size": int_env("DB_POOL_SIZE", 10),
        "max_overflow": int_env("DB_MAX_OVERFLOW", 20),
        "pool_recycle": int_env("DB_POOL_RECYCLE_S", 3600),
    }
