"""JSON file checkpoint store.

One file per stream, rewritten atomically (temp file + rename) on every save.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from auto_catalog.adapters.checkpoint_document import dump_checkpoint, parse_checkpoint
from auto_catalog.domain.errors import MalformedCheckpointError
from auto_catalog.domain.ingestion import Checkpoint
from auto_catalog.ports.checkpoint_store import CheckpointStore

logger = logging.getLogger(__name__)

DEFAULT_CHECKPOINT_PATH = "/tmp/sync-checkpoint.json"


class FileCheckpointStore(CheckpointStore):
    def __init__(self, path: str | Path = DEFAULT_CHECKPOINT_PATH) -> None:
        self._base = Path(path)

    def path_for(self, stream: str) -> Path:
        # A path ending in .json names the file directly; otherwise it is a directory
        if self._base.suffix == ".json":
            return self._base
        return self._base / f"{stream}.checkpoint.json"

    def load(self, stream: str) -> Checkpoint | None:
        path = self.path_for(stream)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning(
                "Checkpoint unreadable, starting fresh",
                extra={"stream": stream, "path": str(path), "error": str(exc)},
            )
            return None

        try:
            return parse_checkpoint(raw)
        except MalformedCheckpointError as exc:
            logger.warning(
                "Checkpoint malformed, starting fresh",
                extra={"stream": stream, "path": str(path), "error": exc.message},
            )
            return None

    def save(self, stream: str, checkpoint: Checkpoint) -> None:
        path = self.path_for(stream)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(dump_checkpoint(checkpoint), fh, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self, stream: str) -> None:
        self.path_for(stream).unlink(missing_ok=True)
