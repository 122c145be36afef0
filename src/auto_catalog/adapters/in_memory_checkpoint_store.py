from __future__ import annotations

from auto_catalog.domain.ingestion import Checkpoint
from auto_catalog.ports.checkpoint_store import CheckpointStore


class InMemoryCheckpointStore(CheckpointStore):
    """Checkpoint store for tests; keeps every saved version for inspection."""

    def __init__(self, checkpoints: dict[str, Checkpoint] | None = None) -> None:
        self._checkpoints: dict[str, Checkpoint] = dict(checkpoints or {})
        self.history: list[Checkpoint] = []

    def load(self, stream: str) -> Checkpoint | None:
        return self._checkpoints.get(stream)

    def save(self, stream: str, checkpoint: Checkpoint) -> None:
        self._checkpoints[stream] = checkpoint
        self.history.append(checkpoint)

    def clear(self, stream: str) -> None:
        self._checkpoints.pop(stream, None)
