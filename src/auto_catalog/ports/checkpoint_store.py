from __future__ import annotations

from abc import ABC, abstractmethod

from auto_catalog.domain.ingestion import Checkpoint


class CheckpointStore(ABC):
    """
    Durable ingestion progress, one document per stream.

    ``load`` fails soft: missing or malformed state returns None.
    """

    @abstractmethod
    def load(self, stream: str) -> Checkpoint | None: ...

    @abstractmethod
    def save(self, stream: str, checkpoint: Checkpoint) -> None: ...

    @abstractmethod
    def clear(self, stream: str) -> None: ...
