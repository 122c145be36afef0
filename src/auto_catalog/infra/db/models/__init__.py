from auto_catalog.infra.db.models.base import Base
from auto_catalog.infra.db.models.listing import ListingRow
from auto_catalog.infra.db.models.sync import IngestionCheckpointRow, SyncStatusRow

__all__ = ["Base", "IngestionCheckpointRow", "ListingRow", "SyncStatusRow"]
