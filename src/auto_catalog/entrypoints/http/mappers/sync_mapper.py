from __future__ import annotations

from auto_catalog.domain.ingestion import SyncStatus
from auto_catalog.entrypoints.http.dtos.sync import SyncStatusResponseDTO, SyncTriggerRequestDTO
from auto_catalog.use_cases.run_ingestion import IngestionRequest


class SyncMapper:
    @staticmethod
    def to_domain_request(dto: SyncTriggerRequestDTO) -> IngestionRequest:
        return IngestionRequest(resume=dto.resume, max_pages=dto.max_pages)

    @staticmethod
    def to_response(status: SyncStatus) -> SyncStatusResponseDTO:
        return SyncStatusResponseDTO(
            status=status.status.value,
            total_processed=status.records_processed,
            last_page=status.current_page,
            run_id=status.run_id,
            skipped_records=status.skipped_records,
            last_activity_at=status.last_activity_at,
            completed_at=status.completed_at,
            error_message=status.error_message,
            stop_requested=status.stop_requested,
        )
