from fastapi import APIRouter, Depends, Response, status

from auto_catalog.entrypoints.http.dependencies import (
    get_request_sync_stop_use_case,
    get_sync_status_use_case,
    get_trigger_sync_use_case,
)
from auto_catalog.entrypoints.http.dtos.sync import SyncStatusResponseDTO, SyncTriggerRequestDTO
from auto_catalog.entrypoints.http.error_responses import ErrorResponse
from auto_catalog.entrypoints.http.mappers.sync_mapper import SyncMapper
from auto_catalog.use_cases.sync_status import GetSyncStatus, RequestSyncStop, TriggerSync


router = APIRouter(tags=["Sync"])


@router.post(
    "/sync",
    response_model=SyncStatusResponseDTO,
    response_model_by_alias=True,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Start or resume ingestion",
    description="""
    Schedule one ingestion invocation in the background.

    - `resume=true` continues from a checkpoint younger than 24 hours
    - `resume=false` discards the checkpoint and starts at page 1
    - `maxPages` pauses the run after that many pages; call again to continue

    Answers 200 with the current record when a run is already in progress.
    """,
    responses={
        200: {"description": "A run is already in progress"},
        422: {"description": "Invalid request", "model": ErrorResponse},
    },
)
def trigger_sync(
    response: Response,
    body: SyncTriggerRequestDTO | None = None,
    use_case: TriggerSync = Depends(get_trigger_sync_use_case),
) -> SyncStatusResponseDTO:
    accepted, current = use_case.execute(
        SyncMapper.to_domain_request(body or SyncTriggerRequestDTO())
    )
    if not accepted:
        response.status_code = status.HTTP_200_OK
    return SyncMapper.to_response(current)


@router.get(
    "/sync",
    response_model=SyncStatusResponseDTO,
    response_model_by_alias=True,
    summary="Current ingestion status",
)
def get_sync_status(
    use_case: GetSyncStatus = Depends(get_sync_status_use_case),
) -> SyncStatusResponseDTO:
    return SyncMapper.to_response(use_case.execute())


@router.post(
    "/sync/stop",
    response_model=SyncStatusResponseDTO,
    response_model_by_alias=True,
    summary="Stop ingestion at the next page boundary",
)
def stop_sync(
    use_case: RequestSyncStop = Depends(get_request_sync_stop_use_case),
) -> SyncStatusResponseDTO:
    return SyncMapper.to_response(use_case.execute())
