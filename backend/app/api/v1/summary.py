"""
Chat summary token endpoints
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status

from app.core.summary_seal import InvalidSummaryInput, is_valid_task_id
from app.schemas.summary import (
    SealSummaryRequest,
    SealSummaryResponse,
    ResolveSummaryRequest,
    ResolvedSummaryResponse,
    StoreSummaryTokenRequest,
    StoreSummaryTokenResponse,
    ClearSummaryTokenResponse,
    ClearAllSummaryTokensResponse,
    StoredTaskListResponse,
)
from app.services.summary import (
    SummaryResolution,
    SummarySecretMissing,
    SummaryService,
    get_summary_service,
)
from app.utils.deps import get_current_user_id
from app.utils.responses import AsciiJSONResponse

logger = logging.getLogger(__name__)

router = APIRouter(default_response_class=AsciiJSONResponse)


def _check_task_id(task_id: str):
    if not is_valid_task_id(task_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid task id"
        )


def _summaries_unavailable() -> HTTPException:
    logger.error("SUMMARY_SECRET is not configured; summary tokens are disabled")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Summary tokens are not configured"
    )


def _to_response(resolution: SummaryResolution) -> ResolvedSummaryResponse:
    # Rejection reasons stay in the server logs
    if not resolution.valid:
        return ResolvedSummaryResponse(valid=False)
    return ResolvedSummaryResponse(
        valid=True,
        summary=resolution.payload.summary,
        issuedAtMs=resolution.payload.issued_at_ms
    )


@router.post("/seal", response_model=SealSummaryResponse)
async def seal(
    request: SealSummaryRequest,
    user_id: str = Depends(get_current_user_id),
    service: SummaryService = Depends(get_summary_service)
):
    """Seal a summary for the current user and task"""
    _check_task_id(request.task_id)
    try:
        token = await service.issue(user_id, request.task_id, request.summary, store=request.store)
    except SummarySecretMissing:
        raise _summaries_unavailable()
    except InvalidSummaryInput as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return SealSummaryResponse(token=token)


@router.post("/resolve", response_model=ResolvedSummaryResponse)
async def resolve(
    request: ResolveSummaryRequest,
    user_id: str = Depends(get_current_user_id),
    service: SummaryService = Depends(get_summary_service)
):
    """Resolve a replayed token; anything untrusted comes back as no summary"""
    _check_task_id(request.task_id)
    try:
        resolution = service.resolve(user_id, request.task_id, request.token)
    except SummarySecretMissing:
        raise _summaries_unavailable()
    return _to_response(resolution)


@router.get("/tasks", response_model=StoredTaskListResponse)
async def list_stored_tasks(
    user_id: str = Depends(get_current_user_id),
    service: SummaryService = Depends(get_summary_service)
):
    """List task ids that have a stored summary token"""
    return StoredTaskListResponse(taskIds=await service.list_stored_task_ids(user_id))


@router.get("/tasks/{task_id}", response_model=ResolvedSummaryResponse)
async def get_stored_summary(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    service: SummaryService = Depends(get_summary_service)
):
    _check_task_id(task_id)
    try:
        resolution = await service.resolve_stored(user_id, task_id)
    except SummarySecretMissing:
        raise _summaries_unavailable()
    return _to_response(resolution)


@router.put("/tasks/{task_id}", response_model=StoreSummaryTokenResponse)
async def store_summary_token(
    task_id: str,
    request: StoreSummaryTokenRequest,
    user_id: str = Depends(get_current_user_id),
    service: SummaryService = Depends(get_summary_service)
):
    """Store a token for a task; tokens that don't verify are ignored"""
    _check_task_id(task_id)
    try:
        stored = await service.store_token(user_id, task_id, request.token)
    except SummarySecretMissing:
        raise _summaries_unavailable()
    return StoreSummaryTokenResponse(stored=stored)


@router.delete("/tasks/{task_id}", response_model=ClearSummaryTokenResponse)
async def clear_summary_token(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    service: SummaryService = Depends(get_summary_service)
):
    _check_task_id(task_id)
    return ClearSummaryTokenResponse(cleared=await service.clear_stored(user_id, task_id))


@router.delete("/tasks", response_model=ClearAllSummaryTokensResponse)
async def clear_all_summary_tokens(
    user_id: str = Depends(get_current_user_id),
    service: SummaryService = Depends(get_summary_service)
):
    return ClearAllSummaryTokensResponse(cleared=await service.clear_all_stored(user_id))
