"""
Pydantic schemas for sealed chat summaries
"""
from typing import List, Literal, Optional, Union
from pydantic import BaseModel, Field


class SealedSummary(BaseModel):
    """Payload carried inside a sealed summary token.

    Field aliases are the wire names used in the token JSON.
    """
    version: Literal[1] = Field(1, alias="v")
    user_id: str = Field(..., alias="uid")
    task_id: str = Field(..., alias="taskId")
    summary: str
    issued_at_ms: Union[int, float] = Field(..., alias="ts")

    class Config:
        frozen = True
        populate_by_name = True


class SealSummaryRequest(BaseModel):
    """Request to seal a new summary for the current user"""
    task_id: str = Field(..., min_length=1, max_length=64, alias="taskId")
    summary: str = Field("", max_length=50000)
    store: bool = False

    class Config:
        populate_by_name = True


class SealSummaryResponse(BaseModel):
    token: str


class ResolveSummaryRequest(BaseModel):
    task_id: str = Field(..., min_length=1, max_length=64, alias="taskId")
    token: Optional[str] = None

    class Config:
        populate_by_name = True


class ResolvedSummaryResponse(BaseModel):
    """A resolved summary; invalid tokens come back as an empty summary"""
    valid: bool
    summary: str = ""
    issued_at_ms: Optional[Union[int, float]] = Field(None, alias="issuedAtMs")

    class Config:
        populate_by_name = True


class StoreSummaryTokenRequest(BaseModel):
    token: str = Field(..., min_length=1)


class StoreSummaryTokenResponse(BaseModel):
    stored: bool


class ClearSummaryTokenResponse(BaseModel):
    cleared: bool


class ClearAllSummaryTokensResponse(BaseModel):
    cleared: int


class StoredTaskListResponse(BaseModel):
    task_ids: List[str] = Field(default_factory=list, alias="taskIds")

    class Config:
        populate_by_name = True
