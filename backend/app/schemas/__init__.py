from .summary import (
    SealedSummary,
    SealSummaryRequest,
    SealSummaryResponse,
    ResolveSummaryRequest,
    ResolvedSummaryResponse,
    StoreSummaryTokenRequest,
    StoreSummaryTokenResponse,
    ClearSummaryTokenResponse,
    ClearAllSummaryTokensResponse,
    StoredTaskListResponse
)
