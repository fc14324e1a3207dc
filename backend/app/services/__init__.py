from .summary import SummaryService, SummaryResolution
from .summary_store import SummaryTokenStore

__all__ = ["SummaryService", "SummaryResolution", "SummaryTokenStore"]
