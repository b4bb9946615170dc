"""API schemas package."""

from .requests import AnalyzeRequest
from .responses import (
    AnalyzeResponse,
    BlockTrace,
    MarkerListResponse,
    MarkerPairResponse,
    SeparatorTrace,
    SignalResponse,
    TraceResponse,
)

__all__ = [
    # Requests
    "AnalyzeRequest",
    # Responses
    "AnalyzeResponse",
    "BlockTrace",
    "MarkerListResponse",
    "MarkerPairResponse",
    "SeparatorTrace",
    "SignalResponse",
    "TraceResponse",
]
