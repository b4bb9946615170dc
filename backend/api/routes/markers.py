"""
Markers Route

Lists the role-marker phrases the analyzer recognizes, so the UI can
tell users which providers are detected exactly.
"""

from fastapi import APIRouter

from backend.api.schemas import MarkerListResponse, MarkerPairResponse
from chatsplit.config.markers import BUILTIN_MARKERS

router = APIRouter()


@router.get("/markers", response_model=MarkerListResponse)
async def list_markers() -> MarkerListResponse:
    """Return the built-in marker table."""
    markers = [
        MarkerPairResponse(
            provider=pair.provider,
            locale=pair.locale,
            user=pair.user,
            assistant=pair.assistant,
        )
        for pair in BUILTIN_MARKERS
    ]
    return MarkerListResponse(markers=markers, count=len(markers))
