"""Models for analyzed conversation turns."""

from typing import Optional

from pydantic import BaseModel, Field

from .enums import ArtifactTag, IntentTag, Role, SegmentationMode


class Turn(BaseModel):
    """One attributed, annotated unit of conversation text."""

    role: Role = Field(..., description="Resolved speaker, never unknown")
    text: str = Field(..., description="Cleaned turn text without marker lines")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Certainty of the role")
    intent: list[IntentTag] = Field(
        default_factory=list, description="Intent tags, duplicate-free"
    )
    topic: list[str] = Field(
        default_factory=list, description="Technology/domain tags, duplicate-free"
    )
    artifact: list[ArtifactTag] = Field(
        default_factory=list, description="Content-type tags, duplicate-free"
    )
    group_id: int = Field(default=0, ge=0, description="Topical group this turn belongs to")
    start: int = Field(..., ge=0, description="Start offset of the source block")
    end: int = Field(..., ge=0, description="End offset (exclusive) of the source block")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "role": "user",
                    "text": "How do I undo the last git commit?",
                    "confidence": 0.82,
                    "intent": ["question"],
                    "topic": ["git"],
                    "artifact": [],
                    "group_id": 0,
                    "start": 0,
                    "end": 34,
                }
            ]
        }
    }


class TurnGroup(BaseModel):
    """A run of adjacent turns about the same subject."""

    group_id: int = Field(..., ge=0, description="Sequential group identifier")
    start_turn: int = Field(..., ge=0, description="Index of the first turn in the group")
    end_turn: int = Field(..., ge=0, description="Index of the last turn in the group")
    topics: dict[str, int] = Field(default_factory=dict, description="Topic tag counts")
    intents: dict[str, int] = Field(default_factory=dict, description="Intent tag counts")


class AnalysisResult(BaseModel):
    """Complete output of one analyze call."""

    turns: list[Turn] = Field(default_factory=list, description="Turns in transcript order")
    groups: list[TurnGroup] = Field(default_factory=list, description="Topical turn groups")
    mode: SegmentationMode = Field(
        default=SegmentationMode.EMPTY, description="Segmentation algorithm used"
    )
    marker_count: int = Field(default=0, ge=0, description="Role markers detected")
    fence_count: int = Field(default=0, ge=0, description="Fenced code regions detected")
    provider: Optional[str] = Field(
        default=None, description="Chat UI the transcript most likely came from"
    )
    provider_confidence: float = Field(
        default=0.0, ge=0.0, le=1.0, description="Certainty of the provider guess"
    )
