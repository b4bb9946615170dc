"""
Request schemas for the API.

These define the expected input structure for API endpoints.
Using Pydantic v2 for validation and serialization.
"""

from pydantic import BaseModel, Field

from chatsplit.config.markers import MarkerPair


MAX_TEXT_CHARS = 1_000_000


class AnalyzeRequest(BaseModel):
    """Request to split a pasted transcript into turns."""
    text: str = Field(..., max_length=MAX_TEXT_CHARS, description="Copy-pasted conversation text")
    extra_markers: list[MarkerPair] = Field(
        default_factory=list,
        description="Additional provider marker phrases for this request",
    )
    weight_overrides: dict[str, float] = Field(
        default_factory=dict,
        description="Role rule name to replacement weight",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "text": "You said:\nHow do I reverse a list?\nChatGPT said:\nUse items[::-1].",
                    "extra_markers": [],
                    "weight_overrides": {},
                }
            ]
        }
    }
