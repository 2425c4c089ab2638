# src/trailpost/schemas/reaction.py
"""Reaction toggle schemas."""

from pydantic import BaseModel, Field


class ToggleResponse(BaseModel):
    """Outcome of a like, bookmark or follow toggle."""

    active: bool = Field(..., description="Whether the edge exists after the call")
    count: int = Field(..., ge=0, description="Counter value on the target after the call")
