"""
Property match models.

MatchResult is the in-memory output of the scorer; PropertyMatch is the
record persisted for a client/listing pair.
"""

import math
from datetime import datetime
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field


class MatchResult(NamedTuple):
    """Score in [0, 1] plus human readable reasons, in criterion order."""

    score: float
    reasons: list[str]

    @property
    def percent(self) -> int:
        """Score on the 0-100 scale used for storage, halves rounded up."""
        return math.floor(self.score * 100 + 0.5)


class PropertyMatch(BaseModel):
    """Stored match between a client and a listing."""

    id: Optional[str] = Field(None, description="UUID generated by Supabase")
    user_id: str = Field(..., description="Owning agent")
    client_id: str
    listing_id: str

    match_score: int = Field(..., ge=0, le=100, description="Score scaled to 0-100")
    reasons: list[str] = Field(default_factory=list)

    sent_email_id: Optional[str] = Field(None, description="Email sent for this match")
    is_active: bool = True

    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())

    @property
    def pair_key(self) -> tuple[str, str]:
        return (self.client_id, self.listing_id)

    def to_db_dict(self) -> dict:
        """Convert to a dictionary for insertion in Supabase."""
        return self.model_dump(exclude={"id"})
