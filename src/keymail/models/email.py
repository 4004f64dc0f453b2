"""
Email history and generated drafts.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from keymail.config import EmailStatus


@dataclass
class GeneratedEmail:
    """Subject and body produced by the LLM or a template."""

    subject: str
    content: str


@dataclass
class EmailAnalysis:
    """Tone review of an email draft."""

    sentiment: str
    formality: str
    suggestions: list[str]


class EmailRecord(BaseModel):
    """An email in the agent's history."""

    id: Optional[str] = Field(None, description="UUID generated by Supabase")
    user_id: str = Field(..., description="Owning agent")
    client_id: str

    occasion: str = Field(..., description="property_match, showing_follow_up, milestone_*, ...")
    subject: str
    content: str

    status: EmailStatus = "draft"
    metadata: dict = Field(default_factory=dict, description="Generation context")

    scheduled_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())

    def to_db_dict(self) -> dict:
        """Convert to a dictionary for insertion in Supabase."""
        return self.model_dump(mode="json", exclude={"id"})
