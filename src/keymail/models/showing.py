"""
Property showings and milestones: the events that trigger outreach.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from keymail.config import RECURRING_MILESTONE_TYPES, MilestoneType, ShowingStatus


class Showing(BaseModel):
    """A client visit to a listing."""

    id: Optional[str] = Field(None, description="UUID generated by Supabase")
    user_id: str = Field(..., description="Owning agent")
    client_id: str
    listing_id: str

    scheduled_at: datetime
    completed_at: Optional[datetime] = None
    status: ShowingStatus = "scheduled"
    agent_notes: Optional[str] = None
    follow_up_sent: bool = False


class Milestone(BaseModel):
    """
    Date-triggered relationship event (birthday, home anniversary, ...).

    ``next_send_date`` is the day the next greeting is due.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, description="UUID generated by Supabase")
    user_id: str = Field(..., description="Owning agent")
    client_id: str

    type: MilestoneType
    title: str
    # stored in the "date" column
    event_date: date = Field(..., alias="date", description="Date of the original event")
    message: Optional[str] = None

    last_sent: Optional[datetime] = None
    next_send_date: date
    is_active: bool = True
    email_template_id: Optional[str] = None

    @property
    def is_recurring(self) -> bool:
        return self.type in RECURRING_MILESTONE_TYPES
