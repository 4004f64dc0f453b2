"""
Repositories for CRUD operations in Supabase.

Each repository handles one table/entity and returns models, not raw rows.
Every query is scoped by the owning agent where the caller supplies one.
"""

from datetime import date, datetime
from typing import Optional

import structlog

from keymail.database.supabase_client import get_supabase_client, SupabaseClient
from keymail.models import (
    Client,
    EmailRecord,
    EmailTemplate,
    Listing,
    Milestone,
    PropertyMatch,
    Showing,
)

logger = structlog.get_logger()


class BaseRepository:
    """Base class for repositories."""

    TABLE: str = ""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or get_supabase_client()

    @property
    def client(self) -> SupabaseClient:
        return self._client

    def _get_row(self, record_id: str) -> Optional[dict]:
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("id", record_id)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def _update_row(self, record_id: str, data: dict) -> Optional[dict]:
        response = (
            self.client.table(self.TABLE)
            .update(data)
            .eq("id", record_id)
            .execute()
        )
        return response.data[0] if response.data else None


class ClientRepository(BaseRepository):
    """Repository for clients."""

    TABLE = "clients"

    def get_by_id(self, client_id: str) -> Optional[Client]:
        """Fetch a client by UUID."""
        row = self._get_row(client_id)
        return Client.model_validate(row) if row else None

    def get_by_user(self, user_id: str) -> list[Client]:
        """All clients of an agent, by name."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("user_id", user_id)
            .order("name")
            .execute()
        )
        return [Client.model_validate(row) for row in response.data]


class ListingRepository(BaseRepository):
    """Repository for listings."""

    TABLE = "listings"

    def get_by_id(self, listing_id: str) -> Optional[Listing]:
        """Fetch a listing by UUID."""
        row = self._get_row(listing_id)
        return Listing.model_validate(row) if row else None

    def get_by_user(self, user_id: str, status: Optional[str] = "active") -> list[Listing]:
        """
        Listings of an agent.

        Args:
            user_id: Owning agent
            status: Only listings with this status (None = all)
        """
        query = self.client.table(self.TABLE).select("*").eq("user_id", user_id)
        if status is not None:
            query = query.eq("status", status)
        response = query.order("created_at", desc=True).execute()
        return [Listing.model_validate(row) for row in response.data]


class PropertyMatchRepository(BaseRepository):
    """Repository for stored client/listing matches."""

    TABLE = "property_matches"

    def save(self, match: PropertyMatch) -> PropertyMatch:
        """
        Insert or refresh the match for a client/listing pair.

        Returns:
            The stored record
        """
        data = match.to_db_dict()
        data["updated_at"] = datetime.utcnow().isoformat()
        response = (
            self.client.table(self.TABLE)
            .upsert(data, on_conflict="client_id,listing_id")
            .execute()
        )
        logger.info(
            "Property match saved",
            client_id=match.client_id,
            listing_id=match.listing_id,
            score=match.match_score,
        )
        return PropertyMatch.model_validate(response.data[0])

    def get_by_user(
        self,
        user_id: str,
        client_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list[PropertyMatch]:
        """Matches of an agent, best score first."""
        query = self.client.table(self.TABLE).select("*").eq("user_id", user_id)
        if client_id is not None:
            query = query.eq("client_id", client_id)
        if is_active is not None:
            query = query.eq("is_active", is_active)
        response = query.order("match_score", desc=True).execute()
        return [PropertyMatch.model_validate(row) for row in response.data]

    def update(self, match_id: str, data: dict) -> Optional[PropertyMatch]:
        """Update fields of a match."""
        data = {**data, "updated_at": datetime.utcnow().isoformat()}
        row = self._update_row(match_id, data)
        return PropertyMatch.model_validate(row) if row else None


class EmailRepository(BaseRepository):
    """Repository for the email history."""

    TABLE = "email_history"

    def create(self, email: EmailRecord) -> EmailRecord:
        """Store an email."""
        response = self.client.table(self.TABLE).insert(email.to_db_dict()).execute()
        logger.info(
            "Email stored",
            client_id=email.client_id,
            occasion=email.occasion,
            status=email.status,
        )
        return EmailRecord.model_validate(response.data[0])


class TemplateRepository(BaseRepository):
    """Repository for email templates."""

    TABLE = "templates"

    def get_by_id(self, template_id: str) -> Optional[EmailTemplate]:
        """Fetch a template by UUID."""
        row = self._get_row(template_id)
        return EmailTemplate.model_validate(row) if row else None


class ShowingRepository(BaseRepository):
    """Repository for showings."""

    TABLE = "showings"

    def get_by_id(self, showing_id: str) -> Optional[Showing]:
        """Fetch a showing by UUID."""
        row = self._get_row(showing_id)
        return Showing.model_validate(row) if row else None

    def get_pending_follow_ups(self, user_id: str, since: datetime) -> list[Showing]:
        """Completed showings since a date that have no follow-up yet."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("status", "completed")
            .eq("follow_up_sent", False)
            .gte("completed_at", since.isoformat())
            .order("completed_at", desc=True)
            .execute()
        )
        return [Showing.model_validate(row) for row in response.data]

    def mark_follow_up_sent(self, showing_id: str) -> Optional[Showing]:
        """Flag the showing as followed up."""
        row = self._update_row(showing_id, {"follow_up_sent": True})
        return Showing.model_validate(row) if row else None


class MilestoneRepository(BaseRepository):
    """Repository for client milestones."""

    TABLE = "milestones"

    def get_by_id(self, milestone_id: str) -> Optional[Milestone]:
        """Fetch a milestone by UUID."""
        row = self._get_row(milestone_id)
        return Milestone.model_validate(row) if row else None

    def get_due(self, user_id: str, start: date, end: date) -> list[Milestone]:
        """Active milestones with ``start <= next_send_date < end``."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("user_id", user_id)
            .eq("is_active", True)
            .gte("next_send_date", start.isoformat())
            .lt("next_send_date", end.isoformat())
            .order("next_send_date")
            .execute()
        )
        return [Milestone.model_validate(row) for row in response.data]

    def update(self, milestone_id: str, data: dict) -> Optional[Milestone]:
        """Update fields of a milestone."""
        row = self._update_row(milestone_id, data)
        return Milestone.model_validate(row) if row else None
