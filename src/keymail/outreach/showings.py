"""
Follow-up emails after completed showings.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import structlog

from keymail.analysis import EmailGenerator
from keymail.config import Settings, get_settings
from keymail.database import (
    ClientRepository,
    EmailRepository,
    ListingRepository,
    ShowingRepository,
)
from keymail.exceptions import InvalidRequestError, NotFoundError
from keymail.models import Client, EmailRecord, Listing, Showing

logger = structlog.get_logger()


@dataclass
class PendingFollowUp:
    """Showing waiting for a follow-up, with its client and listing."""

    showing: Showing
    client: Optional[Client]
    listing: Optional[Listing]


class ShowingFollowUpService:
    """Finds completed showings and drafts the follow-up email."""

    def __init__(
        self,
        showing_repo: Optional[ShowingRepository] = None,
        client_repo: Optional[ClientRepository] = None,
        listing_repo: Optional[ListingRepository] = None,
        email_repo: Optional[EmailRepository] = None,
        email_generator: Optional[EmailGenerator] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.showing_repo = showing_repo or ShowingRepository()
        self.client_repo = client_repo or ClientRepository()
        self.listing_repo = listing_repo or ListingRepository()
        self.email_repo = email_repo or EmailRepository()
        self._email_generator = email_generator

    @property
    def email_generator(self) -> EmailGenerator:
        if self._email_generator is None:
            self._email_generator = EmailGenerator()
        return self._email_generator

    def pending_follow_ups(
        self,
        user_id: str,
        days_ago: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[PendingFollowUp]:
        """
        Completed showings from the last ``days_ago`` days without follow-up.

        Args:
            user_id: Owning agent
            days_ago: Look-back window (default from settings)
            now: Reference time (default: current UTC time)
        """
        if days_ago is None:
            days_ago = self.settings.follow_up_days_ago
        if days_ago < 0:
            raise InvalidRequestError("days_ago must not be negative")

        cutoff = (now or datetime.utcnow()) - timedelta(days=days_ago)
        showings = self.showing_repo.get_pending_follow_ups(user_id, since=cutoff)

        return [
            PendingFollowUp(
                showing=showing,
                client=self.client_repo.get_by_id(showing.client_id),
                listing=self.listing_repo.get_by_id(showing.listing_id),
            )
            for showing in showings
        ]

    async def send_follow_up(
        self,
        user_id: str,
        showing_id: str,
        email_template: Optional[str] = None,
        custom_message: Optional[str] = None,
        tone: str = "professional",
        include_feedback_request: bool = True,
    ) -> EmailRecord:
        """
        Draft and record the follow-up email for one showing.

        Raises:
            InvalidRequestError: Missing showing id
            NotFoundError: Unknown showing, or its client/listing is gone
        """
        if not showing_id:
            raise InvalidRequestError("Showing ID is required")

        showing = self.showing_repo.get_by_id(showing_id)
        if showing is None or showing.user_id != user_id:
            raise NotFoundError("Showing not found")

        client = self.client_repo.get_by_id(showing.client_id)
        listing = self.listing_repo.get_by_id(showing.listing_id)
        if client is None or listing is None:
            raise NotFoundError("Client or listing not found")

        email = await self.email_generator.generate(
            client,
            "showing_follow_up",
            tone=tone,
            listing=listing,
            showing=showing,
            custom_message=custom_message,
            email_template=email_template,
            include_feedback_request=include_feedback_request,
        )

        record = self.email_repo.create(
            EmailRecord(
                user_id=user_id,
                client_id=client.id,
                occasion="showing_follow_up",
                subject=email.subject,
                content=email.content,
                status="sent",
                sent_at=datetime.utcnow(),
                metadata={
                    "showing_id": showing.id,
                    "listing_id": listing.id,
                    "tone": tone,
                    "custom_message": custom_message,
                    "include_feedback_request": include_feedback_request,
                },
            )
        )

        self.showing_repo.mark_follow_up_sent(showing.id)
        logger.info("Showing follow-up sent", showing_id=showing.id, email_id=record.id)
        return record
