"""
Milestone greetings (birthdays, home anniversaries, ...).

A milestone is due when its ``next_send_date`` arrives. Sending records
the email and rolls recurring milestones over to next year.
"""

from datetime import date, datetime, timedelta
from typing import Optional

import structlog

from keymail.analysis import EmailGenerator
from keymail.database import (
    ClientRepository,
    EmailRepository,
    MilestoneRepository,
    TemplateRepository,
)
from keymail.exceptions import ForbiddenError, InvalidRequestError, NotFoundError
from keymail.models import Client, EmailRecord, GeneratedEmail, Milestone

logger = structlog.get_logger()


def _in_year(event_date: date, year: int) -> date:
    try:
        return event_date.replace(year=year)
    except ValueError:
        # Feb 29 in a non-leap year
        return date(year, 2, 28)


def next_occurrence(event_date: date, today: date) -> date:
    """Next yearly recurrence of ``event_date`` on or after ``today``."""
    candidate = _in_year(event_date, today.year)
    if candidate < today:
        candidate = _in_year(event_date, today.year + 1)
    return candidate


def template_context(client: Client, milestone: Milestone, today: date) -> dict:
    """Values available to ``{{placeholders}}`` in milestone templates."""
    years = today.year - milestone.event_date.year
    return {
        "client_name": client.name,
        "first_name": (client.name.split() or [client.name])[0],
        "client_email": client.email,
        "milestone_title": milestone.title,
        "milestone_date": milestone.event_date.strftime("%B %d"),
        "years": years if years > 0 else None,
        "message": milestone.message,
    }


class MilestoneService:
    """Lists due milestones and sends their greetings."""

    def __init__(
        self,
        milestone_repo: Optional[MilestoneRepository] = None,
        client_repo: Optional[ClientRepository] = None,
        template_repo: Optional[TemplateRepository] = None,
        email_repo: Optional[EmailRepository] = None,
        email_generator: Optional[EmailGenerator] = None,
    ):
        self.milestone_repo = milestone_repo or MilestoneRepository()
        self.client_repo = client_repo or ClientRepository()
        self.template_repo = template_repo or TemplateRepository()
        self.email_repo = email_repo or EmailRepository()
        self._email_generator = email_generator

    @property
    def email_generator(self) -> EmailGenerator:
        if self._email_generator is None:
            self._email_generator = EmailGenerator()
        return self._email_generator

    def due(self, user_id: str, today: Optional[date] = None, days: int = 1) -> list[Milestone]:
        """Active milestones due in ``[today, today + days)``."""
        if days < 1:
            raise InvalidRequestError("days must be at least 1")
        today = today or date.today()
        return self.milestone_repo.get_due(user_id, today, today + timedelta(days=days))

    async def _compose(self, client: Client, milestone: Milestone, today: date) -> GeneratedEmail:
        if milestone.email_template_id:
            template = self.template_repo.get_by_id(milestone.email_template_id)
            if template is not None:
                return template.render(template_context(client, milestone, today))
            logger.warning(
                "Milestone template not found, falling back to AI",
                milestone_id=milestone.id,
                template_id=milestone.email_template_id,
            )

        additional_context = f"Milestone: {milestone.title}. {milestone.message or ''}".strip()
        return await self.email_generator.generate(
            client,
            f"milestone_{milestone.type}",
            tone="warm",
            style="personal",
            length="medium",
            additional_context=additional_context,
        )

    async def send(
        self,
        user_id: str,
        milestone_id: str,
        today: Optional[date] = None,
    ) -> EmailRecord:
        """
        Send the greeting for a milestone and schedule the next one.

        Raises:
            InvalidRequestError: Missing id or inactive milestone
            NotFoundError: Unknown milestone or client
            ForbiddenError: Milestone owned by another agent
        """
        if not milestone_id:
            raise InvalidRequestError("Milestone ID is required")

        milestone = self.milestone_repo.get_by_id(milestone_id)
        if milestone is None:
            raise NotFoundError("Milestone not found")
        if milestone.user_id != user_id:
            raise ForbiddenError("Milestone belongs to another agent")
        if not milestone.is_active:
            raise InvalidRequestError("Milestone is not active")

        client = self.client_repo.get_by_id(milestone.client_id)
        if client is None:
            raise NotFoundError("Client not found")

        today = today or date.today()
        email = await self._compose(client, milestone, today)

        record = self.email_repo.create(
            EmailRecord(
                user_id=user_id,
                client_id=client.id,
                occasion=f"milestone_{milestone.type}",
                subject=email.subject,
                content=email.content,
                status="sent",
                sent_at=datetime.utcnow(),
                metadata={
                    "milestone_id": milestone.id,
                    "milestone_type": milestone.type,
                    "template_id": milestone.email_template_id,
                    "custom_message": milestone.message,
                },
            )
        )

        update: dict = {"last_sent": datetime.utcnow().isoformat()}
        if milestone.is_recurring:
            after = max(today, milestone.next_send_date) + timedelta(days=1)
            update["next_send_date"] = next_occurrence(milestone.event_date, after).isoformat()
        else:
            update["is_active"] = False
        self.milestone_repo.update(milestone.id, update)

        logger.info(
            "Milestone email sent",
            milestone_id=milestone.id,
            client_id=client.id,
            next_send_date=update.get("next_send_date"),
        )
        return record
