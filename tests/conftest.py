"""Pytest fixtures: sample records, in-memory repositories and a scripted LLM."""

from datetime import date, datetime
from typing import Optional

import pytest
from tenacity import wait_none

from keymail.analysis import BaseLLMProvider, EmailGenerator, LLMResponse
from keymail.config import Settings
from keymail.models import (
    Client,
    ClientPreferences,
    EmailRecord,
    EmailTemplate,
    Listing,
    Milestone,
    PropertyMatch,
    Showing,
)

AGENT = "agent-1"
OTHER_AGENT = "agent-2"


class FakeLLMProvider(BaseLLMProvider):
    """Returns queued replies; raises for the first ``failures`` calls."""

    provider_name = "fake"

    def __init__(self, responses: Optional[list[str]] = None, failures: int = 0):
        self.responses = list(responses or [])
        self.failures = failures
        self.calls: list[dict] = []

    async def generate(self, system_prompt, user_prompt, temperature=0.7, max_tokens=1000):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("provider unavailable")
        text = self.responses.pop(0) if self.responses else "SUBJECT: A home for you\n\nHi there!"
        return LLMResponse(
            text=text, model="fake-model", provider=self.provider_name, tokens_used=42
        )


class InMemoryClientRepository:
    def __init__(self, clients=()):
        self.rows = {c.id: c for c in clients}

    def get_by_id(self, client_id):
        return self.rows.get(client_id)

    def get_by_user(self, user_id):
        return sorted(
            (c for c in self.rows.values() if c.user_id == user_id), key=lambda c: c.name
        )


class InMemoryListingRepository:
    def __init__(self, listings=()):
        self.rows = {l.id: l for l in listings}

    def get_by_id(self, listing_id):
        return self.rows.get(listing_id)

    def get_by_user(self, user_id, status="active"):
        return [
            l for l in self.rows.values()
            if l.user_id == user_id and (status is None or l.status == status)
        ]


class InMemoryMatchRepository:
    def __init__(self, matches=()):
        self.rows: dict[str, PropertyMatch] = {m.id: m for m in matches}
        self.saves = 0

    def save(self, match):
        self.saves += 1
        existing = next((m for m in self.rows.values() if m.pair_key == match.pair_key), None)
        match_id = existing.id if existing else f"match-{len(self.rows) + 1}"
        stored = match.model_copy(update={"id": match_id})
        self.rows[match_id] = stored
        return stored

    def get_by_user(self, user_id, client_id=None, is_active=None):
        found = [
            m for m in self.rows.values()
            if m.user_id == user_id
            and (client_id is None or m.client_id == client_id)
            and (is_active is None or m.is_active == is_active)
        ]
        return sorted(found, key=lambda m: m.match_score, reverse=True)

    def update(self, match_id, data):
        if match_id not in self.rows:
            return None
        self.rows[match_id] = self.rows[match_id].model_copy(update=data)
        return self.rows[match_id]


class InMemoryEmailRepository:
    def __init__(self):
        self.created: list[EmailRecord] = []

    def create(self, email):
        stored = email.model_copy(update={"id": f"email-{len(self.created) + 1}"})
        self.created.append(stored)
        return stored


class InMemoryShowingRepository:
    def __init__(self, showings=()):
        self.rows = {s.id: s for s in showings}

    def get_by_id(self, showing_id):
        return self.rows.get(showing_id)

    def get_pending_follow_ups(self, user_id, since):
        return [
            s for s in self.rows.values()
            if s.user_id == user_id
            and s.status == "completed"
            and not s.follow_up_sent
            and s.completed_at is not None
            and s.completed_at >= since
        ]

    def mark_follow_up_sent(self, showing_id):
        self.rows[showing_id] = self.rows[showing_id].model_copy(update={"follow_up_sent": True})
        return self.rows[showing_id]


class InMemoryMilestoneRepository:
    def __init__(self, milestones=()):
        self.rows = {m.id: m for m in milestones}
        self.updates: list[tuple[str, dict]] = []

    def get_by_id(self, milestone_id):
        return self.rows.get(milestone_id)

    def get_due(self, user_id, start, end):
        return sorted(
            (
                m for m in self.rows.values()
                if m.user_id == user_id and m.is_active and start <= m.next_send_date < end
            ),
            key=lambda m: m.next_send_date,
        )

    def update(self, milestone_id, data):
        self.updates.append((milestone_id, data))
        self.rows[milestone_id] = Milestone.model_validate(
            {**self.rows[milestone_id].model_dump(), **data}
        )
        return self.rows[milestone_id]


class InMemoryTemplateRepository:
    def __init__(self, templates=()):
        self.rows = {t.id: t for t in templates}

    def get_by_id(self, template_id):
        return self.rows.get(template_id)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_key="test-key",
        match_min_score=0.3,
        default_max_matches=5,
        follow_up_days_ago=1,
    )


@pytest.fixture
def buyer() -> Client:
    """Client looking for a 2-3 bed condo in Midtown."""
    return Client(
        id="client-1",
        user_id=AGENT,
        name="Jane Buyer",
        email="jane@example.com",
        relationship_level="established",
        years_known=3,
        tags=["first-time buyer"],
        preferences=ClientPreferences(
            price_range_min=500000,
            price_range_max=800000,
            preferred_property_types=["condo"],
            preferred_neighborhoods=["Midtown"],
            min_bedrooms=2,
            max_bedrooms=3,
            min_bathrooms=1,
            max_bathrooms=2,
        ),
    )


@pytest.fixture
def clients(buyer) -> list[Client]:
    return [
        buyer,
        Client(id="client-2", user_id=AGENT, name="Sam Browser", email="sam@example.com"),
        Client(
            id="client-3",
            user_id=OTHER_AGENT,
            name="Other Agent Client",
            email="other@example.com",
            preferences=ClientPreferences(preferred_property_types=["condo"]),
        ),
    ]


@pytest.fixture
def listings() -> list[Listing]:
    return [
        Listing(
            id="listing-1", user_id=AGENT, mls_id="MLS-1", address="1 Main St",
            city="Springfield", price=750000, property_type="condo", neighborhood="Midtown",
            bedrooms=2, bathrooms=2, features=["Modern kitchen", "Pool"],
        ),
        Listing(
            id="listing-2", user_id=AGENT, mls_id="MLS-2", address="2 Oak Ave",
            price=820000, property_type="single_family", neighborhood="Midtown",
            bedrooms=3, bathrooms=2,
        ),
        Listing(
            id="listing-3", user_id=AGENT, mls_id="MLS-3", address="3 Hill Rd",
            price=1200000, property_type="townhouse", neighborhood="Uptown",
            bedrooms=5, bathrooms=4,
        ),
        Listing(
            id="listing-4", user_id=AGENT, mls_id="MLS-4", address="4 Elm St",
            price=700000, property_type="condo", neighborhood="Uptown",
            bedrooms=4, bathrooms=2.5,
        ),
        Listing(
            id="listing-5", user_id=AGENT, mls_id="MLS-5", address="5 Sold Ct",
            price=600000, property_type="condo", neighborhood="Midtown",
            bedrooms=2, bathrooms=1, status="sold",
        ),
        Listing(
            id="listing-6", user_id=OTHER_AGENT, mls_id="MLS-6", address="6 Far Away",
            price=650000, property_type="condo", neighborhood="Midtown",
            bedrooms=2, bathrooms=1,
        ),
    ]


@pytest.fixture
def llm() -> FakeLLMProvider:
    return FakeLLMProvider()


@pytest.fixture
def email_generator(llm) -> EmailGenerator:
    return EmailGenerator(provider=llm, temperature=0.7, max_tokens=1000, retry_wait=wait_none())


@pytest.fixture
def client_repo(clients):
    return InMemoryClientRepository(clients)


@pytest.fixture
def listing_repo(listings):
    return InMemoryListingRepository(listings)


@pytest.fixture
def match_repo():
    return InMemoryMatchRepository()


@pytest.fixture
def email_repo():
    return InMemoryEmailRepository()


@pytest.fixture
def showings() -> list[Showing]:
    return [
        Showing(
            id="showing-1", user_id=AGENT, client_id="client-1", listing_id="listing-1",
            scheduled_at=datetime(2026, 10, 18, 14, 0),
            completed_at=datetime(2026, 10, 18, 15, 0),
            status="completed", agent_notes="Loved the kitchen",
        ),
        Showing(
            id="showing-2", user_id=AGENT, client_id="client-1", listing_id="listing-4",
            scheduled_at=datetime(2026, 10, 10, 10, 0),
            completed_at=datetime(2026, 10, 10, 11, 0),
            status="completed",
        ),
        Showing(
            id="showing-3", user_id=AGENT, client_id="client-2", listing_id="listing-2",
            scheduled_at=datetime(2026, 10, 18, 9, 0),
            completed_at=datetime(2026, 10, 18, 9, 30),
            status="completed", follow_up_sent=True,
        ),
        Showing(
            id="showing-4", user_id=AGENT, client_id="client-2", listing_id="listing-2",
            scheduled_at=datetime(2026, 10, 20, 9, 0),
        ),
    ]


@pytest.fixture
def milestones() -> list[Milestone]:
    return [
        Milestone(
            id="milestone-1", user_id=AGENT, client_id="client-1", type="birthday",
            title="Jane's birthday", event_date=date(1990, 10, 19),
            next_send_date=date(2026, 10, 19),
        ),
        Milestone(
            id="milestone-2", user_id=AGENT, client_id="client-2", type="home_anniversary",
            title="Home anniversary", event_date=date(2021, 10, 20),
            next_send_date=date(2026, 10, 20), email_template_id="template-1",
        ),
        Milestone(
            id="milestone-3", user_id=AGENT, client_id="client-1", type="personal_event",
            title="Wedding", event_date=date(2026, 10, 19), message="Congrats on the big day!",
            next_send_date=date(2026, 10, 19),
        ),
        Milestone(
            id="milestone-4", user_id=AGENT, client_id="client-1", type="birthday",
            title="Inactive", event_date=date(1990, 10, 19),
            next_send_date=date(2026, 10, 19), is_active=False,
        ),
    ]


@pytest.fixture
def templates() -> list[EmailTemplate]:
    return [
        EmailTemplate(
            id="template-1",
            user_id=AGENT,
            name="Home anniversary",
            category="home_anniversary",
            subject="Happy {{years}} years in your home, {{first_name}}!",
            content="Hi {{first_name}},\n\nIt has been {{years}} years since {{milestone_date}}. {{unknown}}",
        )
    ]
