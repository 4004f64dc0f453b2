"""
Matching engine between clients and listings.

Implements:
- Match generation: score the agent's active listings for one client and
  store the best ones
- Match listing: stored matches enriched with client and listing
- Bulk outreach: AI-drafted property emails for client x listing pairs
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import structlog

from keymail.analysis import EmailGenerator
from keymail.config import Settings, get_settings
from keymail.database import (
    ClientRepository,
    EmailRepository,
    ListingRepository,
    PropertyMatchRepository,
)
from keymail.exceptions import ForbiddenError, InvalidRequestError, NotFoundError
from keymail.matching.scorer import score_listing
from keymail.models import (
    Client,
    ClientPreferences,
    EmailRecord,
    Listing,
    MatchResult,
    PropertyMatch,
)

logger = structlog.get_logger()


@dataclass
class ScoredListing:
    """A listing together with its score for one client."""

    listing: Listing
    result: MatchResult


@dataclass
class MatchGenerationResult:
    """Outcome of generating matches for a client."""

    client: Client
    matches: list[PropertyMatch]
    total_found: int

    def to_dict(self) -> dict:
        return {
            "matches": [m.model_dump() for m in self.matches],
            "total_found": self.total_found,
            "client": {
                "id": self.client.id,
                "name": self.client.name,
                "preferences": self.client.preferences.summary(),
            },
        }


@dataclass
class EnrichedMatch:
    """Stored match with its client and listing (None when deleted)."""

    match: PropertyMatch
    client: Optional[Client]
    listing: Optional[Listing]


@dataclass
class ClientMatchSummary:
    """Match counters for one client."""

    client: Client
    total_matches: int
    active_matches: int
    best_match_score: int


@dataclass
class BulkOverview:
    """Everything needed to pick recipients for bulk outreach."""

    clients: list[ClientMatchSummary]
    listings: list[Listing]
    total_matches: int
    active_matches: int


@dataclass
class BulkSendResult:
    """Per-pair outcome of a bulk send."""

    results: list[dict] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def successful(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict:
        data = {
            "total_processed": self.successful,
            "successful": self.successful,
            "failed": self.failed,
            "results": self.results,
        }
        if self.errors:
            data["errors"] = self.errors
        return data


def rank_listings(
    preferences: ClientPreferences,
    listings: list[Listing],
    min_score: float,
    limit: Optional[int] = None,
) -> list[ScoredListing]:
    """
    Score listings against preferences and keep the best.

    Only scores strictly above ``min_score`` survive; ties keep listing order.
    """
    scored = [ScoredListing(listing, score_listing(preferences, listing)) for listing in listings]
    scored = [s for s in scored if s.result.score > min_score]
    scored.sort(key=lambda s: s.result.score, reverse=True)
    return scored[:limit] if limit is not None else scored


class MatchingEngine:
    """
    Generates and uses property matches for an agent's clients.

    Repositories and the email generator can be injected; by default the
    Supabase repositories are used and the generator is built on first use.
    """

    def __init__(
        self,
        client_repo: Optional[ClientRepository] = None,
        listing_repo: Optional[ListingRepository] = None,
        match_repo: Optional[PropertyMatchRepository] = None,
        email_repo: Optional[EmailRepository] = None,
        email_generator: Optional[EmailGenerator] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.client_repo = client_repo or ClientRepository()
        self.listing_repo = listing_repo or ListingRepository()
        self.match_repo = match_repo or PropertyMatchRepository()
        self.email_repo = email_repo or EmailRepository()
        self._email_generator = email_generator

    @property
    def email_generator(self) -> EmailGenerator:
        if self._email_generator is None:
            self._email_generator = EmailGenerator()
        return self._email_generator

    def _get_owned_client(self, user_id: str, client_id: str) -> Client:
        client = self.client_repo.get_by_id(client_id)
        if client is None:
            raise NotFoundError("Client not found")
        if client.user_id != user_id:
            raise ForbiddenError("Client belongs to another agent")
        return client

    def generate_matches(
        self,
        user_id: str,
        client_id: str,
        max_matches: Optional[int] = None,
    ) -> MatchGenerationResult:
        """
        Score the agent's active listings for a client and store the best.

        Args:
            user_id: Agent requesting the matches
            client_id: Client to match
            max_matches: Maximum matches to keep (default from settings)

        Returns:
            MatchGenerationResult with the stored matches

        Raises:
            InvalidRequestError: Missing client id or bad limit
            NotFoundError: Unknown client or no active listings
            ForbiddenError: Client owned by another agent
        """
        if not client_id:
            raise InvalidRequestError("Client ID is required")
        if max_matches is None:
            max_matches = self.settings.default_max_matches
        if max_matches < 1:
            raise InvalidRequestError("max_matches must be at least 1")

        client = self._get_owned_client(user_id, client_id)

        listings = self.listing_repo.get_by_user(user_id)
        if not listings:
            raise NotFoundError("No listings found")

        ranked = rank_listings(
            client.preferences,
            listings,
            min_score=self.settings.match_min_score,
            limit=max_matches,
        )

        saved = []
        for item in ranked:
            saved.append(
                self.match_repo.save(
                    PropertyMatch(
                        user_id=user_id,
                        client_id=client_id,
                        listing_id=item.listing.id,
                        match_score=item.result.percent,
                        reasons=item.result.reasons,
                        is_active=True,
                    )
                )
            )

        logger.info(
            "Matches generated",
            user_id=user_id,
            client_id=client_id,
            listings=len(listings),
            saved=len(saved),
        )

        return MatchGenerationResult(client=client, matches=saved, total_found=len(ranked))

    def list_matches(
        self,
        user_id: str,
        client_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list[EnrichedMatch]:
        """Stored matches of an agent with their client and listing."""
        matches = self.match_repo.get_by_user(user_id, client_id=client_id, is_active=is_active)
        return [
            EnrichedMatch(
                match=match,
                client=self.client_repo.get_by_id(match.client_id),
                listing=self.listing_repo.get_by_id(match.listing_id),
            )
            for match in matches
        ]

    def bulk_overview(self, user_id: str, client_id: Optional[str] = None) -> BulkOverview:
        """Clients with match counters, plus the listings available to send."""
        clients = self.client_repo.get_by_user(user_id)
        if client_id:
            clients = [c for c in clients if c.id == client_id]

        listings = self.listing_repo.get_by_user(user_id)
        matches = self.match_repo.get_by_user(user_id, client_id=client_id)

        by_client: dict[str, list[PropertyMatch]] = {}
        for match in matches:
            by_client.setdefault(match.client_id, []).append(match)

        summaries = []
        for client in clients:
            client_matches = by_client.get(client.id, [])
            active = [m for m in client_matches if m.is_active]
            summaries.append(
                ClientMatchSummary(
                    client=client,
                    total_matches=len(client_matches),
                    active_matches=len(active),
                    best_match_score=max((m.match_score for m in active), default=0),
                )
            )

        return BulkOverview(
            clients=summaries,
            listings=listings,
            total_matches=len(matches),
            active_matches=sum(1 for m in matches if m.is_active),
        )

    async def send_bulk(
        self,
        user_id: str,
        client_ids: list[str],
        listing_ids: list[str],
        email_template: Optional[str] = None,
        custom_message: Optional[str] = None,
        tone: str = "professional",
    ) -> BulkSendResult:
        """
        Draft and record property-match emails for client x listing pairs.

        Pairs without a stored match are reported in ``errors``, as are
        pairs whose email could not be generated or stored.

        Raises:
            InvalidRequestError: Empty id lists
            NotFoundError: None of the ids belong to the agent
        """
        if not client_ids:
            raise InvalidRequestError("Client IDs array is required")
        if not listing_ids:
            raise InvalidRequestError("Listing IDs array is required")

        wanted_clients = set(client_ids)
        wanted_listings = set(listing_ids)
        clients = [c for c in self.client_repo.get_by_user(user_id) if c.id in wanted_clients]
        listings = [
            l for l in self.listing_repo.get_by_user(user_id, status=None)
            if l.id in wanted_listings
        ]

        if not clients:
            raise NotFoundError("No clients found")
        if not listings:
            raise NotFoundError("No listings found")

        match_map = {m.pair_key: m for m in self.match_repo.get_by_user(user_id)}

        outcome = BulkSendResult()
        for client in clients:
            for listing in listings:
                match = match_map.get((client.id, listing.id))
                if match is None:
                    outcome.errors.append(
                        f"No match found for client {client.name} and listing {listing.label}"
                    )
                    continue

                try:
                    outcome.results.append(
                        await self._send_match_email(
                            user_id, client, listing, match,
                            email_template=email_template,
                            custom_message=custom_message,
                            tone=tone,
                        )
                    )
                except Exception as e:
                    logger.error(
                        "Error sending match email",
                        client_id=client.id,
                        listing_id=listing.id,
                        error=str(e),
                    )
                    outcome.errors.append(
                        f"Failed to process {client.name} - {listing.label}: {e}"
                    )

        logger.info(
            "Bulk send completed",
            user_id=user_id,
            successful=outcome.successful,
            failed=outcome.failed,
        )
        return outcome

    async def _send_match_email(
        self,
        user_id: str,
        client: Client,
        listing: Listing,
        match: PropertyMatch,
        email_template: Optional[str],
        custom_message: Optional[str],
        tone: str,
    ) -> dict:
        email = await self.email_generator.generate(
            client,
            "property_match",
            tone=tone,
            listing=listing,
            match=match,
            custom_message=custom_message,
            email_template=email_template,
        )

        record = self.email_repo.create(
            EmailRecord(
                user_id=user_id,
                client_id=client.id,
                occasion="property_match",
                subject=email.subject,
                content=email.content,
                status="sent",
                sent_at=datetime.utcnow(),
                metadata={
                    "listing_id": listing.id,
                    "match_score": match.match_score,
                    "match_reasons": match.reasons,
                    "tone": tone,
                    "custom_message": custom_message,
                },
            )
        )

        self.match_repo.update(match.id, {"sent_email_id": record.id})

        return {
            "client_id": client.id,
            "client_name": client.name,
            "listing_id": listing.id,
            "mls_id": listing.mls_id,
            "email_id": record.id,
            "subject": email.subject,
            "match_score": match.match_score,
            "status": "sent",
        }
