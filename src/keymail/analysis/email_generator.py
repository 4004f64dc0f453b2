"""
AI-assisted email drafting for real estate agents.

Builds prompts from client facts plus optional property, match and
showing context, and parses the model's ``SUBJECT: ...`` reply into a
subject and body.
"""

import re
from typing import Optional

import structlog
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from keymail.analysis.llm_providers import BaseLLMProvider, get_llm_provider
from keymail.config import get_settings
from keymail.exceptions import EmailGenerationError
from keymail.models import (
    Client,
    EmailAnalysis,
    GeneratedEmail,
    Listing,
    PropertyMatch,
    Showing,
)

logger = structlog.get_logger()


WRITER_SYSTEM_PROMPT = """You are an expert email writer for real estate agents.
Your task is to write personalized, engaging emails to clients.
Use the provided client information to create a customized email that feels personal and genuine.
The email should be appropriate for the specified occasion and adhere to the requested tone, style, and length."""

EDITOR_SYSTEM_PROMPT = """You are an expert email editor for real estate agents.
Your task is to improve the provided email based on specific improvement requests.
Maintain the original intent and tone of the email while making the requested enhancements."""

ANALYST_SYSTEM_PROMPT = (
    "Analyze the following email for sentiment, formality, and provide suggestions "
    "for improvement. Focus on tone, clarity, and personalization. Answer with the lines "
    "'Sentiment: ...', 'Formality: ...' and 'Suggestions:' followed by a dash list."
)

RESPONSE_FORMAT = """Format your response as:
SUBJECT: [Your subject line]

[Email content]"""

DEFAULT_SUBJECT = "No subject generated"

SUBJECT_PATTERN = re.compile(r"^\s*SUBJECT:[ \t]*(.*)$", re.IGNORECASE | re.MULTILINE)
SENTIMENT_PATTERN = re.compile(r"sentiment:?[ \t]*(.*)", re.IGNORECASE)
FORMALITY_PATTERN = re.compile(r"formality:?[ \t]*(.*)", re.IGNORECASE)
SUGGESTIONS_PATTERN = re.compile(r"suggestions:?\s*([\s\S]*)", re.IGNORECASE)


def _strip_code_fence(text: str) -> str:
    text = (text or "").strip()
    if text.startswith("```"):
        parts = text.split("```")
        if len(parts) >= 2:
            text = parts[1].strip()
    return text


def parse_subject_and_body(text: str, fallback_subject: str = DEFAULT_SUBJECT) -> GeneratedEmail:
    """
    Split a ``SUBJECT: ...`` reply into subject and body.

    The first SUBJECT line wins; everything else is the body.
    """
    text = _strip_code_fence(text)
    match = SUBJECT_PATTERN.search(text)
    if not match or not match.group(1).strip():
        body = SUBJECT_PATTERN.sub("", text, count=1) if match else text
        return GeneratedEmail(subject=fallback_subject, content=body.strip())

    subject = match.group(1).strip()
    body = text[: match.start()] + text[match.end():]
    return GeneratedEmail(subject=subject, content=body.strip())


def parse_analysis(text: str) -> EmailAnalysis:
    """Read sentiment, formality and suggestions from a free-form review."""
    sentiment = SENTIMENT_PATTERN.search(text or "")
    formality = FORMALITY_PATTERN.search(text or "")
    suggestions_block = SUGGESTIONS_PATTERN.search(text or "")

    suggestions: list[str] = []
    if suggestions_block:
        for item in re.split(r"\n\s*-|\n\s*\d+\.", "\n" + suggestions_block.group(1)):
            item = item.strip().lstrip("-").strip()
            if item:
                suggestions.append(item)

    return EmailAnalysis(
        sentiment=sentiment.group(1).strip() if sentiment and sentiment.group(1).strip() else "neutral",
        formality=formality.group(1).strip() if formality and formality.group(1).strip() else "neutral",
        suggestions=suggestions or ["No specific suggestions."],
    )


class EmailGenerator:
    """Drafts, edits and reviews client emails through an LLM provider."""

    def __init__(
        self,
        provider: Optional[BaseLLMProvider] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        max_attempts: int = 3,
        retry_wait=None,
    ):
        if temperature is None or max_tokens is None:
            settings = get_settings()
            if temperature is None:
                temperature = settings.email_temperature
            if max_tokens is None:
                max_tokens = settings.email_max_tokens
        self._provider: BaseLLMProvider = provider or get_llm_provider()
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.max_attempts = max_attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)

    async def _complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Call the provider with retries; the last error propagates."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.retry_wait,
            reraise=True,
        ):
            with attempt:
                response = await self._provider.generate(
                    system_prompt=system_prompt,
                    user_prompt=user_prompt,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
        logger.debug(
            "LLM call completed",
            provider=response.provider,
            model=response.model,
            tokens_used=response.tokens_used,
        )
        return response.text

    def _client_lines(self, client: Client) -> list[str]:
        lines = [f"- Name: {client.name}", f"- Email: {client.email}"]
        if client.relationship_level:
            lines.append(f"- Relationship Level: {client.relationship_level}")
        if client.years_known:
            lines.append(f"- Years Known: {client.years_known}")
        if client.birthday:
            lines.append(f"- Birthday: {client.birthday.isoformat()}")
        if client.closing_anniversary:
            lines.append(f"- Closing Anniversary: {client.closing_anniversary.isoformat()}")
        if client.tags:
            lines.append(f"- Tags: {', '.join(client.tags)}")
        return lines

    def _listing_lines(self, listing: Listing) -> list[str]:
        location = ", ".join(
            part for part in (listing.address, listing.city, listing.state, listing.zip_code) if part
        )
        lines = [f"- Address: {location}"]
        if listing.mls_id:
            lines.append(f"- MLS: {listing.mls_id}")
        if listing.price is not None:
            lines.append(f"- Price: ${listing.price:,}")
        if listing.property_type:
            lines.append(f"- Type: {listing.property_type}")
        if listing.neighborhood:
            lines.append(f"- Neighborhood: {listing.neighborhood}")
        if listing.bedrooms is not None:
            lines.append(f"- Bedrooms: {listing.bedrooms}")
        if listing.bathrooms is not None:
            lines.append(f"- Bathrooms: {listing.bathrooms:g}")
        if listing.square_feet:
            lines.append(f"- Square Feet: {listing.square_feet}")
        if listing.features:
            lines.append(f"- Features: {', '.join(listing.features)}")
        if listing.description:
            lines.append(f"- Description: {listing.description[:1200]}")
        return lines

    def build_prompt(
        self,
        client: Client,
        occasion: str,
        tone: str = "friendly",
        style: str = "professional",
        length: str = "medium",
        additional_context: str = "",
        listing: Optional[Listing] = None,
        match: Optional[PropertyMatch] = None,
        showing: Optional[Showing] = None,
        custom_message: Optional[str] = None,
        email_template: Optional[str] = None,
        include_feedback_request: bool = False,
    ) -> str:
        sections = [
            f"Write an email to {client.name} for the occasion: {occasion}.",
            "Client Information:\n" + "\n".join(self._client_lines(client)),
        ]

        if listing is not None:
            sections.append("Property Details:\n" + "\n".join(self._listing_lines(listing)))

        if match is not None:
            match_lines = [f"- Match Score: {match.match_score}%"]
            if match.reasons:
                match_lines.append(f"- Why it fits: {'; '.join(match.reasons)}")
            sections.append("Match Information:\n" + "\n".join(match_lines))

        if showing is not None:
            showing_lines = [
                f"- Scheduled: {showing.scheduled_at.isoformat()}",
                f"- Status: {showing.status}",
            ]
            if showing.completed_at:
                showing_lines.append(f"- Completed: {showing.completed_at.isoformat()}")
            if showing.agent_notes:
                showing_lines.append(f"- Agent Notes: {showing.agent_notes}")
            sections.append("Showing Details:\n" + "\n".join(showing_lines))

        parameters = [f"- Tone: {tone}", f"- Style: {style}", f"- Length: {length}"]
        if additional_context:
            parameters.append(f"- Additional Context: {additional_context}")
        if custom_message:
            parameters.append(f"- Personal note from the agent to include: {custom_message}")
        if include_feedback_request:
            parameters.append("- Ask the client for their feedback on the property")
        sections.append("Email Parameters:\n" + "\n".join(parameters))

        if email_template:
            sections.append(f"Follow the structure of this template:\n{email_template}")

        sections.append(
            "Please provide a subject line and email body. The email should sound natural "
            "and personable, not like a template. Include specific details about the client "
            "where appropriate.\n" + RESPONSE_FORMAT
        )
        return "\n\n".join(sections)

    async def generate(self, client: Client, occasion: str, **context) -> GeneratedEmail:
        """
        Draft an email for a client.

        Args:
            client: Recipient
            occasion: property_match, showing_follow_up, milestone_birthday, ...
            **context: Optional prompt inputs accepted by ``build_prompt``
                (tone, style, length, additional_context, listing, match,
                showing, custom_message, email_template,
                include_feedback_request)

        Returns:
            GeneratedEmail with subject and body

        Raises:
            EmailGenerationError: If the provider keeps failing
        """
        user_prompt = self.build_prompt(client, occasion, **context)
        try:
            text = await self._complete(
                WRITER_SYSTEM_PROMPT, user_prompt, self.temperature, self.max_tokens
            )
        except Exception as e:
            logger.error(
                "Error generating email",
                client_id=client.id,
                occasion=occasion,
                error=str(e),
            )
            raise EmailGenerationError("Failed to generate email content") from e

        email = parse_subject_and_body(text)
        logger.info("Email generated", client_id=client.id, occasion=occasion)
        return email

    async def enhance(self, subject: str, content: str, improvements: str) -> GeneratedEmail:
        """Rewrite an email following the agent's improvement notes."""
        user_prompt = (
            f"Here is an email subject line and content:\n\nSUBJECT: {subject}\n\n{content}\n\n"
            f"Please improve this email with the following guidance: {improvements}\n\n"
            + RESPONSE_FORMAT
        )
        try:
            text = await self._complete(EDITOR_SYSTEM_PROMPT, user_prompt, 0.5, 1200)
        except Exception as e:
            logger.error("Error enhancing email", error=str(e))
            raise EmailGenerationError("Failed to enhance email") from e

        return parse_subject_and_body(text, fallback_subject=subject)

    async def analyze(self, content: str) -> EmailAnalysis:
        """Review the sentiment and formality of an email."""
        try:
            text = await self._complete(ANALYST_SYSTEM_PROMPT, content, 0.3, 500)
        except Exception as e:
            logger.error("Error analyzing email", error=str(e))
            raise EmailGenerationError("Failed to analyze email") from e

        return parse_analysis(text)
