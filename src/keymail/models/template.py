"""
Reusable email templates with ``{{placeholder}}`` substitution.
"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from keymail.models.email import GeneratedEmail

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


def extract_variables(text: str) -> list[str]:
    """Placeholder names in order of first appearance."""
    seen: list[str] = []
    for name in PLACEHOLDER_PATTERN.findall(text or ""):
        if name not in seen:
            seen.append(name)
    return seen


def fill_placeholders(text: str, context: dict) -> str:
    """Replace known placeholders; unknown ones are left as written."""

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name in context and context[name] is not None:
            return str(context[name])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(_replace, text or "")


class EmailTemplate(BaseModel):
    """Email skeleton owned by an agent."""

    id: Optional[str] = Field(None, description="UUID generated by Supabase")
    user_id: str = Field(..., description="Owning agent")
    name: str
    category: str = Field(..., description="birthday, home_anniversary, property_match, ...")
    subject: str = ""
    content: str
    variables: list[str] = Field(default_factory=list)
    is_default: bool = False
    metadata: dict = Field(default_factory=dict, description="tone, occasion, suggested_use")

    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())

    def declared_variables(self) -> list[str]:
        """Stored variables, or the ones found in subject and body."""
        if self.variables:
            return self.variables
        return extract_variables(f"{self.subject}\n{self.content}")

    def render(self, context: dict) -> GeneratedEmail:
        return GeneratedEmail(
            subject=fill_placeholders(self.subject, context),
            content=fill_placeholders(self.content, context),
        )

    def to_db_dict(self) -> dict:
        """Convert to a dictionary for insertion in Supabase."""
        data = self.model_dump(exclude={"id"})
        data["variables"] = self.declared_variables()
        return data
