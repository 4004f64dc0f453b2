"""
Client and property preferences.

A client belongs to one agent (``user_id``). The property preferences
drive listing matching; every field is optional and an unset field simply
does not take part in the score.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from keymail.config import RelationshipLevel


class ClientPreferences(BaseModel):
    """What the client is looking for in a property."""

    # Price
    price_range_min: Optional[int] = Field(None, ge=0, description="Minimum price")
    price_range_max: Optional[int] = Field(None, ge=0, description="Maximum price")

    # Type and location
    preferred_property_types: list[str] = Field(
        default_factory=list, description="Acceptable property types"
    )
    preferred_neighborhoods: list[str] = Field(
        default_factory=list, description="Acceptable neighborhoods"
    )

    # Physical characteristics
    min_bedrooms: Optional[int] = Field(None, ge=0)
    max_bedrooms: Optional[int] = Field(None, ge=0)
    min_bathrooms: Optional[float] = Field(None, ge=0)
    max_bathrooms: Optional[float] = Field(None, ge=0)

    def summary(self) -> dict:
        """Compact view used in API responses."""
        return {
            "price_range": [self.price_range_min, self.price_range_max],
            "neighborhoods": self.preferred_neighborhoods,
            "property_types": self.preferred_property_types,
            "bedrooms": [self.min_bedrooms, self.max_bedrooms],
            "bathrooms": [self.min_bathrooms, self.max_bathrooms],
        }


class Client(BaseModel):
    """A client of the agent, with contact facts and preferences."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = Field(None, description="UUID generated by Supabase")
    user_id: str = Field(..., description="Owning agent")

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    phone: Optional[str] = None

    # Relationship facts used to personalize emails
    birthday: Optional[date] = None
    closing_anniversary: Optional[date] = None
    years_known: Optional[int] = Field(None, ge=0)
    relationship_level: RelationshipLevel = "new"
    tags: list[str] = Field(default_factory=list)

    preferences: ClientPreferences = Field(default_factory=ClientPreferences)

    last_contact_date: Optional[datetime] = None
    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())
