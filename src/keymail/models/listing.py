"""
Property listing managed by an agent.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from keymail.config import ListingStatus


class Listing(BaseModel):
    """A property on the market (typically imported from the MLS)."""

    id: Optional[str] = Field(None, description="UUID generated by Supabase")
    user_id: str = Field(..., description="Owning agent")
    mls_id: Optional[str] = Field(None, description="MLS number")

    # Location
    address: str = Field(..., description="Street address")
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    neighborhood: Optional[str] = None

    # Attributes compared against client preferences
    price: Optional[int] = Field(None, ge=0)
    property_type: Optional[str] = Field(
        None, description="single_family, condo, townhouse, multi_family or land"
    )
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0)

    square_feet: Optional[int] = Field(None, ge=0)
    lot_size: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    features: list[str] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)

    status: ListingStatus = "active"

    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())

    @property
    def label(self) -> str:
        """Short identifier for logs and error messages."""
        return self.mls_id or self.address
