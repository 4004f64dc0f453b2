"""
Database module.

Provides Supabase access and CRUD operations.
"""

from keymail.database.supabase_client import get_supabase_client, SupabaseClient
from keymail.database.repositories import (
    ClientRepository,
    ListingRepository,
    PropertyMatchRepository,
    EmailRepository,
    TemplateRepository,
    ShowingRepository,
    MilestoneRepository,
)

__all__ = [
    "get_supabase_client",
    "SupabaseClient",
    "ClientRepository",
    "ListingRepository",
    "PropertyMatchRepository",
    "EmailRepository",
    "TemplateRepository",
    "ShowingRepository",
    "MilestoneRepository",
]
