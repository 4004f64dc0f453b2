"""
Data models.

- Clients and their property preferences
- Listings
- Property matches (scorer output and stored record)
- Email history, templates, showings and milestones
"""

from keymail.models.client import Client, ClientPreferences
from keymail.models.listing import Listing
from keymail.models.match import MatchResult, PropertyMatch
from keymail.models.email import EmailAnalysis, EmailRecord, GeneratedEmail
from keymail.models.template import EmailTemplate
from keymail.models.showing import Milestone, Showing

__all__ = [
    # Clients
    "Client",
    "ClientPreferences",
    # Listings
    "Listing",
    # Matching
    "MatchResult",
    "PropertyMatch",
    # Email
    "EmailAnalysis",
    "EmailRecord",
    "GeneratedEmail",
    "EmailTemplate",
    # Outreach events
    "Milestone",
    "Showing",
]
