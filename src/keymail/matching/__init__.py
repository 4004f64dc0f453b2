"""
Matching engine.

Weighted rule-based scoring of listings against client preferences, plus
storage and outreach for the resulting matches.
"""

from keymail.matching.scorer import score_listing
from keymail.matching.engine import (
    BulkSendResult,
    MatchGenerationResult,
    MatchingEngine,
    rank_listings,
)

__all__ = [
    "score_listing",
    "rank_listings",
    "MatchingEngine",
    "MatchGenerationResult",
    "BulkSendResult",
]
