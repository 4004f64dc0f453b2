"""
Date- and event-triggered client outreach.
"""

from keymail.outreach.milestones import MilestoneService, next_occurrence
from keymail.outreach.showings import PendingFollowUp, ShowingFollowUpService

__all__ = [
    "MilestoneService",
    "next_occurrence",
    "PendingFollowUp",
    "ShowingFollowUpService",
]
