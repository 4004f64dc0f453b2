"""
Script to run the daily outreach cycle.

Sends greetings for due milestones and follow-ups for recently
completed showings.

Usage:
    python -m keymail.scripts.run_outreach --user-id <uuid>
    python -m keymail.scripts.run_outreach --user-id <uuid> --days 3 --dry-run
"""

import argparse
import asyncio
import sys
from datetime import date, datetime

import structlog

from keymail.config import get_settings
from keymail.logging_config import configure_logging
from keymail.outreach import MilestoneService, ShowingFollowUpService

logger = structlog.get_logger()


async def run_outreach(
    user_id: str,
    days: int = 1,
    dry_run: bool = False,
    today: date | None = None,
    now: datetime | None = None,
    milestone_service: MilestoneService | None = None,
    follow_up_service: ShowingFollowUpService | None = None,
) -> dict:
    """
    Send due milestone emails and pending showing follow-ups.

    Args:
        user_id: Agent UUID
        days: Milestones due within this many days; also the showing look-back
        dry_run: Only count what would be sent
        now: Reference time for the showing look-back

    Returns:
        Processing statistics
    """
    milestone_service = milestone_service or MilestoneService()
    follow_up_service = follow_up_service or ShowingFollowUpService()
    today = today or date.today()

    stats = {
        "milestones_due": 0,
        "milestones_sent": 0,
        "follow_ups_due": 0,
        "follow_ups_sent": 0,
        "errors": 0,
    }

    milestones = milestone_service.due(user_id, today=today, days=days)
    stats["milestones_due"] = len(milestones)
    for milestone in milestones:
        if dry_run:
            logger.info("Would send milestone", milestone_id=milestone.id, title=milestone.title)
            continue
        try:
            await milestone_service.send(user_id, milestone.id, today=today)
            stats["milestones_sent"] += 1
        except Exception as e:
            logger.error("Error sending milestone", milestone_id=milestone.id, error=str(e))
            stats["errors"] += 1

    pending = follow_up_service.pending_follow_ups(user_id, days_ago=days, now=now)
    stats["follow_ups_due"] = len(pending)
    for item in pending:
        if dry_run:
            logger.info("Would send follow-up", showing_id=item.showing.id)
            continue
        try:
            await follow_up_service.send_follow_up(user_id, item.showing.id)
            stats["follow_ups_sent"] += 1
        except Exception as e:
            logger.error("Error sending follow-up", showing_id=item.showing.id, error=str(e))
            stats["errors"] += 1

    logger.info("Outreach completed", user_id=user_id, dry_run=dry_run, **stats)
    return stats


def main():
    """Script entry point."""
    parser = argparse.ArgumentParser(description="Send milestone and showing follow-up emails")
    parser.add_argument("--user-id", required=True, help="Agent UUID")
    parser.add_argument("--days", type=int, default=1, help="Window in days")
    parser.add_argument("--dry-run", action="store_true", help="List without sending")
    args = parser.parse_args()

    configure_logging(get_settings().log_level)

    try:
        stats = asyncio.run(run_outreach(args.user_id, days=args.days, dry_run=args.dry_run))
        sys.exit(0 if stats["errors"] == 0 else 1)
    except KeyboardInterrupt:
        logger.info("Outreach interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error("Fatal error in outreach", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
