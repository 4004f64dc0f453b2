"""
Script to generate property matches.

Scores the agent's active listings for one client, or for every client
of the agent, and stores the best matches.

Usage:
    python -m keymail.scripts.run_matching --user-id <uuid>
    python -m keymail.scripts.run_matching --user-id <uuid> --client-id <uuid> --max-matches 10
"""

import argparse
import sys

import structlog

from keymail.config import get_settings
from keymail.exceptions import KeymailError
from keymail.logging_config import configure_logging
from keymail.matching import MatchingEngine

logger = structlog.get_logger()


def run_matching(
    user_id: str,
    client_id: str | None = None,
    max_matches: int | None = None,
    engine: MatchingEngine | None = None,
) -> dict:
    """
    Generate matches for one client or all clients of an agent.

    Returns:
        Processing statistics
    """
    engine = engine or MatchingEngine()

    stats = {
        "clients_processed": 0,
        "matches_saved": 0,
        "errors": 0,
    }

    if client_id:
        client_ids = [client_id]
    else:
        client_ids = [c.id for c in engine.client_repo.get_by_user(user_id)]

    if not client_ids:
        logger.info("No clients to match", user_id=user_id)
        return stats

    for cid in client_ids:
        try:
            result = engine.generate_matches(user_id, cid, max_matches=max_matches)
            stats["clients_processed"] += 1
            stats["matches_saved"] += len(result.matches)
        except KeymailError as e:
            logger.error(
                "Error generating matches",
                client_id=cid,
                status=e.status_code,
                error=e.message,
            )
            stats["errors"] += 1
        except Exception as e:
            logger.error("Unexpected error generating matches", client_id=cid, error=str(e))
            stats["errors"] += 1

    logger.info("Matching completed", user_id=user_id, **stats)
    return stats


def main():
    """Script entry point."""
    parser = argparse.ArgumentParser(description="Generate property matches for clients")
    parser.add_argument("--user-id", required=True, help="Agent UUID")
    parser.add_argument("--client-id", default=None, help="Only this client")
    parser.add_argument("--max-matches", type=int, default=None, help="Matches kept per client")
    args = parser.parse_args()

    configure_logging(get_settings().log_level)

    try:
        stats = run_matching(args.user_id, args.client_id, args.max_matches)
        sys.exit(0 if stats["errors"] == 0 else 1)
    except KeyboardInterrupt:
        logger.info("Matching interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error("Fatal error in matching", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
