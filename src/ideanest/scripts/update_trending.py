"""Recompute persisted trending scores and prune stale anonymous likes.

Meant to run from cron or a scheduler, e.g. every 15 minutes::

    ideanest-update-trending
    ideanest-update-trending --cleanup-anonymous-likes --days 30
"""

from __future__ import annotations

import argparse
import logging
import sys

from ideanest.core.logging_config import configure_logging
from ideanest.core.settings import get_settings
from ideanest.db.session import build_engine, build_session_factory
from ideanest.services.likes import LikeToggleEngine
from ideanest.services.trending import TrendingOptions, TrendingService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Refresh IdeaNest trending scores")
    parser.add_argument(
        "--cleanup-anonymous-likes",
        action="store_true",
        help="Also delete anonymous likes older than --days and fix idea counters.",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Retention for anonymous likes (defaults to ANONYMOUS_LIKE_RETENTION_DAYS).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    days = args.days if args.days is not None else settings.anonymous_like_retention_days
    if days < 1:
        logger.error("--days must be at least 1")
        return 2

    engine = build_engine(settings)
    session_factory = build_session_factory(engine)
    try:
        with session_factory() as db:
            updated = TrendingService(db, TrendingOptions.from_settings(settings)).update_trending_scores()
            removed = 0
            if args.cleanup_anonymous_likes:
                removed = LikeToggleEngine(db).cleanup_old_anonymous_likes(days)
    except Exception:
        logger.exception("Trending update failed")
        return 1
    finally:
        engine.dispose()

    logger.info("Trending update finished: %s scores changed, %s anonymous likes removed", updated, removed)
    return 0


if __name__ == "__main__":
    sys.exit(main())
