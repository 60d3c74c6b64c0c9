"""Periodic pruning of old read notifications.

Unread notifications are never deleted. Run alongside the API:

    python -m taskhub.workers.notification_cleanup --loop
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import AsyncContextManager, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.config import settings
from taskhub.core.logging_setup import setup_logging
from taskhub.db.session import get_async_session_context
from taskhub.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class NotificationCleanupRunner:
    """Delete read notifications older than the retention window."""

    def __init__(
        self,
        retention_days: Optional[int] = None,
        interval: Optional[float] = None,
        session_context: Callable[[], AsyncContextManager[AsyncSession]] = get_async_session_context,
    ) -> None:
        self.retention_days = retention_days if retention_days is not None else settings.NOTIFICATION_RETENTION_DAYS
        self.interval = interval if interval is not None else settings.NOTIFICATION_CLEANUP_INTERVAL_SECONDS
        self._session_context = session_context
        self._stop_event = asyncio.Event()

    def request_stop(self) -> None:
        self._stop_event.set()

    async def run_once(self) -> int:
        """Prune once. Returns how many notifications were deleted."""
        async with self._session_context() as session:
            return await NotificationService(session).prune_old(self.retention_days)

    async def run_forever(self) -> None:
        """Prune every `interval` seconds until stopped."""
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception:
                logger.exception("Notification cleanup failed; retrying in %.0fs", self.interval)

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue


def main() -> int:
    parser = argparse.ArgumentParser(description="Notification cleanup worker")
    parser.add_argument("--loop", action="store_true", help="Run continuously")
    parser.add_argument("--days", type=int, default=settings.NOTIFICATION_RETENTION_DAYS, help="Retention in days")
    parser.add_argument(
        "--interval",
        type=float,
        default=settings.NOTIFICATION_CLEANUP_INTERVAL_SECONDS,
        help="Seconds between runs when looping",
    )
    args = parser.parse_args()

    setup_logging(settings.LOG_LEVEL, debug=settings.DEBUG)
    runner = NotificationCleanupRunner(retention_days=args.days, interval=args.interval)
    if args.loop:
        asyncio.run(runner.run_forever())
    else:
        asyncio.run(runner.run_once())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
