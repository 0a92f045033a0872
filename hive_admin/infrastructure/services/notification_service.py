"""Account notifications: log-only sender and fire-and-forget dispatcher.

Delivery (SMTP, templates) is external. Mutations call
NotificationDispatcher.dispatch after their transaction commits; the send
runs as a background task and its failures are logged, never raised.
"""

from __future__ import annotations

import asyncio
import logging

from hive_admin.application.dtos.notice import AccountNotice
from hive_admin.application.interfaces.services import INotificationService
from hive_admin.shared.telemetry.logging import get_logger
from hive_admin.shared.utils.datetime import utc_now

logger = get_logger(__name__)


class LogOnlyNotificationService:
    """INotificationService implementation that logs instead of sending email.

    Production can swap in an SMTP or queue-based implementation.
    """

    async def send(
        self,
        to_emails: list[str],
        subject: str,
        body: str,
    ) -> None:
        """Log the notification; no actual email sent."""
        recipients = list(to_emails or [])
        subject_preview = (subject or "")[:80]
        if not recipients:
            logger.info(
                "Account notice: no recipients, skipping send (subject=%r)",
                subject_preview,
            )
            return
        logger.info(
            "Account notice: would send to %d recipients (subject=%r)",
            len(recipients),
            subject_preview,
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Account notice recipients: %s (at %s)",
                recipients,
                utc_now().isoformat(),
            )
        logger.debug("Account notice body (first 500 chars): %s", (body or "")[:500])


class NotificationDispatcher:
    """Schedules sends as background tasks so they never block or fail a mutation."""

    def __init__(self, sender: INotificationService, *, enabled: bool = True) -> None:
        self._sender = sender
        self._enabled = enabled
        self._tasks: set[asyncio.Task[None]] = set()

    def dispatch(self, notice: AccountNotice) -> asyncio.Task[None] | None:
        """Start sending notice in the background; return the task (None when disabled)."""
        if not self._enabled:
            return None
        task = asyncio.create_task(
            self._sender.send([notice.email], notice.subject, notice.body)
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning("Account notice send cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(
                "Account notice send failed: %s", exc, exc_info=exc
            )

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for in-flight sends (shutdown, tests). Send errors are already logged."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
