"""Tests for account notices and the fire-and-forget dispatcher."""

import logging
from unittest.mock import AsyncMock, MagicMock

from hive_admin.application.dtos.notice import AccountNotice
from hive_admin.infrastructure.services.notification_service import (
    LogOnlyNotificationService,
    NotificationDispatcher,
)
from hive_admin.shared.enums import NoticeKind


def _notice(kind: NoticeKind = NoticeKind.CREATED) -> AccountNotice:
    return AccountNotice(
        kind=kind,
        email="new@acme.test",
        name="New User",
        role_name="Tenant Member",
        tenant_name="Acme Corp",
        login_url="https://hive.test/login",
    )


def test_notice_subject_and_body() -> None:
    created = _notice()
    assert created.subject == "Your account has been created"
    assert "Hello New User," in created.body
    assert "in Acme Corp" in created.body
    assert "Tenant Member" in created.body
    assert "https://hive.test/login" in created.body

    deactivated = _notice(NoticeKind.DEACTIVATED)
    assert deactivated.subject == "Your account has been deactivated"
    assert "deactivated" in deactivated.body
    assert "https://hive.test/login" not in deactivated.body


async def test_dispatch_sends_in_background() -> None:
    sender = MagicMock()
    sender.send = AsyncMock()
    dispatcher = NotificationDispatcher(sender)
    task = dispatcher.dispatch(_notice())
    assert task is not None
    await dispatcher.drain()
    sender.send.assert_awaited_once()
    args = sender.send.await_args.args
    assert args[0] == ["new@acme.test"]
    assert args[1] == "Your account has been created"
    assert dispatcher.pending == 0


async def test_dispatch_failure_is_logged_not_raised(caplog) -> None:
    sender = MagicMock()
    sender.send = AsyncMock(side_effect=RuntimeError("smtp down"))
    dispatcher = NotificationDispatcher(sender)
    with caplog.at_level(logging.WARNING):
        dispatcher.dispatch(_notice())
        await dispatcher.drain()
    assert "Account notice send failed" in caplog.text
    assert dispatcher.pending == 0


async def test_disabled_dispatcher_sends_nothing() -> None:
    sender = MagicMock()
    sender.send = AsyncMock()
    dispatcher = NotificationDispatcher(sender, enabled=False)
    assert dispatcher.dispatch(_notice()) is None
    await dispatcher.drain()
    sender.send.assert_not_awaited()


async def test_log_only_sender(caplog) -> None:
    with caplog.at_level(logging.INFO):
        await LogOnlyNotificationService().send(["a@b.test"], "Subject", "Body")
        await LogOnlyNotificationService().send([], "Empty", "Body")
    assert "would send to 1 recipients" in caplog.text
    assert "no recipients" in caplog.text
