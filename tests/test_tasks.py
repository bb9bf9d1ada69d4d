from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from aiogram.exceptions import TelegramBadRequest
from aiogram.methods import SendMessage

from post_scheduler.core.exceptions import StorageError
from post_scheduler.telegram_bot.models import PostStatus
from tests.conftest import make_post


async def test_nothing_due(tasks, fake_bot):
    summary = await tasks.run_once()

    assert summary.count == 0
    assert summary.to_dict() == {"message": "No posts to send", "count": 0, "skipped": 0, "results": []}
    fake_bot.send_message.assert_not_awaited()


async def test_every_due_post_ends_terminal(repository, tasks, fake_bot):
    fake_bot.send_message.side_effect = [
        SimpleNamespace(message_id=1),
        TelegramBadRequest(method=SendMessage(chat_id="@bad", text="x"), message="chat not found"),
    ]
    now = datetime.now(timezone.utc)
    await repository.add(make_post(id="a", scheduled_time=now - timedelta(minutes=2)))
    await repository.add(make_post(id="b", scheduled_time=now - timedelta(minutes=1), chat_targets=["@bad"]))
    await repository.add(make_post(id="c", chat_targets=[]))
    await repository.add(make_post(id="later", scheduled_time=now + timedelta(hours=1)))

    summary = await tasks.run_once(now)

    assert summary.count == 3
    assert [r.to_result()["status"] for r in summary.results] == ["sent", "failed", "failed"]
    for post_id in ("a", "b", "c"):
        assert (await repository.get(post_id)).status in (PostStatus.SENT, PostStatus.FAILED)
    assert (await repository.get("later")).status == PostStatus.SCHEDULED
    assert summary.sent == 1
    assert summary.failed == 2


async def test_second_run_is_a_no_op(repository, tasks, fake_bot):
    await repository.add(make_post())

    await tasks.run_once()
    second = await tasks.run_once()

    assert second.count == 0
    assert fake_bot.send_message.await_count == 1


async def test_fetch_error_fails_the_tick(repository, tasks, fake_bot):
    repository.fetch_due = AsyncMock(side_effect=StorageError("connection refused"))

    with pytest.raises(StorageError):
        await tasks.run_once()

    fake_bot.send_message.assert_not_awaited()


async def test_scheduled_tick_survives_fetch_error(repository, tasks):
    repository.fetch_due = AsyncMock(side_effect=StorageError("connection refused"))

    await tasks.scheduled_tick()

    assert tasks.last_summary is None


async def test_last_summary_is_kept(repository, tasks):
    await repository.add(make_post())

    summary = await tasks.run_once()

    assert tasks.last_summary is summary
    assert summary.to_dict()["results"] == [{"id": "post-1", "status": "sent", "messageId": 101}]
