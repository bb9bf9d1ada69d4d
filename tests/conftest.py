"""Shared fixtures: in-memory storage and a fake aiogram Bot"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from post_scheduler.scheduler.tasks import SchedulerTasks
from post_scheduler.services.dispatcher import PostDispatcher
from post_scheduler.storage.repository import InMemoryPostRepository
from post_scheduler.telegram_bot.delivery import TelegramDelivery
from post_scheduler.telegram_bot.models import Post, PostStatus


def make_post(**overrides) -> Post:
    data = {
        "id": "post-1",
        "content": "Hello",
        "image_sources": [],
        "scheduled_time": datetime.now(timezone.utc) - timedelta(minutes=1),
        "status": PostStatus.SCHEDULED,
        "chat_targets": ["@mychannel"],
    }
    data.update(overrides)
    return Post(**data)


@pytest.fixture
def fake_bot():
    bot = MagicMock()
    bot.send_message = AsyncMock(return_value=SimpleNamespace(message_id=101))
    bot.send_photo = AsyncMock(return_value=SimpleNamespace(message_id=202))
    bot.send_media_group = AsyncMock(
        side_effect=lambda chat_id, media, **kwargs: [
            SimpleNamespace(message_id=300 + i) for i in range(len(media))
        ]
    )
    bot.session.close = AsyncMock()
    return bot


@pytest.fixture
def delivery(fake_bot):
    return TelegramDelivery(bot=fake_bot, parse_mode="HTML", request_timeout=15)


@pytest.fixture
def repository():
    return InMemoryPostRepository()


@pytest.fixture
def dispatcher(repository, delivery):
    return PostDispatcher(repository, delivery, write_back_retries=2, write_back_delay=0)


@pytest.fixture
def tasks(repository, dispatcher):
    return SchedulerTasks(repository=repository, dispatcher=dispatcher)
