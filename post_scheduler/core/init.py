"""Shared initialization logic for both the API and the one-shot CLI run"""
import os
from typing import Optional, Tuple

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine

from post_scheduler.core.config import config
from post_scheduler.core.exceptions import ConfigError
from post_scheduler.core.logger import logger
from post_scheduler.scheduler.tasks import SchedulerTasks
from post_scheduler.services.dispatcher import PostDispatcher
from post_scheduler.storage.db import create_engine, init_models
from post_scheduler.storage.repository import SqlPostRepository
from post_scheduler.telegram_bot.delivery import TelegramDelivery


def _ensure_sqlite_dir(database_url: str):
    """Создаёт папку под файл SQLite, если её нет"""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        directory = os.path.dirname(url.database)
        if directory:
            os.makedirs(directory, exist_ok=True)


async def init_storage(database_url: Optional[str] = None) -> Tuple[AsyncEngine, SqlPostRepository]:
    """
    Initialize database engine and post repository

    Returns:
        Tuple of (engine, repository)
    """
    database_url = database_url or config.DATABASE_URL
    _ensure_sqlite_dir(database_url)

    engine = create_engine(database_url)
    await init_models(engine)
    logger.info("✅ Хранилище постов инициализировано")

    return engine, SqlPostRepository(engine)


def init_delivery() -> TelegramDelivery:
    """
    Initialize Telegram delivery adapter

    Raises:
        ConfigError: BOT_TOKEN is not configured
    """
    if not config.BOT_TOKEN:
        raise ConfigError("BOT_TOKEN not configured")

    delivery = TelegramDelivery(
        bot_token=config.BOT_TOKEN,
        parse_mode=config.PARSE_MODE,
        request_timeout=config.TELEGRAM_REQUEST_TIMEOUT
    )
    logger.info("✅ Telegram delivery инициализирован")
    return delivery


def init_tasks(repository, delivery: TelegramDelivery) -> SchedulerTasks:
    """Wire dispatcher and scheduler tasks together"""
    dispatcher = PostDispatcher(
        repository=repository,
        delivery=delivery,
        write_back_retries=config.WRITE_BACK_RETRIES,
        write_back_delay=config.WRITE_BACK_RETRY_DELAY
    )
    return SchedulerTasks(repository=repository, dispatcher=dispatcher)
