"""Dependency injection setup for FastAPI"""
from typing import Optional

from fastapi import Header, Query

from post_scheduler.core.config import config
from post_scheduler.core.exceptions import ConfigError
from post_scheduler.scheduler.scheduler import PostScheduler
from post_scheduler.scheduler.tasks import SchedulerTasks
from post_scheduler.storage.repository import PostRepository
from post_scheduler.utils.helpers import verify_secret

# Global instances (initialized at startup)
_repository: Optional[PostRepository] = None
_scheduler_tasks: Optional[SchedulerTasks] = None
_post_scheduler: Optional[PostScheduler] = None


def init_dependencies(
    repository: PostRepository,
    scheduler_tasks: Optional[SchedulerTasks],
    post_scheduler: Optional[PostScheduler]
):
    """Initialize global dependencies (called from api/main.py lifespan or tests)"""
    global _repository, _scheduler_tasks, _post_scheduler
    _repository = repository
    _scheduler_tasks = scheduler_tasks
    _post_scheduler = post_scheduler


def get_repository() -> PostRepository:
    """Get post repository instance"""
    if _repository is None:
        raise ConfigError("Post storage not initialized")
    return _repository


def get_scheduler_tasks() -> SchedulerTasks:
    """Get scheduler tasks; absent when the bot token is not configured"""
    if _scheduler_tasks is None:
        raise ConfigError("Telegram bot is not configured (BOT_TOKEN missing)")
    return _scheduler_tasks


def get_post_scheduler() -> PostScheduler:
    """Get in-process scheduler instance"""
    if _post_scheduler is None:
        raise ConfigError("Scheduler not initialized")
    return _post_scheduler


async def verify_scheduler_secret(
    authorization: Optional[str] = Header(None, description="Bearer <secret>"),
    token: Optional[str] = Query(None, description="Shared secret (alternative to the header)")
) -> None:
    """
    Check the shared secret before anything touches storage.

    Raises ConfigError (500) when no secret is configured and AuthError (401)
    when the caller's secret is missing or wrong.
    """
    provided = token
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer":
            provided = credentials.strip()

    verify_secret(provided, config.SCHEDULER_SECRET)
