from unittest.mock import AsyncMock

import pytest

from post_scheduler.core.config import Config
from post_scheduler.core.exceptions import ConfigError, SchedulerError
from post_scheduler.scheduler.scheduler import DISPATCH_JOB_ID, PostScheduler


@pytest.fixture
async def post_scheduler():
    scheduler = PostScheduler()
    yield scheduler
    scheduler.stop()


async def test_loop_requires_running_scheduler(post_scheduler):
    with pytest.raises(SchedulerError):
        post_scheduler.start_loop(AsyncMock(), 30)


async def test_start_and_stop_loop(post_scheduler):
    post_scheduler.start()

    post_scheduler.start_loop(AsyncMock(), 30)

    job = post_scheduler.scheduler.get_job(DISPATCH_JOB_ID)
    assert job is not None
    assert job.max_instances == 1
    assert job.trigger.interval.total_seconds() == 30
    assert post_scheduler.loop_active
    assert post_scheduler.interval == 30

    assert post_scheduler.stop_loop() is True
    assert not post_scheduler.loop_active
    assert post_scheduler.stop_loop() is False


async def test_restart_replaces_the_job(post_scheduler):
    post_scheduler.start()

    post_scheduler.start_loop(AsyncMock(), 30)
    post_scheduler.start_loop(AsyncMock(), 45)

    assert len(post_scheduler.get_jobs()) == 1
    assert post_scheduler.interval == 45


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 60), (5, 10), (10, 10), (90, 90), ("30", 30), ("junk", 60), (12.7, 12),
        (float("inf"), 60), (float("nan"), 60), (10 ** 9, 86400),
    ],
)
def test_clamp_interval(raw, expected):
    cfg = Config()
    cfg.SCHEDULER_DEFAULT_INTERVAL = 60
    cfg.SCHEDULER_MIN_INTERVAL = 10
    cfg.SCHEDULER_MAX_INTERVAL = 86400
    assert cfg.clamp_interval(raw) == expected


def test_validate_checks_limits():
    cfg = Config()
    cfg.validate()

    cfg.SCHEDULER_MIN_INTERVAL = 0
    with pytest.raises(ConfigError):
        cfg.validate()

    cfg.SCHEDULER_MIN_INTERVAL = 10
    cfg.SCHEDULER_MAX_INTERVAL = 5
    with pytest.raises(ConfigError):
        cfg.validate()

    cfg.SCHEDULER_MAX_INTERVAL = 86400
    cfg.WRITE_BACK_RETRIES = 0
    with pytest.raises(ConfigError):
        cfg.validate()


def test_validate_does_not_require_token_or_secret():
    cfg = Config()
    cfg.BOT_TOKEN = None
    cfg.SCHEDULER_SECRET = None
    cfg.validate()
