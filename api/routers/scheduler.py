"""Scheduler trigger endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_post_scheduler, get_scheduler_tasks, verify_scheduler_secret
from api.schemas.scheduler import LoopResponse, SchedulerStatus, StartLoopRequest, TickResponse
from post_scheduler.core.config import config
from post_scheduler.core.exceptions import ConfigError
from post_scheduler.core.logger import logger
from post_scheduler.scheduler.scheduler import DISPATCH_JOB_ID

router = APIRouter(
    prefix="/api/v1/scheduler",
    tags=["scheduler"],
    dependencies=[Depends(verify_scheduler_secret)]
)


@router.post("/run", response_model=TickResponse, response_model_exclude_none=True)
async def run_once():
    """
    One-shot pass over due posts (for external cron).

    Storage fetch errors and missing configuration surface as 500.
    """
    tasks = get_scheduler_tasks()
    summary = await tasks.run_once()
    return TickResponse.from_summary(summary)


@router.post("/start", response_model=LoopResponse, response_model_exclude_none=True)
async def start_loop(body: Optional[StartLoopRequest] = None):
    """Start (or re-arm) the in-process self-rescheduling loop"""
    tasks = get_scheduler_tasks()
    scheduler = get_post_scheduler()

    interval = config.clamp_interval(body.interval if body else None)
    scheduler.start_loop(tasks.scheduled_tick, interval)
    logger.info(f"▶️ Loop started via API, interval {interval}s")

    return LoopResponse(
        message=f"Scheduler started with {interval} second interval",
        interval=interval,
        note="The loop lives in this process only and stops when the process ends"
    )


@router.post("/stop", response_model=LoopResponse, response_model_exclude_none=True)
async def stop_loop():
    """Stop the self-rescheduling loop"""
    scheduler = get_post_scheduler()
    if scheduler.stop_loop():
        return LoopResponse(message="Scheduler stopped")
    return LoopResponse(message="Scheduler was not running")


@router.get("/status", response_model=SchedulerStatus, response_model_exclude_none=True)
async def scheduler_status():
    """Loop state and the summary of the last pass"""
    scheduler = get_post_scheduler()
    job = scheduler.scheduler.get_job(DISPATCH_JOB_ID) if scheduler.is_running else None

    last_run = None
    try:
        tasks = get_scheduler_tasks()
    except ConfigError:
        tasks = None
    if tasks is not None and tasks.last_summary is not None:
        last_run = TickResponse.from_summary(tasks.last_summary)

    return SchedulerStatus(
        running=scheduler.is_running,
        loop_active=scheduler.loop_active,
        interval=scheduler.interval,
        next_run=job.next_run_time if job else None,
        last_run=last_run
    )
