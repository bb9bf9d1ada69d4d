"""Scheduler trigger schemas"""
from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

from post_scheduler.telegram_bot.models import TickSummary


class StartLoopRequest(BaseModel):
    """Body for starting the self-rescheduling loop"""
    interval: Optional[float] = Field(None, description="Seconds between ticks, clamped to the minimum")


class PostResult(BaseModel):
    """Outcome of one post in a tick"""
    id: str
    status: str = Field(..., description="sent | failed | skipped")
    error: Optional[str] = None
    messageId: Optional[int] = None
    inconsistent: Optional[bool] = None


class TickResponse(BaseModel):
    """Schema for a one-shot pass"""
    message: str
    count: int = Field(..., description="Posts considered in this pass")
    skipped: int = Field(0, description="Posts already claimed by another worker")
    results: List[PostResult] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: TickSummary) -> "TickResponse":
        """Convert TickSummary to TickResponse"""
        return cls(**summary.to_dict())


class LoopResponse(BaseModel):
    """Schema for loop start/stop"""
    message: str
    interval: Optional[int] = None
    note: Optional[str] = None


class SchedulerStatus(BaseModel):
    """Schema for scheduler state"""
    running: bool
    loop_active: bool
    interval: Optional[int] = None
    next_run: Optional[datetime] = None
    last_run: Optional[TickResponse] = None
