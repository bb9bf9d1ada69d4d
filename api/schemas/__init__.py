"""API schemas"""
from .scheduler import StartLoopRequest, PostResult, TickResponse, LoopResponse, SchedulerStatus
from .response import ErrorResponse

__all__ = [
    "StartLoopRequest",
    "PostResult",
    "TickResponse",
    "LoopResponse",
    "SchedulerStatus",
    "ErrorResponse",
]
