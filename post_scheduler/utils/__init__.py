"""Utils module - универсальные утилиты"""
from post_scheduler.utils.helpers import generate_id, retry_async, verify_secret

__all__ = [
    "generate_id",
    "retry_async",
    "verify_secret"
]
