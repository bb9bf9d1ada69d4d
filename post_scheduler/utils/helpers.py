import asyncio
import hmac
import logging
import uuid
from functools import wraps
from typing import Optional

from post_scheduler.core.exceptions import AuthError, ConfigError

logger = logging.getLogger(__name__)

def generate_id() -> str:
    """Генерирует уникальный ID."""
    return str(uuid.uuid4())

def retry_async(retries=3, delay=2):
    """Декоратор для повторных попыток выполнения асинхронной функции."""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            last_exception = None
            for attempt in range(retries):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    last_exception = e
                    logger.warning(f"Attempt {attempt + 1}/{retries} failed for {func.__name__}: {e}")
                    if attempt < retries - 1:
                        await asyncio.sleep(delay)
            logger.error(f"All {retries} attempts failed for {func.__name__}")
            raise last_exception
        return wrapper
    return decorator

def verify_secret(provided: Optional[str], expected: Optional[str]) -> None:
    """
    Сверяет секрет вызывающей стороны с настроенным.

    Raises:
        ConfigError: секрет на сервере не настроен
        AuthError: секрет не передан или не совпадает
    """
    if not expected:
        raise ConfigError("SCHEDULER_SECRET not configured")
    if not provided or not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        raise AuthError("Invalid or missing scheduler secret")
