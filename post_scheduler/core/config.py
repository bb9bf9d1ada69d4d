"""
Конфигурация приложения
"""

import os
from pathlib import Path
from dotenv import load_dotenv

from post_scheduler.core.exceptions import ConfigError

# Явно указываем путь к .env
BASE_DIR = Path(__file__).resolve().parent.parent.parent
dotenv_path = BASE_DIR / '.env'

load_dotenv(dotenv_path=dotenv_path, override=False)


class Config:
    """Основная конфигурация"""

    # Telegram Bot
    BOT_TOKEN = os.getenv("BOT_TOKEN")
    PARSE_MODE = os.getenv("PARSE_MODE", "HTML")
    TELEGRAM_REQUEST_TIMEOUT = int(os.getenv("TELEGRAM_REQUEST_TIMEOUT", "20"))

    # Общий секрет для вызова планировщика (cron / ручной запуск)
    SCHEDULER_SECRET = os.getenv("SCHEDULER_SECRET")

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./data/posts.db")

    # Scheduling
    SCHEDULER_DEFAULT_INTERVAL = int(os.getenv("SCHEDULER_DEFAULT_INTERVAL", "60"))
    SCHEDULER_MIN_INTERVAL = int(os.getenv("SCHEDULER_MIN_INTERVAL", "10"))
    SCHEDULER_MAX_INTERVAL = int(os.getenv("SCHEDULER_MAX_INTERVAL", "86400"))
    TIMEZONE = "UTC"

    # Запись статуса обратно в БД
    WRITE_BACK_RETRIES = int(os.getenv("WRITE_BACK_RETRIES", "3"))
    WRITE_BACK_RETRY_DELAY = float(os.getenv("WRITE_BACK_RETRY_DELAY", "1.0"))

    # API
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("API_PORT", "8000"))
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
        if origin.strip()
    ]

    # Validation
    def validate(self):
        """
        Проверка параметров при запуске

        BOT_TOKEN и SCHEDULER_SECRET здесь не проверяются: без них API
        поднимается, а триггер отвечает ошибкой конфигурации.
        """
        if self.SCHEDULER_MIN_INTERVAL < 1:
            raise ConfigError("❌ SCHEDULER_MIN_INTERVAL должен быть положительным")
        if self.SCHEDULER_MAX_INTERVAL < self.SCHEDULER_MIN_INTERVAL:
            raise ConfigError("❌ SCHEDULER_MAX_INTERVAL меньше SCHEDULER_MIN_INTERVAL")
        if self.TELEGRAM_REQUEST_TIMEOUT < 1:
            raise ConfigError("❌ TELEGRAM_REQUEST_TIMEOUT должен быть положительным")
        if self.WRITE_BACK_RETRIES < 1:
            raise ConfigError("❌ WRITE_BACK_RETRIES должен быть не меньше 1")

    def clamp_interval(self, interval) -> int:
        """
        Приводит интервал самоперезапуска к допустимому значению

        Args:
            interval: Интервал в секундах (может быть None или строкой)

        Returns:
            Интервал в пределах [SCHEDULER_MIN_INTERVAL, SCHEDULER_MAX_INTERVAL]
        """
        if interval is None:
            interval = self.SCHEDULER_DEFAULT_INTERVAL
        try:
            value = int(float(interval))
        except (TypeError, ValueError, OverflowError):
            value = self.SCHEDULER_DEFAULT_INTERVAL
        return min(self.SCHEDULER_MAX_INTERVAL, max(self.SCHEDULER_MIN_INTERVAL, value))


config = Config()

__all__ = ["config", "Config"]
