"""
Один проход планировщика: выборка готовых постов и их отправка по очереди
"""

from datetime import datetime, timezone
from typing import Optional

from post_scheduler.core.exceptions import StorageError
from post_scheduler.core.logger import logger
from post_scheduler.services.dispatcher import PostDispatcher
from post_scheduler.storage.repository import PostRepository
from post_scheduler.telegram_bot.models import TickSummary


class SchedulerTasks:
    """
    Задачи для планировщика и для ручного / cron вызова
    """

    def __init__(self, repository: PostRepository, dispatcher: PostDispatcher):
        """
        Args:
            repository: Хранилище постов
            dispatcher: Отправщик одного поста
        """
        self.repository = repository
        self.dispatcher = dispatcher
        self.last_summary: Optional[TickSummary] = None

    async def run_once(self, now: Optional[datetime] = None) -> TickSummary:
        """
        Отправка всех постов, у которых пришло время

        Посты обрабатываются последовательно. Ошибка одного поста не
        прерывает проход; ошибка выборки прерывает весь проход.

        Args:
            now: Текущее время (по умолчанию now в UTC)

        Returns:
            TickSummary с результатом по каждому посту

        Raises:
            StorageError: не удалось получить посты
        """
        if now is None:
            now = datetime.now(timezone.utc)

        logger.info(f"🚀 Проверка готовых постов на {now.isoformat()}")

        try:
            posts = await self.repository.fetch_due(now)
        except StorageError as e:
            logger.error(f"❌ Ошибка получения постов: {e}")
            raise

        if not posts:
            logger.info("📭 Нет постов готовых к отправке")
            summary = TickSummary(message="No posts to send", count=0)
            self.last_summary = summary
            return summary

        logger.info(f"📬 Найдено {len(posts)} постов для отправки")

        summary = TickSummary(message="Posts processed", count=len(posts))
        for post in posts:
            outcome = await self.dispatcher.dispatch(post)
            summary.results.append(outcome)
            if outcome.skipped:
                summary.skipped += 1

        logger.info(
            f"📊 Проход завершён: "
            f"✅ {summary.sent} отправлено, "
            f"❌ {summary.failed} провалено, "
            f"⏭️ {summary.skipped} пропущено"
        )

        self.last_summary = summary
        return summary

    async def scheduled_tick(self):
        """
        Обёртка для APScheduler: ошибки тика логируются, цикл продолжается
        """
        try:
            await self.run_once()
        except StorageError as e:
            logger.error(f"❌ Тик планировщика провален: {e}")


__all__ = ["SchedulerTasks"]
