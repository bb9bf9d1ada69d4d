"""
Самоперезапускающийся режим: периодический вызов прохода по готовым постам
внутри процесса. Живёт, пока жив процесс; для продакшена надёжнее внешний
cron, дергающий одноразовый проход.
"""

from datetime import datetime, timezone
from typing import Optional, List

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from post_scheduler.core.config import config
from post_scheduler.core.exceptions import SchedulerError
from post_scheduler.core.logger import logger

DISPATCH_JOB_ID = "dispatch_due_posts"


class PostScheduler:
    """
    Планировщик периодической отправки постов
    """

    def __init__(self):
        """Инициализация планировщика"""
        self.scheduler = AsyncIOScheduler(timezone=config.TIMEZONE)
        self.is_running = False
        self.interval: Optional[int] = None
        logger.info("📅 Планировщик инициализирован")

    def start(self):
        """Запуск планировщика"""
        if not self.is_running:
            self.scheduler.start()
            self.is_running = True
            logger.info("✅ Планировщик запущен")
        else:
            logger.warning("⚠️ Планировщик уже запущен")

    def stop(self):
        """Остановка планировщика"""
        if self.is_running:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            self.interval = None
            logger.info("🛑 Планировщик остановлен")

    def start_loop(self, callback, interval: int):
        """
        Запускает (или перенастраивает) периодический проход

        Первый проход выполняется сразу. Перекрытия исключены:
        пока идёт предыдущий тик, новый не стартует.

        Args:
            callback: Async функция одного прохода
            interval: Интервал в секундах (уже ограниченный снизу)
        """
        if not self.is_running:
            raise SchedulerError("Scheduler is not running")

        self.scheduler.add_job(
            callback,
            trigger="interval",
            seconds=interval,
            id=DISPATCH_JOB_ID,
            name=f"Отправка готовых постов (каждые {interval} сек)",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc)
        )
        self.interval = interval

        logger.info(f"🔄 Периодическая отправка: каждые {interval} сек")

    def stop_loop(self) -> bool:
        """
        Останавливает периодический проход

        Returns:
            True если задача была и удалена
        """
        if self.scheduler.get_job(DISPATCH_JOB_ID) is None:
            return False

        self.scheduler.remove_job(DISPATCH_JOB_ID)
        self.interval = None
        logger.info("⏹️ Периодическая отправка остановлена")
        return True

    @property
    def loop_active(self) -> bool:
        return self.is_running and self.scheduler.get_job(DISPATCH_JOB_ID) is not None

    def get_jobs(self) -> List[dict]:
        """
        Получить список всех задач

        Returns:
            Список задач
        """
        jobs = []

        for job in self.scheduler.get_jobs():
            jobs.append({
                'id': job.id,
                'name': job.name,
                'next_run': job.next_run_time,
                'trigger': str(job.trigger)
            })

        return jobs


__all__ = ["PostScheduler", "DISPATCH_JOB_ID"]
