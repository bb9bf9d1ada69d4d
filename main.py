"""
Главный файл запуска

    python main.py          - HTTP API (uvicorn) с триггером планировщика
    python main.py once     - один проход по готовым постам (для системного cron)
"""
import asyncio
import json
import sys

import uvicorn

from post_scheduler.core.config import config
from post_scheduler.core.exceptions import ConfigError, StorageError
from post_scheduler.core.init import init_delivery, init_storage, init_tasks
from post_scheduler.core.logger import logger


async def run_once() -> int:
    """Один проход: код возврата 0 при успешном проходе, 1 при ошибке"""
    engine = None
    delivery = None

    try:
        config.validate()
        engine, repository = await init_storage()
        delivery = init_delivery()
        tasks = init_tasks(repository, delivery)

        summary = await tasks.run_once()
        print(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))
        return 0

    except ConfigError as e:
        logger.error(f"❌ Ошибка конфигурации: {e}")
        return 1

    except StorageError as e:
        logger.error(f"❌ Ошибка хранилища: {e}")
        return 1

    finally:
        if delivery is not None:
            await delivery.close()
        if engine is not None:
            await engine.dispose()


def serve():
    """Запуск HTTP API"""
    logger.info("=" * 80)
    logger.info(f"🚀 ЗАПУСК POST SCHEDULER API на {config.API_HOST}:{config.API_PORT}")
    logger.info("=" * 80)

    uvicorn.run(
        "api.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        log_level="info"
    )


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "once":
        sys.exit(asyncio.run(run_once()))

    try:
        serve()
    except KeyboardInterrupt:
        logger.info("👋 Остановка по Ctrl+C")
