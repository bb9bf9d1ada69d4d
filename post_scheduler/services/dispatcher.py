"""
Отправка одного готового поста: захват, доставка во все чаты, запись статуса.
Переходы: scheduled -> sending -> sent | failed.
"""

from typing import List, Optional

from post_scheduler.core.exceptions import StorageError
from post_scheduler.core.logger import logger
from post_scheduler.storage.repository import PostRepository
from post_scheduler.telegram_bot.delivery import TelegramDelivery
from post_scheduler.telegram_bot.models import DeliveryResult, DispatchOutcome, Post, PostStatus
from post_scheduler.utils.helpers import retry_async

NO_DESTINATION_ERROR = "No destination configured"


class PostDispatcher:
    """
    Доставка постов со статусом scheduled
    """

    def __init__(
        self,
        repository: PostRepository,
        delivery: TelegramDelivery,
        write_back_retries: int = 3,
        write_back_delay: float = 1.0
    ):
        """
        Args:
            repository: Хранилище постов
            delivery: Адаптер Telegram Bot API
            write_back_retries: Сколько раз пытаться записать итоговый статус
            write_back_delay: Пауза между попытками, секунды
        """
        self.repository = repository
        self.delivery = delivery
        self.write_back_retries = max(1, write_back_retries)
        self.write_back_delay = write_back_delay

    async def dispatch(self, post: Post) -> DispatchOutcome:
        """
        Обработать один пост

        Args:
            post: Пост из выборки готовых к отправке

        Returns:
            DispatchOutcome со статусом sent / failed / skipped
        """
        try:
            claimed = await self.repository.claim(post.id)
        except StorageError as e:
            logger.error(f"❌ Не удалось захватить пост {post.id}: {e}")
            return DispatchOutcome(post_id=post.id, status="skipped", error=str(e))
        except Exception as e:
            logger.error(f"❌ Непредвиденная ошибка захвата поста {post.id}: {e}", exc_info=True)
            return DispatchOutcome(post_id=post.id, status="skipped", error=f"Unexpected error: {e}")

        if not claimed:
            logger.warning(f"⚠️ Пост {post.id} уже обрабатывается другим воркером")
            return DispatchOutcome(post_id=post.id, status="skipped", error="Already claimed")

        if not post.chat_targets:
            logger.error(f"❌ Пост {post.id} не имеет чатов для отправки")
            return await self._finish(post, PostStatus.FAILED, NO_DESTINATION_ERROR, [])

        logger.info(
            f"📤 Отправляю пост {post.id} в {len(post.chat_targets)} чат(ов), "
            f"картинок: {len(post.image_sources)}"
        )

        deliveries: List[DeliveryResult] = []
        try:
            for chat_id in post.chat_targets:
                result = await self.delivery.deliver(chat_id, post.content, post.image_sources)
                deliveries.append(result)
                if not result.ok:
                    break
        except Exception as e:
            logger.error(f"❌ Непредвиденная ошибка отправки поста {post.id}: {e}", exc_info=True)
            return await self._finish(post, PostStatus.FAILED, f"Unexpected error: {e}", deliveries)

        failure = next((d for d in deliveries if not d.ok), None)
        if failure is not None:
            return await self._finish(post, PostStatus.FAILED, failure.error or "Unknown error", deliveries)

        return await self._finish(post, PostStatus.SENT, None, deliveries)

    async def _finish(
        self,
        post: Post,
        status: PostStatus,
        error: Optional[str],
        deliveries: List[DeliveryResult]
    ) -> DispatchOutcome:
        """Записывает итоговый статус и собирает результат"""
        written = await self._write_back(post.id, status, error)

        message_id = None
        if status == PostStatus.SENT and deliveries:
            message_id = deliveries[0].message_id

        if status == PostStatus.SENT:
            logger.info(f"✅ Пост {post.id} отправлен (message_id: {message_id})")
        else:
            logger.error(f"❌ Пост {post.id} провален: {error}")

        return DispatchOutcome(
            post_id=post.id,
            status=status.value,
            error=error,
            message_id=message_id,
            deliveries=deliveries,
            inconsistent=not written
        )

    async def _write_back(self, post_id: str, status: PostStatus, error: Optional[str]) -> bool:
        mark_status = retry_async(
            retries=self.write_back_retries,
            delay=self.write_back_delay
        )(self.repository.mark_status)

        try:
            await mark_status(post_id, status, error)
        except Exception as e:
            # Пост остаётся в sending: повторно не уйдёт, но нужен ручной разбор
            logger.error(
                f"🚨 INCONSISTENT STATE: пост {post_id} обработан со статусом "
                f"{status.value}, но статус не записан: {e}",
                exc_info=not isinstance(e, StorageError)
            )
            return False
        return True


__all__ = ["PostDispatcher", "NO_DESTINATION_ERROR"]
