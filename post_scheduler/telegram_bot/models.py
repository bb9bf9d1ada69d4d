"""
Модели данных для доставки постов
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator


class PostStatus(str, Enum):
    """Статусы поста"""
    SCHEDULED = "scheduled"     # Ждёт своего времени
    SENDING = "sending"         # Захвачен воркером, идёт отправка
    SENT = "sent"               # Успешно отправлен
    FAILED = "failed"           # Провален (без автоповтора)



class Post(BaseModel):
    """Пост, запланированный к отправке в один или несколько чатов"""

    id: str = Field(..., description="Уникальный ID поста")
    content: str = Field(..., description="Текст поста (HTML, до 4096 символов)")
    image_sources: List[str] = Field(default_factory=list, description="URL или data:-URI картинок")
    scheduled_time: datetime = Field(..., description="Время отправки (UTC)")
    status: PostStatus = Field(default=PostStatus.SCHEDULED, description="Статус поста")
    chat_targets: List[str] = Field(default_factory=list, description="Чаты (@username или -100...)")
    owner: Optional[str] = Field(default=None, description="ID автора")
    last_error: Optional[str] = Field(default=None, description="Последняя ошибка")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("scheduled_time", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        """Время без зоны считаем UTC"""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("chat_targets", mode="before")
    @classmethod
    def _chat_targets_as_str(cls, value: Any) -> List[str]:
        if value is None:
            return []
        # Одиночный чат, сохранённый строкой, а не списком
        if isinstance(value, (str, int)):
            return [str(value)]
        if not isinstance(value, (list, tuple)):
            raise ValueError(f"chat targets must be a list, got {type(value).__name__}")
        return [str(chat_id) for chat_id in value]

    def is_due(self, current_time: Optional[datetime] = None) -> bool:
        """
        Проверка готовности к отправке

        Args:
            current_time: Текущее время (по умолчанию now в UTC)
        """
        if current_time is None:
            current_time = datetime.now(timezone.utc)
        elif current_time.tzinfo is None:
            current_time = current_time.replace(tzinfo=timezone.utc)

        return self.status == PostStatus.SCHEDULED and self.scheduled_time <= current_time


class DeliveryResult(BaseModel):
    """Результат одного вызова Telegram Bot API"""
    ok: bool
    chat_id: str
    message_ids: List[int] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def message_id(self) -> Optional[int]:
        return self.message_ids[0] if self.message_ids else None

    @classmethod
    def success(cls, chat_id: str, message_ids: List[int]) -> "DeliveryResult":
        return cls(ok=True, chat_id=chat_id, message_ids=message_ids)

    @classmethod
    def failure(cls, chat_id: str, error: str) -> "DeliveryResult":
        return cls(ok=False, chat_id=chat_id, error=error)


class DispatchOutcome(BaseModel):
    """Итог обработки одного поста за тик"""
    post_id: str
    status: str  # "sent" | "failed" | "skipped"
    error: Optional[str] = None
    message_id: Optional[int] = None
    deliveries: List[DeliveryResult] = Field(default_factory=list)
    # Статус не удалось записать даже после повторов
    inconsistent: bool = False

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    def to_result(self) -> Dict[str, Any]:
        """Короткая форма для ответа API"""
        result: Dict[str, Any] = {"id": self.post_id, "status": self.status}
        if self.error is not None:
            result["error"] = self.error
        if self.message_id is not None:
            result["messageId"] = self.message_id
        if self.inconsistent:
            result["inconsistent"] = True
        return result


class TickSummary(BaseModel):
    """Сводка одного прохода планировщика"""
    message: str
    count: int = 0
    skipped: int = 0
    results: List[DispatchOutcome] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def sent(self) -> int:
        return len([r for r in self.results if r.status == PostStatus.SENT.value])

    @property
    def failed(self) -> int:
        return len([r for r in self.results if r.status == PostStatus.FAILED.value])

    def to_dict(self) -> Dict[str, Any]:
        """Конвертация в словарь для JSON-ответа"""
        return {
            "message": self.message,
            "count": self.count,
            "skipped": self.skipped,
            "results": [r.to_result() for r in self.results],
        }


__all__ = [
    "PostStatus",
    "Post",
    "DeliveryResult",
    "DispatchOutcome",
    "TickSummary"
]
