"""
post_scheduler/storage/db.py

Асинхронный движок SQLAlchemy, фабрика сессий и ORM-модель таблицы posts.
По умолчанию - локальный SQLite через aiosqlite, в проде - DATABASE_URL.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, JSON, String, Text
from sqlalchemy.ext.asyncio import (
    AsyncAttrs,
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool


class Base(AsyncAttrs, DeclarativeBase):
    """Общий Base для всех ORM-моделей."""
    pass


def _utcnow() -> datetime:
    # В БД время хранится как naive UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PostRow(Base):
    """Пост в таблице posts (поля, которые читает и пишет доставка)."""

    __tablename__ = "posts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # текст поста (HTML-разметка Telegram)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # устаревшее поле с одной картинкой
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # JSON-строка или литерал массива {a,b}
    image_urls: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # запланированное время публикации (UTC)
    scheduled_time: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)

    # "scheduled" | "sending" | "sent" | "failed"
    status: Mapped[str] = mapped_column(String(20), default="scheduled", index=True)

    # список чатов: ["@channel", "-100123..."]
    chat_ids: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Создаёт асинхронный движок

    Для SQLite в памяти все сессии должны работать с одним соединением,
    иначе каждая увидит свою пустую базу.
    """
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_async_engine(
            database_url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(database_url, echo=echo)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Создаёт таблицы, если их ещё нет"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


__all__ = ["Base", "PostRow", "create_engine", "create_session_factory", "init_models"]
