"""
Репозитории постов: выборка готовых к отправке, захват и запись статуса
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from post_scheduler.core.exceptions import StorageError
from post_scheduler.core.logger import logger
from post_scheduler.services.image_resolver import collect_image_sources
from post_scheduler.storage.db import PostRow, create_session_factory
from post_scheduler.telegram_bot.models import Post, PostStatus
from post_scheduler.utils.helpers import generate_id


def _naive_utc(value: datetime) -> datetime:
    """Приводит время к naive UTC (так оно хранится в БД)"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PostRepository(ABC):
    """Интерфейс хранилища постов, которым пользуется доставка"""

    @abstractmethod
    async def fetch_due(self, now: Optional[datetime] = None) -> List[Post]:
        """
        Получить все посты со статусом scheduled и временем <= now

        Raises:
            StorageError: хранилище недоступно
        """

    @abstractmethod
    async def claim(self, post_id: str) -> bool:
        """
        Атомарно перевести пост scheduled -> sending

        Returns:
            True если пост захвачен этим вызовом
        """

    @abstractmethod
    async def mark_status(self, post_id: str, status: PostStatus, error: Optional[str] = None) -> None:
        """Записать итоговый статус поста"""

    @abstractmethod
    async def add(self, post: Post) -> str:
        """Сохранить новый пост"""

    @abstractmethod
    async def get(self, post_id: str) -> Optional[Post]:
        """Получить пост по ID"""

    @abstractmethod
    async def count_by_status(self) -> Dict[str, int]:
        """Количество постов по статусам"""


class InMemoryPostRepository(PostRepository):
    """
    In-memory хранилище постов
    Для production используется SqlPostRepository
    """

    def __init__(self):
        self.posts: Dict[str, Post] = {}

    async def add(self, post: Post) -> str:
        self.posts[post.id] = post.model_copy(deep=True)
        logger.info(f"➕ Пост добавлен: {post.id} на {post.scheduled_time}")
        return post.id

    async def get(self, post_id: str) -> Optional[Post]:
        post = self.posts.get(post_id)
        return post.model_copy(deep=True) if post else None

    async def fetch_due(self, now: Optional[datetime] = None) -> List[Post]:
        if now is None:
            now = _utcnow()

        due = [
            post.model_copy(deep=True)
            for post in self.posts.values()
            if post.is_due(now)
        ]
        due.sort(key=lambda p: p.scheduled_time)
        return due

    async def claim(self, post_id: str) -> bool:
        post = self.posts.get(post_id)
        if post is None or post.status != PostStatus.SCHEDULED:
            return False

        post.status = PostStatus.SENDING
        post.updated_at = _utcnow()
        return True

    async def mark_status(self, post_id: str, status: PostStatus, error: Optional[str] = None) -> None:
        post = self.posts.get(post_id)
        if post is None:
            raise StorageError(f"Post {post_id} not found")

        post.status = status
        post.last_error = error
        post.updated_at = _utcnow()

    async def count_by_status(self) -> Dict[str, int]:
        counts: Dict[str, int] = {status.value: 0 for status in PostStatus}
        for post in self.posts.values():
            counts[post.status.value] += 1
        return counts


class SqlPostRepository(PostRepository):
    """Хранилище постов на SQLAlchemy (SQLite/PostgreSQL)"""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    @staticmethod
    def _to_post(row: PostRow) -> Post:
        # Разбор image_urls делаем один раз, на границе хранилища
        return Post(
            id=row.id,
            content=row.content,
            image_sources=collect_image_sources(row.image_urls, row.image_url),
            scheduled_time=row.scheduled_time,
            status=PostStatus(row.status),
            chat_targets=row.chat_ids or [],
            owner=row.user_id,
            last_error=row.last_error,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    async def add(self, post: Post) -> str:
        row = PostRow(
            id=post.id or generate_id(),
            content=post.content,
            image_urls=json.dumps(post.image_sources) if post.image_sources else None,
            scheduled_time=_naive_utc(post.scheduled_time),
            status=post.status.value,
            chat_ids=list(post.chat_targets),
            user_id=post.owner,
        )
        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save post: {e}") from e

        logger.info(f"➕ Пост добавлен: {row.id} на {row.scheduled_time}")
        return row.id

    async def get(self, post_id: str) -> Optional[Post]:
        try:
            async with self.session_factory() as session:
                row = await session.get(PostRow, post_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load post {post_id}: {e}") from e

        return self._to_post(row) if row else None

    async def fetch_due(self, now: Optional[datetime] = None) -> List[Post]:
        if now is None:
            now = _utcnow()

        query = (
            select(PostRow)
            .where(PostRow.status == PostStatus.SCHEDULED.value)
            .where(PostRow.scheduled_time <= _naive_utc(now))
            .order_by(PostRow.scheduled_time)
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to fetch posts: {e}") from e

        posts = []
        for row in rows:
            try:
                posts.append(self._to_post(row))
            except (ValidationError, TypeError, ValueError) as e:
                await self._reject_row(row.id, e)
        return posts

    async def _reject_row(self, post_id: str, error: Exception):
        """Битая строка не должна останавливать выборку: помечаем её failed"""
        reason = f"Invalid post data: {error}"
        logger.error(f"❌ Пост {post_id} не разобран и помечен failed: {error}")
        try:
            await self.mark_status(post_id, PostStatus.FAILED, reason)
        except StorageError as e:
            logger.error(f"❌ Не удалось пометить пост {post_id} как failed: {e}")

    async def claim(self, post_id: str) -> bool:
        stmt = (
            update(PostRow)
            .where(PostRow.id == post_id)
            .where(PostRow.status == PostStatus.SCHEDULED.value)
            .values(status=PostStatus.SENDING.value, updated_at=_naive_utc(_utcnow()))
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to claim post {post_id}: {e}") from e

        return result.rowcount == 1

    async def mark_status(self, post_id: str, status: PostStatus, error: Optional[str] = None) -> None:
        stmt = (
            update(PostRow)
            .where(PostRow.id == post_id)
            .values(status=status.value, last_error=error, updated_at=_naive_utc(_utcnow()))
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update post {post_id}: {e}") from e

        if result.rowcount == 0:
            raise StorageError(f"Post {post_id} not found")

    async def count_by_status(self) -> Dict[str, int]:
        query = select(PostRow.status, func.count()).group_by(PostRow.status)
        try:
            async with self.session_factory() as session:
                result = await session.execute(query)
                rows = result.all()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to count posts: {e}") from e

        counts: Dict[str, int] = {status.value: 0 for status in PostStatus}
        for status, count in rows:
            counts[status] = count
        return counts


__all__ = ["PostRepository", "InMemoryPostRepository", "SqlPostRepository"]
