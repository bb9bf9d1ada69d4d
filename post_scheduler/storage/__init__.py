"""Хранилище постов"""
from post_scheduler.storage.db import Base, PostRow, create_engine, create_session_factory, init_models
from post_scheduler.storage.repository import PostRepository, SqlPostRepository, InMemoryPostRepository

__all__ = [
    "Base",
    "PostRow",
    "create_engine",
    "create_session_factory",
    "init_models",
    "PostRepository",
    "SqlPostRepository",
    "InMemoryPostRepository"
]
