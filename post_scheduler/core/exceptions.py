"""
Кастомные исключения для приложения
"""


class PostSchedulerError(Exception):
    """Базовое исключение для всех ошибок приложения"""
    pass


class ConfigError(PostSchedulerError):
    """Ошибка конфигурации (нет токена бота, секрета и т.п.)"""
    pass


class AuthError(PostSchedulerError):
    """Неверный или отсутствующий секрет при вызове планировщика"""
    pass


class StorageError(PostSchedulerError):
    """Ошибка хранилища постов"""
    pass


class DeliveryError(PostSchedulerError):
    """Ошибка отправки в Telegram"""
    pass


class SchedulerError(PostSchedulerError):
    """Ошибка планировщика"""
    pass


__all__ = [
    "PostSchedulerError",
    "ConfigError",
    "AuthError",
    "StorageError",
    "DeliveryError",
    "SchedulerError"
]
