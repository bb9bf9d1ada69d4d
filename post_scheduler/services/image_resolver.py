"""
Нормализация ссылок на изображения поста

Поле image_urls может прийти в разных видах:
- уже готовый список (JSON-колонка / ORM);
- JSON-строка '["url1", "url2"]';
- литерал массива PostgreSQL '{url1,url2}';
- пусто.
Плюс устаревшее скалярное поле image_url с одной картинкой.
"""

import json
from typing import Any, List, Optional


def resolve_image_sources(raw: Any) -> List[str]:
    """
    Приводит сырое значение image_urls к упорядоченному списку

    Args:
        raw: Значение поля из хранилища

    Returns:
        Список ссылок (URL или data:-URI); при ошибке разбора - пустой список.
        Элементы, не являющиеся непустыми строками, отбрасываются.
    """
    if raw is None:
        return []

    if isinstance(raw, (list, tuple)):
        return _only_strings(raw)

    if not isinstance(raw, str):
        return []

    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = None
    else:
        return _only_strings(parsed) if isinstance(parsed, list) else []

    # Литерал массива PostgreSQL: {url1,url2}
    if raw.startswith("{") and raw.endswith("}"):
        inner = raw[1:-1]
        if not inner.strip():
            return []
        return _only_strings(_strip_item(item) for item in inner.split(","))

    return []


def _only_strings(items) -> List[str]:
    return [item for item in items if isinstance(item, str) and item]


def _strip_item(item: str) -> str:
    """Снимает одну пару кавычек и пробелы по краям"""
    item = item.strip()
    if len(item) >= 2 and item.startswith('"') and item.endswith('"'):
        item = item[1:-1]
    return item.strip()


def collect_image_sources(image_urls: Any, image_url: Optional[str] = None) -> List[str]:
    """
    Собирает итоговый список картинок поста с учётом устаревшего поля

    Args:
        image_urls: Значение поля image_urls (любой из поддерживаемых видов)
        image_url: Устаревшее поле с одной картинкой

    Returns:
        Упорядоченный список ссылок
    """
    # Пустая строка в image_urls равносильна отсутствию значения
    if (image_urls is None or image_urls == "") and image_url:
        return [image_url]
    return resolve_image_sources(image_urls)


__all__ = ["resolve_image_sources", "collect_image_sources"]
