"""
Отправка постов в Telegram через Bot API
"""

import asyncio
import base64
import binascii
import re
from typing import Dict, List, Optional, Union

import aiohttp
from aiogram import Bot
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.exceptions import TelegramAPIError
from aiogram.methods import TelegramMethod
from aiogram.methods.base import TelegramType
from aiogram.types import BufferedInputFile, InputFile, InputMediaPhoto
from aiohttp import FormData

from post_scheduler.core.exceptions import DeliveryError
from post_scheduler.core.logger import logger
from post_scheduler.telegram_bot.models import DeliveryResult

# data:image/png;base64,....
DATA_URI_RE = re.compile(r"^data:([A-Za-z0-9.+\-]+/[A-Za-z0-9.+\-]+);base64,(.+)$", re.DOTALL)


def decode_data_uri(source: str) -> Optional[BufferedInputFile]:
    """
    Превращает data:-URI в файл для загрузки multipart'ом

    Args:
        source: Ссылка на картинку

    Returns:
        BufferedInputFile, если это data:-URI, иначе None

    Raises:
        DeliveryError: если base64 повреждён
    """
    match = DATA_URI_RE.match(source)
    if not match:
        return None

    mime_type, payload = match.groups()
    try:
        data = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise DeliveryError(f"Invalid base64 image data: {e}") from e

    extension = mime_type.split("/")[1].split("+")[0] or "png"
    if extension == "jpeg":
        extension = "jpg"
    return TypedInputFile(data, filename=f"image.{extension}", content_type=mime_type)


def as_photo(source: str) -> Union[str, BufferedInputFile]:
    """URL отдаём как есть, data:-URI загружаем файлом"""
    return decode_data_uri(source) or source


class TypedInputFile(BufferedInputFile):
    """Файл из памяти с явным MIME-типом для multipart-части"""

    def __init__(self, file: bytes, filename: str, content_type: str):
        super().__init__(file, filename=filename)
        self.content_type = content_type


class TypedFileSession(AiohttpSession):
    """
    Сессия aiogram, которая проставляет Content-Type у файловых частей.
    Стандартная сессия всегда отправляет application/octet-stream.
    """

    def build_form_data(self, bot: Bot, method: TelegramMethod[TelegramType]) -> FormData:
        form = FormData(quote_fields=False)
        files: Dict[str, InputFile] = {}
        for key, value in method.model_dump(warnings=False).items():
            value = self.prepare_value(value, bot=bot, files=files)
            if not value:
                continue
            form.add_field(key, value)
        for key, value in files.items():
            form.add_field(
                key,
                value.read(bot),
                filename=value.filename or key,
                content_type=getattr(value, "content_type", None),
            )
        return form


class TelegramDelivery:
    """
    Адаптер Bot API: текст, одно фото с подписью или медиагруппа
    """

    def __init__(
        self,
        bot_token: Optional[str] = None,
        bot: Optional[Bot] = None,
        parse_mode: str = "HTML",
        request_timeout: int = 20
    ):
        """
        Args:
            bot_token: Токен Telegram бота
            bot: Готовый экземпляр Bot (вместо токена)
            parse_mode: Режим разметки текста
            request_timeout: Таймаут одного запроса к API, секунды
        """
        if bot is None:
            if not bot_token:
                raise DeliveryError("Bot token is required")
            bot = Bot(token=bot_token, session=TypedFileSession())

        self.bot = bot
        self.parse_mode = parse_mode
        self.request_timeout = request_timeout

        logger.info("🤖 TelegramDelivery инициализирован")

    async def close(self):
        await self.bot.session.close()
        logger.info("🛑 Сессия бота закрыта")

    async def deliver(self, chat_target: str, body_text: str, images: List[str]) -> DeliveryResult:
        """
        Отправить пост в один чат

        Ветка выбирается по количеству картинок:
        0 - sendMessage, 1 - sendPhoto с подписью, 2+ - sendMediaGroup
        (подпись только у первого элемента). Лимит в 10 картинок не
        проверяется, ошибку вернёт сам Telegram.

        Args:
            chat_target: @username или -100... ID чата
            body_text: Текст поста
            images: Список URL или data:-URI

        Returns:
            DeliveryResult с ID сообщений или текстом ошибки
        """
        try:
            if not images:
                message = await self.bot.send_message(
                    chat_id=chat_target,
                    text=body_text,
                    parse_mode=self.parse_mode,
                    request_timeout=self.request_timeout
                )
                message_ids = [message.message_id]

            elif len(images) == 1:
                message = await self.bot.send_photo(
                    chat_id=chat_target,
                    photo=as_photo(images[0]),
                    caption=body_text,
                    parse_mode=self.parse_mode,
                    request_timeout=self.request_timeout
                )
                message_ids = [message.message_id]

            else:
                media = []
                for index, source in enumerate(images):
                    if index == 0:
                        item = InputMediaPhoto(
                            media=as_photo(source),
                            caption=body_text,
                            parse_mode=self.parse_mode
                        )
                    else:
                        item = InputMediaPhoto(media=as_photo(source))
                    media.append(item)

                messages = await self.bot.send_media_group(
                    chat_id=chat_target,
                    media=media,
                    request_timeout=self.request_timeout
                )
                message_ids = [m.message_id for m in messages]

        except TelegramAPIError as e:
            logger.error(f"❌ Telegram API error ({chat_target}): {e.message}")
            return DeliveryResult.failure(chat_target, e.message)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            error_msg = f"Network error: {str(e) or type(e).__name__}"
            logger.error(f"❌ {error_msg} ({chat_target})")
            return DeliveryResult.failure(chat_target, error_msg)

        except DeliveryError as e:
            logger.error(f"❌ {e} ({chat_target})")
            return DeliveryResult.failure(chat_target, str(e))

        logger.info(f"✅ Отправлено в {chat_target} (message_ids: {message_ids})")
        return DeliveryResult.success(chat_target, message_ids)


__all__ = ["TelegramDelivery", "decode_data_uri", "as_photo"]
