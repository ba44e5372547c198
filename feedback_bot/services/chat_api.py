from __future__ import annotations

import logging
from typing import Any, Optional

from telegram.error import TelegramError

from ..errors import ChatApiError

logger = logging.getLogger(__name__)


async def send_text(bot: Any, chat_id: int, text: str, *, reply_markup: Any = None) -> Any:
    try:
        return await bot.send_message(chat_id=chat_id, text=text, reply_markup=reply_markup)
    except TelegramError as exc:
        raise ChatApiError(f"send_message to chat {chat_id} failed: {exc}") from exc


async def safe_send(bot: Any, chat_id: int, text: str, *, reply_markup: Any = None) -> Optional[Any]:
    try:
        return await send_text(bot, chat_id, text, reply_markup=reply_markup)
    except ChatApiError as exc:
        logger.warning("%s", exc)
        return None


async def delete_message(bot: Any, chat_id: int, message_id: Optional[int]) -> bool:
    """Best-effort delete. Already-deleted or too-old messages are expected."""
    if message_id is None:
        return False
    try:
        await bot.delete_message(chat_id=chat_id, message_id=message_id)
        return True
    except TelegramError as exc:
        logger.info("Could not delete message %s in chat %s: %s", message_id, chat_id, exc)
        return False


async def answer_callback(query: Any, text: Optional[str] = None) -> bool:
    if query is None:
        return False
    try:
        await query.answer(text=text)
        return True
    except TelegramError as exc:
        logger.info("Could not answer callback query %s: %s", getattr(query, "id", "?"), exc)
        return False
