from __future__ import annotations

import asyncio
import logging
from typing import Optional

from telegram import Update
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from .errors import ChatApiError
from .models import FeedbackAuthor
from .services.chat_api import answer_callback, safe_send, send_text
from .services.feedback import FeedbackSession
from .services.tokens import TokenManager
from .settings import HEARTBEAT_INTERVAL_SECONDS
from .ui import (
    CANCEL_FEEDBACK_CALLBACK,
    FEEDBACK_CALLBACK,
    GET_INSPIRED_CALLBACK,
    STRINGS,
    community_keyboard,
    pick_quote,
    start_keyboard,
)

FEEDBACK_KEY = "feedback"
TOKENS_KEY = "tokens"


def _feedback(context: ContextTypes.DEFAULT_TYPE) -> FeedbackSession:
    return context.application.bot_data[FEEDBACK_KEY]


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    chat = update.effective_chat
    name = user.first_name if user else "there"
    try:
        await send_text(context.bot, chat.id, STRINGS["welcome"].format(name=name), reply_markup=start_keyboard())
    except ChatApiError as exc:
        logging.error("Error in /start command: %s", exc)
        await safe_send(context.bot, chat.id, STRINGS["command_failed"])


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    chat = update.effective_chat
    try:
        await send_text(context.bot, chat.id, STRINGS["help"])
    except ChatApiError as exc:
        logging.error("Error in /help command: %s", exc)
        await safe_send(context.bot, chat.id, STRINGS["command_failed"])


async def community_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    chat = update.effective_chat
    try:
        await send_text(context.bot, chat.id, STRINGS["community"], reply_markup=community_keyboard())
    except ChatApiError as exc:
        logging.error("Error in /community command: %s", exc)
        await safe_send(context.bot, chat.id, STRINGS["command_failed"])


async def feedback_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    chat = update.effective_chat
    try:
        await _feedback(context).solicit(context.bot, update.effective_user.id, chat.id)
    except ChatApiError as exc:
        logging.error("Error in /feedback command: %s", exc)
        await safe_send(context.bot, chat.id, STRINGS["command_failed"])


async def feedback_button(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    try:
        await _feedback(context).solicit(context.bot, update.effective_user.id, update.effective_chat.id)
    except ChatApiError as exc:
        logging.error("Error handling feedback action: %s", exc)
        await answer_callback(query, STRINGS["action_failed"])
        return
    await answer_callback(query)


async def cancel_feedback_button(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await answer_callback(update.callback_query, STRINGS["feedback_canceled"])
    await _feedback(context).cancel(context.bot, update.effective_user.id)


async def get_inspired_button(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await answer_callback(update.callback_query)
    quote = pick_quote()
    await safe_send(context.bot, update.effective_chat.id, STRINGS["inspiration"].format(quote=quote))


async def on_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user = update.effective_user
    message = update.effective_message
    if not user or not message:
        return
    # Messages that are not feedback and not commands are ignored.
    await _feedback(context).handle_message(
        context.bot,
        FeedbackAuthor.from_user(user),
        update.effective_chat.id,
        message,
    )


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    update_id = getattr(update, "update_id", None)
    logging.error("Error occurred in bot update %s", update_id, exc_info=context.error)
    if not isinstance(update, Update) or not update.effective_chat:
        return
    sent = await safe_send(context.bot, update.effective_chat.id, STRINGS["generic_error"])
    if sent is None:
        logging.error("Failed to send error message to user in chat %s", update.effective_chat.id)


def build_application(token: str, feedback: FeedbackSession, tokens: Optional[TokenManager] = None) -> Application:
    application = ApplicationBuilder().token(token).concurrent_updates(True).build()
    application.bot_data[FEEDBACK_KEY] = feedback
    if tokens is not None:
        application.bot_data[TOKENS_KEY] = tokens

    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("feedback", feedback_command))
    application.add_handler(CommandHandler("community", community_command))
    application.add_handler(CallbackQueryHandler(feedback_button, pattern=f"^{FEEDBACK_CALLBACK}$"))
    application.add_handler(CallbackQueryHandler(cancel_feedback_button, pattern=f"^{CANCEL_FEEDBACK_CALLBACK}$"))
    application.add_handler(CallbackQueryHandler(get_inspired_button, pattern=f"^{GET_INSPIRED_CALLBACK}$"))
    application.add_handler(MessageHandler(filters.UpdateType.MESSAGE & ~filters.COMMAND, on_message))
    application.add_error_handler(on_error)
    return application


def is_running(application: Optional[Application]) -> bool:
    if application is None:
        return False
    updater = application.updater
    return bool(application.running and updater is not None and updater.running)


async def start_bot(application: Application, *, drop_pending_updates: bool = False) -> None:
    logging.info("Starting Telegram bot polling...")
    await application.initialize()
    await application.start()
    await application.updater.start_polling(drop_pending_updates=drop_pending_updates)
    logging.info("Bot is running...")


async def stop_bot(application: Application) -> None:
    """Stop polling and let in-flight handlers finish. The bot can still send."""
    logging.info("Stopping bot...")
    try:
        if application.updater and application.updater.running:
            await application.updater.stop()
        if application.running:
            await application.stop()
    except Exception as exc:
        logging.exception("Error while stopping bot: %s", exc)


async def shutdown_bot(application: Application) -> None:
    logging.info("Shutting down bot...")
    try:
        await application.shutdown()
    except Exception as exc:
        logging.exception("Error while shutting down bot: %s", exc)


async def heartbeat(application: Application, interval: float = HEARTBEAT_INTERVAL_SECONDS) -> None:
    feedback: FeedbackSession = application.bot_data[FEEDBACK_KEY]
    tokens: Optional[TokenManager] = application.bot_data.get(TOKENS_KEY)
    while True:
        try:
            expires_in = tokens.seconds_until_expiry() if tokens else None
            logging.info(
                "[bot] running=%s pending_feedback=%s token_expires_in=%s cleanups=%s",
                is_running(application),
                len(feedback.store),
                int(expires_in) if expires_in is not None else None,
                len(feedback.pending_cleanups),
            )
        except asyncio.CancelledError:
            break
        except Exception as exc:
            logging.debug("Bot heartbeat failed: %s", exc)
        try:
            await asyncio.sleep(interval)
        except asyncio.CancelledError:
            break
