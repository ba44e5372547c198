"""Tests for Telegram handlers and application wiring."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from telegram import Update
from telegram.error import TelegramError

from feedback_bot import bot as bot_module
from feedback_bot.errors import ChatApiError
from feedback_bot.services.feedback import FeedbackSession
from feedback_bot.ui import STRINGS


def _context(bot, feedback):
    application = SimpleNamespace(bot_data={bot_module.FEEDBACK_KEY: feedback})
    return SimpleNamespace(bot=bot, application=application, error=None)


def _update(user_id=42, chat_id=900, message=None, query=None):
    user = SimpleNamespace(id=user_id, first_name="Ada", last_name=None, username="ada")
    return SimpleNamespace(
        update_id=1,
        effective_user=user,
        effective_chat=SimpleNamespace(id=chat_id),
        effective_message=message,
        callback_query=query,
    )


@pytest.fixture
def feedback():
    mock = Mock(spec=FeedbackSession)
    mock.solicit = AsyncMock()
    mock.cancel = AsyncMock(return_value=False)
    mock.handle_message = AsyncMock(return_value=False)
    return mock


class TestCommands:
    """Tests for slash command handlers."""

    @pytest.mark.asyncio
    async def test_start_greets_by_name(self, bot, feedback):
        await bot_module.start_command(_update(), _context(bot, feedback))

        kwargs = bot.send_message.await_args.kwargs
        assert "Ada" in kwargs["text"]
        callbacks = [b.callback_data for row in kwargs["reply_markup"].inline_keyboard for b in row]
        assert "feedback" in callbacks

    @pytest.mark.asyncio
    async def test_help_lists_commands(self, bot, feedback):
        await bot_module.help_command(_update(), _context(bot, feedback))
        assert "/feedback" in bot.send_message.await_args.kwargs["text"]

    @pytest.mark.asyncio
    async def test_feedback_command_solicits(self, bot, feedback):
        await bot_module.feedback_command(_update(), _context(bot, feedback))
        feedback.solicit.assert_awaited_once_with(bot, 42, 900)

    @pytest.mark.asyncio
    async def test_community_send_failure_apologises(self, bot, feedback):
        bot.send_message.side_effect = [TelegramError("flood"), SimpleNamespace(message_id=1)]

        await bot_module.community_command(_update(), _context(bot, feedback))

        assert bot.send_message.await_args.kwargs["text"] == STRINGS["command_failed"]


class TestCallbacks:
    """Tests for inline button handlers."""

    @pytest.mark.asyncio
    async def test_feedback_button_answers_and_solicits(self, bot, feedback):
        query = SimpleNamespace(id="q1", answer=AsyncMock())

        await bot_module.feedback_button(_update(query=query), _context(bot, feedback))

        query.answer.assert_awaited_once_with(text=None)
        feedback.solicit.assert_awaited_once_with(bot, 42, 900)

    @pytest.mark.asyncio
    async def test_feedback_button_failure_answers_with_toast(self, bot, feedback):
        query = SimpleNamespace(id="q1", answer=AsyncMock())
        feedback.solicit.side_effect = ChatApiError("send_message to chat 900 failed: blocked")

        await bot_module.feedback_button(_update(query=query), _context(bot, feedback))

        query.answer.assert_awaited_once_with(text=STRINGS["action_failed"])
        bot.send_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancel_without_session_does_not_error(self, bot):
        query = SimpleNamespace(id="q1", answer=AsyncMock(side_effect=TelegramError("query is too old")))
        feedback = FeedbackSession(Mock(), cleanup_delay=0)

        await bot_module.cancel_feedback_button(_update(query=query), _context(bot, feedback))

        query.answer.assert_awaited_once_with(text=STRINGS["feedback_canceled"])
        bot.delete_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_inspired_sends_quote(self, bot, feedback):
        query = SimpleNamespace(id="q1", answer=AsyncMock())

        await bot_module.get_inspired_button(_update(query=query), _context(bot, feedback))

        assert bot.send_message.await_args.kwargs["text"].startswith("💫")


class TestMessagesAndErrors:
    """Tests for the catch-all message handler and dispatcher error handler."""

    @pytest.mark.asyncio
    async def test_message_is_offered_to_feedback_session(self, bot, feedback):
        message = SimpleNamespace(text="great app")

        await bot_module.on_message(_update(message=message), _context(bot, feedback))

        args = feedback.handle_message.await_args.args
        assert args[1].id == 42
        assert args[2] == 900
        assert args[3] is message

    @pytest.mark.asyncio
    async def test_error_handler_apologises(self, bot, feedback):
        update = Mock(spec=Update)
        update.update_id = 5
        update.effective_chat = SimpleNamespace(id=900)
        context = _context(bot, feedback)
        context.error = RuntimeError("boom")

        await bot_module.on_error(update, context)

        assert bot.send_message.await_args.kwargs["text"] == STRINGS["generic_error"]

    @pytest.mark.asyncio
    async def test_error_handler_survives_failed_apology(self, bot, feedback):
        update = Mock(spec=Update)
        update.update_id = 5
        update.effective_chat = SimpleNamespace(id=900)
        bot.send_message.side_effect = TelegramError("forbidden")
        context = _context(bot, feedback)
        context.error = RuntimeError("boom")

        await bot_module.on_error(update, context)

    @pytest.mark.asyncio
    async def test_error_handler_ignores_non_updates(self, bot, feedback):
        await bot_module.on_error(None, _context(bot, feedback))
        bot.send_message.assert_not_awaited()


class TestBuildApplication:
    """Tests for handler registration."""

    def test_registers_handlers_and_shared_state(self):
        feedback = Mock(spec=FeedbackSession)
        application = bot_module.build_application("123456:TEST-TOKEN", feedback)

        assert application.bot_data[bot_module.FEEDBACK_KEY] is feedback
        handlers = application.handlers[0]
        assert len(handlers) == 8
        assert application.error_handlers

    def test_is_running_without_application(self):
        assert bot_module.is_running(None) is False


class TestLifecycle:
    """Tests for stopping and shutting down the Telegram application."""

    @pytest.mark.asyncio
    async def test_stop_keeps_bot_usable(self):
        application = Mock()
        application.running = True
        application.updater.running = True
        application.updater.stop = AsyncMock()
        application.stop = AsyncMock()
        application.shutdown = AsyncMock()

        await bot_module.stop_bot(application)

        application.updater.stop.assert_awaited_once()
        application.stop.assert_awaited_once()
        application.shutdown.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_shutdown_errors_are_logged(self, caplog):
        application = Mock()
        application.shutdown = AsyncMock(side_effect=RuntimeError("already closed"))

        await bot_module.shutdown_bot(application)

        assert "Error while shutting down bot" in caplog.text
