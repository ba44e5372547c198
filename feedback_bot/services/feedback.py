from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Set

import httpx

from ..errors import AuthenticationError, SubmissionError
from ..models import EmailMessage, FeedbackAuthor
from ..settings import FEEDBACK_AUTH_RETRIES, PROMPT_CLEANUP_DELAY_SECONDS
from ..ui import STRINGS, cancel_keyboard
from ..utils import format_local_timestamp, truncate_log_text
from .backend_api import BackendClient
from .chat_api import delete_message, safe_send, send_text
from .sessions import FeedbackEntry, FeedbackSessionStore
from .tokens import TokenManager

logger = logging.getLogger(__name__)

# Media kinds checked after text and caption, in priority order.
_MEDIA_MARKERS = (
    ("photo", "[Photo message without caption]"),
    ("video", "[Video message without caption]"),
    ("document", "[Document message without caption]"),
    ("voice", "[Voice message without caption]"),
)
OTHER_MESSAGE_MARKER = "[Other message type received]"


def is_command_text(text: Optional[str]) -> bool:
    return bool(text) and text.startswith("/")


def classify_message(message: Any) -> Optional[str]:
    """Return the feedback text for ``message``, or None for slash commands."""
    text = getattr(message, "text", None)
    if text:
        return None if is_command_text(text) else text
    caption = getattr(message, "caption", None)
    if caption:
        return f"[Media message with caption]: {caption}"
    for attr, marker in _MEDIA_MARKERS:
        if getattr(message, attr, None):
            return marker
    return OTHER_MESSAGE_MARKER


def build_report(author: FeedbackAuthor, text: str, timestamp: Optional[str] = None) -> str:
    return (
        "📝 New Feedback Received\n\n"
        "👤 User Information:\n"
        f"• ID: {author.id}\n"
        f"• Username: {author.handle}\n"
        f"• Name: {author.display_name}\n\n"
        "💬 Feedback Message:\n"
        f"{text}\n\n"
        f"📅 Timestamp: {timestamp or format_local_timestamp()}"
    )


class FeedbackSubmitter:
    """Delivers a feedback report to the mail endpoint.

    A 401 means the cached token went stale server-side, so the token is
    reacquired from scratch (not refreshed) and the send is retried. The loop
    is bounded by ``max_auth_retries``; other failures are never retried.
    """

    def __init__(
        self,
        backend: BackendClient,
        tokens: TokenManager,
        recipient: str,
        *,
        max_auth_retries: int = FEEDBACK_AUTH_RETRIES,
    ):
        self._backend = backend
        self._tokens = tokens
        self.recipient = recipient
        self.max_auth_retries = max_auth_retries

    def build_email(self, author: FeedbackAuthor, text: str) -> EmailMessage:
        return EmailMessage(
            subject=f"[Feedback] From {author.first_name}",
            message=build_report(author, text),
            to_email=self.recipient,
        )

    async def submit(self, author: FeedbackAuthor, text: str) -> None:
        email = self.build_email(author, text)
        token = await self._tokens.ensure_valid_token()
        attempt = 0
        while True:
            try:
                await self._backend.send_email(token, email)
                logger.info("Feedback from user %s delivered", author.id)
                return
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if status != 401:
                    raise SubmissionError(f"Mail endpoint returned {status}", status_code=status) from exc
                if attempt >= self.max_auth_retries:
                    raise AuthenticationError("Authentication failed. Could not send feedback.") from exc
                attempt += 1
                logger.warning(
                    "Mail endpoint rejected token; reacquiring and retrying (%s/%s)",
                    attempt,
                    self.max_auth_retries,
                )
                token = await self._tokens.acquire_token()
            except httpx.HTTPError as exc:
                raise SubmissionError(f"Could not reach mail endpoint: {exc}") from exc


class FeedbackSession:
    """Per-user feedback state machine plus the chat side effects around it.

    Transitions live in ``FeedbackSessionStore``; this class adds the prompt
    messages and the hand-off to ``FeedbackSubmitter``. Prompt cleanup never
    changes the outcome of a transition.
    """

    def __init__(
        self,
        submitter: FeedbackSubmitter,
        store: Optional[FeedbackSessionStore] = None,
        *,
        cleanup_delay: float = PROMPT_CLEANUP_DELAY_SECONDS,
    ):
        self.submitter = submitter
        self.store = store if store is not None else FeedbackSessionStore()
        self.cleanup_delay = cleanup_delay
        self._cleanup_tasks: Set[asyncio.Task] = set()

    @property
    def pending_cleanups(self) -> Set[asyncio.Task]:
        return set(self._cleanup_tasks)

    async def solicit(self, bot: Any, user_id: int, chat_id: int) -> FeedbackEntry:
        previous = self.store.clear(user_id)
        if previous:
            await delete_message(bot, previous.chat_id, previous.prompt_message_id)

        prompt = await send_text(bot, chat_id, STRINGS["feedback_prompt"], reply_markup=cancel_keyboard())
        # An overlapping solicit may have finished while this prompt was in flight.
        displaced = self.store.clear(user_id)
        entry = self.store.begin(user_id, chat_id, getattr(prompt, "message_id", None))
        if displaced:
            await delete_message(bot, displaced.chat_id, displaced.prompt_message_id)
        logger.info("User %s is now awaiting feedback (prompt=%s)", user_id, entry.prompt_message_id)
        return entry

    async def cancel(self, bot: Any, user_id: int) -> bool:
        entry = self.store.clear(user_id)
        if not entry:
            return False
        await delete_message(bot, entry.chat_id, entry.prompt_message_id)
        logger.info("User %s canceled feedback", user_id)
        return True

    async def handle_message(self, bot: Any, author: FeedbackAuthor, chat_id: int, message: Any) -> bool:
        if not self.store.is_awaiting(author.id):
            return False
        text = classify_message(message)
        if text is None:
            return False

        # Cleared before the network call so a concurrent solicit is not wiped.
        entry = self.store.clear(author.id)
        logger.info("Captured feedback from user %s: %s", author.id, truncate_log_text(text, 80))
        try:
            await self.submitter.submit(author, text)
        except (AuthenticationError, SubmissionError) as exc:
            logger.error("Error sending feedback to API: %s", exc)
            await safe_send(bot, chat_id, STRINGS["feedback_failed"])
            await delete_message(bot, entry.chat_id, entry.prompt_message_id)
            return True

        await safe_send(bot, chat_id, STRINGS["feedback_thanks"])
        self.schedule_cleanup(bot, entry)
        return True

    def schedule_cleanup(self, bot: Any, entry: FeedbackEntry) -> Optional[asyncio.Task]:
        if entry.prompt_message_id is None:
            return None
        task = asyncio.get_running_loop().create_task(self._delayed_delete(bot, entry))
        self._cleanup_tasks.add(task)
        task.add_done_callback(self._cleanup_tasks.discard)
        return task

    async def _delayed_delete(self, bot: Any, entry: FeedbackEntry) -> None:
        if self.cleanup_delay > 0:
            await asyncio.sleep(self.cleanup_delay)
        await delete_message(bot, entry.chat_id, entry.prompt_message_id)

    async def wait_for_cleanups(self, timeout: float = 5.0) -> None:
        tasks = self.pending_cleanups
        if not tasks:
            return
        done, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            logger.info("Dropped %d pending prompt cleanups at shutdown", len(pending))
