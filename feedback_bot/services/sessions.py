from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, Optional


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_FEEDBACK = "awaiting_feedback"


@dataclass
class FeedbackEntry:
    chat_id: int
    prompt_message_id: Optional[int] = None
    state: SessionState = SessionState.AWAITING_FEEDBACK

    @property
    def awaiting(self) -> bool:
        return self.state is SessionState.AWAITING_FEEDBACK


class FeedbackSessionStore:
    """In-memory {user_id: FeedbackEntry} map.

    Users with no entry are IDLE. Entries never expire on their own; an
    abandoned prompt lives until the user writes again or the process exits.
    """

    def __init__(self) -> None:
        self._entries: Dict[int, FeedbackEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def get(self, user_id: int) -> Optional[FeedbackEntry]:
        return self._entries.get(user_id)

    def state_of(self, user_id: int) -> SessionState:
        entry = self._entries.get(user_id)
        return entry.state if entry else SessionState.IDLE

    def is_awaiting(self, user_id: int) -> bool:
        return self.state_of(user_id) is SessionState.AWAITING_FEEDBACK

    def begin(self, user_id: int, chat_id: int, prompt_message_id: Optional[int]) -> FeedbackEntry:
        entry = FeedbackEntry(chat_id=chat_id, prompt_message_id=prompt_message_id)
        self._entries[user_id] = entry
        return entry

    def clear(self, user_id: int) -> Optional[FeedbackEntry]:
        entry = self._entries.pop(user_id, None)
        if entry:
            entry.state = SessionState.IDLE
        return entry
