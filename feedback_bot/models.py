from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel


class TokenPair(BaseModel):
    access: str
    refresh: str


class RefreshedAccess(BaseModel):
    access: str
    # Only present when the backend rotates refresh tokens.
    refresh: Optional[str] = None


class EmailMessage(BaseModel):
    subject: str
    message: str
    to_email: str


class TokenState(BaseModel):
    access_token: str = ""
    refresh_token: str = ""
    expires_at: Optional[float] = None


class FeedbackAuthor(BaseModel):
    id: int
    first_name: str
    last_name: Optional[str] = None
    username: Optional[str] = None

    @classmethod
    def from_user(cls, user: Any) -> "FeedbackAuthor":
        return cls(
            id=user.id,
            first_name=user.first_name or "",
            last_name=getattr(user, "last_name", None),
            username=getattr(user, "username", None),
        )

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()

    @property
    def handle(self) -> str:
        return f"@{self.username}" if self.username else "N/A"
