from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from ..errors import AuthenticationError
from ..models import TokenState
from ..settings import TOKEN_LIFETIME_SECONDS, TOKEN_REFRESH_BUFFER_SECONDS
from .backend_api import BackendClient

logger = logging.getLogger(__name__)

# Anything the backend client can raise for a failed or garbled exchange.
_EXCHANGE_ERRORS = (httpx.HTTPError, ValidationError, ValueError)


class TokenManager:
    """Owns the backend access/refresh token pair.

    There is deliberately no lock around acquisition: two handlers that both
    see an expiring token will both hit the backend. The last write wins and
    each caller still walks away with a usable token.
    """

    def __init__(
        self,
        backend: BackendClient,
        email: str,
        password: str,
        *,
        lifetime: float = TOKEN_LIFETIME_SECONDS,
        buffer: float = TOKEN_REFRESH_BUFFER_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._backend = backend
        self._email = email
        self._password = password
        self.lifetime = lifetime
        self.buffer = buffer
        self._clock = clock
        self._state = TokenState()

    @property
    def state(self) -> TokenState:
        return self._state.model_copy()

    def seconds_until_expiry(self) -> Optional[float]:
        if self._state.expires_at is None:
            return None
        return self._state.expires_at - self._clock()

    def needs_refresh(self) -> bool:
        if not self._state.access_token or self._state.expires_at is None:
            return True
        return self._clock() >= self._state.expires_at - self.buffer

    async def ensure_valid_token(self) -> str:
        if not self.needs_refresh():
            return self._state.access_token
        expires_at = self._state.expires_at
        if self._state.refresh_token and expires_at is not None and self._clock() < expires_at:
            return await self.refresh_access_token()
        return await self.acquire_token()

    async def acquire_token(self, email: Optional[str] = None, password: Optional[str] = None) -> str:
        email = email or self._email
        password = password or self._password
        logger.info("Getting new access token...")
        try:
            pair = await self._backend.issue_token(email, password)
        except _EXCHANGE_ERRORS as exc:
            logger.error("Error getting access token: %s", exc)
            raise AuthenticationError("Authentication failed. Please check API credentials.") from exc

        self._email, self._password = email, password
        self._state = TokenState(
            access_token=pair.access,
            refresh_token=pair.refresh,
            expires_at=self._clock() + self.lifetime,
        )
        return self._state.access_token

    async def refresh_access_token(self) -> str:
        if not self._state.refresh_token:
            return await self.acquire_token()
        logger.info("Refreshing access token...")
        try:
            refreshed = await self._backend.refresh_token(self._state.refresh_token)
        except _EXCHANGE_ERRORS as exc:
            logger.warning("Error refreshing token, falling back to a new login: %s", exc)
            return await self.acquire_token()

        self._state = TokenState(
            access_token=refreshed.access,
            refresh_token=refreshed.refresh or self._state.refresh_token,
            expires_at=self._clock() + self.lifetime,
        )
        return self._state.access_token
