from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..clients import get_http_client
from ..models import EmailMessage, RefreshedAccess, TokenPair

logger = logging.getLogger(__name__)


class BackendClient:
    """Thin wrapper over the mail backend's REST endpoints.

    Every call raises ``httpx.HTTPStatusError`` on a non-2xx response and
    ``httpx.HTTPError`` on transport failures; callers decide what those mean.
    """

    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        self._client = client

    def _http(self) -> httpx.AsyncClient:
        return self._client or get_http_client()

    async def issue_token(self, email: str, password: str) -> TokenPair:
        resp = await self._http().post(
            f"{self.base_url}/token/",
            json={"email": email, "password": password},
        )
        resp.raise_for_status()
        return TokenPair.model_validate(resp.json())

    async def refresh_token(self, refresh: str) -> RefreshedAccess:
        resp = await self._http().post(
            f"{self.base_url}/token/refresh/",
            json={"refresh": refresh},
        )
        resp.raise_for_status()
        return RefreshedAccess.model_validate(resp.json())

    async def send_email(self, access_token: str, email: EmailMessage) -> None:
        resp = await self._http().post(
            f"{self.base_url}/mail/send-email",
            json=email.model_dump(),
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if resp.is_error:
            logger.debug("send-email failed status=%s body=%s", resp.status_code, resp.text)
        resp.raise_for_status()
