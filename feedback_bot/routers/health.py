from __future__ import annotations

import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from .. import state
from ..bot import is_running

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    tokens = getattr(request.app.state, "tokens", None)
    feedback = getattr(request.app.state, "feedback", None)
    application = getattr(request.app.state, "telegram", None)

    token_info = {"has_token": False, "expires_in_seconds": None, "needs_refresh": True}
    if tokens is not None:
        expires_in = tokens.seconds_until_expiry()
        token_info = {
            "has_token": bool(tokens.state.access_token),
            "expires_in_seconds": int(expires_in) if expires_in is not None else None,
            "needs_refresh": tokens.needs_refresh(),
        }

    try:
        bot_running = is_running(application)
    except Exception:
        bot_running = False

    return {
        "ok": True,
        "bot_running": bot_running,
        "token": token_info,
        "pending_feedback": len(feedback.store) if feedback is not None else 0,
        "uptime_seconds": int(time.time() - state._started_at) if state._started_at else None,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
