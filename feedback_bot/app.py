from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from . import state
from .bot import build_application, heartbeat, shutdown_bot, start_bot, stop_bot
from .clients import close_http_clients, init_http_client
from .errors import AuthenticationError
from .routers.health import router as health_router
from .services.backend_api import BackendClient
from .services.feedback import FeedbackSession, FeedbackSubmitter
from .services.tokens import TokenManager
from .settings import (
    API_BASE_URL,
    API_EMAIL,
    API_FEEDBACK_EMAIL,
    API_PASSWORD,
    BOT_TOKEN,
    DROP_PENDING_UPDATES,
    LOG_LEVEL,
    validate_required_envs,
)


def log_loop_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    exc = context.get("exception")
    logging.error("Unhandled asynchronous error: %s", context.get("message"), exc_info=exc)


async def acquire_initial_token(tokens: TokenManager) -> None:
    try:
        await tokens.acquire_token()
        logging.info("Successfully obtained initial access token")
    except AuthenticationError as exc:
        logging.error("Failed to get initial access token: %s", exc)
        logging.info("Bot will attempt to get token again when needed")


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    asyncio.get_running_loop().set_exception_handler(log_loop_exception)
    await init_http_client()

    backend = BackendClient(API_BASE_URL)
    tokens = TokenManager(backend, API_EMAIL, API_PASSWORD)
    feedback = FeedbackSession(FeedbackSubmitter(backend, tokens, API_FEEDBACK_EMAIL))
    application = build_application(BOT_TOKEN, feedback, tokens)

    app.state.tokens = tokens
    app.state.feedback = feedback
    app.state.telegram = application

    await acquire_initial_token(tokens)
    try:
        await start_bot(application, drop_pending_updates=DROP_PENDING_UPDATES)
    except Exception as exc:
        logging.exception("Failed to start bot: %s", exc)
        await close_http_clients()
        raise

    state._started_at = time.time()
    if not state._heartbeat_task or state._heartbeat_task.done():
        state._heartbeat_task = asyncio.create_task(heartbeat(application))

    try:
        yield
    finally:
        if state._heartbeat_task and not state._heartbeat_task.done():
            state._heartbeat_task.cancel()
        await stop_bot(application)
        # Delayed prompt deletes still need the bot's request layer.
        await feedback.wait_for_cleanups()
        await shutdown_bot(application)
        await close_http_clients()


def create_app() -> FastAPI:
    validate_required_envs()

    logging.basicConfig(level=LOG_LEVEL)
    # httpx logs full request URLs, which include the bot token.
    logging.getLogger("httpx").setLevel(logging.WARNING)

    app = FastAPI(title="Createathon Feedback Bot", lifespan=app_lifespan)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logging.exception("Unhandled error: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    app.include_router(health_router)
    return app
