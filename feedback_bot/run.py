import uvicorn

from .settings import HOST, LOG_LEVEL, PORT


def main() -> None:
    # uvicorn turns SIGINT/SIGTERM into a lifespan shutdown, which stops the bot.
    uvicorn.run(
        "feedback_bot.app:create_app",
        factory=True,
        host=HOST,
        port=PORT,
        log_level=LOG_LEVEL.lower(),
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
