import os

from dotenv import load_dotenv

# .env.local wins over .env; real env vars win over both
load_dotenv(".env.local")
load_dotenv()


# --- Configuration ---
BOT_TOKEN = os.getenv("BOT_TOKEN")
WEBAPP_URL = os.getenv("WEBAPP_URL")
API_BASE_URL = (os.getenv("API_BASE_URL") or "").rstrip("/") or None
API_EMAIL = os.getenv("API_EMAIL")
API_PASSWORD = os.getenv("API_PASSWORD")
API_FEEDBACK_EMAIL = os.getenv("API_FEEDBACK_EMAIL")

COMMUNITY_URL = os.getenv("COMMUNITY_URL", "https://t.me/createathon")

# Backend tokens are not self-describing, so expiry is tracked locally.
TOKEN_LIFETIME_SECONDS = int(os.getenv("TOKEN_LIFETIME_SECONDS", "3600"))
TOKEN_REFRESH_BUFFER_SECONDS = int(os.getenv("TOKEN_REFRESH_BUFFER_SECONDS", "60"))
FEEDBACK_AUTH_RETRIES = 1

PROMPT_CLEANUP_DELAY_SECONDS = float(os.getenv("PROMPT_CLEANUP_DELAY_SECONDS", "2"))
HEARTBEAT_INTERVAL_SECONDS = int(os.getenv("HEARTBEAT_INTERVAL_SECONDS", "60"))
DROP_PENDING_UPDATES = os.getenv("DROP_PENDING_UPDATES", "false").lower() in {"1", "true", "yes", "on"}
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))
HTTP_CONNECT_TIMEOUT_SECONDS = float(os.getenv("HTTP_CONNECT_TIMEOUT_SECONDS", "5"))

HOST = os.getenv("HOST", "0.0.0.0")
try:
    PORT = int(os.getenv("PORT", "8000"))
except ValueError:
    PORT = 8000


def validate_required_envs() -> None:
    missing = [
        name
        for name, val in {
            "BOT_TOKEN": BOT_TOKEN,
            "WEBAPP_URL": WEBAPP_URL,
            "API_BASE_URL": API_BASE_URL,
            "API_EMAIL": API_EMAIL,
            "API_PASSWORD": API_PASSWORD,
            "API_FEEDBACK_EMAIL": API_FEEDBACK_EMAIL,
        }.items()
        if not val
    ]
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")
