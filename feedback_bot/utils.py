from __future__ import annotations

from datetime import datetime
from typing import Optional


def format_local_timestamp(value: Optional[datetime] = None) -> str:
    dt = (value or datetime.now()).astimezone()
    return dt.strftime("%m/%d/%Y, %I:%M:%S %p")


def truncate_log_text(value: str, limit: int = 260) -> str:
    value = (value or "").replace("\r", "\\r").replace("\n", "\\n")
    if len(value) <= limit:
        return value
    return value[:limit] + "…"
