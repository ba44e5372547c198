from __future__ import annotations

import asyncio
from typing import Optional

# simple in-memory process state
_started_at: Optional[float] = None
_heartbeat_task: Optional[asyncio.Task] = None
