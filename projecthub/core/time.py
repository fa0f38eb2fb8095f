from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional


def now_ts() -> int:
    return int(time.time())


def parse_ts(value: Optional[str]) -> float:
    """Epoch seconds for a Directus ISO timestamp; unparseable or empty values sort oldest."""
    if not value:
        return 0.0
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()
