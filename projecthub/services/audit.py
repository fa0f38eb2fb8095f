from __future__ import annotations

import json
from typing import Any, Dict, Optional

from projecthub.core.normalize import client_ip_from_request
from projecthub.core.settings import S
from projecthub.core.time import now_ts


def audit_event(event: str, user_sub: Optional[str], request=None, **fields: Any) -> None:
    """Best-effort structured audit line on stdout (one compact JSON object per event)."""
    if not S.audit_log_enabled:
        return
    payload: Dict[str, Any] = {"event": event, "user_sub": user_sub, "ts": now_ts(), **fields}
    if request is not None:
        payload["ip"] = client_ip_from_request(request)
        payload["user_agent"] = request.headers.get("user-agent", "")[:256]
    try:
        print(json.dumps(payload, separators=(",", ":"), sort_keys=True, default=str))
    except (TypeError, ValueError, OSError):
        pass
