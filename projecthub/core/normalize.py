from __future__ import annotations

from typing import Any, Dict, List, Optional

from projecthub.core.settings import S

ANONYMOUS = "Anonymous"


def client_ip_from_request(req) -> str:
    xff = req.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    client = getattr(req, "client", None)
    return client.host if client else "0.0.0.0"


def relation_id(value: Any) -> Optional[Any]:
    """A Directus relation is either the bare key or the expanded object."""
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        return value.get("id")
    return value


def file_ids(images: Optional[List[Any]]) -> List[Any]:
    out: List[Any] = []
    for item in images or []:
        if isinstance(item, (str, int)) and item != "":
            out.append(item)
            continue
        if not isinstance(item, dict):
            continue
        file_ref = item.get("directus_files_id")
        fid = relation_id(file_ref) if file_ref is not None else None
        if fid is not None:
            out.append(fid)
    return out


def display_name(user: Any) -> str:
    if not isinstance(user, dict):
        return ANONYMOUS
    full = f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()
    if full:
        return full
    username = (user.get("username") or "").strip()
    return username or ANONYMOUS


def profile_image_url(value: Any) -> Optional[str]:
    if not value:
        return None
    if isinstance(value, str):
        if value.startswith("http://") or value.startswith("https://"):
            return value
        return f"{S.directus_api_url}/assets/{value}?key=thumb"
    fid = relation_id(value)
    if fid is None:
        return None
    return f"{S.directus_api_url}/assets/{fid}?key=thumb"


def creator_summary(value: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(value, dict):
        return None
    return {
        "id": value.get("id"),
        "first_name": value.get("first_name"),
        "last_name": value.get("last_name"),
        "username": value.get("username"),
    }
