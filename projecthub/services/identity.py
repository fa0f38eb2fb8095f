from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException

from projecthub.core import directus
from projecthub.core.log import get_logger
from projecthub.core.settings import S

log = get_logger(__name__)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def find_user(clerk_id: str) -> Optional[Dict[str, Any]]:
    if not clerk_id:
        return None
    return directus.first_item(S.users_collection, directus.filter_params(clerk_id=clerk_id))


def resolve_user_id(clerk_id: Optional[str]) -> Optional[Any]:
    """Map a Clerk user id to the store's user key. None when the user was never synced."""
    if not clerk_id:
        return None
    row = find_user(clerk_id)
    return row.get("id") if row else None


def require_user_id(clerk_id: str) -> Any:
    user_id = resolve_user_id(clerk_id)
    if user_id is None:
        raise HTTPException(404, "User not found in Directus")
    return user_id


def get_user_info(clerk_id: str) -> Dict[str, Any]:
    row = find_user(clerk_id)
    if row:
        return row
    return {"id": clerk_id, "clerk_id": clerk_id, "first_name": "", "last_name": ""}


def find_user_by_username(username: str) -> Optional[Dict[str, Any]]:
    username = _clean(username)
    if not username:
        return None
    return directus.first_item(S.users_collection, directus.filter_params(username=username))


def list_users() -> List[Dict[str, Any]]:
    return directus.list_items(S.users_collection)


def sync_user(
    clerk_id: str,
    email: str,
    *,
    username: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    profile_image: Optional[str] = None,
) -> Tuple[Any, bool]:
    """Create the store user for a Clerk identity unless it already exists. Returns (user_id, created)."""
    clerk_id = _clean(clerk_id)
    email = _clean(email)
    if not clerk_id or not email:
        raise HTTPException(400, "Missing required user fields")

    existing = find_user(clerk_id)
    if existing:
        return existing.get("id"), False

    created = directus.create_item(
        S.users_collection,
        {
            "clerk_id": clerk_id,
            "email": email,
            "username": _clean(username) or email.split("@")[0],
            "first_name": _clean(first_name),
            "last_name": _clean(last_name),
            "profile_image": _clean(profile_image),
        },
    )
    user_id = created.get("id")
    log.info("created store user %s for clerk id %s", user_id, clerk_id)
    return user_id, True
