from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import HTTPException

from projecthub.core import directus
from projecthub.core.settings import S
from projecthub.services.identity import find_user_by_username

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"


def get_membership(project_id: Any, user_id: Any) -> Optional[Dict[str, Any]]:
    return directus.first_item(
        S.project_users_collection,
        directus.filter_params(project_id__eq=project_id, user_id__eq=user_id),
    )


def get_role(project_id: Any, user_id: Optional[Any]) -> Optional[str]:
    if user_id is None:
        return None
    row = get_membership(project_id, user_id)
    return (row or {}).get("role") or None


def require_admin(project_id: Any, user_id: Any) -> None:
    if get_role(project_id, user_id) != ROLE_ADMIN:
        raise HTTPException(403, "Project admin role required")


def add_membership(project_id: Any, user_id: Any, role: str, *, subscribed: Optional[bool] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"project_id": project_id, "user_id": user_id, "role": role}
    if subscribed is not None:
        payload["subscribed"] = subscribed
    return directus.create_item(S.project_users_collection, payload)


def add_member(project_id: Any, username: str) -> Dict[str, Any]:
    target = find_user_by_username(username)
    if not target:
        raise HTTPException(404, "User not found")
    if get_membership(project_id, target["id"]) is not None:
        raise HTTPException(409, "User is already a member of this project")
    return add_membership(project_id, target["id"], ROLE_MEMBER)


def list_members(project_id: Any) -> List[Dict[str, Any]]:
    return directus.list_items(
        S.project_users_collection,
        directus.filter_params(project_id=project_id),
        fields="*,user_id.id,user_id.username,user_id.first_name,user_id.last_name,user_id.profile_image",
    )
