from __future__ import annotations

from typing import Any, Dict, List, Union

from fastapi import HTTPException

from projecthub.core import directus
from projecthub.core.log import get_logger
from projecthub.core.normalize import creator_summary, file_ids
from projecthub.core.settings import S
from projecthub.services.files import upload_inline_files
from projecthub.services.identity import require_user_id
from projecthub.services.members import ROLE_ADMIN, add_membership, require_admin

log = get_logger(__name__)

REQUIRED_FIELDS = ("title", "description", "status", "location")
PROJECT_FIELDS = "*,images.directus_files_id.*,created_by.id,created_by.first_name,created_by.last_name,created_by.username"
LIST_FIELDS = "*,images.directus_files_id"


def shape_project(row: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(row)
    out["images"] = [{"id": fid} for fid in file_ids(row.get("images"))]
    if "created_by" in row:
        out["created_by"] = creator_summary(row.get("created_by"))
    return out


def list_projects() -> List[Dict[str, Any]]:
    return [shape_project(row) for row in directus.list_items(S.projects_collection, fields=LIST_FIELDS)]


def get_project(project_id: Any) -> Dict[str, Any]:
    row = directus.get_item(S.projects_collection, project_id, fields=PROJECT_FIELDS)
    if not row:
        raise HTTPException(404, "Project not found")
    return shape_project(row)


def create_project(clerk_id: str, data: Dict[str, Any]) -> Any:
    missing = [f for f in REQUIRED_FIELDS if not (data.get(f) or "").strip()]
    if missing:
        raise HTTPException(400, "Missing required fields")

    user_id = require_user_id(clerk_id)

    images: List[Union[str, Dict[str, Any]]] = data.get("images") or []
    image_ids: List[Any] = [img for img in images if isinstance(img, str)]
    inline = [img for img in images if isinstance(img, dict)]
    image_ids.extend(upload_inline_files(inline))

    created = directus.create_item(
        S.projects_collection,
        {
            "title": data["title"],
            "description": data["description"],
            "status": data["status"],
            "location": data["location"],
            "images": [{"directus_files_id": fid} for fid in image_ids],
            "created_by": user_id,
        },
    )
    project_id = created.get("id")
    add_membership(project_id, user_id, ROLE_ADMIN, subscribed=True)
    log.info("project %s created by user %s", project_id, user_id)
    return project_id


def update_project(clerk_id: str, project_id: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
    user_id = require_user_id(clerk_id)
    require_admin(project_id, user_id)
    changes = {k: v for k, v in changes.items() if k not in ("id", "created_by")}
    if not changes:
        raise HTTPException(400, "No changes supplied")
    return directus.update_item(S.projects_collection, project_id, changes, admin=True)


def delete_project(clerk_id: str, project_id: Any) -> None:
    user_id = require_user_id(clerk_id)
    require_admin(project_id, user_id)
    directus.delete_item(S.projects_collection, project_id, admin=True)
