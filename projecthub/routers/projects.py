from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from projecthub.auth.deps import get_authenticated_user_sub, get_optional_user_sub
from projecthub.core.directus import DirectusError
from projecthub.models import AddMemberReq, CreateProjectReq, UpdateProjectReq
from projecthub.services.audit import audit_event
from projecthub.services.identity import resolve_user_id
from projecthub.services.members import add_member, get_role, list_members
from projecthub.services.projects import create_project, delete_project, get_project, list_projects, update_project

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("")
def ui_list_projects():
    try:
        return {"data": list_projects()}
    except DirectusError as exc:
        raise HTTPException(502, "Failed to fetch projects") from exc


@router.post("", status_code=201)
def ui_create_project(req: Request, body: CreateProjectReq, user_sub: str = Depends(get_authenticated_user_sub)):
    try:
        project_id = create_project(user_sub, body.model_dump())
    except DirectusError as exc:
        raise HTTPException(502, "Project creation failed") from exc
    audit_event("project_create", user_sub, req, project_id=project_id)
    return {"success": True, "projectId": project_id}


@router.get("/{project_id}")
def ui_get_project(project_id: str):
    try:
        return get_project(project_id)
    except DirectusError as exc:
        if exc.status_code in (403, 404):
            raise HTTPException(404, "Project not found") from exc
        raise HTTPException(502, "Failed to fetch project") from exc


@router.patch("/{project_id}")
def ui_update_project(
    req: Request,
    project_id: str,
    body: UpdateProjectReq,
    user_sub: str = Depends(get_authenticated_user_sub),
):
    changes = body.model_dump(exclude_unset=True)
    try:
        updated = update_project(user_sub, project_id, changes)
    except DirectusError as exc:
        raise HTTPException(502, "Failed to update project") from exc
    audit_event("project_update", user_sub, req, project_id=project_id, fields=sorted(changes))
    return {"id": updated.get("id", project_id)}


@router.delete("/{project_id}", status_code=204)
def ui_delete_project(req: Request, project_id: str, user_sub: str = Depends(get_authenticated_user_sub)):
    try:
        delete_project(user_sub, project_id)
    except DirectusError as exc:
        raise HTTPException(502, "Failed to delete project") from exc
    audit_event("project_delete", user_sub, req, project_id=project_id)
    return Response(status_code=204)


@router.get("/{project_id}/role")
def ui_get_role(project_id: str, user_sub: Optional[str] = Depends(get_optional_user_sub)):
    if not user_sub:
        return {"role": None}
    try:
        return {"role": get_role(project_id, resolve_user_id(user_sub))}
    except DirectusError as exc:
        raise HTTPException(502, "Failed to fetch user role") from exc


@router.get("/{project_id}/members")
def ui_list_members(project_id: str):
    try:
        return {"members": list_members(project_id)}
    except DirectusError as exc:
        raise HTTPException(502, "Failed to fetch project members") from exc


@router.post("/{project_id}/members")
def ui_add_member(
    req: Request,
    project_id: str,
    body: AddMemberReq,
    user_sub: str = Depends(get_authenticated_user_sub),
):
    try:
        row = add_member(project_id, body.username)
    except DirectusError as exc:
        raise HTTPException(502, "Failed to add user to project") from exc
    audit_event("project_member_add", user_sub, req, project_id=project_id, member_id=row.get("user_id"))
    return {"message": "User added successfully", "id": row.get("id")}
