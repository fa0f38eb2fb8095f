from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from projecthub.auth.deps import get_authenticated_user_sub
from projecthub.core.directus import DirectusError
from projecthub.models import ResolveUserReq, SyncUserReq
from projecthub.services.audit import audit_event
from projecthub.services.identity import get_user_info, list_users, resolve_user_id, sync_user

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("")
def ui_list_users():
    try:
        return {"users": list_users()}
    except DirectusError as exc:
        raise HTTPException(502, "Failed to fetch users") from exc


@router.get("/me")
def ui_user_info(user_sub: str = Depends(get_authenticated_user_sub)):
    try:
        return get_user_info(user_sub)
    except DirectusError as exc:
        raise HTTPException(502, "Failed to fetch user information") from exc


@router.post("/sync")
def ui_sync_user(req: Request, body: SyncUserReq, user_sub: str = Depends(get_authenticated_user_sub)):
    try:
        directus_id, created = sync_user(
            user_sub,
            body.email,
            username=body.username,
            first_name=body.first_name,
            last_name=body.last_name,
            profile_image=body.profile_image,
        )
    except DirectusError as exc:
        raise HTTPException(502, "Failed to sync user") from exc
    if created:
        audit_event("user_sync", user_sub, req, directus_id=directus_id)
    return {
        "success": True,
        "message": "User created successfully" if created else "User already exists.",
        "directusId": directus_id,
    }


@router.post("/resolve")
def ui_resolve_user(body: ResolveUserReq):
    try:
        directus_id = resolve_user_id(body.clerk_id)
    except DirectusError as exc:
        raise HTTPException(502, "Failed to get user ID") from exc
    if directus_id is None:
        raise HTTPException(404, "User not found in Directus")
    return {"directusId": directus_id}
