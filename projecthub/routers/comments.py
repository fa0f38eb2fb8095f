from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from projecthub.auth.deps import get_authenticated_user_sub, get_optional_user_sub
from projecthub.core.directus import DirectusError
from projecthub.models import CommentOrder, CreateCommentReq
from projecthub.services.audit import audit_event
from projecthub.services.comments import CommentFeedError, create_comment, get_comment_feed

router = APIRouter(prefix="/api/comments", tags=["comments"])


@router.get("")
def list_comments(
    project_id: Optional[str] = Query(default=None, alias="projectId"),
    sort: CommentOrder = Query(default="store"),
    user_sub: Optional[str] = Depends(get_optional_user_sub),
):
    if not project_id:
        raise HTTPException(400, "Project ID required")
    try:
        feed = get_comment_feed(project_id, caller_clerk_id=user_sub, order=sort)
    except CommentFeedError as exc:
        raise HTTPException(502, "Failed to fetch comments") from exc
    return [c.model_dump() for c in feed]


@router.post("")
def post_comment(req: Request, body: CreateCommentReq, user_sub: str = Depends(get_authenticated_user_sub)):
    try:
        created = create_comment(user_sub, body.project_id, body.content, parent_id=body.parent_id)
    except DirectusError as exc:
        raise HTTPException(502, "Failed to create comment") from exc
    audit_event(
        "comment_create",
        user_sub,
        req,
        project_id=body.project_id,
        comment_id=created.get("id"),
        parent_id=body.parent_id,
    )
    return {"success": True, "id": created.get("id")}
