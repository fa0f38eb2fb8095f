from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request

from projecthub.auth.deps import get_authenticated_user_sub
from projecthub.core.directus import DirectusError
from projecthub.models import ToggleReactionReq, ToggleReactionResp
from projecthub.services.audit import audit_event
from projecthub.services.identity import require_user_id
from projecthub.services.reactions import REACTION_TYPES, toggle_reaction

router = APIRouter(prefix="/api/reactions", tags=["reactions"])


@router.post("", response_model=ToggleReactionResp)
def post_reaction(req: Request, body: ToggleReactionReq, user_sub: str = Depends(get_authenticated_user_sub)):
    if body.reaction_type not in REACTION_TYPES:
        raise HTTPException(400, "reactionType must be 'like' or 'dislike'")
    try:
        user_id = require_user_id(user_sub)
        result = toggle_reaction(body.comment_id, user_id, body.reaction_type)
    except DirectusError as exc:
        raise HTTPException(502, "Failed to update reaction") from exc
    audit_event(
        "reaction_toggle",
        user_sub,
        req,
        comment_id=body.comment_id,
        action=result.action,
        reaction_type=body.reaction_type,
    )
    return ToggleReactionResp(action=result.action, userReaction=result.type)
