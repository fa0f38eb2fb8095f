"""
Comment feed pipeline: fetch flat rows from the store, annotate each comment
with reaction counts and the caller's own reaction, then thread replies under
their top-level comment.

Every stage except the fetch is a pure function; nothing is cached between
requests.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence

from fastapi import HTTPException

from projecthub.core import directus
from projecthub.core.directus import DirectusError
from projecthub.core.log import get_logger
from projecthub.core.normalize import display_name, profile_image_url, relation_id
from projecthub.core.settings import S
from projecthub.core.time import parse_ts
from projecthub.metrics import record_comment_created
from projecthub.models import CommentNode, ReactionRow
from projecthub.services.identity import require_user_id, resolve_user_id

log = get_logger(__name__)

REACTION_TYPES = ("like", "dislike")
COMMENT_FIELDS = "*,user_id.*"
MAX_COMMENT_LEN = 10_000


class CommentFeedError(Exception):
    """The feed could not be assembled; no partial result is returned."""


def _key(value: Any) -> Optional[str]:
    return None if value is None else str(value)


# ============================================================
# Fetcher
# ============================================================

def fetch_comment_rows(project_id: Any) -> List[Dict[str, Any]]:
    return directus.list_items(
        S.comments_collection,
        directus.filter_params(project_id=project_id),
        fields=COMMENT_FIELDS,
    )


def to_reaction(row: Dict[str, Any]) -> Optional[ReactionRow]:
    rtype = row.get("type")
    comment_id = relation_id(row.get("comment_id"))
    if rtype not in REACTION_TYPES or comment_id is None:
        return None
    return ReactionRow(id=row.get("id"), comment_id=comment_id, user_id=relation_id(row.get("user_id")), type=rtype)


def fetch_reactions(comment_ids: Sequence[Any], user_id: Optional[Any] = None) -> List[ReactionRow]:
    if not comment_ids:
        return []
    predicates: Dict[str, Any] = {"comment_id__in": list(comment_ids)}
    if user_id is not None:
        predicates["user_id__eq"] = user_id
    rows = directus.list_items(S.reactions_collection, directus.filter_params(**predicates))
    return [r for r in (to_reaction(row) for row in rows) if r is not None]


def to_comment(row: Dict[str, Any]) -> CommentNode:
    author = row.get("user_id")
    return CommentNode(
        id=row["id"],
        project_id=relation_id(row.get("project_id")),
        author=display_name(author),
        avatar=profile_image_url(author.get("profile_image")) if isinstance(author, dict) else None,
        content=row.get("comment"),
        timestamp=row.get("date_created"),
        parent_id=relation_id(row.get("parent_id")),
    )


# ============================================================
# Aggregator
# ============================================================

def aggregate(
    comments: Iterable[CommentNode],
    reactions: Iterable[ReactionRow],
    caller_reactions: Optional[Iterable[ReactionRow]] = None,
) -> List[CommentNode]:
    likes: Dict[str, int] = {}
    dislikes: Dict[str, int] = {}
    for r in reactions:
        bucket = likes if r.type == "like" else dislikes
        k = _key(r.comment_id)
        bucket[k] = bucket.get(k, 0) + 1

    mine: Dict[str, str] = {}
    for r in caller_reactions or ():
        mine.setdefault(_key(r.comment_id), r.type)

    out: List[CommentNode] = []
    for c in comments:
        k = _key(c.id)
        out.append(
            c.model_copy(
                update={
                    "likeCount": likes.get(k, 0),
                    "dislikeCount": dislikes.get(k, 0),
                    "userReaction": mine.get(k),
                }
            )
        )
    return out


# ============================================================
# Tree builder
# ============================================================

def build_forest(comments: Sequence[CommentNode]) -> List[CommentNode]:
    """
    Two tiers only: roots keep store order and own a flat, store-ordered list of
    direct replies. Replies whose parent is not a root in this batch are dropped.
    """
    roots: List[CommentNode] = []
    by_id: Dict[str, CommentNode] = {}
    for c in comments:
        if c.parent_id is None:
            root = c.model_copy(update={"replies": []})
            roots.append(root)
            by_id.setdefault(_key(c.id), root)

    for c in comments:
        if c.parent_id is None:
            continue
        parent = by_id.get(_key(c.parent_id))
        if parent is None:
            log.debug("dropping comment %s: parent %s not in feed", c.id, c.parent_id)
            continue
        parent.replies.append(c.model_copy(update={"replies": []}))
    return roots


def sort_roots(roots: List[CommentNode], order: str = "store") -> List[CommentNode]:
    if order == "recent":
        return sorted(roots, key=lambda c: parse_ts(c.timestamp), reverse=True)
    if order == "score":
        return sorted(roots, key=lambda c: c.likeCount - c.dislikeCount, reverse=True)
    if order == "store":
        return list(roots)
    raise HTTPException(400, "sort must be one of: store, recent, score")


# ============================================================
# Feed
# ============================================================

def get_comment_feed(project_id: Any, caller_clerk_id: Optional[str] = None, order: str = "store") -> List[CommentNode]:
    if order not in ("store", "recent", "score"):
        raise HTTPException(400, "sort must be one of: store, recent, score")
    try:
        user_id = resolve_user_id(caller_clerk_id) if caller_clerk_id else None
        comments = [to_comment(row) for row in fetch_comment_rows(project_id)]
        ids = [c.id for c in comments]
        reactions = fetch_reactions(ids)
        caller_reactions = fetch_reactions(ids, user_id=user_id) if user_id is not None else None
    except DirectusError as exc:
        log.error("comment feed for project %s failed: %s", project_id, exc)
        raise CommentFeedError("Failed to fetch comments") from exc

    return sort_roots(build_forest(aggregate(comments, reactions, caller_reactions)), order)


def create_comment(clerk_id: str, project_id: Any, content: str, parent_id: Optional[Any] = None) -> Dict[str, Any]:
    text = (content or "").strip()
    if not text:
        raise HTTPException(400, "Comment content required")
    if len(text) > MAX_COMMENT_LEN:
        raise HTTPException(400, f"Comment too long (max {MAX_COMMENT_LEN})")

    user_id = require_user_id(clerk_id)
    payload: Dict[str, Any] = {"project_id": project_id, "comment": content, "user_id": user_id}
    if parent_id:
        payload["parent_id"] = parent_id
    created = directus.create_item(S.comments_collection, payload)
    record_comment_created()
    return created
