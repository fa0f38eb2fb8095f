from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple

from fastapi import HTTPException

from projecthub.core import directus
from projecthub.core.settings import S
from projecthub.metrics import record_reaction_toggle
from projecthub.services.comments import REACTION_TYPES


@dataclass(frozen=True)
class ToggleResult:
    action: str  # created|updated|deleted
    type: Optional[str]


# Serializes lookup+write per (comment, user) inside this process only.
# Concurrent writers in other processes can still both create a row.
_LOCKS: Dict[Tuple[str, str], Tuple[threading.Lock, int]] = {}
_LOCKS_GUARD = threading.Lock()


@contextmanager
def _pair_lock(comment_id: Any, user_id: Any) -> Iterator[None]:
    key = (str(comment_id), str(user_id))
    with _LOCKS_GUARD:
        lock, waiters = _LOCKS.get(key, (threading.Lock(), 0))
        _LOCKS[key] = (lock, waiters + 1)
    try:
        with lock:
            yield
    finally:
        with _LOCKS_GUARD:
            lock, waiters = _LOCKS[key]
            if waiters <= 1:
                _LOCKS.pop(key, None)
            else:
                _LOCKS[key] = (lock, waiters - 1)


def find_reaction(comment_id: Any, user_id: Any) -> Optional[Dict[str, Any]]:
    return directus.first_item(
        S.reactions_collection,
        directus.filter_params(comment_id__eq=comment_id, user_id__eq=user_id),
    )


def toggle_reaction(comment_id: Any, user_id: Optional[Any], requested_type: str) -> ToggleResult:
    """
    Tri-state toggle keyed by (comment, user):

    - no row: create one with the requested type
    - row with the same type: delete it
    - row with the other type: switch its type in place
    """
    if user_id is None:
        raise HTTPException(401, "Unauthorized")
    if requested_type not in REACTION_TYPES:
        raise HTTPException(400, "reactionType must be 'like' or 'dislike'")

    with _pair_lock(comment_id, user_id):
        existing = find_reaction(comment_id, user_id)
        if existing is None:
            directus.create_item(
                S.reactions_collection,
                {"comment_id": comment_id, "user_id": user_id, "type": requested_type},
            )
            result = ToggleResult("created", requested_type)
        elif existing.get("type") == requested_type:
            directus.delete_item(S.reactions_collection, existing["id"])
            result = ToggleResult("deleted", None)
        else:
            directus.update_item(S.reactions_collection, existing["id"], {"type": requested_type})
            result = ToggleResult("updated", requested_type)

    record_reaction_toggle(result.action)
    return result
