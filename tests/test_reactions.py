from __future__ import annotations

import itertools
import threading
from typing import Any, Dict, List, Optional

import pytest
from fastapi import HTTPException

from projecthub.core import directus
from projecthub.core.directus import DirectusError
from projecthub.services import reactions


class FakeReactionStore:
    """In-memory stand-in for the reactions collection, matching _eq filters only."""

    filter_params = staticmethod(directus.filter_params)

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None):
        self.rows: List[Dict[str, Any]] = [dict(r) for r in rows or []]
        self.calls: List[str] = []
        self._ids = itertools.count(1000)

    def _matches(self, row: Dict[str, Any], filters: Dict[str, str]) -> bool:
        for key, value in filters.items():
            field = key.split("[")[1].rstrip("]")
            if str(row.get(field)) != value:
                return False
        return True

    def first_item(self, collection, filters, *, fields=None):
        self.calls.append("get")
        for row in self.rows:
            if self._matches(row, filters):
                return dict(row)
        return None

    def create_item(self, collection, payload, *, admin=False):
        self.calls.append("create")
        row = {"id": next(self._ids), **payload}
        self.rows.append(row)
        return dict(row)

    def update_item(self, collection, item_id, payload, *, admin=False):
        self.calls.append("update")
        for row in self.rows:
            if row["id"] == item_id:
                row.update(payload)
                return dict(row)
        raise DirectusError(404, "not found")

    def delete_item(self, collection, item_id, *, admin=False):
        self.calls.append("delete")
        self.rows = [r for r in self.rows if r["id"] != item_id]

    def reactions_for(self, comment_id, user_id):
        return [r for r in self.rows if r["comment_id"] == comment_id and r["user_id"] == user_id]


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> FakeReactionStore:
    fake = FakeReactionStore()
    monkeypatch.setattr(reactions, "directus", fake)
    return fake


def test_first_toggle_creates_reaction(store: FakeReactionStore) -> None:
    result = reactions.toggle_reaction(1, "u", "like")
    assert result == reactions.ToggleResult("created", "like")
    assert [r["type"] for r in store.reactions_for(1, "u")] == ["like"]


def test_same_type_twice_toggles_off(store: FakeReactionStore) -> None:
    reactions.toggle_reaction(1, "u", "like")
    result = reactions.toggle_reaction(1, "u", "like")
    assert result.action == "deleted"
    assert result.type is None
    assert store.reactions_for(1, "u") == []


def test_other_type_switches_in_place(store: FakeReactionStore) -> None:
    created = reactions.toggle_reaction(1, "u", "like")
    assert created.action == "created"
    result = reactions.toggle_reaction(1, "u", "dislike")
    assert result == reactions.ToggleResult("updated", "dislike")
    rows = store.reactions_for(1, "u")
    assert len(rows) == 1
    assert rows[0]["type"] == "dislike"
    assert store.calls.count("create") == 1


def test_alternating_converges_to_last_requested(store: FakeReactionStore) -> None:
    for rtype in ("like", "dislike", "like", "dislike", "like"):
        reactions.toggle_reaction(7, "u", rtype)
    rows = store.reactions_for(7, "u")
    assert [r["type"] for r in rows] == ["like"]


def test_removing_existing_dislike(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = FakeReactionStore([{"id": 5, "comment_id": 1, "user_id": "u", "type": "dislike"}])
    monkeypatch.setattr(reactions, "directus", fake)
    result = reactions.toggle_reaction(1, "u", "dislike")
    assert result.action == "deleted"
    assert fake.reactions_for(1, "u") == []
    assert reactions.find_reaction(1, "u") is None


def test_other_users_rows_untouched(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = FakeReactionStore([{"id": 5, "comment_id": 1, "user_id": "other", "type": "like"}])
    monkeypatch.setattr(reactions, "directus", fake)
    reactions.toggle_reaction(1, "u", "like")
    assert len(fake.reactions_for(1, "other")) == 1
    assert len(fake.reactions_for(1, "u")) == 1


def test_unauthenticated_rejected_before_lookup(store: FakeReactionStore) -> None:
    with pytest.raises(HTTPException) as exc:
        reactions.toggle_reaction(1, None, "like")
    assert exc.value.status_code == 401
    assert store.calls == []


def test_unknown_type_rejected_before_lookup(store: FakeReactionStore) -> None:
    with pytest.raises(HTTPException) as exc:
        reactions.toggle_reaction(1, "u", "love")
    assert exc.value.status_code == 400
    assert store.calls == []


def test_write_failure_propagates_and_releases_lock(store: FakeReactionStore, monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(*args, **kwargs):
        raise DirectusError(500, "write failed")

    monkeypatch.setattr(store, "create_item", boom)
    with pytest.raises(DirectusError):
        reactions.toggle_reaction(1, "u", "like")
    assert store.reactions_for(1, "u") == []
    assert reactions._LOCKS == {}


def test_concurrent_toggles_in_process_keep_one_row(store: FakeReactionStore) -> None:
    barrier = threading.Barrier(4)
    errors: List[BaseException] = []

    def worker() -> None:
        try:
            barrier.wait()
            reactions.toggle_reaction(3, "u", "like")
        except BaseException as exc:  # pragma: no cover
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    # on, off, on, off
    assert store.reactions_for(3, "u") == []
    assert store.calls.count("create") == 2
    assert store.calls.count("delete") == 2
    assert reactions._LOCKS == {}
