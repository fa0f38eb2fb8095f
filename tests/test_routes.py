import unittest
from types import SimpleNamespace
from unittest.mock import patch

from fastapi import HTTPException

from projecthub.core.directus import DirectusError
from projecthub.models import (
    AddMemberReq,
    CommentNode,
    CreateCommentReq,
    CreateProjectReq,
    ResolveUserReq,
    SyncUserReq,
    ToggleReactionReq,
    UpdateProjectReq,
)
from projecthub.routers import comments, projects, reactions, users
from projecthub.services.comments import CommentFeedError
from projecthub.services.reactions import ToggleResult


def build_request():
    return SimpleNamespace(headers={"user-agent": "agent"}, client=None, state=SimpleNamespace())


class TestCommentRoutes(unittest.TestCase):
    def test_list_requires_project_id(self):
        with self.assertRaises(HTTPException) as ctx:
            comments.list_comments(project_id=None, sort="store", user_sub=None)
        self.assertEqual(ctx.exception.status_code, 400)

    def test_list_serializes_forest(self):
        root = CommentNode(id=1, likeCount=2, replies=[CommentNode(id=2, parent_id=1)])
        with patch.object(comments, "get_comment_feed", return_value=[root]) as feed:
            resp = comments.list_comments(project_id="10", sort="recent", user_sub="clerk_1")
        feed.assert_called_once_with("10", caller_clerk_id="clerk_1", order="recent")
        self.assertEqual(resp[0]["id"], 1)
        self.assertEqual(resp[0]["likeCount"], 2)
        self.assertEqual(resp[0]["replies"][0]["id"], 2)
        self.assertIsNone(resp[0]["userReaction"])

    def test_list_upstream_failure_is_502_without_data(self):
        with patch.object(comments, "get_comment_feed", side_effect=CommentFeedError("Failed to fetch comments")):
            with self.assertRaises(HTTPException) as ctx:
                comments.list_comments(project_id="10", sort="store", user_sub=None)
        self.assertEqual(ctx.exception.status_code, 502)
        self.assertEqual(ctx.exception.detail, "Failed to fetch comments")

    def test_post_comment_accepts_camel_case_body(self):
        body = CreateCommentReq.model_validate({"projectId": 10, "content": "hi", "parentId": 3})
        with patch.object(comments, "create_comment", return_value={"id": 44}) as create:
            resp = comments.post_comment(build_request(), body, user_sub="clerk_1")
        create.assert_called_once_with("clerk_1", 10, "hi", parent_id=3)
        self.assertEqual(resp, {"success": True, "id": 44})

    def test_post_comment_upstream_failure(self):
        body = CreateCommentReq(project_id=10, content="hi")
        with patch.object(comments, "create_comment", side_effect=DirectusError(500, "x")):
            with self.assertRaises(HTTPException) as ctx:
                comments.post_comment(build_request(), body, user_sub="clerk_1")
        self.assertEqual(ctx.exception.status_code, 502)


class TestReactionRoutes(unittest.TestCase):
    def test_toggle(self):
        body = ToggleReactionReq.model_validate({"commentId": 5, "reactionType": "like"})
        with patch.object(reactions, "require_user_id", return_value="u1"):
            with patch.object(reactions, "toggle_reaction", return_value=ToggleResult("created", "like")) as toggle:
                resp = reactions.post_reaction(build_request(), body, user_sub="clerk_1")
        toggle.assert_called_once_with(5, "u1", "like")
        self.assertEqual(resp.action, "created")
        self.assertEqual(resp.userReaction, "like")

    def test_bad_type_rejected_before_identity_lookup(self):
        body = ToggleReactionReq(comment_id=5, reaction_type="love")
        with patch.object(reactions, "require_user_id") as require:
            with self.assertRaises(HTTPException) as ctx:
                reactions.post_reaction(build_request(), body, user_sub="clerk_1")
        self.assertEqual(ctx.exception.status_code, 400)
        require.assert_not_called()

    def test_unmapped_user_is_404(self):
        body = ToggleReactionReq(comment_id=5, reaction_type="like")
        with patch.object(reactions, "require_user_id", side_effect=HTTPException(404, "User not found in Directus")):
            with patch.object(reactions, "toggle_reaction") as toggle:
                with self.assertRaises(HTTPException) as ctx:
                    reactions.post_reaction(build_request(), body, user_sub="clerk_1")
        self.assertEqual(ctx.exception.status_code, 404)
        toggle.assert_not_called()

    def test_write_failure_is_502(self):
        body = ToggleReactionReq(comment_id=5, reaction_type="dislike")
        with patch.object(reactions, "require_user_id", return_value="u1"):
            with patch.object(reactions, "toggle_reaction", side_effect=DirectusError(500, "boom")):
                with self.assertRaises(HTTPException) as ctx:
                    reactions.post_reaction(build_request(), body, user_sub="clerk_1")
        self.assertEqual(ctx.exception.status_code, 502)


class TestProjectRoutes(unittest.TestCase):
    def test_create_project(self):
        body = CreateProjectReq(title="t", description="d", status="active", location="here", images=["f1"])
        with patch.object(projects, "create_project", return_value=9) as create:
            resp = projects.ui_create_project(build_request(), body, user_sub="clerk_1")
        self.assertEqual(resp, {"success": True, "projectId": 9})
        self.assertEqual(create.call_args.args[1]["images"], ["f1"])

    def test_get_project_not_found(self):
        with patch.object(projects, "get_project", side_effect=DirectusError(403, "forbidden")):
            with self.assertRaises(HTTPException) as ctx:
                projects.ui_get_project("9")
        self.assertEqual(ctx.exception.status_code, 404)

    def test_update_passes_only_set_fields(self):
        body = UpdateProjectReq(title="new")
        with patch.object(projects, "update_project", return_value={"id": 9}) as update:
            resp = projects.ui_update_project(build_request(), "9", body, user_sub="clerk_1")
        update.assert_called_once_with("clerk_1", "9", {"title": "new"})
        self.assertEqual(resp, {"id": 9})

    def test_role_is_null_for_anonymous(self):
        with patch.object(projects, "get_role") as get_role:
            self.assertEqual(projects.ui_get_role("9", user_sub=None), {"role": None})
        get_role.assert_not_called()

    def test_role_for_caller(self):
        with patch.object(projects, "resolve_user_id", return_value="u1"):
            with patch.object(projects, "get_role", return_value="admin") as get_role:
                resp = projects.ui_get_role("9", user_sub="clerk_1")
        get_role.assert_called_once_with("9", "u1")
        self.assertEqual(resp, {"role": "admin"})

    def test_add_member(self):
        with patch.object(projects, "add_member", return_value={"id": 3, "user_id": "u2"}) as add:
            resp = projects.ui_add_member(build_request(), "9", AddMemberReq(username="grace"), user_sub="clerk_1")
        add.assert_called_once_with("9", "grace")
        self.assertEqual(resp["message"], "User added successfully")


class TestUserRoutes(unittest.TestCase):
    def test_sync_reports_existing_user(self):
        body = SyncUserReq.model_validate({"email": "a@b.c", "firstName": "Ada"})
        with patch.object(users, "sync_user", return_value=("d1", False)) as sync:
            resp = users.ui_sync_user(build_request(), body, user_sub="clerk_1")
        self.assertEqual(sync.call_args.kwargs["first_name"], "Ada")
        self.assertEqual(resp["directusId"], "d1")
        self.assertEqual(resp["message"], "User already exists.")

    def test_resolve_missing_is_404(self):
        with patch.object(users, "resolve_user_id", return_value=None):
            with self.assertRaises(HTTPException) as ctx:
                users.ui_resolve_user(ResolveUserReq.model_validate({"clerkId": "clerk_9"}))
        self.assertEqual(ctx.exception.status_code, 404)

    def test_resolve(self):
        with patch.object(users, "resolve_user_id", return_value="d9"):
            resp = users.ui_resolve_user(ResolveUserReq(clerk_id="clerk_9"))
        self.assertEqual(resp, {"directusId": "d9"})
