from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

ReactionType = Literal["like", "dislike"]
CommentOrder = Literal["store", "recent", "score"]


# ============================================================
# Comments & reactions
# ============================================================

class CommentNode(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Union[str, int]
    project_id: Optional[Union[str, int]] = None
    author: str = "Anonymous"
    avatar: Optional[str] = None
    content: Optional[str] = None
    timestamp: Optional[str] = None
    parent_id: Optional[Union[str, int]] = None
    likeCount: int = 0
    dislikeCount: int = 0
    userReaction: Optional[ReactionType] = None
    replies: List["CommentNode"] = Field(default_factory=list)


class ReactionRow(BaseModel):
    id: Optional[Union[str, int]] = None
    comment_id: Union[str, int]
    user_id: Optional[Union[str, int]] = None
    type: ReactionType


class CreateCommentReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    project_id: Union[str, int] = Field(validation_alias=AliasChoices("project_id", "projectId"))
    content: str
    parent_id: Optional[Union[str, int]] = Field(
        default=None, validation_alias=AliasChoices("parent_id", "parentId")
    )


class ToggleReactionReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    comment_id: Union[str, int] = Field(validation_alias=AliasChoices("comment_id", "commentId"))
    reaction_type: str = Field(validation_alias=AliasChoices("reaction_type", "reactionType", "type"))


class ToggleReactionResp(BaseModel):
    success: bool = True
    action: Literal["created", "updated", "deleted"]
    userReaction: Optional[ReactionType] = None


# ============================================================
# Projects & membership
# ============================================================

class InlineFile(BaseModel):
    content: Optional[str] = None  # base64
    type: Optional[str] = None
    name: Optional[str] = None


class CreateProjectReq(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    location: Optional[str] = None
    images: List[Union[str, InlineFile]] = Field(default_factory=list)


class UpdateProjectReq(BaseModel):
    model_config = ConfigDict(extra="allow")
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    location: Optional[str] = None


class AddMemberReq(BaseModel):
    username: str


# ============================================================
# Users
# ============================================================

class SyncUserReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    email: str
    username: Optional[str] = None
    first_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("first_name", "firstName"))
    last_name: Optional[str] = Field(default=None, validation_alias=AliasChoices("last_name", "lastName"))
    profile_image: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("profile_image", "profileImage")
    )


class ResolveUserReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    clerk_id: str = Field(validation_alias=AliasChoices("clerk_id", "clerkId"))


class ClerkEmailAddress(BaseModel):
    email_address: str = ""


class ClerkUserData(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str
    email_addresses: List[ClerkEmailAddress] = Field(default_factory=list)
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image_url: Optional[str] = None


class ClerkWebhookEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")
    type: Optional[str] = None
    data: ClerkUserData
