import re
from datetime import datetime
from typing import Annotated, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator, model_validator, validate_email

_PHONE_RE = re.compile(r"^\+\d+$")

ItemT = TypeVar("ItemT")


# --- Public profile (denormalized into posts, comments, friend lists) ---

class UserProfile(BaseModel):
    user_id: str
    name: str
    image_url: str | None = None
    friend_count: int
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Identity ---

def _check_credential(credential_type: str, value: str) -> None:
    if credential_type == "email":
        validate_email(value)
        if not 5 <= len(value) <= 30:
            raise ValueError("email must be between 5 and 30 characters")
    else:
        if not _PHONE_RE.match(value):
            raise ValueError("phone must start with '+' followed by digits")
        if not 7 <= len(value) <= 13:
            raise ValueError("phone must be between 7 and 13 characters")


class LoginRequest(BaseModel):
    credential_type: Literal["email", "phone"]
    credential_value: str
    password: str = Field(min_length=5, max_length=15)

    @model_validator(mode="after")
    def _credential_format(self):
        _check_credential(self.credential_type, self.credential_value)
        return self


class RegisterRequest(LoginRequest):
    name: str = Field(min_length=5, max_length=50)


class AuthResponse(BaseModel):
    user_id: str
    name: str
    email: str | None = None
    phone: str | None = None
    access_token: str


class LinkEmailRequest(BaseModel):
    email: str = Field(min_length=7, max_length=50)

    @field_validator("email")
    @classmethod
    def _email_format(cls, value: str) -> str:
        validate_email(value)
        return value


class LinkPhoneRequest(BaseModel):
    phone: str = Field(min_length=7, max_length=13, pattern=r"^\+\d+$")


class ProfileUpdate(BaseModel):
    name: str = Field(min_length=5, max_length=50)
    image_url: HttpUrl


class AccountResponse(BaseModel):
    user_id: str
    name: str
    email: str | None = None
    phone: str | None = None
    image_url: str | None = None


# --- Friends ---

class FriendRequest(BaseModel):
    user_id: str


# --- Posts ---

Tag = Annotated[str, Field(min_length=1, max_length=100)]


class PostCreate(BaseModel):
    post_in_html: str = Field(min_length=2, max_length=500)
    tags: list[Tag]


class PostContent(BaseModel):
    post_in_html: str
    tags: list[str] = []
    created_at: datetime


class PostCreated(PostContent):
    post_id: str


class CommentView(BaseModel):
    comment_id: str
    comment: str
    created_at: datetime
    creator: UserProfile


class FeedItem(BaseModel):
    post_id: str
    post: PostContent
    comments: list[CommentView] = []
    creator: UserProfile


# --- Comments ---

class CommentCreate(BaseModel):
    post_id: str
    comment: str = Field(min_length=2, max_length=500)


class CommentCreated(BaseModel):
    comment_id: str
    post_id: str
    comment: str
    created_at: datetime


# --- Pagination ---

class PaginatedResponse(BaseModel, Generic[ItemT]):
    items: list[ItemT]
    total: int
    limit: int
    offset: int


# --- Metrics ---

class MetricsResponse(BaseModel):
    total_users: int
    total_friendships: int
    total_posts: int
    total_comments: int
    avg_friends_per_user: float
    avg_comments_per_post: float
