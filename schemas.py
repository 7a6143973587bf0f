"""Pydantic request and response schemas.

Bodies accept either camelCase or snake_case keys; responses are emitted in
camelCase inside a ``{"success": ..., ...}`` envelope.
"""
from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from models import RoleEnum, StatusEnum


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def _normalize_email(value):
    return value.strip().lower() if isinstance(value, str) else value


def _blank_to_none(value):
    return None if isinstance(value, str) and not value.strip() else value


def _lower_email(value: str) -> str:
    if len(value) > 100:
        raise ValueError("Email must be at most 100 characters")
    return value.lower()


def _normalize_tags(value: list[str]) -> list[str]:
    tags = []
    for tag in value:
        tag = tag.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


Stripped = Annotated[str, BeforeValidator(_strip)]
Email = Annotated[EmailStr, BeforeValidator(_strip), AfterValidator(_lower_email)]
OptionalEmail = Annotated[Optional[Email], BeforeValidator(_blank_to_none)]
LoginEmail = Annotated[str, BeforeValidator(_normalize_email)]
Tags = Annotated[list[str], AfterValidator(_normalize_tags)]


class APIModel(BaseModel):
    """Base schema shared by every request and response model"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ---------- requests ----------

class RegisterRequest(APIModel):
    """Schema for self-registration"""
    name: Stripped = Field(..., min_length=1, max_length=50)
    email: Email
    password: str = Field(..., min_length=6)


class LoginRequest(APIModel):
    email: LoginEmail = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class PostCreate(APIModel):
    """Schema for creating a Post"""
    title: Stripped = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1)
    summary: str = Field(..., min_length=1, max_length=200)
    tags: Tags = Field(default_factory=list)
    cover_image: str = Field(default="", max_length=255)
    status: StatusEnum = StatusEnum.published


class PostUpdate(APIModel):
    """Schema for updating Post data"""
    title: Optional[Stripped] = Field(default=None, min_length=1, max_length=100)
    content: Optional[str] = Field(default=None, min_length=1)
    summary: Optional[str] = Field(default=None, min_length=1, max_length=200)
    tags: Optional[Tags] = None
    cover_image: Optional[str] = Field(default=None, max_length=255)
    status: Optional[StatusEnum] = None


class CommentCreate(APIModel):
    text: Stripped = Field(..., min_length=1)


class ProfileUpdate(APIModel):
    """Schema for a user updating their own profile. Empty values keep the current one."""
    name: Optional[Stripped] = Field(default=None, max_length=50)
    email: OptionalEmail = None
    password: Optional[str] = None
    bio: Optional[str] = Field(default=None, max_length=500)
    profile_picture: Optional[str] = Field(default=None, max_length=255)

    @field_validator("password")
    @classmethod
    def check_password(cls, value):
        if value and len(value) < 6:
            raise ValueError("Password must be at least 6 characters")
        return value


class UserUpdate(APIModel):
    """Schema for an admin updating any user"""
    name: Optional[Stripped] = Field(default=None, max_length=50)
    email: OptionalEmail = None
    role: Optional[RoleEnum] = None
    bio: Optional[str] = Field(default=None, max_length=500)


# ---------- resources ----------

class UserOut(APIModel):
    id: int
    name: str
    email: str
    role: RoleEnum
    bio: str = ""
    profile_picture: str = ""
    created_at: Optional[datetime] = None


class AuthorOut(APIModel):
    id: int
    name: str
    profile_picture: str = ""
    bio: str = ""


class CommentOut(APIModel):
    id: int
    user: AuthorOut
    text: str
    date: datetime


class PostOut(APIModel):
    id: int
    title: str
    content: str
    summary: str
    author: AuthorOut
    cover_image: str = ""
    tags: list[str] = []
    status: StatusEnum
    likes: int = 0
    liked_by: list[int] = []
    comments: list[CommentOut] = []
    created_at: datetime
    updated_at: datetime


class PostBrief(APIModel):
    id: int
    title: str
    summary: str
    status: StatusEnum
    created_at: datetime


# ---------- envelopes ----------

class Envelope(APIModel):
    success: bool = True


class MessageResponse(Envelope):
    message: str


class AuthResponse(Envelope):
    token: str
    user: UserOut


class UserResponse(Envelope):
    user: UserOut


class UserDetailResponse(UserResponse):
    posts: list[PostBrief]


class UserListResponse(Envelope):
    users: list[UserOut]
    total_pages: int
    current_page: int
    total: int


class PostResponse(Envelope):
    post: PostOut


class PostListResponse(Envelope):
    posts: list[PostOut]
    total_pages: int
    current_page: int
    total: int


class LikeResponse(Envelope):
    likes: int
    liked_by: list[int]


class CommentsResponse(Envelope):
    comments: list[CommentOut]
