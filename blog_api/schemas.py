from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from blog_api.models import BODY_MAX_LENGTH, TITLE_MAX_LENGTH, USERNAME_MAX_LENGTH

PASSWORD_MIN_LENGTH = 6


class CamelModel(BaseModel):
    """Serialises to camelCase on the wire, accepts either case on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Auth / User ---

class RegisterRequest(CamelModel):
    email: EmailStr = Field(max_length=255)
    username: str = Field(min_length=1, max_length=USERNAME_MAX_LENGTH)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=128)


class LoginRequest(CamelModel):
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=1, max_length=128)


class UserUpdate(CamelModel):
    email: EmailStr | None = Field(None, max_length=255)
    username: str | None = Field(None, min_length=1, max_length=USERNAME_MAX_LENGTH)
    password: str | None = Field(None, min_length=PASSWORD_MIN_LENGTH, max_length=128)
    bio: str | None = None


class UserResponse(CamelModel):
    id: int
    email: str
    username: str
    bio: str | None = None
    image: str | None = None


class AuthorResponse(CamelModel):
    id: int
    username: str
    bio: str | None = None
    image: str | None = None


class AuthUser(CamelModel):
    id: int
    username: str


class AuthResponse(BaseModel):
    user: AuthUser
    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    expires_at: datetime


class UserListResponse(BaseModel):
    users: list[UserResponse]
    total: int


# --- Profile ---

class Profile(BaseModel):
    username: str
    bio: str | None = None
    image: str | None = None
    following: bool


class ProfileResponse(BaseModel):
    profile: Profile


# --- Article ---

class ArticleCreate(CamelModel):
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str = Field(min_length=1)
    body: str = Field(min_length=1, max_length=BODY_MAX_LENGTH)
    tag_list: list[str] = []


class ArticleUpdate(CamelModel):
    title: str | None = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = None
    body: str | None = Field(None, max_length=BODY_MAX_LENGTH)
    tag_list: list[str] | None = None


class ArticleResponse(CamelModel):
    id: int
    title: str
    description: str
    body: str
    slug: str
    tag_list: list[str]
    favorited: bool
    favorites_count: int
    author_id: int
    author: AuthorResponse | None = None
    created_at: datetime
    updated_at: datetime | None = None


class ArticleListResponse(BaseModel):
    articles: list[ArticleResponse]
    total: int


# --- Comment ---

class CommentCreate(CamelModel):
    body: str = Field(min_length=1)


class CommentResponse(CamelModel):
    id: int
    body: str
    article_id: int
    author: AuthorResponse | None = None
    created_at: datetime
    updated_at: datetime | None = None


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
    total: int


# --- Errors ---

class ErrorResponse(CamelModel):
    status_code: int
    message: str
    timestamp: datetime
    errors: list[dict] | None = None
