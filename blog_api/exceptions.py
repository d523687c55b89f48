"""
Domain errors raised by the service layer.

Each error carries a localization key (``message_key``) rather than a
human-readable string; the exception handlers in ``blog_api.main`` map
the error to an HTTP status and translate the key for the request's
locale.  Services never build HTTP responses themselves.
"""


class BlogError(Exception):
    """Base class for every error the service layer raises on purpose."""

    status_code: int = 400
    default_key: str = "common.badRequest"

    def __init__(self, message_key: str | None = None, **params) -> None:
        self.message_key = message_key or self.default_key
        self.params = params
        super().__init__(self.message_key)


class NotFoundError(BlogError):
    status_code = 404
    default_key = "common.notFound"


class ForbiddenError(BlogError):
    status_code = 403
    default_key = "common.forbidden"


class ConflictError(BlogError):
    status_code = 409
    default_key = "common.duplicateEntry"


class UnauthorizedError(BlogError):
    status_code = 401
    default_key = "auth.unauthorized"


class AlreadyMemberError(BlogError):
    """The id is already in the set (e.g. article already favorited)."""

    default_key = "article.alreadyFavorited"


class NotMemberError(BlogError):
    """The id is not in the set (e.g. article never favorited)."""

    default_key = "article.notFavorited"


class AlreadyFollowingError(AlreadyMemberError):
    default_key = "user_follow.alreadyFollowing"


class NotFollowingError(NotMemberError):
    default_key = "user_follow.notFollowing"
