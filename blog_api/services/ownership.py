"""
Owned-resource guard shared by every update/delete that only the
resource's author may perform.
"""
from typing import Protocol

from blog_api.exceptions import ForbiddenError


class Owned(Protocol):
    @property
    def owner_id(self) -> int: ...


class Principal(Protocol):
    id: int


def ensure_owner(resource: Owned, principal: Principal, message_key: str) -> None:
    """Raise ForbiddenError unless *principal* owns *resource*."""
    if resource.owner_id != principal.id:
        raise ForbiddenError(message_key)
