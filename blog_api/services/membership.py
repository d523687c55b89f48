"""
Atomic add/remove of a row in a "set" table (a table whose rows are
unique on a key pair, e.g. article favorites or user follows).

Both operations are single statements, so two concurrent requests for
the same pair cannot both succeed: the unique constraint decides which
insert lands and the keyed DELETE removes the row at most once.  The
outcome is returned as a value and the caller decides whether it is an
error.
"""
import enum
import logging

from sqlalchemy import delete, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_INSERT_IGNORING_CONFLICTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class MembershipChange(enum.Enum):
    ADDED = "added"
    ALREADY_PRESENT = "already_present"
    REMOVED = "removed"
    ABSENT = "absent"


def _criteria(table, keys: dict):
    return [table.c[name] == value for name, value in keys.items()]


async def add_member(db: AsyncSession, model, **keys) -> MembershipChange:
    """Insert the row identified by *keys* unless it already exists."""
    table = model.__table__
    dialect = db.bind.dialect.name
    insert_factory = _INSERT_IGNORING_CONFLICTS.get(dialect)

    if insert_factory is None:
        # No ON CONFLICT support: fall back to check-then-insert and let
        # the unique constraint reject a concurrent duplicate.
        existing = await db.execute(select(table.c.id).where(*_criteria(table, keys)))
        if existing.first() is not None:
            return MembershipChange.ALREADY_PRESENT
        await db.execute(insert(table).values(**keys))
        return MembershipChange.ADDED

    stmt = insert_factory(table).values(**keys).on_conflict_do_nothing()
    result = await db.execute(stmt)
    if result.rowcount == 0:
        return MembershipChange.ALREADY_PRESENT
    logger.debug("Added %s row %s", table.name, keys)
    return MembershipChange.ADDED


async def remove_member(db: AsyncSession, model, **keys) -> MembershipChange:
    """Delete the row identified by *keys* if it exists."""
    table = model.__table__
    result = await db.execute(delete(table).where(*_criteria(table, keys)))
    if result.rowcount == 0:
        return MembershipChange.ABSENT
    logger.debug("Removed %s row %s", table.name, keys)
    return MembershipChange.REMOVED
