"""
User Data Access Object.

WHY: UserDAO provides database operations for the User model, following
the DAO pattern for separation of concerns and testability.
"""

from typing import Any, List, Optional
from sqlalchemy import select, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from campus_helpdesk.dao.base import BaseDAO
from campus_helpdesk.models.base import utcnow
from campus_helpdesk.models.user import User, UserRole

# Dialects whose insert() supports ON CONFLICT DO UPDATE
UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class UserDAO(BaseDAO[User]):
    """
    Data Access Object for User model.
    """

    def __init__(self, session: AsyncSession):
        """Initialize UserDAO with session."""
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Retrieve user by email address, case-insensitively.

        Args:
            email: User's email address

        Returns:
            User instance if found, None otherwise
        """
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def list_by_role(self, role: UserRole) -> List[User]:
        """
        List users holding a role.

        Example:
            >>> staff = await user_dao.list_by_role(UserRole.ADMIN)
        """
        return await self.get_all(role=role.value)

    async def upsert(self, id: str, **values: Any) -> User:
        """
        Create the user or overwrite its fields in one statement.

        WHY: Users are created on first login and refreshed whenever the
        identity provider reports changed profile data. Parallel first
        requests from the same principal must not collide on the primary
        key, so this is a single INSERT ... ON CONFLICT DO UPDATE. The
        original created_at of an existing record is kept.

        Args:
            id: Identity provider subject id
            **values: email, names, role and timestamps

        Returns:
            The persisted User

        Raises:
            NotImplementedError: If the database dialect has no upsert
        """
        dialect = self.session.get_bind().dialect.name
        if dialect not in UPSERT_DIALECTS:
            raise NotImplementedError(f"User upsert is not supported on {dialect}")

        now = utcnow()
        row = {"id": id, "created_at": now, "updated_at": now, **values}
        changes = {k: v for k, v in row.items() if k not in ("id", "created_at")}

        statement = UPSERT_DIALECTS[dialect](User).values(**row)
        statement = statement.on_conflict_do_update(index_elements=[User.id], set_=changes)
        await self.session.execute(statement)

        result = await self.session.execute(
            select(User).where(User.id == id).execution_options(populate_existing=True)
        )
        return result.scalar_one()
