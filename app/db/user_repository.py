"""
Repository for local user records.

All writes go through `update_profile`, which applies only the fields it is
given and keeps the Square customer link sticky.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.db.connection import ConnDB, get_db_connection
from app.db.models import User
from app.utils.error_handler import PersistenceException, ValidationException

logger = logging.getLogger(__name__)


class UserRepository:
    """
    Async data access for the `users` table.
    """

    def __init__(self, conn_db: Optional[ConnDB] = None):
        """
        Initialize the repository.

        Args:
            conn_db: Connection manager (defaults to the shared instance)
        """
        self.conn_db = conn_db or get_db_connection()

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Load a user by primary key."""
        try:
            async with self.conn_db.get_session() as session:
                return await session.get(User, user_id)
        except SQLAlchemyError as e:
            raise PersistenceException(message=f"Failed to load user {user_id}: {e}", operation="get_by_id") from e

    async def get_by_square_customer_id(self, square_customer_id: str) -> Optional[User]:
        """Load the user linked to a Square customer."""
        try:
            async with self.conn_db.get_session() as session:
                result = await session.execute(select(User).where(User.square_customer_id == square_customer_id))
                return result.scalars().first()
        except SQLAlchemyError as e:
            raise PersistenceException(
                message=f"Failed to load user for customer {square_customer_id}: {e}",
                operation="get_by_square_customer_id",
            ) from e

    async def create(self, email: str, **fields: Any) -> User:
        """Insert a new user."""
        try:
            async with self.conn_db.get_session() as session:
                user = User(email=email, **fields)
                session.add(user)
                await session.commit()
                await session.refresh(user)
                return user
        except SQLAlchemyError as e:
            raise PersistenceException(message=f"Failed to create user {email}: {e}", operation="create") from e

    async def update_profile(
        self,
        user_id: int,
        fields: Dict[str, Any],
        square_customer_id: Optional[str] = None,
    ) -> User:
        """
        Persist profile changes in a single transaction.

        Blank values are skipped so existing data is never overwritten with
        nothing. The Square customer link is only written when the user has
        none yet.

        Args:
            user_id: User to update
            fields: Column -> value for profile fields present in the request
            square_customer_id: Customer id to link if the user is unlinked

        Returns:
            User: The updated user

        Raises:
            ValidationException: If the new email belongs to another user
            PersistenceException: If the user does not exist or the write fails
        """
        try:
            async with self.conn_db.get_session() as session:
                user = await session.get(User, user_id)
                if user is None:
                    raise PersistenceException(message=f"User {user_id} not found", operation="update_profile")

                changed = []
                for name, value in fields.items():
                    if name not in User.PROFILE_FIELDS:
                        continue
                    if value is None or (isinstance(value, str) and not value.strip()):
                        continue
                    if getattr(user, name) != value:
                        setattr(user, name, value)
                        changed.append(name)

                if square_customer_id and not user.square_customer_id:
                    user.square_customer_id = square_customer_id
                    changed.append("square_customer_id")

                if changed:
                    await session.commit()
                    await session.refresh(user)
                    logger.info(f"Updated user {user_id}: {', '.join(changed)}")
                return user

        except IntegrityError as e:
            # email is the only unique profile column
            raise ValidationException(
                "Failed to update user",
                field="email",
                invalid_value=fields.get("email"),
                expected_format="email not used by another account",
            ) from e
        except SQLAlchemyError as e:
            raise PersistenceException(
                message=f"Failed to update user {user_id}: {e}", operation="update_profile"
            ) from e
