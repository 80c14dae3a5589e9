"""User service — the user directory.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the database.
This makes the code testable (test services without HTTP)
and reusable (the CLI and API routes share the same logic).
"""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from directline.db.models import User
from directline.services.errors import (
    DuplicateHandleError,
    StoreUnavailableError,
    ValidationError,
)

logger = structlog.get_logger()


class UserService:
    """Business logic for the user directory."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_user(self, name: str, handle: str) -> User:
        """Register a user under a contact handle.

        Learn: Uniqueness is left to the database's unique constraint
        instead of a SELECT-then-INSERT check, which two concurrent
        requests could both pass.
        """
        name = (name or "").strip()
        handle = (handle or "").strip()
        if not name:
            raise ValidationError("Name must not be empty")
        if not handle:
            raise ValidationError("Handle must not be empty")

        user = User(name=name, handle=handle)
        self.db.add(user)
        try:
            await self.db.flush()
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("user.duplicate_handle", handle=handle)
            raise DuplicateHandleError(f"Handle '{handle}' is already registered")
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("user.create_failed", error=str(e))
            raise StoreUnavailableError("Could not create user") from e

        await self.db.refresh(user)
        logger.info("user.created", user_id=user.id, handle=handle)
        return user

    async def list_users(self) -> list[User]:
        try:
            result = await self.db.execute(
                select(User).order_by(User.name, User.id)
            )
        except SQLAlchemyError as e:
            logger.error("user.list_failed", error=str(e))
            raise StoreUnavailableError("Could not load users") from e
        return list(result.scalars().all())

    async def get_user(self, user_id: int) -> User | None:
        try:
            result = await self.db.execute(select(User).where(User.id == user_id))
        except SQLAlchemyError as e:
            raise StoreUnavailableError("Could not load user") from e
        return result.scalars().first()
