"""User service for account lookups and creation."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConflictError, NotFoundError
from ..models.user import User
from ..schemas.user import CreateUserRequest

logger = logging.getLogger(__name__)


class UserService:
    """Service for user-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_user(self, request: CreateUserRequest) -> User:
        """
        Create a new user.

        Raises:
            ConflictError: If the username is already taken
        """
        existing = await self.get_user_by_username(request.username)
        if existing:
            logger.warning(
                "User creation failed - username already exists",
                extra={"username": request.username, "existing_user_id": existing.id}
            )
            raise ConflictError(
                detail=f"User '{request.username}' already exists",
                conflicting_resource={"id": existing.id, "username": existing.username}
            )

        user = User(username=request.username, email=request.email)

        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(
                "User creation failed due to integrity constraint",
                extra={"username": request.username, "error": str(e)}
            )
            raise ConflictError(detail=f"User '{request.username}' already exists")

        logger.info(
            "User created successfully",
            extra={"user_id": user.id, "username": user.username}
        )
        return user

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        stmt = select(User).where(User.username == username)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_by_id_or_raise(self, user_id: int) -> User:
        """
        Get user by ID or raise NotFoundError.

        Raises:
            NotFoundError: If user not found
        """
        user = await self.get_user_by_id(user_id)
        if not user:
            logger.warning("User not found", extra={"user_id": user_id})
            raise NotFoundError(resource_type="user", resource_id=user_id)
        return user
