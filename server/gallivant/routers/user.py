"""User router."""

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.dependencies import DatabaseSession
from ..core.exceptions import ProblemDetailsException, StorageUnavailableError
from ..schemas.user import CreateUserRequest, User
from ..services.user_service import UserService
from .converters import user_to_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/db", tags=["user"])


@router.post("/user/", response_model=User, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: CreateUserRequest,
    db: AsyncSession = DatabaseSession
) -> JSONResponse:
    """Create a user; usernames are unique."""
    try:
        user = await UserService(db).create_user(request)

        return JSONResponse(
            status_code=201,
            content=user_to_schema(user).to_wire()
        )

    except ProblemDetailsException:
        raise

    except OperationalError as e:
        logger.error("Database unavailable during user creation", extra={"error": str(e)})
        raise StorageUnavailableError()

    except Exception as e:
        logger.error(
            "Unexpected error in user creation",
            extra={"username": request.username, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(
            status_code=500,
            detail="Internal server error"
        )
