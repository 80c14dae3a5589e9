"""User directory API routes.

Learn: FastAPI routers define HTTP endpoints. Each route function
receives dependencies (db session) via Depends() and delegates
to the service layer. Routes handle HTTP concerns (status codes,
error responses), services handle business logic.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from directline.db.engine import get_db
from directline.schemas.user import UserCreate, UserRead
from directline.services.errors import (
    DuplicateHandleError,
    StoreUnavailableError,
    ValidationError,
)
from directline.services.user_service import UserService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.post("/users", response_model=UserRead)
async def create_user(body: UserCreate, svc: UserService = Depends(_svc)):
    """Register a user. The handle must not be in use."""
    try:
        return await svc.create_user(name=body.name, handle=body.handle)
    except (DuplicateHandleError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/users", response_model=list[UserRead])
async def list_users(svc: UserService = Depends(_svc)):
    """All users, ordered by name."""
    try:
        return await svc.list_users()
    except StoreUnavailableError as e:
        raise HTTPException(status_code=500, detail=str(e))
