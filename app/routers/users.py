from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.dependencies import Pagination, get_db, get_current_user, require_admin
from app.models.enums import Role
from app.models.user import User as UserModel
from app.schemas.common import Page, PageMeta
from app.schemas.user import UserCreate, UserResponse, UserUpdate
from app.services import users as user_service
from app.services.query import UserFilters

router = APIRouter(prefix="/users", tags=["users"])

@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user: UserCreate,
    db: AsyncSession = Depends(get_db),
    admin: UserModel = Depends(require_admin),
):
    new_user = await user_service.create_user(db, user, role=user.role)
    await db.commit()
    return await user_service.get_user(db, new_user.user_id)

@router.get("/me", response_model=UserResponse)
async def get_me(current_user: UserModel = Depends(get_current_user)):
    return current_user

@router.get("", response_model=Page[UserResponse])
async def list_users(
    role: Role | None = Query(None, alias="filter[role]"),
    name: str | None = Query(None, alias="filter[name]"),
    email: str | None = Query(None, alias="filter[email]"),
    sort: str | None = None,
    pagination: Pagination = Depends(),
    db: AsyncSession = Depends(get_db),
    current_user: UserModel = Depends(get_current_user),
):
    filters = UserFilters(role=role, name=name, email=email)
    users, total = await user_service.list_users(
        db, filters, sort, pagination.page, pagination.per_page
    )
    return {
        "data": users,
        "meta": PageMeta(page=pagination.page, per_page=pagination.per_page, total=total),
    }

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: UserModel = Depends(require_admin),
):
    return await user_service.get_user(db, user_id)

@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: AsyncSession = Depends(get_db),
    admin: UserModel = Depends(require_admin),
):
    user = await user_service.get_user(db, user_id)
    await user_service.update_user(db, user, user_update)
    await db.commit()
    return await user_service.get_user(db, user_id)

@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: UserModel = Depends(require_admin),
):
    user = await user_service.get_user(db, user_id)
    await user_service.delete_user(db, user)
    await db.commit()
    return None
