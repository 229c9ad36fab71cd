from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from src.outcomes.domain.models.user import (
    ChangePasswordRequest,
    LoginRequest,
    UserCreate,
    UserPublic,
    UserRole,
    UserUpdate,
)
from src.outcomes.security import ensure_roles, get_api_key, get_current_user, require_roles
from src.outcomes.services.audit.service import audit_service
from src.outcomes.services.users.service import user_service

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(get_api_key)],
)

# Username/password login, used by the web client and kiosk devices.
auth_router = APIRouter(prefix="/auth", tags=["auth"])

_require_admin = require_roles(UserRole.ADMIN)


class ChangePasswordForUserRequest(ChangePasswordRequest):
    username: str


@router.get("/", response_model=List[UserPublic])
async def list_users(
    role: Optional[UserRole] = None,
    current_user: UserPublic = Depends(get_current_user),
) -> List[UserPublic]:
    return user_service.list_users(current_user, role)


@router.get("/me", response_model=UserPublic)
async def get_me(current_user: UserPublic = Depends(get_current_user)) -> UserPublic:
    return current_user


@router.get("/kiosk", response_model=List[UserPublic])
async def list_kiosk_users() -> List[UserPublic]:
    return user_service.get_kiosk_users()


@router.get("/kiosk/available", response_model=List[UserPublic])
async def list_available_kiosk_users() -> List[UserPublic]:
    return user_service.get_available_kiosk_users()


@router.get("/username/{username}", response_model=UserPublic)
async def get_user_by_username(username: str) -> UserPublic:
    return user_service.get_user_by_username(username)


@router.delete("/username/{username}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    username: str,
    current_user: UserPublic = Depends(_require_admin),
) -> None:
    user_service.delete_user(username)
    audit_service.log_event(
        action="delete_user",
        resource_type="user",
        actor_id=current_user.id,
    )


@router.get("/{user_id}", response_model=UserPublic)
async def get_user(user_id: str) -> UserPublic:
    return user_service.get_user(user_id)


@router.post("/", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    current_user: UserPublic = Depends(_require_admin),
) -> UserPublic:
    user = user_service.create_user(payload)
    audit_service.log_event(
        action="create_user",
        resource_type="user",
        resource_id=user.id,
        actor_id=current_user.id,
        extra={"roles": [role.value for role in user.roles]},
    )
    return user


@router.put("/{user_id}", response_model=UserPublic)
async def update_user(
    user_id: str,
    payload: UserUpdate,
    current_user: UserPublic = Depends(get_current_user),
) -> UserPublic:
    # Users may edit their own profile; everything else is admin-only.
    if user_id != current_user.id:
        ensure_roles(current_user, UserRole.ADMIN)
    elif payload.roles is not None or payload.permissions is not None:
        ensure_roles(current_user, UserRole.ADMIN)

    user = user_service.update_user(user_id, payload)
    audit_service.log_event(
        action="update_user",
        resource_type="user",
        resource_id=user_id,
        actor_id=current_user.id,
    )
    return user


@auth_router.post("/login", response_model=UserPublic)
async def login(payload: LoginRequest) -> UserPublic:
    user = user_service.login(payload.username, payload.password)
    audit_service.log_event(action="login", resource_type="user", resource_id=user.id)
    return user


@auth_router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(payload: ChangePasswordForUserRequest) -> None:
    user = user_service.get_user_by_username(payload.username)
    user_service.change_password(user.id, payload.old_password, payload.new_password)
    audit_service.log_event(action="change_password", resource_type="user", resource_id=user.id)
