from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from src.outcomes.domain.models.registration_code import (
    RegisterUserRequest,
    RegistrationCode,
    RegistrationCodeCreate,
)
from src.outcomes.domain.models.user import UserPublic, UserRole
from src.outcomes.security import get_api_key, require_roles
from src.outcomes.services.audit.service import audit_service
from src.outcomes.services.users.registration import registration_service

_require_admin = require_roles(UserRole.ADMIN)

router = APIRouter(
    prefix="/registration",
    tags=["registration"],
    dependencies=[Depends(get_api_key)],
)

# Self-registration: the registration code is the credential.
public_router = APIRouter(prefix="/registration", tags=["registration"])


@router.get("/codes", response_model=List[RegistrationCode])
async def list_registration_codes(
    current_user: UserPublic = Depends(_require_admin),
) -> List[RegistrationCode]:
    return registration_service.list_codes()


@router.post("/codes", response_model=List[RegistrationCode], status_code=status.HTTP_201_CREATED)
async def create_registration_codes(
    payload: RegistrationCodeCreate,
    current_user: UserPublic = Depends(_require_admin),
) -> List[RegistrationCode]:
    codes = registration_service.create_codes(payload)
    audit_service.log_event(
        action="create_registration_codes",
        resource_type="registration_code",
        actor_id=current_user.id,
        extra={"count": len(codes)},
    )
    return codes


@public_router.get("/check/{code}")
async def check_registration_code(code: str) -> dict:
    found = registration_service.check_code(code)
    return {"code": found.code, "valid": True, "valid_until": found.valid_until}


@public_router.post("/register", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterUserRequest) -> UserPublic:
    user = registration_service.register_user(payload)
    audit_service.log_event(
        action="register_user",
        resource_type="user",
        resource_id=user.id,
        extra={"roles": [role.value for role in user.roles]},
    )
    return user
