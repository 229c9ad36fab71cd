from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from src.outcomes.domain.models.department import UserDepartment, UserDepartmentCreate, UserDepartmentUpdate
from src.outcomes.domain.models.user import UserPublic, UserRole
from src.outcomes.security import get_api_key, require_roles
from src.outcomes.services.audit.service import audit_service
from src.outcomes.services.departments.service import department_service

router = APIRouter(
    prefix="/departments",
    tags=["departments"],
    dependencies=[Depends(get_api_key)],
)

_require_admin = require_roles(UserRole.ADMIN)


@router.get("/", response_model=List[UserDepartment])
async def list_departments() -> List[UserDepartment]:
    return department_service.list_departments()


@router.get("/{department_id}", response_model=UserDepartment)
async def get_department(department_id: str) -> UserDepartment:
    return department_service.get_department(department_id)


@router.post("/", response_model=UserDepartment, status_code=status.HTTP_201_CREATED)
async def create_department(
    payload: UserDepartmentCreate,
    current_user: UserPublic = Depends(_require_admin),
) -> UserDepartment:
    department = department_service.create_department(payload)
    audit_service.log_event(
        action="create_department",
        resource_type="department",
        resource_id=department.id,
        actor_id=current_user.id,
    )
    return department


@router.put("/{department_id}", response_model=UserDepartment)
async def update_department(
    department_id: str,
    payload: UserDepartmentUpdate,
    current_user: UserPublic = Depends(_require_admin),
) -> UserDepartment:
    department = department_service.update_department(department_id, payload)
    audit_service.log_event(
        action="update_department",
        resource_type="department",
        resource_id=department_id,
        actor_id=current_user.id,
    )
    return department


@router.delete("/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_department(
    department_id: str,
    current_user: UserPublic = Depends(_require_admin),
) -> None:
    department_service.delete_department(department_id)
    audit_service.log_event(
        action="delete_department",
        resource_type="department",
        resource_id=department_id,
        actor_id=current_user.id,
    )
