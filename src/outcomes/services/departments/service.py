from __future__ import annotations

import logging
from typing import List, Optional

from src.outcomes.domain.models.common import apply_changes, utcnow
from src.outcomes.domain.models.department import (
    DepartmentType,
    UserDepartment,
    UserDepartmentCreate,
    UserDepartmentUpdate,
)
from src.outcomes.errors import BadRequestError, ConflictError, NotFoundError
from src.outcomes.infra.db import inmemory as repos

logger = logging.getLogger(__name__)


class DepartmentService:
    """Departments and the centers grouping them."""

    def _count_children(self, department_id: str) -> int:
        return repos.department_repository.count(lambda d: d.center == department_id)

    def _with_children_flag(self, department: UserDepartment) -> UserDepartment:
        department.has_child_departments = (
            department.department_type == DepartmentType.CENTER and self._count_children(department.id) > 0
        )
        return department

    def _name_taken(self, name: str, exclude_id: str = "") -> bool:
        lowered = name.lower()
        return repos.department_repository.count(lambda d: d.name.lower() == lowered and d.id != exclude_id) > 0

    def _check_parent(self, department_type: DepartmentType, center_id: Optional[str]) -> None:
        if center_id is None:
            return
        if department_type == DepartmentType.CENTER:
            raise BadRequestError("Centers cannot have a parent center assigned")
        parent = repos.department_repository.get(center_id)
        if parent is None or parent.department_type != DepartmentType.CENTER:
            raise BadRequestError("Parent center does not exist")

    def list_departments(self) -> List[UserDepartment]:
        return [self._with_children_flag(d) for d in repos.department_repository.list()]

    def get_department(self, department_id: str) -> UserDepartment:
        department = repos.department_repository.get(department_id)
        if department is None:
            raise NotFoundError("Department not found")
        return self._with_children_flag(department)

    def create_department(self, payload: UserDepartmentCreate) -> UserDepartment:
        self._check_parent(payload.department_type, payload.center)
        if self._name_taken(payload.name):
            raise ConflictError("Department with this name already exists")
        department = UserDepartment(**payload.model_dump())
        repos.department_repository.save(department)
        logger.info("Created department %s", department.id)
        return department

    def update_department(self, department_id: str, payload: UserDepartmentUpdate) -> UserDepartment:
        existing = self.get_department(department_id)
        changes = payload.model_dump(exclude_unset=True)

        new_type = changes.get("department_type") or existing.department_type
        if new_type != existing.department_type and existing.department_type == DepartmentType.CENTER:
            if self._count_children(department_id) > 0:
                raise BadRequestError(
                    "Cannot change department type. This center has child departments assigned to it."
                )
        self._check_parent(new_type, changes.get("center", existing.center))

        if changes.get("name") and self._name_taken(changes["name"], exclude_id=department_id):
            raise ConflictError("Department with this name already exists")

        department = apply_changes(existing, {**changes, "updated_at": utcnow()})
        repos.department_repository.save(department)
        return self._with_children_flag(department)

    def delete_department(self, department_id: str) -> None:
        self.get_department(department_id)
        if repos.user_repository.count(lambda u: department_id in u.department) > 0:
            raise ConflictError("Cannot delete department. Users are still assigned to this department.")
        if self._count_children(department_id) > 0:
            raise ConflictError("Cannot delete center. Departments are still assigned to it.")
        repos.department_repository.delete(department_id)
        logger.info("Deleted department %s", department_id)


department_service = DepartmentService()
