from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set

from src.outcomes.domain.models.common import apply_changes, utcnow
from src.outcomes.domain.models.form_template import (
    DepartmentFormTemplate,
    FormTemplate,
    FormTemplateCreate,
    FormTemplateUpdate,
)
from src.outcomes.domain.models.user import UserPublic, UserRole
from src.outcomes.errors import BadRequestError, ForbiddenError, NotFoundError
from src.outcomes.infra.db import inmemory as repos
from src.outcomes.services.formtemplates.plugins.registry import all_plugins

logger = logging.getLogger(__name__)

PRIVILEGED_ROLES = (UserRole.ADMIN, UserRole.DEVELOPER)


class FormTemplateService:
    """Form templates and the per-department lists of templates in use."""

    # Templates

    def ensure_plugin_templates(self) -> int:
        """Store a template for every scoring plugin that does not have one yet."""

        created = 0
        for plugin in all_plugins():
            if repos.form_template_repository.get(plugin.template_id) is None:
                repos.form_template_repository.save(plugin.form_template())
                created += 1
        if created:
            logger.info("Registered %d plugin form templates", created)
        return created

    def get_template(self, template_id: str) -> FormTemplate:
        template = repos.form_template_repository.get(template_id)
        if template is None:
            raise NotFoundError("Form template not found")
        return template

    def allowed_template_ids(self, user: UserPublic) -> Optional[Set[str]]:
        """Template ids visible to ``user``; None means unrestricted."""

        if user.has_role(*PRIVILEGED_ROLES):
            return None
        departments = set(user.department)
        allowed: Set[str] = set()
        for mapping in repos.department_form_template_repository.list(lambda m: m.department_id in departments):
            allowed.update(mapping.form_template_ids)
        return allowed

    def list_templates(self, user: UserPublic, department_id: Optional[str] = None) -> List[FormTemplate]:
        if department_id is not None:
            if not user.has_role(*PRIVILEGED_ROLES) and department_id not in user.department:
                raise ForbiddenError("You do not have access to this department's form templates")
            mapping = self._find_mapping(department_id)
            wanted = set(mapping.form_template_ids) if mapping else set()
            return repos.form_template_repository.list(lambda t: t.id in wanted)

        allowed = self.allowed_template_ids(user)
        if allowed is None:
            return repos.form_template_repository.list()
        return repos.form_template_repository.list(lambda t: t.id in allowed)

    def get_template_for_user(self, template_id: str, user: UserPublic) -> FormTemplate:
        template = self.get_template(template_id)
        allowed = self.allowed_template_ids(user)
        if allowed is not None and template_id not in allowed:
            raise ForbiddenError("You do not have access to this form template")
        return template

    def create_template(self, payload: FormTemplateCreate) -> FormTemplate:
        template = FormTemplate(**payload.model_dump())
        repos.form_template_repository.save(template)
        logger.info("Created form template %s", template.id)
        return template

    def update_template(self, template_id: str, payload: FormTemplateUpdate) -> FormTemplate:
        template = apply_changes(
            self.get_template(template_id), {**payload.model_dump(exclude_unset=True), "updated_at": utcnow()}
        )
        repos.form_template_repository.save(template)
        return template

    def delete_template(self, template_id: str) -> None:
        self.get_template(template_id)
        repos.form_template_repository.delete(template_id)
        for mapping in repos.department_form_template_repository.list(lambda m: template_id in m.form_template_ids):
            mapping.form_template_ids = [tid for tid in mapping.form_template_ids if tid != template_id]
            repos.department_form_template_repository.save(mapping)

    # Department mappings

    def _find_mapping(self, department_id: str) -> Optional[DepartmentFormTemplate]:
        return repos.department_form_template_repository.find_one(lambda m: m.department_id == department_id)

    def _check_department(self, department_id: str) -> None:
        if repos.department_repository.get(department_id) is None:
            raise NotFoundError("Department not found")

    def _check_templates(self, template_ids: Iterable[str]) -> List[str]:
        unique = list(dict.fromkeys(template_ids))
        missing = [tid for tid in unique if repos.form_template_repository.get(tid) is None]
        if missing:
            raise BadRequestError(f"Unknown form template ids: {', '.join(missing)}")
        return unique

    def list_mappings(self) -> List[DepartmentFormTemplate]:
        return repos.department_form_template_repository.list()

    def get_mapping(self, department_id: str) -> DepartmentFormTemplate:
        mapping = self._find_mapping(department_id)
        if mapping is None:
            raise NotFoundError("No form template mapping for this department")
        return mapping

    def set_mapping(self, department_id: str, template_ids: Iterable[str]) -> DepartmentFormTemplate:
        self._check_department(department_id)
        ids = self._check_templates(template_ids)
        mapping = self._find_mapping(department_id)
        if mapping is None:
            mapping = DepartmentFormTemplate(department_id=department_id, form_template_ids=ids)
        else:
            mapping.form_template_ids = ids
            mapping.updated_at = utcnow()
        repos.department_form_template_repository.save(mapping)
        return mapping

    def add_templates(self, department_id: str, template_ids: Iterable[str]) -> DepartmentFormTemplate:
        self._check_department(department_id)
        ids = self._check_templates(template_ids)
        mapping = self._find_mapping(department_id) or DepartmentFormTemplate(department_id=department_id)
        mapping.form_template_ids = list(dict.fromkeys([*mapping.form_template_ids, *ids]))
        mapping.updated_at = utcnow()
        repos.department_form_template_repository.save(mapping)
        return mapping

    def remove_templates(self, department_id: str, template_ids: Iterable[str]) -> DepartmentFormTemplate:
        mapping = self.get_mapping(department_id)
        removed = set(template_ids)
        mapping.form_template_ids = [tid for tid in mapping.form_template_ids if tid not in removed]
        mapping.updated_at = utcnow()
        repos.department_form_template_repository.save(mapping)
        return mapping

    def delete_mapping(self, department_id: str) -> None:
        mapping = self.get_mapping(department_id)
        repos.department_form_template_repository.delete(mapping.id)


form_template_service = FormTemplateService()
