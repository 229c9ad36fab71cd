from datetime import datetime

import pytest

from src.outcomes.domain.models.clinical_study import ClinicalStudyCreate, ClinicalStudyUpdate, StudyType
from src.outcomes.domain.models.department import DepartmentType, UserDepartmentCreate, UserDepartmentUpdate
from src.outcomes.domain.models.form_template import FormTemplateCreate, FormTemplateUpdate
from src.outcomes.domain.models.user import UserCreate, UserPublic, UserRole
from src.outcomes.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from src.outcomes.infra.db import inmemory as repos
from src.outcomes.services.departments.service import department_service
from src.outcomes.services.formtemplates.plugins.efas import efas_plugin
from src.outcomes.services.formtemplates.plugins.moxfq import moxfq_plugin
from src.outcomes.services.formtemplates.plugins.registry import all_plugins
from src.outcomes.services.formtemplates.service import form_template_service
from src.outcomes.services.studies.service import clinical_study_service
from src.outcomes.services.users.service import user_service


@pytest.fixture
def center():
    return department_service.create_department(
        UserDepartmentCreate(name="Orthopaedic Center", department_type=DepartmentType.CENTER)
    )


@pytest.fixture
def department(center):
    return department_service.create_department(UserDepartmentCreate(name="Foot & Ankle", center=center.id))


# Departments


def test_center_reports_children(center, department):
    assert department_service.get_department(center.id).has_child_departments is True
    assert department_service.get_department(department.id).has_child_departments is False


def test_department_rules(center, department):
    with pytest.raises(ConflictError):
        department_service.create_department(UserDepartmentCreate(name="foot & ankle"))
    with pytest.raises(BadRequestError):
        department_service.create_department(
            UserDepartmentCreate(name="Nested", department_type=DepartmentType.CENTER, center=center.id)
        )
    with pytest.raises(BadRequestError):
        department_service.create_department(UserDepartmentCreate(name="Orphan", center=department.id))
    with pytest.raises(BadRequestError):
        department_service.update_department(
            center.id, UserDepartmentUpdate(department_type=DepartmentType.DEPARTMENT)
        )


def test_delete_department_guards(center, department):
    user_service.create_user(UserCreate(username="doc", password="pw", department=[department.id]))

    with pytest.raises(ConflictError):
        department_service.delete_department(department.id)
    with pytest.raises(ConflictError):
        department_service.delete_department(center.id)

    user_service.delete_user("doc")
    department_service.delete_department(department.id)
    department_service.delete_department(center.id)
    assert department_service.list_departments() == []


def test_rename_department(department):
    renamed = department_service.update_department(department.id, UserDepartmentUpdate(name="Foot Surgery"))
    assert renamed.name == "Foot Surgery"
    assert renamed.updated_at is not None


def test_department_null_name_is_rejected(department):
    with pytest.raises(BadRequestError):
        department_service.update_department(department.id, UserDepartmentUpdate(name=None))

    department_service.create_department(UserDepartmentCreate(name="Hand Surgery"))
    assert department_service.get_department(department.id).name == "Foot & Ankle"


# Form templates


def test_plugin_templates_registered_once():
    assert len(repos.form_template_repository.list()) == len(all_plugins())
    assert form_template_service.ensure_plugin_templates() == 0


def test_template_crud():
    template = form_template_service.create_template(FormTemplateCreate(title="Custom"))
    updated = form_template_service.update_template(template.id, FormTemplateUpdate(description="Free text"))
    assert updated.description == "Free text"
    assert updated.updated_at is not None

    form_template_service.delete_template(template.id)
    with pytest.raises(NotFoundError):
        form_template_service.get_template(template.id)


def test_template_null_title_is_rejected():
    template = form_template_service.create_template(FormTemplateCreate(title="Custom"))

    with pytest.raises(BadRequestError):
        form_template_service.update_template(template.id, FormTemplateUpdate(title=None))
    assert form_template_service.get_template(template.id).title == "Custom"


def test_department_mapping_controls_visibility(department):
    form_template_service.set_mapping(department.id, [moxfq_plugin.template_id])
    doctor = UserPublic(username="doc", roles=[UserRole.DOCTOR], department=[department.id])
    admin = UserPublic(username="root", roles=[UserRole.ADMIN])

    assert [t.id for t in form_template_service.list_templates(doctor)] == [moxfq_plugin.template_id]
    assert len(form_template_service.list_templates(admin)) == len(all_plugins())
    assert form_template_service.get_template_for_user(moxfq_plugin.template_id, doctor)
    with pytest.raises(ForbiddenError):
        form_template_service.get_template_for_user(efas_plugin.template_id, doctor)
    with pytest.raises(ForbiddenError):
        form_template_service.list_templates(doctor, department_id="other-department")


def test_mapping_add_remove_and_delete(department):
    form_template_service.add_templates(department.id, [moxfq_plugin.template_id])
    mapping = form_template_service.add_templates(
        department.id, [efas_plugin.template_id, moxfq_plugin.template_id]
    )
    assert mapping.form_template_ids == [moxfq_plugin.template_id, efas_plugin.template_id]

    mapping = form_template_service.remove_templates(department.id, [moxfq_plugin.template_id])
    assert mapping.form_template_ids == [efas_plugin.template_id]

    form_template_service.delete_mapping(department.id)
    with pytest.raises(NotFoundError):
        form_template_service.get_mapping(department.id)


def test_mapping_validation(department):
    with pytest.raises(NotFoundError):
        form_template_service.set_mapping("missing", [moxfq_plugin.template_id])
    with pytest.raises(BadRequestError):
        form_template_service.set_mapping(department.id, ["not-a-template"])


def test_deleting_template_updates_mappings(department):
    template = form_template_service.create_template(FormTemplateCreate(title="Custom"))
    form_template_service.set_mapping(department.id, [template.id, moxfq_plugin.template_id])

    form_template_service.delete_template(template.id)

    assert form_template_service.get_mapping(department.id).form_template_ids == [moxfq_plugin.template_id]


# Clinical studies


def test_study_lifecycle():
    study = clinical_study_service.create_study(
        ClinicalStudyCreate(
            name="Hallux outcomes",
            included_icd10_diagnosis=["M20.1"],
            study_type=[StudyType.PROSPECTIVE],
            supervisors=["sup-1"],
            study_nurses=["nurse-1"],
            begin_date=datetime(2025, 1, 1),
        )
    )

    assert [s.id for s in clinical_study_service.find_by_supervisor("sup-1")] == [study.id]
    assert [s.id for s in clinical_study_service.find_by_study_nurse("nurse-1")] == [study.id]
    assert [s.id for s in clinical_study_service.find_by_diagnosis("M20.1")] == [study.id]

    updated = clinical_study_service.update_study(study.id, ClinicalStudyUpdate(name="Hallux outcomes II"))
    assert updated.name == "Hallux outcomes II"
    assert updated.begin_date == datetime(2025, 1, 1)

    with pytest.raises(BadRequestError):
        clinical_study_service.update_study(study.id, ClinicalStudyUpdate(end_date=datetime(2024, 12, 31)))
    with pytest.raises(BadRequestError):
        clinical_study_service.update_study(study.id, ClinicalStudyUpdate(name=None))

    clinical_study_service.delete_study(study.id)
    with pytest.raises(NotFoundError):
        clinical_study_service.get_study(study.id)
