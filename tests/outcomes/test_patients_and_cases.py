from datetime import datetime

import pytest

from src.outcomes.domain.models.consultation import ConsultationCreate
from src.outcomes.domain.models.patient import PatientCreate, PatientUpdate
from src.outcomes.domain.models.patient_case import PatientCaseCreate, PatientCaseUpdate
from src.outcomes.domain.models.user import UserCreate, UserPublic, UserRole
from src.outcomes.errors import BadRequestError, ConflictError, NotFoundError
from src.outcomes.infra.db import inmemory as repos
from src.outcomes.services.cases.service import generate_case_external_id, patient_case_service
from src.outcomes.services.consultations.service import consultation_service
from src.outcomes.services.patients.service import patient_service
from src.outcomes.services.users.service import user_service


# Patients


def test_create_patient_takes_department_from_user():
    user = UserPublic(username="nurse", roles=[UserRole.STUDY_NURSE], department=["dep-1", "dep-2"])

    patient = patient_service.create_patient(PatientCreate(external_patient_id=["A-1"]), user)

    assert patient.department == "dep-1"


def test_external_ids_are_unique(patient):
    with pytest.raises(ConflictError):
        patient_service.create_patient(PatientCreate(external_patient_id=["X", "PID-1001"]))

    other = patient_service.create_patient(PatientCreate(external_patient_id=["PID-2002"]))
    with pytest.raises(ConflictError):
        patient_service.update_patient(other.id, PatientUpdate(external_patient_id=["PID-1001"]))
    with pytest.raises(BadRequestError):
        patient_service.update_patient(other.id, PatientUpdate(external_patient_id=[]))


def test_lookup_by_external_id(patient):
    patient_service.update_patient(patient.id, PatientUpdate(external_patient_id=["PID-1001", "KIS-77"]))

    assert patient_service.get_by_external_id("KIS-77").id == patient.id
    assert [p.id for p in patient_service.search_by_external_id("kis")] == [patient.id]
    with pytest.raises(NotFoundError):
        patient_service.get_by_external_id("KIS")


def test_find_all_is_paginated_newest_first_with_counts(case, consultation):
    for i in range(11):
        patient_service.create_patient(PatientCreate(external_patient_id=[f"P-{i}"]))

    first_page = patient_service.find_all(page=1, limit=5)
    assert first_page.total == 12
    assert first_page.total_pages == 3
    assert first_page.items[0].external_patient_id == ["P-10"]

    last_page = patient_service.find_all(page=3, limit=5)
    assert len(last_page.items) == 2
    with_case = last_page.items[-1]
    assert with_case.id == case.patient_id
    assert with_case.case_count == 1
    assert with_case.consultation_count == 1


def test_soft_delete_and_restore_patient_with_cases(patient, case):
    patient_service.soft_delete_patient(patient.id, deleted_by="u1", reason="test data")

    with pytest.raises(NotFoundError):
        patient_service.get_patient(patient.id)
    assert repos.patient_case_repository.get(case.id).is_deleted
    assert patient_service.find_all().total == 0
    assert patient_service.find_all(include_deleted=True).total == 1
    assert patient_service.find_deleted().items[0].deletion_reason == "test data"

    restored = patient_service.restore_patient(patient.id)
    assert restored.deleted_at is None
    assert not repos.patient_case_repository.get(case.id).is_deleted
    with pytest.raises(BadRequestError):
        patient_service.restore_patient(patient.id)


def test_restore_keeps_cases_deleted_earlier(patient, case):
    patient_case_service.soft_delete_case(patient.id, case.id, reason="wrong case")
    patient_service.soft_delete_patient(patient.id)

    patient_service.restore_patient(patient.id)

    assert repos.patient_case_repository.get(case.id).is_deleted


def test_soft_delete_many_skips_unknown_and_deleted(patient):
    other = patient_service.create_patient(PatientCreate(external_patient_id=["PID-2"]))
    patient_service.soft_delete_patient(other.id)

    assert patient_service.soft_delete_many([patient.id, other.id, "missing"]) == 1


def test_delete_patient_cascades(patient, case, consultation):
    patient_service.delete_patient(patient.id)

    assert repos.patient_repository.get(patient.id) is None
    assert repos.patient_case_repository.get(case.id) is None
    assert repos.consultation_repository.get(consultation.id) is None


# Cases


def test_generated_external_id_shape():
    parts = generate_case_external_id().split("-")
    assert len(parts) == 3
    assert all(len(part) == 3 and part.isalnum() for part in parts)


def test_create_case_registers_on_patient(patient, case):
    assert case.external_id
    assert repos.patient_repository.get(patient.id).cases == [case.id]


def test_duplicate_external_id_is_replaced(patient):
    first = patient_case_service.create_case(patient.id, PatientCaseCreate(external_id="ABC-123-xyz"))
    second = patient_case_service.create_case(patient.id, PatientCaseCreate(external_id="ABC-123-xyz"))

    assert first.external_id == "ABC-123-xyz"
    assert second.external_id != "ABC-123-xyz"
    with pytest.raises(ConflictError):
        patient_case_service.update_case(patient.id, second.id, PatientCaseUpdate(external_id="ABC-123-xyz"))


def test_case_belongs_to_patient(patient, case):
    other = patient_service.create_patient(PatientCreate(external_patient_id=["PID-2"]))
    with pytest.raises(NotFoundError):
        patient_case_service.get_case(other.id, case.id)
    with pytest.raises(NotFoundError):
        patient_case_service.list_cases("missing")


def test_case_queries(patient, case):
    updated = patient_case_service.update_case(
        patient.id, case.id, PatientCaseUpdate(other_diagnosis_icd10=["M21.6"], supervisors=["sup-1"])
    )
    assert updated.updated_at is not None

    assert [c.id for c in patient_case_service.find_by_diagnosis("Hallux valgus")] == [case.id]
    assert [c.id for c in patient_case_service.find_by_icd10("M20.1")] == [case.id]
    assert [c.id for c in patient_case_service.find_by_icd10("M21.6")] == [case.id]
    assert [c.id for c in patient_case_service.find_by_supervisor("sup-1")] == [case.id]
    fragment = case.external_id[:3].lower()
    assert case.id in [c.id for c in patient_case_service.search_by_external_id(fragment)]


def test_supervisors_resolve_to_users(patient, case):
    doctor = user_service.create_user(UserCreate(username="dr", password="pw", roles=[UserRole.DOCTOR]))
    patient_case_service.update_case(patient.id, case.id, PatientCaseUpdate(supervisors=[doctor.id, "gone"]))

    assert [u.id for u in patient_case_service.get_supervisors(case.id)] == [doctor.id]


def test_case_notes(case):
    updated = patient_case_service.add_note(case.id, "Referred by GP", created_by="u1")
    note_id = updated.notes[0].id

    assert [n.note for n in patient_case_service.list_notes(case.id)] == ["Referred by GP"]
    assert patient_case_service.delete_note(case.id, note_id).notes == []
    with pytest.raises(NotFoundError):
        patient_case_service.delete_note(case.id, note_id)


def test_delete_case_removes_consultations(patient, case):
    consultation = consultation_service.create_consultation(
        case.id, ConsultationCreate(date_and_time=datetime(2025, 5, 2))
    )

    patient_case_service.delete_case(patient.id, case.id)

    assert repos.consultation_repository.get(consultation.id) is None
    assert repos.patient_repository.get(patient.id).cases == []


def test_restore_case(patient, case):
    patient_case_service.soft_delete_case(patient.id, case.id)
    assert patient_case_service.find_deleted().total == 1

    patient_case_service.restore_case(case.id)
    assert patient_case_service.get_case_by_id(case.id).deleted_at is None
    with pytest.raises(BadRequestError):
        patient_case_service.restore_case(case.id)


def test_null_for_required_fields_is_rejected(patient, case):
    with pytest.raises(BadRequestError):
        patient_service.update_patient(patient.id, PatientUpdate(external_patient_id=None))
    with pytest.raises(BadRequestError):
        patient_case_service.update_case(patient.id, case.id, PatientCaseUpdate(main_diagnosis=None))

    assert [p.id for p in patient_service.search_by_external_id("PID")] == [patient.id]
    assert [c.id for c in patient_case_service.find_by_diagnosis("Hallux valgus")] == [case.id]


def test_null_clears_optional_fields(patient, case):
    patient_case_service.update_case(patient.id, case.id, PatientCaseUpdate(medical_history="Gout"))

    updated = patient_case_service.update_case(patient.id, case.id, PatientCaseUpdate(medical_history=None))

    assert updated.medical_history is None
