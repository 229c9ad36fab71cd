from datetime import datetime

import pytest
from fastapi import status

from src.outcomes.domain.models.consultation import ConsultationCreate
from src.outcomes.domain.models.form import FormUpdate, PatientFormData
from src.outcomes.domain.models.surgery import SurgeryCreate, SurgerySide, SurgeryUpdate
from src.outcomes.domain.models.user import UserCreate, UserRole
from src.outcomes.errors import BadRequestError, NotFoundError
from src.outcomes.infra.db import inmemory as repos
from src.outcomes.services.cases.service import patient_case_service
from src.outcomes.services.consultations.service import consultation_service
from src.outcomes.services.forms.service import form_service
from src.outcomes.services.formtemplates.plugins.moxfq import moxfq_plugin
from src.outcomes.services.statistics.service import statistics_service
from src.outcomes.services.surgeries.service import surgery_service
from src.outcomes.services.users.service import user_service


@pytest.fixture
def surgery(case):
    return surgery_service.create_surgery(
        case.id,
        SurgeryCreate(
            external_id="OP-2025-17",
            diagnosis=["Hallux valgus"],
            diagnosis_icd10=["M20.1"],
            side=SurgerySide.LEFT,
            surgery_date=datetime(2025, 2, 3, 8, 0),
            surgeons=["surgeon-1"],
        ),
    )


# Surgeries


def test_create_links_surgery_to_case(case, surgery):
    assert repos.patient_case_repository.get(case.id).surgeries == [surgery.id]
    assert [s.id for s in surgery_service.list_by_case(case.id)] == [surgery.id]


def test_create_for_missing_case():
    with pytest.raises(NotFoundError):
        surgery_service.create_surgery(
            "missing", SurgeryCreate(side=SurgerySide.NONE, surgery_date=datetime(2025, 1, 1))
        )


def test_surgery_queries(surgery):
    assert [s.id for s in surgery_service.search_by_external_id("op-2025")] == [surgery.id]
    assert [s.id for s in surgery_service.find_by_diagnosis("Hallux valgus")] == [surgery.id]
    assert [s.id for s in surgery_service.find_by_icd10("M20.1")] == [surgery.id]
    assert [s.id for s in surgery_service.find_by_surgeon("surgeon-1")] == [surgery.id]
    assert surgery_service.find_by_surgeon("surgeon-2") == []


def test_surgeons_resolve_to_users(surgery):
    doctor = user_service.create_user(UserCreate(username="dr-who", password="pw", roles=[UserRole.DOCTOR]))
    surgery_service.update_surgery(surgery.id, SurgeryUpdate(surgeons=[doctor.id, "gone"]))

    assert [u.username for u in surgery_service.get_surgeons(surgery.id)] == ["dr-who"]


def test_update_surgery(surgery):
    updated = surgery_service.update_surgery(surgery.id, SurgeryUpdate(therapy="Scarf osteotomy", tourniquet=45))

    assert updated.therapy == "Scarf osteotomy"
    assert updated.tourniquet == 45
    assert updated.side == SurgerySide.LEFT
    assert updated.updated_at is not None

    with pytest.raises(BadRequestError):
        surgery_service.update_surgery(surgery.id, SurgeryUpdate(side=None))


def test_surgery_notes(surgery):
    with_note = surgery_service.add_note(surgery.id, "Screw fixation", created_by="surgeon-1")
    note = with_note.additional_data[0]
    assert note.note == "Screw fixation"

    assert surgery_service.delete_note(surgery.id, note.id).additional_data == []
    with pytest.raises(NotFoundError):
        surgery_service.delete_note(surgery.id, note.id)


def test_delete_surgery_unlinks_case(case, surgery):
    surgery_service.delete_surgery(surgery.id)

    assert repos.patient_case_repository.get(case.id).surgeries == []
    with pytest.raises(NotFoundError):
        surgery_service.get_surgery(surgery.id)


def test_delete_case_removes_surgeries(patient, case, surgery):
    patient_case_service.delete_case(patient.id, case.id)

    assert repos.surgery_repository.list() == []


# Statistics


def test_case_statistics_follow_consultations_in_date_order(case, surgery):
    later = consultation_service.create_consultation(
        case.id,
        ConsultationCreate(date_and_time=datetime(2025, 5, 2, 10, 0), form_templates=[moxfq_plugin.template_id]),
    )
    earlier = consultation_service.create_consultation(
        case.id,
        ConsultationCreate(date_and_time=datetime(2025, 1, 20, 10, 0), form_templates=[moxfq_plugin.template_id]),
    )
    answers = {"moxfq": {f"q{i}": 2 for i in range(1, 17)}}
    form_service.update_form(earlier.proms[0], FormUpdate(patient_form_data=PatientFormData(raw_data=answers)))

    stats = statistics_service.get_case_statistics(case.id)

    assert stats.total_consultations == 2
    assert [c.consultation_id for c in stats.consultations] == [earlier.id, later.id]
    assert stats.surgery_date == surgery.surgery_date
    assert stats.consultations[0].proms[0].total.normalized_score == 50
    assert stats.consultations[1].proms[0].total is None


def test_statistics_for_case_without_consultations(case):
    stats = statistics_service.get_case_statistics(case.id)

    assert stats.total_consultations == 0
    assert stats.consultations == []
    assert stats.surgery_date is None
    assert stats.case_created_at == case.created_at


def test_statistics_for_missing_case():
    with pytest.raises(NotFoundError):
        statistics_service.get_case_statistics("missing")


# HTTP


async def test_surgery_routes(client, case):
    created = await client.post(
        f"/api/v1/surgeries/case/{case.id}",
        json={"side": "right", "surgery_date": "2025-02-03T08:00:00", "external_id": "OP-1"},
    )
    assert created.status_code == status.HTTP_201_CREATED
    surgery_id = created.json()["id"]

    listed = await client.get(f"/api/v1/surgeries/case/{case.id}")
    assert [s["id"] for s in listed.json()] == [surgery_id]

    noted = await client.post(f"/api/v1/surgeries/{surgery_id}/notes", json={"note": "Uneventful"})
    assert noted.status_code == status.HTTP_201_CREATED

    stats = await client.get(f"/api/v1/statistics/case/{case.id}")
    assert stats.json()["surgery_date"] == "2025-02-03T08:00:00"

    deleted = await client.delete(f"/api/v1/surgeries/{surgery_id}")
    assert deleted.status_code == status.HTTP_204_NO_CONTENT
    assert (await client.get(f"/api/v1/surgeries/{surgery_id}")).status_code == status.HTTP_404_NOT_FOUND
