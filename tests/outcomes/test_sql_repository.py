from datetime import datetime

import pytest

from src.outcomes.domain.models.consultation import ConsultationCreate
from src.outcomes.domain.models.form import FormUpdate, PatientFormData
from src.outcomes.domain.models.patient import PatientCreate
from src.outcomes.domain.models.patient_case import PatientCaseCreate
from src.outcomes.infra.db import inmemory as repos
from src.outcomes.infra.db.bootstrap import init_sql_repositories
from src.outcomes.infra.db.sql_documents import SqlDocumentRepository
from src.outcomes.services.cases.service import patient_case_service
from src.outcomes.services.codes.service import access_code_service
from src.outcomes.services.consultations.service import consultation_service
from src.outcomes.services.forms.service import form_service
from src.outcomes.services.formtemplates.plugins.moxfq import moxfq_plugin
from src.outcomes.services.formtemplates.service import form_template_service
from src.outcomes.services.patients.service import patient_service


@pytest.fixture
def sql_repos(tmp_path):
    assert init_sql_repositories(f"sqlite:///{tmp_path}/outcomes.db", force=True)
    form_template_service.ensure_plugin_templates()


def test_not_enabled_without_flag():
    assert init_sql_repositories("sqlite://") is False
    assert not isinstance(repos.patient_repository, SqlDocumentRepository)


def test_repositories_are_swapped(sql_repos):
    assert isinstance(repos.patient_repository, SqlDocumentRepository)
    assert repos.form_template_repository.get(moxfq_plugin.template_id) is not None


def test_list_keeps_insertion_order(sql_repos):
    created = [patient_service.create_patient(PatientCreate(external_patient_id=[f"P-{i}"])) for i in range(3)]

    assert [p.id for p in repos.patient_repository.list()] == [p.id for p in created]
    assert repos.patient_repository.count(lambda p: p.external_patient_id == ["P-1"]) == 1


def test_save_replaces_and_delete_removes(sql_repos):
    patient = patient_service.create_patient(PatientCreate(external_patient_id=["P-1"]))
    patient.external_patient_id = ["P-1", "P-1b"]
    repos.patient_repository.save(patient)

    assert repos.patient_repository.get(patient.id).external_patient_id == ["P-1", "P-1b"]
    assert repos.patient_repository.count() == 1
    assert repos.patient_repository.delete(patient.id) is True
    assert repos.patient_repository.delete(patient.id) is False
    assert repos.patient_repository.get(patient.id) is None


def test_consultation_flow_round_trips(sql_repos):
    patient = patient_service.create_patient(PatientCreate(external_patient_id=["P-1"]))
    case = patient_case_service.create_case(patient.id, PatientCaseCreate(main_diagnosis=["Hallux rigidus"]))
    code = access_code_service.add_codes(1)[0]
    consultation = consultation_service.create_consultation(
        case.id,
        ConsultationCreate(
            date_and_time=datetime(2025, 6, 2, 8, 15),
            form_templates=[moxfq_plugin.template_id],
            form_access_code=code.code,
        ),
    )

    stored = consultation_service.get_consultation(consultation.id)
    assert stored.date_and_time == datetime(2025, 6, 2, 8, 15)
    assert stored.form_access_code == code.id
    assert consultation_service.get_by_code(code.code).id == consultation.id

    form = form_service.update_form(
        stored.proms[0],
        FormUpdate(patient_form_data=PatientFormData(raw_data={"moxfq": {f"q{i}": 2 for i in range(1, 17)}})),
    )
    assert form_service.get_form(form.id).patient_form_data.total.normalized_score == 50

    patient_service.delete_patient(patient.id)
    assert repos.consultation_repository.count() == 0
    assert repos.form_repository.count() == 0
