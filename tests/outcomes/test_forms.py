from datetime import datetime, timedelta

import pytest

from src.outcomes.domain.models.common import utcnow
from src.outcomes.domain.models.consultation import ConsultationCreate
from src.outcomes.domain.models.form import FormFillStatus, FormUpdate, PatientFormData
from src.outcomes.domain.models.form_template import FormTemplateCreate
from src.outcomes.errors import BadRequestError, ForbiddenError, NotFoundError
from src.outcomes.infra.db import inmemory as repos
from src.outcomes.services.codes.service import access_code_service
from src.outcomes.services.consultations.service import consultation_service
from src.outcomes.services.forms.service import form_service
from src.outcomes.services.formtemplates.plugins.moxfq import moxfq_plugin
from src.outcomes.services.formtemplates.plugins.vas import vas_plugin
from src.outcomes.services.formtemplates.service import form_template_service


@pytest.fixture
def moxfq_form(case):
    consultation = consultation_service.create_consultation(
        case.id,
        ConsultationCreate(date_and_time=datetime(2025, 3, 14, 9, 30), form_templates=[moxfq_plugin.template_id]),
    )
    return form_service.get_form(consultation.proms[0])


def _submit(form, raw_data, **kwargs):
    update = FormUpdate(patient_form_data=PatientFormData(raw_data=raw_data, **kwargs))
    return form_service.update_form(form.id, update)


def test_form_copies_template(moxfq_form):
    template = repos.form_template_repository.get(moxfq_plugin.template_id)

    assert moxfq_form.title == template.title
    assert moxfq_form.form_schema == template.form_schema
    assert moxfq_form.form_fill_status == FormFillStatus.DRAFT
    assert moxfq_form.form_start_time is not None


def test_create_from_unknown_template():
    with pytest.raises(NotFoundError):
        form_service.create_form_by_template_id("unknown")


def test_update_scores_answers_on_the_server(moxfq_form):
    answers = {"moxfq": {f"q{i}": 4 for i in range(1, 17)}}

    form = _submit(moxfq_form, answers, fill_status="complete")

    assert form.patient_form_data.total.normalized_score == 100
    assert form.patient_form_data.subscales["pain"].raw_score == 16
    assert form.form_fill_status == FormFillStatus.COMPLETED
    assert form.form_end_time is not None
    assert form.completion_time_seconds is not None


def test_update_rejects_invalid_answers(moxfq_form):
    with pytest.raises(BadRequestError):
        _submit(moxfq_form, {"moxfq": {"q1": 9}})


def test_incomplete_fill_status_is_mapped(moxfq_form):
    form = _submit(moxfq_form, {"moxfq": {"q1": 1}}, fill_status="incomplete")
    assert form.form_fill_status == FormFillStatus.INCOMPLETE
    assert form.form_end_time is None


def test_completion_time_from_client_timestamps(moxfq_form):
    begin = datetime(2025, 3, 14, 9, 0, 0)
    form = _submit(
        moxfq_form,
        {"moxfq": {"q1": 1}},
        fill_status="complete",
        begin_fill=begin,
        completed_at=begin + timedelta(minutes=3, seconds=20),
    )
    assert form.completion_time_seconds == 200


def test_explicit_completion_time_wins(moxfq_form):
    update = FormUpdate(form_fill_status=FormFillStatus.COMPLETED, completion_time_seconds=42)
    form = form_service.update_form(moxfq_form.id, update)
    assert form.completion_time_seconds == 42


def test_resubmission_keeps_a_version(moxfq_form):
    _submit(moxfq_form, {"moxfq": {"q1": 1}})
    form = _submit(moxfq_form, {"moxfq": {"q1": 3}})

    assert form.current_version == 2
    versions = form_service.get_form_versions(form.id)
    assert [v.version for v in versions] == [1]
    assert versions[0].patient_form_data.raw_data == {"moxfq": {"q1": 1}}

    restored = form_service.restore_form_version(form.id, 1)
    assert restored.patient_form_data.raw_data == {"moxfq": {"q1": 1}}
    assert restored.current_version == 3
    with pytest.raises(NotFoundError):
        form_service.restore_form_version(form.id, 99)


def test_access_code_must_belong_to_the_form(case, moxfq_form):
    code = access_code_service.add_codes(1)[0]
    update = FormUpdate(patient_form_data=PatientFormData(raw_data={"moxfq": {"q1": 2}}), code=code.code)

    # Not activated yet.
    with pytest.raises(ForbiddenError):
        form_service.update_form(moxfq_form.id, update)

    other = consultation_service.create_consultation(case.id, ConsultationCreate(date_and_time=utcnow()))
    access_code_service.activate_code(code.code, other.id)
    with pytest.raises(ForbiddenError):
        form_service.update_form(moxfq_form.id, update)


def test_access_code_allows_patient_update(moxfq_form):
    code = access_code_service.add_codes(1)[0]
    access_code_service.activate_code(code.code, moxfq_form.consultation_id)
    update = FormUpdate(patient_form_data=PatientFormData(raw_data={"moxfq": {"q1": 2}}), code=code.code)

    form = form_service.update_form(moxfq_form.id, update)

    assert form.patient_form_data.raw_data == {"moxfq": {"q1": 2}}


def test_expired_access_code_is_refused(moxfq_form):
    code = access_code_service.add_codes(1)[0]
    access_code_service.activate_code(code.code, moxfq_form.consultation_id, now=utcnow() - timedelta(days=1))
    update = FormUpdate(patient_form_data=PatientFormData(raw_data={"moxfq": {"q1": 2}}), code=code.code)

    with pytest.raises(ForbiddenError):
        form_service.update_form(moxfq_form.id, update)


def test_template_without_plugin_is_stored_unscored(case):
    template = form_template_service.create_template(FormTemplateCreate(title="Free text"))
    form = form_service.create_form_by_template_id(template.id, case_id=case.id)

    updated = _submit(form, {"section": {"comment": "fine"}})

    assert updated.patient_form_data.total is None
    assert updated.patient_form_data.raw_data == {"section": {"comment": "fine"}}


def test_soft_delete_and_restore(moxfq_form):
    form_service.soft_delete_form(moxfq_form.id, deleted_by="u1", reason="duplicate")

    with pytest.raises(NotFoundError):
        form_service.get_form(moxfq_form.id)
    deleted = form_service.get_deleted_forms()
    assert deleted.total == 1
    assert deleted.items[0].deletion_reason == "duplicate"

    restored = form_service.restore_form(moxfq_form.id)
    assert restored.deleted_at is None
    with pytest.raises(BadRequestError):
        form_service.restore_form(moxfq_form.id)


def test_delete_form_updates_consultation(moxfq_form):
    _submit(moxfq_form, {"moxfq": {"q1": 1}})
    _submit(moxfq_form, {"moxfq": {"q1": 2}})

    form_service.delete_form(moxfq_form.id)

    assert repos.form_repository.get(moxfq_form.id) is None
    assert repos.form_version_repository.list() == []
    assert repos.consultation_repository.get(moxfq_form.consultation_id).proms == []


def test_bulk_delete_updates_consultations(case):
    consultation = consultation_service.create_consultation(
        case.id,
        ConsultationCreate(
            date_and_time=datetime(2025, 3, 14, 9, 30),
            form_templates=[moxfq_plugin.template_id, vas_plugin.template_id],
        ),
    )
    moxfq_id, vas_id = consultation.proms

    assert form_service.delete_forms([moxfq_id, "unknown"]) == 1

    assert repos.consultation_repository.get(consultation.id).proms == [vas_id]


def test_vas_form_scoring(case):
    form = form_service.create_form_by_template_id(vas_plugin.template_id, case_id=case.id)
    updated = _submit(form, {"vas": {"pain": 6}}, fill_status="complete")
    assert updated.patient_form_data.total.raw_score == 6
