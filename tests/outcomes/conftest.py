"""Shared fixtures.

Every test starts from empty in-memory repositories with the scoring-plugin
templates registered, the state the application has right after startup.
"""
from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient

from src.outcomes.domain.models.consultation import ConsultationCreate
from src.outcomes.domain.models.patient import PatientCreate
from src.outcomes.domain.models.patient_case import PatientCaseCreate
from src.outcomes.domain.models.user import UserCreate, UserRole
from src.outcomes.infra.db.bootstrap import use_inmemory_repositories
from src.outcomes.infra.db.inmemory import reset_repositories
from src.outcomes.main import app
from src.outcomes.services.cases.service import patient_case_service
from src.outcomes.services.consultations.service import consultation_service
from src.outcomes.services.formtemplates.service import form_template_service
from src.outcomes.services.patients.service import patient_service
from src.outcomes.services.users.service import user_service


@pytest.fixture(autouse=True)
def clean_repositories():
    reset_repositories()
    form_template_service.ensure_plugin_templates()
    yield
    use_inmemory_repositories()


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def patient():
    return patient_service.create_patient(PatientCreate(external_patient_id=["PID-1001"]))


@pytest.fixture
def case(patient):
    return patient_case_service.create_case(
        patient.id,
        PatientCaseCreate(main_diagnosis=["Hallux valgus"], main_diagnosis_icd10=["M20.1"]),
    )


@pytest.fixture
def consultation(case):
    return consultation_service.create_consultation(
        case.id,
        ConsultationCreate(date_and_time=datetime(2025, 3, 14, 9, 30)),
    )


@pytest.fixture
def kiosk_user():
    return user_service.create_user(
        UserCreate(username="kiosk-1", password="kiosk-pass", roles=[UserRole.KIOSK])
    )
