from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from src.outcomes.domain.models.access_code import FormAccessCode
from src.outcomes.domain.models.clinical_study import ClinicalStudy
from src.outcomes.domain.models.consultation import Consultation
from src.outcomes.domain.models.department import UserDepartment
from src.outcomes.domain.models.form import Form, FormVersion
from src.outcomes.domain.models.form_template import DepartmentFormTemplate, FormTemplate
from src.outcomes.domain.models.patient import Patient
from src.outcomes.domain.models.patient_case import PatientCase
from src.outcomes.domain.models.registration_code import RegistrationCode
from src.outcomes.domain.models.surgery import Surgery
from src.outcomes.domain.models.user import User
from src.outcomes.infra.db.repositories import DocumentRepository, M, Predicate


class InMemoryDocumentRepository(DocumentRepository[M]):
    """Dict-backed repository used for tests and local development."""

    def __init__(self, collection, model) -> None:
        super().__init__(collection, model)
        self._docs: Dict[str, M] = {}

    def get(self, doc_id: str) -> Optional[M]:
        doc = self._docs.get(doc_id)
        return doc.model_copy(deep=True) if doc is not None else None

    def list(self, predicate: Optional[Predicate] = None) -> List[M]:
        return [
            doc.model_copy(deep=True)
            for doc in self._docs.values()
            if predicate is None or predicate(doc)
        ]

    def save(self, doc: M) -> M:
        self._docs[doc.id] = doc.model_copy(deep=True)
        return doc

    def delete(self, doc_id: str) -> bool:
        return self._docs.pop(doc_id, None) is not None

    def clear(self) -> None:
        self._docs.clear()


# Module-level singletons. Services look these up through the module so that
# bootstrap.init_sql_repositories can swap in SQL-backed implementations.
patient_repository: DocumentRepository[Patient] = InMemoryDocumentRepository("patients", Patient)
patient_case_repository: DocumentRepository[PatientCase] = InMemoryDocumentRepository("patientcases", PatientCase)
consultation_repository: DocumentRepository[Consultation] = InMemoryDocumentRepository("consultations", Consultation)
form_repository: DocumentRepository[Form] = InMemoryDocumentRepository("forms", Form)
form_version_repository: DocumentRepository[FormVersion] = InMemoryDocumentRepository("formversions", FormVersion)
form_template_repository: DocumentRepository[FormTemplate] = InMemoryDocumentRepository("formtemplates", FormTemplate)
department_form_template_repository: DocumentRepository[DepartmentFormTemplate] = InMemoryDocumentRepository(
    "departmentformtemplates", DepartmentFormTemplate
)
form_access_code_repository: DocumentRepository[FormAccessCode] = InMemoryDocumentRepository(
    "form-access-codes", FormAccessCode
)
user_repository: DocumentRepository[User] = InMemoryDocumentRepository("users", User)
registration_code_repository: DocumentRepository[RegistrationCode] = InMemoryDocumentRepository(
    "registrationcodes", RegistrationCode
)
clinical_study_repository: DocumentRepository[ClinicalStudy] = InMemoryDocumentRepository(
    "clinicalstudies", ClinicalStudy
)
department_repository: DocumentRepository[UserDepartment] = InMemoryDocumentRepository("userdepartments", UserDepartment)
surgery_repository: DocumentRepository[Surgery] = InMemoryDocumentRepository("surgeries", Surgery)

REPOSITORY_NAMES = (
    "patient_repository",
    "patient_case_repository",
    "consultation_repository",
    "form_repository",
    "form_version_repository",
    "form_template_repository",
    "department_form_template_repository",
    "form_access_code_repository",
    "user_repository",
    "registration_code_repository",
    "clinical_study_repository",
    "department_repository",
    "surgery_repository",
)


def iter_repositories() -> Iterator[DocumentRepository]:
    module_globals = globals()
    for name in REPOSITORY_NAMES:
        yield module_globals[name]


def reset_repositories() -> None:
    """Empty every collection. Used by the test suite between tests."""

    for repository in iter_repositories():
        repository.clear()
