from __future__ import annotations

import logging
import re
import secrets
import string
from datetime import datetime, timedelta
from typing import List, Optional

from src.outcomes.config import settings
from src.outcomes.domain.models.access_code import CodeValidation, FormAccessCode
from src.outcomes.domain.models.common import utcnow
from src.outcomes.domain.models.consultation import Consultation
from src.outcomes.errors import BadRequestError, ConflictError, NotFoundError
from src.outcomes.infra.db import inmemory as repos

logger = logging.getLogger(__name__)

FALLBACK_CODE_LIFE = timedelta(hours=4)

_LIFE_PATTERN = re.compile(r"^\s*(\d+)\s*([hdw])\s*$", re.IGNORECASE)
_UNITS = {"h": "hours", "d": "days", "w": "weeks"}


def parse_code_life(value: Optional[str], default: Optional[timedelta] = None) -> timedelta:
    """Parse a code life such as "4h", "2d" or "3w".

    Anything unparsable (or zero) yields ``default``, which itself defaults to
    the configured DEFAULT_CODE_LIFE.
    """

    fallback = default if default is not None else default_code_life()
    if not value:
        return fallback
    match = _LIFE_PATTERN.match(value)
    if not match or int(match.group(1)) == 0:
        return fallback
    return timedelta(**{_UNITS[match.group(2).lower()]: int(match.group(1))})


def default_code_life() -> timedelta:
    return parse_code_life(settings.default_code_life, FALLBACK_CODE_LIFE)


def generate_code() -> str:
    """Three uppercase letters followed by two digits, e.g. "KXM42"."""

    letters = "".join(secrets.choice(string.ascii_uppercase) for _ in range(3))
    digits = "".join(secrets.choice(string.digits) for _ in range(2))
    return letters + digits


class AccessCodeService:
    """Form access codes let a patient open one consultation's forms without an account.

    A code is either available (never activated) or bound to exactly one
    consultation until it expires or is deactivated. A consultation holds at
    most one valid code.
    """

    def get_all_codes(self) -> List[FormAccessCode]:
        return repos.form_access_code_repository.list()

    def get_available_codes(self) -> List[FormAccessCode]:
        return repos.form_access_code_repository.list(lambda c: c.activated_on is None)

    def find_code(self, code: str) -> Optional[FormAccessCode]:
        return repos.form_access_code_repository.find_one(lambda c: c.code == code)

    def get_code(self, code: str) -> FormAccessCode:
        found = self.find_code(code)
        if found is None:
            raise NotFoundError("Code not found")
        return found

    def get_code_by_id(self, code_id: str) -> FormAccessCode:
        found = repos.form_access_code_repository.get(code_id)
        if found is None:
            raise NotFoundError("Code not found")
        return found

    def add_codes(self, count: int) -> List[FormAccessCode]:
        if count < 1 or count > settings.access_code_batch_max:
            raise BadRequestError(f"Number of codes must be between 1 and {settings.access_code_batch_max}")

        existing = {c.code for c in repos.form_access_code_repository.list()}
        created: List[FormAccessCode] = []
        while len(created) < count:
            candidate = generate_code()
            if candidate in existing:
                continue
            existing.add(candidate)
            created.append(repos.form_access_code_repository.save(FormAccessCode(code=candidate)))
        logger.info("Created %d access codes", count)
        return created

    def delete_code(self, code_id: str) -> None:
        code = self.get_code_by_id(code_id)
        self._unlink_consultation(code)
        repos.form_access_code_repository.delete(code_id)

    def code_life_for(self, consultation: Consultation) -> timedelta:
        """Department override for the code life, else the configured default."""

        case = repos.patient_case_repository.get(consultation.patient_case_id)
        patient = repos.patient_repository.get(case.patient_id) if case else None
        department = repos.department_repository.get(patient.department) if patient and patient.department else None
        if department and department.external_access_code_life:
            return parse_code_life(department.external_access_code_life)
        return default_code_life()

    def activate_code(self, code: str, consultation_id: str, *, now: Optional[datetime] = None) -> FormAccessCode:
        now = now or utcnow()
        consultation = repos.consultation_repository.get(consultation_id)
        if consultation is None:
            raise NotFoundError("Consultation not found")

        if consultation.form_access_code:
            previous = repos.form_access_code_repository.get(consultation.form_access_code)
            if previous is not None and previous.is_active and not previous.is_expired(now):
                raise ConflictError("Consultation already has an active access code")
            # The previous link is stale: expired, never activated or gone.
            if previous is not None and previous.is_active:
                self._reset(previous)
            consultation.form_access_code = None

        found = self.get_code(code)
        if found.is_active:
            raise ConflictError("Code is already activated")

        # Codes unlinked earlier may still point at this consultation.
        for stale in repos.form_access_code_repository.list(
            lambda c: c.consultation_id == consultation.id and c.is_active
        ):
            logger.info("Deactivating access code %s left on consultation %s", stale.id, consultation.id)
            self._reset(stale)

        found.activated_on = now
        found.expires_on = now + self.code_life_for(consultation)
        found.consultation_id = consultation.id
        repos.form_access_code_repository.save(found)

        consultation.form_access_code = found.id
        repos.consultation_repository.save(consultation)
        logger.info("Activated access code %s for consultation %s until %s", found.id, consultation.id, found.expires_on)
        return found

    def deactivate_code(self, code: str, *, now: Optional[datetime] = None) -> FormAccessCode:
        now = now or utcnow()
        found = self.get_code(code)
        if not found.is_active:
            raise ConflictError("Code is already deactivated")
        if found.is_expired(now):
            logger.warning("Deactivating access code %s which expired at %s", found.id, found.expires_on)

        self._unlink_consultation(found)
        self._reset(found)
        return found

    def validate_code(self, code: str, *, now: Optional[datetime] = None) -> CodeValidation:
        now = now or utcnow()
        found = self.get_code(code)
        if not found.is_active:
            raise BadRequestError("Code is not activated")
        if found.is_expired(now):
            raise BadRequestError("Code has expired")
        return CodeValidation(
            code=found.code,
            valid=True,
            consultation_id=found.consultation_id,
            expires_on=found.expires_on,
        )

    def _reset(self, code: FormAccessCode) -> None:
        code.activated_on = None
        code.expires_on = None
        code.consultation_id = None
        repos.form_access_code_repository.save(code)

    def _unlink_consultation(self, code: FormAccessCode) -> None:
        if not code.consultation_id:
            return
        consultation = repos.consultation_repository.get(code.consultation_id)
        if consultation is not None and consultation.form_access_code == code.id:
            consultation.form_access_code = None
            repos.consultation_repository.save(consultation)


access_code_service = AccessCodeService()
