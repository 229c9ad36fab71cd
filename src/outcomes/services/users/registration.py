from __future__ import annotations

import logging
import secrets
import string
from datetime import datetime, timedelta
from typing import List, Optional

from src.outcomes.config import settings
from src.outcomes.domain.models.common import to_naive_utc, utcnow
from src.outcomes.domain.models.registration_code import (
    RegisterUserRequest,
    RegistrationCode,
    RegistrationCodeCreate,
)
from src.outcomes.domain.models.user import User, UserCreate
from src.outcomes.errors import BadRequestError, ConflictError, NotFoundError, ServiceError
from src.outcomes.infra.db import inmemory as repos
from src.outcomes.services.users.service import user_service

logger = logging.getLogger(__name__)

_ALPHABET = string.ascii_uppercase + string.digits


def generate_registration_code() -> str:
    return "-".join("".join(secrets.choice(_ALPHABET) for _ in range(3)) for _ in range(3))


class RegistrationService:
    """Single-use registration codes that carry the roles of the account they create."""

    def create_codes(self, payload: RegistrationCodeCreate) -> List[RegistrationCode]:
        valid_until = to_naive_utc(payload.valid_until) or utcnow() + timedelta(
            days=settings.registration_code_valid_days
        )
        existing = {c.code for c in repos.registration_code_repository.list()}
        created: List[RegistrationCode] = []
        while len(created) < payload.count:
            candidate = generate_registration_code()
            if candidate in existing:
                continue
            existing.add(candidate)
            code = RegistrationCode(
                code=candidate,
                valid_until=valid_until,
                roles=payload.roles,
                permissions=payload.permissions,
                user_department=payload.user_department,
                user_belongs_to_center=payload.user_belongs_to_center,
            )
            created.append(repos.registration_code_repository.save(code))
        logger.info("Created %d registration codes", len(created))
        return created

    def list_codes(self) -> List[RegistrationCode]:
        return repos.registration_code_repository.list()

    def _find(self, code: str) -> RegistrationCode:
        found = repos.registration_code_repository.find_one(lambda c: c.code == code)
        if found is None:
            raise NotFoundError("Registration code not found")
        return found

    def check_code(self, code: str, *, now: Optional[datetime] = None) -> RegistrationCode:
        """Return the code if it can still be used, raising otherwise."""

        now = now or utcnow()
        found = self._find(code)
        if not found.active:
            raise ConflictError("Registration code has already been used")
        if found.valid_until is not None and found.valid_until < now:
            raise BadRequestError("Registration code has expired")
        return found

    def use_code(self, code: str, *, now: Optional[datetime] = None) -> RegistrationCode:
        found = self.check_code(code, now=now)
        found.active = False
        found.activated_at = now or utcnow()
        return repos.registration_code_repository.save(found)

    def reset_deactivated_code(self, code: str) -> RegistrationCode:
        found = self._find(code)
        found.active = True
        found.activated_at = None
        return repos.registration_code_repository.save(found)

    def set_activated_user_for_code(self, code: str, user_id: str) -> RegistrationCode:
        found = self._find(code)
        found.user_created_with = user_id
        return repos.registration_code_repository.save(found)

    def register_user(self, payload: RegisterUserRequest) -> User:
        code = self.use_code(payload.code)
        try:
            user = user_service.create_user(
                UserCreate(
                    username=payload.username,
                    password=payload.password,
                    name=payload.name,
                    email=payload.email,
                    roles=code.roles,
                    permissions=code.permissions,
                    department=code.user_department,
                    belongs_to_center=code.user_belongs_to_center,
                )
            )
        except ServiceError as exc:
            self.reset_deactivated_code(code.code)
            logger.warning("Registration with code %s failed: %s", code.id, exc.message)
            raise ConflictError(f"User could not be created: {exc.message}") from exc

        self.set_activated_user_for_code(code.code, user.id)
        logger.info("Registered user %s with code %s", user.id, code.id)
        return user


registration_service = RegistrationService()
