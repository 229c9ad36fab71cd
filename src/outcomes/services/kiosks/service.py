from __future__ import annotations

import logging
from typing import List, Optional

from src.outcomes.domain.models.common import Note, utcnow
from src.outcomes.domain.models.consultation import Consultation, KioskConsultationStatus
from src.outcomes.domain.models.user import User, UserRole
from src.outcomes.errors import NotFoundError
from src.outcomes.infra.db import inmemory as repos

logger = logging.getLogger(__name__)


class KioskService:
    """Assignment of consultations to shared kiosk devices.

    Both sides of the link are stored: ``User.consultation_id`` on the kiosk
    account and ``Consultation.kiosk_id`` on the consultation. A kiosk shows
    at most one consultation and a consultation is on at most one kiosk.
    """

    def get_all_kiosks(self) -> List[User]:
        return repos.user_repository.list(lambda u: UserRole.KIOSK in u.roles)

    def get_available_kiosks(self) -> List[User]:
        return [user for user in self.get_all_kiosks() if not user.consultation_id]

    def get_kiosk_user(self, kiosk_user_id: str) -> User:
        user = repos.user_repository.get(kiosk_user_id)
        if user is None or UserRole.KIOSK not in user.roles:
            raise NotFoundError("Kiosk user not found")
        return user

    def set_consultation(self, kiosk_user_id: str, consultation_id: str) -> Consultation:
        consultation = repos.consultation_repository.get(consultation_id)
        if consultation is None:
            raise NotFoundError("Consultation not found")
        user = self.get_kiosk_user(kiosk_user_id)

        if consultation.kiosk_id and consultation.kiosk_id != user.id:
            self._clear_user_link(consultation.kiosk_id, consultation.id)
        if user.consultation_id and user.consultation_id != consultation.id:
            previous = repos.consultation_repository.get(user.consultation_id)
            if previous is not None and previous.kiosk_id == user.id:
                previous.kiosk_id = None
                repos.consultation_repository.save(previous)

        user.consultation_id = consultation.id
        user.updated_at = utcnow()
        repos.user_repository.save(user)
        consultation.kiosk_id = user.id
        repos.consultation_repository.save(consultation)
        logger.info("Assigned consultation %s to kiosk %s", consultation.id, user.id)
        return consultation

    def release_consultation(self, consultation: Consultation) -> Consultation:
        """Detach ``consultation`` from its kiosk. The caller saves the consultation."""

        if consultation.kiosk_id:
            self._clear_user_link(consultation.kiosk_id, consultation.id)
            consultation.kiosk_id = None
        return consultation

    def _clear_user_link(self, kiosk_user_id: str, consultation_id: str) -> None:
        user = repos.user_repository.get(kiosk_user_id)
        if user is None:
            logger.warning("Kiosk user %s linked to consultation %s no longer exists", kiosk_user_id, consultation_id)
            return
        if user.consultation_id == consultation_id:
            user.consultation_id = None
            repos.user_repository.save(user)

    def get_consultation_for(self, kiosk_user_id: str) -> Consultation:
        user = repos.user_repository.get(kiosk_user_id)
        if user is None:
            raise NotFoundError("User not found")
        if not user.consultation_id:
            raise NotFoundError("No active consultation for this kiosk")
        consultation = repos.consultation_repository.get(user.consultation_id)
        if consultation is None:
            raise NotFoundError("Consultation not found")
        return consultation

    def update_consultation_status(
        self,
        kiosk_user_id: str,
        status: KioskConsultationStatus,
        notes: Optional[str] = None,
    ) -> Consultation:
        consultation = self.get_consultation_for(kiosk_user_id)
        text = f"Status updated to: {status.value}"
        if notes:
            text = f"{text}. {notes}"
        consultation.notes.append(Note(note=text, created_by=kiosk_user_id))
        consultation.updated_at = utcnow()
        repos.consultation_repository.save(consultation)
        return consultation

    def delete_consultation_for(self, kiosk_user_id: str) -> None:
        user = repos.user_repository.get(kiosk_user_id)
        if user is None:
            raise NotFoundError("User not found")
        if not user.consultation_id:
            raise NotFoundError("No active consultation for this kiosk")
        consultation = repos.consultation_repository.get(user.consultation_id)
        if consultation is not None and consultation.kiosk_id == user.id:
            consultation.kiosk_id = None
            repos.consultation_repository.save(consultation)
        user.consultation_id = None
        repos.user_repository.save(user)
        logger.info("Released kiosk %s", kiosk_user_id)


kiosk_service = KioskService()
