from __future__ import annotations

import logging
from typing import List, Optional

import bcrypt

from src.outcomes.domain.models.common import apply_changes, utcnow
from src.outcomes.domain.models.user import User, UserCreate, UserPublic, UserRole, UserUpdate
from src.outcomes.errors import ConflictError, NotFoundError, UnauthorizedError
from src.outcomes.infra.db import inmemory as repos

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Return the bcrypt hash (salt included) of ``password``."""

    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, encoded: Optional[str]) -> bool:
    if not encoded:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), encoded.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash.
        return False


class UserService:
    """Application users, including the shared kiosk accounts."""

    def list_users(self, current_user: UserPublic, role: Optional[UserRole] = None) -> List[User]:
        """Admins see every user; everyone else sees users of their departments."""

        departments = set(current_user.department)
        is_admin = current_user.has_role(UserRole.ADMIN)

        def _visible(user: User) -> bool:
            if role is not None and role not in user.roles:
                return False
            return is_admin or bool(departments.intersection(user.department))

        return repos.user_repository.list(_visible)

    def get_user(self, user_id: str) -> User:
        user = repos.user_repository.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def find_by_username(self, username: str) -> Optional[User]:
        return repos.user_repository.find_one(lambda u: u.username == username)

    def get_user_by_username(self, username: str) -> User:
        user = self.find_by_username(username)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _ensure_unique(self, *, username: Optional[str], email: Optional[str], exclude_id: Optional[str] = None) -> None:
        for existing in repos.user_repository.list(lambda u: u.id != exclude_id):
            if username is not None and existing.username == username:
                raise ConflictError("Username already exists")
            if email is not None and existing.email is not None and existing.email.lower() == email.lower():
                raise ConflictError("Email already exists")

    def create_user(self, payload: UserCreate) -> User:
        self._ensure_unique(username=payload.username, email=payload.email)
        data = payload.model_dump(exclude={"password"})
        user = User(**data, password_hash=hash_password(payload.password))
        repos.user_repository.save(user)
        logger.info("Created user %s", user.id)
        return user

    def update_user(self, user_id: str, payload: UserUpdate) -> User:
        user = self.get_user(user_id)
        changes = payload.model_dump(exclude_unset=True)
        password = changes.pop("password", None)
        if "email" in changes and changes["email"] is not None:
            self._ensure_unique(username=None, email=changes["email"], exclude_id=user_id)
        if password:
            changes["password_hash"] = hash_password(password)
        user = apply_changes(user, {**changes, "updated_at": utcnow()})
        repos.user_repository.save(user)
        return user

    def delete_user(self, username: str) -> None:
        user = self.get_user_by_username(username)
        repos.user_repository.delete(user.id)
        logger.info("Deleted user %s", user.id)

    def login(self, username: str, password: str) -> User:
        user = self.find_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid username or password")
        user.last_login = utcnow()
        repos.user_repository.save(user)
        return user

    def change_password(self, user_id: str, old_password: str, new_password: str) -> None:
        user = self.get_user(user_id)
        if not verify_password(old_password, user.password_hash):
            raise UnauthorizedError("Current password is incorrect")
        user.password_hash = hash_password(new_password)
        user.updated_at = utcnow()
        repos.user_repository.save(user)

    # Kiosk accounts

    def get_kiosk_users(self) -> List[User]:
        return repos.user_repository.list(lambda u: UserRole.KIOSK in u.roles)

    def get_available_kiosk_users(self) -> List[User]:
        return [user for user in self.get_kiosk_users() if not user.consultation_id]


user_service = UserService()
