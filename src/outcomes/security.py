from __future__ import annotations

import hashlib
from contextvars import ContextVar
from typing import Dict, Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from src.outcomes.config import settings
from src.outcomes.domain.models.user import UserPublic, UserRole
from src.outcomes.services.users.service import user_service

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

# Hashed API key of the current request, picked up by the audit log.
_current_subject: ContextVar[Optional[str]] = ContextVar("current_subject", default=None)

ANONYMOUS_ADMIN = UserPublic(id="anonymous", username="anonymous", name="Anonymous", roles=[UserRole.ADMIN])


def get_current_subject() -> Optional[str]:
    return _current_subject.get()


def _parse_api_keys() -> Dict[str, Optional[str]]:
    """Map each configured key to the username it is bound to, if any.

    API_KEYS entries are ``key`` or ``key:username``, comma-separated.
    """

    keys: Dict[str, Optional[str]] = {}
    for entry in (settings.api_keys or "").split(","):
        key, _, username = entry.strip().partition(":")
        if key.strip():
            keys[key.strip()] = username.strip() or None
    return keys


def _key_subject(api_key: str) -> str:
    return "api-key:" + hashlib.sha256(api_key.encode("utf-8")).hexdigest()[:16]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


async def get_api_key(api_key: Optional[str] = Security(_api_key_header)) -> str:
    """Check the X-API-Key header when ENABLE_API_AUTH is on.

    Returns the accepted key, or "" when authentication is off.
    """

    if not settings.enable_api_auth:
        _current_subject.set(None)
        return ""

    configured = _parse_api_keys()
    if not configured:
        raise _unauthorized("API authentication is enabled but no API keys are configured.")
    if api_key is None or api_key not in configured:
        raise _unauthorized("Invalid or missing API key.")

    _current_subject.set(_key_subject(api_key))
    return api_key


async def get_current_user(api_key: str = Depends(get_api_key)) -> UserPublic:
    """Resolve the acting user.

    With auth disabled, or with a key that is not bound to a username, the
    caller acts as an anonymous administrator. A key written as
    ``key:username`` acts as that stored user.
    """

    username = _parse_api_keys().get(api_key) if api_key else None
    if username is None:
        return ANONYMOUS_ADMIN

    user = user_service.find_by_username(username)
    if user is None:
        raise _unauthorized("API key is bound to an unknown user.")
    return user


def ensure_roles(user: UserPublic, *roles: UserRole) -> None:
    """Raise HTTP 403 unless the user holds one of ``roles``."""

    if not user.has_role(*roles):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this resource",
        )


def require_roles(*roles: UserRole):
    """Dependency factory: the current user must hold one of ``roles``."""

    async def _dependency(current_user: UserPublic = Depends(get_current_user)) -> UserPublic:
        ensure_roles(current_user, *roles)
        return current_user

    return _dependency
