"""Audit trail for changes to clinical records.

Each event is written to the ``audit`` logger as one JSON object. Events
carry identifiers and coarse actions only: never questionnaire answers,
notes or other free text.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src.outcomes.security import get_current_subject

logger = logging.getLogger("audit")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class AuditEvent:
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    # Stored user acting, "anonymous" when auth is off or the key is unbound.
    actor_id: Optional[str] = None
    # Hashed API key of the caller.
    subject: Optional[str] = None
    extra: Optional[Dict[str, Any]] = None
    timestamp: str = field(default_factory=_now_iso)

    def to_json(self) -> str:
        payload = asdict(self)
        try:
            return json.dumps(payload)
        except TypeError:
            payload["extra"] = None
            return json.dumps(payload)


class AuditService:
    def log_event(
        self,
        *,
        action: str,
        resource_type: str,
        resource_id: Optional[str] = None,
        actor_id: Optional[str] = None,
        subject: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> AuditEvent:
        """Record ``action`` (e.g. "activate_code") on a resource.

        ``subject`` defaults to the API key of the current request. ``extra``
        holds small non-identifying metadata such as counts or statuses; it is
        dropped when it cannot be serialized.
        """

        event = AuditEvent(
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            actor_id=actor_id,
            subject=subject if subject is not None else get_current_subject(),
            extra=extra,
        )
        logger.info(event.to_json())
        return event


audit_service = AuditService()
