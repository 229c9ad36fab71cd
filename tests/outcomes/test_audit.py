import json
import logging

from src.outcomes.services.audit.service import audit_service


def test_audit_event_is_logged_as_json(caplog):
    with caplog.at_level(logging.INFO, logger="audit"):
        event = audit_service.log_event(
            action="activate_code",
            resource_type="form_access_code",
            resource_id="code-1",
            actor_id="user-1",
            subject="api-key:abc",
            extra={"consultation_id": "c-1"},
        )

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["action"] == "activate_code"
    assert payload["subject"] == "api-key:abc"
    assert payload["actor_id"] == "user-1"
    assert payload["extra"] == {"consultation_id": "c-1"}
    assert event.timestamp == payload["timestamp"]


def test_unserializable_extra_is_dropped(caplog):
    with caplog.at_level(logging.INFO, logger="audit"):
        audit_service.log_event(action="delete_form", resource_type="form", subject="s", extra={"obj": object()})

    assert json.loads(caplog.records[-1].getMessage())["extra"] is None
