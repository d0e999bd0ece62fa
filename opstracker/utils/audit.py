"""Structured audit events for every mutation.

Audit records go to the ``opstracker.audit`` logger as one JSON document per
line so they can be shipped separately from application logs. Emission is
best-effort: a failure here is reported on the application logger and never
propagates into the mutation that triggered it.
"""

import logging
from typing import Any, Dict, Optional

from opstracker.utils.helpers import sanitize_json, utcnow
from opstracker.utils.logger import logger

audit_logger = logging.getLogger("opstracker.audit")


def audit_event(user, event: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Build the audit record for ``event`` performed by ``user``."""
    return {
        "event": event,
        "actor": {
            "id": getattr(user, "id", None),
            "role": getattr(user, "role", None),
        },
        "payload": payload or {},
        "timestamp": utcnow().isoformat(),
    }


def log_event(user, event: str, payload: Optional[Dict[str, Any]] = None, message: str = "") -> None:
    try:
        record = audit_event(user, event, payload)
        audit_logger.info(f"{message or event} {sanitize_json(record)}")
    except Exception as e:
        logger.warning(f"Audit logging failed for {event}: {e}")
