"""Security event logging.

Provides ``SecuritySeverity`` and ``log_security_event()`` for events that
a host application may want to escalate (alerting, session termination),
and ``log_rejection()`` for the routine WARNING record written for every
rejected input.  Records go to the ``inputguard.security`` logger; the
library never configures handlers.
"""

from __future__ import annotations

import enum
import logging

_security_logger = logging.getLogger("inputguard.security")


# ── SecuritySeverity ────────────────────────────────────────────────────


class SecuritySeverity(enum.Enum):
    """Severity levels for security events."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ── Security event logging ──────────────────────────────────────────────


def log_security_event(
    event_type: str,
    severity: SecuritySeverity,
    detail: str,
    request_id: str = "",
) -> None:
    """Log a security event with severity.

    CRITICAL severity logs at ERROR level; others at WARNING.
    """
    msg = f"SECURITY_EVENT event={event_type} severity={severity.value} detail='{detail}' request_id={request_id}"
    if severity == SecuritySeverity.CRITICAL:
        _security_logger.error(msg)
    else:
        _security_logger.warning(msg)


def log_rejection(event_type: str, context: str, log_message: str) -> None:
    """Log a rejected input with its diagnostic message."""
    _security_logger.warning(
        "SECURITY event=%s context=%r detail=%r", event_type, context, log_message
    )
