"""Notifier adapter writing events to the audit log."""

from typing import Any

from dealdedupe.audit.logger import AuditLogger


class AuditNotifier:
    """``Notifier`` that records each notification as an audit event.

    Parameters
    ----------
    logger : AuditLogger
        Destination log.
    """

    def __init__(self, logger: AuditLogger) -> None:
        self.logger = logger

    def notify(self, event_type: str, payload: dict[str, Any]) -> None:
        """Write *payload* as an audit event named *event_type*."""
        self.logger.event(event_type, data=dict(payload), rid=payload.get("entity_id"))
