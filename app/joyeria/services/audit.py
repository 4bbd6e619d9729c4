from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from app.joyeria.db.models import AuditEvent

logger = logging.getLogger(__name__)


@dataclass
class AuditEventPayload:
    user_id: str | None
    trace_id: str | None
    actor: str
    action: str
    entity_type: str
    entity_id: str | None
    before: dict | None = None
    after: dict | None = None
    metadata: dict | None = None
    result: str = "success"

    @classmethod
    def for_staff(cls, request, user, *, action: str, entity_type: str, entity_id: str | None, **changes):
        """Event attributed to the authenticated clerk handling ``request``."""
        return cls(
            user_id=str(user.id),
            trace_id=getattr(request.state, "trace_id", None) or None,
            actor=user.username,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            **changes,
        )

    def to_row(self) -> AuditEvent:
        return AuditEvent(
            user_id=self.user_id,
            trace_id=self.trace_id,
            actor=self.actor,
            action=self.action,
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            before_payload=self.before,
            after_payload=self.after,
            event_metadata=self.metadata,
            result=self.result,
            created_at=datetime.utcnow(),
        )


class AuditService:
    """Audit trail for committed register actions.

    Written after the business commit in its own transaction; a failed write is logged and dropped.
    """

    def __init__(self, db):
        self.db = db

    def record_event(self, payload: AuditEventPayload) -> None:
        try:
            self.db.add(payload.to_row())
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(
                "audit write failed",
                extra={"action": payload.action, "trace_id": payload.trace_id, "entity_id": payload.entity_id},
            )
