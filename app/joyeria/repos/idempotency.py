from dataclasses import asdict, dataclass

from sqlalchemy import select

from app.joyeria.db.models import IdempotencyRecord


@dataclass(frozen=True)
class IdempotencyScope:
    """A key is only unique per clerk and per endpoint."""

    user_id: str
    endpoint: str
    method: str
    idempotency_key: str

    def columns(self) -> dict:
        return asdict(self)


class IdempotencyRepository:
    def __init__(self, db):
        self.db = db

    def find(self, scope: IdempotencyScope) -> IdempotencyRecord | None:
        stmt = select(IdempotencyRecord).filter_by(**scope.columns()).execution_options(populate_existing=True)
        return self.db.execute(stmt).scalars().first()

    def claim(self, scope: IdempotencyScope, request_hash: str) -> IdempotencyRecord:
        """Commits an in-progress record; a concurrent claim of the same scope raises IntegrityError."""
        record = IdempotencyRecord(**scope.columns(), request_hash=request_hash, state="in_progress")
        self.db.add(record)
        self.db.commit()
        return record

    def save(self, record: IdempotencyRecord) -> IdempotencyRecord:
        self.db.add(record)
        self.db.commit()
        return record
