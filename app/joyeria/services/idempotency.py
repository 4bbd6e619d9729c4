import hashlib
import json
from dataclasses import dataclass
from datetime import datetime

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from app.joyeria.core.error_catalog import AppError, ErrorCatalog
from app.joyeria.core.metrics import metrics
from app.joyeria.db.models import IdempotencyRecord
from app.joyeria.repos.idempotency import IdempotencyRepository, IdempotencyScope

IDEMPOTENCY_HEADER = "Idempotency-Key"
REPLAY_HEADER = "X-Idempotency-Result"


@dataclass
class IdempotencyReplay:
    status_code: int
    response_body: dict

    def as_response(self) -> JSONResponse:
        return JSONResponse(
            status_code=self.status_code,
            content=self.response_body,
            headers={REPLAY_HEADER: ErrorCatalog.IDEMPOTENCY_REPLAY.code},
        )


class IdempotencyContext:
    def __init__(self, record: IdempotencyRecord, repo: IdempotencyRepository):
        self._record = record
        self._repo = repo

    def _finish(self, state: str, status_code: int, response_body: dict) -> None:
        self._record.status_code = status_code
        self._record.response_body = json.dumps(response_body, default=str)
        self._record.state = state
        self._record.updated_at = datetime.utcnow()
        self._repo.save(self._record)

    def record_success(self, *, status_code: int, response_body: dict) -> None:
        self._finish("succeeded", status_code, response_body)

    def record_failure(self, *, status_code: int, response_body: dict) -> None:
        self._finish("failed", status_code, response_body)


class IdempotencyService:
    def __init__(self, db):
        self.repo = IdempotencyRepository(db)

    @staticmethod
    def fingerprint(payload: object) -> str:
        payload_bytes = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
        return hashlib.sha256(payload_bytes).hexdigest()

    def start(
        self,
        *,
        user_id: str,
        endpoint: str,
        method: str,
        idempotency_key: str,
        request_hash: str,
    ) -> tuple[IdempotencyContext | None, IdempotencyReplay | None]:
        scope = IdempotencyScope(user_id=user_id, endpoint=endpoint, method=method, idempotency_key=idempotency_key)
        existing = self.repo.find(scope)
        if existing:
            return None, self._handle_existing(existing, request_hash)

        try:
            record = self.repo.claim(scope, request_hash)
        except IntegrityError:
            self.repo.db.rollback()
            return None, self._handle_existing(self.repo.find(scope), request_hash)
        return IdempotencyContext(record, self.repo), None

    @staticmethod
    def _handle_existing(existing: IdempotencyRecord | None, request_hash: str) -> IdempotencyReplay:
        if existing is None:
            raise AppError(ErrorCatalog.IDEMPOTENCY_REQUEST_IN_PROGRESS)
        if existing.request_hash != request_hash:
            raise AppError(ErrorCatalog.IDEMPOTENCY_KEY_REUSED_WITH_DIFFERENT_PAYLOAD)
        if existing.state == "in_progress" or existing.response_body is None or existing.status_code is None:
            raise AppError(ErrorCatalog.IDEMPOTENCY_REQUEST_IN_PROGRESS)
        metrics.increment_idempotency_replay()
        return IdempotencyReplay(status_code=existing.status_code, response_body=json.loads(existing.response_body))


def extract_idempotency_key(headers) -> str | None:
    key = headers.get(IDEMPOTENCY_HEADER)
    return key.strip() if key and key.strip() else None


def begin_idempotent_request(
    request: Request, db, *, user_id: str, payload: object
) -> tuple[IdempotencyContext | None, IdempotencyReplay | None]:
    """Registers the request under its Idempotency-Key header, if one was sent."""
    idempotency_key = extract_idempotency_key(request.headers)
    if not idempotency_key:
        return None, None
    context, replay = IdempotencyService(db).start(
        user_id=user_id,
        endpoint=str(request.url.path),
        method=request.method,
        idempotency_key=idempotency_key,
        request_hash=IdempotencyService.fingerprint(payload),
    )
    if context is not None:
        request.state.idempotency = context
    return context, replay
