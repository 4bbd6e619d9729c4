from fastapi import APIRouter, Depends, Request

from app.joyeria.core.config import settings
from app.joyeria.core.deps import require_active_user
from app.joyeria.core.error_catalog import AppError
from app.joyeria.db.session import get_db
from app.joyeria.repos.users import UserRepository
from app.joyeria.schemas.auth import LoginRequest, TokenResponse, UserResponse
from app.joyeria.services.audit import AuditEventPayload, AuditService
from app.joyeria.services.auth import AuthService

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
def login(request: Request, payload: LoginRequest, db=Depends(get_db)):
    trace_id = getattr(request.state, "trace_id", "")
    try:
        user, token = AuthService(db).login(payload.username, payload.password)
    except AppError as exc:
        candidate = UserRepository(db).get_by_username(payload.username)
        if candidate is not None:
            AuditService(db).record_event(
                AuditEventPayload.for_staff(
                    request,
                    candidate,
                    action="auth.login.failed",
                    entity_type="user",
                    entity_id=str(candidate.id),
                    metadata={"error_code": exc.error.code},
                    result="failure",
                )
            )
        raise

    AuditService(db).record_event(
        AuditEventPayload.for_staff(request, user, action="auth.login", entity_type="user", entity_id=str(user.id))
    )
    return TokenResponse(
        access_token=token,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        role=user.role,
        trace_id=trace_id,
    )


@router.get("/me", response_model=UserResponse)
def me(current_user=Depends(require_active_user)):
    return UserResponse(
        id=str(current_user.id),
        username=current_user.username,
        full_name=current_user.full_name,
        role=current_user.role,
        is_active=current_user.is_active,
    )
