from fastapi import Depends
from jose import JWTError
from pydantic import ValidationError

from app.joyeria.core.enums import UserRole
from app.joyeria.core.error_catalog import AppError, ErrorCatalog
from app.joyeria.core.security import StaffClaims, decode_staff_claims, oauth2_scheme
from app.joyeria.db.session import get_db
from app.joyeria.repos.users import UserRepository


def get_staff_claims(token: str = Depends(oauth2_scheme)) -> StaffClaims:
    try:
        return decode_staff_claims(token)
    except (JWTError, ValidationError, TypeError) as exc:
        raise AppError(ErrorCatalog.INVALID_TOKEN) from exc


def get_current_user(claims: StaffClaims = Depends(get_staff_claims), db=Depends(get_db)):
    user = UserRepository(db).get_by_id(claims.sub)
    if user is None:
        raise AppError(ErrorCatalog.INVALID_TOKEN)
    return user


def require_active_user(user=Depends(get_current_user)):
    # The stored flag wins over the claim so deactivation takes effect before the token expires.
    if not user.is_active:
        raise AppError(ErrorCatalog.USER_INACTIVE)
    return user


def require_admin(user=Depends(require_active_user)):
    if user.role != UserRole.ADMIN.value:
        raise AppError(ErrorCatalog.PERMISSION_DENIED, details={"required_role": UserRole.ADMIN.value})
    return user
