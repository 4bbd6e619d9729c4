from app.joyeria.core.error_catalog import AppError, ErrorCatalog
from app.joyeria.core.security import issue_staff_token, verify_password
from app.joyeria.repos.users import UserRepository


class AuthService:
    def __init__(self, db):
        self.repo = UserRepository(db)

    def login(self, username: str, password: str):
        user = self.repo.get_by_username(username)
        if user is None or not verify_password(password, user.hashed_password):
            raise AppError(ErrorCatalog.INVALID_CREDENTIALS)
        if not user.is_active:
            raise AppError(ErrorCatalog.USER_INACTIVE)
        return user, issue_staff_token(user)
