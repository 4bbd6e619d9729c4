from sqlalchemy import select

from app.joyeria.core.config import settings
from app.joyeria.core.enums import UserRole
from app.joyeria.core.security import get_password_hash
from app.joyeria.db.models import User
from app.joyeria.db.session import SessionLocal


def _get_or_create_admin(db):
    user = db.execute(select(User).where(User.username == settings.ADMIN_USERNAME)).scalars().first()
    if user:
        return user
    user = User(
        username=settings.ADMIN_USERNAME,
        full_name=settings.ADMIN_FULL_NAME,
        hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
        role=UserRole.ADMIN.value,
        is_active=True,
    )
    db.add(user)
    return user


def run_seed(db):
    user = _get_or_create_admin(db)
    db.commit()
    return user


if __name__ == "__main__":
    session = SessionLocal()
    try:
        run_seed(session)
    finally:
        session.close()
