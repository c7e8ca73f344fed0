import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shoppos.core.security import hash_password
from shoppos.models.user import User, UserRole

logger = logging.getLogger(__name__)


def ensure_system_owner(db: Session, username: str, password: str) -> bool:
    """Seed the first system owner account; returns True when one was created."""
    if not username or not password:
        return False
    existing = db.scalar(select(User).where(func.lower(User.username) == username.lower()))
    if existing:
        logger.info("system owner %r already exists, skipping seed", username)
        return False

    db.add(
        User(
            username=username,
            name="System Owner",
            password_hash=hash_password(password),
            role=UserRole.SYSTEM_OWNER,
        )
    )
    db.commit()
    logger.info("system owner account created: %s", username)
    return True
