import logging
import os

from sqlalchemy.orm import Session

from invoicing.app.core.security import get_password_hash
from invoicing.app.core.settings import get_settings
from invoicing.app.models.user import User, UserRole

logger = logging.getLogger(__name__)

DEFAULT_DEV_PASSWORD = "Secret123!"
DEFAULT_DEV_ADMIN_EMAIL = "admin@example.com"


def ensure_default_dev_admin(db: Session) -> None:
    """
    Create an admin account on an empty development database so the admin
    screens are reachable without registering first.
    Skips execution when running under pytest to avoid altering test expectations.
    """
    if os.getenv("PYTEST_CURRENT_TEST") or get_settings().environment != "development":
        return
    if db.query(User).count() > 0:
        return

    db.add(
        User(
            email=DEFAULT_DEV_ADMIN_EMAIL,
            name="Admin",
            hashed_password=get_password_hash(DEFAULT_DEV_PASSWORD),
            role=UserRole.ADMIN.value,
            is_active=True,
        )
    )
    db.commit()
    logger.info("Seeded development admin %s", DEFAULT_DEV_ADMIN_EMAIL)
