"""
Bootstrap the global administrator account
Usage: python create_admin.py <email> <password> [first_name] [last_name]
"""
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from sqlalchemy.orm import Session

from ams import models  # noqa: F401
from ams.database import Base, SessionLocal, engine
from ams.domain.identity.repository import IdentityRepository
from ams.models import ROLE_ADMIN, User
from ams.security_utils import hash_password
from ams.shared.validators import validate_email

logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)


def create_admin(db: Session, email: str, password: str, first_name: str = "System", last_name: str = "Admin") -> User:
    """Create an admin principal. Admins belong to no tenant."""
    email = validate_email(email)
    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters")
    if IdentityRepository.email_in_use(db, email):
        raise ValueError(f"An account already exists with email {email}")

    admin = User(
        tenant_id=None,
        role=ROLE_ADMIN,
        first_name=first_name,
        last_name=last_name,
        email=email,
        password_hash=hash_password(password),
        email_verified=True,
    )
    return IdentityRepository.save(db, admin)


if __name__ == "__main__":
    if len(sys.argv) < 3:
        logger.error("Usage: python create_admin.py <email> <password> [first_name] [last_name]")
        sys.exit(1)

    Base.metadata.create_all(bind=engine, checkfirst=True)
    db = SessionLocal()
    try:
        admin = create_admin(db, *sys.argv[1:5])
        logger.info(f"✅ Admin created: {admin.email} (id={admin.id})")
    except ValueError as e:
        logger.error(f"❌ Could not create admin: {e}")
        sys.exit(1)
    finally:
        db.close()
