"""Identity repository - credential lookups across principal stores"""

from datetime import datetime
from typing import Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import ROLE_TENANT, Tenant, User


class IdentityRepository:
    """Email and id lookups over the users table and the tenants table"""

    @staticmethod
    def find_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(func.lower(User.email) == email.lower()).first()

    @staticmethod
    def find_tenant_by_email(db: Session, email: str) -> Optional[Tenant]:
        return db.query(Tenant).filter(func.lower(Tenant.email) == email.lower()).first()

    @classmethod
    def find_by_email(cls, db: Session, email: str) -> Optional[Union[User, Tenant]]:
        """Users are checked before tenant owners"""
        return cls.find_user_by_email(db, email) or cls.find_tenant_by_email(db, email)

    @classmethod
    def email_in_use(cls, db: Session, email: str) -> bool:
        return cls.find_by_email(db, email) is not None

    @staticmethod
    def get_record(db: Session, role: str, principal_id: int) -> Optional[Union[User, Tenant]]:
        if role == ROLE_TENANT:
            return db.query(Tenant).filter(Tenant.id == principal_id).first()
        return db.query(User).filter(User.id == principal_id, User.role == role).first()

    @staticmethod
    def save(db: Session, record: Union[User, Tenant]) -> Union[User, Tenant]:
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def touch_last_login(db: Session, record: Union[User, Tenant]) -> None:
        record.last_login = datetime.utcnow()
        db.commit()
