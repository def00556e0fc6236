"""Principal repository - Database operations for users and service providers"""

from typing import Optional

from sqlalchemy import String, cast
from sqlalchemy.orm import Query, Session

from ...auth import TenantScope
from ...models import ROLE_SERVICE_PROVIDER, User


def _name_filter(query: Query, name: str) -> Query:
    search_term = f"%{name.lower()}%"
    return query.filter((User.first_name.ilike(search_term)) | (User.last_name.ilike(search_term)))


def _specialization_filter(query: Query, specialization: str) -> Query:
    # specializations is a JSON list; match one quoted element of its text form
    return query.filter(cast(User.specializations, String).ilike(f'%"{specialization}"%'))


class PrincipalRepository:
    """Repository for principal database operations. Every read goes through a TenantScope."""

    @staticmethod
    def get_principals(
        db: Session,
        scope: TenantScope,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        name: Optional[str] = None,
        specialization: Optional[str] = None,
    ) -> list[User]:
        query = scope.apply(db.query(User), User.tenant_id)

        if role:
            query = query.filter(User.role == role)
        if is_active is not None:
            query = query.filter(User.is_active.is_(is_active))
        if name:
            query = _name_filter(query, name)
        if specialization:
            query = _specialization_filter(query, specialization)

        if role == ROLE_SERVICE_PROVIDER:
            return query.order_by(User.rating_average.desc(), User.id).all()
        return query.order_by(User.created_at.desc(), User.id.desc()).all()

    @staticmethod
    def get_principal(
        db: Session, scope: TenantScope, principal_id: int, role: Optional[str] = None
    ) -> Optional[User]:
        query = scope.apply(db.query(User), User.tenant_id).filter(User.id == principal_id)
        if role:
            query = query.filter(User.role == role)
        return query.first()

    @staticmethod
    def get_first_provider(db: Session, tenant_id: int) -> Optional[User]:
        return (
            db.query(User)
            .filter(
                User.tenant_id == tenant_id,
                User.role == ROLE_SERVICE_PROVIDER,
                User.is_active.is_(True),
            )
            .order_by(User.id)
            .first()
        )

    @staticmethod
    def create_principal(db: Session, **principal_data) -> User:
        user = User(**principal_data)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update_principal(db: Session, user: User, **updates) -> User:
        for key, value in updates.items():
            if value is not None and hasattr(user, key):
                setattr(user, key, value)

        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def deactivate_principal(db: Session, user: User) -> User:
        """Soft delete. Deactivating an inactive principal is a no-op."""
        if user.is_active:
            user.is_active = False
            db.commit()
            db.refresh(user)
        return user

    @staticmethod
    def search_providers(
        db: Session,
        tenant_id: Optional[int] = None,
        search: Optional[str] = None,
        specialization: Optional[str] = None,
        min_rating: Optional[float] = None,
        experience: Optional[int] = None,
    ) -> Query:
        """Active providers, optionally inside one tenant, best rated first"""
        query = db.query(User).filter(User.role == ROLE_SERVICE_PROVIDER, User.is_active.is_(True))

        if tenant_id is not None:
            query = query.filter(User.tenant_id == tenant_id)
        if search:
            query = _name_filter(query, search)
        if specialization:
            query = _specialization_filter(query, specialization)
        if min_rating is not None:
            query = query.filter(User.rating_average >= min_rating)
        if experience is not None:
            query = query.filter(User.experience >= experience)

        return query.order_by(User.rating_average.desc(), User.experience.desc(), User.id)
