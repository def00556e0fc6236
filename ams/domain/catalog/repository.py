"""Catalog repository - Database operations for services and provider assignment"""

from typing import Optional

from sqlalchemy import Integer, String, cast, delete, exists, insert, literal, select
from sqlalchemy.orm import Query, Session

from ...auth import TenantScope
from ...models import ROLE_SERVICE_PROVIDER, Service, User, service_providers


class CatalogRepository:
    """Repository for service database operations. Every read goes through a TenantScope."""

    @staticmethod
    def get_services(
        db: Session,
        scope: TenantScope,
        category: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> list[Service]:
        query = scope.apply(db.query(Service), Service.tenant_id)

        if category:
            query = query.filter(Service.category == category)
        if is_active is not None:
            query = query.filter(Service.is_active.is_(is_active))

        return query.order_by(Service.created_at.desc(), Service.id.desc()).all()

    @staticmethod
    def get_service(db: Session, scope: TenantScope, service_id: int) -> Optional[Service]:
        return scope.apply(db.query(Service), Service.tenant_id).filter(Service.id == service_id).first()

    @staticmethod
    def get_services_by_ids(db: Session, scope: TenantScope, service_ids: list[int]) -> list[Service]:
        if not service_ids:
            return []
        return scope.apply(db.query(Service), Service.tenant_id).filter(Service.id.in_(service_ids)).all()

    @staticmethod
    def get_services_for_provider(db: Session, scope: TenantScope, provider_id: int) -> list[Service]:
        query = scope.apply(db.query(Service), Service.tenant_id)
        return (
            query.join(service_providers, service_providers.c.service_id == Service.id)
            .filter(service_providers.c.provider_id == provider_id, Service.is_active.is_(True))
            .order_by(Service.name, Service.id)
            .all()
        )

    @staticmethod
    def get_unassigned_services(db: Session, tenant_id: int, provider_id: int) -> list[Service]:
        """Active services of the tenant the provider is not assigned to"""
        assigned = exists().where(
            service_providers.c.service_id == Service.id,
            service_providers.c.provider_id == provider_id,
        )
        return (
            db.query(Service)
            .filter(Service.tenant_id == tenant_id, Service.is_active.is_(True), ~assigned)
            .order_by(Service.name, Service.id)
            .all()
        )

    @staticmethod
    def get_active_services_for_tenant(db: Session, tenant_id: int) -> list[Service]:
        return (
            db.query(Service)
            .filter(Service.tenant_id == tenant_id, Service.is_active.is_(True))
            .order_by(Service.name, Service.id)
            .all()
        )

    @staticmethod
    def create_service(db: Session, **service_data) -> Service:
        service = Service(**service_data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        for key, value in updates.items():
            if value is not None and hasattr(service, key):
                setattr(service, key, value)

        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def deactivate_service(db: Session, service: Service) -> Service:
        """Soft delete. Deactivating an inactive service is a no-op."""
        if service.is_active:
            service.is_active = False
            db.commit()
            db.refresh(service)
        return service

    # ------------------------------------------------------------------
    # Assignment. Every write is one INSERT ... SELECT or DELETE statement
    # against the association table; no list is read back and rewritten.
    # ------------------------------------------------------------------

    @staticmethod
    def replace_providers(db: Session, service_id: int, provider_ids: list[int]) -> None:
        """Make provider_ids the exact provider set of the service"""
        removal = delete(service_providers).where(service_providers.c.service_id == service_id)
        if provider_ids:
            removal = removal.where(service_providers.c.provider_id.notin_(provider_ids))
        db.execute(removal)

        if provider_ids:
            already = exists().where(
                service_providers.c.service_id == service_id,
                service_providers.c.provider_id == User.id,
            )
            db.execute(
                insert(service_providers).from_select(
                    ["service_id", "provider_id"],
                    select(literal(service_id, Integer), User.id).where(User.id.in_(provider_ids), ~already),
                )
            )
        db.commit()

    @staticmethod
    def add_services_to_provider(db: Session, provider_id: int, service_ids: list[int]) -> None:
        already = exists().where(
            service_providers.c.service_id == Service.id,
            service_providers.c.provider_id == provider_id,
        )
        db.execute(
            insert(service_providers).from_select(
                ["service_id", "provider_id"],
                select(Service.id, literal(provider_id, Integer)).where(Service.id.in_(service_ids), ~already),
            )
        )
        db.commit()

    @staticmethod
    def remove_services_from_provider(db: Session, provider_id: int, service_ids: list[int]) -> None:
        db.execute(
            delete(service_providers).where(
                service_providers.c.provider_id == provider_id,
                service_providers.c.service_id.in_(service_ids),
            )
        )
        db.commit()

    @staticmethod
    def get_tenant_providers(db: Session, tenant_id: int, provider_ids: list[int]) -> list[User]:
        """Service providers (active or not) of one tenant among the given ids"""
        if not provider_ids:
            return []
        return (
            db.query(User)
            .filter(
                User.tenant_id == tenant_id,
                User.role == ROLE_SERVICE_PROVIDER,
                User.id.in_(provider_ids),
            )
            .all()
        )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    @staticmethod
    def search_services(
        db: Session,
        tenant_id: Optional[int] = None,
        search: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        min_duration: Optional[int] = None,
        max_duration: Optional[int] = None,
    ) -> Query:
        """Active services, best rated first then newest"""
        query = db.query(Service).filter(Service.is_active.is_(True))

        if tenant_id is not None:
            query = query.filter(Service.tenant_id == tenant_id)
        if search:
            search_term = f"%{search.lower()}%"
            query = query.filter(
                (Service.name.ilike(search_term))
                | (Service.description.ilike(search_term))
                | (cast(Service.tags, String).ilike(search_term))
            )
        if category:
            query = query.filter(Service.category == category)
        if min_price is not None:
            query = query.filter(Service.base_price >= min_price)
        if max_price is not None:
            query = query.filter(Service.base_price <= max_price)
        if min_duration is not None:
            query = query.filter(Service.duration >= min_duration)
        if max_duration is not None:
            query = query.filter(Service.duration <= max_duration)

        return query.order_by(Service.rating_average.desc(), Service.created_at.desc(), Service.id.desc())
