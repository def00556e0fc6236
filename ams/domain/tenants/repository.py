"""Tenant repository - Database operations for tenants"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import ROLE_CUSTOMER, ROLE_SERVICE_PROVIDER, Booking, Service, Tenant, User


class TenantRepository:
    """Repository for tenant database operations"""

    @staticmethod
    def get_tenants(db: Session) -> list[Tenant]:
        return db.query(Tenant).order_by(Tenant.created_at.desc(), Tenant.id.desc()).all()

    @staticmethod
    def get_tenant_by_id(db: Session, tenant_id: int) -> Optional[Tenant]:
        return db.query(Tenant).filter(Tenant.id == tenant_id).first()

    @staticmethod
    def get_tenant_by_email(db: Session, email: str) -> Optional[Tenant]:
        return db.query(Tenant).filter(func.lower(Tenant.email) == email.lower()).first()

    @staticmethod
    def get_tenant_by_subdomain(db: Session, subdomain: str) -> Optional[Tenant]:
        return db.query(Tenant).filter(Tenant.subdomain == subdomain.lower()).first()

    @staticmethod
    def create_tenant(db: Session, **tenant_data) -> Tenant:
        tenant = Tenant(**tenant_data)
        db.add(tenant)
        db.commit()
        db.refresh(tenant)
        return tenant

    @staticmethod
    def update_tenant(db: Session, tenant: Tenant, **updates) -> Tenant:
        for key, value in updates.items():
            if value is not None and hasattr(tenant, key):
                setattr(tenant, key, value)

        db.commit()
        db.refresh(tenant)
        return tenant

    @staticmethod
    def deactivate_tenant(db: Session, tenant: Tenant) -> Tenant:
        """Soft delete. Deactivating an inactive tenant is a no-op."""
        if tenant.is_active:
            tenant.is_active = False
            db.commit()
            db.refresh(tenant)
        return tenant

    @staticmethod
    def search_tenants(
        db: Session,
        search: Optional[str] = None,
        business_type: Optional[str] = None,
    ) -> list[Tenant]:
        """Active tenants matching a text query and business type, newest first"""
        query = db.query(Tenant).filter(Tenant.is_active.is_(True))

        if search:
            search_term = f"%{search.lower()}%"
            query = query.filter(
                (Tenant.name.ilike(search_term))
                | (Tenant.business_description.ilike(search_term))
                | (Tenant.subdomain.ilike(search_term))
            )

        if business_type:
            query = query.filter(Tenant.business_type == business_type)

        return query.order_by(Tenant.created_at.desc(), Tenant.id.desc()).all()

    @staticmethod
    def get_tenant_stats(db: Session, tenant_id: int) -> dict:
        total_services = (
            db.query(func.count(Service.id)).filter(Service.tenant_id == tenant_id).scalar()
        )
        active_services = (
            db.query(func.count(Service.id))
            .filter(Service.tenant_id == tenant_id, Service.is_active.is_(True))
            .scalar()
        )

        status_rows = (
            db.query(Booking.status, func.count(Booking.id))
            .filter(Booking.tenant_id == tenant_id)
            .group_by(Booking.status)
            .all()
        )
        bookings_by_status = {status: count for status, count in status_rows}

        # finalPrice lives inside the JSON snapshot, so revenue is summed in Python
        completed = (
            db.query(Booking.pricing)
            .filter(Booking.tenant_id == tenant_id, Booking.status == "completed")
            .all()
        )
        total_revenue = sum(float((pricing or {}).get("finalPrice") or 0) for (pricing,) in completed)

        active_providers = (
            db.query(func.count(User.id))
            .filter(
                User.tenant_id == tenant_id,
                User.role == ROLE_SERVICE_PROVIDER,
                User.is_active.is_(True),
            )
            .scalar()
        )
        total_customers = (
            db.query(func.count(User.id))
            .filter(User.tenant_id == tenant_id, User.role == ROLE_CUSTOMER)
            .scalar()
        )

        return {
            "totalServices": total_services,
            "activeServices": active_services,
            "totalBookings": sum(bookings_by_status.values()),
            "bookingsByStatus": bookings_by_status,
            "totalRevenue": round(total_revenue, 2),
            "activeProviders": active_providers,
            "totalCustomers": total_customers,
        }
