"""Tenant service - Business logic for tenant administration"""

import logging

from sqlalchemy.orm import Session

from ...auth import Principal
from ...exceptions import ConflictError, ForbiddenError, NotFoundError
from ...models import ROLE_ADMIN, ROLE_TENANT, Tenant
from ...security_utils import hash_password
from ...utils.sanitization import sanitize_string
from ..identity.repository import IdentityRepository
from .repository import TenantRepository
from .schemas import TenantCreate, TenantData, TenantUpdate

logger = logging.getLogger(__name__)


def tenant_columns(data: TenantData) -> dict:
    """Map registration/creation payload onto Tenant columns"""
    return {
        "name": data.name.strip(),
        "subdomain": data.subdomain,
        "phone": data.phone,
        "business_type": data.business.type,
        "business_description": sanitize_string(data.business.description),
        "business_website": data.business.website,
        "address": data.address.model_dump(mode="json", exclude_none=True) if data.address else None,
        "settings": data.settings.model_dump(mode="json", exclude_none=True),
    }


class TenantService:
    """Service layer for tenant business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TenantRepository()
        self.identity = IdentityRepository()

    def ensure_available(self, email: str, subdomain: str) -> None:
        """Reject duplicate email (any principal) and duplicate subdomain"""
        if self.identity.email_in_use(self.db, email):
            raise ConflictError("An account already exists with this email")
        if self.repo.get_tenant_by_subdomain(self.db, subdomain):
            raise ConflictError("Subdomain is already taken. Please choose another.")

    def create_tenant(
        self, data: TenantData, first_name: str, last_name: str, email: str, password: str
    ) -> Tenant:
        self.ensure_available(email, data.subdomain)
        tenant = self.repo.create_tenant(
            self.db,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=email,
            password_hash=hash_password(password),
            **tenant_columns(data),
        )
        logger.info(f"🏢 Tenant created: {tenant.subdomain} (id={tenant.id})")
        return tenant

    def create_from_admin(self, data: TenantCreate) -> Tenant:
        return self.create_tenant(data, data.firstName, data.lastName, data.email, data.password)

    def get_tenants(self) -> list[Tenant]:
        return self.repo.get_tenants(self.db)

    def get_tenant(self, tenant_id: int, principal: Principal) -> Tenant:
        """Admins see every tenant, everyone else only their own"""
        tenant = self.repo.get_tenant_by_id(self.db, tenant_id)
        if not tenant or (principal.role != ROLE_ADMIN and principal.tenant_id != tenant.id):
            raise NotFoundError("Tenant not found")
        return tenant

    def update_tenant(self, tenant_id: int, data: TenantUpdate, principal: Principal) -> Tenant:
        tenant = self.get_tenant(tenant_id, principal)
        if principal.role not in (ROLE_ADMIN, ROLE_TENANT):
            raise ForbiddenError("Not authorized to update this tenant")

        updates = {}
        if data.firstName is not None:
            updates["first_name"] = data.firstName.strip()
        if data.lastName is not None:
            updates["last_name"] = data.lastName.strip()
        if data.name is not None:
            updates["name"] = data.name.strip()
        if data.phone is not None:
            updates["phone"] = data.phone
        if data.avatarUrl is not None:
            updates["avatar_url"] = data.avatarUrl
        if data.business is not None:
            updates["business_type"] = data.business.type
            updates["business_description"] = sanitize_string(data.business.description)
            updates["business_website"] = data.business.website
        if data.address is not None:
            updates["address"] = data.address.model_dump(mode="json", exclude_none=True)
        if data.settings is not None:
            updates["settings"] = data.settings.model_dump(mode="json", exclude_none=True)
        if data.subscription is not None:
            # Subscription changes are an administrative action
            if principal.role != ROLE_ADMIN:
                raise ForbiddenError("Only administrators can change subscriptions")
            updates["subscription_plan"] = data.subscription.plan
            updates["subscription_status"] = data.subscription.status
            updates["subscription_start_date"] = data.subscription.startDate
            updates["subscription_end_date"] = data.subscription.endDate

        return self.repo.update_tenant(self.db, tenant, **updates)

    def deactivate_tenant(self, tenant_id: int) -> Tenant:
        tenant = self.repo.get_tenant_by_id(self.db, tenant_id)
        if not tenant:
            raise NotFoundError("Tenant not found")
        tenant = self.repo.deactivate_tenant(self.db, tenant)
        logger.info(f"🏢 Tenant deactivated: {tenant.subdomain} (id={tenant.id})")
        return tenant

    def get_stats(self, principal: Principal) -> dict:
        return self.repo.get_tenant_stats(self.db, principal.id)
