"""Principal service - Business logic for users and service providers"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import Principal, TenantScope, check_ownership
from ...exceptions import ConflictError, NotFoundError, ValidationError
from ...models import ROLE_ADMIN, User
from ...security_utils import hash_password
from ...utils.sanitization import sanitize_string
from ..identity.repository import IdentityRepository
from ..tenants.repository import TenantRepository
from .repository import PrincipalRepository
from .schemas import Availability, AvailabilityUpdate, PrincipalCreate, PrincipalUpdate, ProfileInput

logger = logging.getLogger(__name__)


def profile_columns(profile: Optional[ProfileInput]) -> dict:
    if profile is None:
        return {}
    columns = {
        "avatar_url": profile.avatar,
        "bio": sanitize_string(profile.bio),
        "experience": profile.experience,
    }
    if profile.specializations is not None:
        columns["specializations"] = [s.strip() for s in profile.specializations if s.strip()]
    return columns


def availability_document(availability: Optional[Availability]) -> Optional[dict]:
    if availability is None:
        return None
    return availability.model_dump(mode="json")


def principal_columns(data: PrincipalCreate, tenant_id: int) -> dict:
    """Map a create/registration payload onto User columns"""
    return {
        "tenant_id": tenant_id,
        "role": data.role,
        "first_name": data.firstName.strip(),
        "last_name": data.lastName.strip(),
        "email": data.email,
        "password_hash": hash_password(data.password),
        "phone": data.phone,
        "specializations": [],
        "availability": availability_document(data.availability),
        "address": data.address.model_dump(mode="json", exclude_none=True) if data.address else None,
        "preferences": data.preferences.model_dump(mode="json") if data.preferences else None,
        **profile_columns(data.profile),
    }


class PrincipalService:
    """Service layer for principal business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PrincipalRepository()
        self.identity = IdentityRepository()
        self.tenants = TenantRepository()

    def get_principals(
        self,
        principal: Principal,
        scope: TenantScope,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        tenant_id: Optional[int] = None,
        name: Optional[str] = None,
        specialization: Optional[str] = None,
    ) -> list[User]:
        # Admins may narrow their unscoped view to one tenant
        if principal.role == ROLE_ADMIN and tenant_id is not None:
            scope = TenantScope(tenant_id=tenant_id)
        return self.repo.get_principals(self.db, scope, role, is_active, name, specialization)

    def get_principal(
        self,
        principal_id: int,
        principal: Principal,
        scope: TenantScope,
        role: Optional[str] = None,
        enforce_ownership: bool = True,
    ) -> User:
        user = self.repo.get_principal(self.db, scope, principal_id, role)
        if not user:
            raise NotFoundError("User not found" if role is None else "Service provider not found")
        if enforce_ownership:
            check_ownership(principal, user.id)
        return user

    def create_principal(
        self, data: PrincipalCreate, principal: Principal, scope: TenantScope, role: Optional[str] = None
    ) -> User:
        if role is not None:
            data = data.model_copy(update={"role": role})

        if principal.role == ROLE_ADMIN:
            if data.tenantId is None:
                raise ValidationError("tenantId is required when an administrator creates a user")
            tenant = self.tenants.get_tenant_by_id(self.db, data.tenantId)
            if not tenant:
                raise NotFoundError("Tenant not found")
            tenant_id = tenant.id
        else:
            tenant_id = scope.tenant_id

        if self.identity.email_in_use(self.db, data.email):
            raise ConflictError("User already exists with this email")

        user = self.repo.create_principal(self.db, **principal_columns(data, tenant_id))
        logger.info(f"👤 {user.role} created: id={user.id} tenant={tenant_id}")
        return user

    def update_principal(
        self,
        principal_id: int,
        data: PrincipalUpdate,
        principal: Principal,
        scope: TenantScope,
        role: Optional[str] = None,
    ) -> User:
        user = self.get_principal(principal_id, principal, scope, role)
        return self.apply_update(user, data)

    def apply_update(self, user: User, data: PrincipalUpdate) -> User:
        updates = {}
        if data.firstName is not None:
            updates["first_name"] = data.firstName.strip()
        if data.lastName is not None:
            updates["last_name"] = data.lastName.strip()
        if data.phone is not None:
            updates["phone"] = data.phone
        if data.address is not None:
            updates["address"] = data.address.model_dump(mode="json", exclude_none=True)
        if data.preferences is not None:
            updates["preferences"] = data.preferences.model_dump(mode="json")
        updates.update(profile_columns(data.profile))

        return self.repo.update_principal(self.db, user, **updates)

    def deactivate_principal(
        self, principal_id: int, scope: TenantScope, role: Optional[str] = None
    ) -> User:
        user = self.repo.get_principal(self.db, scope, principal_id, role)
        if not user:
            raise NotFoundError("User not found" if role is None else "Service provider not found")
        user = self.repo.deactivate_principal(self.db, user)
        logger.info(f"👤 {user.role} deactivated: id={user.id}")
        return user

    def update_availability(
        self,
        principal_id: int,
        data: AvailabilityUpdate,
        principal: Principal,
        scope: TenantScope,
        role: Optional[str] = None,
    ) -> User:
        user = self.get_principal(principal_id, principal, scope, role)
        return self.repo.update_principal(
            self.db, user, availability=availability_document(data.availability)
        )

    def get_schedule(self, principal_id: int, scope: TenantScope, role: Optional[str] = None) -> dict:
        user = self.repo.get_principal(self.db, scope, principal_id, role)
        if not user:
            raise NotFoundError("Provider not found")
        availability = user.availability or {}
        return {
            "user": user,
            "schedule": availability.get("schedule") or {},
            "timeOff": availability.get("timeOff") or [],
        }
