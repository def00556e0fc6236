"""Identity service - registration, credentials and password recovery"""

import logging
from typing import Optional, Union

from sqlalchemy.orm import Session

from ...auth import Principal, principal_from_record
from ...config import IS_PRODUCTION
from ...exceptions import AuthError, ConflictError, DeactivatedError, NotFoundError, ValidationError
from ...models import ROLE_ADMIN, ROLE_TENANT, Tenant, User
from ...security_utils import (
    create_access_token,
    generate_reset_token,
    hash_password,
    verify_password,
    verify_reset_token,
)
from ..principals.repository import PrincipalRepository
from ..principals.schemas import PrincipalCreate, PrincipalUpdate
from ..principals.service import PrincipalService, principal_columns
from ..tenants.repository import TenantRepository
from ..tenants.service import TenantService
from .repository import IdentityRepository
from .schemas import ProfileUpdateRequest, RegisterRequest

logger = logging.getLogger(__name__)


def issue_token(principal: Principal) -> str:
    return create_access_token(principal.id, principal.role, principal.tenant_id)


class IdentityService:
    """Service layer for authentication flows"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = IdentityRepository()
        self.tenants = TenantRepository()
        self.principals = PrincipalRepository()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, data: RegisterRequest) -> tuple[Union[Tenant, User], Optional[str]]:
        """
        Register a tenant owner, a service provider or a customer.

        Returns the created record and a token. Tenant owners get no token;
        they log in once registration is complete.
        """
        if data.role == ROLE_ADMIN:
            raise ValidationError("Administrators cannot self-register")

        if data.role == ROLE_TENANT:
            if data.tenantData is None:
                raise ValidationError("tenantData is required to register a tenant")
            tenant = TenantService(self.db).create_tenant(
                data.tenantData, data.firstName, data.lastName, data.email, data.password
            )
            logger.info(f"✅ Tenant registered: {tenant.email}")
            return tenant, None

        tenant = self._resolve_registration_tenant(data)
        if self.repo.email_in_use(self.db, data.email):
            raise ConflictError("User already exists with this email")

        create = PrincipalCreate(
            firstName=data.firstName,
            lastName=data.lastName,
            email=data.email,
            password=data.password,
            role=data.role,
            phone=data.phone,
            profile=data.profile,
            availability=data.availability,
            address=data.address,
            preferences=data.preferences,
        )
        user = self.principals.create_principal(self.db, **principal_columns(create, tenant.id))
        logger.info(f"✅ {user.role} registered: {user.email} (tenant={tenant.id})")
        return user, issue_token(principal_from_record(user))

    def _resolve_registration_tenant(self, data: RegisterRequest) -> Tenant:
        if data.tenantId is not None:
            tenant = self.tenants.get_tenant_by_id(self.db, data.tenantId)
        elif data.subdomain:
            tenant = self.tenants.get_tenant_by_subdomain(self.db, data.subdomain)
        else:
            raise ValidationError("tenantId or subdomain is required for this role")

        if not tenant:
            raise NotFoundError("Tenant not found")
        if not tenant.is_active:
            raise ValidationError("Tenant account is inactive")
        return tenant

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> tuple[Union[Tenant, User], str]:
        record = self.repo.find_by_email(self.db, email)
        if not record or not verify_password(password, record.password_hash):
            logger.warning(f"⚠️ Failed login attempt for {email}")
            raise AuthError("Invalid credentials")

        if not record.is_active:
            raise DeactivatedError("User account is deactivated")
        if isinstance(record, User) and record.tenant is not None and not record.tenant.is_active:
            raise DeactivatedError("Tenant account is inactive")

        self.repo.touch_last_login(self.db, record)
        principal = principal_from_record(record)
        logger.info(f"🔐 Login: {principal.role} {principal.id}")
        return record, issue_token(principal)

    def update_profile(self, principal: Principal, data: ProfileUpdateRequest) -> Union[Tenant, User]:
        record = principal.record
        if isinstance(record, Tenant):
            updates = {}
            if data.firstName is not None:
                updates["first_name"] = data.firstName.strip()
            if data.lastName is not None:
                updates["last_name"] = data.lastName.strip()
            if data.phone is not None:
                updates["phone"] = data.phone
            if data.profile is not None and data.profile.avatar is not None:
                updates["avatar_url"] = data.profile.avatar
            if data.address is not None:
                updates["address"] = data.address.model_dump(mode="json", exclude_none=True)
            return self.tenants.update_tenant(self.db, record, **updates)

        return PrincipalService(self.db).apply_update(record, PrincipalUpdate(**data.model_dump(exclude_unset=True)))

    def update_password(self, principal: Principal, current_password: str, new_password: str) -> str:
        record = principal.record
        if not verify_password(current_password, record.password_hash):
            raise AuthError("Current password is incorrect")

        record.password_hash = hash_password(new_password)
        self.repo.save(self.db, record)
        logger.info(f"🔑 Password updated for {principal.role} {principal.id}")
        return issue_token(principal)

    # ------------------------------------------------------------------
    # Password recovery
    # ------------------------------------------------------------------

    def forgot_password(self, email: str) -> Optional[str]:
        """
        Issue a reset token for a known email.

        Delivery happens elsewhere; the token is only handed back to the
        caller outside production.
        """
        record = self.repo.find_by_email(self.db, email)
        if not record:
            raise NotFoundError("There is no user with that email")

        role = ROLE_TENANT if isinstance(record, Tenant) else record.role
        token = generate_reset_token(record.id, role)
        record.password_reset_token = token
        self.repo.save(self.db, record)
        logger.info(f"📧 Password reset requested for {role} {record.id}")
        return None if IS_PRODUCTION else token

    def reset_password(self, token: str, new_password: str) -> Union[Tenant, User]:
        payload = verify_reset_token(token)
        if not payload:
            raise ValidationError("Invalid or expired reset token")

        record = self.repo.get_record(self.db, payload.get("role"), payload.get("id"))
        # Tokens are single use: the stored copy is cleared on success
        if not record or record.password_reset_token != token:
            raise ValidationError("Invalid or expired reset token")

        record.password_hash = hash_password(new_password)
        record.password_reset_token = None
        self.repo.save(self.db, record)
        logger.info(f"🔑 Password reset completed for {payload.get('role')} {record.id}")
        return record
