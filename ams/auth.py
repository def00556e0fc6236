"""
Identity resolution and the authorization gate.

Every protected endpoint goes through get_current_principal, which turns a
bearer token into a Principal. Tenant isolation is expressed as a TenantScope
that repositories apply to every query before any other predicate.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Query, Session

from .database import get_db
from .exceptions import (
    DeactivatedError,
    ForbiddenError,
    InvalidTokenError,
    NoTenantContextError,
    PrincipalNotFoundError,
)
from .models import ROLE_ADMIN, ROLE_TENANT, USER_ROLES, Tenant, User
from .security_utils import decode_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """An authenticated actor. tenant_id is the tenant's own id for tenant owners, None for admin."""

    id: int
    role: str
    tenant_id: Optional[int]
    email: str
    record: Union[Tenant, User]

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


@dataclass(frozen=True)
class TenantScope:
    """Mandatory tenant filter for a request. Admins are unscoped."""

    tenant_id: Optional[int]
    unscoped: bool = False

    def apply(self, query: Query, column: Any) -> Query:
        if self.unscoped:
            return query
        return query.filter(column == self.tenant_id)

    def allows(self, tenant_id: Optional[int]) -> bool:
        return self.unscoped or tenant_id == self.tenant_id


UNSCOPED = TenantScope(tenant_id=None, unscoped=True)


def principal_from_record(record: Union[Tenant, User]) -> Principal:
    if isinstance(record, Tenant):
        return Principal(id=record.id, role=ROLE_TENANT, tenant_id=record.id, email=record.email, record=record)
    return Principal(id=record.id, role=record.role, tenant_id=record.tenant_id, email=record.email, record=record)


def resolve_principal(db: Session, token: str) -> Principal:
    """
    Resolve a bearer token to an active principal.

    The role claim selects the store directly: tenant owners live in the tenants
    table, every other role in the users table.
    """
    payload = decode_access_token(token)
    principal_id = payload["id"]
    role = payload["role"]

    if role == ROLE_TENANT:
        record = db.query(Tenant).filter(Tenant.id == principal_id).first()
    elif role in USER_ROLES:
        record = db.query(User).filter(User.id == principal_id, User.role == role).first()
    else:
        logger.warning(f"⚠️ Token carries unknown role: {role}")
        raise InvalidTokenError("Invalid token claims")

    if not record:
        raise PrincipalNotFoundError()

    if record.is_active is False:
        raise DeactivatedError("User account is deactivated")

    principal = principal_from_record(record)

    if principal.tenant_id != payload.get("tenant"):
        logger.warning(f"⚠️ Tenant claim mismatch for {role} {principal_id}")
        raise InvalidTokenError("Invalid token claims")

    # Providers and customers are locked out when their tenant is deactivated
    if isinstance(record, User) and role != ROLE_ADMIN:
        if record.tenant is not None and record.tenant.is_active is False:
            raise DeactivatedError("Tenant account is inactive")

    return principal


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Principal:
    if not credentials or not credentials.credentials:
        raise InvalidTokenError()

    principal = resolve_principal(db, credentials.credentials)
    logger.debug(f"✅ Principal authenticated: {principal.role} {principal.id}")
    return principal


async def get_optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[Principal]:
    """Principal for public endpoints that narrow results when a caller is known"""
    if not credentials or not credentials.credentials:
        return None
    try:
        return resolve_principal(db, credentials.credentials)
    except (InvalidTokenError, PrincipalNotFoundError, DeactivatedError) as e:
        logger.info(f"ℹ️ Ignoring unusable credentials on public endpoint: {e.message}")
        return None


def require_roles(*roles: str) -> Callable:
    """
    Create a dependency that only admits the given roles.

    Example usage:
        @router.post("", dependencies=[Depends(require_roles("tenant"))])
    """

    async def role_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        ensure_role(principal, *roles)
        return principal

    return role_checker


def ensure_role(principal: Principal, *roles: str) -> None:
    if principal.role not in roles:
        logger.warning(f"⚠️ Role {principal.role} denied; requires one of {roles}")
        raise ForbiddenError(f"User role {principal.role} is not authorized to access this route")


def resolve_tenant_scope(principal: Principal) -> TenantScope:
    if principal.role == ROLE_ADMIN:
        return UNSCOPED
    if principal.role == ROLE_TENANT:
        return TenantScope(tenant_id=principal.id)
    if principal.tenant_id is None:
        raise NoTenantContextError()
    return TenantScope(tenant_id=principal.tenant_id)


async def get_tenant_scope(principal: Principal = Depends(get_current_principal)) -> TenantScope:
    return resolve_tenant_scope(principal)


def check_ownership(principal: Principal, *owner_ids: Optional[int]) -> None:
    """Admins and tenant owners pass; everyone else must be one of the owners."""
    if principal.role in (ROLE_ADMIN, ROLE_TENANT):
        return
    if principal.id in owner_ids:
        return
    logger.warning(f"⚠️ {principal.role} {principal.id} denied access to resource owned by {owner_ids}")
    raise ForbiddenError("Not authorized to access this resource")
