"""Principal routers - FastAPI endpoints for /users and /service-providers"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Principal, TenantScope, get_current_principal, get_tenant_scope, require_roles
from ...database import get_db
from ...models import ROLE_ADMIN, ROLE_SERVICE_PROVIDER, ROLE_TENANT
from ...schemas import Envelope, ListEnvelope, MessageResponse, ok, ok_list
from .schemas import (
    AvailabilityUpdate,
    PrincipalCreate,
    PrincipalResponse,
    PrincipalSummary,
    PrincipalUpdate,
    ScheduleResponse,
)
from .service import PrincipalService

logger = logging.getLogger(__name__)

users_router = APIRouter(prefix="/users", tags=["Users"])
providers_router = APIRouter(prefix="/service-providers", tags=["Service Providers"])


def get_principal_service(db: Session = Depends(get_db)) -> PrincipalService:
    """Dependency injection for PrincipalService"""
    return PrincipalService(db)


def schedule_response(schedule: dict) -> ScheduleResponse:
    return ScheduleResponse(
        provider=PrincipalSummary.from_user(schedule["user"]),
        schedule=schedule["schedule"],
        timeOff=schedule["timeOff"],
    )


# ============================================================================
# USERS
# ============================================================================


@users_router.get("", response_model=ListEnvelope[PrincipalResponse])
async def get_users(
    principal: Principal = Depends(require_roles(ROLE_ADMIN, ROLE_TENANT)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: PrincipalService = Depends(get_principal_service),
    role: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    tenant: Optional[int] = Query(None, description="Admin only: restrict to one tenant"),
    name: Optional[str] = Query(None),
):
    users = service.get_principals(principal, scope, role=role, is_active=is_active, tenant_id=tenant, name=name)
    return ok_list([PrincipalResponse.from_user(u) for u in users])


@users_router.get("/{user_id}", response_model=Envelope[PrincipalResponse])
async def get_user(
    user_id: int,
    principal: Principal = Depends(get_current_principal),
    scope: TenantScope = Depends(get_tenant_scope),
    service: PrincipalService = Depends(get_principal_service),
):
    return ok(PrincipalResponse.from_user(service.get_principal(user_id, principal, scope)))


@users_router.post("", response_model=Envelope[PrincipalResponse], status_code=201)
async def create_user(
    data: PrincipalCreate,
    principal: Principal = Depends(require_roles(ROLE_ADMIN, ROLE_TENANT)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: PrincipalService = Depends(get_principal_service),
):
    return ok(PrincipalResponse.from_user(service.create_principal(data, principal, scope)))


@users_router.put("/{user_id}", response_model=Envelope[PrincipalResponse])
async def update_user(
    user_id: int,
    data: PrincipalUpdate,
    principal: Principal = Depends(get_current_principal),
    scope: TenantScope = Depends(get_tenant_scope),
    service: PrincipalService = Depends(get_principal_service),
):
    return ok(PrincipalResponse.from_user(service.update_principal(user_id, data, principal, scope)))


@users_router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    _: Principal = Depends(require_roles(ROLE_ADMIN, ROLE_TENANT)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: PrincipalService = Depends(get_principal_service),
):
    """Soft delete"""
    service.deactivate_principal(user_id, scope)
    return {"success": True, "message": "User deactivated successfully"}


@users_router.put("/{user_id}/availability", response_model=Envelope[PrincipalResponse])
async def update_user_availability(
    user_id: int,
    data: AvailabilityUpdate,
    principal: Principal = Depends(require_roles(ROLE_SERVICE_PROVIDER, ROLE_TENANT)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: PrincipalService = Depends(get_principal_service),
):
    user = service.update_availability(user_id, data, principal, scope)
    return ok(PrincipalResponse.from_user(user), message="Availability updated successfully")


@users_router.get("/{user_id}/schedule", response_model=Envelope[ScheduleResponse])
async def get_user_schedule(
    user_id: int,
    scope: TenantScope = Depends(get_tenant_scope),
    service: PrincipalService = Depends(get_principal_service),
):
    return ok(schedule_response(service.get_schedule(user_id, scope)))


# ============================================================================
# SERVICE PROVIDERS
# ============================================================================


@providers_router.get("", response_model=ListEnvelope[PrincipalResponse])
async def get_service_providers(
    principal: Principal = Depends(get_current_principal),
    scope: TenantScope = Depends(get_tenant_scope),
    service: PrincipalService = Depends(get_principal_service),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    tenant: Optional[int] = Query(None, description="Admin only: restrict to one tenant"),
    name: Optional[str] = Query(None),
    specialization: Optional[str] = Query(None),
):
    """Providers of the caller's tenant, best rated first"""
    providers = service.get_principals(
        principal,
        scope,
        role=ROLE_SERVICE_PROVIDER,
        is_active=is_active,
        tenant_id=tenant,
        name=name,
        specialization=specialization,
    )
    return ok_list([PrincipalResponse.from_user(p) for p in providers])


@providers_router.get("/{provider_id}", response_model=Envelope[PrincipalResponse])
async def get_service_provider(
    provider_id: int,
    principal: Principal = Depends(get_current_principal),
    scope: TenantScope = Depends(get_tenant_scope),
    service: PrincipalService = Depends(get_principal_service),
):
    # Provider profiles are readable by anyone inside the tenant
    provider = service.get_principal(
        provider_id, principal, scope, role=ROLE_SERVICE_PROVIDER, enforce_ownership=False
    )
    return ok(PrincipalResponse.from_user(provider))


@providers_router.post("", response_model=Envelope[PrincipalResponse], status_code=201)
async def create_service_provider(
    data: PrincipalCreate,
    principal: Principal = Depends(require_roles(ROLE_ADMIN, ROLE_TENANT)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: PrincipalService = Depends(get_principal_service),
):
    provider = service.create_principal(data, principal, scope, role=ROLE_SERVICE_PROVIDER)
    return ok(PrincipalResponse.from_user(provider))


@providers_router.put("/{provider_id}", response_model=Envelope[PrincipalResponse])
async def update_service_provider(
    provider_id: int,
    data: PrincipalUpdate,
    principal: Principal = Depends(get_current_principal),
    scope: TenantScope = Depends(get_tenant_scope),
    service: PrincipalService = Depends(get_principal_service),
):
    provider = service.update_principal(provider_id, data, principal, scope, role=ROLE_SERVICE_PROVIDER)
    return ok(PrincipalResponse.from_user(provider))


@providers_router.delete("/{provider_id}", response_model=MessageResponse)
async def delete_service_provider(
    provider_id: int,
    _: Principal = Depends(require_roles(ROLE_ADMIN, ROLE_TENANT)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: PrincipalService = Depends(get_principal_service),
):
    service.deactivate_principal(provider_id, scope, role=ROLE_SERVICE_PROVIDER)
    return {"success": True, "message": "Service provider deactivated successfully"}


@providers_router.put("/{provider_id}/availability", response_model=Envelope[PrincipalResponse])
async def update_service_provider_availability(
    provider_id: int,
    data: AvailabilityUpdate,
    principal: Principal = Depends(require_roles(ROLE_SERVICE_PROVIDER, ROLE_TENANT)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: PrincipalService = Depends(get_principal_service),
):
    provider = service.update_availability(provider_id, data, principal, scope, role=ROLE_SERVICE_PROVIDER)
    return ok(PrincipalResponse.from_user(provider), message="Availability updated successfully")


@providers_router.get("/{provider_id}/schedule", response_model=Envelope[ScheduleResponse])
async def get_service_provider_schedule(
    provider_id: int,
    scope: TenantScope = Depends(get_tenant_scope),
    service: PrincipalService = Depends(get_principal_service),
):
    return ok(schedule_response(service.get_schedule(provider_id, scope, role=ROLE_SERVICE_PROVIDER)))
