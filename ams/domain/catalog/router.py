"""Catalog router - FastAPI endpoints for services"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Principal, TenantScope, get_current_principal, get_tenant_scope, require_roles
from ...database import get_db
from ...models import ROLE_SERVICE_PROVIDER, ROLE_TENANT
from ...schemas import Envelope, ListEnvelope, MessageResponse, ok, ok_list
from ..principals.schemas import PrincipalSummary
from .schemas import (
    AssignProviderRequest,
    AssignProvidersRequest,
    ProviderSlots,
    ServiceAvailabilityResponse,
    ServiceCreate,
    ServiceIdsRequest,
    ServiceResponse,
    ServiceSummary,
    ServiceUpdate,
)
from .service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["Services"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


def service_list(services) -> dict:
    return ok_list([ServiceResponse.from_service(s) for s in services])


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=ListEnvelope[ServiceResponse])
async def get_services(
    scope: TenantScope = Depends(get_tenant_scope),
    service: CatalogService = Depends(get_catalog_service),
    category: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None, alias="isActive"),
):
    return service_list(service.get_services(scope, category, is_active))


@router.post("", response_model=Envelope[ServiceResponse], status_code=201)
async def create_service(
    data: ServiceCreate,
    _: Principal = Depends(require_roles(ROLE_TENANT)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: CatalogService = Depends(get_catalog_service),
):
    return ok(ServiceResponse.from_service(service.create_service(data, scope)))


# ============================================================================
# PROVIDER SELF-SERVICE
# ============================================================================


@router.get("/available", response_model=ListEnvelope[ServiceResponse])
async def get_available_services(
    principal: Principal = Depends(require_roles(ROLE_SERVICE_PROVIDER)),
    service: CatalogService = Depends(get_catalog_service),
):
    """Active services of the caller's tenant they have not selected yet"""
    return service_list(service.get_available_services(principal))


@router.post("/select", response_model=ListEnvelope[ServiceResponse])
async def select_services(
    data: ServiceIdsRequest,
    principal: Principal = Depends(require_roles(ROLE_SERVICE_PROVIDER)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service_list(service.select_services(principal, data.serviceIds))


@router.post("/unselect", response_model=ListEnvelope[ServiceResponse])
async def unselect_services(
    data: ServiceIdsRequest,
    principal: Principal = Depends(require_roles(ROLE_SERVICE_PROVIDER)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service_list(service.unselect_services(principal, data.serviceIds))


@router.post("/assign_provider", response_model=Envelope[ServiceResponse])
async def assign_provider(
    data: AssignProviderRequest,
    principal: Principal = Depends(require_roles(ROLE_SERVICE_PROVIDER)),
    service: CatalogService = Depends(get_catalog_service),
):
    return ok(ServiceResponse.from_service(service.assign_provider(principal, data.serviceId)))


# ============================================================================
# LOOKUPS
# ============================================================================


@router.get("/providers/{provider_id}", response_model=ListEnvelope[ServiceResponse])
async def get_provider_services(
    provider_id: int,
    scope: TenantScope = Depends(get_tenant_scope),
    service: CatalogService = Depends(get_catalog_service),
):
    return service_list(service.get_provider_services(provider_id, scope))


@router.get("/tenant/{tenant_id}", response_model=ListEnvelope[ServiceResponse])
async def get_tenant_services(
    tenant_id: int,
    principal: Principal = Depends(get_current_principal),
    scope: TenantScope = Depends(get_tenant_scope),
    service: CatalogService = Depends(get_catalog_service),
):
    return service_list(service.get_tenant_services(tenant_id, principal, scope))


@router.get("/{service_id}", response_model=Envelope[ServiceResponse])
async def get_service(
    service_id: int,
    scope: TenantScope = Depends(get_tenant_scope),
    service: CatalogService = Depends(get_catalog_service),
):
    return ok(ServiceResponse.from_service(service.get_service(service_id, scope)))


@router.put("/{service_id}", response_model=Envelope[ServiceResponse])
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    _: Principal = Depends(require_roles(ROLE_TENANT)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: CatalogService = Depends(get_catalog_service),
):
    return ok(ServiceResponse.from_service(service.update_service(service_id, data, scope)))


@router.delete("/{service_id}", response_model=MessageResponse)
async def delete_service(
    service_id: int,
    _: Principal = Depends(require_roles(ROLE_TENANT)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: CatalogService = Depends(get_catalog_service),
):
    """Soft delete"""
    service.deactivate_service(service_id, scope)
    return {"success": True, "message": "Service deactivated successfully"}


@router.put("/{service_id}/providers", response_model=Envelope[ServiceResponse])
async def assign_providers(
    service_id: int,
    data: AssignProvidersRequest,
    _: Principal = Depends(require_roles(ROLE_TENANT)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: CatalogService = Depends(get_catalog_service),
):
    updated = service.assign_providers(service_id, data.providerIds, scope)
    return ok(ServiceResponse.from_service(updated), message="Providers assigned successfully")


@router.get("/{service_id}/availability", response_model=Envelope[ServiceAvailabilityResponse])
async def get_service_availability(
    service_id: int,
    day: Optional[date] = Query(None, alias="date"),
    scope: TenantScope = Depends(get_tenant_scope),
    service: CatalogService = Depends(get_catalog_service),
):
    svc, providers = service.get_service_availability(service_id, scope, day)
    return ok(
        ServiceAvailabilityResponse(
            service=ServiceSummary.from_service(svc),
            date=day.isoformat() if day else None,
            providers=[
                ProviderSlots(provider=PrincipalSummary.from_user(p), availableSlots=slots) for p, slots in providers
            ],
        )
    )
