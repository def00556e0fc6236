"""Tenant router - FastAPI endpoints for tenant administration"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import Principal, get_current_principal, require_roles
from ...database import get_db
from ...models import ROLE_ADMIN, ROLE_TENANT
from ...schemas import Envelope, ListEnvelope, MessageResponse, ok, ok_list
from .schemas import TenantCreate, TenantResponse, TenantStats, TenantUpdate
from .service import TenantService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tenants", tags=["Tenants"])


def get_tenant_service(db: Session = Depends(get_db)) -> TenantService:
    """Dependency injection for TenantService"""
    return TenantService(db)


@router.get("", response_model=ListEnvelope[TenantResponse])
async def get_tenants(
    _: Principal = Depends(require_roles(ROLE_ADMIN)),
    service: TenantService = Depends(get_tenant_service),
):
    """Get all tenants (admin only)"""
    return ok_list([TenantResponse.from_tenant(t) for t in service.get_tenants()])


@router.get("/me/stats", response_model=Envelope[TenantStats])
async def get_tenant_stats(
    principal: Principal = Depends(require_roles(ROLE_TENANT)),
    service: TenantService = Depends(get_tenant_service),
):
    """Booking, revenue and staff statistics for the calling tenant"""
    return ok(TenantStats(**service.get_stats(principal)))


@router.get("/{tenant_id}", response_model=Envelope[TenantResponse])
async def get_tenant(
    tenant_id: int,
    principal: Principal = Depends(get_current_principal),
    service: TenantService = Depends(get_tenant_service),
):
    return ok(TenantResponse.from_tenant(service.get_tenant(tenant_id, principal)))


@router.post("", response_model=Envelope[TenantResponse], status_code=201)
async def create_tenant(
    data: TenantCreate,
    _: Principal = Depends(require_roles(ROLE_ADMIN)),
    service: TenantService = Depends(get_tenant_service),
):
    """Create a tenant directly (admin only)"""
    return ok(TenantResponse.from_tenant(service.create_from_admin(data)))


@router.put("/{tenant_id}", response_model=Envelope[TenantResponse])
async def update_tenant(
    tenant_id: int,
    data: TenantUpdate,
    principal: Principal = Depends(get_current_principal),
    service: TenantService = Depends(get_tenant_service),
):
    """Update a tenant (admin or the tenant owner)"""
    return ok(TenantResponse.from_tenant(service.update_tenant(tenant_id, data, principal)))


@router.delete("/{tenant_id}", response_model=MessageResponse)
async def delete_tenant(
    tenant_id: int,
    _: Principal = Depends(require_roles(ROLE_ADMIN)),
    service: TenantService = Depends(get_tenant_service),
):
    """Soft delete - the tenant is deactivated, never removed"""
    service.deactivate_tenant(tenant_id)
    return {"success": True, "message": "Tenant deactivated successfully"}
