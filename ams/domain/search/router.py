"""Search router - public discovery endpoints"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Principal, get_optional_principal
from ...database import get_db
from ...schemas import ListEnvelope, ok_list
from ..catalog.schemas import ServiceResponse
from ..principals.schemas import PrincipalResponse
from ..tenants.schemas import TenantSummary
from .service import SearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["Search"])


def get_search_service(db: Session = Depends(get_db)) -> SearchService:
    """Dependency injection for SearchService"""
    return SearchService(db)


@router.get("/services", response_model=ListEnvelope[ServiceResponse])
async def search_services(
    query: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    duration: Optional[str] = Query(None, description="Duration range in minutes, e.g. 30-90"),
    tenant: Optional[int] = Query(None),
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: SearchService = Depends(get_search_service),
):
    services = service.search_services(principal, query, category, min_price, max_price, duration, tenant)
    return ok_list([ServiceResponse.from_service(s) for s in services])


@router.get("/providers", response_model=ListEnvelope[PrincipalResponse])
async def search_providers(
    query: Optional[str] = Query(None),
    specialization: Optional[str] = Query(None),
    min_rating: Optional[float] = Query(None, alias="minRating"),
    experience: Optional[int] = Query(None),
    tenant: Optional[int] = Query(None),
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: SearchService = Depends(get_search_service),
):
    providers = service.search_providers(principal, query, specialization, min_rating, experience, tenant)
    return ok_list([PrincipalResponse.from_user(p) for p in providers])


@router.get("/providers/nearby", response_model=ListEnvelope[PrincipalResponse])
async def search_nearby_providers(
    latitude: Optional[float] = Query(None),
    longitude: Optional[float] = Query(None),
    radius: Optional[float] = Query(None, gt=0, description="Radius in kilometres"),
    specialization: Optional[str] = Query(None),
    tenant: Optional[int] = Query(None),
    principal: Optional[Principal] = Depends(get_optional_principal),
    service: SearchService = Depends(get_search_service),
):
    nearby = service.search_nearby_providers(principal, latitude, longitude, radius, specialization, tenant)
    return ok_list([PrincipalResponse.from_user(p, distance_km=d) for p, d in nearby])


@router.get("/tenants", response_model=ListEnvelope[TenantSummary])
async def search_tenants(
    query: Optional[str] = Query(None),
    business_type: Optional[str] = Query(None, alias="businessType"),
    location: Optional[str] = Query(None),
    service: SearchService = Depends(get_search_service),
):
    tenants = service.search_tenants(query, business_type, location)
    return ok_list([TenantSummary.from_tenant(t) for t in tenants])
