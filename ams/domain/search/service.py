"""Search service - public discovery of services, providers and tenants"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import Principal
from ...config import DEFAULT_SEARCH_RADIUS_KM, SEARCH_RESULT_LIMIT
from ...exceptions import ValidationError
from ...models import ROLE_ADMIN, Service, Tenant, User
from ..catalog.repository import CatalogRepository
from ..principals.repository import PrincipalRepository
from ..tenants.repository import TenantRepository
from .geo import address_coordinates, haversine_km

logger = logging.getLogger(__name__)


def parse_duration_range(duration: Optional[str]) -> tuple[Optional[int], Optional[int]]:
    """'30-90' -> (30, 90). An empty value means no duration filter."""
    if not duration:
        return None, None
    parts = [p.strip() for p in duration.split("-")]
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValidationError("duration must look like 'min-max' in minutes")
    return int(parts[0]), int(parts[1])


def search_tenant_id(principal: Optional[Principal], tenant: Optional[int]) -> Optional[int]:
    """An explicit tenant parameter wins over the caller's own tenant"""
    if tenant is not None:
        return tenant
    if principal is None or principal.role == ROLE_ADMIN:
        return None
    return principal.tenant_id


class SearchService:
    """Service layer for search. Only active records are ever returned."""

    def __init__(self, db: Session, limit: int = SEARCH_RESULT_LIMIT):
        self.db = db
        self.limit = limit
        self.catalog = CatalogRepository()
        self.principals = PrincipalRepository()
        self.tenants = TenantRepository()

    def search_services(
        self,
        principal: Optional[Principal],
        query: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        duration: Optional[str] = None,
        tenant: Optional[int] = None,
    ) -> list[Service]:
        min_duration, max_duration = parse_duration_range(duration)
        results = self.catalog.search_services(
            self.db,
            tenant_id=search_tenant_id(principal, tenant),
            search=query,
            category=category,
            min_price=min_price,
            max_price=max_price,
            min_duration=min_duration,
            max_duration=max_duration,
        )
        return results.limit(self.limit).all()

    def search_providers(
        self,
        principal: Optional[Principal],
        query: Optional[str] = None,
        specialization: Optional[str] = None,
        min_rating: Optional[float] = None,
        experience: Optional[int] = None,
        tenant: Optional[int] = None,
    ) -> list[User]:
        results = self.principals.search_providers(
            self.db,
            tenant_id=search_tenant_id(principal, tenant),
            search=query,
            specialization=specialization,
            min_rating=min_rating,
            experience=experience,
        )
        return results.limit(self.limit).all()

    def search_nearby_providers(
        self,
        principal: Optional[Principal],
        latitude: Optional[float],
        longitude: Optional[float],
        radius_km: Optional[float] = None,
        specialization: Optional[str] = None,
        tenant: Optional[int] = None,
    ) -> list[tuple[User, float]]:
        """Providers within radius_km of a point, best rated first, with their distance"""
        if latitude is None or longitude is None:
            raise ValidationError("Latitude and longitude are required")
        radius = radius_km if radius_km is not None else DEFAULT_SEARCH_RADIUS_KM

        candidates = self.principals.search_providers(
            self.db,
            tenant_id=search_tenant_id(principal, tenant),
            specialization=specialization,
        ).all()

        nearby = []
        for provider in candidates:
            point = address_coordinates(provider.address)
            if point is None:
                continue
            distance = haversine_km(latitude, longitude, point[0], point[1])
            if distance <= radius:
                nearby.append((provider, distance))

        nearby.sort(key=lambda item: (-(item[0].rating_average or 0), item[1]))
        return nearby[: self.limit]

    def search_tenants(
        self,
        query: Optional[str] = None,
        business_type: Optional[str] = None,
        location: Optional[str] = None,
    ) -> list[Tenant]:
        tenants = self.tenants.search_tenants(self.db, search=query, business_type=business_type)

        if location:
            needle = location.strip().lower()
            tenants = [
                t
                for t in tenants
                if needle in str((t.address or {}).get("city") or "").lower()
                or needle in str((t.address or {}).get("state") or "").lower()
            ]
        return tenants[: self.limit]
