"""Catalog service - Business logic for services and provider assignment"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import Principal, TenantScope
from ...exceptions import NotFoundError, ValidationError
from ...models import ROLE_ADMIN, ROLE_SERVICE_PROVIDER, Service, User
from ...utils.sanitization import sanitize_string
from ..bookings.availability import free_slots
from ..bookings.repository import BookingRepository
from ..principals.repository import PrincipalRepository
from .repository import CatalogRepository
from .schemas import ServiceCreate, ServiceUpdate

logger = logging.getLogger(__name__)


def _dump_list(items) -> list:
    return [item.model_dump(mode="json") for item in items]


class CatalogService:
    """Service layer for catalog business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()
        self.principals = PrincipalRepository()
        self.bookings = BookingRepository()

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def get_services(
        self, scope: TenantScope, category: Optional[str] = None, is_active: Optional[bool] = None
    ) -> list[Service]:
        return self.repo.get_services(self.db, scope, category, is_active)

    def get_service(self, service_id: int, scope: TenantScope) -> Service:
        service = self.repo.get_service(self.db, scope, service_id)
        if not service:
            raise NotFoundError("Service not found")
        return service

    def create_service(self, data: ServiceCreate, scope: TenantScope) -> Service:
        self._validate_providers(scope.tenant_id, data.providers)

        service = self.repo.create_service(
            self.db,
            tenant_id=scope.tenant_id,
            name=data.name.strip(),
            description=sanitize_string(data.description),
            category=data.category,
            subcategory=data.subcategory,
            duration=data.duration,
            base_price=data.pricing.basePrice,
            currency=data.pricing.currency.upper(),
            discounts=_dump_list(data.pricing.discounts),
            quality_variations=_dump_list(data.qualityVariations),
            requirements=data.requirements,
            images=data.images,
            tags=[t.strip() for t in data.tags if t.strip()],
            booking_settings=data.bookingSettings.model_dump(mode="json"),
        )
        if data.providers:
            self.repo.replace_providers(self.db, service.id, data.providers)
            self.db.refresh(service)

        logger.info(f"🧾 Service created: {service.name} (id={service.id}, tenant={service.tenant_id})")
        return service

    def update_service(self, service_id: int, data: ServiceUpdate, scope: TenantScope) -> Service:
        service = self.get_service(service_id, scope)

        updates = {
            "name": data.name.strip() if data.name else None,
            "description": sanitize_string(data.description),
            "category": data.category,
            "subcategory": data.subcategory,
            "duration": data.duration,
            "requirements": data.requirements,
            "images": data.images,
            "tags": [t.strip() for t in data.tags if t.strip()] if data.tags is not None else None,
            "is_active": data.isActive,
        }
        if data.pricing is not None:
            updates["base_price"] = data.pricing.basePrice
            updates["currency"] = data.pricing.currency.upper()
            updates["discounts"] = _dump_list(data.pricing.discounts)
        if data.qualityVariations is not None:
            updates["quality_variations"] = _dump_list(data.qualityVariations)
        if data.bookingSettings is not None:
            updates["booking_settings"] = data.bookingSettings.model_dump(mode="json")

        return self.repo.update_service(self.db, service, **updates)

    def deactivate_service(self, service_id: int, scope: TenantScope) -> Service:
        service = self.get_service(service_id, scope)
        service = self.repo.deactivate_service(self.db, service)
        logger.info(f"🧾 Service deactivated: id={service.id}")
        return service

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def _validate_providers(self, tenant_id: int, provider_ids: list[int]) -> list[int]:
        """Every id must be a service provider of the tenant"""
        unique_ids = list(dict.fromkeys(provider_ids))
        found = self.repo.get_tenant_providers(self.db, tenant_id, unique_ids)
        if len(found) != len(unique_ids):
            known = {p.id for p in found}
            invalid = [pid for pid in unique_ids if pid not in known]
            raise ValidationError(
                "One or more providers are invalid",
                errors=[{"field": "providerIds", "message": f"Not a service provider of this tenant: {pid}"} for pid in invalid],
            )
        return unique_ids

    def assign_providers(self, service_id: int, provider_ids: list[int], scope: TenantScope) -> Service:
        """Replace the provider set of a service"""
        service = self.get_service(service_id, scope)
        provider_ids = self._validate_providers(service.tenant_id, provider_ids)
        self.repo.replace_providers(self.db, service.id, provider_ids)
        self.db.refresh(service)
        logger.info(f"👥 Providers of service {service.id} set to {provider_ids}")
        return service

    def _resolve_provider_services(self, principal: Principal, service_ids: list[int]) -> list[int]:
        scope = TenantScope(tenant_id=principal.tenant_id)
        unique_ids = list(dict.fromkeys(service_ids))
        services = self.repo.get_services_by_ids(self.db, scope, unique_ids)
        if len(services) != len(unique_ids):
            raise NotFoundError("One or more services not found")
        return unique_ids

    def get_available_services(self, principal: Principal) -> list[Service]:
        return self.repo.get_unassigned_services(self.db, principal.tenant_id, principal.id)

    def select_services(self, principal: Principal, service_ids: list[int]) -> list[Service]:
        service_ids = self._resolve_provider_services(principal, service_ids)
        self.repo.add_services_to_provider(self.db, principal.id, service_ids)
        logger.info(f"👥 Provider {principal.id} selected services {service_ids}")
        return self.get_provider_services(principal.id, TenantScope(tenant_id=principal.tenant_id))

    def unselect_services(self, principal: Principal, service_ids: list[int]) -> list[Service]:
        service_ids = self._resolve_provider_services(principal, service_ids)
        self.repo.remove_services_from_provider(self.db, principal.id, service_ids)
        logger.info(f"👥 Provider {principal.id} unselected services {service_ids}")
        return self.get_provider_services(principal.id, TenantScope(tenant_id=principal.tenant_id))

    def assign_provider(self, principal: Principal, service_id: int) -> Service:
        service_ids = self._resolve_provider_services(principal, [service_id])
        self.repo.add_services_to_provider(self.db, principal.id, service_ids)
        return self.get_service(service_id, TenantScope(tenant_id=principal.tenant_id))

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_provider_services(self, provider_id: int, scope: TenantScope) -> list[Service]:
        provider = self.principals.get_principal(self.db, scope, provider_id, ROLE_SERVICE_PROVIDER)
        if not provider:
            raise NotFoundError("Service provider not found")
        return self.repo.get_services_for_provider(self.db, scope, provider_id)

    def get_tenant_services(self, tenant_id: int, principal: Principal, scope: TenantScope) -> list[Service]:
        if principal.role != ROLE_ADMIN and not scope.allows(tenant_id):
            raise NotFoundError("Tenant not found")
        return self.repo.get_active_services_for_tenant(self.db, tenant_id)

    def get_service_availability(
        self, service_id: int, scope: TenantScope, day: Optional[date] = None
    ) -> tuple[Service, list[tuple[User, list[str]]]]:
        """Assigned active providers and, when a day is given, their free slots"""
        service = self.get_service(service_id, scope)
        providers = sorted((p for p in service.providers if p.is_active), key=lambda p: p.id)

        result = []
        for provider in providers:
            slots = []
            if day is not None:
                busy = self.bookings.get_busy_intervals(self.db, provider.id, day)
                slots = free_slots(provider.availability, day, busy, service.duration)
            result.append((provider, slots))
        return service, result
