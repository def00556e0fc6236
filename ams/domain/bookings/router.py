"""Booking router - FastAPI endpoints for the booking lifecycle"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Principal, TenantScope, get_current_principal, get_tenant_scope, require_roles
from ...database import get_db
from ...models import ROLE_CUSTOMER, ROLE_SERVICE_PROVIDER, ROLE_TENANT
from ...schemas import Envelope, ListEnvelope, ok, ok_list
from .schemas import (
    BookingCreate,
    BookingMetadata,
    BookingResponse,
    BookingUpdate,
    CancelRequest,
    FeedbackRequest,
    MetadataService,
    ProviderAvailabilityResponse,
    RescheduleRequest,
    StatusUpdate,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


# ============================================================================
# CALENDAR & METADATA (specific paths before /{booking_id})
# ============================================================================


@router.get("/calendar/{provider_id}", response_model=ListEnvelope[BookingResponse])
async def get_provider_calendar(
    provider_id: int,
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    principal: Principal = Depends(get_current_principal),
    scope: TenantScope = Depends(get_tenant_scope),
    service: BookingService = Depends(get_booking_service),
):
    """Non-cancelled bookings of a provider in chronological order"""
    bookings = service.get_provider_calendar(provider_id, principal, scope, start_date, end_date)
    return ok_list([BookingResponse.from_booking(b) for b in bookings])


@router.get("/availability/{provider_id}", response_model=Envelope[ProviderAvailabilityResponse])
async def get_provider_availability(
    provider_id: int,
    day: date = Query(..., alias="date"),
    service_id: Optional[int] = Query(None, alias="serviceId"),
    scope: TenantScope = Depends(get_tenant_scope),
    service: BookingService = Depends(get_booking_service),
):
    return ok(ProviderAvailabilityResponse(**service.get_provider_availability(provider_id, day, scope, service_id)))


@router.get("/metadata/{customer_id}", response_model=Envelope[BookingMetadata])
async def get_booking_metadata(
    customer_id: int,
    principal: Principal = Depends(require_roles(ROLE_CUSTOMER, ROLE_TENANT, ROLE_SERVICE_PROVIDER)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: BookingService = Depends(get_booking_service),
):
    """Tenant, a provider and the services a customer can book with"""
    metadata = service.get_booking_metadata(customer_id, principal, scope)
    return ok(
        BookingMetadata(
            tenantId=metadata["tenantId"],
            providerId=metadata["providerId"],
            services=[MetadataService.from_service(s) for s in metadata["services"]],
        )
    )


# ============================================================================
# CORE OPERATIONS
# ============================================================================


@router.get("", response_model=ListEnvelope[BookingResponse])
async def get_bookings(
    status: Optional[str] = Query(None),
    on_date: Optional[date] = Query(None, alias="date"),
    principal: Principal = Depends(get_current_principal),
    scope: TenantScope = Depends(get_tenant_scope),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings visible to the caller, newest appointment first"""
    bookings = service.get_bookings(principal, scope, status, on_date)
    return ok_list([BookingResponse.from_booking(b) for b in bookings])


@router.post("", response_model=Envelope[BookingResponse], status_code=201)
async def create_booking(
    data: BookingCreate,
    principal: Principal = Depends(require_roles(ROLE_TENANT, ROLE_SERVICE_PROVIDER, ROLE_CUSTOMER)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.create_booking(data, principal, scope)
    return ok(BookingResponse.from_booking(booking), message="Booking created successfully")


@router.get("/{booking_id}", response_model=Envelope[BookingResponse])
async def get_booking(
    booking_id: int,
    principal: Principal = Depends(get_current_principal),
    scope: TenantScope = Depends(get_tenant_scope),
    service: BookingService = Depends(get_booking_service),
):
    return ok(BookingResponse.from_booking(service.get_booking(booking_id, principal, scope)))


@router.put("/{booking_id}", response_model=Envelope[BookingResponse])
async def update_booking(
    booking_id: int,
    data: BookingUpdate,
    principal: Principal = Depends(require_roles(ROLE_TENANT, ROLE_SERVICE_PROVIDER)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: BookingService = Depends(get_booking_service),
):
    """Notes, payment and reminders only"""
    return ok(BookingResponse.from_booking(service.update_booking(booking_id, data, principal, scope)))


# ============================================================================
# LIFECYCLE
# ============================================================================


@router.put("/{booking_id}/status", response_model=Envelope[BookingResponse])
async def update_booking_status(
    booking_id: int,
    data: StatusUpdate,
    principal: Principal = Depends(require_roles(ROLE_TENANT, ROLE_SERVICE_PROVIDER)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: BookingService = Depends(get_booking_service),
):
    return ok(BookingResponse.from_booking(service.update_status(booking_id, data.status, principal, scope)))


@router.put("/{booking_id}/reschedule", response_model=Envelope[BookingResponse])
async def reschedule_booking(
    booking_id: int,
    data: RescheduleRequest,
    principal: Principal = Depends(get_current_principal),
    scope: TenantScope = Depends(get_tenant_scope),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.reschedule(booking_id, data, principal, scope)
    return ok(BookingResponse.from_booking(booking), message="Booking rescheduled successfully")


@router.put("/{booking_id}/cancel", response_model=Envelope[BookingResponse])
async def cancel_booking(
    booking_id: int,
    data: Optional[CancelRequest] = None,
    principal: Principal = Depends(get_current_principal),
    scope: TenantScope = Depends(get_tenant_scope),
    service: BookingService = Depends(get_booking_service),
):
    reason = data.reason if data else None
    booking = service.cancel(booking_id, reason, principal, scope)
    return ok(BookingResponse.from_booking(booking), message="Booking cancelled successfully")


@router.post("/{booking_id}/feedback", response_model=Envelope[BookingResponse])
async def submit_feedback(
    booking_id: int,
    data: FeedbackRequest,
    principal: Principal = Depends(require_roles(ROLE_CUSTOMER)),
    scope: TenantScope = Depends(get_tenant_scope),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.submit_feedback(booking_id, data, principal, scope)
    return ok(BookingResponse.from_booking(booking), message="Feedback submitted successfully")
