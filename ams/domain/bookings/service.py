"""Booking service - Business logic for the booking lifecycle"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import Principal, TenantScope, check_ownership
from ...exceptions import ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from ...models import ROLE_CUSTOMER, ROLE_SERVICE_PROVIDER, Booking, Service, User
from ...shared.validators import MINUTES_PER_DAY, minutes_to_time, time_to_minutes
from ...utils.sanitization import sanitize_string
from ..catalog.pricing import build_pricing_snapshot, find_quality_variation
from ..catalog.repository import CatalogRepository
from ..principals.repository import PrincipalRepository
from .availability import DEFAULT_SLOT_MINUTES, free_slots
from .lifecycle import BookingStatus, ensure_transition, parse_status
from .repository import BookingRepository
from .schemas import BookingCreate, BookingUpdate, FeedbackRequest, RescheduleRequest

logger = logging.getLogger(__name__)

LAST_MINUTE_OF_DAY = MINUTES_PER_DAY - 1


def compute_end_time(start_time: str, duration: int) -> str:
    """
    End of an appointment starting at start_time.

    Raises:
        ValidationError: If the appointment would run past 23:59
    """
    end = time_to_minutes(start_time) + duration
    if end > LAST_MINUTE_OF_DAY:
        raise ValidationError("Booking cannot extend past the end of the day (23:59)")
    return minutes_to_time(end)


def actor(principal: Principal) -> dict:
    return {"id": principal.id, "role": principal.role}


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()
        self.catalog = CatalogRepository()
        self.principals = PrincipalRepository()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_bookings(
        self,
        principal: Principal,
        scope: TenantScope,
        status: Optional[str] = None,
        on_date: Optional[date] = None,
    ) -> list[Booking]:
        """Customers see their own bookings, providers the ones assigned to them"""
        if status:
            status = parse_status(status).value
        customer_id = principal.id if principal.role == ROLE_CUSTOMER else None
        provider_id = principal.id if principal.role == ROLE_SERVICE_PROVIDER else None
        return self.repo.get_bookings(self.db, scope, customer_id, provider_id, status, on_date)

    def get_booking(self, booking_id: int, principal: Principal, scope: TenantScope) -> Booking:
        booking = self.repo.get_booking(self.db, scope, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        check_ownership(principal, booking.customer_id, booking.provider_id)
        return booking

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _resolve_service(self, scope: TenantScope, service_id: int) -> Service:
        service = self.catalog.get_service(self.db, scope, service_id)
        if not service:
            raise NotFoundError("Service not found")
        if not service.is_active:
            raise ValidationError("Service is not available for booking")
        return service

    def _resolve_user(self, scope: TenantScope, user_id: int, role: str, label: str) -> User:
        user = self.principals.get_principal(self.db, scope, user_id, role)
        if not user:
            raise NotFoundError(f"{label} not found")
        return user

    def create_booking(self, data: BookingCreate, principal: Principal, scope: TenantScope) -> Booking:
        if principal.role == ROLE_CUSTOMER:
            customer_id = principal.id
        elif data.customerId is None:
            raise ValidationError("customerId is required")
        else:
            customer_id = data.customerId

        service = self._resolve_service(scope, data.serviceId)
        provider = self._resolve_user(scope, data.providerId, ROLE_SERVICE_PROVIDER, "Service provider")
        customer = self._resolve_user(scope, customer_id, ROLE_CUSTOMER, "Customer")

        # All three resolved inside the same scope; an admin scope still needs them to agree
        if not (service.tenant_id == provider.tenant_id == customer.tenant_id):
            raise ValidationError("Service, provider and customer must belong to the same tenant")

        variation = None
        if data.selectedQualityVariation:
            variation = find_quality_variation(service, data.selectedQualityVariation)
            if variation is None:
                raise ValidationError(f"Unknown quality variation: {data.selectedQualityVariation}")

        duration = service.duration + int((variation or {}).get("durationModifier") or 0)
        if duration <= 0:
            raise ValidationError("Booking duration must be positive")

        end_time = compute_end_time(data.startTime, duration)
        if data.endTime is not None and data.endTime != end_time:
            raise ValidationError(f"endTime must equal startTime plus the service duration ({end_time})")

        # No slot-conflict check: overlapping bookings for a provider are accepted
        booking = Booking(
            tenant_id=service.tenant_id,
            customer_id=customer.id,
            service_id=service.id,
            provider_id=provider.id,
            appointment_date=data.appointmentDate,
            start_time=data.startTime,
            end_time=end_time,
            duration=duration,
            status=BookingStatus.PENDING.value,
            pricing=build_pricing_snapshot(service, datetime.utcnow(), variation),
            selected_quality_variation=variation["name"] if variation else None,
            customer_notes=sanitize_string(data.customerNotes),
            reminders=[],
        )
        self.db.add(booking)
        service.total_bookings = Service.total_bookings + 1
        self.db.commit()
        self.db.refresh(booking)

        logger.info(
            f"📅 Booking created: id={booking.id} tenant={booking.tenant_id} "
            f"{booking.appointment_date} {booking.start_time}-{booking.end_time}"
        )
        return booking

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def update_booking(
        self, booking_id: int, data: BookingUpdate, principal: Principal, scope: TenantScope
    ) -> Booking:
        booking = self.get_booking(booking_id, principal, scope)
        updates = {
            "customer_notes": sanitize_string(data.customerNotes),
            "provider_notes": sanitize_string(data.providerNotes),
            "internal_notes": sanitize_string(data.internalNotes),
        }
        if data.payment is not None:
            updates["payment"] = data.payment.model_dump(mode="json")
        if data.reminders is not None:
            updates["reminders"] = [r.model_dump(mode="json") for r in data.reminders]
        return self.repo.update_booking(self.db, booking, **updates)

    def update_status(self, booking_id: int, status: str, principal: Principal, scope: TenantScope) -> Booking:
        booking = self.get_booking(booking_id, principal, scope)
        previous = booking.status
        target = ensure_transition(previous, status)
        booking = self.repo.update_booking(self.db, booking, status=target.value)
        logger.info(f"📅 Booking {booking.id} status {previous} -> {target.value} by {principal.role} {principal.id}")
        return booking

    def reschedule(
        self, booking_id: int, data: RescheduleRequest, principal: Principal, scope: TenantScope
    ) -> Booking:
        """Move a booking to a new date and start time. endTime and duration are left as they were."""
        booking = self.get_booking(booking_id, principal, scope)
        previous = booking.reschedule or {}
        record = {
            "previousDate": booking.appointment_date.isoformat(),
            "previousStartTime": booking.start_time,
            "rescheduleCount": int(previous.get("rescheduleCount") or 0) + 1,
            "rescheduledBy": actor(principal),
            "rescheduledAt": datetime.utcnow().isoformat(),
            "reason": sanitize_string(data.reason),
        }
        booking = self.repo.update_booking(
            self.db,
            booking,
            appointment_date=data.appointmentDate,
            start_time=data.startTime,
            reschedule=record,
        )
        logger.info(f"📅 Booking {booking.id} rescheduled to {booking.appointment_date} {booking.start_time}")
        return booking

    def cancel(
        self, booking_id: int, reason: Optional[str], principal: Principal, scope: TenantScope
    ) -> Booking:
        booking = self.get_booking(booking_id, principal, scope)
        target = ensure_transition(booking.status, BookingStatus.CANCELLED.value)
        booking = self.repo.update_booking(
            self.db,
            booking,
            status=target.value,
            cancellation={
                "cancelledBy": actor(principal),
                "cancelledAt": datetime.utcnow().isoformat(),
                "reason": sanitize_string(reason),
                "refundIssued": False,
                "refundAmount": None,
            },
        )
        logger.info(f"📅 Booking {booking.id} cancelled by {principal.role} {principal.id}")
        return booking

    def submit_feedback(
        self, booking_id: int, data: FeedbackRequest, principal: Principal, scope: TenantScope
    ) -> Booking:
        booking = self.repo.get_booking(self.db, scope, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        if booking.customer_id != principal.id:
            raise ForbiddenError("Only the customer of this booking can leave feedback")
        if booking.status != BookingStatus.COMPLETED.value:
            raise InvalidStateError("Can only provide feedback for completed bookings")

        booking = self.repo.update_booking(
            self.db,
            booking,
            feedback={
                "rating": data.rating,
                "comment": sanitize_string(data.comment),
                "submittedAt": datetime.utcnow().isoformat(),
            },
        )
        self._refresh_ratings(booking)
        logger.info(f"⭐ Feedback submitted for booking {booking.id}: {data.rating}")
        return booking

    def _refresh_ratings(self, booking: Booking) -> None:
        """Recompute service and provider averages from every feedback on record"""
        for record, column in ((booking.service, Booking.service_id), (booking.provider, Booking.provider_id)):
            ratings = self.repo.get_feedback_ratings(self.db, column, record.id)
            record.rating_count = len(ratings)
            record.rating_average = round(sum(ratings) / len(ratings), 2) if ratings else 0
        self.db.commit()

    # ------------------------------------------------------------------
    # Calendar
    # ------------------------------------------------------------------

    def get_provider_calendar(
        self,
        provider_id: int,
        principal: Principal,
        scope: TenantScope,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Booking]:
        self._resolve_user(scope, provider_id, ROLE_SERVICE_PROVIDER, "Service provider")
        if principal.role == ROLE_SERVICE_PROVIDER:
            check_ownership(principal, provider_id)
        return self.repo.get_provider_calendar(self.db, scope, provider_id, start_date, end_date)

    def get_provider_availability(
        self, provider_id: int, day: date, scope: TenantScope, service_id: Optional[int] = None
    ) -> dict:
        provider = self._resolve_user(scope, provider_id, ROLE_SERVICE_PROVIDER, "Service provider")
        slot_minutes = DEFAULT_SLOT_MINUTES
        if service_id is not None:
            slot_minutes = self._resolve_service(scope, service_id).duration

        busy = self.repo.get_busy_intervals(self.db, provider.id, day)
        return {
            "providerId": provider.id,
            "date": day.isoformat(),
            "slotMinutes": slot_minutes,
            "availableSlots": free_slots(provider.availability, day, busy, slot_minutes),
        }

    def get_booking_metadata(self, customer_id: int, principal: Principal, scope: TenantScope) -> dict:
        customer = self._resolve_user(scope, customer_id, ROLE_CUSTOMER, "Customer")
        if principal.role == ROLE_CUSTOMER:
            check_ownership(principal, customer.id)

        provider = self.principals.get_first_provider(self.db, customer.tenant_id)
        if not provider:
            raise NotFoundError("No service provider found for tenant")

        services = self.catalog.get_services(self.db, TenantScope(tenant_id=customer.tenant_id))
        return {"tenantId": customer.tenant_id, "providerId": provider.id, "services": services}
