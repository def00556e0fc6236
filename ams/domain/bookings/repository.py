"""Booking repository - Database operations for bookings"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import TenantScope
from ...models import Booking
from .lifecycle import BookingStatus


class BookingRepository:
    """Repository for booking database operations. Every read goes through a TenantScope."""

    @staticmethod
    def get_bookings(
        db: Session,
        scope: TenantScope,
        customer_id: Optional[int] = None,
        provider_id: Optional[int] = None,
        status: Optional[str] = None,
        on_date: Optional[date] = None,
    ) -> list[Booking]:
        query = scope.apply(db.query(Booking), Booking.tenant_id)

        if customer_id is not None:
            query = query.filter(Booking.customer_id == customer_id)
        if provider_id is not None:
            query = query.filter(Booking.provider_id == provider_id)
        if status:
            query = query.filter(Booking.status == status)
        if on_date:
            query = query.filter(Booking.appointment_date == on_date)

        return query.order_by(Booking.appointment_date.desc(), Booking.start_time.desc(), Booking.id.desc()).all()

    @staticmethod
    def get_booking(db: Session, scope: TenantScope, booking_id: int) -> Optional[Booking]:
        return scope.apply(db.query(Booking), Booking.tenant_id).filter(Booking.id == booking_id).first()

    @staticmethod
    def update_booking(db: Session, booking: Booking, **updates) -> Booking:
        """JSON sub-records must be passed as new objects so the change is detected"""
        for key, value in updates.items():
            if value is not None and hasattr(booking, key):
                setattr(booking, key, value)

        db.commit()
        db.refresh(booking)
        return booking

    @staticmethod
    def get_provider_calendar(
        db: Session,
        scope: TenantScope,
        provider_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Booking]:
        """Non-cancelled bookings of a provider in chronological order"""
        query = scope.apply(db.query(Booking), Booking.tenant_id).filter(
            Booking.provider_id == provider_id,
            Booking.status != BookingStatus.CANCELLED.value,
        )
        if start_date:
            query = query.filter(Booking.appointment_date >= start_date)
        if end_date:
            query = query.filter(Booking.appointment_date <= end_date)
        return query.order_by(Booking.appointment_date, Booking.start_time, Booking.id).all()

    @staticmethod
    def get_busy_intervals(db: Session, provider_id: int, day: date) -> list[tuple[str, int]]:
        """(startTime, duration) of every booking still on the calendar; endTime goes stale on reschedule"""
        rows = (
            db.query(Booking.start_time, Booking.duration)
            .filter(
                Booking.provider_id == provider_id,
                Booking.appointment_date == day,
                Booking.status != BookingStatus.CANCELLED.value,
            )
            .all()
        )
        return [(start, duration) for start, duration in rows]

    @staticmethod
    def get_feedback_ratings(db: Session, column, target_id: int) -> list[int]:
        """Ratings of every booking with feedback, keyed by service_id or provider_id"""
        rows = db.query(Booking.feedback).filter(column == target_id, Booking.feedback.isnot(None)).all()
        return [int(feedback["rating"]) for (feedback,) in rows if feedback and feedback.get("rating")]
