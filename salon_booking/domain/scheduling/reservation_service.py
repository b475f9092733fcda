"""Slot reservation - creates appointments for customers or staff"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import Principal
from ...config import ENFORCE_SLOT_CONFLICTS, RESERVATION_REJECT_PAST_DATES
from ...models import Appointment, Customer
from .errors import (
    CustomerNotFound,
    MissingField,
    NotFound,
    SlotConflict,
    StoreFailure,
    ValidationError,
)
from .policy_service import resolve_placement_policy
from .repository import SchedulingRepository
from .schemas import ReserveAppointmentRequest
from .stations import is_virtual_station
from .time_calculator import add_minutes, business_date_of, compose_local, parse_date, parse_wall_time

logger = logging.getLogger(__name__)

APPOINTMENT_KINDS = ("business", "private")


@dataclass
class ReservationResult:
    appointment: Appointment
    message: str


class ReservationService:
    """Service layer for slot reservation"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def reserve(
        self, data: ReserveAppointmentRequest, principal: Optional[Principal] = None
    ) -> ReservationResult:
        service_id = data.effective_service_id
        for field, value in (
            ("serviceId", service_id),
            ("date", data.date),
            ("startTime", data.startTime),
            ("stationId", data.stationId),
        ):
            if not value or not str(value).strip():
                raise MissingField(field)

        kind = (data.appointmentKind or "business").strip().lower()
        if kind not in APPOINTMENT_KINDS:
            raise ValidationError(f"Invalid appointmentKind '{data.appointmentKind}'")

        if is_virtual_station(data.stationId):
            raise ValidationError("stationId must reference a physical station")

        try:
            customer = self._resolve_customer(data.customerId, principal)

            service = self.repo.get_service(self.db, service_id)
            if not service:
                raise NotFound("Service not found")
            if service.category == "garden":
                # Garden appointments are stationless
                raise ValidationError("Garden services cannot be reserved on a grooming station")

            station = self.repo.get_station(self.db, data.stationId)
            if not station or not station.is_active:
                raise NotFound("Station not found")

            policy = resolve_placement_policy(self.db, service_id, data.stationId)

            day = parse_date(data.date)
            start_at = compose_local(day, parse_wall_time(data.startTime))
            end_at = add_minutes(start_at, policy.duration_minutes)

            if RESERVATION_REJECT_PAST_DATES and day < business_date_of(datetime.utcnow()):
                raise ValidationError("Cannot reserve appointments for past dates")

            if ENFORCE_SLOT_CONFLICTS and self.repo.find_overlapping_appointments(
                self.db, data.stationId, start_at, end_at
            ):
                logger.warning(
                    f"⚠️ Slot conflict on station {data.stationId} for {start_at} - {end_at}"
                )
                raise SlotConflict()

            status = "pending" if policy.requires_approval else "scheduled"
            appointment = self.repo.add_appointment(
                self.db,
                customer_id=customer.id,
                station_id=data.stationId,
                service_id=service_id,
                service_type="grooming",
                start_at=start_at,
                end_at=end_at,
                status=status,
                payment_status="unpaid",
                appointment_kind=kind,
                appointment_name=data.appointmentName,
                customer_notes=data.notes,
            )
            self.db.commit()
            self.db.refresh(appointment)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to create appointment: {e}")
            raise StoreFailure(f"Failed to create appointment: {e}") from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"✅ Appointment {appointment.id} reserved for customer {customer.id} "
            f"on station {data.stationId} ({status})"
        )

        if status == "pending":
            message = "Appointment request received and is pending staff approval"
        else:
            message = "Appointment confirmed successfully"
        return ReservationResult(appointment=appointment, message=message)

    def _resolve_customer(
        self, customer_id: Optional[str], principal: Optional[Principal]
    ) -> Customer:
        """An explicit customerId always wins over the caller's identity"""
        if customer_id:
            customer = self.repo.get_customer_by_id(self.db, customer_id)
            if not customer:
                raise CustomerNotFound(f"Customer {customer_id} not found")
            return customer

        if principal:
            customer = self.repo.get_customer_by_auth_user_id(self.db, principal.user_id)
            if customer:
                return customer
            logger.warning(f"⚠️ No customer linked to user {principal.user_id}")

        raise CustomerNotFound("Customer not found for the current user")
