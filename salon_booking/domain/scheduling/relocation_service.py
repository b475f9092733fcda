"""Slot relocation - drag-and-drop moves on the manager schedule"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import ENFORCE_SLOT_CONFLICTS
from ...models import Appointment
from .errors import (
    InvalidAppointmentType,
    MissingField,
    NotFound,
    SlotConflict,
    StoreFailure,
    ValidationError,
)
from .repository import SchedulingRepository
from .schemas import MoveAppointmentRequest
from .stations import normalize_station_id
from .time_calculator import parse_timestamp, pin_hours_to_day

logger = logging.getLogger(__name__)

APPOINTMENT_TYPES = ("grooming", "garden")
GARDEN_APPOINTMENT_TYPES = ("full-day", "hourly")

REQUIRED_FIELDS = (
    "appointmentId",
    "newStationId",
    "newStartTime",
    "newEndTime",
    "oldStationId",
    "oldStartTime",
    "oldEndTime",
    "appointmentType",
)

# Request field -> column, written only when present in the request body
GARDEN_OPTIONAL_FIELDS = {
    "newGardenIsTrial": "garden_is_trial",
    "gardenTrimNails": "garden_trim_nails",
    "gardenBrush": "garden_brush",
    "gardenBath": "garden_bath",
    "latePickupRequested": "late_pickup_requested",
    "latePickupNotes": "late_pickup_notes",
}


@dataclass
class MovedWindow:
    station_id: Optional[str]
    start_at: datetime
    end_at: datetime


class RelocationService:
    """Service layer for moving existing appointments"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def move(self, data: MoveAppointmentRequest) -> Appointment:
        for field in REQUIRED_FIELDS:
            value = getattr(data, field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise MissingField(field)

        appointment_type = data.appointmentType.strip()
        if appointment_type not in APPOINTMENT_TYPES:
            raise InvalidAppointmentType(data.appointmentType)

        garden_type = data.newGardenAppointmentType
        if garden_type is not None and garden_type not in GARDEN_APPOINTMENT_TYPES:
            raise ValidationError(
                f"Invalid newGardenAppointmentType '{garden_type}'. Must be 'full-day' or 'hourly'"
            )

        target = self._compute_window(data, appointment_type)
        updates = self._collect_updates(data, appointment_type, target)

        try:
            appointment = self.repo.get_appointment(self.db, data.appointmentId, appointment_type)
            if not appointment:
                raise NotFound(f"Appointment {data.appointmentId} not found")

            if (
                ENFORCE_SLOT_CONFLICTS
                and target.station_id
                and self.repo.find_overlapping_appointments(
                    self.db,
                    target.station_id,
                    target.start_at,
                    target.end_at,
                    exclude_appointment_id=appointment.id,
                )
            ):
                logger.warning(
                    f"⚠️ Move of {appointment.id} collides on station {target.station_id} "
                    f"for {target.start_at} - {target.end_at}"
                )
                raise SlotConflict()

            logger.info(
                f"🔄 Moving {appointment_type} appointment {appointment.id}: "
                f"station {data.oldStationId} -> {data.newStationId}, "
                f"{data.oldStartTime}/{data.oldEndTime} -> {target.start_at}/{target.end_at} (UTC)"
            )

            self.repo.apply_updates(appointment, **updates)
            self.db.commit()
            self.db.refresh(appointment)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to update appointment {data.appointmentId}: {e}")
            raise StoreFailure(f"Failed to update appointment: {e}") from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"✅ Appointment {appointment.id} moved")
        return appointment

    def _compute_window(self, data: MoveAppointmentRequest, appointment_type: str) -> MovedWindow:
        start_at = parse_timestamp(data.newStartTime, "newStartTime")
        end_at = parse_timestamp(data.newEndTime, "newEndTime")

        hours = data.selectedHours
        if (
            appointment_type == "garden"
            and data.newGardenAppointmentType == "hourly"
            and hours is not None
            and hours.start
            and hours.end
        ):
            start_at, end_at = pin_hours_to_day(start_at, hours.start, hours.end)
            logger.info(
                f"🕐 Hourly garden window pinned to {hours.start}-{hours.end} on the dragged day"
            )

        if end_at <= start_at:
            raise ValidationError("newEndTime must be after newStartTime")

        station_id = normalize_station_id(data.newStationId)
        if appointment_type == "grooming" and station_id is None:
            raise ValidationError("Grooming appointments require a physical station")

        return MovedWindow(station_id=station_id, start_at=start_at, end_at=end_at)

    def _collect_updates(
        self, data: MoveAppointmentRequest, appointment_type: str, target: MovedWindow
    ) -> dict:
        provided = data.model_fields_set
        updates = {
            "station_id": target.station_id,
            "start_at": target.start_at,
            "end_at": target.end_at,
        }

        if appointment_type == "garden":
            if data.newGardenAppointmentType is not None:
                updates["garden_appointment_type"] = data.newGardenAppointmentType
            for field, column in GARDEN_OPTIONAL_FIELDS.items():
                if field in provided:
                    updates[column] = getattr(data, field)

        if "internalNotes" in provided:
            updates["internal_notes"] = data.internalNotes or None

        return updates
