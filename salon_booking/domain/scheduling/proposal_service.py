"""Proposed meetings - customers view and claim staff-published open slots"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import Principal
from ...models import Appointment, Customer, ProposedMeeting
from .errors import (
    AuthenticationRequired,
    Forbidden,
    MeetingUnavailable,
    MissingField,
    MissingMeetingTimes,
    NotFound,
    ProfileNotFound,
    StoreFailure,
)
from .repository import SchedulingRepository
from .schemas import MeetingCategoryResponse, MeetingInviteResponse, ProposedMeetingResponse
from .stations import normalize_station_id
from .time_calculator import business_date_of

logger = logging.getLogger(__name__)


@dataclass
class BookingResult:
    appointment_id: str
    meeting_id: str
    # Business days whose schedule changed
    affected_dates: list[date] = field(default_factory=list)


def is_customer_eligible(meeting: ProposedMeeting, customer: Customer, code: Optional[str]) -> bool:
    """Invited directly, invited through the customer's type, or holding the meeting code"""
    if any(invite.customer_id == customer.id for invite in meeting.invites):
        return True
    if customer.customer_type_id and any(
        category.customer_type_id == customer.customer_type_id for category in meeting.categories
    ):
        return True
    return bool(code and meeting.code and code == meeting.code)


class ProposedMeetingService:
    """Service layer for viewing and claiming proposed meetings"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def describe(self, meeting_id: Optional[str]) -> ProposedMeetingResponse:
        """Load a meeting with its station, invites and categories for the claim page"""
        if not meeting_id:
            raise MissingField("meetingId")

        meeting = self.repo.get_meeting(self.db, meeting_id)
        if not meeting:
            raise NotFound("Meeting not found")

        station = self.repo.get_station(self.db, meeting.station_id) if meeting.station_id else None

        return ProposedMeetingResponse(
            id=meeting.id,
            stationId=meeting.station_id,
            stationName=station.name if station else None,
            serviceType=meeting.service_type or "grooming",
            startAt=meeting.start_at,
            endAt=meeting.end_at,
            status=meeting.status or "proposed",
            title=meeting.title,
            summary=meeting.summary,
            notes=meeting.notes,
            rescheduleAppointmentId=meeting.reschedule_appointment_id,
            rescheduleCustomerId=meeting.reschedule_customer_id,
            rescheduleOriginalStartAt=meeting.reschedule_original_start_at,
            rescheduleOriginalEndAt=meeting.reschedule_original_end_at,
            invites=[
                MeetingInviteResponse(
                    id=invite.id,
                    customerId=invite.customer_id,
                    customerName=invite.customer.full_name if invite.customer else None,
                    source="category" if invite.source == "category" else "manual",
                    sourceCategoryId=invite.source_category_id,
                )
                for invite in meeting.invites
            ],
            categories=[
                MeetingCategoryResponse(
                    id=category.id,
                    customerTypeId=category.customer_type_id,
                    customerTypeName=category.customer_type.name if category.customer_type else None,
                )
                for category in meeting.categories
            ],
        )

    def book(
        self, principal: Optional[Principal], meeting_id: Optional[str], code: Optional[str] = None
    ) -> BookingResult:
        if principal is None:
            raise AuthenticationRequired("Authentication required")

        customer = self.repo.get_customer_by_auth_user_id(self.db, principal.user_id)
        if not customer:
            logger.warning(f"⚠️ No customer profile for user {principal.user_id}")
            raise ProfileNotFound()

        if not meeting_id:
            raise MissingField("meetingId")

        meeting = self.repo.get_meeting(self.db, meeting_id)
        if not meeting:
            raise NotFound("Meeting not found")

        if meeting.status and meeting.status != "proposed":
            raise MeetingUnavailable()

        if not is_customer_eligible(meeting, customer, code):
            logger.warning(f"🚫 Customer {customer.id} is not eligible for meeting {meeting.id}")
            raise Forbidden("You do not have access to this meeting")

        if meeting.reschedule_customer_id and meeting.reschedule_customer_id != customer.id:
            raise Forbidden("This meeting is reserved for another customer")

        if not meeting.start_at or not meeting.end_at:
            raise MissingMeetingTimes()

        original = None
        if meeting.reschedule_appointment_id:
            original = self.repo.get_appointment(
                self.db, meeting.reschedule_appointment_id, meeting.service_type
            )
            if not original:
                raise NotFound("Original appointment not found")
            if original.customer_id != customer.id:
                raise Forbidden("The original appointment belongs to another customer")

        affected = [business_date_of(meeting.start_at)]
        if original is not None:
            affected.append(business_date_of(original.start_at))

        try:
            if not self.repo.claim_meeting(self.db, meeting.id):
                logger.warning(f"⚠️ Meeting {meeting.id} was claimed by another request")
                raise MeetingUnavailable()

            appointment = self._upsert_appointment(meeting, customer, original)
            self.repo.link_meeting(self.db, meeting.id, appointment.id, customer.id)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to book meeting {meeting.id}: {e}")
            raise StoreFailure(f"Failed to book meeting: {e}") from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"✅ Meeting {meeting.id} booked by customer {customer.id} -> appointment {appointment.id}"
        )
        return BookingResult(
            appointment_id=appointment.id,
            meeting_id=meeting.id,
            affected_dates=sorted(set(affected)),
        )

    def _upsert_appointment(
        self, meeting: ProposedMeeting, customer: Customer, original: Optional[Appointment]
    ) -> Appointment:
        values = {
            "station_id": normalize_station_id(meeting.station_id),
            "start_at": meeting.start_at,
            "end_at": meeting.end_at,
            "status": "scheduled",
            "payment_status": "unpaid",
            "appointment_kind": "business",
        }
        if meeting.service_type == "garden":
            values["garden_appointment_type"] = "hourly"

        if original is not None:
            # Keep the original texts unless the meeting carries its own
            for column, value in (
                ("appointment_name", meeting.title),
                ("customer_notes", meeting.summary),
                ("internal_notes", meeting.notes),
            ):
                if value is not None:
                    values[column] = value
            logger.info(
                f"🔄 Rescheduling appointment {original.id} from {original.start_at} "
                f"to {meeting.start_at} (UTC)"
            )
            self.repo.apply_updates(original, **values)
            self.db.flush()
            return original

        return self.repo.add_appointment(
            self.db,
            customer_id=customer.id,
            service_type=meeting.service_type or "grooming",
            appointment_name=meeting.title,
            customer_notes=meeting.summary,
            internal_notes=meeting.notes,
            **values,
        )
