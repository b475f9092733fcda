from unittest.mock import patch

from salon_booking.auth import Principal
from salon_booking.domain.scheduling.errors import (
    AuthenticationRequired,
    Forbidden,
    MeetingUnavailable,
    MissingField,
    MissingMeetingTimes,
    NotFound,
    ProfileNotFound,
)
from salon_booking.domain.scheduling.proposal_service import ProposedMeetingService
from salon_booking.domain.scheduling.repository import SchedulingRepository
from salon_booking.models import Appointment, ProposedMeeting

from .base import SchedulingTestCase, local_instant


class TestProposedMeetingBooking(SchedulingTestCase):
    def setUp(self):
        super().setUp()
        self.vip = self.make_customer_type("VIP")
        self.customer = self.make_customer(auth_user_id="user-1", customer_type=self.vip)
        self.stranger = self.make_customer(auth_user_id="user-2", full_name="Noa Cohen")
        self.station = self.make_station()
        self.principal = Principal(user_id="user-1")
        self.bookings = ProposedMeetingService(self.db)

    def test_invited_customer_books(self):
        meeting = self.make_meeting(station=self.station, invites=[self.customer])

        result = self.bookings.book(self.principal, meeting.id)

        appointment = self.db.get(Appointment, result.appointment_id)
        self.assertEqual(result.meeting_id, meeting.id)
        self.assertEqual(appointment.customer_id, self.customer.id)
        self.assertEqual(appointment.station_id, self.station.id)
        self.assertEqual(appointment.start_at, meeting.start_at)
        self.assertEqual(appointment.end_at, meeting.end_at)
        self.assertEqual(appointment.status, "scheduled")
        self.assertEqual(appointment.payment_status, "unpaid")
        self.assertEqual(appointment.appointment_kind, "business")
        self.assertEqual(appointment.appointment_name, "Spring trim")
        self.assertEqual(appointment.customer_notes, "Short summer cut")
        self.assertEqual(appointment.internal_notes, "Bring the calm shampoo")

        self.db.expire_all()
        self.assertEqual(meeting.status, "booked")
        self.assertEqual(meeting.reschedule_appointment_id, appointment.id)
        self.assertEqual(meeting.reschedule_customer_id, self.customer.id)

    def test_category_member_books(self):
        meeting = self.make_meeting(station=self.station, categories=[self.vip])
        result = self.bookings.book(self.principal, meeting.id)
        self.assertEqual(result.meeting_id, meeting.id)

    def test_code_holder_books(self):
        meeting = self.make_meeting(station=self.station, code="TRIM-42")
        result = self.bookings.book(self.principal, meeting.id, "TRIM-42")
        self.assertEqual(result.meeting_id, meeting.id)

    def test_not_eligible(self):
        meeting = self.make_meeting(station=self.station, invites=[self.stranger], code="TRIM-42")

        for code in (None, "", "WRONG"):
            with self.subTest(code=code):
                with self.assertRaises(Forbidden) as ctx:
                    self.bookings.book(self.principal, meeting.id, code)
                self.assertEqual(ctx.exception.status_code, 403)

        self.assertEqual(self.count(Appointment), 0)

    def test_meeting_without_code_is_not_claimable_by_empty_code(self):
        meeting = self.make_meeting(station=self.station, code=None)
        with self.assertRaises(Forbidden):
            self.bookings.book(self.principal, meeting.id, "")

    def test_reserved_for_another_customer(self):
        meeting = self.make_meeting(
            station=self.station, invites=[self.customer], reschedule_customer_id=self.stranger.id
        )
        with self.assertRaises(Forbidden):
            self.bookings.book(self.principal, meeting.id)

    def test_requires_principal(self):
        meeting = self.make_meeting(invites=[self.customer])
        with self.assertRaises(AuthenticationRequired):
            self.bookings.book(None, meeting.id)

    def test_requires_customer_profile(self):
        meeting = self.make_meeting(invites=[self.customer])
        with self.assertRaises(ProfileNotFound):
            self.bookings.book(Principal(user_id="no-profile"), meeting.id)

    def test_requires_meeting_id(self):
        with self.assertRaises(MissingField):
            self.bookings.book(self.principal, "")

    def test_unknown_meeting(self):
        with self.assertRaises(NotFound):
            self.bookings.book(self.principal, "missing")

    def test_meeting_no_longer_proposed(self):
        for status in ("booked", "cancelled"):
            with self.subTest(status=status):
                meeting = self.make_meeting(invites=[self.customer], status=status)
                with self.assertRaises(MeetingUnavailable) as ctx:
                    self.bookings.book(self.principal, meeting.id)
                self.assertEqual(ctx.exception.status_code, 409)

    def test_null_status_is_claimable(self):
        meeting = self.make_meeting(station=self.station, invites=[self.customer], status=None)
        self.bookings.book(self.principal, meeting.id)

        self.db.expire_all()
        self.assertEqual(meeting.status, "booked")

    def test_missing_times(self):
        meeting = self.make_meeting(invites=[self.customer], end_at=None)
        with self.assertRaises(MissingMeetingTimes):
            self.bookings.book(self.principal, meeting.id)

        self.db.expire_all()
        self.assertEqual(meeting.status, "proposed")

    def test_second_booking_conflicts(self):
        meeting = self.make_meeting(station=self.station, invites=[self.customer], code="TRIM-42")
        self.bookings.book(self.principal, meeting.id)

        with self.assertRaises(MeetingUnavailable):
            ProposedMeetingService(self.db).book(Principal(user_id="user-2"), meeting.id, "TRIM-42")
        self.assertEqual(self.count(Appointment), 1)

    def test_single_claim_under_stale_read(self):
        """Both requests read 'proposed'; only the conditional update decides"""
        meeting = self.make_meeting(station=self.station, invites=[self.customer], code="TRIM-42")
        stale = ProposedMeeting(
            id=meeting.id,
            station_id=meeting.station_id,
            service_type="grooming",
            start_at=meeting.start_at,
            end_at=meeting.end_at,
            status="proposed",
            code="TRIM-42",
        )

        self.bookings.book(self.principal, meeting.id)

        with patch.object(SchedulingRepository, "get_meeting", return_value=stale):
            with self.assertRaises(MeetingUnavailable):
                ProposedMeetingService(self.db).book(
                    Principal(user_id="user-2"), meeting.id, "TRIM-42"
                )

        self.assertEqual(self.count(Appointment), 1)
        self.db.expire_all()
        self.assertEqual(meeting.reschedule_customer_id, self.customer.id)

    def test_claim_is_compare_and_swap(self):
        meeting = self.make_meeting()

        self.assertTrue(SchedulingRepository.claim_meeting(self.db, meeting.id))
        self.assertFalse(SchedulingRepository.claim_meeting(self.db, meeting.id))
        self.db.commit()

    def test_failed_insert_rolls_back_claim(self):
        meeting = self.make_meeting(station=self.station, invites=[self.customer])

        with patch.object(
            SchedulingRepository, "add_appointment", side_effect=RuntimeError("insert failed")
        ):
            with self.assertRaises(RuntimeError):
                self.bookings.book(self.principal, meeting.id)

        self.db.expire_all()
        self.assertEqual(meeting.status, "proposed")
        self.assertEqual(self.count(Appointment), 0)

    def test_garden_meeting_creates_hourly_garden_appointment(self):
        meeting = self.make_meeting(
            invites=[self.customer], service_type="garden", station_id="garden-default"
        )

        result = self.bookings.book(self.principal, meeting.id)

        appointment = self.db.get(Appointment, result.appointment_id)
        self.assertEqual(appointment.service_type, "garden")
        self.assertEqual(appointment.garden_appointment_type, "hourly")
        self.assertIsNone(appointment.station_id)

    def test_reschedule_updates_original_appointment(self):
        original = self.make_appointment(
            self.customer,
            self.station,
            local_instant("2025-06-01", "10:00"),
            local_instant("2025-06-01", "11:00"),
            status="pending",
            customer_notes="Original note",
        )
        meeting = self.make_meeting(
            station=self.station,
            invites=[self.customer],
            reschedule_appointment_id=original.id,
            reschedule_customer_id=self.customer.id,
            summary=None,
        )

        result = self.bookings.book(self.principal, meeting.id)

        self.assertEqual(result.appointment_id, original.id)
        self.assertEqual(self.count(Appointment), 1)
        self.db.expire_all()
        self.assertEqual(original.start_at, local_instant("2025-06-02", "11:00"))
        self.assertEqual(original.status, "scheduled")
        self.assertEqual(original.customer_notes, "Original note")
        self.assertEqual(len(result.affected_dates), 2)

    def test_reschedule_target_must_exist(self):
        meeting = self.make_meeting(
            invites=[self.customer],
            reschedule_appointment_id="missing",
            reschedule_customer_id=self.customer.id,
        )
        with self.assertRaises(NotFound):
            self.bookings.book(self.principal, meeting.id)

    def test_reschedule_target_must_belong_to_customer(self):
        foreign = self.make_appointment(
            self.stranger,
            self.station,
            local_instant("2025-06-01", "10:00"),
            local_instant("2025-06-01", "11:00"),
        )
        meeting = self.make_meeting(invites=[self.customer], reschedule_appointment_id=foreign.id)

        with self.assertRaises(Forbidden):
            self.bookings.book(self.principal, meeting.id)

        self.db.expire_all()
        self.assertEqual(meeting.status, "proposed")


class TestProposedMeetingDetails(SchedulingTestCase):
    def setUp(self):
        super().setUp()
        self.vip = self.make_customer_type("VIP")
        self.customer = self.make_customer(auth_user_id="user-1", customer_type=self.vip)
        self.station = self.make_station()
        self.meetings = ProposedMeetingService(self.db)

    def test_describes_meeting_with_invites_and_categories(self):
        meeting = self.make_meeting(
            station=self.station, invites=[self.customer], categories=[self.vip], code="TRIM-42"
        )

        details = self.meetings.describe(meeting.id)

        self.assertEqual(details.id, meeting.id)
        self.assertEqual(details.stationName, "Table 1")
        self.assertEqual(details.serviceType, "grooming")
        self.assertEqual(details.title, "Spring trim")
        self.assertEqual(details.invites[0].customerId, self.customer.id)
        self.assertEqual(details.invites[0].customerName, "Dana Levi")
        self.assertEqual(details.invites[0].source, "manual")
        self.assertEqual(details.categories[0].customerTypeId, self.vip.id)
        self.assertEqual(details.categories[0].customerTypeName, "VIP")
        self.assertNotIn("code", details.model_dump())

    def test_times_are_utc(self):
        meeting = self.make_meeting(station=self.station)

        details = self.meetings.describe(meeting.id)

        self.assertEqual(details.startAt.utcoffset().total_seconds(), 0)
        self.assertEqual(details.startAt.replace(tzinfo=None), local_instant("2025-06-02", "11:00"))

    def test_stationless_meeting_and_null_status(self):
        meeting = self.make_meeting(status=None, service_type="garden")

        details = self.meetings.describe(meeting.id)

        self.assertIsNone(details.stationId)
        self.assertIsNone(details.stationName)
        self.assertEqual(details.status, "proposed")
        self.assertEqual(details.serviceType, "garden")
        self.assertEqual(details.invites, [])

    def test_booked_meeting_still_visible(self):
        meeting = self.make_meeting(station=self.station, status="booked")
        self.assertEqual(self.meetings.describe(meeting.id).status, "booked")

    def test_requires_meeting_id(self):
        with self.assertRaises(MissingField):
            self.meetings.describe("")

    def test_unknown_meeting(self):
        with self.assertRaises(NotFound) as ctx:
            self.meetings.describe("missing")
        self.assertEqual(ctx.exception.message, "Meeting not found")
