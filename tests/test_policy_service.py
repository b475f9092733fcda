from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from salon_booking.domain.scheduling.errors import MissingField, StationNotBookableRemotely
from salon_booking.domain.scheduling.policy_service import resolve_placement_policy
from salon_booking.domain.scheduling.repository import SchedulingRepository

from .base import SchedulingTestCase


class TestResolvePlacementPolicy(SchedulingTestCase):
    def setUp(self):
        super().setUp()
        self.service = self.make_service()
        self.station = self.make_station()

    def test_uses_policy_row(self):
        self.make_policy(self.service, self.station, base_time_minutes=45, requires_staff_approval=True)

        policy = resolve_placement_policy(self.db, self.service.id, self.station.id)

        self.assertEqual(policy.duration_minutes, 45)
        self.assertTrue(policy.requires_approval)
        self.assertFalse(policy.is_fallback)

    def test_missing_row_falls_back_to_default(self):
        policy = resolve_placement_policy(self.db, self.service.id, self.station.id)

        self.assertEqual(policy.duration_minutes, 60)
        self.assertFalse(policy.requires_approval)
        self.assertTrue(policy.is_fallback)

    def test_inactive_row_is_ignored(self):
        self.make_policy(self.service, self.station, base_time_minutes=30, is_active=False)

        policy = resolve_placement_policy(self.db, self.service.id, self.station.id)

        self.assertEqual(policy.duration_minutes, 60)

    def test_store_error_falls_back_to_default(self):
        error = OperationalError("SELECT ...", {}, Exception("connection lost"))
        with patch.object(SchedulingRepository, "get_active_policy", side_effect=error):
            with self.assertLogs("salon_booking.domain.scheduling.policy_service", "WARNING"):
                policy = resolve_placement_policy(self.db, self.service.id, self.station.id)

        self.assertEqual(policy.duration_minutes, 60)
        self.assertFalse(policy.requires_approval)

    def test_zero_or_missing_base_time_uses_default(self):
        self.make_policy(self.service, self.station, base_time_minutes=0)
        self.assertEqual(
            resolve_placement_policy(self.db, self.service.id, self.station.id).duration_minutes, 60
        )

    def test_null_approval_flag_means_no_approval(self):
        self.make_policy(self.service, self.station, requires_staff_approval=None)
        self.assertFalse(
            resolve_placement_policy(self.db, self.service.id, self.station.id).requires_approval
        )

    def test_remote_booking_refused(self):
        self.make_policy(self.service, self.station, remote_booking_allowed=False)

        with self.assertRaises(StationNotBookableRemotely) as ctx:
            resolve_placement_policy(self.db, self.service.id, self.station.id)
        self.assertEqual(ctx.exception.status_code, 403)

    def test_null_remote_flag_is_allowed(self):
        self.make_policy(self.service, self.station, remote_booking_allowed=None)
        self.assertEqual(
            resolve_placement_policy(self.db, self.service.id, self.station.id).duration_minutes, 45
        )

    def test_no_station_returns_default_without_lookup(self):
        with patch.object(SchedulingRepository, "get_active_policy") as lookup:
            policy = resolve_placement_policy(self.db, self.service.id, None)

        lookup.assert_not_called()
        self.assertEqual(policy.duration_minutes, 60)

    def test_service_required(self):
        with self.assertRaises(MissingField) as ctx:
            resolve_placement_policy(self.db, "", self.station.id)
        self.assertEqual(ctx.exception.field, "serviceId")
