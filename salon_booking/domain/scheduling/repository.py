"""Scheduling repository - Database operations for appointments, policies and meetings"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ...models import (
    Appointment,
    Customer,
    ProposedMeeting,
    Service,
    ServiceStationPolicy,
    Station,
)

ACTIVE_APPOINTMENT_STATUSES = ("pending", "scheduled")


class SchedulingRepository:
    """Repository for scheduling database operations"""

    # Policy
    @staticmethod
    def get_active_policy(
        db: Session, service_id: str, station_id: str
    ) -> Optional[ServiceStationPolicy]:
        """Get the active service/station policy row for a pair"""
        return (
            db.query(ServiceStationPolicy)
            .filter(
                ServiceStationPolicy.service_id == service_id,
                ServiceStationPolicy.station_id == station_id,
                ServiceStationPolicy.is_active.is_(True),
            )
            .first()
        )

    # Customers and stations
    @staticmethod
    def get_customer_by_id(db: Session, customer_id: str) -> Optional[Customer]:
        return db.query(Customer).filter(Customer.id == customer_id).first()

    @staticmethod
    def get_customer_by_auth_user_id(db: Session, auth_user_id: str) -> Optional[Customer]:
        """Get the customer linked to an authenticated identity"""
        return db.query(Customer).filter(Customer.auth_user_id == auth_user_id).first()

    @staticmethod
    def get_service(db: Session, service_id: str) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_station(db: Session, station_id: str) -> Optional[Station]:
        return db.query(Station).filter(Station.id == station_id).first()

    @staticmethod
    def get_active_stations(db: Session) -> list[Station]:
        return db.query(Station).filter(Station.is_active.is_(True)).order_by(Station.name).all()

    # Appointments
    @staticmethod
    def get_appointment(
        db: Session, appointment_id: str, service_type: Optional[str] = None
    ) -> Optional[Appointment]:
        query = db.query(Appointment).filter(Appointment.id == appointment_id)
        if service_type:
            query = query.filter(Appointment.service_type == service_type)
        return query.first()

    @staticmethod
    def find_overlapping_appointments(
        db: Session,
        station_id: str,
        start_at: datetime,
        end_at: datetime,
        exclude_appointment_id: Optional[str] = None,
    ) -> list[Appointment]:
        """
        Non-cancelled appointments on a station intersecting [start_at, end_at).
        Overlap condition: existing.start < end_at AND existing.end > start_at
        """
        query = db.query(Appointment).filter(
            Appointment.station_id == station_id,
            Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES),
            Appointment.start_at < end_at,
            Appointment.end_at > start_at,
        )
        if exclude_appointment_id:
            query = query.filter(Appointment.id != exclude_appointment_id)
        return query.all()

    @staticmethod
    def add_appointment(db: Session, **appointment_data) -> Appointment:
        """Stage a new appointment (flushed, not committed)"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def apply_updates(appointment: Appointment, **updates) -> Appointment:
        """Write every given field, including explicit None values"""
        for key, value in updates.items():
            if hasattr(appointment, key):
                setattr(appointment, key, value)
        return appointment

    @staticmethod
    def get_appointments_between(db: Session, start: datetime, end: datetime) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(
                Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES),
                Appointment.start_at < end,
                Appointment.end_at > start,
            )
            .order_by(Appointment.start_at)
            .all()
        )

    # Proposed meetings
    @staticmethod
    def get_meeting(db: Session, meeting_id: str) -> Optional[ProposedMeeting]:
        """Get a proposed meeting with its invites and categories"""
        return (
            db.query(ProposedMeeting)
            .options(
                selectinload(ProposedMeeting.invites),
                selectinload(ProposedMeeting.categories),
            )
            .filter(ProposedMeeting.id == meeting_id)
            .first()
        )

    @staticmethod
    def claim_meeting(db: Session, meeting_id: str) -> bool:
        """
        Compare-and-swap proposed → booked.
        Returns False when another request already moved the meeting out of 'proposed'.
        """
        updated = (
            db.query(ProposedMeeting)
            .filter(
                ProposedMeeting.id == meeting_id,
                or_(ProposedMeeting.status == "proposed", ProposedMeeting.status.is_(None)),
            )
            .update({ProposedMeeting.status: "booked"}, synchronize_session=False)
        )
        return updated == 1

    @staticmethod
    def link_meeting(
        db: Session, meeting_id: str, appointment_id: str, customer_id: str
    ) -> None:
        db.query(ProposedMeeting).filter(ProposedMeeting.id == meeting_id).update(
            {
                ProposedMeeting.reschedule_appointment_id: appointment_id,
                ProposedMeeting.reschedule_customer_id: customer_id,
            },
            synchronize_session=False,
        )
