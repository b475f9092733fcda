import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a UUID primary key"""
    return str(uuid.uuid4())


class CustomerType(Base):
    __tablename__ = "customer_types"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    customers = relationship("Customer", back_populates="customer_type")


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=generate_id)
    # Identity link to the authenticated principal (token "sub" claim)
    auth_user_id = Column(String(255), unique=True, index=True, nullable=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    customer_type_id = Column(String(36), ForeignKey("customer_types.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer_type = relationship("CustomerType", back_populates="customers")
    appointments = relationship("Appointment", back_populates="customer")


class Service(Base):
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    category = Column(String(50), default="grooming", nullable=False)  # grooming, garden
    created_at = Column(DateTime, server_default=func.now())


class Station(Base):
    __tablename__ = "stations"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    policies = relationship("ServiceStationPolicy", back_populates="station")


class ServiceStationPolicy(Base):
    """Which stations may perform which services, and under what rules"""

    __tablename__ = "service_station_matrix"

    id = Column(String(36), primary_key=True, default=generate_id)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False, index=True)
    station_id = Column(String(36), ForeignKey("stations.id"), nullable=False, index=True)
    base_time_minutes = Column(Integer, nullable=True)
    requires_staff_approval = Column(Boolean, default=False, nullable=True)
    remote_booking_allowed = Column(Boolean, default=True, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service = relationship("Service")
    station = relationship("Station", back_populates="policies")


class Appointment(Base):
    """A scheduled occupation of one station for one customer"""

    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=generate_id)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    # Null only for garden (day-care) placements
    station_id = Column(String(36), ForeignKey("stations.id"), nullable=True, index=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=True)
    service_type = Column(String(20), default="grooming", nullable=False)  # grooming, garden

    # Stored as naive UTC
    start_at = Column(DateTime, nullable=False, index=True)
    end_at = Column(DateTime, nullable=False)

    # Status workflow: pending (awaiting staff approval) → scheduled → cancelled
    status = Column(String(20), default="scheduled", nullable=False, index=True)
    payment_status = Column(String(20), default="unpaid", nullable=False)  # unpaid, paid, partial
    appointment_kind = Column(String(20), default="business", nullable=False)  # business, private
    appointment_name = Column(String(255), nullable=True)

    customer_notes = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)

    # Garden (day-care) attributes
    garden_appointment_type = Column(String(20), nullable=True)  # full-day, hourly
    garden_is_trial = Column(Boolean, nullable=True)
    late_pickup_requested = Column(Boolean, nullable=True)
    late_pickup_notes = Column(Text, nullable=True)
    garden_trim_nails = Column(Boolean, nullable=True)
    garden_brush = Column(Boolean, nullable=True)
    garden_bath = Column(Boolean, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer", back_populates="appointments")
    station = relationship("Station")
    service = relationship("Service")


class ProposedMeeting(Base):
    """Staff-published open time window that invited customers can claim once"""

    __tablename__ = "proposed_meetings"

    id = Column(String(36), primary_key=True, default=generate_id)
    station_id = Column(String(36), nullable=True)
    service_type = Column(String(20), default="grooming", nullable=False)  # grooming, garden
    start_at = Column(DateTime, nullable=True)
    end_at = Column(DateTime, nullable=True)
    # proposed → booked (one-time transition); cancelled when withdrawn by staff
    status = Column(String(20), default="proposed", nullable=True, index=True)
    code = Column(String(64), nullable=True, index=True)  # Shareable claim token
    title = Column(String(255), nullable=True)
    summary = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    # Reschedule linkage
    reschedule_appointment_id = Column(String(36), nullable=True)
    reschedule_customer_id = Column(String(36), nullable=True)
    reschedule_original_start_at = Column(DateTime, nullable=True)
    reschedule_original_end_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    invites = relationship(
        "ProposedMeetingInvite",
        back_populates="meeting",
        cascade="all, delete-orphan",
        order_by="ProposedMeetingInvite.position",
    )
    categories = relationship(
        "ProposedMeetingCategory",
        back_populates="meeting",
        cascade="all, delete-orphan",
        order_by="ProposedMeetingCategory.position",
    )


class ProposedMeetingInvite(Base):
    __tablename__ = "proposed_meeting_invites"

    id = Column(String(36), primary_key=True, default=generate_id)
    proposed_meeting_id = Column(
        String(36), ForeignKey("proposed_meetings.id"), nullable=False, index=True
    )
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)
    source = Column(String(20), default="manual", nullable=False)  # manual, category
    source_category_id = Column(String(36), nullable=True)
    position = Column(Integer, default=0, nullable=False)

    meeting = relationship("ProposedMeeting", back_populates="invites")
    customer = relationship("Customer")


class ProposedMeetingCategory(Base):
    __tablename__ = "proposed_meeting_categories"

    id = Column(String(36), primary_key=True, default=generate_id)
    proposed_meeting_id = Column(
        String(36), ForeignKey("proposed_meetings.id"), nullable=False, index=True
    )
    customer_type_id = Column(String(36), ForeignKey("customer_types.id"), nullable=False)
    position = Column(Integer, default=0, nullable=False)

    meeting = relationship("ProposedMeeting", back_populates="categories")
    customer_type = relationship("CustomerType")
