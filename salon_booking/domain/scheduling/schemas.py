"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from .time_calculator import to_utc_aware


class ReserveAppointmentRequest(BaseModel):
    """Body of POST /reserve-appointment"""

    serviceId: Optional[str] = None
    treatmentId: Optional[str] = None  # Legacy alias for serviceId
    customerId: Optional[str] = None
    date: Optional[str] = None
    stationId: Optional[str] = None
    startTime: Optional[str] = None
    notes: Optional[str] = None
    appointmentKind: Optional[str] = None
    appointmentName: Optional[str] = None

    @property
    def effective_service_id(self) -> Optional[str]:
        return self.serviceId or self.treatmentId


class SelectedHours(BaseModel):
    start: Optional[str] = None
    end: Optional[str] = None


class MoveAppointmentRequest(BaseModel):
    """Body of POST /move-appointment"""

    appointmentId: Optional[str] = None
    newStationId: Optional[str] = None
    newStartTime: Optional[str] = None
    newEndTime: Optional[str] = None
    oldStationId: Optional[str] = None
    oldStartTime: Optional[str] = None
    oldEndTime: Optional[str] = None
    appointmentType: Optional[str] = None
    newGardenAppointmentType: Optional[str] = None
    newGardenIsTrial: Optional[bool] = None
    selectedHours: Optional[SelectedHours] = None
    gardenTrimNails: Optional[bool] = None
    gardenBrush: Optional[bool] = None
    gardenBath: Optional[bool] = None
    latePickupRequested: Optional[bool] = None
    latePickupNotes: Optional[str] = None
    internalNotes: Optional[str] = None


class GetProposedMeetingRequest(BaseModel):
    """Body of POST /get-proposed-meeting"""

    meetingId: Optional[str] = None

    @field_validator("meetingId")
    @classmethod
    def strip_meeting_id(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class BookProposedMeetingRequest(GetProposedMeetingRequest):
    """Body of POST /book-proposed-meeting"""

    code: Optional[str] = None

    @field_validator("code")
    @classmethod
    def strip_value(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: str
    customer_id: str
    station_id: Optional[str]
    service_id: Optional[str]
    service_type: str
    start_at: datetime
    end_at: datetime
    status: str
    payment_status: str
    appointment_kind: str
    appointment_name: Optional[str] = None
    customer_notes: Optional[str] = None
    internal_notes: Optional[str] = None
    garden_appointment_type: Optional[str] = None
    garden_is_trial: Optional[bool] = None
    late_pickup_requested: Optional[bool] = None
    late_pickup_notes: Optional[str] = None
    garden_trim_nails: Optional[bool] = None
    garden_brush: Optional[bool] = None
    garden_bath: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("start_at", "end_at", "created_at", "updated_at")
    @classmethod
    def as_utc(cls, v):
        return to_utc_aware(v)

    class Config:
        from_attributes = True


class StationResponse(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class ScheduleDayResponse(BaseModel):
    """Manager schedule for one business day"""

    date: str
    stations: list[StationResponse]
    appointments: list[AppointmentResponse]


class MeetingInviteResponse(BaseModel):
    id: str
    customerId: Optional[str] = None
    customerName: Optional[str] = None
    source: str
    sourceCategoryId: Optional[str] = None


class MeetingCategoryResponse(BaseModel):
    id: str
    customerTypeId: str
    customerTypeName: Optional[str] = None


class ProposedMeetingResponse(BaseModel):
    """Public view of a proposed meeting; the claim code is never exposed"""

    id: str
    stationId: Optional[str] = None
    stationName: Optional[str] = None
    serviceType: str
    startAt: Optional[datetime] = None
    endAt: Optional[datetime] = None
    status: str
    title: Optional[str] = None
    summary: Optional[str] = None
    notes: Optional[str] = None
    rescheduleAppointmentId: Optional[str] = None
    rescheduleCustomerId: Optional[str] = None
    rescheduleOriginalStartAt: Optional[datetime] = None
    rescheduleOriginalEndAt: Optional[datetime] = None
    invites: list[MeetingInviteResponse] = []
    categories: list[MeetingCategoryResponse] = []

    @field_validator("startAt", "endAt", "rescheduleOriginalStartAt", "rescheduleOriginalEndAt")
    @classmethod
    def as_utc(cls, v):
        return to_utc_aware(v)
