"""Scheduling router - FastAPI endpoints for the appointment placement engine"""

import json
import logging
from typing import Optional

import pydantic
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import resolve_principal, security
from ...cache import invalidate_schedule_days
from ...config import BOOKING_RATE_LIMIT, BOOKING_RATE_WINDOW_SECONDS
from ...database import get_db
from ...rate_limiter import create_rate_limiter
from .errors import MissingField, SchedulingError, StoreFailure, ValidationError
from .proposal_service import ProposedMeetingService
from .relocation_service import RelocationService
from .reservation_service import ReservationService
from .schedule_service import ScheduleService
from .schemas import (
    AppointmentResponse,
    BookProposedMeetingRequest,
    GetProposedMeetingRequest,
    MoveAppointmentRequest,
    ReserveAppointmentRequest,
)
from .time_calculator import business_date_of, parse_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Scheduling"])

booking_rate_limit = create_rate_limiter(
    limit=BOOKING_RATE_LIMIT,
    window_seconds=BOOKING_RATE_WINDOW_SECONDS,
    key_prefix="book_proposed_meeting",
)


async def read_body(request: Request, model: type[pydantic.BaseModel]):
    """Parse the JSON body into ``model``; any malformed input is a 400"""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Invalid JSON body") from e

    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(f"Invalid value for {field}: {first.get('msg')}") from e


def error_response(exc: Exception, legacy: bool = False) -> JSONResponse:
    """
    Map an exception onto the endpoint's JSON envelope.
    Move keeps the legacy ``{error}`` shape; the others answer ``{success: false, error}``.
    """
    if isinstance(exc, SQLAlchemyError):
        exc = StoreFailure(str(exc))

    if isinstance(exc, SchedulingError):
        status_code, message = exc.status_code, exc.message
        if status_code >= 500:
            logger.error(f"❌ {message}")
    else:
        logger.exception(f"❌ Unexpected error: {exc}")
        status_code, message = 500, str(exc) or "Unexpected error"

    content = {"error": message} if legacy else {"success": False, "error": message}
    return JSONResponse(status_code=status_code, content=content)


@router.post("/reserve-appointment")
async def reserve_appointment(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
):
    """Reserve a grooming slot; pending when the station requires staff approval"""
    try:
        data = await read_body(request, ReserveAppointmentRequest)
        principal = resolve_principal(credentials, required=False)
        result = ReservationService(db).reserve(data, principal)
    except Exception as e:
        return error_response(e)

    appointment = result.appointment
    invalidate_schedule_days([business_date_of(appointment.start_at)])
    return {
        "success": True,
        "message": result.message,
        "data": AppointmentResponse.model_validate(appointment).model_dump(mode="json"),
    }


@router.post("/move-appointment")
async def move_appointment(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
):
    """Move an appointment to a new station and/or time window"""
    try:
        resolve_principal(credentials, required=True)
        data = await read_body(request, MoveAppointmentRequest)
        appointment = RelocationService(db).move(data)
    except Exception as e:
        return error_response(e, legacy=True)

    days = [business_date_of(appointment.start_at)]
    try:
        days.append(business_date_of(parse_timestamp(data.oldStartTime, "oldStartTime")))
    except SchedulingError:
        logger.warning(f"⚠️ Could not parse oldStartTime '{data.oldStartTime}' for cache invalidation")
    invalidate_schedule_days(days)

    return {
        "success": True,
        "message": "Appointment moved successfully",
        "appointment": AppointmentResponse.model_validate(appointment).model_dump(mode="json"),
    }


@router.post("/get-proposed-meeting")
async def get_proposed_meeting(request: Request, db: Session = Depends(get_db)):
    """Meeting details for the claim page, opened from a shared link"""
    try:
        data = await read_body(request, GetProposedMeetingRequest)
        meeting = ProposedMeetingService(db).describe(data.meetingId)
    except Exception as e:
        return error_response(e)

    return {"success": True, "meeting": meeting.model_dump(mode="json")}


@router.post("/book-proposed-meeting", dependencies=[Depends(booking_rate_limit)])
async def book_proposed_meeting(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
):
    """Claim a proposed meeting and turn it into a confirmed appointment"""
    try:
        principal = resolve_principal(credentials, required=True)
        data = await read_body(request, BookProposedMeetingRequest)
        result = ProposedMeetingService(db).book(principal, data.meetingId, data.code)
    except Exception as e:
        return error_response(e)

    invalidate_schedule_days(result.affected_dates)
    return {
        "success": True,
        "appointmentId": result.appointment_id,
        "meetingId": result.meeting_id,
    }


@router.get("/manager-schedule")
async def get_manager_schedule(
    date: Optional[str] = Query(None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
):
    """Stations and active appointments for one business day"""
    try:
        resolve_principal(credentials, required=True)
        if not date:
            raise MissingField("date")
        view = ScheduleService(db).get_day(date)
    except Exception as e:
        return error_response(e)

    return {"success": True, "data": view}
