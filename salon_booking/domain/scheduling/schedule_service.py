"""Manager schedule - one business day of stations and appointments"""

import logging

from sqlalchemy.orm import Session

from ...cache import schedule_cache
from .repository import SchedulingRepository
from .schemas import AppointmentResponse, ScheduleDayResponse, StationResponse
from .time_calculator import business_day_bounds, parse_date

logger = logging.getLogger(__name__)


class ScheduleService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    def get_day(self, date_str: str) -> dict:
        day = parse_date(date_str)

        cached_view = schedule_cache.get_day(day)
        if cached_view is not None:
            return cached_view

        start, end = business_day_bounds(day)
        stations = self.repo.get_active_stations(self.db)
        appointments = self.repo.get_appointments_between(self.db, start, end)

        view = ScheduleDayResponse(
            date=day.isoformat(),
            stations=[StationResponse.model_validate(s) for s in stations],
            appointments=[AppointmentResponse.model_validate(a) for a in appointments],
        ).model_dump(mode="json")

        schedule_cache.store_day(day, view)
        logger.info(
            f"📅 Schedule for {day}: {len(stations)} stations, {len(appointments)} appointments"
        )
        return view
