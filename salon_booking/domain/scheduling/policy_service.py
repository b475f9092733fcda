"""Duration & eligibility resolver for service/station pairs"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import DEFAULT_DURATION_MINUTES
from .errors import MissingField, StationNotBookableRemotely
from .repository import SchedulingRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementPolicy:
    duration_minutes: int
    requires_approval: bool
    is_fallback: bool = False


DEFAULT_POLICY = PlacementPolicy(
    duration_minutes=DEFAULT_DURATION_MINUTES, requires_approval=False, is_fallback=True
)


def resolve_placement_policy(
    db: Session, service_id: Optional[str], station_id: Optional[str]
) -> PlacementPolicy:
    """
    Translate a (service, station) pair into a duration and an approval flag.

    Lookup failures and missing rows fail open to the default duration with no
    approval required. A row that forbids remote booking stops the request.
    """
    if not service_id or not str(service_id).strip():
        raise MissingField("serviceId")

    if not station_id:
        logger.info(f"ℹ️ No station for service {service_id}, using default placement policy")
        return DEFAULT_POLICY

    try:
        policy = SchedulingRepository.get_active_policy(db, service_id, station_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(
            f"⚠️ Policy lookup failed for service={service_id} station={station_id}, "
            f"falling back to {DEFAULT_POLICY.duration_minutes} min without approval: {e}"
        )
        return DEFAULT_POLICY

    if not policy:
        logger.warning(
            f"⚠️ No active policy for service={service_id} station={station_id}, "
            f"falling back to {DEFAULT_POLICY.duration_minutes} min without approval"
        )
        return DEFAULT_POLICY

    if policy.remote_booking_allowed is False:
        logger.warning(
            f"🚫 Remote booking not allowed for service={service_id} station={station_id}"
        )
        raise StationNotBookableRemotely()

    minutes = policy.base_time_minutes
    duration = int(minutes) if minutes and minutes > 0 else DEFAULT_DURATION_MINUTES
    requires_approval = bool(policy.requires_staff_approval)

    logger.info(
        f"🔎 Placement policy for service={service_id} station={station_id}: "
        f"{duration} min, requires_approval={requires_approval}"
    )
    return PlacementPolicy(duration_minutes=duration, requires_approval=requires_approval)
