"""Virtual station identifiers used by the manager schedule's garden columns"""

from typing import Optional

# Day-care "columns" on the schedule board; they are not physical stations
GARDEN_DEFAULT_STATION_ID = "garden-default"
VIRTUAL_GARDEN_STATION_IDS = frozenset(
    {
        GARDEN_DEFAULT_STATION_ID,
        "garden-station",
        "garden-full-day",
        "garden-trial",
        "garden-hourly",
    }
)


def is_virtual_station(station_id: Optional[str]) -> bool:
    return station_id in VIRTUAL_GARDEN_STATION_IDS


def normalize_station_id(station_id: Optional[str]) -> Optional[str]:
    """Map a virtual garden column to "no station"; physical ids pass through"""
    if not station_id or is_virtual_station(station_id):
        return None
    return station_id
