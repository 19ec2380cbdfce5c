import logging
from typing import Optional

import requests
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from .config import API_PREFIX, HTTP_TIMEOUT, google_maps_api_key

GOOGLE_MAPS_BASE = "https://maps.googleapis.com/maps/api"
TRAVEL_MODES = ("driving", "walking", "bicycling", "transit")

router = APIRouter()
logger = logging.getLogger(__name__)


def travel_duration(origin: str, destination: str, mode: str = "driving") -> Optional[str]:
    """Human readable travel time between two places, e.g. ``"25 mins"``."""
    key = google_maps_api_key()
    if not key:
        logger.warning("Google Maps API key not found")
        return None
    if mode == "biking":
        mode = "bicycling"
    try:
        resp = requests.get(
            f"{GOOGLE_MAPS_BASE}/distancematrix/json",
            params={
                "origins": origin,
                "destinations": destination,
                "mode": mode if mode in TRAVEL_MODES else "driving",
                "key": key,
            },
            timeout=HTTP_TIMEOUT,
        )
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("Error calculating travel duration: %s", exc)
        return None

    rows = data.get("rows") or []
    elements = (rows[0].get("elements") or []) if rows else []
    duration = (elements[0].get("duration") or {}) if elements else {}
    return duration.get("text")


@router.get(f"{API_PREFIX}/travel-duration")
def get_travel_duration(
    origin: str = Query(..., description="Starting location"),
    destination: str = Query(..., description="First waypoint or destination"),
    mode: str = Query("driving"),
):
    return JSONResponse(
        {
            "origin": origin,
            "destination": destination,
            "mode": mode,
            "duration": travel_duration(origin, destination, mode),
        }
    )
