import logging
from functools import lru_cache
from typing import Any, Dict

import httpx
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from .config import API_PREFIX, HTTP_TIMEOUT, openweathermap_api_key

OPEN_METEO_GEOCODE_URL = "https://geocoding-api.open-meteo.com/v1/search"
OWM_GEOCODE_URL = "http://api.openweathermap.org/geo/1.0/direct"
UA = "wanderbloom/1.0"

router = APIRouter()
logger = logging.getLogger(__name__)


class GeocodingError(RuntimeError):
    """Raised when a location cannot be resolved to coordinates."""


def _http_client() -> httpx.Client:
    return httpx.Client(timeout=HTTP_TIMEOUT, headers={"User-Agent": UA})


def _norm(s: str) -> str:
    return " ".join((s or "").split())


def _geocode_openweathermap(location: str, key: str) -> Dict[str, Any] | None:
    params = {"q": location, "limit": 1, "appid": key}
    try:
        with _http_client() as c:
            r = c.get(OWM_GEOCODE_URL, params=params)
        if r.status_code != 200:
            logger.warning("OpenWeatherMap geocoding failed (%s) for %s", r.status_code, location)
            return None
        results = r.json() or []
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("OpenWeatherMap geocoding unavailable for %s: %s", location, exc)
        return None
    if not isinstance(results, list) or not results:
        return None
    rec = results[0]
    return {
        "name": rec.get("name") or location,
        "lat": float(rec["lat"]),
        "lon": float(rec["lon"]),
        "country": rec.get("country"),
        "source": "openweathermap",
    }


def _geocode_open_meteo(location: str) -> Dict[str, Any] | None:
    params = {"name": location, "count": 1, "language": "en", "format": "json"}
    with _http_client() as c:
        r = c.get(OPEN_METEO_GEOCODE_URL, params=params)
    if r.status_code != 200:
        logger.warning("Open-Meteo geocoding failed (%s) for %s", r.status_code, location)
        return None
    results = (r.json() or {}).get("results") or []
    if not results:
        return None
    rec = results[0]
    return {
        "name": rec.get("name") or location,
        "lat": float(rec["latitude"]),
        "lon": float(rec["longitude"]),
        "country": rec.get("country"),
        "source": "open-meteo",
    }


@lru_cache(maxsize=256)
def _cached_geocode(location: str, owm_key: str) -> Dict[str, Any]:
    place = None
    if owm_key:
        place = _geocode_openweathermap(location, owm_key)
    if place is None:
        place = _geocode_open_meteo(location)
    if place is None:
        raise GeocodingError("Location not found")
    logger.info("Geocoded %s -> (%s, %s) via %s", location, place["lat"], place["lon"], place["source"])
    return place


def geocode(location: str) -> Dict[str, Any]:
    query = _norm(location)
    if not query:
        raise GeocodingError("Location not found")
    return dict(_cached_geocode(query, openweathermap_api_key()))


@router.get(f"{API_PREFIX}/geocode")
def geocode_location(location: str = Query(..., description="City or place name")):
    try:
        return JSONResponse(geocode(location))
    except GeocodingError as exc:
        return JSONResponse({"error": str(exc)}, status_code=404)
    except httpx.HTTPError as exc:
        logger.error("Geocoding request failed: %s", exc, exc_info=True)
        return JSONResponse({"error": "Geocoding service unavailable"}, status_code=502)
