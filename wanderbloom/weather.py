import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from .config import (
    API_PREFIX,
    HTTP_TIMEOUT,
    ConfigurationError,
    openweathermap_api_key,
    weather_provider,
)
from .geocode import GeocodingError, geocode
from .schemas import EcoImpact, WeatherData

OWM_API_BASE = "https://api.openweathermap.org/data/2.5"
OPEN_METEO_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
OPEN_METEO_CURRENT_FIELDS = (
    "temperature_2m,relative_humidity_2m,apparent_temperature,"
    "precipitation,weather_code,wind_speed_10m"
)

# WMO weather interpretation codes used by Open-Meteo
WEATHER_CODES: Dict[int, str] = {
    0: "Clear",
    1: "Mainly Clear",
    2: "Partly Cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing Rime Fog",
    51: "Light Drizzle",
    53: "Moderate Drizzle",
    55: "Dense Drizzle",
    61: "Slight Rain",
    63: "Moderate Rain",
    65: "Heavy Rain",
    71: "Slight Snow",
    73: "Moderate Snow",
    75: "Heavy Snow",
    77: "Snow Grains",
    80: "Slight Rain Showers",
    81: "Moderate Rain Showers",
    82: "Violent Rain Showers",
    85: "Slight Snow Showers",
    86: "Heavy Snow Showers",
    95: "Thunderstorm",
    96: "Thunderstorm with Slight Hail",
    99: "Thunderstorm with Heavy Hail",
}

LOCATION_NOT_FOUND = "Location not found. Please try a different location."
FETCH_FAILED = "Failed to fetch weather data. Please try again later."
INVALID_OWM_KEY = "Invalid OpenWeatherMap API key. Please check your .env file."

router = APIRouter()
logger = logging.getLogger(__name__)


class WeatherError(RuntimeError):
    """User-facing weather lookup failure."""


def _locate(location: str) -> Dict[str, Any]:
    try:
        return geocode(location)
    except GeocodingError as exc:
        raise WeatherError(LOCATION_NOT_FOUND) from exc
    except Exception as exc:
        logger.error("Geocoding failed for %s: %s", location, exc, exc_info=True)
        raise WeatherError(FETCH_FAILED) from exc


def _get_json(
    url: str,
    params: Dict[str, Any],
    unauthorized: str = FETCH_FAILED,
    not_found: str = FETCH_FAILED,
) -> Dict[str, Any]:
    try:
        response = requests.get(url, params=params, timeout=HTTP_TIMEOUT)
    except requests.RequestException as exc:
        logger.error("Weather API request failed: %s", exc)
        raise WeatherError(FETCH_FAILED) from exc
    if response.status_code == 401:
        raise WeatherError(unauthorized)
    if response.status_code == 404:
        raise WeatherError(not_found)
    if response.status_code >= 400:
        logger.error("Weather API error (%s): %s", response.status_code, response.text)
        raise WeatherError(FETCH_FAILED)
    try:
        data = response.json()
    except ValueError as exc:
        logger.error("Weather API returned a non-JSON body: %.200s", response.text)
        raise WeatherError(FETCH_FAILED) from exc
    if not isinstance(data, dict):
        logger.error("Unexpected weather payload type: %s", type(data).__name__)
        raise WeatherError(FETCH_FAILED)
    return data


def _number(value: Any) -> Optional[float]:
    return float(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else None


def fetch_openweathermap(location: str) -> WeatherData:
    key = openweathermap_api_key(required=True)
    place = _locate(location)
    data = _get_json(
        f"{OWM_API_BASE}/weather",
        {"lat": place["lat"], "lon": place["lon"], "appid": key, "units": "imperial"},
        unauthorized=INVALID_OWM_KEY,
        not_found=LOCATION_NOT_FOUND,
    )
    try:
        main = data["main"]
        conditions = data.get("weather") or [{}]
        rain = data.get("rain") or {}
        return WeatherData(
            location=place["name"],
            temperature=round(main["temp"]),
            condition=conditions[0].get("description") or "Unknown",
            humidity=_number(main.get("humidity")),
            wind_speed=_number((data.get("wind") or {}).get("speed")),
            feels_like=round(main["feels_like"]) if _number(main.get("feels_like")) is not None else None,
            precipitation=_number(rain.get("1h")) or 0.0,
            units="imperial",
            source="openweathermap",
            eco_impact=EcoImpact(),
        )
    except (KeyError, TypeError, IndexError, AttributeError) as exc:
        logger.error("Unexpected OpenWeatherMap payload: %s", data)
        raise WeatherError(FETCH_FAILED) from exc


def fetch_open_meteo(location: str) -> WeatherData:
    place = _locate(location)
    data = _get_json(
        OPEN_METEO_FORECAST_URL,
        {
            "latitude": place["lat"],
            "longitude": place["lon"],
            "current": OPEN_METEO_CURRENT_FIELDS,
            "timezone": "auto",
        },
    )
    current = data.get("current") or {}
    temperature = _number(current.get("temperature_2m"))
    if temperature is None:
        logger.error("Unexpected Open-Meteo payload: %s", data)
        raise WeatherError(FETCH_FAILED)
    feels_like = _number(current.get("apparent_temperature"))
    return WeatherData(
        location=place["name"],
        temperature=round(temperature),
        condition=WEATHER_CODES.get(current.get("weather_code"), "Unknown"),
        humidity=_number(current.get("relative_humidity_2m")),
        wind_speed=_number(current.get("wind_speed_10m")),
        feels_like=round(feels_like) if feels_like is not None else None,
        precipitation=_number(current.get("precipitation")) or 0.0,
        units="metric",
        source="open-meteo",
    )


def get_current_weather(location: str, provider: Optional[str] = None) -> WeatherData:
    provider = (provider or weather_provider()).lower()
    logger.info("Fetching weather for %s via %s", location, provider)
    if provider == "openweathermap":
        return fetch_openweathermap(location)
    if provider == "open-meteo":
        return fetch_open_meteo(location)
    raise WeatherError(f"Unknown weather provider '{provider}'")


def get_weather_alerts(location: str) -> List[str]:
    key = openweathermap_api_key()
    if not key:
        return []
    try:
        place = geocode(location)
        response = requests.get(
            f"{OWM_API_BASE}/onecall",
            params={
                "lat": place["lat"],
                "lon": place["lon"],
                "appid": key,
                "exclude": "current,minutely,hourly,daily",
            },
            timeout=HTTP_TIMEOUT,
        )
        response.raise_for_status()
        alerts = response.json().get("alerts") or []
        return [alert.get("event") for alert in alerts if isinstance(alert, dict) and alert.get("event")]
    except Exception as exc:
        logger.error("Error fetching weather alerts: %s", exc)
        return []


def get_local_weather_events(location: str) -> List[str]:
    # no events provider is wired up yet
    return []


def describe(weather: WeatherData) -> str:
    unit = "°F" if weather.units == "imperial" else "°C"
    return f"{weather.temperature}{unit}, {weather.condition}"


@router.get(f"{API_PREFIX}/weather")
def current_weather(
    location: str = Query(..., description="City or place name"),
    provider: Optional[str] = Query(None, description="openweathermap or open-meteo"),
):
    try:
        weather = get_current_weather(location, provider)
    except (WeatherError, ConfigurationError) as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    weather.alerts = get_weather_alerts(location)
    weather.local_events = get_local_weather_events(location)
    payload = weather.model_dump()
    payload["generatedAt"] = datetime.utcnow().isoformat() + "Z"
    return JSONResponse(payload)


@router.get(f"{API_PREFIX}/weather-alerts")
def weather_alerts(location: str = Query(..., description="City or place name")):
    return JSONResponse({"location": location, "alerts": get_weather_alerts(location)})
