import os

from dotenv import load_dotenv

load_dotenv()

API_PREFIX = "/api/v1"
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))


class ConfigurationError(RuntimeError):
    """Raised when a required API key or setting is missing."""


def _first_env(*names: str) -> str:
    for name in names:
        value = (os.getenv(name) or "").strip()
        if value:
            return value
    return ""


def openweathermap_api_key(required: bool = False) -> str:
    key = _first_env("OPENWEATHERMAP_API_KEY", "VITE_OPENWEATHERMAP_API_KEY")
    if required and not key:
        raise ConfigurationError(
            "OpenWeatherMap API key is not configured. Set OPENWEATHERMAP_API_KEY in your .env file."
        )
    return key


def google_maps_api_key() -> str:
    return _first_env("GOOGLE_MAPS_API_KEY", "MAPS_API_KEY", "VITE_GOOGLE_MAPS_API_KEY")


def weather_provider() -> str:
    configured = (os.getenv("WEATHER_PROVIDER") or "").strip().lower()
    if configured in ("openweathermap", "open-meteo"):
        return configured
    return "openweathermap" if openweathermap_api_key() else "open-meteo"


def share_base_url() -> str:
    return (os.getenv("SHARE_BASE_URL") or "http://localhost:5173").rstrip("/")


def images_enabled() -> bool:
    return os.getenv("ENABLE_IMAGE_GENERATION", "false").lower() == "true"


def cors_origins() -> list[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:5173").split(",")
    return [origin.strip() for origin in raw if origin.strip()]
