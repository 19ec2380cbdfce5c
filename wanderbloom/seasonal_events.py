import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from . import llm
from .config import API_PREFIX
from .parsing import loads_lenient, validate_items
from .schemas import SeasonalEvent

router = APIRouter()
logger = logging.getLogger(__name__)


def build_events_prompt(city: str, region: Optional[str], month: str) -> str:
    place = f"{city}, {region}" if region else city
    return (
        f"Generate a list of seasonal events and natural phenomena happening in {place} in {month}. "
        "Focus on rare, time-limited events that would make for unique experiences. "
        "Include the event name, a description, why it's special, and the best viewing times/locations. "
        "Format as a JSON array of objects with these properties: "
        '{"name": string, "description": string, "month": string, "location": string, "whyRecommended": string}. '
        "Return ONLY the JSON array."
    )


def get_seasonal_events(city: str, region: Optional[str] = None, month: Optional[str] = None) -> List[SeasonalEvent]:
    month = month or date.today().strftime("%B")
    try:
        raw = llm.generate_text(
            build_events_prompt(city, region, month),
            temperature=0.7,
            max_output_tokens=2048,
            response_mime_type="application/json",
        )
        data = loads_lenient(raw, expect=list)
        if isinstance(data, dict):
            data = data.get("events") or []
        if not isinstance(data, list):
            return []
        return validate_items(data, SeasonalEvent, label="seasonal event")
    except Exception as exc:
        logger.error("Error fetching seasonal events for %s: %s", city, exc, exc_info=True)
        return []


@router.get(f"{API_PREFIX}/seasonal-events")
def seasonal_events(
    city: str = Query(..., description="City to look up"),
    region: Optional[str] = Query(None, description="State or region, e.g. California"),
):
    events = get_seasonal_events(city, region)
    return JSONResponse({"city": city, "region": region, "events": [event.model_dump() for event in events]})
