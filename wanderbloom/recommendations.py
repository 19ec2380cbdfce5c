import json
import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Body, HTTPException
from fastapi.responses import JSONResponse

from . import images, llm
from .config import API_PREFIX, ConfigurationError, images_enabled
from .parsing import RecommendationParseError, parse_recommendations
from .schemas import AdventureRequest, Recommendation, WeatherData
from .weather import WeatherError, describe, get_current_weather

router = APIRouter()
logger = logging.getLogger(__name__)

RECOMMENDATION_SHAPE = """{
    "title": "string",
    "description": "string",
    "activities": ["string"],
    "estimatedDuration": "string (e.g., '2-3 hours', 'Full day', 'Half day')",
    "carbonFootprint": "string",
    "ecoFriendlyTips": ["string"],
    "estimatedCost": "string",
    "imagePrompt": "string (e.g., 'Beautiful scene of [location] during [season], highlighting [key features]')",
    "waypoints": [
      {
        "name": "string (e.g., 'Central Park')",
        "type": "attraction" | "restaurant",
        "description": "string",
        "estimatedDuration": "string (e.g., '1 hour', '30 minutes')",
        "seasonal": boolean,
        "seasonalDetails": "string (e.g., 'Best in spring for cherry blossoms')",
        "seasonalImagePrompt": "string"
      }
    ],
    "localPartners": ["string"],
    "automationOptions": {"autoBooking": boolean, "groupCoordination": boolean},
    "greenBusinesses": [
      {
        "name": "string",
        "type": "farmers-market" | "bike-rental" | "eco-tour" | "sustainable-shop",
        "certification": "string",
        "discount": "string",
        "description": "string",
        "location": "string"
      }
    ]
  }"""

DISTANCE_HINTS = {
    "short": "close by (under 2 miles)",
    "medium": "a moderate trip (2-5 miles)",
    "long": "worth a longer drive (5+ miles)",
}

ACTIVITY_HINTS = {
    "grocery": "grocery shopping, farmers markets and local produce",
    "food": "food and dining",
    "leisure": "leisure and events",
}


def seasonal_greeting(today: Optional[date] = None) -> str:
    month = (today or date.today()).month
    if 3 <= month <= 5:
        return "Spring's gentle touch brings new life"
    if 6 <= month <= 8:
        return "Summer's warmth invites adventure"
    if 9 <= month <= 11:
        return "Autumn's colors paint the landscape"
    return "Winter's quiet beauty awaits"


def build_prompt(request: AdventureRequest) -> str:
    location = request.location
    context: List[str] = [
        f"- Mood: {request.mood}",
        f"- Adventure type: {ACTIVITY_HINTS[request.activityType]}",
        f"- Distance: {DISTANCE_HINTS[request.distance]}",
    ]
    if request.transportMode:
        context.append(f"- Getting around by: {request.transportMode}")
    if request.interests:
        context.append(f"- Interests: {', '.join(request.interests)}")
    if request.isEcoMode:
        context.append("- Eco mode: prioritise low-carbon transport and green businesses")
    if request.weather:
        context.append(f"- Current weather: {request.weather}")
    if request.seasonalEvents:
        names = "; ".join(event.name for event in request.seasonalEvents)
        context.append(f"- Seasonal events happening now: {names}")

    return (
        f"Generate exactly {request.count} unique adventure recommendations for {location}.\n"
        "Take this traveller context into account:\n"
        + "\n".join(context)
        + "\n\nFor each recommendation, provide a JSON object with these exact properties:\n"
        f"{RECOMMENDATION_SHAPE}\n\n"
        "For waypoints, include:\n"
        "1. At least 3-5 key attractions or points of interest\n"
        "2. 1-2 restaurants or food stops\n"
        "3. Seasonal highlights and timing\n"
        "4. Estimated time at each location\n"
        "5. Brief descriptions of each stop\n"
        "6. A detailed image prompt for each seasonal waypoint\n\n"
        "For each recommendation, include:\n"
        "1. A compelling title and description\n"
        "2. A detailed image prompt that captures the essence of the adventure\n"
        "3. Seasonal highlights and activities\n"
        "4. Environmental impact and eco-friendly tips\n\n"
        "Return ONLY a valid JSON array of recommendations, with no additional text or markdown formatting."
    )


def attach_images(recommendations: List[Recommendation]) -> None:
    for recommendation in recommendations:
        if recommendation.imagePrompt:
            try:
                recommendation.image = images.generate_image(
                    images.recommendation_image_prompt(recommendation.imagePrompt)
                )
            except Exception as exc:
                logger.error("Error generating image for recommendation %s: %s", recommendation.title, exc)
                recommendation.image = None

        for waypoint in recommendation.waypoints:
            if not (waypoint.seasonal and waypoint.seasonalImagePrompt):
                continue
            try:
                waypoint.seasonalImage = images.generate_image(
                    images.waypoint_image_prompt(waypoint.seasonalImagePrompt)
                )
            except Exception as exc:
                logger.error("Error generating image for waypoint %s: %s", waypoint.name, exc)
                waypoint.seasonalImage = None


def get_adventure_recommendations(request: AdventureRequest) -> List[Recommendation]:
    if not request.location:
        raise ValueError("Please enter a location")

    raw_text = llm.generate_text(
        build_prompt(request),
        temperature=0.8,
        top_p=0.9,
        max_output_tokens=8192,
        response_mime_type="application/json",
    )
    logger.info("Raw model response for %s: %s", request.location, raw_text)
    recommendations = parse_recommendations(raw_text, min_items=3, max_items=request.count)

    if request.includeImages or images_enabled():
        attach_images(recommendations)
    return recommendations


@router.post(f"{API_PREFIX}/recommendations")
def recommend(request: AdventureRequest = Body(...)):
    if not request.location:
        raise HTTPException(status_code=400, detail="Please enter a location")

    weather: Optional[WeatherData] = None
    if request.includeWeather:
        try:
            weather = get_current_weather(request.location)
            if not request.weather:
                request.weather = describe(weather)
        except (WeatherError, ConfigurationError) as exc:
            logger.warning("Weather lookup failed for %s: %s", request.location, exc)

    logger.info(
        "Generating recommendations with: %s",
        json.dumps(request.model_dump(exclude={"seasonalEvents"}), default=str),
    )
    try:
        recommendations = get_adventure_recommendations(request)
    except RecommendationParseError as exc:
        logger.error("Recommendation parsing failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc))
    except Exception as exc:
        logger.error("Error generating recommendations: %s", exc, exc_info=True)
        raise HTTPException(status_code=502, detail="Failed to generate recommendations. Please try again.")

    return JSONResponse(
        {
            "location": request.location,
            "season": seasonal_greeting(),
            "recommendations": [rec.model_dump() for rec in recommendations],
            "weather": weather.model_dump() if weather else None,
            "generatedAt": datetime.utcnow().isoformat(),
        }
    )
