from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

Mood = Literal["adventurous", "relaxed", "social", "creative", "romantic"]
ActivityType = Literal["grocery", "food", "leisure"]
Distance = Literal["short", "medium", "long"]
TransportMode = Literal["walking", "biking", "driving"]
Interest = Literal["outdoors", "food", "events", "relaxation"]
CrowdLevel = Literal["low", "medium", "high"]

WAYPOINT_TYPES = ("attraction", "restaurant")
GREEN_BUSINESS_TYPES = ("farmers-market", "bike-rental", "eco-tour", "sustainable-shop")


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return [str(value)]


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return str(value).strip()


class Waypoint(BaseModel):
    name: str
    type: str = "attraction"
    description: str = ""
    estimatedDuration: str = ""
    seasonal: bool = False
    seasonalDetails: Optional[str] = None
    seasonalImagePrompt: Optional[str] = None
    seasonalImage: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> str:
        text = _as_text(value).lower()
        return text if text in WAYPOINT_TYPES else "attraction"

    @field_validator("description", "estimatedDuration", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _as_text(value)


class GreenBusiness(BaseModel):
    name: str
    type: str = "eco-tour"
    certification: str = ""
    discount: str = ""
    description: str = ""
    location: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> str:
        text = _as_text(value).lower().replace(" ", "-").replace("_", "-")
        return text if text in GREEN_BUSINESS_TYPES else "eco-tour"

    @field_validator("certification", "discount", "description", "location", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _as_text(value)


class AutomationOptions(BaseModel):
    autoBooking: bool = False
    paymentProcessing: bool = False
    reminderSetup: bool = False
    groupCoordination: bool = False


class NextStep(BaseModel):
    action: str
    priority: Literal["low", "medium", "high"] = "medium"
    estimatedTime: int = 0
    automationAvailable: bool = False


class Recommendation(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    activities: list[str] = Field(default_factory=list)
    estimatedDuration: str = ""
    carbonFootprint: str = ""
    ecoFriendlyTips: list[str] = Field(default_factory=list)
    estimatedCost: str = ""
    imagePrompt: Optional[str] = None
    image: Optional[str] = None
    waypoints: list[Waypoint] = Field(default_factory=list)
    localPartners: list[str] = Field(default_factory=list)
    automationOptions: AutomationOptions = Field(default_factory=AutomationOptions)
    greenBusinesses: list[GreenBusiness] = Field(default_factory=list)
    bookingLink: Optional[str] = None
    premiumFeatures: list[str] = Field(default_factory=list)
    followUpQuestions: list[str] = Field(default_factory=list)
    personalizedTips: list[str] = Field(default_factory=list)
    nextSteps: list[NextStep] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)
    localTips: list[str] = Field(default_factory=list)

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_required(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("estimatedDuration", "carbonFootprint", "estimatedCost", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator(
        "activities",
        "ecoFriendlyTips",
        "localPartners",
        "premiumFeatures",
        "followUpQuestions",
        "personalizedTips",
        "sources",
        "localTips",
        mode="before",
    )
    @classmethod
    def coerce_list(cls, value: Any) -> list[str]:
        return _as_str_list(value)

    @field_validator("waypoints", "greenBusinesses", "nextSteps", mode="before")
    @classmethod
    def drop_non_objects(cls, value: Any) -> list[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    @field_validator("automationOptions", mode="before")
    @classmethod
    def default_automation(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}


class SeasonalEvent(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    month: str = ""
    location: str = ""
    whyRecommended: str = ""

    @field_validator("description", "month", "location", "whyRecommended", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return _as_text(value)


class AdventureRequest(BaseModel):
    location: str
    mood: Mood = "adventurous"
    activityType: ActivityType = "leisure"
    distance: Distance = "medium"
    transportMode: Optional[TransportMode] = None
    isEcoMode: bool = False
    interests: list[Interest] = Field(default_factory=lambda: ["outdoors", "food"])
    weather: Optional[str] = None
    seasonalEvents: list[SeasonalEvent] = Field(default_factory=list)
    count: int = Field(3, ge=3, le=5)
    includeImages: bool = False
    includeWeather: bool = False
    userId: Optional[str] = None

    @field_validator("location", mode="before")
    @classmethod
    def strip_location(cls, value: Any) -> str:
        return _as_text(value)


class EcoImpact(BaseModel):
    airQuality: str = "Good"
    uvIndex: str = "Moderate"
    pollenCount: str = "Low"


class WeatherData(BaseModel):
    location: str
    temperature: int
    condition: str
    humidity: Optional[float] = None
    wind_speed: Optional[float] = None
    feels_like: Optional[int] = None
    precipitation: float = 0.0
    units: Literal["imperial", "metric"] = "metric"
    source: str
    alerts: list[str] = Field(default_factory=list)
    local_events: list[str] = Field(default_factory=list)
    eco_impact: Optional[EcoImpact] = None


class PlanDetails(BaseModel):
    startingTime: str = Field(
        default_factory=lambda: datetime.now().replace(second=0, microsecond=0).isoformat(timespec="minutes")
    )
    startingLocation: Optional[str] = None
    travelDuration: Optional[str] = None


class SavedPlanRequest(BaseModel):
    userId: str = Field(min_length=1)
    recommendation: Recommendation
    details: PlanDetails = Field(default_factory=PlanDetails)


class SharePlanRequest(BaseModel):
    recommendation: Recommendation
    details: PlanDetails = Field(default_factory=PlanDetails)


class FeedbackRequest(BaseModel):
    location: str = Field(min_length=1)
    activity: str = Field(min_length=1)
    description: str
    weather: str
    crowdLevel: CrowdLevel = "medium"
    tips: str
    imageUrls: list[str] = Field(default_factory=list)

    @field_validator("description", "weather", "tips")
    @classmethod
    def required_text(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("This field is required")
        return value.strip()


class EcoPreferences(BaseModel):
    isEcoMode: bool = False
    preferredTransport: list[str] = Field(default_factory=list)
    carbonFootprintLimit: float = 0


class UserPreferences(BaseModel):
    mood: str = ""
    budget: float = 0
    ecoPreferences: EcoPreferences = Field(default_factory=EcoPreferences)
    travelStyle: str = ""
    interests: list[str] = Field(default_factory=list)


class AssistantRequest(BaseModel):
    userId: str = Field(min_length=1)
    message: str = Field(min_length=1)
    preferences: UserPreferences = Field(default_factory=UserPreferences)


class CarbonFootprintRequest(BaseModel):
    activity: str = Field(min_length=1)
