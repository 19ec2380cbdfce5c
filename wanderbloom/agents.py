"""Conversational assistant built from a main agent and three specialists.

Ava answers every message; the eco, budget and local specialists are
consulted only when the message mentions their topic, and their answers are
appended below Ava's.
"""
import json
import logging
import re
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import APIRouter, Body, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import llm, storage
from .config import API_PREFIX
from .parsing import loads_lenient, validate_items
from .schemas import AssistantRequest, CarbonFootprintRequest, UserPreferences

logger = logging.getLogger(__name__)

router = APIRouter()

SESSION_TIMEOUT = timedelta(minutes=20)
DEFAULT_BUDGET = 100

ECO_KEYWORDS = ("eco", "sustainable")
BUDGET_KEYWORDS = ("budget", "cost")
LOCAL_KEYWORDS = ("local", "nearby")

_NUMBER = re.compile(r"(?<![A-Za-z])-?\d+(?:\.\d+)?")


class LocalEvent(BaseModel):
    name: str = Field(min_length=1)
    date: str = ""
    location: str = ""
    cost: float = 0
    ecoRating: float = 0


def parse_number(text: str) -> Optional[float]:
    match = _NUMBER.search(text or "")
    return float(match.group()) if match else None


def _lines(text: str) -> List[str]:
    return [line.strip() for line in (text or "").splitlines() if line.strip()]


class Agent:
    id = "agent"
    name = "Agent"
    role = ""
    capabilities: List[str] = []

    def __init__(self) -> None:
        self.memory: Dict[str, Any] = {
            "userPreferences": UserPreferences(),
            "pastInteractions": [],
            "learnedPatterns": [],
        }

    @property
    def preferences(self) -> UserPreferences:
        return self.memory["userPreferences"]

    def update_preferences(self, preferences: UserPreferences) -> None:
        self.memory["userPreferences"] = preferences

    def ask(self, prompt: str) -> str:
        return llm.generate_text(prompt, temperature=0.7, max_output_tokens=1024)


class Ava(Agent):
    id = "ava-main"
    name = "Ava"
    role = "Main Travel Assistant"
    capabilities = [
        "Itinerary Planning",
        "Preference Learning",
        "Multi-Agent Coordination",
        "User Interaction",
        "Decision Making",
    ]
    sub_agents = ["eco-agent", "budget-agent", "local-agent"]
    coordination_strategy = "hierarchical"

    def process_user_input(self, user_input: str) -> str:
        prompt = (
            f'As Ava, the main travel assistant, process this user input: "{user_input}"\n'
            "Consider the following context:\n"
            f"- User Preferences: {self.preferences.model_dump_json()}\n"
            f"- Past Interactions: {len(self.memory['pastInteractions'])} recorded\n"
            f"- Learned Patterns: {len(self.memory['learnedPatterns'])} identified\n\n"
            "Provide a helpful response that:\n"
            "1. Acknowledges the user's input\n"
            "2. Suggests relevant actions\n"
            "3. Maintains a friendly, helpful tone\n"
            "4. Considers the user's preferences and history"
        )
        return self.ask(prompt).strip()

    def update_memory(self, interaction: Dict[str, Any], topics: List[str]) -> None:
        self.memory["pastInteractions"].append(interaction)
        self._analyze_patterns(topics or ["general"])

    def _analyze_patterns(self, topics: List[str]) -> None:
        now = datetime.utcnow().isoformat()
        patterns = {pattern["type"]: pattern for pattern in self.memory["learnedPatterns"]}
        for topic in topics:
            pattern = patterns.get(topic)
            if pattern is None:
                pattern = {"type": topic, "frequency": 0, "lastUpdated": now, "confidence": 0.8}
                self.memory["learnedPatterns"].append(pattern)
                patterns[topic] = pattern
            pattern["frequency"] += 1
            pattern["lastUpdated"] = now
            pattern["confidence"] = min(0.99, round(0.8 + 0.02 * (pattern["frequency"] - 1), 2))


class EcoAssistant(Agent):
    id = "eco-agent"
    name = "Eco Assistant"
    role = "Sustainability Advisor"
    capabilities = [
        "Carbon Footprint Calculation",
        "Eco-friendly Alternatives",
        "Sustainability Scoring",
        "Green Route Planning",
    ]

    def calculate_carbon_footprint(self, activity: str) -> Optional[float]:
        prompt = (
            f'Calculate the carbon footprint for this activity: "{activity}"\n'
            "Consider transportation mode, distance, duration and number of participants.\n"
            "Return only the estimated CO2 emissions in kg."
        )
        return parse_number(self.ask(prompt))

    def suggest_eco_alternatives(self, activity: str) -> List[str]:
        prompt = (
            f'Suggest eco-friendly alternatives for this activity: "{activity}"\n'
            "Consider lower carbon footprint, sustainable practices, local resources and environmental impact.\n"
            "Return a list of 3-5 alternatives, one per line."
        )
        return _lines(self.ask(prompt))


class BudgetManager(Agent):
    id = "budget-agent"
    name = "Budget Manager"
    role = "Financial Advisor"
    capabilities = [
        "Budget Planning",
        "Cost Optimization",
        "Expense Tracking",
        "Savings Recommendations",
    ]

    def optimize_budget(self, activities: List[str], budget: float) -> List[str]:
        prompt = (
            f"Optimize these activities within a budget of ${budget:g}:\n"
            + "\n".join(activities)
            + "\n\nConsider cost-effectiveness, value for money, alternative options and priority of activities.\n"
            "Return a list of optimized activities with estimated costs, one per line."
        )
        return _lines(self.ask(prompt))


class LocalGuide(Agent):
    id = "local-agent"
    name = "Local Guide"
    role = "Local Expert"
    capabilities = [
        "Local Event Discovery",
        "Location-based Recommendations",
        "Travel Time Estimation",
        "Local Culture Insights",
    ]

    def find_local_events(self, location: str, on: date) -> List[LocalEvent]:
        prompt = (
            f"Find local events in {location} around {on.isoformat()}.\n"
            "Consider cultural events, local markets, community activities and seasonal events.\n"
            "Return a JSON array of objects with name, date, location, cost (number) and ecoRating (0-5)."
        )
        try:
            data = loads_lenient(self.ask(prompt), expect=list)
        except (ValueError, json.JSONDecodeError) as exc:
            logger.warning("Could not parse local events for %s: %s", location, exc)
            return []
        if not isinstance(data, list):
            return []
        return validate_items(data, LocalEvent, label="local event")

    def estimate_travel_time(self, origin: str, destination: str) -> Optional[float]:
        prompt = (
            f"Estimate travel time from {origin} to {destination}.\n"
            "Consider distance, transportation options, traffic conditions and time of day.\n"
            "Return the estimated time in minutes."
        )
        return parse_number(self.ask(prompt))


class AgentCoordinator:
    def __init__(self) -> None:
        self.ava = Ava()
        self.eco_assistant = EcoAssistant()
        self.budget_manager = BudgetManager()
        self.local_guide = LocalGuide()

    @property
    def agents(self) -> List[Agent]:
        return [self.ava, self.eco_assistant, self.budget_manager, self.local_guide]

    def update_agent_preferences(self, preferences: UserPreferences) -> None:
        for agent in self.agents:
            agent.update_preferences(preferences)

    def process_user_request(self, user_input: str, preferences: UserPreferences) -> Dict[str, Any]:
        self.update_agent_preferences(preferences)
        ava_response = self.ava.process_user_input(user_input)
        specialized = self.coordinate_specialized_agents(user_input)
        combined = self.combine_responses(ava_response, specialized)
        interaction = {
            "timestamp": datetime.utcnow().isoformat(),
            "userInput": user_input,
            "agentResponse": combined,
            "outcome": "answered",
        }
        self.ava.update_memory(interaction, list(specialized))
        return {"response": combined, "sections": specialized, "interaction": interaction}

    def coordinate_specialized_agents(self, user_input: str) -> Dict[str, List[str]]:
        text = user_input.lower()
        responses: Dict[str, List[str]] = {}

        if any(keyword in text for keyword in ECO_KEYWORDS):
            responses["eco"] = self.eco_assistant.suggest_eco_alternatives(user_input)

        if any(keyword in text for keyword in BUDGET_KEYWORDS):
            budget = self.budget_manager.preferences.budget or DEFAULT_BUDGET
            responses["budget"] = self.budget_manager.optimize_budget([user_input], budget)

        if any(keyword in text for keyword in LOCAL_KEYWORDS):
            events = self.local_guide.find_local_events("current location", date.today())
            responses["local"] = [event.name for event in events]

        return responses

    @staticmethod
    def combine_responses(main_response: str, specialized: Dict[str, List[str]]) -> str:
        combined = main_response + "\n\n"
        headings = (
            ("eco", "🌱 Eco-friendly alternatives:"),
            ("budget", "💰 Budget-friendly options:"),
            ("local", "📍 Local events and activities:"),
        )
        for key, heading in headings:
            if key in specialized:
                combined += heading + "\n" + "\n".join(specialized[key]) + "\n\n"
        return combined

    def calculate_carbon_footprint(self, activity: str) -> Optional[float]:
        return self.eco_assistant.calculate_carbon_footprint(activity)

    def find_local_events(self, location: str, on: date) -> List[LocalEvent]:
        return self.local_guide.find_local_events(location, on)

    def optimize_budget(self, activities: List[str], budget: float) -> List[str]:
        return self.budget_manager.optimize_budget(activities, budget)


_sessions: Dict[str, Dict[str, Any]] = {}


def _cleanup_sessions() -> None:
    now = datetime.utcnow()
    expired = [uid for uid, data in _sessions.items() if now - data["last_seen"] > SESSION_TIMEOUT]
    for uid in expired:
        _sessions.pop(uid, None)


def get_coordinator(user_id: str) -> AgentCoordinator:
    _cleanup_sessions()
    session = _sessions.get(user_id)
    if session is None:
        session = {"coordinator": AgentCoordinator()}
        _sessions[user_id] = session
    session["last_seen"] = datetime.utcnow()
    return session["coordinator"]


@router.post(f"{API_PREFIX}/assistant")
def assistant(request: AssistantRequest = Body(...)):
    coordinator = get_coordinator(request.userId)
    try:
        result = coordinator.process_user_request(request.message, request.preferences)
    except Exception as exc:
        logger.error("Assistant request failed: %s", exc, exc_info=True)
        raise HTTPException(status_code=502, detail=str(exc))
    try:
        storage.save_interaction(request.userId, uuid4().hex, result["interaction"])
    except Exception as exc:
        logger.warning("Failed to persist interaction for %s: %s", request.userId, exc)
    return JSONResponse({"userId": request.userId, "response": result["response"], "sections": result["sections"]})


@router.get(f"{API_PREFIX}/assistant/{{user_id}}/history")
def assistant_history(user_id: str):
    session = _sessions.get(user_id)
    if session is None:
        return JSONResponse({"userId": user_id, "interactions": [], "patterns": []})
    memory = session["coordinator"].ava.memory
    return JSONResponse(
        {
            "userId": user_id,
            "interactions": memory["pastInteractions"],
            "patterns": memory["learnedPatterns"],
        }
    )


@router.post(f"{API_PREFIX}/assistant/carbon-footprint")
def carbon_footprint(request: CarbonFootprintRequest = Body(...)):
    try:
        kg = EcoAssistant().calculate_carbon_footprint(request.activity)
    except Exception as exc:
        logger.error("Carbon footprint estimate failed: %s", exc, exc_info=True)
        raise HTTPException(status_code=502, detail=str(exc))
    return JSONResponse({"activity": request.activity, "co2Kg": kg})
