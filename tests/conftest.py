import copy
import json
from types import SimpleNamespace

import pytest
import requests
from fastapi.testclient import TestClient

from wanderbloom import agents, geocode, llm, storage
from wanderbloom.main import app

ENV_KEYS = (
    "OPENWEATHERMAP_API_KEY",
    "VITE_OPENWEATHERMAP_API_KEY",
    "GOOGLE_MAPS_API_KEY",
    "MAPS_API_KEY",
    "VITE_GOOGLE_MAPS_API_KEY",
    "WEATHER_PROVIDER",
    "ENABLE_IMAGE_GENERATION",
    "SHARE_BASE_URL",
)


class FakeModels:
    """Stands in for ``genai.Client().models``.

    ``responder`` receives the prompt text and returns the model text.
    """

    def __init__(self, responder):
        self.responder = responder
        self.prompts = []
        self.image_chunks = []

    def generate_content(self, model, contents, config=None):
        prompt = contents[0].parts[0].text
        self.prompts.append(prompt)
        text = self.responder(prompt)
        if isinstance(text, Exception):
            raise text
        return SimpleNamespace(text=text, candidates=[])

    def generate_content_stream(self, model, contents, config=None):
        self.prompts.append(contents[0].parts[0].text)
        return iter(self.image_chunks)


class FakeLLM:
    def __init__(self):
        self.responder = lambda prompt: ""
        self.models = FakeModels(lambda prompt: self.responder(prompt))

    def reply_with(self, text):
        self.responder = lambda prompt: text

    @property
    def prompts(self):
        return self.models.prompts


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeDocument:
    def __init__(self, db, path):
        self.db = db
        self.path = path

    def set(self, data, merge=False):
        if merge and self.path in self.db.store:
            self.db.store[self.path].update(copy.deepcopy(data))
        else:
            self.db.store[self.path] = copy.deepcopy(data)

    def get(self):
        return FakeSnapshot(self.path[-1], self.db.store.get(self.path))

    def delete(self):
        self.db.store.pop(self.path, None)

    def collection(self, name):
        return FakeCollection(self.db, self.path + (name,))


class FakeCollection:
    def __init__(self, db, path):
        self.db = db
        self.path = path

    def document(self, doc_id):
        return FakeDocument(self.db, self.path + (doc_id,))

    def stream(self):
        for key, data in list(self.db.store.items()):
            if len(key) == len(self.path) + 1 and key[:-1] == self.path:
                yield FakeSnapshot(key[-1], data)


class FakeFirestore:
    def __init__(self):
        self.store = {}

    def collection(self, name):
        return FakeCollection(self, (name,))


class FakeHTTPResponse:
    """Minimal ``requests.Response``; pass ``body`` for a non-JSON payload."""

    def __init__(self, payload=None, status_code=200, body=None):
        self._payload = payload
        self.status_code = status_code
        self.text = body if body is not None else json.dumps(payload)

    def json(self):
        if self.text and self.text == json.dumps(self._payload):
            return self._payload
        return json.loads(self.text)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    geocode._cached_geocode.cache_clear()
    agents._sessions.clear()
    yield
    geocode._cached_geocode.cache_clear()
    agents._sessions.clear()


@pytest.fixture
def fake_llm(monkeypatch):
    fake = FakeLLM()
    monkeypatch.setattr(llm, "_client", fake)
    return fake


@pytest.fixture
def fake_firestore(monkeypatch):
    db = FakeFirestore()
    monkeypatch.setattr(storage, "_client", db)
    return db


@pytest.fixture
def client():
    return TestClient(app)


def make_recommendation(title="Coastal Bluff Walk", **overrides):
    rec = {
        "title": title,
        "description": f"{title} with seasonal views.",
        "activities": ["Hike the trail", "Picnic at the overlook"],
        "estimatedDuration": "Half day",
        "carbonFootprint": "Low (walking)",
        "ecoFriendlyTips": ["Bring a reusable bottle"],
        "estimatedCost": "$20",
        "imagePrompt": f"{title} in autumn light",
        "waypoints": [
            {
                "name": "Lands End Lookout",
                "type": "attraction",
                "description": "Cliffside views of the Golden Gate",
                "estimatedDuration": "1 hour",
                "seasonal": True,
                "seasonalDetails": "Clear skies in autumn",
                "seasonalImagePrompt": "Lands End in autumn",
            },
            {
                "name": "Louis' Restaurant",
                "type": "restaurant",
                "description": "Classic diner",
                "estimatedDuration": "45 minutes",
                "seasonal": False,
            },
        ],
        "localPartners": ["Golden Gate Parks Conservancy"],
        "automationOptions": {"autoBooking": False, "groupCoordination": True},
        "greenBusinesses": [
            {
                "name": "Green Valley Farmers Market",
                "type": "farmers-market",
                "certification": "Certified Organic",
                "discount": "10% off for reusable bags",
                "description": "Local organic produce market",
                "location": "123 Green St",
            }
        ],
    }
    rec.update(overrides)
    return rec


def recommendations_json(count=3):
    return json.dumps([make_recommendation(f"Adventure {i + 1}") for i in range(count)])
