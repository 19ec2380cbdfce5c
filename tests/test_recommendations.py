from datetime import date

import requests

from conftest import FakeHTTPResponse, recommendations_json
from wanderbloom import recommendations, weather
from wanderbloom.schemas import AdventureRequest, SeasonalEvent, WeatherData


def test_seasonal_greeting_by_month():
    assert recommendations.seasonal_greeting(date(2024, 4, 1)).startswith("Spring")
    assert recommendations.seasonal_greeting(date(2024, 7, 1)).startswith("Summer")
    assert recommendations.seasonal_greeting(date(2024, 10, 1)).startswith("Autumn")
    assert recommendations.seasonal_greeting(date(2024, 12, 1)).startswith("Winter")
    assert recommendations.seasonal_greeting(date(2024, 2, 28)).startswith("Winter")


def test_build_prompt_includes_preferences():
    request = AdventureRequest(
        location="Monterey",
        mood="romantic",
        activityType="grocery",
        distance="short",
        transportMode="biking",
        isEcoMode=True,
        interests=["food", "events"],
        weather="64°F, light rain",
        seasonalEvents=[SeasonalEvent(name="Monarch Butterfly Migration")],
        count=4,
    )
    prompt = recommendations.build_prompt(request)
    assert "Generate exactly 4 unique adventure recommendations for Monterey" in prompt
    assert "romantic" in prompt
    assert "farmers markets" in prompt
    assert "under 2 miles" in prompt
    assert "biking" in prompt
    assert "food, events" in prompt
    assert "Eco mode" in prompt
    assert "64°F, light rain" in prompt
    assert "Monarch Butterfly Migration" in prompt
    assert prompt.rstrip().endswith("with no additional text or markdown formatting.")


def test_recommend_endpoint_returns_cards(client, fake_llm):
    fake_llm.reply_with("```json\n" + recommendations_json(3) + "\n```")
    resp = client.post("/api/v1/recommendations", json={"location": "San Francisco"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["location"] == "San Francisco"
    assert [rec["title"] for rec in body["recommendations"]] == ["Adventure 1", "Adventure 2", "Adventure 3"]
    assert body["weather"] is None
    assert body["season"]
    assert "San Francisco" in fake_llm.prompts[0]


def test_recommend_endpoint_blank_location(client, fake_llm):
    resp = client.post("/api/v1/recommendations", json={"location": "   "})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Please enter a location"
    assert fake_llm.prompts == []


def test_recommend_endpoint_parse_failure(client, fake_llm):
    fake_llm.reply_with("Sorry, no adventures today.")
    resp = client.post("/api/v1/recommendations", json={"location": "Napa"})
    assert resp.status_code == 502
    assert "Failed to parse recommendations JSON" in resp.json()["detail"]


def test_recommend_endpoint_model_error(client, fake_llm):
    fake_llm.responder = lambda prompt: RuntimeError("quota exceeded")
    resp = client.post("/api/v1/recommendations", json={"location": "Napa"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "Failed to generate recommendations. Please try again."


def test_recommend_endpoint_rejects_bad_count(client, fake_llm):
    resp = client.post("/api/v1/recommendations", json={"location": "Napa", "count": 9})
    assert resp.status_code == 422


def test_images_are_attached(client, fake_llm, monkeypatch):
    fake_llm.reply_with(recommendations_json(3))
    prompts = []

    def fake_generate(prompt):
        prompts.append(prompt)
        if "Adventure 2" in prompt:
            raise RuntimeError("image model unavailable")
        return "data:image/jpeg;base64,AAAA"

    monkeypatch.setattr(recommendations.images, "generate_image", fake_generate)
    resp = client.post("/api/v1/recommendations", json={"location": "Santa Cruz", "includeImages": True})
    assert resp.status_code == 200
    recs = resp.json()["recommendations"]
    assert recs[0]["image"] == "data:image/jpeg;base64,AAAA"
    assert recs[1]["image"] is None
    assert recs[0]["waypoints"][0]["seasonalImage"] == "data:image/jpeg;base64,AAAA"
    # non-seasonal waypoints are skipped
    assert recs[0]["waypoints"][1]["seasonalImage"] is None
    assert any("current season" in p for p in prompts)
    assert any("peak season" in p for p in prompts)


def test_weather_feeds_the_prompt(client, fake_llm, monkeypatch):
    fake_llm.reply_with(recommendations_json(3))
    weather = WeatherData(
        location="Palm Springs", temperature=88, condition="clear sky", units="imperial", source="openweathermap"
    )
    monkeypatch.setattr(recommendations, "get_current_weather", lambda location: weather)
    resp = client.post("/api/v1/recommendations", json={"location": "Palm Springs", "includeWeather": True})
    assert resp.status_code == 200
    assert resp.json()["weather"]["temperature"] == 88
    assert "88°F, clear sky" in fake_llm.prompts[0]


def test_weather_failure_does_not_block(client, fake_llm, monkeypatch):
    fake_llm.reply_with(recommendations_json(3))

    def broken(location):
        raise recommendations.WeatherError("Location not found. Please try a different location.")

    monkeypatch.setattr(recommendations, "get_current_weather", broken)
    resp = client.post("/api/v1/recommendations", json={"location": "Atlantis", "includeWeather": True})
    assert resp.status_code == 200
    assert resp.json()["weather"] is None


def test_unreadable_weather_body_gives_null_weather(client, fake_llm, monkeypatch):
    fake_llm.reply_with(recommendations_json(3))
    monkeypatch.setattr(
        weather, "geocode", lambda location: {"name": "Ojai", "lat": 34.4, "lon": -119.2, "source": "open-meteo"}
    )
    monkeypatch.setattr(requests, "get", lambda *a, **k: FakeHTTPResponse(body="<html>oops</html>"))
    resp = client.post("/api/v1/recommendations", json={"location": "Ojai", "includeWeather": True})
    assert resp.status_code == 200
    assert resp.json()["weather"] is None


def test_global_image_switch(client, fake_llm, monkeypatch):
    monkeypatch.setenv("ENABLE_IMAGE_GENERATION", "true")
    fake_llm.reply_with(recommendations_json(3))
    monkeypatch.setattr(recommendations.images, "generate_image", lambda prompt: "data:image/jpeg;base64,BBBB")
    resp = client.post("/api/v1/recommendations", json={"location": "Big Sur"})
    assert resp.status_code == 200
    assert all(rec["image"] == "data:image/jpeg;base64,BBBB" for rec in resp.json()["recommendations"])


def test_images_off_by_default(client, fake_llm, monkeypatch):
    fake_llm.reply_with(recommendations_json(3))

    def unexpected(prompt):
        raise AssertionError("images were not requested")

    monkeypatch.setattr(recommendations.images, "generate_image", unexpected)
    resp = client.post("/api/v1/recommendations", json={"location": "Big Sur"})
    assert all(rec.get("image") is None for rec in resp.json()["recommendations"])
