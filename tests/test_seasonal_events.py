import json

from wanderbloom import seasonal_events


EVENTS = [
    {
        "name": "Monarch Butterfly Migration",
        "description": "Thousands of monarchs cluster in eucalyptus groves.",
        "month": "November",
        "location": "Natural Bridges State Beach",
        "whyRecommended": "Only happens in late autumn",
    },
    {"description": "missing a name"},
]


def test_events_are_parsed(fake_llm):
    fake_llm.reply_with("Here are some events:\n```json\n" + json.dumps(EVENTS) + "\n```")
    events = seasonal_events.get_seasonal_events("Santa Cruz", "California", month="November")
    assert [event.name for event in events] == ["Monarch Butterfly Migration"]
    assert "Santa Cruz, California in November" in fake_llm.prompts[0]


def test_events_wrapped_in_object(fake_llm):
    fake_llm.reply_with(json.dumps({"events": EVENTS[:1]}))
    assert len(seasonal_events.get_seasonal_events("Santa Cruz")) == 1


def test_failures_return_empty_list(fake_llm):
    fake_llm.reply_with("No notable events this month.")
    assert seasonal_events.get_seasonal_events("Sacramento") == []
    fake_llm.responder = lambda prompt: RuntimeError("model offline")
    assert seasonal_events.get_seasonal_events("Sacramento") == []


def test_events_endpoint(client, fake_llm):
    fake_llm.reply_with(json.dumps(EVENTS))
    body = client.get("/api/v1/seasonal-events", params={"city": "Santa Cruz"}).json()
    assert body["city"] == "Santa Cruz"
    assert body["events"][0]["whyRecommended"] == "Only happens in late autumn"
