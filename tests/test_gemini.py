# tests/test_gemini.py

import json

import pytest
from google.api_core.exceptions import ServiceUnavailable
from google.generativeai.types import BlockedPromptException, StopCandidateException

from ai import gemini
from ai.chat import FALLBACK_REPLY, ChatSession
from core.errors import ExtractionError, GenerationError, ResponseSchemaError
from core.models import ChatMessage, ItineraryRequest
from core.schemas import Itinerary


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeChat:
    def __init__(self, model, history):
        self.model = model
        self.history = history

    def send_message(self, text):
        self.model.sent.append(text)
        if self.model.error:
            raise self.model.error
        return FakeResponse(self.model.reply)


class FakeModel:
    """Stands in for genai.GenerativeModel and records what it was asked."""

    def __init__(self, reply="", error=None, **settings):
        self.reply = reply
        self.error = error
        self.settings = settings
        self.prompts = []
        self.sent = []
        self.chat = None

    def generate_content(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return FakeResponse(self.reply)

    def start_chat(self, history):
        self.chat = FakeChat(self, history)
        return self.chat


@pytest.fixture
def fake_model(monkeypatch):
    """Patch the model factory; call the fixture with the reply (or error) to serve."""
    holder = {}

    def install(reply="", error=None):
        def factory(**settings):
            holder["model"] = FakeModel(reply, error, **settings)
            return holder["model"]

        monkeypatch.setattr(gemini, "_get_model", factory)
        return holder

    return install


# ──────────────────────────────────────────────────────────────────────────────
# extract_json
# ──────────────────────────────────────────────────────────────────────────────
def test_fenced_prose_and_bare_payloads_extract_the_same(itinerary_payload):
    body = json.dumps(itinerary_payload, indent=2)
    fenced = f"```json\n{body}\n```"
    prose = f"Sure! Here is your plan:\n{body}\nHave a great trip!"

    assert gemini.extract_json(fenced) == gemini.extract_json(prose) == gemini.extract_json(body)
    assert gemini.extract_json(body) == itinerary_payload


def test_fence_markers_are_case_insensitive():
    assert gemini.extract_json('```JSON\n{"a": 1}\n```') == {"a": 1}


def test_array_payloads():
    text = 'Here you go:\n```json\n["Fact one", "Fact {two}"]\n```\nEnjoy.'
    assert gemini.extract_json(text) == ["Fact one", "Fact {two}"]
    assert gemini.extract_json(text, list) == ["Fact one", "Fact {two}"]


def test_array_of_objects_is_detected_as_array():
    assert gemini.extract_json('Results: [{"name": "Petra"}, {"name": "Machu Picchu"}]') == [
        {"name": "Petra"},
        {"name": "Machu Picchu"},
    ]


@pytest.mark.parametrize("text", ["I cannot help with that.", "{not json at all}", "", "42"])
def test_unrecoverable_text_raises(text):
    with pytest.raises(ExtractionError) as exc_info:
        gemini.extract_json(text)
    assert exc_info.value.raw == text


def test_wrong_container_raises():
    with pytest.raises(ExtractionError):
        gemini.extract_json('["a", "b"]', dict)


# ──────────────────────────────────────────────────────────────────────────────
# Itinerary
# ──────────────────────────────────────────────────────────────────────────────
def _request(days=2, interests=None):
    return ItineraryRequest(
        destination="Kyoto", country="Japan", days=days,
        travel_style="Cultural", interests=interests or [],
    )


def test_generate_itinerary(fake_model, itinerary_payload):
    holder = fake_model(f"```json\n{json.dumps(itinerary_payload)}\n```")
    itin = gemini.generate_itinerary(_request())

    assert isinstance(itin, Itinerary)
    assert itin.travel_style == "Cultural"
    assert [d.day for d in itin.itinerary] == [1, 2]
    assert itin.itinerary[0].activities[1].type == "food"
    assert itin.itinerary[1].accommodation is None

    model = holder["model"]
    assert model.settings == {"temperature": 0.7, "max_output_tokens": 8192}
    assert "General Sightseeing" in model.prompts[0]
    assert "2-day itinerary for Kyoto, Japan" in model.prompts[0]


def test_interests_are_listed_in_prompt():
    prompt = gemini.build_itinerary_prompt(_request(interests=["Food & Cuisine", "Nightlife"]))
    assert "Interests: Food & Cuisine, Nightlife" in prompt
    assert "General Sightseeing" not in prompt


def test_unknown_activity_type_is_rejected(fake_model, itinerary_payload):
    itinerary_payload["itinerary"][0]["activities"][0]["type"] = "sightseeing"
    fake_model(json.dumps(itinerary_payload))

    with pytest.raises(ResponseSchemaError):
        gemini.generate_itinerary(_request())


def test_day_count_must_match_request(fake_model, itinerary_payload):
    fake_model(json.dumps(itinerary_payload))
    with pytest.raises(ResponseSchemaError, match="Asked for 3 days"):
        gemini.generate_itinerary(_request(days=3))


def test_day_numbers_must_be_contiguous(fake_model, itinerary_payload):
    itinerary_payload["itinerary"][1]["day"] = 3
    fake_model(json.dumps(itinerary_payload))

    with pytest.raises(ExtractionError):
        gemini.generate_itinerary(_request())


def test_itinerary_parse_failure_propagates(fake_model):
    fake_model("Sorry, I can't plan that trip.")
    with pytest.raises(ExtractionError):
        gemini.generate_itinerary(_request())


def test_itinerary_provider_failure(fake_model):
    fake_model(error=ServiceUnavailable("overloaded"))
    with pytest.raises(GenerationError, match="Failed to generate itinerary"):
        gemini.generate_itinerary(_request())


def test_zero_days_is_rejected_before_calling_the_model(fake_model):
    holder = fake_model("{}")
    with pytest.raises(ValueError):
        gemini.generate_itinerary(_request(days=0))
    assert "model" not in holder


# ──────────────────────────────────────────────────────────────────────────────
# Chat
# ──────────────────────────────────────────────────────────────────────────────
def test_chat_history_drops_greeting_and_newest_message(fake_model):
    holder = fake_model("Try the tram 28.")
    messages = [
        ChatMessage("assistant", "Hi! Ask me about Lisbon."),
        ChatMessage("user", "Where should I eat?"),
        ChatMessage("assistant", "Time Out Market."),
        ChatMessage("user", "How do I get around?"),
    ]

    reply = gemini.chat_with_ai(messages, "Lisbon", "Portugal")

    model = holder["model"]
    assert reply == "Try the tram 28."
    assert model.chat.history == [
        {"role": "user", "parts": ["Where should I eat?"]},
        {"role": "model", "parts": ["Time Out Market."]},
    ]
    assert model.sent == ["How do I get around?"]
    assert "Lisbon, Portugal" in model.settings["system_instruction"]
    assert model.settings["temperature"] == 0.8


def test_first_turn_history_is_empty():
    messages = [ChatMessage("assistant", "Hi!"), ChatMessage("user", "Hello")]
    assert gemini.build_chat_history(messages) == []


def test_chat_provider_failure(fake_model):
    fake_model(error=ServiceUnavailable("down"))
    with pytest.raises(GenerationError, match="Chat unavailable"):
        gemini.chat_with_ai([ChatMessage("user", "Hi")], "Lisbon", "Portugal")


def test_chat_session_appends_turns(fake_model):
    fake_model("Pastéis de Belém, of course.")
    session = ChatSession("Lisbon", "Portugal")

    assert session.send("Best pastry?") == "Pastéis de Belém, of course."
    assert [m.role for m in session.messages] == ["assistant", "user", "assistant"]


def test_chat_session_falls_back_on_failure(fake_model):
    fake_model(error=ServiceUnavailable("down"))
    session = ChatSession("Lisbon", "Portugal")

    assert session.send("Hello?") == FALLBACK_REPLY
    assert session.messages[-1].content == FALLBACK_REPLY


def test_chat_session_falls_back_on_safety_stop(fake_model):
    fake_model(error=StopCandidateException("finish_reason: SAFETY"))
    session = ChatSession("Lisbon", "Portugal")

    assert session.send("Hello?") == FALLBACK_REPLY
    assert [m.role for m in session.messages] == ["assistant", "user", "assistant"]


def test_blocked_prompt_becomes_generation_error(fake_model):
    fake_model(error=BlockedPromptException("block_reason: SAFETY"))
    with pytest.raises(GenerationError, match="Failed to generate itinerary"):
        gemini.generate_itinerary(_request())


def test_chat_session_ignores_blank_input(fake_model):
    holder = fake_model("unused")
    session = ChatSession("Lisbon", "Portugal")

    assert session.send("   ") is None
    assert len(session.messages) == 1
    assert "model" not in holder


# ──────────────────────────────────────────────────────────────────────────────
# Places
# ──────────────────────────────────────────────────────────────────────────────
def test_places_prompt_region():
    assert "places around the world." in gemini.build_places_prompt("Natural Wonders", "All")
    assert "All" not in gemini.build_places_prompt("Natural Wonders", "All").splitlines()[0]
    assert "places in Asia." in gemini.build_places_prompt("Natural Wonders", "Asia")


def test_fetch_world_places(fake_model):
    places = [
        {"name": "Petra", "location": "Ma'an, Jordan", "continent": "Asia", "tagline": "Rose city",
         "period": "Nabataean", "rating": 4.9, "visitors": "1 million+", "tags": ["ruins"],
         "unsplashQuery": "petra treasury"},
    ]
    fake_model(f"```json\n{json.dumps(places)}\n```")

    result = gemini.fetch_world_places("Historical Sites", "Asia")
    assert result[0].name == "Petra"
    assert result[0].unsplash_query == "petra treasury"


def test_place_details(fake_model):
    fake_model(json.dumps({
        "name": "Petra", "category": "Historical Sites", "description": "Carved city.",
        "bestTime": "Spring", "entryFee": "50 JOD", "nearbyAttractions": ["Wadi Rum"],
        "funFact": "Rediscovered in 1812.",
    }))

    detail = gemini.get_place_details("Petra", "Historical Sites")
    assert detail.best_time == "Spring"
    assert detail.nearby_attractions == ["Wadi Rum"]


def test_place_details_failure_propagates(fake_model):
    fake_model("no idea")
    with pytest.raises(ExtractionError):
        gemini.get_place_details("Atlantis", "Historical Sites")


# ──────────────────────────────────────────────────────────────────────────────
# Quick facts
# ──────────────────────────────────────────────────────────────────────────────
def test_insights(fake_model):
    fake_model('["a", "b", "c", "d", "e"]')
    assert gemini.get_destination_insights("Kyoto", "Japan") == ["a", "b", "c", "d", "e"]


def test_insights_swallow_provider_errors(fake_model):
    fake_model(error=ServiceUnavailable("down"))
    assert gemini.get_destination_insights("Kyoto", "Japan") == []


def test_insights_swallow_unexpected_errors(fake_model):
    fake_model(error=ConnectionResetError("reset"))
    assert gemini.get_destination_insights("Kyoto", "Japan") == []


def test_insights_swallow_garbage(fake_model):
    fake_model("Kyoto is lovely.")
    assert gemini.get_destination_insights("Kyoto", "Japan") == []
