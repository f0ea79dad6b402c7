# ai/gemini.py

import json
import logging
import re
import textwrap
from typing import List, Optional, Sequence

import google.generativeai as genai
from google.api_core.exceptions import GoogleAPIError
from google.generativeai.types import BlockedPromptException, StopCandidateException
from pydantic import TypeAdapter, ValidationError

import config
from core.errors import ExtractionError, GenerationError, ResponseSchemaError
from core.models import ChatMessage, ItineraryRequest
from core.schemas import ACTIVITY_TYPES, Itinerary, PlaceDetail, PlaceSummary

logger = logging.getLogger(__name__)

DEFAULT_INTERESTS = ["General Sightseeing"]

_PLACE_LIST = TypeAdapter(List[PlaceSummary])

# blocked prompts and safety-stopped candidates do not derive from GoogleAPIError
_PROVIDER_ERRORS = (GoogleAPIError, BlockedPromptException, StopCandidateException, ValueError)


# ──────────────────────────────────────────────────────────────────────────────
# Helper: get a configured Gemini model
# ──────────────────────────────────────────────────────────────────────────────
def _get_model(temperature: float, max_output_tokens: int, system_instruction: Optional[str] = None):
    genai.configure(api_key=config.gemini_api_key())
    return genai.GenerativeModel(
        config.gemini_model_name(),
        generation_config={"temperature": temperature, "max_output_tokens": max_output_tokens},
        system_instruction=system_instruction,
    )


def _generate(model, prompt: str, failure: str) -> str:
    """One generate_content call; provider failures become GenerationError(failure)."""
    try:
        resp = model.generate_content(prompt)
        # .text raises ValueError when the candidate was blocked or empty
        return resp.text
    except _PROVIDER_ERRORS as exc:
        logger.error("Gemini call failed: %s", exc)
        raise GenerationError(failure) from exc


# ──────────────────────────────────────────────────────────────────────────────
# JSON recovery
# ──────────────────────────────────────────────────────────────────────────────
_JSON_FENCE = re.compile(r"```json\s*", re.IGNORECASE)
_FENCE = re.compile(r"```\s*")
_DELIMITERS = {dict: ("{", "}"), list: ("[", "]")}


def extract_json(text: str, container: Optional[type] = None):
    """
    Recover a JSON object or array from free-form model output.

    Code fences are stripped, then the text is cut from the first opening to
    the last closing delimiter. `container` (dict or list) picks the
    delimiters; when None, whichever of `{` / `[` appears first anywhere in
    the text decides, not just the first non-blank character, so a payload
    preceded by prose is still read with the right delimiters.
    Raises ExtractionError if nothing parseable of the right kind is left.
    """
    cleaned = _FENCE.sub("", _JSON_FENCE.sub("", text or "")).strip()

    kind = container
    if kind is None:
        found = [(cleaned.find(o), t) for t, (o, _) in _DELIMITERS.items() if o in cleaned]
        kind = min(found, key=lambda f: f[0])[1] if found else dict

    opener, closer = _DELIMITERS[kind]
    start, end = cleaned.find(opener), cleaned.rfind(closer)
    if start != -1 and end != -1:
        cleaned = cleaned[start:end + 1]

    try:
        data = json.loads(cleaned)
    except ValueError as exc:
        raise ExtractionError(f"Model response is not valid JSON: {exc}", raw=text) from exc

    if not isinstance(data, (dict, list)):
        raise ExtractionError("Model response is not a JSON object or array.", raw=text)
    if container is not None and not isinstance(data, container):
        raise ExtractionError(f"Expected a JSON {container.__name__}, got {type(data).__name__}.", raw=text)
    return data


def _validate(validator, data, raw: str):
    try:
        return validator(data)
    except ValidationError as exc:
        logger.warning("Model JSON failed validation (%d errors)", exc.error_count())
        raise ResponseSchemaError(f"Model response has an unexpected shape: {exc}", raw=raw) from exc


# ──────────────────────────────────────────────────────────────────────────────
# Itinerary
# ──────────────────────────────────────────────────────────────────────────────
_ITINERARY_PROMPT = textwrap.dedent(
    """\
    You are an expert travel planner. Create a detailed {days}-day itinerary for {destination}, {country}.

    Travel style: {style}
    Interests: {interests}

    Answer with ONLY a valid JSON object: no markdown, no code fences, no text before or after it.
    It must have exactly this structure:
    {{
      "destination": "{destination}",
      "country": "{country}",
      "days": {days},
      "travelStyle": "{style}",
      "overview": "2-3 sentence overview of the trip",
      "tips": ["tip 1", "tip 2", "tip 3"],
      "itinerary": [
        {{
          "day": 1,
          "theme": "Theme of the day",
          "activities": [
            {{
              "time": "09:00 AM",
              "activity": "Activity name",
              "description": "Short description",
              "duration": "2 hours",
              "type": "attraction"
            }}
          ],
          "meals": {{
            "breakfast": "Specific place or dish",
            "lunch": "Specific place or dish",
            "dinner": "Specific place or dish"
          }},
          "accommodation": "Hotel or neighbourhood suggestion"
        }}
      ]
    }}

    "type" must be one of: {types}.
    Number the days 1 to {days} and plan 3-5 activities per day.
    """
)


def build_itinerary_prompt(req: ItineraryRequest) -> str:
    return _ITINERARY_PROMPT.format(
        destination=req.destination,
        country=req.country,
        days=req.days,
        style=req.travel_style,
        interests=", ".join(req.interests or DEFAULT_INTERESTS),
        types=", ".join(f'"{t}"' for t in ACTIVITY_TYPES),
    )


def generate_itinerary(req: ItineraryRequest) -> Itinerary:
    """Ask Gemini for a day-by-day plan and return it validated."""
    if req.days < 1:
        raise ValueError("An itinerary needs at least one day.")

    model = _get_model(temperature=0.7, max_output_tokens=8192)
    text = _generate(model, build_itinerary_prompt(req), "Failed to generate itinerary. Please try again.")
    itinerary = _validate(Itinerary.model_validate, extract_json(text, dict), text)

    if itinerary.days != req.days:
        raise ResponseSchemaError(
            f"Asked for {req.days} days, model planned {itinerary.days}.", raw=text
        )
    logger.info("Generated %d-day itinerary for %s", itinerary.days, itinerary.destination)
    return itinerary


# ──────────────────────────────────────────────────────────────────────────────
# Conversational assistant
# ──────────────────────────────────────────────────────────────────────────────
_CHAT_PERSONA = textwrap.dedent(
    """\
    You are WanderAI, a friendly and knowledgeable travel assistant for {destination}, {country}.
    Give helpful, accurate and engaging travel advice in 2-4 sentences.
    Focus on practical tips, local insight, hidden gems and authentic experiences.
    """
)


def build_chat_history(messages: Sequence[ChatMessage]) -> list:
    """
    Gemini history for every message but the newest one.
    Gemini wants the history to open with a user turn, so a leading
    assistant message (the greeting) is left out.
    """
    history = [
        {"role": "user" if m.role == "user" else "model", "parts": [m.content]}
        for m in messages[:-1]
    ]
    if history and history[0]["role"] == "model":
        history = history[1:]
    return history


def chat_with_ai(messages: Sequence[ChatMessage], destination: str, country: str) -> str:
    if not messages:
        raise ValueError("chat_with_ai needs at least one message.")

    model = _get_model(
        temperature=0.8,
        max_output_tokens=600,
        system_instruction=_CHAT_PERSONA.format(destination=destination, country=country),
    )
    try:
        chat = model.start_chat(history=build_chat_history(messages))
        return chat.send_message(messages[-1].content).text
    except _PROVIDER_ERRORS as exc:
        logger.error("Gemini chat failed: %s", exc)
        raise GenerationError("Chat unavailable. Please try again.") from exc


# ──────────────────────────────────────────────────────────────────────────────
# World places
# ──────────────────────────────────────────────────────────────────────────────
_PLACE_DETAIL_PROMPT = textwrap.dedent(
    """\
    Give detailed information about "{name}", a famous {category} place.

    Answer with ONLY a valid JSON object (no markdown, no code fences):
    {{
      "name": "{name}",
      "category": "{category}",
      "location": "City, Country",
      "continent": "Continent",
      "description": "3-4 sentence description",
      "history": "2-3 sentences of historical background",
      "highlights": ["highlight 1", "highlight 2", "highlight 3", "highlight 4"],
      "bestTime": "Best time of year to visit",
      "entryFee": "Approximate entry fee or 'Free'",
      "duration": "Recommended visit duration",
      "tips": ["tip 1", "tip 2", "tip 3"],
      "nearbyAttractions": ["place 1", "place 2", "place 3"],
      "funFact": "One surprising fact"
    }}
    """
)

_PLACE_LIST_PROMPT = textwrap.dedent(
    """\
    List 12 famous {category} places{where}.

    Answer with ONLY a valid JSON array (no markdown, no code fences):
    [
      {{
        "name": "Place name",
        "location": "City, Country",
        "continent": "Continent",
        "tagline": "One catchy sentence",
        "period": "Historical period, or 'Modern'",
        "rating": 4.8,
        "visitors": "Annual visitors, e.g. '5 million+'",
        "tags": ["tag1", "tag2"],
        "unsplashQuery": "photo search keywords for the landmark"
      }}
    ]

    Keep the list diverse and globally recognised; ratings between 4.0 and 5.0.
    """
)


def get_place_details(name: str, category: str) -> PlaceDetail:
    model = _get_model(temperature=0.6, max_output_tokens=1024)
    prompt = _PLACE_DETAIL_PROMPT.format(name=name, category=category)
    text = _generate(model, prompt, f"Could not load details for {name}.")
    return _validate(PlaceDetail.model_validate, extract_json(text, dict), text)


def build_places_prompt(category: str, region: str) -> str:
    where = " around the world" if region == "All" else f" in {region}"
    return _PLACE_LIST_PROMPT.format(category=category, where=where)


def fetch_world_places(category: str, region: str = "All") -> List[PlaceSummary]:
    model = _get_model(temperature=0.5, max_output_tokens=4096)
    text = _generate(model, build_places_prompt(category, region), "Could not load places.")
    return _validate(_PLACE_LIST.validate_python, extract_json(text, list), text)


# ──────────────────────────────────────────────────────────────────────────────
# Quick facts (best effort)
# ──────────────────────────────────────────────────────────────────────────────
_FACTS_PROMPT = textwrap.dedent(
    """\
    Give 5 quick, interesting travel facts about {destination}, {country}.
    Answer with a JSON array of 5 strings (no markdown):
    ["fact 1", "fact 2", "fact 3", "fact 4", "fact 5"]
    """
)


def get_destination_insights(destination: str, country: str) -> List[str]:
    """Five short facts, or [] if anything goes wrong."""
    try:
        model = _get_model(temperature=0.7, max_output_tokens=512)
        text = _generate(model, _FACTS_PROMPT.format(destination=destination, country=country), "")
        facts = extract_json(text, list)
    except Exception as exc:
        logger.warning("No quick facts for %s: %s", destination, exc)
        return []
    return [str(f) for f in facts]
