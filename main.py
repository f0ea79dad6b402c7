# main.py

from typing import List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

import config

# Loads environment variables (.env)
config.load_env()
config.setup_logging()

from ai import gemini
from core.errors import ExtractionError, ProviderError
from core.models import ChatMessage, ItineraryRequest
from core.schemas import Itinerary, PlaceDetail, PlaceSummary
from services import weather as wsvc
from services.trips import TripStore

app = FastAPI(title="WanderAI")


def get_trip_store() -> TripStore:
    return TripStore.from_env()


def _raise_http(exc: Exception):
    if isinstance(exc, (ProviderError, ExtractionError)):
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    if isinstance(exc, ValueError):
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    raise HTTPException(status_code=500, detail=str(exc)) from exc


# Request schemas
class ItineraryBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    destination: str
    country: str = ""
    days: int = Field(5, ge=1, le=30)
    travel_style: str = Field("Cultural", alias="travelStyle")
    interests: List[str] = []


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatBody(BaseModel):
    messages: List[ChatTurn] = Field(min_length=1)
    destination: str
    country: str = ""


class SaveTripBody(BaseModel):
    itinerary: Itinerary
    image: Optional[str] = None


@app.get("/api/weather/{city}")
def weather_endpoint(city: str):
    try:
        report = wsvc.fetch_weather(city)
    except (ProviderError, RuntimeError) as e:
        _raise_http(e)
    return {"current": report.current, "forecast": report.forecast}


@app.post("/api/itinerary", response_model=Itinerary)
def itinerary_endpoint(req: ItineraryBody):
    try:
        return gemini.generate_itinerary(
            ItineraryRequest(
                destination=req.destination,
                country=req.country,
                days=req.days,
                travel_style=req.travel_style,
                interests=req.interests,
            )
        )
    except Exception as e:
        _raise_http(e)


@app.post("/api/chat")
def chat_endpoint(req: ChatBody):
    messages = [ChatMessage(role=m.role, content=m.content) for m in req.messages]
    try:
        reply = gemini.chat_with_ai(messages, req.destination, req.country)
    except Exception as e:
        _raise_http(e)
    return {"role": "assistant", "content": reply}


@app.get("/api/places", response_model=List[PlaceSummary])
def places_endpoint(category: str = Query(...), region: str = "All"):
    try:
        return gemini.fetch_world_places(category, region)
    except Exception as e:
        _raise_http(e)


@app.get("/api/places/{name}", response_model=PlaceDetail)
def place_detail_endpoint(name: str, category: str = Query(...)):
    try:
        return gemini.get_place_details(name, category)
    except Exception as e:
        _raise_http(e)


@app.get("/api/insights")
def insights_endpoint(destination: str, country: str = ""):
    return {"facts": gemini.get_destination_insights(destination, country)}


@app.get("/api/trips")
def list_trips_endpoint(store: TripStore = Depends(get_trip_store)):
    return store.list()


@app.post("/api/trips", status_code=201)
def save_trip_endpoint(req: SaveTripBody, store: TripStore = Depends(get_trip_store)):
    return store.add(req.itinerary, image=req.image)


@app.delete("/api/trips/{trip_id}")
def delete_trip_endpoint(trip_id: int, store: TripStore = Depends(get_trip_store)):
    if not store.remove(trip_id):
        raise HTTPException(status_code=404, detail=f"No saved trip {trip_id}")
    return {"message": "Trip removed"}
