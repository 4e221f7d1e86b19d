import logging
import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from trip_planner.models import ToolDeclaration

logger = logging.getLogger(__name__)

TRANSPORT_DECLARATION = ToolDeclaration(
    name="getTransportOptions",
    description=(
        "MUST CALL THIS for intercity travel. Find intercity transport options (flights, trains, "
        "buses) with schedules and fares."
    ),
    parameters={
        "type": "object",
        "properties": {
            "origin": {"type": "string", "description": "Origin city or airport code (REQUIRED)"},
            "destination": {"type": "string", "description": "Destination city or airport code (REQUIRED)"},
            "date": {"type": "string", "description": "Travel date in YYYY-MM-DD format (REQUIRED)"},
            "mode": {
                "type": "string",
                "enum": ["flight", "train", "bus"],
                "description": "Transport mode (REQUIRED): flight, train, or bus",
            },
            "maxPriceInr": {"type": "number", "description": "Maximum fare in INR"},
            "maxResults": {"type": "integer", "description": "Number of options to return (default: 5)", "default": 5},
        },
        "required": ["origin", "destination", "date", "mode"],
    },
)

LOCAL_TRANSPORT_DECLARATION = ToolDeclaration(
    name="estimateLocalTransport",
    description=(
        "MUST CALL THIS for local travel costs. Estimate local transport costs (taxi, rideshare, "
        "metro, bus) within a city or from the airport. Returns estimated fares and travel times."
    ),
    parameters={
        "type": "object",
        "properties": {
            "city": {"type": "string", "description": "City name (REQUIRED)"},
            "origin": {
                "type": "string",
                "description": 'Starting point (REQUIRED, e.g., "airport", "railway station", hotel address)',
            },
            "destination": {"type": "string", "description": "Destination address or landmark (REQUIRED)"},
            "mode": {
                "type": "string",
                "enum": ["taxi", "rideshare", "metro", "bus"],
                "description": "Transport mode (default: taxi)",
                "default": "taxi",
            },
        },
        "required": ["city", "origin", "destination"],
    },
)


class TransportSearchParams(BaseModel):
    """Validated getTransportOptions arguments."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    date: datetime.date
    mode: Literal["flight", "train", "bus"]
    max_price_inr: Optional[float] = Field(None, alias="maxPriceInr")
    max_results: int = Field(5, alias="maxResults", ge=1, le=20)


class LocalTransportParams(BaseModel):
    """Validated estimateLocalTransport arguments."""
    model_config = ConfigDict(extra="ignore")

    city: str = Field(..., min_length=1)
    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    mode: Literal["taxi", "rideshare", "metro", "bus"] = "taxi"


_INTERCITY = {
    "flight": [
        {"carrier": "IndiGo", "number": "6E-123", "departure": "08:00", "arrival": "10:30", "price": 4500, "duration": "2h 30m"},
        {"carrier": "Air India", "number": "AI-456", "departure": "14:00", "arrival": "16:45", "price": 5200, "duration": "2h 45m"},
        {"carrier": "Akasa Air", "number": "QP-789", "departure": "19:30", "arrival": "21:50", "price": 3900, "duration": "2h 20m"},
    ],
    "train": [
        {"name": "Shatabdi Express", "number": "12001", "departure": "06:00", "arrival": "12:30", "price": 1200, "class": "AC Chair"},
        {"name": "Rajdhani Express", "number": "12301", "departure": "16:00", "arrival": "22:00", "price": 1800, "class": "2AC"},
    ],
    "bus": [
        {"operator": "RSRTC Volvo", "departure": "07:00", "arrival": "13:00", "price": 900, "type": "AC Seater"},
        {"operator": "Zingbus", "departure": "22:00", "arrival": "05:30", "price": 1100, "type": "AC Sleeper"},
    ],
}

# km from the city centre for common starting points
_DISTANCE_KM = {
    "airport": 15,
    "railway station": 5,
    "bus stand": 3,
}
DEFAULT_DISTANCE_KM = 10
BASE_FARE_INR = 50
PER_KM_INR = {"taxi": 18, "rideshare": 12, "metro": 3, "bus": 2}
MINUTES_PER_KM = {"taxi": 3, "rideshare": 3, "metro": 2, "bus": 4}


async def get_transport_options(args: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Return generated intercity options for one mode, filtered by maximum fare."""
    params = TransportSearchParams.model_validate(args)
    logger.info(
        "Searching %s from %s to %s on %s", params.mode, params.origin, params.destination, params.date
    )
    options = _INTERCITY[params.mode]
    if params.max_price_inr:
        options = [o for o in options if o["price"] <= params.max_price_inr]
    return [
        {
            **option,
            "mode": params.mode,
            "origin": params.origin,
            "destination": params.destination,
            "date": params.date.isoformat(),
            "currency": "INR",
            "isAIGenerated": True,
        }
        for option in options[: params.max_results]
    ]


async def estimate_local_transport(args: Dict[str, Any]) -> Dict[str, Any]:
    """Estimate a local fare from a rough distance table."""
    params = LocalTransportParams.model_validate(args)
    origin = params.origin.strip().lower()
    if origin == params.destination.strip().lower():
        raise ValueError("Route not found")

    distance = _DISTANCE_KM.get(origin) or _DISTANCE_KM.get(params.destination.strip().lower()) or DEFAULT_DISTANCE_KM
    fare = round(BASE_FARE_INR + distance * PER_KM_INR[params.mode])
    logger.info("Estimated %s fare in %s: %d INR for %d km", params.mode, params.city, fare, distance)
    return {
        "city": params.city,
        "origin": params.origin,
        "destination": params.destination,
        "mode": params.mode,
        "distance": f"{distance} km",
        "duration": f"{distance * MINUTES_PER_KM[params.mode]} min",
        "estimatedFare": fare,
        "currency": "INR",
        "isAIGenerated": True,
    }
