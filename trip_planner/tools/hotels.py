import logging
from datetime import date
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from trip_planner.models import ToolDeclaration

logger = logging.getLogger(__name__)

USER_AGENT = "TripPlanner/1.0"
SERPAPI_URL = "https://serpapi.com/search.json"
MIN_SERPAPI_RESULTS = 2

DECLARATION = ToolDeclaration(
    name="getHotels",
    description=(
        "MUST CALL THIS for any hotel/accommodation request. Search for hotels with prices, "
        "ratings, amenities and photos. ALWAYS include checkin and checkout dates."
    ),
    parameters={
        "type": "object",
        "properties": {
            "city": {"type": "string", "description": "City name in India (REQUIRED)"},
            "checkin": {"type": "string", "description": "Check-in date in YYYY-MM-DD format (REQUIRED)"},
            "checkout": {"type": "string", "description": "Check-out date in YYYY-MM-DD format (REQUIRED)"},
            "adults": {"type": "integer", "description": "Number of adults (default: 2)", "default": 2},
            "children": {"type": "integer", "description": "Number of children (default: 0)", "default": 0},
            "rooms": {"type": "integer", "description": "Number of rooms (default: 1)", "default": 1},
            "stars": {
                "type": "array",
                "items": {"type": "integer"},
                "description": "Hotel star ratings to filter (3, 4, 5)",
            },
            "maxPriceInr": {"type": "number", "description": "Maximum price per night in INR"},
            "maxResults": {"type": "integer", "description": "Number of hotels to return (default: 6)", "default": 6},
        },
        "required": ["city", "checkin", "checkout", "adults"],
    },
)


class HotelSearchParams(BaseModel):
    """Validated getHotels arguments."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    city: str = Field(..., min_length=1)
    checkin: date
    checkout: date
    adults: int = Field(2, ge=1)
    children: int = Field(0, ge=0)
    rooms: int = Field(1, ge=1)
    stars: List[int] = Field(default_factory=list)
    max_price_inr: Optional[float] = Field(None, alias="maxPriceInr")
    max_results: int = Field(6, alias="maxResults", ge=1, le=20)

    @property
    def nights(self) -> int:
        return max((self.checkout - self.checkin).days, 1)


# city -> (name, stars, rating, price per night, description)
_GENERATED_HOTELS = {
    "jaipur": [
        ("Taj Jai Mahal Palace", 5, 4.7, 8500, "Luxury palace hotel"),
        ("ITC Grand Bharat", 5, 4.6, 7800, "Premium heritage hotel"),
        ("Radisson Blu Jaipur", 4, 4.5, 4500, "Business hotel"),
        ("Lemon Tree Premier", 4, 4.3, 3800, "Modern comfort hotel"),
        ("OYO Flagship Jaipur", 3, 4.0, 2200, "Budget hotel"),
        ("FabHotel Prime", 3, 3.9, 1800, "Economy hotel"),
    ],
    "goa": [
        ("Taj Exotica Resort", 5, 4.8, 12000, "Luxury beach resort"),
        ("Park Hyatt Goa", 5, 4.7, 10500, "Premium resort"),
        ("Radisson Blu Resort Goa", 4, 4.5, 6500, "Beach resort"),
        ("Sunbeam Holiday Resort", 4, 4.3, 4200, "Comfort resort"),
        ("OYO Rooms Goa", 3, 4.0, 2500, "Budget rooms"),
    ],
    "delhi": [
        ("The Oberoi New Delhi", 5, 4.7, 9500, "Luxury hotel"),
        ("ITC Maurya", 5, 4.6, 8800, "Premium hotel"),
        ("Radisson Blu Delhi", 4, 4.4, 5200, "Business hotel"),
        ("Lemon Tree Hotel Delhi", 4, 4.2, 3900, "Comfort hotel"),
        ("OYO Hotel Delhi", 3, 3.9, 2100, "Budget hotel"),
    ],
    "agra": [
        ("The Oberoi Amarvilas", 5, 4.8, 11000, "Taj view luxury hotel"),
        ("ITC Mughal", 5, 4.7, 9200, "Heritage hotel"),
        ("Radisson Blu Agra", 4, 4.5, 5500, "Premium hotel"),
        ("Lemon Tree Hotel Agra", 4, 4.3, 4000, "Comfort hotel"),
    ],
}


def _generated_hotels(params: HotelSearchParams, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    city = params.city.strip()
    rows = _GENERATED_HOTELS.get(city.lower()) or [
        (f"{city} Palace Hotel", 5, 4.5, 8000, "Luxury hotel"),
        (f"{city} Grand Hotel", 4, 4.3, 4500, "Premium hotel"),
        (f"{city} Comfort Inn", 3, 4.0, 2500, "Budget hotel"),
    ]
    if params.stars:
        rows = [r for r in rows if r[1] in params.stars]
    if params.max_price_inr:
        rows = [r for r in rows if r[3] <= params.max_price_inr]

    hotels = []
    for name, stars, rating, price, description in rows[: limit or params.max_results]:
        hotels.append({
            "name": name,
            "stars": stars,
            "rating": rating,
            "pricePerNight": price,
            "totalPrice": price * params.nights,
            "currency": "INR",
            "address": f"{city}, India",
            "city": city,
            "description": description,
            "amenities": ["WiFi", "Parking", "Restaurant", "Room Service"],
            "checkInTime": "2:00 PM",
            "checkOutTime": "12:00 PM",
            "isAIGenerated": True,
        })
    logger.info("Generated %d hotels for %s", len(hotels), city)
    return hotels


async def _search_serpapi(
    params: HotelSearchParams, api_key: str, client: Optional[httpx.AsyncClient] = None
) -> List[Dict[str, Any]]:
    """Query SerpAPI's Google Hotels engine and map properties to hotel records."""
    query = {
        "engine": "google_hotels",
        "q": f"hotels in {params.city}, India",
        "check_in_date": params.checkin.isoformat(),
        "check_out_date": params.checkout.isoformat(),
        "adults": params.adults,
        "currency": "INR",
        "gl": "in",
        "hl": "en",
        "api_key": api_key,
    }
    if params.children:
        query["children"] = params.children

    logger.info("Fetching hotels from SerpAPI for %s", params.city)
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=15.0, headers={"User-Agent": USER_AGENT})
    try:
        r = await client.get(SERPAPI_URL, params=query)
        r.raise_for_status()
        properties = r.json().get("properties") or []
    finally:
        if owns_client:
            await client.aclose()

    hotels = []
    for prop in properties:
        price = (prop.get("rate_per_night") or {}).get("extracted_lowest") or 0
        stars = prop.get("extracted_hotel_class") or 0
        if params.stars and stars not in params.stars:
            continue
        if params.max_price_inr and price > params.max_price_inr:
            continue
        images = prop.get("images") or []
        hotels.append({
            "name": prop.get("name"),
            "stars": stars,
            "rating": prop.get("overall_rating") or 0,
            "reviews": prop.get("reviews") or 0,
            "pricePerNight": round(price),
            "totalPrice": round(price * params.nights),
            "currency": "INR",
            "address": f"{params.city}, India",
            "city": params.city,
            "description": prop.get("description") or f"Hotel in {params.city}",
            "amenities": (prop.get("amenities") or [])[:5],
            "thumbnail": images[0].get("thumbnail") if images else None,
            "gpsCoordinates": prop.get("gps_coordinates"),
        })
        if len(hotels) >= params.max_results:
            break
    return hotels


async def get_hotels(
    args: Dict[str, Any],
    *,
    serpapi_key: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> List[Dict[str, Any]]:
    """
    Search hotels for a stay.

    With a SerpAPI key, real Google Hotels data is used; when it returns fewer
    than two hotels (or the request fails) the list is topped up with
    generated records so the model always has options to present.
    """
    params = HotelSearchParams.model_validate(args)
    if params.checkout < params.checkin:
        raise ValueError("checkout must not be before checkin")

    logger.info(
        "Searching hotels in %s, %s to %s, %d adults",
        params.city, params.checkin, params.checkout, params.adults,
    )
    if not serpapi_key:
        return _generated_hotels(params)

    try:
        hotels = await _search_serpapi(params, serpapi_key, client)
    except httpx.HTTPError as e:
        logger.warning("SerpAPI hotel search failed for %s (%s), using generated data", params.city, e)
        return _generated_hotels(params)

    if len(hotels) >= MIN_SERPAPI_RESULTS:
        logger.info("Found %d hotels from SerpAPI", len(hotels))
        return hotels

    logger.info("Only %d hotel(s) from SerpAPI, supplementing with generated data", len(hotels))
    supplement = _generated_hotels(params, limit=params.max_results - len(hotels))
    return (hotels + supplement)[: params.max_results]
