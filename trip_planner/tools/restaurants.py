import logging
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from trip_planner.models import ToolDeclaration

logger = logging.getLogger(__name__)

DIETS = ["any", "vegetarian", "vegan", "halal", "non-veg"]

DECLARATION = ToolDeclaration(
    name="getRestaurants",
    description="Find restaurants and dining options in a city with cuisine, ratings, and price levels.",
    parameters={
        "type": "object",
        "properties": {
            "city": {"type": "string", "description": "City name in India"},
            "cuisines": {
                "type": "array",
                "items": {"type": "string"},
                "description": 'Preferred cuisines (e.g., "North Indian", "South Indian", "Chinese")',
            },
            "diet": {"type": "string", "enum": DIETS, "description": "Dietary restriction", "default": "any"},
            "minRating": {"type": "number", "description": "Minimum rating (1-5)", "default": 4.0},
            "priceLevel": {
                "type": "integer",
                "description": "Price level: 1=budget, 2=moderate, 3=expensive, 4=luxury",
            },
            "maxResults": {"type": "integer", "description": "Number of restaurants to return", "default": 8},
        },
        "required": ["city"],
    },
)


class RestaurantSearchParams(BaseModel):
    """Validated getRestaurants arguments."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    city: str = Field(..., min_length=1)
    cuisines: List[str] = Field(default_factory=list)
    diet: Literal["any", "vegetarian", "vegan", "halal", "non-veg"] = "any"
    min_rating: float = Field(4.0, alias="minRating", ge=0, le=5)
    price_level: Optional[int] = Field(None, alias="priceLevel", ge=1, le=4)
    max_results: int = Field(8, alias="maxResults", ge=1, le=30)


# city -> (name, rating, cuisine, price level, vegetarian)
_RESTAURANTS = {
    "jaipur": [
        ("Laxmi Mishthan Bhandar", 4.5, "Rajasthani", 2, True),
        ("Chokhi Dhani", 4.3, "Rajasthani", 3, True),
        ("Peacock Rooftop Restaurant", 4.4, "Multi-cuisine", 3, False),
        ("Rawat Mishthan", 4.5, "Rajasthani", 1, True),
        ("Spice Court", 4.3, "North Indian", 2, False),
        ("Handi Restaurant", 4.4, "Mughlai", 2, False),
    ],
    "goa": [
        ("Fisherman's Wharf", 4.4, "Seafood", 3, False),
        ("Thalassa", 4.5, "Greek", 3, False),
        ("Britto's", 4.3, "Goan", 2, False),
        ("Infantaria", 4.3, "Bakery", 2, True),
    ],
    "delhi": [
        ("Karim's", 4.4, "Mughlai", 2, False),
        ("Paranthe Wali Gali", 4.3, "North Indian", 1, True),
        ("Indian Accent", 4.6, "Modern Indian", 4, False),
        ("Saravana Bhavan", 4.4, "South Indian", 2, True),
        ("Bukhara", 4.5, "North Indian", 4, False),
    ],
}


async def get_restaurants(args: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Return generated restaurants filtered by diet, cuisine, rating and price level."""
    params = RestaurantSearchParams.model_validate(args)
    city = params.city.strip()
    logger.info("Generating restaurants for %s, diet: %s", city, params.diet)

    rows = _RESTAURANTS.get(city.lower()) or [
        (f"{city} Dhaba", 4.2, "North Indian", 2, True),
        (f"{city} Cafe", 4.3, "Multi-cuisine", 2, False),
        (f"{city} Restaurant", 4.4, "Local", 2, False),
    ]

    if params.diet in ("vegetarian", "vegan"):
        rows = [r for r in rows if r[4]]
    elif params.diet == "non-veg":
        rows = [r for r in rows if not r[4]]
    if params.cuisines:
        wanted = {c.lower() for c in params.cuisines}
        matching = [r for r in rows if r[2].lower() in wanted]
        # fall back to everything when no cuisine matches
        rows = matching or rows
    rows = [r for r in rows if r[1] >= params.min_rating]
    if params.price_level:
        rows = [r for r in rows if r[3] == params.price_level]

    return [
        {
            "name": name,
            "rating": rating,
            "priceLevel": price,
            "address": f"{city}, India",
            "cuisineTypes": [cuisine],
            "vegetarian": veg,
            "isAIGenerated": True,
        }
        for name, rating, cuisine, price, veg in rows[: params.max_results]
    ]
