import logging
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from trip_planner.models import ToolDeclaration

logger = logging.getLogger(__name__)

CATEGORIES = ["history", "nature", "beaches", "spirituality", "adventure", "shopping", "food"]

DECLARATION = ToolDeclaration(
    name="searchAttractions",
    description=(
        "MUST CALL THIS for any attraction/activity request. Search for tourist attractions, "
        "landmarks and points of interest in a city. Returns ratings, entry fees and short "
        "descriptions. ALWAYS include user interest categories."
    ),
    parameters={
        "type": "object",
        "properties": {
            "city": {"type": "string", "description": 'City name in India (REQUIRED, e.g., "Jaipur", "Goa")'},
            "categories": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Interest categories (RECOMMENDED): " + ", ".join(CATEGORIES),
            },
            "minRating": {"type": "number", "description": "Minimum rating filter (1-5, default: 4.0)", "default": 4.0},
            "maxResults": {"type": "integer", "description": "Number of attractions to return (default: 10)", "default": 10},
        },
        "required": ["city"],
    },
)


class AttractionSearchParams(BaseModel):
    """Validated searchAttractions arguments."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    city: str = Field(..., min_length=1)
    categories: List[str] = Field(default_factory=list)
    min_rating: float = Field(4.0, alias="minRating", ge=0, le=5)
    max_results: int = Field(10, alias="maxResults", ge=1, le=50)


# city -> (name, rating, category, entry fee, description)
_ATTRACTIONS = {
    "jaipur": [
        ("Amber Fort", 4.6, "history", 500, "Majestic hilltop fort with stunning architecture"),
        ("Hawa Mahal", 4.4, "history", 200, "Palace of Winds with unique facade"),
        ("City Palace", 4.5, "history", 700, "Royal residence with museums"),
        ("Jantar Mantar", 4.3, "history", 200, "Astronomical observatory"),
        ("Nahargarh Fort", 4.5, "history", 200, "Fort with panoramic city views"),
        ("Jal Mahal", 4.2, "nature", 0, "Water palace in Man Sagar Lake"),
        ("Johari Bazaar", 4.2, "shopping", 0, "Jewellery and textile market"),
    ],
    "goa": [
        ("Baga Beach", 4.3, "beaches", 0, "Popular beach with water sports"),
        ("Fort Aguada", 4.4, "history", 25, "17th century Portuguese fort"),
        ("Basilica of Bom Jesus", 4.6, "spirituality", 0, "UNESCO World Heritage church"),
        ("Dudhsagar Falls", 4.7, "nature", 400, "Spectacular four-tiered waterfall"),
        ("Palolem Beach", 4.5, "beaches", 0, "Crescent-shaped beach"),
    ],
    "delhi": [
        ("Red Fort", 4.4, "history", 500, "Iconic Mughal fort"),
        ("Qutub Minar", 4.5, "history", 500, "Tallest brick minaret"),
        ("Lotus Temple", 4.6, "spirituality", 0, "Bahai House of Worship"),
        ("Humayun's Tomb", 4.5, "history", 500, "Mughal architecture masterpiece"),
        ("Chandni Chowk", 4.3, "shopping", 0, "Historic market area"),
        ("Lodhi Gardens", 4.4, "nature", 0, "City park with tombs"),
    ],
    "agra": [
        ("Taj Mahal", 4.8, "history", 1000, "Wonder of the world"),
        ("Agra Fort", 4.5, "history", 650, "Red sandstone fort"),
        ("Fatehpur Sikri", 4.6, "history", 550, "Abandoned Mughal city"),
        ("Mehtab Bagh", 4.3, "nature", 200, "Garden with Taj view"),
    ],
}


def _slug(name: str) -> str:
    return "-".join(name.lower().replace("'", "").split())


async def search_attractions(args: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Return generated attractions for a city, filtered by category and rating."""
    params = AttractionSearchParams.model_validate(args)
    city = params.city.strip()
    logger.info("Generating attractions for %s, categories: %s", city, ", ".join(params.categories) or "any")

    rows = _ATTRACTIONS.get(city.lower()) or [
        (f"{city} Fort", 4.3, "history", 300, "Historic fort"),
        (f"{city} Palace", 4.4, "history", 400, "Royal palace"),
        (f"{city} Temple", 4.5, "spirituality", 0, "Ancient temple"),
        (f"{city} Market", 4.2, "shopping", 0, "Local bazaar"),
        (f"{city} Museum", 4.3, "history", 200, "City museum"),
    ]

    wanted = {c.lower() for c in params.categories}
    if wanted:
        rows = [r for r in rows if r[2] in wanted]
    rows = [r for r in rows if r[1] >= params.min_rating]

    attractions = [
        {
            "name": name,
            "rating": rating,
            "category": category,
            "entryFee": fee,
            "currency": "INR",
            "address": f"{city}, India",
            "placeId": f"ai-generated-{_slug(name)}",
            "types": [category, "tourist_attraction"],
            "description": description,
            "isAIGenerated": True,
        }
        for name, rating, category, fee, description in rows[: params.max_results]
    ]
    logger.info("Generated %d attractions for %s", len(attractions), city)
    return attractions
