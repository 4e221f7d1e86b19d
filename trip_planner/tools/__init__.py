from functools import partial
from typing import Optional

from trip_planner.config import Settings
from trip_planner.tools import attractions, hotels, restaurants, transport
from trip_planner.tools.cache import MISS, ToolCache
from trip_planner.tools.registry import ToolRegistry


def build_default_registry(settings: Optional[Settings] = None) -> ToolRegistry:
    """Register the trip-planning tools with their aggregation slots."""
    serpapi_key = settings.serpapi_key if settings else None

    registry = ToolRegistry()
    registry.register(
        "getHotels",
        partial(hotels.get_hotels, serpapi_key=serpapi_key),
        hotels.DECLARATION,
        data_key="hotels",
    )
    registry.register(
        "searchAttractions", attractions.search_attractions, attractions.DECLARATION, data_key="attractions"
    )
    registry.register(
        "getRestaurants", restaurants.get_restaurants, restaurants.DECLARATION, data_key="restaurants"
    )
    registry.register(
        "getTransportOptions",
        transport.get_transport_options,
        transport.TRANSPORT_DECLARATION,
        data_key="transport",
    )
    registry.register(
        "estimateLocalTransport",
        transport.estimate_local_transport,
        transport.LOCAL_TRANSPORT_DECLARATION,
        data_key="localTransport",
    )
    registry.validate()
    return registry


__all__ = ["MISS", "ToolCache", "ToolRegistry", "build_default_registry"]
