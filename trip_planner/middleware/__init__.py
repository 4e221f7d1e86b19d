from trip_planner.middleware.retry import retry_model, retry_tool
from trip_planner.middleware.event_collector import emit_event, get_events, reset_events

__all__ = ["retry_model", "retry_tool", "emit_event", "get_events", "reset_events"]
