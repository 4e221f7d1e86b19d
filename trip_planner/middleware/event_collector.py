"""Per-request orchestration event collector using contextvars.

Usage:
    # In the request handler (main.py):
    reset_events()
    await orchestrator.chat(...)
    events = get_events()

    # Anywhere in the orchestration path:
    emit_event(source="tool_cache", status="hit", message="...", details={...})

Tasks spawned with asyncio.gather inherit a copy of the context, but the list
object itself is shared, so events emitted from concurrent tool calls land in
the same request's list.
"""

import contextvars
from typing import Any

_events: contextvars.ContextVar[list[dict[str, Any]] | None] = contextvars.ContextVar(
    "orchestration_events", default=None
)


def reset_events() -> None:
    """Start a fresh event list for a new request."""
    _events.set([])


def emit_event(*, source: str, status: str, message: str, details: dict[str, Any] | None = None) -> None:
    """Record an event for the current request. No-op outside a request."""
    events = _events.get()
    if events is None:
        return
    event = {"source": source, "status": status, "message": message}
    if details:
        event["details"] = details
    events.append(event)


def get_events() -> list[dict[str, Any]]:
    """Return the events collected during the current request."""
    return list(_events.get() or [])
