import os
from datetime import date, timedelta

import requests
import streamlit as st

from trip_planner.client import TripPlannerAPIError, TripPlannerClient

API_BASE_URL = os.environ.get("API_BASE_URL", "http://localhost:8000")

client = TripPlannerClient(API_BASE_URL)

st.title("Yatra Trip Planner")

# Initialise session state
if "conversation_id" not in st.session_state:
    st.session_state.conversation_id = None
if "messages" not in st.session_state:
    st.session_state.messages = []

# Sidebar: trip context
st.sidebar.header("Your trip")
destination = st.sidebar.text_input("Destination", placeholder="Jaipur")
start_date = st.sidebar.date_input("Start date", value=date.today() + timedelta(days=30))
end_date = st.sidebar.date_input("End date", value=date.today() + timedelta(days=33))
budget_inr = st.sidebar.number_input("Budget (INR)", min_value=0, value=30000, step=1000)
adults = st.sidebar.number_input("Adults", min_value=1, value=2)
children = st.sidebar.number_input("Children", min_value=0, value=0)
interests = st.sidebar.multiselect(
    "Interests", ["history", "culture", "food", "nature", "shopping", "adventure", "nightlife", "spiritual"]
)
hotel_class = st.sidebar.selectbox("Hotel class", ["any", "budget", "mid-range", "luxury"])
diet = st.sidebar.selectbox("Diet", ["any", "vegetarian", "vegan", "halal", "non-veg"])


def trip_context() -> dict:
    context = {
        "destination": destination.strip() or None,
        "startDate": start_date.isoformat() if start_date else None,
        "endDate": end_date.isoformat() if end_date else None,
        "budgetInr": int(budget_inr) or None,
        "adults": int(adults),
        "children": int(children) or None,
        "interests": interests or None,
        "hotelClass": None if hotel_class == "any" else hotel_class,
        "diet": None if diet == "any" else diet,
    }
    return {k: v for k, v in context.items() if v is not None}


if st.sidebar.button("New trip"):
    if st.session_state.conversation_id:
        try:
            client.clear_conversation(st.session_state.conversation_id)
        except (requests.exceptions.RequestException, TripPlannerAPIError) as e:
            st.sidebar.warning(f"Could not clear the previous conversation: {e}")
    st.session_state.messages = []
    st.session_state.conversation_id = None
    st.rerun()

show_debug = st.sidebar.toggle("Show debug trace", value=False)

# ── Result rendering ─────────────────────────────────────────────────────────


def _render_hotels(hotels):
    st.markdown(":hotel: **Hotels**")
    st.dataframe(
        [
            {
                "Name": h.get("name"),
                "Rating": h.get("rating"),
                "Per night (INR)": h.get("pricePerNight"),
                "Total (INR)": h.get("totalPrice"),
                "Estimate": "yes" if h.get("isAIGenerated") else "",
            }
            for h in hotels
        ],
        hide_index=True,
    )


def _render_attractions(attractions):
    st.markdown(":classical_building: **Attractions**")
    st.dataframe(
        [
            {
                "Name": a.get("name"),
                "Category": a.get("category"),
                "Rating": a.get("rating"),
                "Entry fee (INR)": a.get("entryFee"),
            }
            for a in attractions
        ],
        hide_index=True,
    )


def render_data(data):
    """Render the structured tool results returned with a reply."""
    if data.get("hotels"):
        _render_hotels(data["hotels"])
    if data.get("attractions"):
        _render_attractions(data["attractions"])
    for key in ("restaurants", "transport", "localTransport"):
        if data.get(key):
            with st.expander(key, expanded=False):
                st.json(data[key], expanded=False)


# ── Debug rendering ──────────────────────────────────────────────────────────


def _render_step_tool_call(step):
    """Render an AIMessage that contains tool calls (and optional reasoning)."""
    reasoning = step.get("reasoning", "")
    if reasoning:
        st.markdown(":thought_balloon: **Model reasoning**")
        st.caption(reasoning)

    for tc in step.get("tool_calls", []):
        st.markdown(f":hammer_and_wrench: **Tool call** `{tc['name']}`")
        if tc.get("args"):
            st.json(tc["args"], expanded=False)


def _render_step_tool_result(step):
    icon = ":package:" if step.get("status") != "error" else ":x:"
    st.markdown(f"{icon} **Tool result** `{step.get('tool_name', 'unknown')}`")
    st.code(step.get("content", ""), language="json")


_EVENT_STATUS_ICONS = {
    "hit": ":zap:",
    "created": ":new:",
    "recovered": ":warning:",
    "retrying": ":repeat:",
    "capped": ":stop_sign:",
    "failed": ":x:",
}

_EVENT_LABELS = {
    "retry_model": "Model Retry",
    "retry_tool": "Tool Retry",
    "tool_cache": "Tool Cache",
    "tool": "Tool",
    "orchestrator": "Orchestrator",
    "conversation": "Conversation",
}


def _render_events(events):
    st.markdown(":shield: **Orchestration activity**")
    for event in events:
        icon = _EVENT_STATUS_ICONS.get(event.get("status"), ":grey_question:")
        label = _EVENT_LABELS.get(event.get("source"), event.get("source", "unknown"))
        st.markdown(f"{icon} **{label}**: {event.get('message', '')}")
        if event.get("details"):
            st.json(event["details"], expanded=False)


def render_debug(trace, events=None):
    """Render events and the stored history as a collapsible debug trace."""
    with st.expander("Debug trace", expanded=False):
        if events:
            _render_events(events)
            st.divider()

        for i, step in enumerate(trace or []):
            msg_type = step.get("type", "")
            if msg_type == "SystemMessage":
                continue
            st.markdown(f"**{i}.**")
            if msg_type == "AIMessage" and step.get("tool_calls"):
                _render_step_tool_call(step)
            elif msg_type == "ToolMessage":
                _render_step_tool_result(step)
            elif msg_type == "HumanMessage":
                st.info(step.get("content", ""))
            else:
                st.success(step.get("content", ""))


# ── Chat history ─────────────────────────────────────────────────────────────

for msg in st.session_state.messages:
    with st.chat_message(msg["role"]):
        st.markdown(msg["content"])
        if msg.get("data"):
            render_data(msg["data"])
        if show_debug and (msg.get("trace") or msg.get("events")):
            render_debug(msg.get("trace"), msg.get("events"))

# ── Chat input ───────────────────────────────────────────────────────────────

if prompt := st.chat_input("Where would you like to go?"):
    st.session_state.messages.append({"role": "user", "content": prompt})
    with st.chat_message("user"):
        st.markdown(prompt)

    with st.chat_message("assistant"):
        data, events, trace = None, None, None
        with st.spinner("Planning…"):
            try:
                body = client.send_message(prompt, st.session_state.conversation_id, trip_context())
                result = body["data"]
                st.session_state.conversation_id = result["conversationId"]
                reply = result["text"] or "I couldn't finish planning that. Could you narrow it down?"
                data = result.get("data")
                events = body.get("events")
                if show_debug:
                    trace = client.get_trace(st.session_state.conversation_id).get("messages")
            except requests.exceptions.ConnectionError:
                reply = "Could not reach the server. Is the API running?"
            except requests.exceptions.Timeout:
                reply = "The request timed out. Please try again."
            except TripPlannerAPIError as e:
                reply = f"{e} ({e.status_code})"

        st.markdown(reply)
        if data:
            render_data(data)
        if show_debug and (trace or events):
            render_debug(trace, events)

    st.session_state.messages.append(
        {"role": "assistant", "content": reply, "data": data, "events": events, "trace": trace}
    )
