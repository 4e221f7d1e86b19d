"""
Tests for the HTTP client used by the Streamlit UI.
"""

import pytest
import requests

from trip_planner.client import TripPlannerAPIError, TripPlannerClient


def _response(mocker, status_code=200, body=None, url="http://api/api/chat"):
    resp = mocker.Mock(spec=requests.Response)
    resp.status_code = status_code
    resp.ok = status_code < 400
    resp.url = url
    if body is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body
    return resp


@pytest.fixture
def api(mocker):
    client = TripPlannerClient("http://api/", timeout=30)
    mocker.patch.object(client, "session")
    return client


class TestTripPlannerClient:
    """Request shapes and error handling."""

    def test_send_message_payload(self, api, mocker):
        body = {"success": True, "data": {"text": "hi", "conversationId": "c1"}, "events": []}
        api.session.post.return_value = _response(mocker, body=body)

        result = api.send_message("Plan Goa", "c1", {"destination": "Goa"})

        assert result == body
        api.session.post.assert_called_once_with(
            "http://api/api/chat",
            json={"message": "Plan Goa", "conversationId": "c1", "context": {"destination": "Goa"}},
            timeout=30,
        )

    def test_new_conversation_omits_optional_fields(self, api, mocker):
        api.session.post.return_value = _response(mocker, body={"success": True, "data": {}})

        api.send_message("Hi")

        assert api.session.post.call_args.kwargs["json"] == {"message": "Hi"}

    def test_error_body_raises(self, api, mocker):
        api.session.post.return_value = _response(mocker, 502, {"success": False, "error": "AI service unavailable"})

        with pytest.raises(TripPlannerAPIError) as exc_info:
            api.send_message("Hi")

        assert str(exc_info.value) == "AI service unavailable"
        assert exc_info.value.status_code == 502

    def test_non_json_error(self, api, mocker):
        api.session.post.return_value = _response(mocker, 500)

        with pytest.raises(TripPlannerAPIError, match="Server error \\(500\\)"):
            api.send_message("Hi")

    def test_clear_conversation(self, api, mocker):
        api.session.delete.return_value = _response(
            mocker, body={"success": True, "message": "Conversation cleared"}
        )

        assert api.clear_conversation("c1")["message"] == "Conversation cleared"
        api.session.delete.assert_called_once_with("http://api/api/conversation/c1", timeout=10)

    def test_get_trace(self, api, mocker):
        api.session.get.return_value = _response(mocker, body={"success": True, "messages": []})

        assert api.get_trace("c1")["messages"] == []

    def test_connection_errors_propagate(self, api):
        api.session.post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(requests.exceptions.ConnectionError):
            api.send_message("Hi")
