"""Thin HTTP client for the trip planner API, used by the Streamlit UI."""

import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)


class TripPlannerAPIError(Exception):
    """The API answered with an error body or an unexpected status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class TripPlannerClient:
    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 120):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def send_message(
        self,
        message: str,
        conversation_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """POST a chat message.

        Returns the response body: {"success": True, "data": {...}, "events": [...]}.

        Raises:
            TripPlannerAPIError: the API returned an error status.
            requests.exceptions.ConnectionError / Timeout: the API was unreachable.
        """
        payload: Dict[str, Any] = {"message": message}
        if conversation_id:
            payload["conversationId"] = conversation_id
        if context:
            payload["context"] = context

        resp = self.session.post(f"{self.base_url}/api/chat", json=payload, timeout=self.timeout)
        return self._handle(resp)

    def clear_conversation(self, conversation_id: str) -> Dict[str, Any]:
        resp = self.session.delete(f"{self.base_url}/api/conversation/{conversation_id}", timeout=10)
        return self._handle(resp)

    def get_trace(self, conversation_id: str) -> Dict[str, Any]:
        resp = self.session.get(f"{self.base_url}/api/conversation/{conversation_id}", timeout=10)
        return self._handle(resp)

    @staticmethod
    def _handle(resp: requests.Response) -> Dict[str, Any]:
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not resp.ok or not body.get("success", False):
            error = body.get("error") or f"Server error ({resp.status_code})"
            logger.warning("API call %s failed: %s", resp.url, error)
            raise TripPlannerAPIError(error, status_code=resp.status_code)
        return body
