"""GraphQL transport for the governance registry (Tally) API."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .constants import REGISTRY_API_URL
from .exceptions import RegistryTransportError

logger = logging.getLogger(__name__)


def _redact(secret: str) -> str:
    return f"{secret[:10]}..."


@dataclass
class RegistryResponse:
    """Decoded registry reply. HTTP error statuses are carried, not raised."""

    status_code: int
    body: Dict[str, Any]

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def data(self) -> Optional[Dict[str, Any]]:
        return self.body.get("data")

    @property
    def errors(self) -> Optional[Any]:
        return self.body.get("errors")

    def errors_text(self) -> str:
        """Serialized errors payload, or "" when there are none."""
        if not self.errors:
            return ""
        return json.dumps(self.errors)


class RegistryClient:
    """Posts GraphQL documents to the registry's single query endpoint."""

    def __init__(
        self,
        api_key: str,
        api_url: str = REGISTRY_API_URL,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.session = session or requests.Session()
        self.timeout = timeout

    def execute(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> RegistryResponse:
        """
        Execute a GraphQL query or mutation.

        Args:
            query: GraphQL document
            variables: GraphQL variables
            token: Bearer token for authenticated operations
            headers: Extra headers (e.g., the login nonce)

        Returns:
            RegistryResponse with the HTTP status and decoded JSON body

        Raises:
            RegistryTransportError: If the request fails or the body is not JSON
        """
        request_headers = {
            "Content-Type": "application/json",
            "api-key": self.api_key,
        }
        if token is not None:
            request_headers["Authorization"] = f"Bearer {token}"
        if headers:
            request_headers.update(headers)

        payload: Dict[str, Any] = {"query": query}
        if variables is not None:
            payload["variables"] = variables

        logger.debug(
            "POST %s variables=%s api-key=%s token=%s",
            self.api_url,
            json.dumps(variables),
            _redact(self.api_key),
            _redact(token) if token else None,
        )

        try:
            response = self.session.post(
                self.api_url, json=payload, headers=request_headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise RegistryTransportError(f"Network error during registry call: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise RegistryTransportError(
                f"Registry returned non-JSON response with status {response.status_code}"
            ) from e

        if not isinstance(body, dict):
            raise RegistryTransportError(
                f"Registry returned unexpected JSON with status {response.status_code}"
            )

        result = RegistryResponse(status_code=response.status_code, body=body)
        if result.errors:
            logger.debug("Registry errors (status %d): %s", result.status_code, result.errors_text())
        return result
