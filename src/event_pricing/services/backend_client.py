"""Backend client for event categories and pricing rules."""

import logging
from typing import Any, Optional

import requests

from ..config.settings import get_settings
from ..engine.models import Category, PricingRule

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Raised when a backend call fails in transport or returns an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BackendClient:
    """
    HTTP client for the event backend.

    Endpoints:
        GET  /events/{id}/categories           → {"data": [Category]}
        GET  /events/{id}/pricing-rules        → {"data": [PricingRule]}
        POST /events/{id}/pricing-rules/bulk   ← {"rules": [PricingRule]}

    Every call is made once; there are no retries.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        """Initialize the client.

        Args:
            base_url: Backend root URL (default: settings.api_base_url)
            timeout: Per-request timeout in seconds (default: settings.request_timeout)
            session: Optional requests session, e.g. carrying auth headers
        """
        settings = get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip('/')
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.session = session or requests.Session()

    def _url(self, event_id: str, path: str) -> str:
        return f"{self.base_url}/events/{event_id}/{path}"

    def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise BackendError(f"Request to {url} failed: {e}") from e

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.error("%s %s returned %s: %s", method, url, response.status_code, message)
            raise BackendError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"Invalid JSON from {url}") from e

    @staticmethod
    def _error_message(response) -> str:
        """Prefer the server's own message (`message` or `detail`)."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = body.get('message') or body.get('detail')
            if detail:
                return str(detail)
        return f"HTTP {response.status_code}"

    @staticmethod
    def _data(body: Any) -> list:
        if isinstance(body, dict):
            return body.get('data') or []
        return body or []

    def fetch_categories(self, event_id: str) -> list[Category]:
        """Get the event's registration categories."""
        body = self._request('GET', self._url(event_id, 'categories'))
        categories = [Category.from_payload(c) for c in self._data(body)]
        logger.debug("Fetched %d categories for event %s", len(categories), event_id)
        return categories

    def fetch_rules(self, event_id: str) -> list[PricingRule]:
        """Get the event's stored pricing rules."""
        body = self._request('GET', self._url(event_id, 'pricing-rules'))
        rules = [PricingRule.from_payload(r) for r in self._data(body)]
        logger.debug("Fetched %d pricing rules for event %s", len(rules), event_id)
        return rules

    def bulk_save(self, event_id: str, rules: list[PricingRule]) -> list[PricingRule]:
        """Send the full rule set; returns the rules as stored by the server."""
        payload = {'rules': [r.to_payload() for r in rules]}
        body = self._request('POST', self._url(event_id, 'pricing-rules/bulk'), json=payload)
        logger.info("Bulk-saved %d pricing rules for event %s", len(rules), event_id)
        return [PricingRule.from_payload(r) for r in self._data(body)]
