"""
Tests for the backend HTTP client, using a fake requests session.
"""
import pytest
import requests

from event_pricing.engine.models import PricingRule
from event_pricing.services.backend_client import BackendClient, BackendError


class FakeResponse:
    def __init__(self, status_code=200, body=None, invalid_json=False):
        self.status_code = status_code
        self._body = body
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("no json")
        return self._body


class FakeSession:
    """Records calls and replays queued responses (or raises queued exceptions)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, timeout, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_client(*responses):
    session = FakeSession(*responses)
    return BackendClient(base_url="http://backend/", timeout=3, session=session), session


def test_fetch_categories():
    client, session = make_client(FakeResponse(body={"success": True, "data": [{"_id": "c1", "name": "Student"}]}))

    categories = client.fetch_categories("ev1")

    assert [(c.id, c.name) for c in categories] == [("c1", "Student")]
    assert session.calls[0][:3] == ("GET", "http://backend/events/ev1/categories", 3)


def test_fetch_rules_parses_camel_case():
    body = {"data": [{
        "_id": "r1", "name": "Student individual early-bird", "category": "Student",
        "categoryId": "c1", "audience": "individual", "tier": "early-bird",
        "priceCents": 500, "startDate": "2025-01-01", "endDate": "2025-01-10",
    }]}
    client, _ = make_client(FakeResponse(body=body))

    rules = client.fetch_rules("ev1")

    assert rules[0].id == "r1"
    assert rules[0].category_id == "c1"
    assert rules[0].price_cents == 500
    assert rules[0].end_date == "2025-01-10"


def test_bulk_save_posts_rules_envelope():
    rule = PricingRule(
        category="Student", category_id="c1", audience="individual", tier="regular",
        price_cents=800, name="Student individual regular", start_date="2025-01-11",
    )
    client, session = make_client(FakeResponse(body={"data": [dict(rule.to_payload(), _id="new1")]}))

    saved = client.bulk_save("ev1", [rule])

    method, url, _, kwargs = session.calls[0]
    assert (method, url) == ("POST", "http://backend/events/ev1/pricing-rules/bulk")
    assert kwargs["json"]["rules"][0]["priceCents"] == 800
    assert "_id" not in kwargs["json"]["rules"][0]
    assert saved[0].id == "new1"


def test_error_status_uses_server_message():
    client, _ = make_client(FakeResponse(status_code=404, body={"success": False, "message": "Event not found"}))

    with pytest.raises(BackendError) as exc_info:
        client.fetch_rules("missing")

    assert str(exc_info.value) == "Event not found"
    assert exc_info.value.status_code == 404


def test_error_status_without_body():
    client, _ = make_client(FakeResponse(status_code=500, invalid_json=True))

    with pytest.raises(BackendError, match="HTTP 500"):
        client.fetch_categories("ev1")


def test_transport_failure():
    client, _ = make_client(requests.ConnectionError("refused"))

    with pytest.raises(BackendError) as exc_info:
        client.fetch_categories("ev1")

    assert exc_info.value.status_code is None
    assert "refused" in str(exc_info.value)


def test_invalid_json_on_success():
    client, _ = make_client(FakeResponse(invalid_json=True))

    with pytest.raises(BackendError, match="Invalid JSON"):
        client.fetch_rules("ev1")
