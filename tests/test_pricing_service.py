"""
Tests for PricingService load/save behaviour against a fake backend.
"""
from dataclasses import replace
from datetime import date

import pytest

from event_pricing.config.settings import Settings
from event_pricing.engine import resolver
from event_pricing.engine.matrix import get_cell
from event_pricing.services import pricing_service
from event_pricing.services.backend_client import BackendError
from event_pricing.services.pricing_service import LoadError, PricingService, SaveError


class FakeClient:
    def __init__(self, categories, rules):
        self.categories = list(categories)
        self.rules = list(rules)
        self.saved = []
        self.fail_fetch = False
        self.fail_save = False

    def fetch_categories(self, event_id):
        if self.fail_fetch:
            raise BackendError("Event not found", status_code=404)
        return list(self.categories)

    def fetch_rules(self, event_id):
        if self.fail_fetch:
            raise BackendError("Event not found", status_code=404)
        return list(self.rules)

    def bulk_save(self, event_id, rules):
        if self.fail_save:
            raise BackendError("Validation failed", status_code=400)
        self.saved.append(rules)
        self.rules = [replace(rule, id=rule.id or f"new{i}") for i, rule in enumerate(rules)]
        return list(self.rules)


@pytest.fixture
def client(categories, stored_rules):
    return FakeClient(categories, stored_rules)


@pytest.fixture
def service(client):
    service = PricingService(client, "ev1")
    service.load()
    return service


def test_load_builds_state(service):
    assert service.state.tiers == ("early-bird", "regular")
    assert get_cell(service.state.matrix, "individual", "c1", "early-bird").rule_id == "r1"
    assert service.error is None


def test_failed_load_keeps_previous_state(service, client):
    before = service.state
    client.fail_fetch = True

    with pytest.raises(LoadError, match="Event not found"):
        service.load()

    assert service.state is before
    assert service.error == "Event not found"


def test_failed_save_leaves_state_untouched(service, client):
    service.apply(resolver.set_cell_price, "member", "c1", "early-bird", "650")
    before = service.state
    client.fail_save = True

    with pytest.raises(SaveError) as exc_info:
        service.save(today=date(2025, 1, 1))

    assert exc_info.value.status_code == 400
    assert service.state is before
    assert get_cell(service.state.matrix, "member", "c1", "early-bird").price_cents == "650"


def test_save_sends_priced_cells_and_reloads(service, client):
    service.apply(resolver.add_tier, "onsite")
    service.apply(resolver.set_tier_end_date, "regular", "2025-02-15")
    service.apply(resolver.set_cell_price, "member", "c1", "onsite", "1200")
    service.apply(resolver.select_audience, "member")

    service.save(today=date(2025, 1, 1))

    sent = client.saved[0]
    assert {r.name for r in sent} == {
        "Student individual early-bird",
        "Delegate member regular",
        "Student member onsite",
    }
    onsite = next(r for r in sent if r.tier == "onsite")
    assert onsite.start_date == "2025-02-16"
    assert onsite.id is None

    # Reload keeps the user's dimensions, dates and selection
    assert service.state.tiers == ("early-bird", "regular", "onsite")
    assert service.state.tier_end_dates["regular"] == "2025-02-15"
    assert service.state.selected_audience == "member"
    assert get_cell(service.state.matrix, "member", "c1", "onsite").rule_id is not None


def test_reload_failure_after_save_is_not_fatal(service, client):
    def fetch_fails(event_id):
        raise BackendError("timeout")

    client.fetch_categories = fetch_fails

    service.save(today=date(2025, 1, 1))

    assert service.error == "timeout"
    assert len(client.saved) == 1


def test_load_without_rules_uses_configured_defaults(categories, monkeypatch, tmp_path):
    settings = Settings(
        project_root=tmp_path,
        data_dir=tmp_path,
        default_tiers=("phase-1", "phase-2"),
        default_audiences=("delegate",),
    )
    monkeypatch.setattr(pricing_service, "get_settings", lambda: settings)
    service = PricingService(FakeClient(categories, []), "ev1")

    state = service.load()

    assert state.tiers == ("phase-1", "phase-2")
    assert state.audiences == ("delegate",)
    assert state.selected_audience == "delegate"
