import os
import sys
from datetime import date

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from event_pricing.engine.models import Category, PricingRule


TODAY = date(2025, 1, 1)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def categories():
    return [
        Category(id="c1", name="Student"),
        Category(id="c2", name="Delegate"),
    ]


@pytest.fixture
def tiers():
    return ["early-bird", "regular", "onsite"]


@pytest.fixture
def audiences():
    return ["individual", "member"]


@pytest.fixture
def stored_rules():
    """Two rules as the backend returns them (ids and ISO datetimes)."""
    return [
        PricingRule(
            category="Student", category_id="c1", audience="individual", tier="early-bird",
            price_cents=500, start_date="2025-01-01T00:00:00.000Z", end_date="2025-01-10T00:00:00.000Z",
            name="Student individual early-bird", id="r1",
        ),
        PricingRule(
            category="Delegate", category_id="c2", audience="member", tier="regular",
            price_cents=900, end_date="2025-02-01",
            name="Delegate member regular", id="r2",
        ),
    ]
