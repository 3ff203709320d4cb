"""
Pricing Service - loads an event's matrix from the backend and saves it back.

Load failures keep the last good state; save failures leave the state
untouched so the user can retry without re-entering prices. Nothing is
retried automatically.
"""
import logging
from datetime import date
from typing import Callable, Optional

from ..config.settings import get_settings
from ..engine import resolver
from ..engine.models import PricingRule, PricingState
from .backend_client import BackendClient, BackendError

logger = logging.getLogger(__name__)


class LoadError(BackendError):
    """Categories or rules could not be fetched."""


class SaveError(BackendError):
    """The bulk save was rejected or failed."""


class PricingService:
    """Holds one event's PricingState between user actions."""

    def __init__(self, client: BackendClient, event_id: str):
        self.client = client
        self.event_id = event_id
        self.state = PricingState()
        self.error: Optional[str] = None

    def load(self) -> PricingState:
        """Fetch categories and rules and rebuild the state from scratch."""
        try:
            categories = self.client.fetch_categories(self.event_id)
            rules = self.client.fetch_rules(self.event_id)
        except BackendError as e:
            self.error = str(e) or 'Failed to load categories'
            logger.error("Loading pricing for event %s failed: %s", self.event_id, self.error)
            raise LoadError(self.error, status_code=e.status_code) from e

        settings = get_settings()
        self.state = resolver.load(
            categories, rules,
            default_tiers=settings.default_tiers,
            default_audiences=settings.default_audiences,
        )
        self.error = None
        logger.info(
            "Loaded event %s: %d categories, %d tiers, %d audiences, %d rules",
            self.event_id, len(categories), len(self.state.tiers), len(self.state.audiences), len(rules)
        )
        return self.state

    def apply(self, reducer: Callable[..., PricingState], *args, **kwargs) -> PricingState:
        """Run a resolver reducer against the current state and keep the result."""
        self.state = reducer(self.state, *args, **kwargs)
        return self.state

    def saveable_rules(self, today: Optional[date] = None) -> list[PricingRule]:
        return resolver.build_saveable_rules(self.state, today)

    def save(self, today: Optional[date] = None) -> list[PricingRule]:
        """Bulk-save every priced cell, then reload from the server."""
        rules = self.saveable_rules(today)
        try:
            saved = self.client.bulk_save(self.event_id, rules)
        except BackendError as e:
            self.error = str(e) or 'Failed to save'
            logger.error("Saving pricing for event %s failed: %s", self.event_id, self.error)
            raise SaveError(self.error, status_code=e.status_code) from e

        self.error = None
        self.reload_after_save()
        return saved

    def reload_after_save(self):
        """Refresh from the server, keeping the user's tier dates and dimensions."""
        tiers = list(self.state.tiers)
        audiences = list(self.state.audiences)
        end_dates = dict(self.state.tier_end_dates)
        selected = self.state.selected_audience
        try:
            categories = self.client.fetch_categories(self.event_id)
            rules = self.client.fetch_rules(self.event_id)
        except BackendError as e:
            self.error = str(e)
            logger.warning("Saved, but reloading event %s failed: %s", self.event_id, e)
            return

        state = resolver.load(categories, rules, tiers=tiers, audiences=audiences)
        state = resolver.select_audience(state, selected)
        for tier, end in end_dates.items():
            state = resolver.set_tier_end_date(state, tier, end)
        self.state = state
