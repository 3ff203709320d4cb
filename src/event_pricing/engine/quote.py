"""
Price Quote - Resolves the rule that prices a registration.

Matches stored rules against the registration context (audience, category,
date) and picks the winner by priority, then price.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .models import PricingRule, Quote
from .tiers import DateLike, parse_date

logger = logging.getLogger(__name__)


class QuoteError(ValueError):
    """Raised when no single rule can price a registration."""


class NoMatchingRuleError(QuoteError):
    pass


class AmbiguousPricingError(QuoteError):
    pass


@dataclass
class MatchedRule:
    """A rule that matched with context."""
    rule: PricingRule
    match_reason: str


def find_matching_rules(
    rules: list[PricingRule],
    audience: str,
    category: str,
    on_date: date
) -> list[MatchedRule]:
    """
    Find all active rules whose window and audience/category match.

    Returns rules sorted by priority (higher first), then price (lower first).
    """
    matched = []

    for rule in rules:
        reasons = []

        if not rule.active:
            continue

        start = parse_date(rule.start_date)
        if start:
            if on_date < start:
                continue
            reasons.append(f"from {start.isoformat()}")

        end = parse_date(rule.end_date)
        if end:
            if on_date > end:
                continue
            reasons.append(f"until {end.isoformat()}")

        # Blank audience/category on a rule matches everything
        if rule.audience:
            if rule.audience != audience:
                continue
            reasons.append(f"audience={audience}")

        if rule.category:
            if rule.category != category:
                continue
            reasons.append(f"category={category}")

        matched.append(MatchedRule(rule=rule, match_reason=", ".join(reasons) if reasons else "default"))

    matched.sort(key=lambda m: (-m.rule.priority, m.rule.price_cents))
    return matched


def resolve_price(
    rules: list[PricingRule],
    audience: str,
    category: str,
    on_date: DateLike = None
) -> Quote:
    """
    Resolve the registration price for an audience and category.

    Raises NoMatchingRuleError when nothing matches and
    AmbiguousPricingError when an exclusive top rule shares its priority.
    """
    day = parse_date(on_date) or date.today()
    quote = Quote(audience=audience, category=category, on_date=day.isoformat())
    quote.add_trace("Context", f"Pricing {category} / {audience}", day.isoformat())

    matched = find_matching_rules(rules, audience, category, day)
    if not matched:
        raise NoMatchingRuleError("No pricing rule matches the provided audience/category/date")

    quote.add_trace("Rule Match", f"{len(matched)} rule(s) in window", str(len(matched)))

    top = matched[0].rule
    same_priority = [m for m in matched if m.rule.priority == top.priority]

    if top.exclusive and len(same_priority) > 1:
        raise AmbiguousPricingError(
            "Ambiguous pricing: multiple rules match with same priority but marked exclusive."
        )

    if len(same_priority) > 1:
        ids = ", ".join(m.rule.id or m.rule.name for m in same_priority)
        logger.warning("Ambiguous pricing overlap for %s/%s: %s", category, audience, ids)
        quote.add_warning(f"{len(same_priority)} rules share priority {top.priority}; lowest price used")

    quote.amount_cents = top.price_cents
    quote.currency = top.currency
    quote.base_rule_id = top.id
    quote.base_rule_name = top.name
    quote.add_trace("Rule Applied", f"{top.name or top.id} ({matched[0].match_reason})", str(top.price_cents))

    return quote
