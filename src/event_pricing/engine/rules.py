"""
Save-time normalisation of the matrix into a bulk rule payload.
"""
import math
import re
from datetime import date
from typing import Optional

from .matrix import get_cell
from .models import Category, Matrix, Price, PricingRule

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


def parse_price_cents(value: Price) -> Optional[int]:
    """
    Parse raw cell input to integer cents.

    Strings are read up to the first non-digit ("500", " 500 ", "12.7" and
    "500abc" give 500, 500, 12 and 500). Returns None for anything without
    a leading integer.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def rule_name(category: str, audience: str, tier: str) -> str:
    return f"{category} {audience} {tier}".strip()


def build_saveable_rules(
    matrix: Matrix,
    categories: list[Category],
    tiers: list[str],
    audiences: list[str],
    tier_start_dates: dict[str, date],
    tier_end_dates: dict[str, str]
) -> list[PricingRule]:
    """
    Collect every positively priced cell as a rule for the bulk save.

    Cells without a positive integer price are left out entirely. Dates come
    from the tier chain and fall back to the cell's own override only when
    the tier has none.
    """
    rules = []
    for aud in audiences:
        for cat in categories:
            for tier in tiers:
                cell = get_cell(matrix, aud, cat.id, tier)
                price_cents = parse_price_cents(cell.price_cents)
                if price_cents is None or price_cents <= 0:
                    continue

                tier_start = tier_start_dates.get(tier)
                tier_start = tier_start.isoformat() if tier_start else None
                tier_end = tier_end_dates.get(tier) or None

                rules.append(PricingRule(
                    category=cat.name,
                    category_id=cat.id,
                    audience=aud,
                    tier=tier,
                    price_cents=price_cents,
                    start_date=tier_start or cell.start_date or None,
                    end_date=tier_end or cell.end_date or None,
                    name=rule_name(cat.name, aud, tier),
                    id=cell.rule_id or None,
                ))
    return rules
