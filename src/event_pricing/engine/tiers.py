"""
Tier date chain.

Only each tier's end date is stored. Start dates are positional: tier 0
starts today and every later tier starts the day after the previous tier
ends, so reordering tiers shifts every start at or after the moved slot.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Optional, Union

logger = logging.getLogger(__name__)

DateLike = Union[str, date, datetime, None]


def parse_date(value: DateLike) -> Optional[date]:
    """Parse an ISO date or datetime (trailing `Z` allowed). Blank gives None."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
    except ValueError:
        logger.warning("Ignoring unparsable date %r", value)
        return None


def normalize_date(value: DateLike) -> str:
    """Normalize to `YYYY-MM-DD`, or '' when absent or unparsable."""
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else ''


def compute_tier_start_dates(
    tiers: list[str],
    tier_end_dates: dict[str, DateLike],
    today: Optional[date] = None
) -> dict[str, date]:
    """
    Derive each tier's start date from the end date of the tier before it.

    Tier 0 starts `today`. Tier i starts the day after tier i-1's end date;
    when tier i-1 has no end date the chain does not advance and tier i
    starts at the previous accumulated start.
    """
    prev_until = today or date.today()
    result = {}

    for idx, tier in enumerate(tiers):
        if idx == 0:
            result[tier] = prev_until
            continue
        prev_end = parse_date(tier_end_dates.get(tiers[idx - 1]))
        result[tier] = prev_end + timedelta(days=1) if prev_end else prev_until
        prev_until = result[tier]

    return result


def validate_tier_chain(
    tiers: list[str],
    tier_end_dates: dict[str, DateLike],
    today: Optional[date] = None
) -> list[str]:
    """List tiers whose end date falls before their derived start date."""
    problems = []
    starts = compute_tier_start_dates(tiers, tier_end_dates, today)

    for tier in tiers:
        end = parse_date(tier_end_dates.get(tier))
        if end and end < starts[tier]:
            problems.append(
                f"Tier '{tier}' ends {end.isoformat()} before it starts {starts[tier].isoformat()}"
            )

    return problems


def tier_display_name(tier: str, start: DateLike = None, end: DateLike = None) -> str:
    """Label a tier with its window, e.g. `Early bird (01 Jan - 10 Jan 2025)`."""
    label = tier[:1].upper() + tier[1:].replace('-', ' ', 1)
    start_date = parse_date(start)
    end_date = parse_date(end)

    if start_date and end_date:
        return f"{label} ({start_date.strftime('%d %b')} - {end_date.strftime('%d %b %Y')})"
    if end_date:
        return f"{label} (till {end_date.strftime('%d %b %Y')})"
    if start_date:
        return f"{label} (from {start_date.strftime('%d %b %Y')})"
    return label
