"""
Audience generation for an event's pricing matrix.

Besides the base audiences an event can price a `group` audience and one
`combo-<id>` audience per admin-defined combination of event days (partial
day registration).
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

from ..config.settings import DEFAULT_AUDIENCES
from .tiers import DateLike, parse_date

GROUP_AUDIENCE = 'group'
COMBO_PREFIX = 'combo-'


@dataclass
class EventDay:
    """One calendar day of the event."""
    id: str
    name: str
    date: date


@dataclass
class DayCombination:
    """An admin-defined subset of event days sold as its own audience."""
    id: str
    name: str
    selected_days: list[int] = field(default_factory=list)  # indexes into event days
    enabled: bool = True

    @property
    def audience(self) -> str:
        return f"{COMBO_PREFIX}{self.id}"


@dataclass
class GroupSettings:
    """Group registration settings; `min_group_size` shows in the audience label."""
    enabled: bool = False
    min_group_size: int = 5
    max_group_size: int = 50
    discount_type: str = 'percentage'  # "percentage" or "fixed"
    discount_value: float = 10
    require_contact_person: bool = True
    allow_mixed_categories: bool = False


def event_days(start_date: DateLike, end_date: DateLike) -> list[EventDay]:
    """One EventDay per calendar day from start to end inclusive."""
    start = parse_date(start_date)
    end = parse_date(end_date)
    if not start or not end or end < start:
        return []

    days = []
    for i in range((end - start).days + 1):
        days.append(EventDay(id=f"day{i + 1}", name=f"Day {i + 1}", date=start + timedelta(days=i)))
    return days


def generate_audiences(
    group_settings: Optional[GroupSettings] = None,
    partial_day_enabled: bool = False,
    combinations: Optional[list[DayCombination]] = None,
    days: Optional[list[EventDay]] = None,
    base_audiences=DEFAULT_AUDIENCES
) -> list[str]:
    """Base audiences, then `group`, then enabled day-combination audiences."""
    audiences = list(base_audiences)

    if group_settings and group_settings.enabled:
        audiences.append(GROUP_AUDIENCE)

    if partial_day_enabled and days:
        for combo in combinations or []:
            if combo.enabled and combo.selected_days:
                audiences.append(combo.audience)

    return audiences


def combo_display_name(audience: str, combinations: list[DayCombination], days: list[EventDay]) -> str:
    """`Opening + Closing (Mar 01 + Mar 03)` for a known combo, else the raw label."""
    combo_id = audience[len(COMBO_PREFIX):]
    combo = next((c for c in combinations if c.id == combo_id), None)
    if combo is None:
        return audience

    labels = []
    for index in sorted(combo.selected_days):
        if 0 <= index < len(days):
            labels.append(days[index].date.strftime('%b %d'))
        else:
            labels.append(f"Day {index + 1}")
    return f"{combo.name} ({' + '.join(labels)})"


def audience_display_name(
    audience: str,
    group_settings: Optional[GroupSettings] = None,
    combinations: Optional[list[DayCombination]] = None,
    days: Optional[list[EventDay]] = None
) -> str:
    if audience.startswith(COMBO_PREFIX):
        return combo_display_name(audience, combinations or [], days or [])

    min_size = group_settings.min_group_size if group_settings else GroupSettings().min_group_size
    names = {
        'individual': 'Individual',
        'member': 'Members',
        'student': 'Students',
        GROUP_AUDIENCE: f"Group (≥{min_size} people)",
    }
    return names.get(audience, audience[:1].upper() + audience[1:])
