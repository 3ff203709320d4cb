"""
Data models for the pricing matrix.

Uses dataclasses for structured, type-safe data representation. Payload
helpers translate to and from the backend's camelCase JSON.
"""
from dataclasses import dataclass, field
from typing import Optional, Union


Price = Union[str, int]

# audience → category id → tier → Cell
Matrix = dict[str, dict[str, dict[str, 'Cell']]]


@dataclass(frozen=True)
class Category:
    """A registration category, owned by the event configuration."""
    id: str
    name: str

    @classmethod
    def from_payload(cls, data: dict) -> 'Category':
        """Create Category from a backend document (`_id` or `id`)."""
        return cls(
            id=str(data.get('_id') or data.get('id') or ''),
            name=str(data.get('name', '')),
        )

    def to_payload(self) -> dict:
        return {'_id': self.id, 'name': self.name}


@dataclass(frozen=True)
class Cell:
    """One matrix coordinate. `price_cents` stays raw user input until save."""
    price_cents: Price = ''
    rule_id: Optional[str] = None
    start_date: str = ''
    end_date: str = ''


EMPTY_CELL = Cell()


@dataclass
class PricingRule:
    """A persisted price for one (category, audience, tier) triple."""
    category: str
    category_id: str
    audience: str
    tier: str
    price_cents: int
    name: str = ''
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    id: Optional[str] = None
    active: bool = True
    priority: int = 0
    exclusive: bool = False
    currency: str = 'INR'

    def to_payload(self) -> dict:
        """Convert to the backend JSON shape. `_id` is omitted for new rules."""
        payload = {
            'category': self.category,
            'categoryId': self.category_id,
            'audience': self.audience,
            'tier': self.tier,
            'priceCents': self.price_cents,
            'startDate': self.start_date,
            'endDate': self.end_date,
            'name': self.name,
            'active': self.active,
            'priority': self.priority,
            'exclusive': self.exclusive,
            'currency': self.currency,
        }
        if self.id:
            payload['_id'] = self.id
        return payload

    @classmethod
    def from_payload(cls, data: dict) -> 'PricingRule':
        """Create PricingRule from a backend document."""
        price = data.get('priceCents', 0)
        return cls(
            category=data.get('category') or '',
            category_id=str(data.get('categoryId') or ''),
            audience=data.get('audience') or '',
            tier=data.get('tier') or '',
            price_cents=price if price not in (None, '') else 0,
            name=data.get('name') or '',
            start_date=data.get('startDate') or None,
            end_date=data.get('endDate') or None,
            id=data.get('_id') or data.get('id') or None,
            active=data.get('active', True) is not False,
            priority=int(data.get('priority') or 0),
            exclusive=bool(data.get('exclusive', False)),
            currency=data.get('currency') or 'INR',
        )


@dataclass(frozen=True)
class RemovalCheck:
    """Outcome of the priced-cell scan that gates tier/audience removal."""
    kind: str  # "tier" or "audience"
    label: str
    priced: tuple = ()  # (audience, category_id, tier) coordinates with a price

    @property
    def allowed(self) -> bool:
        return not self.priced

    @property
    def message(self) -> str:
        if self.allowed:
            return f"{self.kind.capitalize()} '{self.label}' can be removed"
        if self.kind == 'tier':
            return ("Cannot remove a tier that has prices set. "
                    "Clear all prices in this column first.")
        return ("Cannot remove an audience that has prices set. "
                "Clear all prices in this audience first.")


@dataclass(frozen=True)
class PricingState:
    """
    Immutable editing state of one event's pricing matrix.

    Every reducer in `resolver` returns a new instance; the matrix always
    covers exactly audiences × categories × tiers.
    """
    categories: tuple = ()
    tiers: tuple = ()
    audiences: tuple = ()
    tier_end_dates: dict = field(default_factory=dict)
    matrix: dict = field(default_factory=dict)
    selected_audience: Optional[str] = None


@dataclass
class TraceStep:
    """A single step in a price quote trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class Quote:
    """Resolved registration price for an audience and category."""
    audience: str
    category: str
    on_date: str
    amount_cents: int = 0
    currency: str = 'INR'
    base_rule_id: Optional[str] = None
    base_rule_name: Optional[str] = None
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the quote trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)
