"""
Pricing API - FastAPI router for event categories and pricing rules.
"""
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from ..config.settings import get_settings
from ..engine.models import PricingRule
from ..engine.quote import QuoteError, resolve_price
from ..engine.tiers import parse_date
from .store import EventStore

router = APIRouter(prefix="/events", tags=["pricing"])


@lru_cache(maxsize=1)
def get_store() -> EventStore:
    """Store bound to the configured data directory."""
    return EventStore(get_settings().data_dir)


# Pydantic models for API

class CategoryIn(BaseModel):
    """Request model for a category."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, alias='_id')
    name: str


class PricingRuleIn(BaseModel):
    """Request model for a pricing rule (backend camelCase)."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, alias='_id')
    name: str = ''
    category: str = ''
    categoryId: Optional[str] = None
    audience: str = ''
    tier: str = ''
    priceCents: int = Field(ge=0)
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    active: bool = True
    priority: int = 0
    exclusive: bool = False
    currency: str = 'INR'

    def to_document(self) -> dict:
        document = self.model_dump(by_alias=True)
        if not document.get('_id'):
            document.pop('_id', None)
        return document


class RuleUpdate(BaseModel):
    """Request model for updating a rule."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    category: Optional[str] = None
    categoryId: Optional[str] = None
    audience: Optional[str] = None
    tier: Optional[str] = None
    priceCents: Optional[int] = Field(default=None, ge=0)
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    active: Optional[bool] = None
    priority: Optional[int] = None
    exclusive: Optional[bool] = None
    currency: Optional[str] = None


class BulkSaveRequest(BaseModel):
    rules: list[PricingRuleIn]


class QuoteRequest(BaseModel):
    audience: str
    category: str
    date: Optional[str] = None


def _ok(message: str, data=None) -> dict:
    return {"success": True, "message": message, "data": data}


def _require_event(store: EventStore, event_id: str):
    try:
        if not store.exists(event_id):
            raise HTTPException(status_code=404, detail="Event not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# Endpoints

@router.get("/{event_id}/categories")
async def list_categories(event_id: str, store: EventStore = Depends(get_store)):
    """List an event's registration categories."""
    _require_event(store, event_id)
    return _ok("Categories", store.list_categories(event_id))


@router.post("/{event_id}/categories")
async def set_categories(event_id: str, categories: list[CategoryIn], store: EventStore = Depends(get_store)):
    """Replace an event's categories (creates the event)."""
    try:
        stored = store.set_categories(event_id, [c.model_dump(by_alias=True) for c in categories])
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _ok("Categories saved", stored)


@router.get("/{event_id}/pricing-rules")
async def list_rules(event_id: str, store: EventStore = Depends(get_store)):
    """List an event's pricing rules."""
    _require_event(store, event_id)
    return _ok("Pricing rules", store.list_rules(event_id))


@router.post("/{event_id}/pricing-rules", status_code=201)
async def create_rule(event_id: str, rule: PricingRuleIn, store: EventStore = Depends(get_store)):
    """Create a single pricing rule."""
    _require_event(store, event_id)
    try:
        created = store.create_rule(event_id, rule.to_document())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _ok("Rule created", created)


@router.get("/{event_id}/pricing-rules/{rule_id}")
async def get_rule(event_id: str, rule_id: str, store: EventStore = Depends(get_store)):
    """Get a single rule by ID."""
    _require_event(store, event_id)
    rule = store.get_rule(event_id, rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail=f"Rule '{rule_id}' not found")
    return _ok("Pricing rule", rule)


@router.post("/{event_id}/pricing-rules/bulk")
async def bulk_save_rules(event_id: str, body: BulkSaveRequest, store: EventStore = Depends(get_store)):
    """Replace the event's whole rule set; omitted rules are deleted."""
    _require_event(store, event_id)
    saved = store.bulk_save(event_id, [r.to_document() for r in body.rules])
    return _ok("Bulk pricing rules saved", saved)


@router.put("/{event_id}/pricing-rules/{rule_id}")
async def update_rule(event_id: str, rule_id: str, updates: RuleUpdate, store: EventStore = Depends(get_store)):
    """Update an existing rule with only the fields provided."""
    _require_event(store, event_id)
    try:
        updated = store.update_rule(event_id, rule_id, updates.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _ok("Rule updated", updated)


@router.delete("/{event_id}/pricing-rules/{rule_id}")
async def delete_rule(event_id: str, rule_id: str, store: EventStore = Depends(get_store)):
    """Delete a rule."""
    _require_event(store, event_id)
    try:
        store.delete_rule(event_id, rule_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _ok(f"Rule '{rule_id}' deleted")


@router.post("/{event_id}/quote")
async def quote_registration(event_id: str, request: QuoteRequest, store: EventStore = Depends(get_store)):
    """Resolve the price a registration would pay today (or on `date`)."""
    _require_event(store, event_id)
    on_date = parse_date(request.date)
    if request.date and request.date.strip() and on_date is None:
        raise HTTPException(status_code=400, detail=f"Invalid date '{request.date}'")

    rules = [PricingRule.from_payload(r) for r in store.list_rules(event_id)]
    try:
        quote = resolve_price(rules, request.audience, request.category, on_date)
    except QuoteError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _ok("Quote generated", {
        "amountCents": quote.amount_cents,
        "currency": quote.currency,
        "baseRuleId": quote.base_rule_id,
        "warnings": quote.warnings,
        "trace": quote.get_trace_text(),
    })
