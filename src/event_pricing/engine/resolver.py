"""
Pricing Rule Resolver - reducer functions over an immutable PricingState.

Every function takes a state and returns a new one; none of them perform
I/O. Dimension changes (categories, tiers, audiences) reconcile the matrix
before returning so a caller can never read a stale coordinate.

Removal of a priced tier or audience is refused: `remove_tier` and
`remove_audience` return the unchanged state together with the failing
RemovalCheck so the caller can show the blocking message.
"""
from dataclasses import replace
from datetime import date
from typing import Optional

from ..config.settings import DEFAULT_AUDIENCES, DEFAULT_TIERS
from ..services import csv_matrix
from . import matrix as mx
from .models import Category, Cell, PricingRule, PricingState, RemovalCheck
from .rules import build_saveable_rules as _build_saveable_rules
from .tiers import compute_tier_start_dates, normalize_date
from .tiers import validate_tier_chain as _validate_tier_chain


def load(
    categories: list[Category],
    rules: list[PricingRule],
    tiers: Optional[list[str]] = None,
    audiences: Optional[list[str]] = None,
    default_tiers=DEFAULT_TIERS,
    default_audiences=DEFAULT_AUDIENCES
) -> PricingState:
    """
    Build the initial state from the event's categories and rule list.

    Tiers and audiences default to those named by the rules (first-seen
    order), and to the configured defaults when the rule list is empty.
    """
    tiers = list(tiers) if tiers else mx.tiers_from_rules(rules, default_tiers)
    audiences = list(audiences) if audiences else mx.audiences_from_rules(rules, default_audiences)

    return PricingState(
        categories=tuple(categories),
        tiers=tuple(tiers),
        audiences=tuple(audiences),
        tier_end_dates=mx.tier_end_dates_from_rules(rules),
        matrix=mx.build_matrix(categories, tiers, audiences, rules),
        selected_audience=audiences[0] if audiences else None,
    )


def _with_dimensions(state: PricingState, **changes) -> PricingState:
    """Apply dimension changes and reconcile the matrix against them."""
    state = replace(state, **changes)
    matrix = mx.reconcile(state.matrix, list(state.categories), list(state.tiers), list(state.audiences))
    selected = state.selected_audience
    if selected not in state.audiences:
        selected = state.audiences[0] if state.audiences else None
    return replace(state, matrix=matrix, selected_audience=selected)


def with_categories(state: PricingState, categories: list[Category]) -> PricingState:
    """Replace the category list (e.g. after a refresh) and reconcile."""
    return _with_dimensions(state, categories=tuple(categories))


def with_audiences(state: PricingState, audiences: list[str]) -> PricingState:
    """Replace the audience list wholesale, e.g. with generated audiences."""
    unique = []
    for aud in audiences:
        if aud and aud not in unique:
            unique.append(aud)
    return _with_dimensions(state, audiences=tuple(unique))


# --------------------------------------------------------------------------
# Tiers
# --------------------------------------------------------------------------

def add_tier(state: PricingState, name: str) -> PricingState:
    """Append a tier. Blank or duplicate names are ignored."""
    name = (name or '').strip()
    if not name or name in state.tiers:
        return state
    return _with_dimensions(state, tiers=state.tiers + (name,))


def can_remove_tier(state: PricingState, name: str) -> RemovalCheck:
    return mx.find_priced_cells(
        state.matrix, list(state.categories), list(state.tiers), list(state.audiences), tier=name
    )


def remove_tier(state: PricingState, name: str) -> tuple[PricingState, RemovalCheck]:
    """Remove a tier, its cells and its end date unless any cell in it is priced."""
    check = can_remove_tier(state, name)
    if not check.allowed or name not in state.tiers:
        return state, check

    end_dates = {t: d for t, d in state.tier_end_dates.items() if t != name}
    new_state = _with_dimensions(
        state,
        tiers=tuple(t for t in state.tiers if t != name),
        tier_end_dates=end_dates,
    )
    return new_state, check


def rename_tier(state: PricingState, index: int, name: str) -> PricingState:
    """Rename the tier at `index`, moving its cells and end date with it."""
    name = (name or '').strip()
    if not 0 <= index < len(state.tiers) or not name or name in state.tiers:
        return state

    old = state.tiers[index]
    tiers = state.tiers[:index] + (name,) + state.tiers[index + 1:]

    matrix = {
        aud: {
            cat_id: {(name if t == old else t): cell for t, cell in row.items()}
            for cat_id, row in by_cat.items()
        }
        for aud, by_cat in state.matrix.items()
    }
    end_dates = {(name if t == old else t): d for t, d in state.tier_end_dates.items()}

    return _with_dimensions(state, tiers=tiers, matrix=matrix, tier_end_dates=end_dates)


def move_tier(state: PricingState, index: int, direction: str) -> PricingState:
    """Swap the tier at `index` with its neighbour (`up` or `down`)."""
    tiers = list(state.tiers)
    if direction == 'up' and 0 < index < len(tiers):
        tiers[index - 1], tiers[index] = tiers[index], tiers[index - 1]
    elif direction == 'down' and 0 <= index < len(tiers) - 1:
        tiers[index], tiers[index + 1] = tiers[index + 1], tiers[index]
    else:
        return state
    return _with_dimensions(state, tiers=tuple(tiers))


def set_tier_end_date(state: PricingState, tier: str, end_date) -> PricingState:
    """Set or clear (blank / None) a tier's end date."""
    if tier not in state.tiers:
        return state
    end_dates = dict(state.tier_end_dates)
    normalized = normalize_date(end_date)
    if normalized:
        end_dates[tier] = normalized
    else:
        end_dates.pop(tier, None)
    return replace(state, tier_end_dates=end_dates)


def tier_start_dates(state: PricingState, today: Optional[date] = None) -> dict[str, date]:
    return compute_tier_start_dates(list(state.tiers), state.tier_end_dates, today)


def validate_tier_chain(state: PricingState, today: Optional[date] = None) -> list[str]:
    """Tiers whose end date precedes their derived start."""
    return _validate_tier_chain(list(state.tiers), state.tier_end_dates, today)


# --------------------------------------------------------------------------
# Audiences
# --------------------------------------------------------------------------

def add_audience(state: PricingState, name: str) -> PricingState:
    """Append an audience. Blank or duplicate names are ignored."""
    name = (name or '').strip()
    if not name or name in state.audiences:
        return state
    return _with_dimensions(state, audiences=state.audiences + (name,))


def can_remove_audience(state: PricingState, name: str) -> RemovalCheck:
    return mx.find_priced_cells(
        state.matrix, list(state.categories), list(state.tiers), list(state.audiences), audience=name
    )


def remove_audience(state: PricingState, name: str) -> tuple[PricingState, RemovalCheck]:
    """Remove an audience and its cells unless any of them is priced."""
    check = can_remove_audience(state, name)
    if not check.allowed or name not in state.audiences:
        return state, check
    new_state = _with_dimensions(state, audiences=tuple(a for a in state.audiences if a != name))
    return new_state, check


def rename_audience(state: PricingState, index: int, name: str) -> PricingState:
    """Rename the audience at `index`, keeping its cells."""
    name = (name or '').strip()
    if not 0 <= index < len(state.audiences) or not name or name in state.audiences:
        return state

    old = state.audiences[index]
    audiences = state.audiences[:index] + (name,) + state.audiences[index + 1:]
    matrix = {(name if aud == old else aud): by_cat for aud, by_cat in state.matrix.items()}
    selected = name if state.selected_audience == old else state.selected_audience

    return _with_dimensions(state, audiences=audiences, matrix=matrix, selected_audience=selected)


def select_audience(state: PricingState, name: str) -> PricingState:
    if name not in state.audiences:
        return state
    return replace(state, selected_audience=name)


# --------------------------------------------------------------------------
# Cells
# --------------------------------------------------------------------------

def set_cell_price(state: PricingState, audience: str, category_id: str, tier: str, price_cents) -> PricingState:
    return replace(state, matrix=mx.set_cell_price(state.matrix, audience, category_id, tier, price_cents))


def set_cell_dates(
    state: PricingState,
    audience: str,
    category_id: str,
    tier: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None
) -> PricingState:
    return replace(
        state,
        matrix=mx.set_cell_dates(state.matrix, audience, category_id, tier, start_date, end_date),
    )


def fill_row(state: PricingState, category_id: str, value) -> PricingState:
    """Set a category's price for every audience and tier."""
    return replace(
        state,
        matrix=mx.fill_row(state.matrix, category_id, list(state.audiences), list(state.tiers), value),
    )


def fill_column(state: PricingState, tier: str, value, audience: Optional[str] = None) -> PricingState:
    """Set a tier's price for every category of the selected (or given) audience."""
    audience = audience or state.selected_audience
    if audience is None:
        return state
    return replace(
        state,
        matrix=mx.fill_column(state.matrix, tier, audience, list(state.categories), value),
    )


def clear_row(state: PricingState, category_id: str) -> PricingState:
    return fill_row(state, category_id, '')


def clear_column(state: PricingState, tier: str, audience: Optional[str] = None) -> PricingState:
    return fill_column(state, tier, '', audience)


# --------------------------------------------------------------------------
# Save and CSV
# --------------------------------------------------------------------------

def build_saveable_rules(state: PricingState, today: Optional[date] = None) -> list[PricingRule]:
    """Normalise the state into the bulk-save rule list."""
    return _build_saveable_rules(
        state.matrix,
        list(state.categories),
        list(state.tiers),
        list(state.audiences),
        tier_start_dates(state, today),
        state.tier_end_dates,
    )


def export_csv(state: PricingState, audience: Optional[str] = None) -> str:
    """Export the selected (or given) audience's prices."""
    audience = audience or state.selected_audience
    return csv_matrix.export_csv(state.matrix, list(state.categories), list(state.tiers), audience)


def import_csv(state: PricingState, text: str) -> PricingState:
    """
    Import CSV prices into the selected audience.

    The header's tiers replace the tier list wholesale; other audiences keep
    their values for tiers that survive. Blank text changes nothing.
    """
    tiers, prices = csv_matrix.import_csv(text, list(state.categories))
    if not tiers or state.selected_audience is None:
        return state

    end_dates = {t: d for t, d in state.tier_end_dates.items() if t in tiers}
    state = _with_dimensions(state, tiers=tuple(tiers), tier_end_dates=end_dates)
    audience = state.selected_audience
    matrix = state.matrix
    for category_id, by_tier in prices.items():
        for tier, value in by_tier.items():
            matrix = mx.put_cell(matrix, audience, category_id, tier, Cell(price_cents=value))

    return replace(state, matrix=matrix)
