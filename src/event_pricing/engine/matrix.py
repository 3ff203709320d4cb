"""
Pricing matrix - the audience × category × tier projection of a rule list.

The matrix is a view: it is rebuilt from the authoritative rule list and
reconciled whenever a dimension changes, so it always holds exactly one
cell per coordinate of the current cross product. Functions here never
mutate their arguments; edits return a new matrix that shares untouched
branches with the old one.
"""
from dataclasses import replace
from typing import Iterable, Optional

from .models import Category, Cell, EMPTY_CELL, Matrix, Price, PricingRule, RemovalCheck
from .tiers import normalize_date


def find_rule(
    rules: Iterable[PricingRule],
    category: Category,
    audience: str,
    tier: str
) -> Optional[PricingRule]:
    """
    Find the stored rule for a coordinate.

    Rules are linked by category *name* + tier + audience, so renaming a
    category orphans its rules. Swap the key here to move to id matching.
    """
    for rule in rules:
        if rule.category == category.name and rule.tier == tier and rule.audience == audience:
            return rule
    return None


def cell_from_rule(rule: PricingRule) -> Cell:
    return Cell(
        price_cents=rule.price_cents,
        rule_id=rule.id,
        start_date=normalize_date(rule.start_date),
        end_date=normalize_date(rule.end_date),
    )


def build_matrix(
    categories: list[Category],
    tiers: list[str],
    audiences: list[str],
    existing_rules: list[PricingRule]
) -> Matrix:
    """Build a fresh matrix with one cell per (audience, category, tier)."""
    matrix = {}
    for aud in audiences:
        matrix[aud] = {}
        for cat in categories:
            matrix[aud][cat.id] = {}
            for tier in tiers:
                rule = find_rule(existing_rules, cat, aud, tier)
                matrix[aud][cat.id][tier] = cell_from_rule(rule) if rule else EMPTY_CELL
    return matrix


def reconcile(
    previous: Matrix,
    categories: list[Category],
    tiers: list[str],
    audiences: list[str]
) -> Matrix:
    """
    Rebuild the matrix against new dimension sets.

    Surviving coordinates keep their cell, new coordinates get an empty
    cell and coordinates outside the cross product are dropped.
    """
    previous = previous or {}
    matrix = {}
    for aud in audiences:
        matrix[aud] = {}
        for cat in categories:
            old_row = previous.get(aud, {}).get(cat.id, {})
            matrix[aud][cat.id] = {tier: old_row.get(tier, EMPTY_CELL) for tier in tiers}
    return matrix


def get_cell(matrix: Matrix, audience: str, category_id: str, tier: str) -> Cell:
    """Read a cell; unknown coordinates read as empty."""
    return matrix.get(audience, {}).get(category_id, {}).get(tier, EMPTY_CELL)


def put_cell(matrix: Matrix, audience: str, category_id: str, tier: str, cell: Cell) -> Matrix:
    """Copy-on-write update of a single coordinate."""
    audience_row = dict(matrix.get(audience, {}))
    category_row = dict(audience_row.get(category_id, {}))
    category_row[tier] = cell
    audience_row[category_id] = category_row
    return {**matrix, audience: audience_row}


def set_cell_price(matrix: Matrix, audience: str, category_id: str, tier: str, price_cents: Price) -> Matrix:
    """Set a cell's price. Input is kept verbatim; it is only parsed at save/export time."""
    cell = get_cell(matrix, audience, category_id, tier)
    return put_cell(matrix, audience, category_id, tier, replace(cell, price_cents=price_cents))


def set_cell_dates(
    matrix: Matrix,
    audience: str,
    category_id: str,
    tier: str,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None
) -> Matrix:
    """Set a cell-level date override. `None` leaves that side unchanged."""
    cell = get_cell(matrix, audience, category_id, tier)
    if start_date is not None:
        cell = replace(cell, start_date=normalize_date(start_date))
    if end_date is not None:
        cell = replace(cell, end_date=normalize_date(end_date))
    return put_cell(matrix, audience, category_id, tier, cell)


def fill_row(matrix: Matrix, category_id: str, audiences: list[str], tiers: list[str], value: Price) -> Matrix:
    """Set one category's price across every audience and tier."""
    for aud in audiences:
        for tier in tiers:
            matrix = set_cell_price(matrix, aud, category_id, tier, value)
    return matrix


def fill_column(matrix: Matrix, tier: str, audience: str, categories: list[Category], value: Price) -> Matrix:
    """Set one tier's price for every category of a single audience."""
    for cat in categories:
        matrix = set_cell_price(matrix, audience, cat.id, tier, value)
    return matrix


def is_priced(value: Price) -> bool:
    """A cell counts as priced when its raw value is non-blank ('0' included)."""
    if value is None:
        return False
    return str(value).strip() != ''


def find_priced_cells(
    matrix: Matrix,
    categories: list[Category],
    tiers: list[str],
    audiences: list[str],
    tier: Optional[str] = None,
    audience: Optional[str] = None
) -> RemovalCheck:
    """
    Scan a tier column or an audience plane for priced cells.

    Exactly one of `tier` / `audience` is given; the scan covers every
    category × the opposite dimension.
    """
    if (tier is None) == (audience is None):
        raise ValueError("Pass exactly one of tier or audience")

    scan_audiences = audiences if tier is not None else [audience]
    scan_tiers = [tier] if tier is not None else tiers
    priced = []

    for aud in scan_audiences:
        for cat in categories:
            for t in scan_tiers:
                if is_priced(get_cell(matrix, aud, cat.id, t).price_cents):
                    priced.append((aud, cat.id, t))

    if tier is not None:
        return RemovalCheck(kind='tier', label=tier, priced=tuple(priced))
    return RemovalCheck(kind='audience', label=audience, priced=tuple(priced))


def _unique_in_order(values: Iterable[str]) -> list[str]:
    seen = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def tiers_from_rules(rules: list[PricingRule], default: Iterable[str] = ()) -> list[str]:
    """Tiers named by the rule list in first-seen order, else `default`."""
    return _unique_in_order(r.tier for r in rules) or list(default)


def audiences_from_rules(rules: list[PricingRule], default: Iterable[str] = ()) -> list[str]:
    """Audiences named by the rule list in first-seen order, else `default`."""
    return _unique_in_order(r.audience for r in rules) or list(default)


def tier_end_dates_from_rules(rules: list[PricingRule]) -> dict[str, str]:
    """Take each tier's end date from the first rule of that tier that has one."""
    end_dates = {}
    for rule in rules:
        if rule.tier and rule.tier not in end_dates:
            end = normalize_date(rule.end_date)
            if end:
                end_dates[rule.tier] = end
    return end_dates
