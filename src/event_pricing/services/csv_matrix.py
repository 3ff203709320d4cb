"""
CSV exchange for one audience's slice of the pricing matrix.

Layout: header `Category,<tier1>,<tier2>,...`, one row per category, each
cell an integer price string or blank.
"""
import io
import logging

import pandas as pd

from ..engine.matrix import get_cell, is_priced
from ..engine.models import Category, Matrix

logger = logging.getLogger(__name__)

CATEGORY_COLUMN = 'Category'


class CsvImportError(ValueError):
    """Raised when matrix CSV text cannot be parsed."""


def matrix_to_frame(matrix: Matrix, categories: list[Category], tiers: list[str], audience: str) -> pd.DataFrame:
    """Tabulate one audience: a row per category, a column per tier."""
    rows = []
    for cat in categories:
        row = [cat.name]
        for tier in tiers:
            value = get_cell(matrix, audience, cat.id, tier).price_cents
            row.append(str(value).strip() if is_priced(value) else '')
        rows.append(row)
    return pd.DataFrame(rows, columns=[CATEGORY_COLUMN, *tiers], dtype=str)


def export_csv(matrix: Matrix, categories: list[Category], tiers: list[str], audience: str) -> str:
    """Render one audience's prices as CSV text."""
    frame = matrix_to_frame(matrix, categories, tiers, audience)
    return frame.to_csv(index=False, lineterminator='\n')


def import_csv(text: str, categories: list[Category]) -> tuple[list[str], dict[str, dict[str, str]]]:
    """
    Parse matrix CSV text.

    Returns (tiers, prices) where tiers come from the header row and prices
    maps category id → tier → raw cell value. Rows naming an unknown
    category are skipped. A repeated tier header keeps its first column and
    values past the last header column are ignored.
    """
    if not text or not text.strip():
        return [], {}

    text = text.strip()
    # Rows may run longer than the header (trailing commas, extra fields)
    width = max(line.count(',') for line in text.splitlines()) + 1

    try:
        frame = pd.read_csv(
            io.StringIO(text),
            header=None,
            names=list(range(width)),
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise CsvImportError(f"Could not parse pricing CSV: {e}") from e

    frame = frame.fillna('')
    header = [str(v).strip() for v in frame.iloc[0].tolist()]

    tiers = []
    tier_columns = []
    for col, name in enumerate(header[1:], start=1):
        if name and name not in tiers:
            tiers.append(name)
            tier_columns.append((name, col))

    by_name = {}
    for cat in categories:
        by_name.setdefault(cat.name, cat)

    prices = {}
    for values in frame.iloc[1:].itertuples(index=False):
        name = str(values[0]).strip()
        cat = by_name.get(name)
        if cat is None:
            logger.warning("Skipping CSV row for unknown category %r", name)
            continue
        prices[cat.id] = {tier: str(values[col]).strip() for tier, col in tier_columns}

    logger.debug("Imported %d categories across %d tiers", len(prices), len(tiers))
    return tiers, prices
