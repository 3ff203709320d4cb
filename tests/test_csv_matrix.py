"""
Tests for matrix CSV export/import.
"""
import pytest

from event_pricing.engine.matrix import build_matrix, get_cell, set_cell_price
from event_pricing.services.csv_matrix import CsvImportError, export_csv, import_csv


@pytest.fixture
def priced_matrix(categories, tiers, audiences):
    matrix = build_matrix(categories, tiers, audiences, [])
    matrix = set_cell_price(matrix, "individual", "c1", "early-bird", 500)
    matrix = set_cell_price(matrix, "individual", "c2", "onsite", "1200")
    matrix = set_cell_price(matrix, "member", "c1", "regular", "800")
    return matrix


def test_export_layout(priced_matrix, categories, tiers):
    text = export_csv(priced_matrix, categories, tiers, "individual")

    assert text.splitlines() == [
        "Category,early-bird,regular,onsite",
        "Student,500,,",
        "Delegate,,,1200",
    ]


def test_export_with_no_categories(tiers):
    assert export_csv({}, [], tiers, "individual").strip() == "Category,early-bird,regular,onsite"


def test_roundtrip_reproduces_prices_and_tiers(priced_matrix, categories, tiers):
    text = export_csv(priced_matrix, categories, tiers, "individual")

    imported_tiers, prices = import_csv(text, categories)

    assert imported_tiers == tiers
    for cat in categories:
        for tier in tiers:
            original = get_cell(priced_matrix, "individual", cat.id, tier).price_cents
            assert prices[cat.id][tier] == str(original), f"{cat.name}/{tier} did not round-trip"


def test_import_skips_unknown_categories(categories):
    tiers, prices = import_csv("Category,regular\nStudent,100\nWorkshop,999\n", categories)

    assert tiers == ["regular"]
    assert prices == {"c1": {"regular": "100"}}


def test_import_tolerates_spaces_and_short_rows(categories):
    tiers, prices = import_csv("Category, early-bird, regular\nStudent, 300\n", categories)

    assert tiers == ["early-bird", "regular"]
    assert prices["c1"] == {"early-bird": "300", "regular": ""}


def test_import_duplicate_tier_keeps_first_column(categories):
    tiers, prices = import_csv("Category,regular,regular\nStudent,100,200\n", categories)

    assert tiers == ["regular"]
    assert prices["c1"] == {"regular": "100"}


def test_import_blank_text():
    assert import_csv("", []) == ([], {})
    assert import_csv("  \n ", []) == ([], {})


def test_import_skips_unknown_category_with_extra_fields(categories):
    tiers, prices = import_csv("Category,regular\nStudent,100\nWorkshop,1,2,3\n", categories)

    assert tiers == ["regular"]
    assert prices == {"c1": {"regular": "100"}}


def test_import_ignores_values_past_header(categories):
    tiers, prices = import_csv("Category,regular\nStudent,100,\nDelegate,200,999\n", categories)

    assert tiers == ["regular"]
    assert prices == {"c1": {"regular": "100"}, "c2": {"regular": "200"}}


def test_import_malformed_csv_raises(categories):
    with pytest.raises(CsvImportError):
        import_csv('Category,regular\n"Student,100\n', categories)
