"""
Preview helper tests: line tables, tax summary, INR formatting and
amounts in words.
"""
import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from gst_pricing.config.settings import Settings
from gst_pricing.engine import NON_TAXABLE, Discount, LineItem, PricingEngine, SupplyMode, Taxed
from gst_pricing.services.preview import (
    LINE_COLUMNS,
    SUMMARY_COLUMNS,
    amount_in_words,
    format_inr,
    lines_frame,
    tax_summary,
)


@pytest.fixture(scope="module")
def engine():
    return PricingEngine(Settings.load())


@pytest.fixture(scope="module")
def items():
    return [
        LineItem(item_id='1', name="Consulting", quantity=2, rate=100, discount=Discount.percentage(10),
                 tax=Taxed(18), tax_label="GST18"),
        LineItem(item_id='2', name="Support", quantity=1, rate=500, tax=Taxed(18), tax_label="GST18"),
        LineItem(item_id='3', name="Books", quantity=4, rate=25, tax=Taxed(0), tax_label="GST0"),
        LineItem(item_id='4', name="Donation", quantity=1, rate=1000, tax=NON_TAXABLE, tax_label="Non-taxable"),
    ]


def test_lines_frame(items, engine):
    df = lines_frame(items, engine)
    assert list(df.columns) == LINE_COLUMNS
    assert len(df) == 4
    assert df.loc[0, 'Amount'] == pytest.approx(212.4)
    assert df.loc[0, 'Discount'] == pytest.approx(20)
    assert df['Taxable Amount'].sum() == pytest.approx(180 + 500 + 100 + 1000)


def test_tax_summary_groups_by_label(items, engine):
    summary = tax_summary(items, engine)
    assert list(summary.columns) == SUMMARY_COLUMNS
    assert list(summary['Tax']) == ["GST0", "GST18"]

    gst18 = summary[summary['Tax'] == "GST18"].iloc[0]
    assert gst18['Taxable Amount'] == pytest.approx(680)
    assert gst18['Tax Amount'] == pytest.approx(122.4)
    assert gst18['CGST'] == pytest.approx(61.2)
    assert gst18['SGST'] == pytest.approx(61.2)
    assert gst18['IGST'] == 0


def test_tax_summary_excludes_non_taxable(items, engine):
    summary = tax_summary(items, engine)
    assert "Non-taxable" not in set(summary['Tax'])


def test_tax_summary_inter_state(items, engine):
    summary = tax_summary(items, engine, SupplyMode.INTER_STATE)
    assert summary['IGST'].sum() == pytest.approx(122.4)
    assert summary['CGST'].sum() == 0


def test_tax_summary_without_taxable_lines(engine):
    summary = tax_summary([LineItem(item_id='1', rate=10)], engine)
    assert summary.empty
    assert list(summary.columns) == SUMMARY_COLUMNS


@pytest.mark.parametrize("amount,expected", [
    (0, "₹0.00"),
    (999, "₹999.00"),
    (1000, "₹1,000.00"),
    (100000, "₹1,00,000.00"),
    (1234567.5, "₹12,34,567.50"),
    (-1500, "-₹1,500.00"),
])
def test_format_inr(amount, expected):
    assert format_inr(amount) == expected


@pytest.mark.parametrize("amount,expected", [
    (0, "Zero Only"),
    (0.75, "Zero Only"),
    (252.4, "Indian Rupee Two Hundred Fifty Two Only"),
    (1000, "Indian Rupee One Thousand Only"),
    (123456, "Indian Rupee One Lakh Twenty Three Thousand Four Hundred Fifty Six Only"),
    (10_000_000, "Indian Rupee One Crore Only"),
    (25_07_00_019, "Indian Rupee Twenty Five Crore Seven Lakh Nineteen Only"),
    (15_000_000_000, "Indian Rupee One Thousand Five Hundred Crore Only"),
    (-118, "Minus Indian Rupee One Hundred Eighteen Only"),
])
def test_amount_in_words(amount, expected):
    assert amount_in_words(amount) == expected
