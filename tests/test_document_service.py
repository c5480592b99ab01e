"""
Document service tests: form value parsing, editing commands and the
JSON payload round trip.
"""
import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from gst_pricing.config.settings import Settings
from gst_pricing.engine import NON_TAXABLE, Discount, DiscountType, PricingEngine, SupplyMode, TaxCatalog, Taxed
from gst_pricing.services import document_service as docs
from gst_pricing.services.document_service import LineNotFoundError
from gst_pricing.services.form_input import parse_amount, parse_discount


@pytest.fixture(scope="module")
def engine():
    return PricingEngine(Settings.load())


@pytest.fixture(scope="module")
def catalog():
    return TaxCatalog()


@pytest.fixture
def scenario(engine, catalog):
    """Credit note with the 212.4 line and the fully discounted line."""
    state = docs.new_document('credit_note', 'intra_state', engine=engine)
    state = docs.update_line(state, '1', tax_catalog=catalog, name="Consulting", quantity=2, rate=100,
                             discount_value=10, discount_type='percentage', tax_label='GST18')
    state = docs.add_line(state)
    state = docs.update_line(state, '2', tax_catalog=catalog, name="Sample", quantity=1, rate=50,
                             discount_value=100, discount_type='flat', tax_label='GST5')
    return docs.set_adjustments(state, shipping_charges=50, adjustment=-10)


@pytest.mark.parametrize("raw,expected", [
    ("1,250.50", 1250.5),
    ("₹ 99", 99.0),
    ("abc", 0.0),
    ("", 0.0),
    (None, 0.0),
    (float('nan'), 0.0),
    ("-5", 0.0),
    (7, 7.0),
])
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


def test_parse_amount_allows_negative_adjustment():
    assert parse_amount("-10", allow_negative=True) == -10.0


def test_parse_discount_defaults_to_percentage():
    assert parse_discount("5", "weird") == Discount(DiscountType.PERCENTAGE, 5.0)
    assert parse_discount("5", "flat") == Discount(DiscountType.FLAT, 5.0)


def test_new_document_has_one_default_row(engine):
    state = docs.new_document('delivery_challan', engine=engine)
    assert len(state.items) == 1
    item = state.items[0]
    assert item.quantity == 1
    assert item.rate == 0
    assert item.discount == Discount.percentage(0)
    assert item.tax == NON_TAXABLE
    assert item.amount == 0
    assert state.supply_mode == SupplyMode.INTRA_STATE


def test_new_document_unknown_type(engine):
    with pytest.raises(ValueError):
        docs.new_document('purchase_order', engine=engine)


def test_add_and_remove_lines(engine):
    state = docs.new_document('quote', engine=engine)
    state = docs.add_line(docs.add_line(state))
    assert [i.item_id for i in state.items] == ['1', '2', '3']

    state = docs.remove_line(state, '2')
    assert [i.item_id for i in state.items] == ['1', '3']

    state = docs.add_line(state)
    assert state.items[-1].item_id == '4'


def test_removing_last_row_keeps_one_default_row(engine, catalog):
    state = docs.new_document('quote', engine=engine)
    state = docs.update_line(state, '1', tax_catalog=catalog, rate=500, tax_label='GST18')
    state = docs.remove_line(state, '1')
    assert len(state.items) == 1
    assert state.items[0].rate == 0
    assert state.items[0].item_id != '1'


def test_remove_unknown_line(engine):
    state = docs.new_document('quote', engine=engine)
    with pytest.raises(LineNotFoundError):
        docs.remove_line(state, '42')


def test_update_line_normalises_raw_values(engine, catalog):
    state = docs.new_document('quote', engine=engine)
    updated = docs.update_line(state, '1', tax_catalog=catalog, quantity="3", rate="1,200.50",
                               discount_value="10", discount_type="flat", tax_label="gst18")
    item = updated.get_line('1')
    assert item.quantity == 3
    assert item.rate == 1200.5
    assert item.discount == Discount.flat(10)
    assert item.tax == Taxed(18)
    assert item.tax_label == "GST18"
    assert item.amount == pytest.approx((3 * 1200.5 - 10) * 1.18)

    # The input state is untouched
    assert state.get_line('1').rate == 0


def test_update_line_rejects_amount(engine):
    state = docs.new_document('quote', engine=engine)
    with pytest.raises(ValueError, match="derived"):
        docs.update_line(state, '1', amount=100)
    with pytest.raises(ValueError, match="Unknown line fields"):
        docs.update_line(state, '1', colour="red")


def test_apply_catalog_item(engine, catalog):
    state = docs.new_document('delivery_challan', engine=engine)
    state = docs.apply_catalog_item(state, '1', {
        "name": "Laptop", "description": "14 inch", "rate": "1,500", "intraStateTax": "gst12", "hsnSac": "8471",
    }, catalog)
    item = state.get_line('1')
    assert item.name == "Laptop"
    assert item.hsn_sac == "8471"
    assert item.rate == 1500
    assert item.tax == Taxed(12)
    assert item.tax_label == "GST12"


def test_apply_catalog_item_falls_back_to_selling_price(engine, catalog):
    state = docs.new_document('delivery_challan', engine=engine)
    state = docs.apply_catalog_item(state, '1', {"name": "Cable", "sellingPrice": "99.50"}, catalog)
    item = state.get_line('1')
    assert item.rate == 99.5
    assert item.tax == NON_TAXABLE


def test_apply_catalog_item_unreadable_tax(engine, catalog):
    state = docs.new_document('delivery_challan', engine=engine)
    state = docs.apply_catalog_item(state, '1', {"name": "Misc", "rate": 10, "intraStateTax": "special"}, catalog)
    assert state.get_line('1').tax == NON_TAXABLE


def test_apply_catalog_item_inter_state(engine, catalog):
    state = docs.new_document('quote', 'inter_state', engine=engine)
    state = docs.apply_catalog_item(state, '1', {
        "name": "Chair", "rate": 2000, "intraStateTax": "gst12", "interStateTax": "igst18",
    }, catalog)
    assert state.get_line('1').tax_label == "IGST18"


def test_set_adjustments():
    state = docs.DocumentState(document_type='quote', items=())
    state = docs.set_adjustments(state, shipping_charges="-5", adjustment="-10")
    assert state.shipping_charges == 0
    assert state.adjustment == -10


def test_set_supply_mode_relabels_and_splits(scenario, engine, catalog):
    state = docs.set_supply_mode(scenario, 'inter_state', catalog)
    assert [i.tax_label for i in state.items] == ["IGST18", "IGST5"]

    totals = docs.totals(state, engine)
    assert totals.igst == pytest.approx(32.4)
    assert totals.cgst == 0


def test_totals_scenario(scenario, engine):
    totals = docs.totals(scenario, engine)
    assert totals.sub_total == pytest.approx(180)
    assert totals.cgst == pytest.approx(16.2)
    assert totals.sgst == pytest.approx(16.2)
    assert totals.grand_total == pytest.approx(252.4)


def test_totals_exclude_shipping_for_challans(scenario, engine):
    from dataclasses import replace
    challan = replace(scenario, document_type='delivery_challan')
    totals = docs.totals(challan, engine)
    assert totals.shipping_charges == 0
    assert totals.grand_total == pytest.approx(202.4)


def test_build_payload(scenario, engine):
    payload = docs.build_payload(scenario, engine)

    assert payload["documentType"] == "credit_note"
    assert payload["supplyMode"] == "intra_state"
    assert payload["subTotal"] == 180
    assert payload["cgst"] == 16.2
    assert payload["sgst"] == 16.2
    assert payload["igst"] == 0
    assert payload["shippingCharges"] == 50
    assert payload["adjustment"] == -10
    assert payload["total"] == 252.4

    first = payload["items"][0]
    assert first["name"] == "Consulting"
    assert first["discount"] == 10
    assert first["discountType"] == "percentage"
    assert first["discountAmount"] == 20
    assert first["taxName"] == "GST18"
    assert first["taxRate"] == 18
    assert first["tax"] == 32.4
    assert first["amount"] == 212.4

    second = payload["items"][1]
    assert second["discountAmount"] == 50
    assert second["amount"] == 0


def test_load_payload_restores_inputs(scenario, engine, catalog):
    payload = docs.build_payload(scenario, engine)
    restored = docs.load_payload(payload, tax_catalog=catalog)

    assert restored.document_type == scenario.document_type
    assert restored.supply_mode == scenario.supply_mode
    assert restored.shipping_charges == scenario.shipping_charges
    assert restored.adjustment == scenario.adjustment
    assert restored.items == scenario.items


def test_load_payload_tax_rate_without_label(catalog):
    state = docs.load_payload({"items": [{"quantity": 1, "rate": 100, "taxRate": 12}]}, tax_catalog=catalog)
    assert state.items[0].tax == Taxed(12)
    assert state.items[0].tax_label == "GST12"


@pytest.mark.parametrize("tax_rate", [-1, -1.0, "-1", "-5"])
def test_load_payload_negative_tax_rate_is_non_taxable(catalog, engine, tax_rate):
    state = docs.load_payload({"items": [{"quantity": 1, "rate": 100, "taxRate": tax_rate}]}, tax_catalog=catalog)
    item = state.items[0]
    assert item.tax == NON_TAXABLE
    assert item.tax_label == "Non-taxable"
    assert engine.price_line(item).tax_amount == 0
    assert item.amount == 100


def test_load_payload_numeric_tax_rate(catalog):
    state = docs.load_payload({"items": [{"quantity": 1, "rate": 100, "taxRate": 18.0}]}, tax_catalog=catalog)
    assert state.items[0].tax == Taxed(18)
    assert state.items[0].tax_label == "GST18"
