"""
Document Service - immutable editing state for document line items.

Every command takes a DocumentState and returns a new one. Totals are
never stored on the state; they are recomputed from the items and the
document-level adjustments whenever they are asked for.
"""
import logging
from dataclasses import dataclass, replace
from typing import Optional

from ..engine.models import NON_TAXABLE, Discount, DocumentTotals, LineItem, SupplyMode, TaxClassification, Taxed
from ..engine.pricing_engine import PricingEngine
from ..engine.tax_catalog import TaxCatalog, UnknownTaxLabelError
from .form_input import parse_amount, parse_discount_type, parse_quantity

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    'name', 'description', 'hsn_sac', 'quantity', 'rate',
    'discount', 'discount_value', 'discount_type', 'tax', 'tax_label',
}


class LineNotFoundError(KeyError):
    """Raised when a command targets a line id that is not on the document."""

    def __init__(self, item_id: str):
        super().__init__(item_id)
        self.item_id = item_id

    def __str__(self):
        return f"Line '{self.item_id}' not found"


@dataclass(frozen=True)
class DocumentState:
    """Line items plus document-level adjustments for one document."""
    document_type: str
    items: tuple[LineItem, ...]
    shipping_charges: float = 0.0
    adjustment: float = 0.0
    supply_mode: SupplyMode = SupplyMode.INTRA_STATE

    def get_line(self, item_id: str) -> LineItem:
        for item in self.items:
            if item.item_id == item_id:
                return item
        raise LineNotFoundError(item_id)


def _next_item_id(items) -> str:
    numeric = [int(i.item_id) for i in items if str(i.item_id).isdigit()]
    return str(max(numeric, default=0) + 1)


def _replace_line(state: DocumentState, item_id: str, new_item: LineItem) -> DocumentState:
    state.get_line(item_id)
    items = tuple(new_item if i.item_id == item_id else i for i in state.items)
    return replace(state, items=items)


def new_document(document_type: str, supply_mode=None, engine: Optional[PricingEngine] = None) -> DocumentState:
    """Start a document with a single default row."""
    engine = engine or PricingEngine()
    engine.settings.profile(document_type)
    return DocumentState(
        document_type=document_type,
        items=(LineItem(item_id='1'),),
        supply_mode=engine.resolve_supply_mode(supply_mode),
    )


def add_line(state: DocumentState) -> DocumentState:
    """Append a default row (quantity 1, rate 0, no discount, non-taxable)."""
    item = LineItem(item_id=_next_item_id(state.items))
    return replace(state, items=state.items + (item,))


def remove_line(state: DocumentState, item_id: str) -> DocumentState:
    """Remove a row. A document always keeps at least one row."""
    state.get_line(item_id)
    items = tuple(i for i in state.items if i.item_id != item_id)
    if not items:
        items = (LineItem(item_id=_next_item_id(state.items)),)
    return replace(state, items=items)


def update_line(
    state: DocumentState,
    item_id: str,
    tax_catalog: Optional[TaxCatalog] = None,
    **changes,
) -> DocumentState:
    """
    Apply field edits to a row.

    Numeric fields go through form_input normalisation, so raw strings
    from a form are accepted. `amount` is derived and cannot be set.
    """
    if 'amount' in changes:
        raise ValueError("amount is derived from quantity, rate, discount and tax and cannot be set")
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown line fields: {', '.join(sorted(unknown))}")

    item = state.get_line(item_id)
    updates = {}

    for key in ('name', 'description', 'hsn_sac'):
        if key in changes:
            updates[key] = str(changes[key] or '')
    if 'quantity' in changes:
        updates['quantity'] = parse_quantity(changes['quantity'])
    if 'rate' in changes:
        updates['rate'] = parse_amount(changes['rate'])

    discount = changes.get('discount', item.discount)
    if 'discount_type' in changes or 'discount_value' in changes:
        discount = Discount(
            parse_discount_type(changes.get('discount_type', discount.type)),
            parse_amount(changes.get('discount_value', discount.value)),
        )
    updates['discount'] = discount

    if 'tax_label' in changes:
        catalog = tax_catalog or TaxCatalog()
        tax = catalog.classify(changes['tax_label'])
        updates['tax'] = tax
        updates['tax_label'] = catalog.label_for(tax, state.supply_mode)
    elif 'tax' in changes:
        tax = changes['tax']
        updates['tax'] = tax
        updates['tax_label'] = (tax_catalog or TaxCatalog()).label_for(tax, state.supply_mode)

    return _replace_line(state, item_id, replace(item, **updates))


def apply_catalog_item(
    state: DocumentState,
    item_id: str,
    catalog_item: dict,
    tax_catalog: Optional[TaxCatalog] = None,
) -> DocumentState:
    """
    Overwrite a row from an item catalog entry.

    Uses `rate`, falling back to `sellingPrice`, and the item's tax string
    (`intraStateTax`, or `interStateTax` for inter-state supply). An
    unreadable tax string leaves the row non-taxable.
    """
    catalog = tax_catalog or TaxCatalog()
    item = state.get_line(item_id)

    rate = parse_amount(catalog_item.get('rate'))
    if not rate:
        rate = parse_amount(catalog_item.get('sellingPrice'))

    tax_text = catalog_item.get('intraStateTax') or catalog_item.get('taxName')
    if state.supply_mode == SupplyMode.INTER_STATE and catalog_item.get('interStateTax'):
        tax_text = catalog_item['interStateTax']
    try:
        tax: TaxClassification = catalog.classify(tax_text)
    except UnknownTaxLabelError:
        logger.warning("Catalog item %r has unreadable tax %r, treating as non-taxable",
                       catalog_item.get('name'), tax_text)
        tax = catalog.classify(None)

    new_item = replace(
        item,
        name=str(catalog_item.get('name') or ''),
        description=str(catalog_item.get('description') or ''),
        hsn_sac=str(catalog_item.get('hsnSac') or catalog_item.get('hsn_sac') or ''),
        rate=rate,
        tax=tax,
        tax_label=catalog.label_for(tax, state.supply_mode),
    )
    return _replace_line(state, item_id, new_item)


def set_adjustments(state: DocumentState, shipping_charges=None, adjustment=None) -> DocumentState:
    """Set shipping (non-negative) and adjustment (may be negative)."""
    updates = {}
    if shipping_charges is not None:
        updates['shipping_charges'] = parse_amount(shipping_charges)
    if adjustment is not None:
        updates['adjustment'] = parse_amount(adjustment, allow_negative=True)
    return replace(state, **updates)


def set_supply_mode(state: DocumentState, supply_mode, tax_catalog: Optional[TaxCatalog] = None) -> DocumentState:
    """Switch supply mode and relabel taxed rows (GST18 <-> IGST18)."""
    catalog = tax_catalog or TaxCatalog()
    mode = SupplyMode.parse(supply_mode)
    items = tuple(replace(i, tax_label=catalog.label_for(i.tax, mode)) for i in state.items)
    return replace(state, supply_mode=mode, items=items)


def totals(state: DocumentState, engine: Optional[PricingEngine] = None) -> DocumentTotals:
    """Recompute the document totals."""
    engine = engine or PricingEngine()
    _, document_totals = engine.price_document(
        state.items,
        shipping_charges=state.shipping_charges,
        adjustment=state.adjustment,
        supply_mode=state.supply_mode,
        document_type=state.document_type,
    )
    return document_totals


def build_payload(state: DocumentState, engine: Optional[PricingEngine] = None) -> dict:
    """Build the JSON document payload sent to the backend."""
    engine = engine or PricingEngine()
    decimals = engine.settings.currency_decimals

    def money(value: float) -> float:
        return round(value, decimals)

    results, document_totals = engine.price_document(
        state.items,
        shipping_charges=state.shipping_charges,
        adjustment=state.adjustment,
        supply_mode=state.supply_mode,
        document_type=state.document_type,
    )

    items = []
    for item, result in zip(state.items, results):
        items.append({
            "itemId": item.item_id,
            "name": item.name,
            "description": item.description,
            "hsnSac": item.hsn_sac,
            "quantity": item.quantity,
            "rate": item.rate,
            "discount": item.discount.value,
            "discountType": item.discount.type.value,
            "discountAmount": money(result.discount_amount),
            "taxRate": result.tax_rate,
            "taxName": item.tax_label,
            "tax": money(result.tax_amount),
            "amount": money(result.line_total),
        })

    return {
        "documentType": state.document_type,
        "supplyMode": state.supply_mode.value,
        "items": items,
        "subTotal": money(document_totals.sub_total),
        "shippingCharges": money(document_totals.shipping_charges),
        "cgst": money(document_totals.cgst),
        "sgst": money(document_totals.sgst),
        "igst": money(document_totals.igst),
        "adjustment": money(document_totals.adjustment),
        "total": money(document_totals.grand_total),
    }


def _tax_from_rate(raw, catalog: TaxCatalog) -> TaxClassification:
    """Numeric taxRate: negative (the -1 sentinel) is non-taxable."""
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return NON_TAXABLE if raw < 0 else Taxed(float(raw))
    return catalog.classify(str(raw))


def load_payload(
    payload: dict,
    document_type: Optional[str] = None,
    supply_mode=None,
    tax_catalog: Optional[TaxCatalog] = None,
) -> DocumentState:
    """
    Rebuild a DocumentState from a submitted payload's raw inputs.

    Only the inputs are read (quantity, rate, discount, tax); submitted
    amounts are ignored. Unknown tax labels raise UnknownTaxLabelError.
    """
    catalog = tax_catalog or TaxCatalog()
    mode = SupplyMode.parse(supply_mode or payload.get('supplyMode') or SupplyMode.INTRA_STATE)

    items = []
    for index, raw in enumerate(payload.get('items') or [], start=1):
        if raw.get('taxName') not in (None, ''):
            tax = catalog.classify(raw['taxName'])
        elif raw.get('taxRate') not in (None, ''):
            tax = _tax_from_rate(raw['taxRate'], catalog)
        else:
            tax = catalog.classify(None)

        items.append(LineItem(
            item_id=str(raw.get('itemId') or raw.get('id') or index),
            name=str(raw.get('name') or ''),
            description=str(raw.get('description') or ''),
            hsn_sac=str(raw.get('hsnSac') or ''),
            quantity=parse_quantity(raw.get('quantity', raw.get('qty'))),
            rate=parse_amount(raw.get('rate')),
            discount=Discount(
                parse_discount_type(raw.get('discountType')),
                parse_amount(raw.get('discount')),
            ),
            tax=tax,
            tax_label=catalog.label_for(tax, mode),
        ))

    return DocumentState(
        document_type=document_type or payload.get('documentType') or 'credit_note',
        items=tuple(items),
        shipping_charges=parse_amount(payload.get('shippingCharges')),
        adjustment=parse_amount(payload.get('adjustment'), allow_negative=True),
        supply_mode=mode,
    )
