"""
Pricing Engine - line item tax and total calculation.

The two core operations are pure functions:
- compute_line: quantity, rate, discount and tax rate to LineResult
- aggregate: LineResults plus document adjustments to DocumentTotals

PricingEngine wraps them with settings (document profiles, default
supply mode) for the services and the API.
"""
import logging
from numbers import Real
from typing import Iterable, Optional, Union

from ..config.settings import Settings, get_settings
from .models import (
    Discount,
    DiscountType,
    DocumentTotals,
    LineItem,
    LineResult,
    NonTaxable,
    SupplyMode,
    TaxClassification,
    Taxed,
    TraceStep,
)

logger = logging.getLogger(__name__)

TaxRateInput = Union[Real, TaxClassification, None]


def _classify(tax_rate: TaxRateInput) -> TaxClassification:
    """Normalise a numeric rate or classification. None means non-taxable."""
    if tax_rate is None:
        return NonTaxable()
    if isinstance(tax_rate, (Taxed, NonTaxable)):
        return tax_rate
    return Taxed(float(tax_rate))


def _clamp_percentage(value: float) -> float:
    return max(0.0, min(value, 100.0))


def compute_line(
    quantity: float,
    rate: float,
    discount: Discount,
    tax_rate: TaxRateInput,
) -> LineResult:
    """
    Compute the amounts for a single line.

    Percentage discounts are clamped to [0, 100] and any discount is capped at
    the base amount, so the taxable amount never goes negative.
    """
    tax = _classify(tax_rate)

    base_amount = quantity * rate

    if discount.type == DiscountType.PERCENTAGE:
        discount_amount = base_amount * (_clamp_percentage(discount.value) / 100)
    else:
        discount_amount = discount.value

    discount_amount = min(discount_amount, base_amount)
    taxable_amount = base_amount - discount_amount

    effective_rate = tax.effective_rate
    tax_amount = taxable_amount * (effective_rate / 100) if effective_rate > 0 else 0.0

    return LineResult(
        base_amount=base_amount,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        tax_amount=tax_amount,
        line_total=taxable_amount + tax_amount,
        tax_rate=effective_rate,
        non_taxable=isinstance(tax, NonTaxable),
    )


def aggregate(
    lines: Iterable[LineResult],
    shipping_charges: float = 0.0,
    adjustment: float = 0.0,
    supply_mode: SupplyMode = SupplyMode.INTRA_STATE,
    include_shipping: bool = True,
) -> DocumentTotals:
    """
    Aggregate line results into document totals.

    The CGST/SGST vs IGST split is decided by the caller through
    `supply_mode`; it is always a 50/50 halving for intra-state supply.
    """
    sub_total = 0.0
    total_tax = 0.0
    for line in lines:
        sub_total += line.taxable_amount
        total_tax += line.tax_amount

    if supply_mode == SupplyMode.INTER_STATE:
        cgst = sgst = 0.0
        igst = total_tax
    else:
        cgst = sgst = total_tax / 2
        igst = 0.0

    shipping = shipping_charges if include_shipping else 0.0

    return DocumentTotals(
        sub_total=sub_total,
        total_tax=total_tax,
        cgst=cgst,
        sgst=sgst,
        igst=igst,
        shipping_charges=shipping,
        adjustment=adjustment,
        grand_total=sub_total + total_tax + shipping + adjustment,
        supply_mode=supply_mode,
    )


def explain_line(
    quantity: float,
    rate: float,
    discount: Discount,
    tax_rate: TaxRateInput,
) -> list[TraceStep]:
    """Explain compute_line as a list of trace steps."""
    result = compute_line(quantity, rate, discount, tax_rate)
    trace = [
        TraceStep("Base Amount", f"Quantity {quantity:g} × rate {rate:.2f}", f"{result.base_amount:.2f}"),
    ]

    if discount.type == DiscountType.PERCENTAGE:
        desc = f"{_clamp_percentage(discount.value):g}% of base amount"
        requested = result.base_amount * (_clamp_percentage(discount.value) / 100)
    else:
        desc = f"Flat discount {discount.value:.2f}"
        requested = discount.value
    if result.discount_amount < requested:
        desc += " (capped at base amount)"
    trace.append(TraceStep("Discount", desc, f"{result.discount_amount:.2f}"))
    trace.append(TraceStep("Taxable Amount", "Base amount less discount", f"{result.taxable_amount:.2f}"))

    if result.non_taxable:
        trace.append(TraceStep("Tax", "Non-taxable item"))
    else:
        trace.append(TraceStep("Tax", f"{result.tax_rate:g}% of taxable amount", f"{result.tax_amount:.2f}"))

    trace.append(TraceStep("Line Total", "Taxable amount plus tax", f"{result.line_total:.2f}"))
    return trace


def format_trace(trace: list[TraceStep]) -> str:
    """Get human-readable trace as formatted text."""
    lines = []
    for t in trace:
        if t.value:
            lines.append(f"→ {t.step}: {t.description} = {t.value}")
        else:
            lines.append(f"→ {t.step}: {t.description}")
    return "\n".join(lines)


class PricingEngine:
    """
    Settings-aware entry point for document pricing.

    Resolves whether shipping counts towards the grand total from the
    document profile, and the supply mode from settings when the caller
    does not pass one.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def price_line(self, item: LineItem) -> LineResult:
        """Compute the amounts for a line item."""
        return compute_line(item.quantity, item.rate, item.discount, item.tax)

    def resolve_supply_mode(self, supply_mode=None) -> SupplyMode:
        if supply_mode is None:
            return SupplyMode.parse(self.settings.default_supply_mode)
        return SupplyMode.parse(supply_mode)

    def price_document(
        self,
        items: Iterable[LineItem],
        shipping_charges: float = 0.0,
        adjustment: float = 0.0,
        supply_mode=None,
        document_type: Optional[str] = None,
    ) -> tuple[list[LineResult], DocumentTotals]:
        """
        Price every line and aggregate the document.

        Returns (line_results, totals). Without a document type shipping
        is included.
        """
        mode = self.resolve_supply_mode(supply_mode)
        include_shipping = True
        if document_type is not None:
            include_shipping = self.settings.profile(document_type).include_shipping

        results = [self.price_line(item) for item in items]
        totals = aggregate(
            results,
            shipping_charges=shipping_charges,
            adjustment=adjustment,
            supply_mode=mode,
            include_shipping=include_shipping,
        )
        logger.debug(
            "Priced %d lines (%s, %s): total=%.2f",
            len(results), document_type or 'generic', mode.value, totals.grand_total
        )
        return results, totals
