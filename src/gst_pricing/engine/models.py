"""
Data models for the pricing engine.

Uses frozen dataclasses so line items and totals behave as values:
every edit produces a new object instead of mutating the old one.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


class DiscountType(str, Enum):
    """How a line discount value is interpreted."""
    PERCENTAGE = "percentage"
    FLAT = "flat"


class SupplyMode(str, Enum):
    """Intra-state supply splits tax into CGST+SGST, inter-state charges IGST."""
    INTRA_STATE = "intra_state"
    INTER_STATE = "inter_state"

    @classmethod
    def parse(cls, value) -> 'SupplyMode':
        """Parse 'intra_state'/'inter_state', 'intra'/'inter' or 'igst'."""
        if isinstance(value, cls):
            return value
        text = str(value or '').strip().lower().replace('-', '_')
        if text in ('intra', 'intra_state', 'cgst_sgst'):
            return cls.INTRA_STATE
        if text in ('inter', 'inter_state', 'igst'):
            return cls.INTER_STATE
        raise ValueError(f"Unknown supply mode: {value!r}")


@dataclass(frozen=True)
class Discount:
    """A line discount: a percentage of the base amount or a flat amount."""
    type: DiscountType = DiscountType.PERCENTAGE
    value: float = 0.0

    @classmethod
    def percentage(cls, value: float) -> 'Discount':
        return cls(DiscountType.PERCENTAGE, value)

    @classmethod
    def flat(cls, value: float) -> 'Discount':
        return cls(DiscountType.FLAT, value)


@dataclass(frozen=True)
class Taxed:
    """Taxed at `rate` percent. Taxed(0) is the GST0 classification."""
    rate: float

    @property
    def effective_rate(self) -> float:
        return self.rate


@dataclass(frozen=True)
class NonTaxable:
    """Outside GST: no tax and excluded from tax label summaries."""

    @property
    def effective_rate(self) -> float:
        return 0.0


NON_TAXABLE = NonTaxable()

TaxClassification = Union[Taxed, NonTaxable]


@dataclass(frozen=True)
class TraceStep:
    """A single step in a line computation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class LineResult:
    """Computed amounts for one line item."""
    base_amount: float
    discount_amount: float
    taxable_amount: float
    tax_amount: float
    line_total: float
    tax_rate: float = 0.0
    non_taxable: bool = False


@dataclass(frozen=True)
class LineItem:
    """One row of a document. `amount` is derived, never stored."""
    item_id: str
    name: str = ""
    description: str = ""
    hsn_sac: str = ""
    quantity: float = 1.0
    rate: float = 0.0
    discount: Discount = field(default_factory=Discount)
    tax: TaxClassification = NON_TAXABLE
    tax_label: str = "Non-taxable"

    @property
    def tax_rate(self) -> float:
        return self.tax.effective_rate

    @property
    def result(self) -> LineResult:
        # Local import: pricing_engine imports this module
        from .pricing_engine import compute_line
        return compute_line(self.quantity, self.rate, self.discount, self.tax)

    @property
    def amount(self) -> float:
        return self.result.line_total


@dataclass(frozen=True)
class DocumentTotals:
    """Aggregate totals for a document."""
    sub_total: float
    total_tax: float
    cgst: float
    sgst: float
    igst: float
    shipping_charges: float
    adjustment: float
    grand_total: float
    supply_mode: SupplyMode = SupplyMode.INTRA_STATE

    def to_dict(self) -> dict:
        """Convert to the camelCase shape used by document payloads."""
        return {
            "subTotal": self.sub_total,
            "totalTax": self.total_tax,
            "cgst": self.cgst,
            "sgst": self.sgst,
            "igst": self.igst,
            "shippingCharges": self.shipping_charges,
            "adjustment": self.adjustment,
            "total": self.grand_total,
            "supplyMode": self.supply_mode.value,
        }
