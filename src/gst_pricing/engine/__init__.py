"""Engine subpackage - line pricing, aggregation and the tax label catalog."""
from .models import (
    NON_TAXABLE,
    Discount,
    DiscountType,
    DocumentTotals,
    LineItem,
    LineResult,
    NonTaxable,
    SupplyMode,
    Taxed,
)
from .pricing_engine import PricingEngine, aggregate, compute_line, explain_line
from .tax_catalog import TaxCatalog, TaxOption, UnknownTaxLabelError

__all__ = [
    'PricingEngine', 'compute_line', 'aggregate', 'explain_line',
    'Discount', 'DiscountType', 'Taxed', 'NonTaxable', 'NON_TAXABLE',
    'LineItem', 'LineResult', 'DocumentTotals', 'SupplyMode',
    'TaxCatalog', 'TaxOption', 'UnknownTaxLabelError',
]
