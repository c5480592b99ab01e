"""
Preview helpers for printable documents: line tables, the tax summary,
INR formatting and the amount in words.
"""
import math
from typing import Iterable, Optional

import pandas as pd

from ..engine.models import LineItem, SupplyMode
from ..engine.pricing_engine import PricingEngine

LINE_COLUMNS = [
    'Item', 'HSN/SAC', 'Quantity', 'Rate', 'Discount', 'Taxable Amount',
    'Tax', 'Tax Amount', 'Amount',
]

SUMMARY_COLUMNS = ['Tax', 'Rate', 'Taxable Amount', 'CGST', 'SGST', 'IGST', 'Tax Amount']

_ONES = [
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine", "Ten",
    "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen", "Seventeen",
    "Eighteen", "Nineteen",
]
_TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]


def lines_frame(items: Iterable[LineItem], engine: Optional[PricingEngine] = None) -> pd.DataFrame:
    """One row per line item with its computed amounts."""
    engine = engine or PricingEngine()
    rows = []
    for item in items:
        result = engine.price_line(item)
        rows.append({
            'Item': item.name or item.description,
            'HSN/SAC': item.hsn_sac,
            'Quantity': item.quantity,
            'Rate': item.rate,
            'Discount': result.discount_amount,
            'Taxable Amount': result.taxable_amount,
            'Tax': item.tax_label,
            'Tax Amount': result.tax_amount,
            'Amount': result.line_total,
        })
    return pd.DataFrame(rows, columns=LINE_COLUMNS)


def tax_summary(
    items: Iterable[LineItem],
    engine: Optional[PricingEngine] = None,
    supply_mode: SupplyMode = SupplyMode.INTRA_STATE,
) -> pd.DataFrame:
    """
    Taxable amount and tax grouped by tax label.

    Non-taxable lines are left out; GST0 lines are kept since they are
    a reportable classification.
    """
    engine = engine or PricingEngine()
    rows = []
    for item in items:
        result = engine.price_line(item)
        if result.non_taxable:
            continue
        rows.append({
            'Tax': item.tax_label,
            'Rate': result.tax_rate,
            'Taxable Amount': result.taxable_amount,
            'Tax Amount': result.tax_amount,
        })

    if not rows:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    df = pd.DataFrame(rows)
    summary = df.groupby(['Tax', 'Rate'], as_index=False, sort=False)[['Taxable Amount', 'Tax Amount']].sum()

    if supply_mode == SupplyMode.INTER_STATE:
        summary['CGST'] = 0.0
        summary['SGST'] = 0.0
        summary['IGST'] = summary['Tax Amount']
    else:
        summary['CGST'] = summary['Tax Amount'] / 2
        summary['SGST'] = summary['Tax Amount'] / 2
        summary['IGST'] = 0.0

    return summary.sort_values('Rate').reset_index(drop=True)[SUMMARY_COLUMNS]


def format_inr(amount: float) -> str:
    """Format with Indian digit grouping: 1234567.5 -> ₹12,34,567.50."""
    sign = '-' if amount < 0 else ''
    rupees, paise = f"{abs(amount):.2f}".split('.')

    if len(rupees) > 3:
        head, tail = rupees[:-3], rupees[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        rupees = ','.join(groups + [tail])

    return f"{sign}₹{rupees}.{paise}"


def _below_thousand(n: int) -> str:
    words = []
    if n >= 100:
        words.append(f"{_ONES[n // 100]} Hundred")
        n %= 100
    if n >= 20:
        words.append(_TENS[n // 10])
        n %= 10
    if n > 0:
        words.append(_ONES[n])
    return " ".join(words)


def _spell(num: int) -> str:
    crore, num = divmod(num, 10_000_000)
    lakh, num = divmod(num, 100_000)
    thousand, remainder = divmod(num, 1000)

    parts = []
    if crore:
        # Crores past 999 nest: "One Thousand Crore"
        parts.append(f"{_spell(crore) if crore >= 1000 else _below_thousand(crore)} Crore")
    if lakh:
        parts.append(f"{_below_thousand(lakh)} Lakh")
    if thousand:
        parts.append(f"{_below_thousand(thousand)} Thousand")
    if remainder:
        parts.append(_below_thousand(remainder))
    return " ".join(parts)


def amount_in_words(amount: float) -> str:
    """
    Spell out an amount in the Indian numbering system.

    Paise are dropped. 123456 -> "Indian Rupee One Lakh Twenty Three
    Thousand Four Hundred Fifty Six Only".
    """
    num = int(math.floor(abs(amount)))
    if num == 0:
        return "Zero Only"
    prefix = "Minus " if amount < 0 else ""
    return f"{prefix}Indian Rupee {_spell(num)} Only"
