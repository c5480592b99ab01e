"""
Tax Catalog - maps tax labels (GST18, IGST5, Non-taxable) to rates.

Labels are for display and export; the engine only consumes the numeric
rate or the non-taxable classification a label resolves to.
"""
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pandas as pd

from .models import NON_TAXABLE, NonTaxable, SupplyMode, TaxClassification, Taxed

logger = logging.getLogger(__name__)

NON_TAXABLE_LABEL = "Non-taxable"

# Labels the editors send for "no tax selected"
_NON_TAXABLE_ALIASES = {'', 'none', 'non-taxable', 'nontaxable', 'non taxable', 'exempt', '-1'}

REQUIRED_COLUMNS = ('label', 'display', 'rate', 'regime')
VALID_REGIMES = {'intra', 'inter', 'none'}


class UnknownTaxLabelError(KeyError):
    """Raised when a tax label cannot be resolved to a rate."""

    def __init__(self, label: str):
        super().__init__(label)
        self.label = label

    def __str__(self):
        return f"Unknown tax label '{self.label}'"


@dataclass(frozen=True)
class TaxOption:
    """A selectable tax label."""
    label: str
    display: str
    rate: Optional[float]
    regime: str  # "intra", "inter" or "none"

    @property
    def classification(self) -> TaxClassification:
        if self.regime == 'none' or self.rate is None:
            return NON_TAXABLE
        return Taxed(self.rate)


DEFAULT_OPTIONS = (
    TaxOption(NON_TAXABLE_LABEL, NON_TAXABLE_LABEL, None, 'none'),
    *(TaxOption(f"GST{r}", f"GST {r}%", float(r), 'intra') for r in (0, 5, 12, 18, 28)),
    *(TaxOption(f"IGST{r}", f"IGST {r}%", float(r), 'inter') for r in (0, 5, 12, 18, 28)),
)


def validate_catalog_frame(df: pd.DataFrame) -> list[str]:
    """Check a tax catalog frame. Returns a list of error messages."""
    errors = []
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        return [f"Missing columns: {', '.join(missing)}"]

    labels = df['label'].astype(str).str.strip()
    duplicates = labels[labels.str.lower().duplicated()].unique()
    for label in duplicates:
        errors.append(f"Duplicate label: {label}")

    for _, row in df.iterrows():
        label = str(row['label']).strip()
        regime = str(row['regime']).strip().lower()
        if regime not in VALID_REGIMES:
            errors.append(f"{label}: invalid regime '{row['regime']}'")
            continue
        if regime == 'none':
            continue
        rate = pd.to_numeric(row['rate'], errors='coerce')
        if pd.isna(rate):
            errors.append(f"{label}: rate is not a number")
        elif rate < 0:
            errors.append(f"{label}: negative rate {rate}")

    return errors


class TaxCatalog:
    """
    Lookup of tax labels.

    Exact lookups (get) are strict. classify() is lenient and also accepts
    free-form item tax strings such as "gst18" or "GST18 [18%]".
    """

    def __init__(self, options=DEFAULT_OPTIONS):
        self._options = list(options)
        self._by_label = {o.label.lower(): o for o in self._options}

    @classmethod
    def load(cls, path: Optional[Path]) -> 'TaxCatalog':
        """Load the catalog from CSV, falling back to the built-in labels."""
        if path is None or not Path(path).exists():
            logger.warning("Tax catalog not found at %s, using built-in labels", path)
            return cls()

        df = pd.read_csv(path, dtype=str).fillna('')
        df.columns = [c.strip() for c in df.columns]
        errors = validate_catalog_frame(df)
        if errors:
            raise ValueError(f"Invalid tax catalog {path}: " + "; ".join(errors))

        options = []
        for _, row in df.iterrows():
            regime = row['regime'].strip().lower()
            rate = None if regime == 'none' else float(row['rate'])
            options.append(TaxOption(
                label=row['label'].strip(),
                display=row['display'].strip() or row['label'].strip(),
                rate=rate,
                regime=regime,
            ))
        logger.debug("Loaded %d tax options from %s", len(options), path)
        return cls(options)

    def options(self) -> list[TaxOption]:
        return list(self._options)

    def get(self, label: str) -> TaxOption:
        """Exact, case-insensitive label lookup."""
        option = self._by_label.get(str(label).strip().lower())
        if option is None:
            raise UnknownTaxLabelError(label)
        return option

    def classify(self, label: Optional[str]) -> TaxClassification:
        """Resolve a label, alias or free-form tax string to a classification."""
        text = str(label if label is not None else '').strip()
        if text.lower() in _NON_TAXABLE_ALIASES:
            return NON_TAXABLE

        option = self._by_label.get(text.lower())
        if option is not None:
            return option.classification

        match = re.search(r'-?\d+(\.\d+)?', text)
        if match:
            rate = float(match.group(0))
            # Negative rates (the -1 sentinel) mean no tax
            return NON_TAXABLE if rate < 0 else Taxed(rate)
        raise UnknownTaxLabelError(text)

    def label_for(self, tax: TaxClassification, supply_mode: SupplyMode = SupplyMode.INTRA_STATE) -> str:
        """Label a classification, e.g. Taxed(18) -> GST18 (or IGST18 inter-state)."""
        if isinstance(tax, NonTaxable):
            return NON_TAXABLE_LABEL
        prefix = 'IGST' if supply_mode == SupplyMode.INTER_STATE else 'GST'
        return f"{prefix}{tax.rate:g}"
