"""
Centralized settings and path configuration for GST pricing.
"""
import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass(frozen=True)
class DocumentProfile:
    """Per document type pricing options."""
    name: str
    include_shipping: bool


DEFAULT_DOCUMENT_PROFILES = {
    'credit_note': DocumentProfile('Credit Note', include_shipping=True),
    'quote': DocumentProfile('Quote', include_shipping=True),
    'delivery_challan': DocumentProfile('Delivery Challan', include_shipping=False),
    'e_way_bill': DocumentProfile('E-Way Bill', include_shipping=False),
}


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Tax label catalog CSV
    tax_catalog_path: Path

    default_supply_mode: str = 'intra_state'
    currency_decimals: int = 2
    verification_tolerance: float = 0.01
    log_level: str = 'INFO'

    document_profiles: dict[str, DocumentProfile] = field(
        default_factory=lambda: dict(DEFAULT_DOCUMENT_PROFILES)
    )

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and GST_PRICING_* env vars."""
        root = project_root or get_project_root()
        package_dir = Path(__file__).resolve().parent.parent

        catalog_path = os.environ.get('GST_PRICING_TAX_CATALOG')

        return cls(
            project_root=root,
            tax_catalog_path=Path(catalog_path) if catalog_path else package_dir / 'data' / 'tax_options.csv',
            default_supply_mode=os.environ.get('GST_PRICING_SUPPLY_MODE', 'intra_state'),
            currency_decimals=int(os.environ.get('GST_PRICING_DECIMALS', 2)),
            verification_tolerance=float(os.environ.get('GST_PRICING_TOLERANCE', 0.01)),
            log_level=os.environ.get('GST_PRICING_LOG_LEVEL', 'INFO').upper(),
        )

    def profile(self, document_type: str) -> DocumentProfile:
        """Get the profile for a document type."""
        try:
            return self.document_profiles[document_type]
        except KeyError:
            known = ', '.join(sorted(self.document_profiles))
            raise ValueError(f"Unknown document type '{document_type}' (expected one of: {known})")


def configure_logging(settings: Optional[Settings] = None):
    """Configure root logging from settings (for scripts and the API)."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings():
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
