"""Shared engine and tax catalog instances for the API routers."""
from ..config.settings import get_settings
from ..engine import PricingEngine, TaxCatalog

settings = get_settings()
engine = PricingEngine(settings)
tax_catalog = TaxCatalog.load(settings.tax_catalog_path)
