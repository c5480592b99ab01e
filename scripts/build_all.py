#!/usr/bin/env python
"""
Check pipeline - validates the tax catalog and runs the test suite.

Usage:
    python scripts/build_all.py
"""
import sys
from pathlib import Path

import pandas as pd

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from gst_pricing.config.settings import get_settings
from gst_pricing.engine.tax_catalog import TaxCatalog, validate_catalog_frame


def main():
    print("=" * 60)
    print("GST PRICING CHECK PIPELINE")
    print("=" * 60)
    print()

    settings = get_settings()

    # Validate tax catalog
    print(f"[1/2] Validating tax catalog {settings.tax_catalog_path}...")
    if not settings.tax_catalog_path.exists():
        print("\n❌ CHECK FAILED: tax catalog not found")
        sys.exit(1)

    df = pd.read_csv(settings.tax_catalog_path, dtype=str).fillna('')
    errors = validate_catalog_frame(df)
    if errors:
        print("\n❌ CHECK FAILED")
        for error in errors:
            print(f"  ERROR: {error}")
        sys.exit(1)

    catalog = TaxCatalog.load(settings.tax_catalog_path)

    print()
    print("[2/2] Running tests...")

    # Run tests
    import subprocess
    test_result = subprocess.run(
        [sys.executable, '-m', 'pytest', 'tests', '-v', '--tb=short'],
        cwd=Path(__file__).parent.parent
    )

    if test_result.returncode != 0:
        print("\n❌ TESTS FAILED")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ CHECK COMPLETE")
    print("=" * 60)
    print()
    print("Tax Options:")
    for option in catalog.options():
        rate = "-" if option.rate is None else f"{option.rate:g}%"
        print(f"  {option.label}: {rate} ({option.regime})")


if __name__ == "__main__":
    main()
