#!/usr/bin/env python
"""
Build pipeline - regenerates the pricing matrix and runs the golden tests.

Usage:
    python scripts/build_all.py
"""
import logging
import subprocess
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from appstore_pricing.data.build_matrix import build_pricing_matrix


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("APP STORE PRICING BUILD PIPELINE")
    print("=" * 60)
    print()

    # Build matrix
    print("[1/2] Building pricing matrix...")
    report = build_pricing_matrix(verbose=True)

    if report["status"] != "success":
        print("\n❌ BUILD FAILED")
        for error in report["errors"]:
            print(f"  ERROR: {error}")
        sys.exit(1)

    print()
    print("[2/2] Running golden tests...")

    # Run tests
    test_result = subprocess.run(
        [sys.executable, '-m', 'pytest', 'tests/test_golden_cases.py', '-v', '--tb=short'],
        cwd=Path(__file__).parent.parent
    )

    if test_result.returncode != 0:
        print("\n❌ TESTS FAILED")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ BUILD COMPLETE")
    print("=" * 60)
    print()
    print("Summary:")
    print(f"  Tiers: {report['metrics']['tier_count']}")
    print(f"  Storefronts: {report['metrics']['storefront_count']}")
    print(f"  Currencies: {report['metrics']['currency_count']}")
    print(f"  Entries: {report['metrics']['entry_count']}")
    for warning in report["warnings"]:
        print(f"  WARNING: {warning}")


if __name__ == "__main__":
    main()
