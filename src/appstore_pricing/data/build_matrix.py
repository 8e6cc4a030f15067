"""
Matrix Builder - Generates the embedded pricing matrix from the price ladder
and storefront tables.

Every price is computed in integer minor units (cents, yen, ...):
- retail: the USD ladder price converted with the storefront's factor,
  rounded up to the storefront's step and lowered by its price ending
- wholesale: 70% of the VAT-exclusive retail price, rounded up
- display strings: prefix + grouped amount + suffix

Exchange factors and VAT rates in the storefront table are approximations.
A handful of storefronts reproduce published prices exactly; the rest are
derived and should not be read as an authoritative copy of Apple's matrix.
"""
import hashlib
import json
import logging
import math
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pandas as pd

from ..config.settings import get_settings, Settings

logger = logging.getLogger("appstore_pricing.data.build_matrix")

# Developer proceeds, in basis points of the VAT-exclusive price
PROCEEDS_BASIS_POINTS = 7000

STOREFRONT_COLUMNS = [
    'country_code', 'currency_code', 'currency_symbol', 'prefix', 'suffix',
    'decimal_sep', 'group_sep', 'decimals', 'vat_basis_points',
    'price_factor', 'rounding_step', 'price_ending',
]
LADDER_COLUMNS = ['tier_stem', 'tier_name', 'usd_retail']

# The matrix is computed from the ladder and storefront tables, not copied
# from a published price list
DATASET_SOURCE = "derived"


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def read_table(path: Path, columns: list[str]) -> pd.DataFrame:
    """Read an input CSV as strings, keeping empty cells as ''."""
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"{path.name} is missing columns: {', '.join(missing)}")
    return df[columns]


def local_retail_minor(usd_retail: Decimal, factor: Decimal, decimals: int, step: int, ending: int) -> int:
    """Storefront retail price in minor units for a USD ladder price."""
    if usd_retail == 0:
        return 0
    raw = usd_retail * factor * (10 ** decimals)
    return math.ceil(raw / step) * step - ending


def wholesale_minor(retail_minor: int, vat_basis_points: int) -> int:
    """Developer proceeds in minor units, rounded up."""
    return -(-retail_minor * PROCEEDS_BASIS_POINTS // (10000 + vat_basis_points))


def format_amount(minor: int, decimals: int, decimal_sep: str, group_sep: str) -> str:
    """Render minor units with thousands grouping, e.g. 123456 -> '1,234.56'."""
    scale = 10 ** decimals
    whole, fraction = divmod(minor, scale)
    text = f"{whole:,}".replace(',', group_sep)
    if decimals:
        text += decimal_sep + str(fraction).zfill(decimals)
    return text


def to_number(minor: int, decimals: int):
    """JSON number for minor units: int for zero-decimal currencies, else float."""
    if decimals == 0:
        return minor
    return float(Decimal(minor).scaleb(-decimals))


def build_entry(usd_retail: Decimal, storefront: dict) -> dict:
    """One ``pricingInfo`` entry for a ladder price in a storefront."""
    decimals = int(storefront['decimals'])
    retail = local_retail_minor(
        usd_retail,
        Decimal(storefront['price_factor']),
        decimals,
        int(storefront['rounding_step']),
        int(storefront['price_ending']),
    )
    wholesale = wholesale_minor(retail, int(storefront['vat_basis_points']))

    def display(minor: int) -> str:
        amount = format_amount(minor, decimals, storefront['decimal_sep'], storefront['group_sep'])
        return f"{storefront['prefix']}{amount}{storefront['suffix']}"

    return {
        "countryCode": storefront['country_code'],
        "currencyCode": storefront['currency_code'],
        "currencySymbol": storefront['currency_symbol'],
        "retailPrice": to_number(retail, decimals),
        "wholesalePrice": to_number(wholesale, decimals),
        "fRetailPrice": display(retail),
        "fWholesalePrice": display(wholesale),
    }


def build_tiers(ladder: pd.DataFrame, storefronts: pd.DataFrame) -> list[dict]:
    """Cross the ladder with the storefronts, both in file order."""
    storefront_rows = storefronts.to_dict(orient='records')
    tiers = []
    for row in ladder.itertuples(index=False):
        usd_retail = Decimal(row.usd_retail)
        tiers.append({
            "tierStem": row.tier_stem,
            "tierName": row.tier_name,
            "pricingInfo": [build_entry(usd_retail, sf) for sf in storefront_rows],
        })
    return tiers


def build_pricing_matrix(settings: Optional[Settings] = None, verbose: bool = True) -> dict:
    """
    Build the pricing matrix from the ladder and storefront tables.

    Args:
        settings: Optional settings override
        verbose: Print progress messages

    Returns:
        Build report dictionary
    """
    settings = settings or get_settings()

    report = {
        "timestamp": datetime.now().isoformat(),
        "source": DATASET_SOURCE,
        "status": "pending",
        "input_files": {},
        "metrics": {},
        "warnings": [],
        "errors": []
    }

    def fail(msg: str) -> dict:
        report["errors"].append(msg)
        report["status"] = "failed"
        logger.error(msg)
        if verbose:
            print(msg)
        return report

    inputs = {
        "price_ladder": settings.price_ladder_csv,
        "storefronts": settings.storefronts_csv,
    }
    for name, path in inputs.items():
        if not path.exists():
            return fail(f"CRITICAL ERROR: {path} not found.")
        report["input_files"][name] = {
            "path": str(path),
            "hash": get_file_hash(path)
        }

    try:
        ladder = read_table(settings.price_ladder_csv, LADDER_COLUMNS)
        storefronts = read_table(settings.storefronts_csv, STOREFRONT_COLUMNS)
    except ValueError as e:
        return fail(f"ERROR: Failed to read inputs. {e}")

    # Stems and storefronts are lookup keys; a duplicate would shadow a row
    duplicate_stems = ladder['tier_stem'][ladder['tier_stem'].duplicated()].tolist()
    if duplicate_stems:
        return fail(f"ERROR: Duplicate tier stems: {', '.join(duplicate_stems)}")
    duplicate_countries = storefronts['country_code'][storefronts['country_code'].duplicated()].tolist()
    if duplicate_countries:
        return fail(f"ERROR: Duplicate storefronts: {', '.join(duplicate_countries)}")

    try:
        tiers = build_tiers(ladder, storefronts)
    except (ValueError, ArithmeticError) as e:
        return fail(f"ERROR: Non-numeric value in price inputs. {e!r}")

    report["metrics"] = {
        "tier_count": len(tiers),
        "storefront_count": len(storefronts),
        "entry_count": sum(len(t["pricingInfo"]) for t in tiers),
        "currency_count": int(storefronts['currency_code'].nunique()),
    }
    if verbose:
        print(f"SUCCESS: Priced {report['metrics']['tier_count']} tiers "
              f"across {report['metrics']['storefront_count']} storefronts.")

    # Save pricing matrix
    output_path = settings.pricing_matrix
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump({"data": {"pricingTiers": tiers}}, f, indent=2, ensure_ascii=False)
        f.write('\n')
    report["output_file"] = str(output_path)
    report["status"] = "success"
    logger.info(f"Wrote {len(tiers)} tiers to {output_path}")

    if verbose:
        print(f"\nPROCESS COMPLETE: {output_path} generated.")

    # Save build report
    report_path = settings.build_report
    report_path.parent.mkdir(parents=True, exist_ok=True)
    with open(report_path, 'w') as f:
        json.dump(report, f, indent=2)

    if verbose:
        print(f"Build report saved to: {report_path}")

    return report


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    build_pricing_matrix()
