"""
Pricing Catalog - read-only lookup over the App Store pricing matrix.

The dataset is parsed once into immutable Tier records. The derived views
(stems, countries, currencies) are computed at construction and shared by
every caller, so the catalog can be read from any number of threads.
"""
import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Union

import pandas as pd

from ..config.settings import get_settings, Settings
from .errors import CountryNotFoundInTier, MalformedDatasetError, MissingTierError
from .models import ENTRY_FIELDS, FlattenedRecord, Tier

logger = logging.getLogger("appstore_pricing.catalog")

FRAME_COLUMNS = ['tier_stem', 'tier_name'] + [attr for attr, _ in ENTRY_FIELDS]


def _unique_in_order(values: Iterable[str]) -> tuple[str, ...]:
    """Drop repeats, keeping the first occurrence of each value."""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return tuple(result)


def parse_dataset(payload) -> tuple[Tier, ...]:
    """
    Parse the ``{"data": {"pricingTiers": [...]}}`` document into tiers.

    Raises:
        MalformedDatasetError: if the document does not have that shape
    """
    if not isinstance(payload, dict):
        raise MalformedDatasetError("Dataset root must be an object")

    data = payload.get('data')
    if not isinstance(data, dict):
        raise MalformedDatasetError("Dataset has no 'data' object")

    pricing_tiers = data.get('pricingTiers')
    if pricing_tiers is None:
        raise MalformedDatasetError("Dataset has no 'data.pricingTiers' list")
    if not isinstance(pricing_tiers, list):
        raise MalformedDatasetError(
            f"'data.pricingTiers' must be a list, got {type(pricing_tiers).__name__}"
        )

    return tuple(Tier.from_dict(tier) for tier in pricing_tiers)


class PricingCatalog:
    """
    Immutable catalog of pricing tiers.

    Query operations:
    - tiers(): every tier, in dataset order
    - stems(): tier stems, in dataset order
    - countries() / currencies(): distinct codes in first-occurrence order
    - find_by(country, tier): one tier/country pair as a FlattenedRecord
    """

    def __init__(self, tiers: Iterable[Tier] = (), strict: bool = False):
        self._tiers = tuple(tiers)
        self.strict = strict

        # First tier wins when a stem repeats
        self._by_stem: dict[str, Tier] = {}
        for tier in self._tiers:
            self._by_stem.setdefault(tier.tier_stem, tier)

        entries = [entry for tier in self._tiers for entry in tier.pricing_info]
        self._stems = tuple(tier.tier_stem for tier in self._tiers)
        self._countries = _unique_in_order(entry.country_code for entry in entries)
        self._currencies = _unique_in_order(entry.currency_code for entry in entries)
        self._entry_count = len(entries)

    @classmethod
    def from_dict(cls, payload, strict: bool = False) -> 'PricingCatalog':
        """Build a catalog from a parsed dataset; malformed input yields an empty catalog."""
        try:
            tiers = parse_dataset(payload)
        except MalformedDatasetError as e:
            logger.warning(f"Malformed pricing dataset, serving an empty catalog: {e}")
            return cls((), strict=strict)
        return cls(tiers, strict=strict)

    @classmethod
    def from_file(cls, path: Union[str, Path], strict: bool = False) -> 'PricingCatalog':
        """Load the catalog from a JSON dataset file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Pricing matrix not found at {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                payload = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Could not decode {path}, serving an empty catalog: {e}")
            return cls((), strict=strict)

        catalog = cls.from_dict(payload, strict=strict)
        logger.info(
            f"Loaded {len(catalog.tiers())} pricing tiers "
            f"({len(catalog)} entries) from {path}"
        )
        return catalog

    def __len__(self) -> int:
        return self._entry_count

    def __repr__(self) -> str:
        return f"PricingCatalog(tiers={len(self._tiers)}, entries={self._entry_count})"

    def tiers(self) -> tuple[Tier, ...]:
        return self._tiers

    def stems(self) -> tuple[str, ...]:
        return self._stems

    def countries(self) -> tuple[str, ...]:
        return self._countries

    def currencies(self) -> tuple[str, ...]:
        return self._currencies

    def has_tier(self, stem: str) -> bool:
        return stem in self._by_stem

    def get_tier(self, stem: str) -> Tier:
        """
        Get the tier with the given stem.

        Raises:
            MissingTierError: if no tier has that stem
        """
        try:
            return self._by_stem[stem]
        except KeyError:
            raise MissingTierError(stem) from None

    def find_by(self, country: str, tier: str, strict: Optional[bool] = None) -> FlattenedRecord:
        """
        Find pricing information by country code and tier stem.

        Args:
            country: Country code, e.g. "TW", "US", "MY"
            tier: Tier stem, e.g. "1", "590"
            strict: Raise when the tier has no entry for the country.
                Defaults to the catalog's ``strict`` flag.

        Returns:
            FlattenedRecord of the tier and its entry for the country. If the
            tier has no such entry (and not strict) the record only carries
            the tier stem and name.

        Raises:
            MissingTierError: if no tier has the stem
            CountryNotFoundInTier: in strict mode, if the country is not priced
        """
        if strict is None:
            strict = self.strict

        matched_tier = self.get_tier(tier)
        entry = matched_tier.find_entry(country)

        if entry is None:
            if strict:
                raise CountryNotFoundInTier(country, tier)
            logger.debug(f"Tier {tier} has no pricing for {country}, returning partial record")

        return FlattenedRecord.merge(matched_tier, entry)

    def records(self) -> list[FlattenedRecord]:
        """Every tier/country pair as a FlattenedRecord, in dataset order."""
        return [
            FlattenedRecord.merge(tier, entry)
            for tier in self._tiers
            for entry in tier.pricing_info
        ]

    def to_frame(
        self,
        country: Optional[str] = None,
        currency: Optional[str] = None,
        tier: Optional[str] = None,
    ) -> pd.DataFrame:
        """
        Flattened records as a DataFrame, optionally filtered.

        Columns are the FlattenedRecord attribute names; rows keep dataset order.
        """
        rows = [
            [getattr(record, column) for column in FRAME_COLUMNS]
            for record in self.records()
        ]
        df = pd.DataFrame(rows, columns=FRAME_COLUMNS)

        if country:
            df = df[df['country_code'] == country]
        if currency:
            df = df[df['currency_code'] == currency]
        if tier:
            df = df[df['tier_stem'] == tier]

        return df.reset_index(drop=True)

    def storefronts(self) -> pd.DataFrame:
        """One row per country across all tiers: country, currency and symbol."""
        df = self.to_frame()[['country_code', 'currency_code', 'currency_symbol']]
        return df.drop_duplicates('country_code').reset_index(drop=True)


# Shared catalog instance
_catalog: Optional[PricingCatalog] = None


def load_catalog(settings: Optional[Settings] = None) -> PricingCatalog:
    """Build a new catalog from the configured dataset file."""
    settings = settings or get_settings()
    return PricingCatalog.from_file(
        settings.pricing_matrix,
        strict=settings.strict_country_lookup,
    )


def get_catalog() -> PricingCatalog:
    """Get the shared catalog, loading the embedded dataset on first use."""
    global _catalog
    if _catalog is None:
        _catalog = load_catalog()
    return _catalog
