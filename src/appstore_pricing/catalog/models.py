"""
Data models for the pricing catalog.

Uses frozen dataclasses so records loaded from the dataset cannot be changed
by callers. Attributes are snake_case; ``from_dict``/``to_dict`` translate to
and from the camelCase keys of the dataset file.
"""
from dataclasses import dataclass, field
from typing import Optional

from .errors import MalformedDatasetError


# (attribute, dataset key) pairs for the fields of a pricing entry
ENTRY_FIELDS = (
    ('country_code', 'countryCode'),
    ('currency_code', 'currencyCode'),
    ('currency_symbol', 'currencySymbol'),
    ('retail_price', 'retailPrice'),
    ('wholesale_price', 'wholesalePrice'),
    ('formatted_retail_price', 'fRetailPrice'),
    ('formatted_wholesale_price', 'fWholesalePrice'),
)


def _require_str(payload: dict, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise MalformedDatasetError(f"Expected string for {key!r}, got {value!r}")
    return value


def _require_number(payload: dict, key: str) -> float:
    value = payload.get(key)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedDatasetError(f"Expected number for {key!r}, got {value!r}")
    return float(value)


@dataclass(frozen=True)
class PricingEntry:
    """Retail/wholesale price and currency metadata for one country in one tier."""
    country_code: str
    currency_code: str
    currency_symbol: str
    retail_price: float
    wholesale_price: float
    formatted_retail_price: str
    formatted_wholesale_price: str

    @classmethod
    def from_dict(cls, payload: dict) -> 'PricingEntry':
        """Parse an entry of a tier's ``pricingInfo`` list."""
        if not isinstance(payload, dict):
            raise MalformedDatasetError(f"Pricing entry must be an object, got {type(payload).__name__}")
        return cls(
            country_code=_require_str(payload, 'countryCode'),
            currency_code=_require_str(payload, 'currencyCode'),
            currency_symbol=_require_str(payload, 'currencySymbol'),
            retail_price=_require_number(payload, 'retailPrice'),
            wholesale_price=_require_number(payload, 'wholesalePrice'),
            formatted_retail_price=_require_str(payload, 'fRetailPrice'),
            formatted_wholesale_price=_require_str(payload, 'fWholesalePrice'),
        )

    def to_dict(self) -> dict:
        return {key: getattr(self, attr) for attr, key in ENTRY_FIELDS}


@dataclass(frozen=True)
class Tier:
    """A pricing tier and its per-country entries, in dataset order."""
    tier_stem: str
    tier_name: str
    pricing_info: tuple[PricingEntry, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, payload: dict) -> 'Tier':
        """Parse one element of ``data.pricingTiers``."""
        if not isinstance(payload, dict):
            raise MalformedDatasetError(f"Tier must be an object, got {type(payload).__name__}")

        stem = _require_str(payload, 'tierStem')
        pricing_info = payload.get('pricingInfo')
        if not isinstance(pricing_info, list) or not pricing_info:
            raise MalformedDatasetError(f"Tier {stem!r} has no pricingInfo list")

        return cls(
            tier_stem=stem,
            tier_name=_require_str(payload, 'tierName'),
            pricing_info=tuple(PricingEntry.from_dict(entry) for entry in pricing_info),
        )

    def find_entry(self, country: str) -> Optional[PricingEntry]:
        """First entry whose country code equals ``country``, else None."""
        for entry in self.pricing_info:
            if entry.country_code == country:
                return entry
        return None

    def to_dict(self) -> dict:
        return {
            'tierStem': self.tier_stem,
            'tierName': self.tier_name,
            'pricingInfo': [entry.to_dict() for entry in self.pricing_info],
        }


@dataclass(frozen=True)
class FlattenedRecord:
    """
    A tier's identity merged with one of its pricing entries.

    When the tier has no entry for the requested country, only ``tier_stem``
    and ``tier_name`` are set and ``matched`` is False.
    """
    tier_stem: str
    tier_name: str
    country_code: Optional[str] = None
    currency_code: Optional[str] = None
    currency_symbol: Optional[str] = None
    retail_price: Optional[float] = None
    wholesale_price: Optional[float] = None
    formatted_retail_price: Optional[str] = None
    formatted_wholesale_price: Optional[str] = None

    @classmethod
    def merge(cls, tier: Tier, entry: Optional[PricingEntry]) -> 'FlattenedRecord':
        if entry is None:
            return cls(tier_stem=tier.tier_stem, tier_name=tier.tier_name)
        return cls(
            tier_stem=tier.tier_stem,
            tier_name=tier.tier_name,
            **{attr: getattr(entry, attr) for attr, _ in ENTRY_FIELDS},
        )

    @property
    def matched(self) -> bool:
        """True when the record carries a pricing entry."""
        return self.country_code is not None

    def to_dict(self) -> dict:
        """Dataset-shaped dict; absent entry fields are left out."""
        result = {'tierStem': self.tier_stem, 'tierName': self.tier_name}
        for attr, key in ENTRY_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
        return result
