"""Catalog subpackage - pricing tier models and lookups."""
from .pricing_catalog import PricingCatalog, get_catalog, load_catalog
from .models import Tier, PricingEntry, FlattenedRecord
from .errors import (
    PricingCatalogError,
    MissingTierError,
    CountryNotFoundInTier,
    MalformedDatasetError,
)

__all__ = [
    'PricingCatalog', 'get_catalog', 'load_catalog',
    'Tier', 'PricingEntry', 'FlattenedRecord',
    'PricingCatalogError', 'MissingTierError', 'CountryNotFoundInTier', 'MalformedDatasetError',
]
