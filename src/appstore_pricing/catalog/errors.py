"""
Catalog errors.

Every error is local to a single query; the catalog itself is never left in
a different state after one of these is raised.
"""


class PricingCatalogError(Exception):
    """Base class for pricing catalog failures."""


class MissingTierError(PricingCatalogError, KeyError):
    """No tier in the dataset has the requested stem."""

    def __init__(self, tier: str):
        self.tier = tier
        super().__init__(f"No pricing tier with stem {tier!r}")

    def __str__(self) -> str:
        return self.args[0]


class CountryNotFoundInTier(PricingCatalogError, KeyError):
    """The tier exists but has no pricing entry for the country."""

    def __init__(self, country: str, tier: str):
        self.country = country
        self.tier = tier
        super().__init__(f"Tier {tier!r} has no pricing for country {country!r}")

    def __str__(self) -> str:
        return self.args[0]


class MalformedDatasetError(PricingCatalogError, ValueError):
    """The embedded dataset does not have the expected structure."""
