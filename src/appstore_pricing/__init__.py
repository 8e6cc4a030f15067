"""
App Store Pricing Matrix

Read-only lookup of App Store pricing tiers: wholesale/retail prices,
currency metadata and display strings for every tier and storefront.

The embedded matrix is derived from a USD price ladder using approximate
exchange factors and VAT rates. Only the US, TW and MY storefronts are pinned
to published values; other storefronts' prices are approximations.
"""

__version__ = "1.0.0"
