"""Shared catalog used by every API router."""
from ..catalog import get_catalog

catalog = get_catalog()
