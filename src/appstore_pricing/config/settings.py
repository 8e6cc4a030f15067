"""
Centralized settings and path configuration for the pricing catalog.
"""
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_package_root() -> Path:
    """Get the ``appstore_pricing`` package directory (where data/ lives)."""
    return Path(__file__).resolve().parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Package paths
    package_root: Path

    # Embedded dataset
    pricing_matrix: Path

    # Matrix build inputs
    storefronts_csv: Path
    price_ladder_csv: Path

    # Build output
    build_report: Path

    # Raise instead of returning a partial record when a tier lacks a country
    strict_country_lookup: bool = False

    @classmethod
    def load(cls, package_root: Optional[Path] = None, **overrides) -> 'Settings':
        """Load settings from the package structure."""
        root = package_root or get_package_root()
        data_dir = root / 'data'

        settings = cls(
            package_root=root,
            pricing_matrix=data_dir / 'pricing_matrix.json',
            storefronts_csv=data_dir / 'inputs' / 'storefronts.csv',
            price_ladder_csv=data_dir / 'inputs' / 'price_ladder.csv',
            build_report=data_dir / 'outputs' / 'build_report.json',
        )
        for name, value in overrides.items():
            if not hasattr(settings, name):
                raise TypeError(f"Unknown setting: {name}")
            setattr(settings, name, value)
        return settings


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
