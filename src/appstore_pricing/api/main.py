import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..catalog import CountryNotFoundInTier, MissingTierError
from ..config.settings import get_settings
from ..data.build_matrix import DATASET_SOURCE
from .state import catalog
from .tiers_api import router as tiers_router

logger = logging.getLogger("appstore_pricing.api")

app = FastAPI(
    title="App Store Pricing API",
    description=(
        "Read-only lookup of App Store pricing tiers by country. Prices are "
        "derived from a USD ladder with approximate exchange factors and VAT "
        "rates; they are not an authoritative copy of the published matrix."
    ),
    version="1.0.0"
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["*"],
)

# Include tier browsing API
app.include_router(tiers_router)


class PricingRecordResponse(BaseModel):
    """A tier merged with one storefront's pricing; entry fields may be absent."""
    tierStem: str
    tierName: str
    countryCode: Optional[str] = None
    currencyCode: Optional[str] = None
    currencySymbol: Optional[str] = None
    retailPrice: Optional[float] = None
    wholesalePrice: Optional[float] = None
    fRetailPrice: Optional[str] = None
    fWholesalePrice: Optional[str] = None


@app.get("/")
async def root():
    return {"status": "online", "message": "App Store Pricing API Active"}


@app.get("/stems")
async def get_stems():
    return list(catalog.stems())


@app.get("/countries")
async def get_countries():
    return list(catalog.countries())


@app.get("/currencies")
async def get_currencies():
    return list(catalog.currencies())


@app.get("/pricing", response_model=PricingRecordResponse, response_model_exclude_none=True)
async def find_pricing(country: str, tier: str, strict: Optional[bool] = None):
    try:
        record = catalog.find_by(country=country, tier=tier, strict=strict)
    except (MissingTierError, CountryNotFoundInTier) as e:
        logger.info(f"Pricing lookup failed: {e}")
        raise HTTPException(status_code=404, detail=str(e))
    return PricingRecordResponse(**record.to_dict())


@app.get("/catalog", response_model=list[PricingRecordResponse])
async def get_catalog_records(
    country: Optional[str] = None,
    currency: Optional[str] = None,
    tier: Optional[str] = None,
):
    df = catalog.to_frame(country=country, currency=currency, tier=tier)
    return [
        PricingRecordResponse(
            tierStem=row.tier_stem,
            tierName=row.tier_name,
            countryCode=row.country_code,
            currencyCode=row.currency_code,
            currencySymbol=row.currency_symbol,
            retailPrice=row.retail_price,
            wholesalePrice=row.wholesale_price,
            fRetailPrice=row.formatted_retail_price,
            fWholesalePrice=row.formatted_wholesale_price,
        )
        for row in df.itertuples(index=False)
    ]


@app.get("/system/status")
async def get_status():
    settings = get_settings()
    return {
        "catalog_loaded": len(catalog.tiers()) > 0,
        "tiers": len(catalog.tiers()),
        "entries": len(catalog),
        "countries": len(catalog.countries()),
        "currencies": len(catalog.currencies()),
        "strict_country_lookup": catalog.strict,
        "pricing_matrix": str(settings.pricing_matrix),
        "dataset_source": DATASET_SOURCE,
    }
