"""
Tiers API - FastAPI router for browsing pricing tiers.
"""
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..catalog import MissingTierError
from .state import catalog

router = APIRouter(prefix="/tiers", tags=["tiers"])


# Pydantic models for API
class PricingEntryResponse(BaseModel):
    """Response model for one storefront's pricing in a tier."""
    countryCode: str
    currencyCode: str
    currencySymbol: str
    retailPrice: float
    wholesalePrice: float
    fRetailPrice: str
    fWholesalePrice: str


class TierSummary(BaseModel):
    """Response model for a tier without its pricing entries."""
    tierStem: str
    tierName: str
    storefronts: int


class TierResponse(BaseModel):
    """Response model for a tier."""
    tierStem: str
    tierName: str
    pricingInfo: list[PricingEntryResponse]


# Endpoints

@router.get("", response_model=list[TierSummary])
async def list_tiers():
    """List all tiers in dataset order."""
    return [
        TierSummary(tierStem=t.tier_stem, tierName=t.tier_name, storefronts=len(t.pricing_info))
        for t in catalog.tiers()
    ]


@router.get("/{stem}", response_model=TierResponse)
async def get_tier(stem: str):
    """Get a single tier with every storefront's pricing."""
    try:
        tier = catalog.get_tier(stem)
    except MissingTierError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return TierResponse(**tier.to_dict())
