from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.database import get_session
from storefront.dependencies.orders import get_cache
from storefront.schemas.tax_schemas import TaxRateRead
from storefront.services.tax_service import lookup_tax_rate
from storefront.utils.cache_helpers import ResponseCache, tax_key

router = APIRouter()


@router.get("/lookup")
def tax_rate_for_location(
    country: Optional[str] = None,
    region: Optional[str] = None,
    city: Optional[str] = None,
    session: Session = Depends(get_session),
    cache: ResponseCache = Depends(get_cache),
):
    key = tax_key(country, region, city)
    cached = cache.get(key)
    if cached is not None:
        return cached

    match = lookup_tax_rate(session, country, region, city)
    if match is None:
        # a miss may be a store outage, so it is never cached
        return {"tax_rate": TaxRateRead(country=country or "", rate=0).model_dump()}

    response = {"tax_rate": TaxRateRead.model_validate(match).model_dump()}
    cache.set(key, response)
    return response
