from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.dependencies.orders import get_cache
from storefront.models.tax_rate import TaxRate
from storefront.models.user import User
from storefront.schemas.tax_schemas import TaxRateCreate, TaxRateRead
from storefront.services.tax_service import save_tax_rate
from storefront.utils.cache_helpers import ResponseCache

router = APIRouter()


@router.get("")
def list_tax_rates(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    tax_rates = session.exec(
        select(TaxRate).order_by(
            TaxRate.is_default.desc(), TaxRate.country, TaxRate.region, TaxRate.id
        )
    ).all()

    return {"tax_rates": [TaxRateRead.model_validate(t) for t in tax_rates]}


@router.get("/{tax_rate_id}")
def get_tax_rate(
    tax_rate_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    tax_rate = session.get(TaxRate, tax_rate_id)
    if not tax_rate:
        raise HTTPException(404, "Tax rate not found")

    return {"tax_rate": TaxRateRead.model_validate(tax_rate)}


@router.post("", status_code=201)
def create_tax_rate(
    data: TaxRateCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    cache: ResponseCache = Depends(get_cache),
):
    tax_rate = save_tax_rate(session, TaxRate(**data.model_dump()))
    session.commit()
    session.refresh(tax_rate)
    cache.invalidate_prefix("tax:")

    return {"message": "Tax rate created", "tax_rate": TaxRateRead.model_validate(tax_rate)}


@router.put("/{tax_rate_id}")
def update_tax_rate(
    tax_rate_id: int,
    data: TaxRateCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    cache: ResponseCache = Depends(get_cache),
):
    tax_rate = session.get(TaxRate, tax_rate_id)
    if not tax_rate:
        raise HTTPException(404, "Tax rate not found")

    tax_rate.country = data.country
    tax_rate.region = data.region
    tax_rate.city = data.city
    tax_rate.rate = data.rate
    tax_rate.is_default = data.is_default

    save_tax_rate(session, tax_rate)
    session.commit()
    session.refresh(tax_rate)
    cache.invalidate_prefix("tax:")

    return {"message": "Tax rate updated", "tax_rate": TaxRateRead.model_validate(tax_rate)}


@router.delete("/{tax_rate_id}")
def delete_tax_rate(
    tax_rate_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    cache: ResponseCache = Depends(get_cache),
):
    tax_rate = session.get(TaxRate, tax_rate_id)
    if not tax_rate:
        raise HTTPException(404, "Tax rate not found")

    session.delete(tax_rate)
    session.commit()
    cache.invalidate_prefix("tax:")

    return {"message": "Tax rate deleted"}
