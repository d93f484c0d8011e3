from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from storefront.database import get_session
from storefront.schemas.coupon_schemas import CouponRead, CouponValidationResponse
from storefront.services.coupon_service import validate_coupon

router = APIRouter()


@router.get("/validate", response_model=CouponValidationResponse)
def validate_coupon_code(
    code: str = Query(""),
    subtotal: Optional[float] = Query(None, ge=0),
    session: Session = Depends(get_session),
):
    # rejections surface as 400/404 through the error handlers
    coupon, discount = validate_coupon(session, code, subtotal)

    return CouponValidationResponse(
        valid=True,
        coupon=CouponRead.model_validate(coupon),
        discount=discount,
    )
