from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.dependencies.orders import get_cache
from storefront.models.coupon import Coupon
from storefront.models.order import Order
from storefront.models.user import User
from storefront.schemas.coupon_schemas import CouponCreate, CouponRead, CouponUpdate
from storefront.services.coupon_service import get_coupon_by_code
from storefront.utils.cache_helpers import ResponseCache, coupon_key
from storefront.utils.clock import utcnow
from storefront.utils.pagination import paginate

router = APIRouter()


@router.get("")
def list_coupons(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    query = select(Coupon).order_by(Coupon.created_at.desc(), Coupon.id.desc())
    return paginate(
        session=session, query=query, page=page, limit=limit, serialize=CouponRead.model_validate
    )


@router.post("", status_code=201)
def create_coupon(
    data: CouponCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    if data.valid_until < data.valid_from:
        raise HTTPException(400, "valid_until must not be before valid_from")

    if get_coupon_by_code(session, data.code):
        raise HTTPException(400, "Coupon code already exists")

    coupon = Coupon(**data.model_dump(mode="python"))
    coupon.type = data.type.value

    session.add(coupon)
    session.commit()
    session.refresh(coupon)

    return {"message": "Coupon created", "coupon": CouponRead.model_validate(coupon)}


@router.put("/{coupon_id}")
def update_coupon(
    coupon_id: int,
    data: CouponUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    cache: ResponseCache = Depends(get_cache),
):
    coupon = session.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(404, "Coupon not found")

    old_code = coupon.code
    changes = data.model_dump(exclude_unset=True)

    new_code = changes.get("code")
    if new_code and new_code != coupon.code and get_coupon_by_code(session, new_code):
        raise HTTPException(400, "Coupon code already exists")

    for field, value in changes.items():
        if value is None:
            continue
        if field == "type":
            value = value.value
        setattr(coupon, field, value)

    if coupon.valid_until < coupon.valid_from:
        raise HTTPException(400, "valid_until must not be before valid_from")

    coupon.updated_at = utcnow()
    session.add(coupon)
    session.commit()
    session.refresh(coupon)
    cache.invalidate(coupon_key(old_code), coupon_key(coupon.code))

    return {"message": "Coupon updated", "coupon": CouponRead.model_validate(coupon)}


@router.delete("/{coupon_id}")
def delete_coupon(
    coupon_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    cache: ResponseCache = Depends(get_cache),
):
    coupon = session.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(404, "Coupon not found")

    used_by = session.exec(
        select(Order.id).where(Order.coupon_id == coupon.id).limit(1)
    ).first()
    if used_by is not None:
        raise HTTPException(400, "Coupon is used by existing orders; deactivate it instead")

    code = coupon.code
    session.delete(coupon)
    try:
        session.commit()
    except IntegrityError:
        # an order took the coupon after the check above
        session.rollback()
        raise HTTPException(400, "Coupon is used by existing orders; deactivate it instead")

    cache.invalidate(coupon_key(code))

    return {"message": "Coupon deleted"}
