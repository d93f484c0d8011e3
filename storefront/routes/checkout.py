from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.orders import get_order_assembler
from storefront.models.order import Order
from storefront.models.user import User
from storefront.schemas.checkout_schemas import CheckoutRequest
from storefront.schemas.orders_schemas import OrderRead
from storefront.services.order_service import OrderAssembler, load_order
from storefront.utils.pagination import paginate
from storefront.utils.token import get_current_user

router = APIRouter()


# Place order from the cart

@router.post("", status_code=201)
def place_order(
    data: CheckoutRequest,
    assembler: OrderAssembler = Depends(get_order_assembler),
    current_user: User = Depends(get_current_user)
):
    order = assembler.checkout(current_user.id, data, coupon_code=data.coupon_code)

    return {
        "message": "Order created successfully",
        "order": OrderRead.model_validate(order),
    }


# My orders

@router.get("")
def list_my_orders(
    page: int = 1,
    limit: int = 10,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    query = (
        select(Order)
        .where(Order.user_id == current_user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )

    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serialize=lambda o: {
            "order_id": o.id,
            "date": o.created_at,
            "total": o.total,
            "status": o.status,
            "is_pos": o.is_pos,
        },
    )


@router.get("/{order_id}", response_model=OrderRead)
def get_my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    order = load_order(session, order_id)

    if not order or order.user_id != current_user.id:
        raise HTTPException(404, "Order not found")

    return order
