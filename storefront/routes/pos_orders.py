from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import String, cast
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.dependencies.orders import get_order_assembler
from storefront.models.order import Order, OrderStatus
from storefront.models.user import User
from storefront.schemas.orders_schemas import OrderRead, PosOrderResponse
from storefront.schemas.pos_schemas import PosOrderRequest
from storefront.services.order_service import OrderAssembler, load_order
from storefront.services.payment_service import summarize_payments
from storefront.utils.pagination import paginate

router = APIRouter()


def _with_payment_summary(order: Order) -> dict:
    summary = summarize_payments(order.total, [p.amount for p in order.payments])
    return {
        "order": OrderRead.model_validate(order).model_dump(),
        **summary.model_dump(),
    }


@router.post("", status_code=201)
def create_pos_order(
    data: PosOrderRequest,
    assembler: OrderAssembler = Depends(get_order_assembler),
    admin: User = Depends(require_admin)
):
    order, summary = assembler.create_pos_order(data)

    return {
        "message": "POS order created successfully",
        **PosOrderResponse(
            order=OrderRead.model_validate(order),
            **summary.model_dump(),
        ).model_dump(),
    }


@router.get("")
def list_pos_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None),
    search: Optional[str] = Query(None),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    query = select(Order).where(Order.is_pos == True)  # noqa: E712

    if status:
        query = query.where(Order.status == status.value)

    # order id or customer id
    if search:
        s = f"%{search}%"
        query = query.where(
            cast(Order.id, String).ilike(s) |
            cast(Order.user_id, String).ilike(s)
        )

    query = query.order_by(Order.created_at.desc(), Order.id.desc())

    return paginate(
        session=session, query=query, page=page, limit=limit, serialize=_with_payment_summary
    )


@router.get("/{order_id}")
def get_pos_order(
    order_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    order = load_order(session, order_id)

    if not order or not order.is_pos:
        raise HTTPException(404, "POS order not found")

    return _with_payment_summary(order)
