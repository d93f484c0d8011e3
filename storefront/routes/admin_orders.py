# -------- ADMIN ORDERS --------
from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.dependencies.orders import get_cache
from storefront.models.user import User
from storefront.schemas.orders_schemas import OrderStatusUpdate
from storefront.services.order_service import transition_status
from storefront.utils.cache_helpers import ResponseCache, orders_key

router = APIRouter()


@router.put("/{order_id}/status")
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
    cache: ResponseCache = Depends(get_cache),
):
    order = transition_status(session, order_id, data.status)
    session.commit()
    session.refresh(order)

    cache.invalidate(orders_key(order.user_id), orders_key())

    return {
        "message": "Order status updated",
        "order_id": order.id,
        "status": order.status,
    }
