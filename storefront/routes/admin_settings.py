from fastapi import APIRouter, Depends
from sqlmodel import Session

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.dependencies.orders import get_order_assembler
from storefront.models.store_settings import StoreSettings
from storefront.models.user import User
from storefront.schemas.settings_schemas import StoreSettingsUpdate
from storefront.services.order_service import OrderAssembler
from storefront.utils.clock import utcnow


router = APIRouter()


@router.get("/store")
def get_store_settings(
    session: Session = Depends(get_session),
    assembler: OrderAssembler = Depends(get_order_assembler),
    admin: User = Depends(require_admin)
):
    store = session.get(StoreSettings, 1)

    # no row yet: report what checkout charges, without saving it
    if not store:
        return {
            "shipping_cost": assembler.default_shipping_cost,
            "updated_at": None,
        }

    return {
        "shipping_cost": store.shipping_cost,
        "updated_at": store.updated_at,
    }


@router.put("/store")
def update_store_settings(
    data: StoreSettingsUpdate,
    session: Session = Depends(get_session),
    assembler: OrderAssembler = Depends(get_order_assembler),
    admin: User = Depends(require_admin)
):
    store = session.get(StoreSettings, 1)

    if not store:
        store = StoreSettings(id=1, shipping_cost=assembler.default_shipping_cost)
        session.add(store)

    store.shipping_cost = data.shipping_cost
    store.updated_at = utcnow()
    session.commit()
    session.refresh(store)

    return {
        "message": "Store settings updated successfully",
        "data": {
            "shipping_cost": store.shipping_cost,
            "updated_at": store.updated_at,
        }
    }
