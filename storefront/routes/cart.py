from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.orders import get_cache
from storefront.models.cart import CartItem
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.cart_schemas import CartAddRequest, CartUpdateRequest
from storefront.services.order_service import variation_price_modifier
from storefront.utils.cache_helpers import ResponseCache, cart_key
from storefront.utils.clock import utcnow
from storefront.utils.token import get_current_user


router = APIRouter()

# Add to Cart

@router.post("/add", status_code=201)
def add_to_cart(
    data: CartAddRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    cache: ResponseCache = Depends(get_cache),
):
    product = session.get(Product, data.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    if product.stock < data.quantity:
        raise HTTPException(400, "Insufficient stock")

    variations = data.variations or None

    # one row per (user, product, variation set)
    existing_item = next(
        (
            item for item in session.exec(
                select(CartItem).where(
                    CartItem.user_id == current_user.id,
                    CartItem.product_id == data.product_id
                )
            ).all()
            if (item.variations or None) == variations
        ),
        None,
    )

    if existing_item:
        new_quantity = existing_item.quantity + data.quantity
        if new_quantity > product.stock:
            raise HTTPException(400, "Insufficient stock")

        existing_item.quantity = new_quantity
        existing_item.updated_at = utcnow()
        session.add(existing_item)
        session.commit()
        session.refresh(existing_item)
        cache.invalidate(cart_key(current_user.id))
        return {"message": "Cart updated", "item": existing_item}

    new_item = CartItem(
        user_id=current_user.id,
        product_id=product.id,
        quantity=data.quantity,
        variations=variations,
    )

    session.add(new_item)
    session.commit()
    session.refresh(new_item)
    cache.invalidate(cart_key(current_user.id))

    return {"message": "Added to cart", "item": new_item}


# View Cart

@router.get("/")
def get_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    cart_items = session.exec(
        select(CartItem, Product)
        .join(Product, CartItem.product_id == Product.id)
        .where(CartItem.user_id == current_user.id)
        .order_by(CartItem.id)
    ).all()

    items_response = []
    subtotal = 0

    for cart_item, product in cart_items:
        unit_price = product.price + variation_price_modifier(
            session, product.id, cart_item.variations
        )
        subtotal += unit_price * cart_item.quantity

        items_response.append({
            "item_id": cart_item.id,
            "product_id": product.id,
            "product_name": product.name,
            "variations": cart_item.variations or {},
            "unit_price": unit_price,
            "quantity": cart_item.quantity,
            "stock": product.stock,
            "total": unit_price * cart_item.quantity
        })

    return {
        "items": items_response,
        "subtotal": round(subtotal, 2),
    }

# Update Cart
@router.put("/update/{item_id}")
def update_cart_item(
    item_id: int,
    data: CartUpdateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    cache: ResponseCache = Depends(get_cache),
):
    item = session.get(CartItem, item_id)

    if not item or item.user_id != current_user.id:
        raise HTTPException(404, "Cart item not found")

    if data.quantity <= 0:
        session.delete(item)
        session.commit()
        cache.invalidate(cart_key(current_user.id))
        return {"message": "Item removed"}

    product = session.get(Product, item.product_id)
    if product and product.stock < data.quantity:
        raise HTTPException(400, "Insufficient stock")

    item.quantity = data.quantity
    item.updated_at = utcnow()
    session.add(item)
    session.commit()
    session.refresh(item)
    cache.invalidate(cart_key(current_user.id))

    return {"message": "Quantity updated", "item": item}

# Remove Cart

@router.delete("/remove/{item_id}")
def remove_item(
    item_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    cache: ResponseCache = Depends(get_cache),
):
    item = session.get(CartItem, item_id)

    if not item or item.user_id != current_user.id:
        raise HTTPException(404, "Item not found")

    session.delete(item)
    session.commit()
    cache.invalidate(cart_key(current_user.id))

    return {"message": "Item removed from cart"}

# Clear Cart
def clear_cart(session: Session, user_id: int):
    items = session.exec(
        select(CartItem).where(CartItem.user_id == user_id)
    ).all()

    for item in items:
        session.delete(item)

    session.commit()


@router.delete("/clear")
def clear_cart_endpoint(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    cache: ResponseCache = Depends(get_cache),
):
    clear_cart(session, current_user.id)
    cache.invalidate(cart_key(current_user.id))
    return {"message": "Cart cleared"}
