from storefront.models.user import User
from storefront.models.product import Product, ProductVariation, VariationOption
from storefront.models.cart import CartItem
from storefront.models.coupon import Coupon, CouponType
from storefront.models.tax_rate import TaxRate
from storefront.models.order import Order, OrderStatus
from storefront.models.order_item import OrderItem
from storefront.models.payment import Payment
from storefront.models.store_settings import StoreSettings

# add ALL models here
