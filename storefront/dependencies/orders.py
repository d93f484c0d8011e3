from fastapi import Request

from storefront.services.order_service import OrderAssembler
from storefront.utils.cache_helpers import ResponseCache


def get_order_assembler(request: Request) -> OrderAssembler:
    return request.app.state.order_assembler


def get_cache(request: Request) -> ResponseCache:
    return request.app.state.cache
