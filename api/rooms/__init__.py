"""Endpoints for the rooms of a space: shops, lend items, requests and hangouts."""
from api.models import HangoutPayload, LendItemPayload, RequestPayload, ShopPayload
from api.resources import build_router

shops_router = build_router('shops', ShopPayload, "Shops")
lend_items_router = build_router('lend-items', LendItemPayload, "Lend Items")
requests_router = build_router('requests', RequestPayload, "Requests")
hangouts_router = build_router('hangouts', HangoutPayload, "Hangouts")

routers = [shops_router, lend_items_router, requests_router, hangouts_router]
