from fastapi import APIRouter

from bookbazaar_api.routers.v1 import (
    auth,
    listings,
    me,
    nav,
    notifications,
    orders,
)

v1_router = APIRouter(prefix="/v1")

v1_router.include_router(auth.router)
v1_router.include_router(listings.router)
v1_router.include_router(orders.router)
v1_router.include_router(notifications.router)
v1_router.include_router(me.router)
v1_router.include_router(nav.router)
