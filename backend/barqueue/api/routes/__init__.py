"""API routes."""

from fastapi import APIRouter

from barqueue.api.routes import commands, drinks, orders, profiles

api_router = APIRouter()

# Command endpoints keep their flat paths: /notify, /remind, /upload-avatar
api_router.include_router(commands.router, tags=["commands"])

api_router.include_router(profiles.router, tags=["profiles"])
api_router.include_router(drinks.router, prefix="/drinks", tags=["drinks"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
