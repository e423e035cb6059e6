"""
Top‑level router.

Aggregates the resource routers under their path prefixes.  When a new
resource is added, include its router here.
"""

from fastapi import APIRouter

from .endpoints import health, subscriptions

router = APIRouter()

router.include_router(subscriptions.router, prefix="/subscriptions", tags=["subscriptions"])
router.include_router(health.router, tags=["health"])
