"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from courier_backend.app.api.v1.endpoints import admin_parcels, rider_cashout, rider_deliveries

router = APIRouter()

# Dispatch
router.include_router(admin_parcels.router)

# Delivery flow
router.include_router(rider_deliveries.router)

# Earnings & cash-out
router.include_router(rider_cashout.router)
