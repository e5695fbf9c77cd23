"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from freight_dispatch.app.api.v1.endpoints import (
    loads, dispatch, availability, dispatch_board, draft_loads
)

router = APIRouter()

# Load lifecycle
router.include_router(loads.router)

# Assignment
router.include_router(dispatch.router)

# Conflicts and affinity lookups
router.include_router(availability.conflicts_router)
router.include_router(availability.drivers_router)
router.include_router(availability.vehicles_router)

# Board and draft intake
router.include_router(dispatch_board.router)
router.include_router(draft_loads.router)
