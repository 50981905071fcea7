"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter

from follow.app.api.v1.endpoints import frontend_config, reports

router = APIRouter()

# Device reports
router.include_router(reports.router)

# Browser configuration
router.include_router(frontend_config.router)
