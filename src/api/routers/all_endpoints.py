# File: api/routers/all_endpoints.py

from fastapi import APIRouter

from api.routers.admin import reconcile_counters
from api.routers.users import follow, profile
from api.routers.utility_routes import router as utility_router


# Main router
all_routers = APIRouter()

# Include routers
all_routers.include_router(profile.router)
all_routers.include_router(follow.router)
all_routers.include_router(reconcile_counters.router)
all_routers.include_router(utility_router)
