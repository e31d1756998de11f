"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is not applied at the include_router level. Each route asks
for what it needs (get_request_context, require_user, require_admin),
because login must see anonymous callers and logout must never 401.
"""

from fastapi import APIRouter

from yourschools.api.auth import router as auth_router
from yourschools.api.health import router as health_router
from yourschools.api.users import router as users_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(users_router, tags=["users"])
