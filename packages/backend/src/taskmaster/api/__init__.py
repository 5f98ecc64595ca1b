"""API route aggregation.

All routers registered here get mounted in main.py under /api.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in each router
without modifying individual handlers. Health and auth routers are
open (no auth required); every task, user and team route goes through
get_current_user first.
"""

from fastapi import APIRouter, Depends

from taskmaster.api.auth import router as auth_router
from taskmaster.api.health import router as health_router
from taskmaster.api.tasks import router as tasks_router
from taskmaster.api.team import router as team_router
from taskmaster.api.users import router as users_router
from taskmaster.auth.dependencies import get_current_user

# All protected routers require authentication
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api")

# Open routes, no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes require a valid bearer token
api_router.include_router(tasks_router, tags=["tasks"], dependencies=_auth)
api_router.include_router(users_router, tags=["user"], dependencies=_auth)
api_router.include_router(team_router, tags=["team"], dependencies=_auth)
