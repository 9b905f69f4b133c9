"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in each router
without modifying individual handlers. Health and auth routers are
open (no auth required); /auth/me resolves the identity itself.
"""

from fastapi import APIRouter, Depends

from lunay.api.agents import router as agents_router
from lunay.api.auth import router as auth_router
from lunay.api.health import router as health_router
from lunay.api.messages import router as messages_router
from lunay.api.teams import router as teams_router
from lunay.api.users import router as users_router
from lunay.api.workspaces import router as workspaces_router
from lunay.auth.dependencies import get_current_user

# All protected routers require a valid session
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api/v1")

# Open routes, no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes require a session cookie or Bearer token
api_router.include_router(users_router, tags=["users"], dependencies=_auth)
api_router.include_router(workspaces_router, tags=["workspaces"], dependencies=_auth)
api_router.include_router(agents_router, tags=["agents"], dependencies=_auth)
api_router.include_router(messages_router, tags=["messages"], dependencies=_auth)
api_router.include_router(teams_router, tags=["teams"], dependencies=_auth)
