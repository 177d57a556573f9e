"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in each router
without modifying individual handlers. Health and auth routers are
open (no auth required); /auth/me declares its own dependency.
"""

from fastapi import APIRouter, Depends

from crmdesk.api.addresses import router as addresses_router
from crmdesk.api.auth import router as auth_router
from crmdesk.api.contacts import router as contacts_router
from crmdesk.api.emails import router as emails_router
from crmdesk.api.health import router as health_router
from crmdesk.api.tasks import router as tasks_router
from crmdesk.auth.dependencies import get_current_user

# All protected routers require authentication
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api")

# Open routes: no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes: require a valid Bearer JWT
api_router.include_router(contacts_router, tags=["contacts"], dependencies=_auth)
api_router.include_router(tasks_router, tags=["tasks"], dependencies=_auth)
api_router.include_router(addresses_router, tags=["addresses"], dependencies=_auth)
api_router.include_router(emails_router, tags=["email"], dependencies=_auth)
