"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and the database is reachable. Open (no auth).
"""

from fastapi import APIRouter, Request

from crmdesk import __version__

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and database connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await request.app.state.db.ping()
        checks["db"] = "ok"
    except Exception as e:
        checks["db"] = f"error: {type(e).__name__}"

    status = "healthy" if checks["db"] == "ok" else "degraded"
    return {"status": status, **checks}
