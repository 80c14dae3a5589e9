"""Health check and service banner.

Learn: Simple GET endpoints that verify the server is running
and the database is reachable.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from directline import __version__
from directline.db.engine import get_db
from directline.realtime.registry import connection_registry

router = APIRouter()

ROUTES = {
    "POST /users": "Create a user",
    "GET /users": "List users",
    "POST /messages": "Send a message",
    "GET /messages/{user_a}/{user_b}": "Load a conversation",
    "GET /conversations/{user_id}": "Latest conversations",
    "WS /ws": "Live delivery",
}


@router.get("/")
async def index():
    """Service banner with the route map."""
    return {"status": "ok", "version": __version__, "routes": ROUTES}


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Check server health and database connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, "online_users": len(connection_registry), **checks}
