"""API route aggregation.

All routers registered here get mounted in main.py. Routes live at the
root path; there is no authentication layer.
"""

from fastapi import APIRouter

from directline.api.health import router as health_router
from directline.api.messages import router as messages_router
from directline.api.users import router as users_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(messages_router, tags=["messages", "conversations"])
