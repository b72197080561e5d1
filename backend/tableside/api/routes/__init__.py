"""API routes."""

from fastapi import APIRouter

from tableside.api.routes import auth, dashboard, menu, tables

api_router = APIRouter()

# Customer-facing venue routes (public, rate limited)
api_router.include_router(menu.router, tags=["menu"])
api_router.include_router(tables.router, tags=["tables"])

# Staff routes
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
