"""
API router: groups the endpoint routers under /api.
"""
from fastapi import APIRouter

from base_snapshot.web.routes import auth, snapshot

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(snapshot.router)
