from fastapi import APIRouter

from .endpoints import custody, handoffs, children

api_router = APIRouter()

# Note: These routes will be mounted under /api/v1 by main.py
api_router.include_router(custody.router, prefix="/custody", tags=["custody"])
api_router.include_router(handoffs.router, prefix="/handoffs", tags=["handoffs"])
api_router.include_router(children.router, prefix="/children", tags=["children"])
