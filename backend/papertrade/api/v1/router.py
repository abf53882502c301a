"""
PaperTrading Ledger - API v1 Router
"""
from fastapi import APIRouter

from papertrade.api.v1.endpoints import portfolio

api_router = APIRouter()


# API v1 root endpoint
@api_router.get("/", tags=["API Info"])
async def api_root():
    """API v1 root - returns version info."""
    return {
        "api": "PaperTrading Ledger",
        "version": "v1",
        "status": "operational"
    }


# Include all endpoint routers
api_router.include_router(portfolio.router, prefix="/portfolio", tags=["Portfolio"])
