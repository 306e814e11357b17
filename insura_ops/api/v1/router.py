from fastapi import APIRouter

from insura_ops.api.v1.endpoints import diagnostics

# Create API router
api_router = APIRouter()

# Include routers
api_router.include_router(diagnostics.router, prefix="/diagnostics", tags=["Diagnostics"])

__all__ = ["api_router"]
