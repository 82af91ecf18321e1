"""FastAPI dependencies for batch scheduling."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import BatchService


async def get_batch_service(request: Request) -> BatchService:
    """Get batch service from app state."""
    batch_service = getattr(request.app.state, "batch_service", None)
    if not batch_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Batch service not available",
        )
    return batch_service


BatchServiceDep = Annotated[BatchService, Depends(get_batch_service)]
