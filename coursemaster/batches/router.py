"""Batch scheduling API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from coursemaster.auth.dependencies import CurrentUser, InstructorUser

from .dependencies import BatchServiceDep
from .models import BatchStatus
from .schemas import (
    BatchListResponse,
    BatchResponse,
    CreateBatchRequest,
    UpdateBatchRequest,
)


router = APIRouter(prefix="/v1/batches", tags=["batches"])


@router.get("", response_model=BatchListResponse, summary="List course batches")
async def list_batches(
    batch_service: BatchServiceDep,
    user: CurrentUser,
    course_id: UUID = Query(...),
    batch_status: BatchStatus | None = Query(None, alias="status"),
) -> BatchListResponse:
    """List a course's batches, newest start first."""
    batches = await batch_service.list_batches(course_id, batch_status)
    return BatchListResponse(
        items=[BatchResponse.from_entity(b) for b in batches],
        total=len(batches),
    )


@router.post(
    "",
    response_model=BatchResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create batch",
)
async def create_batch(
    data: CreateBatchRequest,
    batch_service: BatchServiceDep,
    user: InstructorUser,
) -> BatchResponse:
    """Schedule a batch for a course the caller owns."""
    batch = await batch_service.create_batch(user.id, data)
    return BatchResponse.from_entity(batch)


@router.get("/{batch_id}", response_model=BatchResponse, summary="Get batch")
async def get_batch(
    batch_id: UUID,
    batch_service: BatchServiceDep,
    user: CurrentUser,
) -> BatchResponse:
    """Get batch details."""
    batch = await batch_service.require_batch(batch_id)
    return BatchResponse.from_entity(batch)


@router.put("/{batch_id}", response_model=BatchResponse, summary="Update batch")
async def update_batch(
    batch_id: UUID,
    data: UpdateBatchRequest,
    batch_service: BatchServiceDep,
    user: InstructorUser,
) -> BatchResponse:
    """Update a batch. Status follows the dates."""
    batch = await batch_service.update_batch(user.id, batch_id, data)
    return BatchResponse.from_entity(batch)


@router.delete(
    "/{batch_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete batch",
)
async def delete_batch(
    batch_id: UUID,
    batch_service: BatchServiceDep,
    user: InstructorUser,
) -> None:
    """Delete a batch with no enrollments."""
    await batch_service.delete_batch(user.id, batch_id)
