"""Batch scheduling service layer.

Business logic for:
- Creating, updating and deleting batches (course owner only)
- Keeping the cached status in line with the date range
- Seat reservation for batch enrollment (compare-and-set)
"""

import asyncio
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursemaster.config import get_settings
from coursemaster.core.exceptions import (
    ConcurrentUpdateError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PreconditionFailedError,
)
from coursemaster.utils import utc_now

from .models import Batch, BatchStatus
from .schemas import CreateBatchRequest, UpdateBatchRequest


if TYPE_CHECKING:
    from datetime import datetime

    from cassandra.cluster import Session

    from coursemaster.courses.service import CourseService

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class BatchNotFoundError(NotFoundError):
    """Batch not found."""

    def __init__(self, message: str = "Batch not found"):
        super().__init__(message, "batch_not_found")


class InvalidDateRangeError(PreconditionFailedError):
    """End date is not after start date."""

    def __init__(self, message: str = "End date must be after start date"):
        super().__init__(message, "invalid_date_range")


class HasActiveEnrollmentsError(ConflictError):
    """Batch still referenced by enrollments."""

    def __init__(
        self,
        message: str = (
            "Cannot delete batch with existing enrollments. "
            "Please remove enrollments first."
        ),
    ):
        super().__init__(message, "has_active_enrollments")


class BatchFullError(PreconditionFailedError):
    """No seats left in the batch."""

    def __init__(self, message: str = "Batch is full"):
        super().__init__(message, "batch_full")


def validate_date_range(start_date: "datetime", end_date: "datetime") -> None:
    """Reject ranges where the end is not strictly after the start."""
    if end_date <= start_date:
        raise InvalidDateRangeError


# ==============================================================================
# Batch Service
# ==============================================================================


class BatchService:
    """Service for batch scheduling."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        course_service: "CourseService",
        max_retries: int | None = None,
    ):
        self.session = session
        self.keyspace = keyspace
        self.course_service = course_service
        self.max_retries = max_retries or get_settings().cas_max_retries
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_batch = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.batches WHERE id = ?
        """)

        self._insert_batch = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.batches
            (id, course_id, instructor_id, name, start_date, end_date,
             max_students, current_students, status, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        # current_students is only written through _cas_seats
        self._update_batch = self.session.prepare(f"""
            UPDATE {self.keyspace}.batches
            SET name = ?, start_date = ?, end_date = ?, max_students = ?,
                status = ?, updated_at = ?
            WHERE id = ?
        """)

        self._update_status = self.session.prepare(f"""
            UPDATE {self.keyspace}.batches SET status = ? WHERE id = ?
        """)

        self._cas_seats = self.session.prepare(f"""
            UPDATE {self.keyspace}.batches SET current_students = ?
            WHERE id = ?
            IF current_students = ?
        """)

        self._delete_batch = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.batches WHERE id = ?
        """)

        # Lookup table
        self._insert_batch_by_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.batches_by_course (course_id, batch_id)
            VALUES (?, ?)
        """)

        self._list_batches_by_course = self.session.prepare(f"""
            SELECT batch_id FROM {self.keyspace}.batches_by_course
            WHERE course_id = ?
        """)

        self._delete_batch_by_course = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.batches_by_course
            WHERE course_id = ? AND batch_id = ?
        """)

        self._any_batch_enrollment = self.session.prepare(f"""
            SELECT student_id FROM {self.keyspace}.enrollments_by_batch
            WHERE batch_id = ? LIMIT 1
        """)

    async def _require_owned_course(self, course_id: UUID, instructor_id: UUID):
        course = await self.course_service.require_course(course_id)
        if not course.is_owned_by(instructor_id):
            raise ForbiddenError
        return course

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def get_batch(self, batch_id: UUID) -> Batch | None:
        """Get batch by ID, refreshing a stale cached status."""
        result = await self.session.aexecute(self._get_batch, [batch_id])
        row = result.one()
        if not row:
            return None
        return await self._refresh_status(Batch.from_row(row))

    async def require_batch(self, batch_id: UUID) -> Batch:
        """Get batch by ID or raise BatchNotFoundError."""
        batch = await self.get_batch(batch_id)
        if batch is None:
            raise BatchNotFoundError
        return batch

    async def list_batches(
        self,
        course_id: UUID,
        status: BatchStatus | None = None,
    ) -> list[Batch]:
        """List a course's batches, newest start first."""
        rows = await self.session.aexecute(self._list_batches_by_course, [course_id])
        batches = await asyncio.gather(*(self.get_batch(row.batch_id) for row in rows))

        items = [b for b in batches if b is not None]
        if status is not None:
            items = [b for b in items if b.status == status.value]
        items.sort(key=lambda b: b.start_date, reverse=True)
        return items

    async def _refresh_status(self, batch: Batch) -> Batch:
        """Persist the derived status when time has moved the batch on."""
        derived = batch.derive_status(utc_now()).value
        if derived != batch.status:
            await self.session.aexecute(self._update_status, [derived, batch.id])
            logger.info(
                "batch_status_refreshed",
                batch_id=str(batch.id),
                previous=batch.status,
                status=derived,
            )
            batch.status = derived
        return batch

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def create_batch(
        self, instructor_id: UUID, data: CreateBatchRequest
    ) -> Batch:
        """Schedule a batch for a course the instructor owns.

        Raises:
            CourseNotFoundError: If the course does not exist
            ForbiddenError: If the instructor does not own the course
            InvalidDateRangeError: If end_date <= start_date
        """
        await self._require_owned_course(data.course_id, instructor_id)
        validate_date_range(data.start_date, data.end_date)

        batch = Batch(
            course_id=data.course_id,
            instructor_id=instructor_id,
            name=data.name,
            start_date=data.start_date,
            end_date=data.end_date,
            max_students=data.max_students,
        )

        # Dual write: main table + lookup table
        await self.session.aexecute(
            self._insert_batch,
            [
                batch.id,
                batch.course_id,
                batch.instructor_id,
                batch.name,
                batch.start_date,
                batch.end_date,
                batch.max_students,
                batch.current_students,
                batch.status,
                batch.created_at,
                batch.updated_at,
            ],
        )
        await self.session.aexecute(
            self._insert_batch_by_course, [batch.course_id, batch.id]
        )

        logger.info(
            "batch_created",
            batch_id=str(batch.id),
            course_id=str(batch.course_id),
            status=batch.status,
        )
        return batch

    async def update_batch(
        self,
        instructor_id: UUID,
        batch_id: UUID,
        data: UpdateBatchRequest,
    ) -> Batch:
        """Update a batch and re-derive its status from the resulting dates.

        Raises:
            BatchNotFoundError: If the batch does not exist
            ForbiddenError: If the instructor does not own the course
            InvalidDateRangeError: If the resulting end_date <= start_date
        """
        batch = await self.require_batch(batch_id)
        await self._require_owned_course(batch.course_id, instructor_id)

        start_date = data.start_date or batch.start_date
        end_date = data.end_date or batch.end_date
        if data.start_date is not None or data.end_date is not None:
            validate_date_range(start_date, end_date)

        if data.name is not None:
            batch.name = data.name
        if data.max_students is not None:
            batch.max_students = data.max_students
        batch.start_date = start_date
        batch.end_date = end_date
        batch.updated_at = utc_now()
        batch.status = batch.derive_status(batch.updated_at).value

        await self.session.aexecute(
            self._update_batch,
            [
                batch.name,
                batch.start_date,
                batch.end_date,
                batch.max_students,
                batch.status,
                batch.updated_at,
                batch.id,
            ],
        )

        logger.info("batch_updated", batch_id=str(batch.id), status=batch.status)
        return batch

    async def delete_batch(self, instructor_id: UUID, batch_id: UUID) -> None:
        """Delete a batch that no enrollment references.

        Raises:
            BatchNotFoundError: If the batch does not exist
            ForbiddenError: If the instructor does not own the course
            HasActiveEnrollmentsError: If any enrollment references the batch
        """
        batch = await self.require_batch(batch_id)
        await self._require_owned_course(batch.course_id, instructor_id)

        result = await self.session.aexecute(self._any_batch_enrollment, [batch_id])
        if result.one():
            raise HasActiveEnrollmentsError

        await self.session.aexecute(self._delete_batch, [batch_id])
        await self.session.aexecute(
            self._delete_batch_by_course, [batch.course_id, batch_id]
        )

        logger.info("batch_deleted", batch_id=str(batch_id))

    # ==========================================================================
    # Seats
    # ==========================================================================

    async def reserve_seat(self, batch_id: UUID) -> Batch:
        """Take one seat in the batch.

        Raises:
            BatchNotFoundError: If the batch does not exist
            BatchFullError: If no seat is left
            ConcurrentUpdateError: If the counter kept changing under us
        """
        for _ in range(self.max_retries):
            batch = await self.require_batch(batch_id)
            if batch.is_full:
                raise BatchFullError

            result = await self.session.aexecute(
                self._cas_seats,
                [batch.current_students + 1, batch_id, batch.current_students],
            )
            if result.was_applied:
                batch.current_students += 1
                logger.info(
                    "batch_seat_reserved",
                    batch_id=str(batch_id),
                    current_students=batch.current_students,
                )
                return batch

        raise ConcurrentUpdateError("batch")

    async def release_seat(self, batch_id: UUID) -> None:
        """Give one seat back. A missing batch or an empty counter is a no-op."""
        for _ in range(self.max_retries):
            batch = await self.get_batch(batch_id)
            if batch is None or batch.current_students <= 0:
                return

            result = await self.session.aexecute(
                self._cas_seats,
                [batch.current_students - 1, batch_id, batch.current_students],
            )
            if result.was_applied:
                logger.info(
                    "batch_seat_released",
                    batch_id=str(batch_id),
                    current_students=batch.current_students - 1,
                )
                return

        raise ConcurrentUpdateError("batch")
