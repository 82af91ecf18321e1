"""Tests for BatchService scheduling, seat counting and deletion guard."""

from datetime import timedelta
from uuid import uuid4

import pytest

from coursemaster.batches.models import Batch, BatchStatus
from coursemaster.batches.schemas import CreateBatchRequest, UpdateBatchRequest
from coursemaster.batches.service import (
    BatchFullError,
    BatchNotFoundError,
    BatchService,
    HasActiveEnrollmentsError,
    InvalidDateRangeError,
)
from coursemaster.core.exceptions import ConcurrentUpdateError, ForbiddenError
from coursemaster.utils import utc_now


DAY = timedelta(days=1)


@pytest.fixture
def batch_service(cassandra, course_service) -> BatchService:
    return BatchService(
        session=cassandra.session,
        keyspace="test_keyspace",
        course_service=course_service,
        max_retries=3,
    )


@pytest.fixture
def batch(course, instructor_id) -> Batch:
    now = utc_now()
    return Batch(
        course_id=course.id,
        instructor_id=instructor_id,
        name="Spring cohort",
        start_date=now - DAY,
        end_date=now + DAY,
        max_students=2,
    )


class TestCreateBatch:
    @pytest.mark.asyncio
    async def test_create_derives_status_and_dual_writes(
        self, batch_service, cassandra, course, instructor_id
    ) -> None:
        now = utc_now()
        data = CreateBatchRequest(
            course_id=course.id,
            name="Summer cohort",
            start_date=now + DAY,
            end_date=now + 10 * DAY,
            max_students=20,
        )

        batch = await batch_service.create_batch(instructor_id, data)

        assert batch.status == BatchStatus.UPCOMING.value
        assert batch.instructor_id == instructor_id
        assert batch.current_students == 0
        assert len(cassandra.calls(batch_service._insert_batch)) == 1
        assert cassandra.calls(batch_service._insert_batch_by_course) == [
            [course.id, batch.id]
        ]

    @pytest.mark.asyncio
    async def test_batch_always_run_by_acting_instructor(
        self, batch_service, course, instructor_id
    ) -> None:
        now = utc_now()
        data = CreateBatchRequest.model_validate(
            {
                "course_id": str(course.id),
                "name": "Summer cohort",
                "start_date": now + DAY,
                "end_date": now + 10 * DAY,
                "max_students": 20,
                "instructor_id": str(uuid4()),
            }
        )

        batch = await batch_service.create_batch(instructor_id, data)

        assert batch.instructor_id == instructor_id

    @pytest.mark.asyncio
    async def test_end_before_start_rejected(
        self, batch_service, course, instructor_id
    ) -> None:
        now = utc_now()
        data = CreateBatchRequest(
            course_id=course.id,
            name="Backwards",
            start_date=now + DAY,
            end_date=now,
            max_students=5,
        )
        with pytest.raises(InvalidDateRangeError):
            await batch_service.create_batch(instructor_id, data)

    @pytest.mark.asyncio
    async def test_equal_dates_rejected(
        self, batch_service, course, instructor_id
    ) -> None:
        now = utc_now()
        data = CreateBatchRequest(
            course_id=course.id,
            name="Zero length",
            start_date=now,
            end_date=now,
            max_students=5,
        )
        with pytest.raises(InvalidDateRangeError):
            await batch_service.create_batch(instructor_id, data)

    @pytest.mark.asyncio
    async def test_other_instructor_forbidden(self, batch_service, course) -> None:
        now = utc_now()
        data = CreateBatchRequest(
            course_id=course.id,
            name="Not mine",
            start_date=now,
            end_date=now + DAY,
            max_students=5,
        )
        with pytest.raises(ForbiddenError):
            await batch_service.create_batch(uuid4(), data)


class TestGetBatch:
    @pytest.mark.asyncio
    async def test_missing_batch(self, batch_service) -> None:
        assert await batch_service.get_batch(uuid4()) is None
        with pytest.raises(BatchNotFoundError):
            await batch_service.require_batch(uuid4())

    @pytest.mark.asyncio
    async def test_stale_status_refreshed_on_read(
        self, batch_service, cassandra, rows, make_row, batch
    ) -> None:
        cassandra.respond(
            batch_service._get_batch,
            rows(make_row(batch, status=BatchStatus.UPCOMING.value)),
        )

        loaded = await batch_service.get_batch(batch.id)

        assert loaded.status == BatchStatus.ONGOING.value
        assert cassandra.calls(batch_service._update_status) == [
            [BatchStatus.ONGOING.value, batch.id]
        ]

    @pytest.mark.asyncio
    async def test_fresh_status_not_rewritten(
        self, batch_service, cassandra, rows, make_row, batch
    ) -> None:
        cassandra.respond(batch_service._get_batch, rows(make_row(batch)))

        await batch_service.get_batch(batch.id)

        assert cassandra.calls(batch_service._update_status) == []

    @pytest.mark.asyncio
    async def test_list_filters_and_sorts_newest_start_first(
        self, batch_service, cassandra, rows, make_row, course, instructor_id
    ) -> None:
        now = utc_now()
        older = Batch(
            course_id=course.id,
            instructor_id=instructor_id,
            name="Older",
            start_date=now - 3 * DAY,
            end_date=now + DAY,
            max_students=5,
        )
        newer = Batch(
            course_id=course.id,
            instructor_id=instructor_id,
            name="Newer",
            start_date=now - DAY,
            end_date=now + DAY,
            max_students=5,
        )
        finished = Batch(
            course_id=course.id,
            instructor_id=instructor_id,
            name="Finished",
            start_date=now - 10 * DAY,
            end_date=now - 5 * DAY,
            max_students=5,
        )
        by_id = {b.id: b for b in (older, newer, finished)}
        cassandra.respond(
            batch_service._list_batches_by_course,
            rows(*(make_row(b, batch_id=b.id) for b in by_id.values())),
        )
        cassandra.respond(
            batch_service._get_batch, lambda params: rows(make_row(by_id[params[0]]))
        )

        everything = await batch_service.list_batches(course.id)
        ongoing = await batch_service.list_batches(course.id, BatchStatus.ONGOING)

        assert [b.name for b in everything] == ["Newer", "Older", "Finished"]
        assert [b.name for b in ongoing] == ["Newer", "Older"]


class TestUpdateBatch:
    @pytest.mark.asyncio
    async def test_date_change_rederives_status(
        self, batch_service, cassandra, rows, make_row, batch, instructor_id
    ) -> None:
        cassandra.respond(batch_service._get_batch, rows(make_row(batch)))
        now = utc_now()

        updated = await batch_service.update_batch(
            instructor_id,
            batch.id,
            UpdateBatchRequest(start_date=now - 5 * DAY, end_date=now - 2 * DAY),
        )

        assert updated.status == BatchStatus.COMPLETED.value
        (params,) = cassandra.calls(batch_service._update_batch)
        assert params[4] == BatchStatus.COMPLETED.value

    @pytest.mark.asyncio
    async def test_partial_date_change_validated_against_stored_date(
        self, batch_service, cassandra, rows, make_row, batch, instructor_id
    ) -> None:
        cassandra.respond(batch_service._get_batch, rows(make_row(batch)))

        with pytest.raises(InvalidDateRangeError):
            await batch_service.update_batch(
                instructor_id,
                batch.id,
                UpdateBatchRequest(end_date=batch.start_date - DAY),
            )

    @pytest.mark.asyncio
    async def test_other_instructor_forbidden(
        self, batch_service, cassandra, rows, make_row, batch
    ) -> None:
        cassandra.respond(batch_service._get_batch, rows(make_row(batch)))

        with pytest.raises(ForbiddenError):
            await batch_service.update_batch(
                uuid4(), batch.id, UpdateBatchRequest(name="Renamed")
            )


class TestDeleteBatch:
    @pytest.mark.asyncio
    async def test_blocked_by_enrollments(
        self, batch_service, cassandra, rows, make_row, batch, instructor_id
    ) -> None:
        cassandra.respond(batch_service._get_batch, rows(make_row(batch)))
        cassandra.respond(
            batch_service._any_batch_enrollment, rows(make_row(batch, student_id=uuid4()))
        )

        with pytest.raises(HasActiveEnrollmentsError):
            await batch_service.delete_batch(instructor_id, batch.id)

        assert cassandra.calls(batch_service._delete_batch) == []

    @pytest.mark.asyncio
    async def test_deletes_batch_and_lookup(
        self, batch_service, cassandra, rows, make_row, batch, instructor_id
    ) -> None:
        cassandra.respond(batch_service._get_batch, rows(make_row(batch)))

        await batch_service.delete_batch(instructor_id, batch.id)

        assert cassandra.calls(batch_service._delete_batch) == [[batch.id]]
        assert cassandra.calls(batch_service._delete_batch_by_course) == [
            [batch.course_id, batch.id]
        ]


class TestSeats:
    @pytest.mark.asyncio
    async def test_reserve_increments_with_compare_and_set(
        self, batch_service, cassandra, rows, make_row, batch
    ) -> None:
        cassandra.respond(batch_service._get_batch, rows(make_row(batch)))

        reserved = await batch_service.reserve_seat(batch.id)

        assert reserved.current_students == 1
        assert cassandra.calls(batch_service._cas_seats) == [[1, batch.id, 0]]

    @pytest.mark.asyncio
    async def test_reserve_retries_after_lost_race(
        self, batch_service, cassandra, rows, make_row, batch
    ) -> None:
        cassandra.respond(
            batch_service._get_batch,
            rows(make_row(batch)),
            rows(make_row(batch, current_students=1)),
        )
        cassandra.respond(
            batch_service._cas_seats, rows(applied=False), rows(applied=True)
        )

        reserved = await batch_service.reserve_seat(batch.id)

        assert reserved.current_students == 2
        assert cassandra.calls(batch_service._cas_seats) == [
            [1, batch.id, 0],
            [2, batch.id, 1],
        ]

    @pytest.mark.asyncio
    async def test_reserve_full_batch(
        self, batch_service, cassandra, rows, make_row, batch
    ) -> None:
        cassandra.respond(
            batch_service._get_batch, rows(make_row(batch, current_students=2))
        )

        with pytest.raises(BatchFullError):
            await batch_service.reserve_seat(batch.id)

    @pytest.mark.asyncio
    async def test_reserve_gives_up_under_contention(
        self, batch_service, cassandra, rows, make_row, batch
    ) -> None:
        cassandra.respond(batch_service._get_batch, rows(make_row(batch)))
        cassandra.respond(batch_service._cas_seats, rows(applied=False))

        with pytest.raises(ConcurrentUpdateError):
            await batch_service.reserve_seat(batch.id)

        assert len(cassandra.calls(batch_service._cas_seats)) == 3

    @pytest.mark.asyncio
    async def test_release_empty_batch_is_noop(
        self, batch_service, cassandra, rows, make_row, batch
    ) -> None:
        cassandra.respond(batch_service._get_batch, rows(make_row(batch)))

        await batch_service.release_seat(batch.id)

        assert cassandra.calls(batch_service._cas_seats) == []
