"""Tests for batch status derivation."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

from coursemaster.batches.models import Batch, BatchStatus, derive_status


NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)
DAY = timedelta(days=1)


class TestDeriveStatus:
    def test_ongoing_between_dates(self) -> None:
        assert derive_status(NOW - DAY, NOW + DAY, NOW) == BatchStatus.ONGOING

    def test_completed_after_end(self) -> None:
        assert derive_status(NOW - 2 * DAY, NOW - DAY, NOW) == BatchStatus.COMPLETED

    def test_upcoming_before_start(self) -> None:
        assert derive_status(NOW + DAY, NOW + 2 * DAY, NOW) == BatchStatus.UPCOMING

    def test_bounds_are_inclusive(self) -> None:
        assert derive_status(NOW, NOW + DAY, NOW) == BatchStatus.ONGOING
        assert derive_status(NOW - DAY, NOW, NOW) == BatchStatus.ONGOING

    def test_naive_datetimes_are_treated_as_utc(self) -> None:
        naive_now = NOW.replace(tzinfo=None)
        assert derive_status(NOW - DAY, NOW + DAY, naive_now) == BatchStatus.ONGOING


class TestBatchEntity:
    def test_new_batch_caches_derived_status(self) -> None:
        batch = Batch(
            course_id=uuid4(),
            instructor_id=uuid4(),
            name="Morning cohort",
            start_date=NOW - DAY,
            end_date=NOW + DAY,
            max_students=10,
            created_at=NOW,
        )
        assert batch.status == BatchStatus.ONGOING.value

    def test_is_full(self) -> None:
        batch = Batch(
            course_id=uuid4(),
            instructor_id=uuid4(),
            name="Evening cohort",
            start_date=NOW,
            end_date=NOW + DAY,
            max_students=2,
            current_students=2,
        )
        assert batch.is_full
