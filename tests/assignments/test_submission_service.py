"""Tests for assignment submissions."""

from uuid import uuid4

import pytest
from cassandra import OperationTimedOut

from coursemaster.assignments.models import Assignment, Submission, SubmissionStatus
from coursemaster.assignments.schemas import CreateAssignmentRequest
from coursemaster.assignments.service import (
    AlreadySubmittedError,
    AssignmentNotFoundError,
    AssignmentService,
    InvalidSubmissionUrlError,
    MissingContentError,
    is_accepted_url,
)
from coursemaster.core.exceptions import ForbiddenError
from coursemaster.enrollments.service import NotEnrolledError


@pytest.fixture
def assignment_service(
    cassandra, course_service, enrollment_service, notification_service
) -> AssignmentService:
    return AssignmentService(
        session=cassandra.session,
        keyspace="test_keyspace",
        course_service=course_service,
        enrollment_service=enrollment_service,
        notification_service=notification_service,
    )


@pytest.fixture
def assignment(course, instructor_id) -> Assignment:
    return Assignment(
        course_id=course.id,
        title="Case study",
        instructions="Write one page about dosage",
        max_score=10,
        created_by=instructor_id,
    )


@pytest.fixture
def stored_assignment(assignment_service, cassandra, rows, make_row, assignment):
    cassandra.respond(assignment_service._get_assignment, rows(make_row(assignment)))
    return assignment


class TestCreateAssignment:
    @pytest.mark.asyncio
    async def test_create_dual_writes(
        self, assignment_service, cassandra, course, instructor_id
    ) -> None:
        data = CreateAssignmentRequest(
            course_id=course.id,
            title="Essay",
            instructions="Explain drug interactions",
            max_score=20,
        )

        assignment = await assignment_service.create_assignment(instructor_id, data)

        assert assignment.max_score == 20
        assert assignment.created_by == instructor_id
        assert cassandra.calls(assignment_service._insert_assignment_by_course) == [
            [course.id, assignment.id]
        ]

    @pytest.mark.asyncio
    async def test_other_instructor_forbidden(self, assignment_service, course) -> None:
        data = CreateAssignmentRequest(
            course_id=course.id, title="Essay", instructions="Anything"
        )
        with pytest.raises(ForbiddenError):
            await assignment_service.create_assignment(uuid4(), data)


class TestSubmit:
    @pytest.mark.asyncio
    async def test_submit_claims_pair_and_dual_writes(
        self, assignment_service, cassandra, stored_assignment, student_id
    ) -> None:
        submission = await assignment_service.submit(
            student_id, stored_assignment.id, submission_text="My answer"
        )

        assert submission.status == SubmissionStatus.SUBMITTED.value
        assert submission.score is None
        assert submission.graded_at is None
        (claim,) = cassandra.calls(assignment_service._claim_submission)
        assert claim[:3] == [stored_assignment.id, student_id, submission.id]
        assert len(cassandra.calls(assignment_service._insert_submission)) == 1
        assert cassandra.calls(assignment_service._insert_submission_by_assignment) == [
            [stored_assignment.id, submission.id, student_id]
        ]

    @pytest.mark.asyncio
    async def test_second_submit_conflicts_with_original(
        self, assignment_service, cassandra, rows, make_row, stored_assignment, student_id
    ) -> None:
        original = Submission(
            assignment_id=stored_assignment.id,
            student_id=student_id,
            submission_text="First try",
        )
        cassandra.respond(assignment_service._claim_submission, rows(applied=False))
        cassandra.respond(
            assignment_service._get_student_submission, rows(make_row(original))
        )

        with pytest.raises(AlreadySubmittedError) as exc_info:
            await assignment_service.submit(
                student_id, stored_assignment.id, submission_text="Second try"
            )

        assert exc_info.value.existing.id == original.id
        assert exc_info.value.existing.submission_text == "First try"
        assert exc_info.value.status_code == 409
        assert cassandra.calls(assignment_service._insert_submission) == []

    @pytest.mark.asyncio
    async def test_failed_write_releases_claim(
        self, assignment_service, cassandra, stored_assignment, student_id
    ) -> None:
        def timed_out(params):
            raise OperationTimedOut("write timed out")

        cassandra.respond(assignment_service._insert_submission, timed_out)

        with pytest.raises(OperationTimedOut):
            await assignment_service.submit(
                student_id, stored_assignment.id, submission_text="My answer"
            )

        (claim,) = cassandra.calls(assignment_service._claim_submission)
        assert cassandra.calls(assignment_service._release_claim) == [
            [stored_assignment.id, student_id, claim[2]]
        ]
        assert cassandra.calls(assignment_service._insert_submission_by_assignment) == []

    @pytest.mark.asyncio
    async def test_retry_after_failed_write_is_accepted(
        self, assignment_service, cassandra, rows, stored_assignment, student_id
    ) -> None:
        def timed_out(params):
            raise OperationTimedOut("write timed out")

        cassandra.respond(
            assignment_service._insert_submission_by_assignment, timed_out, rows()
        )

        with pytest.raises(OperationTimedOut):
            await assignment_service.submit(
                student_id, stored_assignment.id, submission_text="My answer"
            )
        submission = await assignment_service.submit(
            student_id, stored_assignment.id, submission_text="My answer"
        )

        assert submission.status == SubmissionStatus.SUBMITTED.value
        assert len(cassandra.calls(assignment_service._release_claim)) == 1
        assert len(cassandra.calls(assignment_service._claim_submission)) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("text", "url"), [(None, None), ("   ", ""), ("", None)])
    async def test_missing_content(
        self, assignment_service, stored_assignment, student_id, text, url
    ) -> None:
        with pytest.raises(MissingContentError) as exc_info:
            await assignment_service.submit(
                student_id, stored_assignment.id, submission_text=text, submission_url=url
            )

        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_url_only_submission(
        self, assignment_service, stored_assignment, student_id
    ) -> None:
        submission = await assignment_service.submit(
            student_id,
            stored_assignment.id,
            submission_url="https://docs.google.com/document/d/abc",
        )

        assert submission.submission_text is None
        assert submission.submission_url == "https://docs.google.com/document/d/abc"

    @pytest.mark.asyncio
    async def test_rejects_unaccepted_url(
        self, assignment_service, stored_assignment, student_id
    ) -> None:
        with pytest.raises(InvalidSubmissionUrlError):
            await assignment_service.submit(
                student_id,
                stored_assignment.id,
                submission_url="ftp://example.com/file",
            )

    @pytest.mark.asyncio
    async def test_not_enrolled(
        self, assignment_service, enrollment_service, stored_assignment, student_id
    ) -> None:
        enrollment_service.require_active_enrollment.side_effect = NotEnrolledError

        with pytest.raises(NotEnrolledError):
            await assignment_service.submit(
                student_id, stored_assignment.id, submission_text="Answer"
            )

    @pytest.mark.asyncio
    async def test_unknown_assignment(self, assignment_service, student_id) -> None:
        with pytest.raises(AssignmentNotFoundError):
            await assignment_service.submit(student_id, uuid4(), submission_text="x")


class TestStudentAssignments:
    @pytest.mark.asyncio
    async def test_pairs_assignments_with_own_submission(
        self,
        assignment_service,
        cassandra,
        rows,
        make_row,
        stored_assignment,
        student_id,
        course,
    ) -> None:
        mine = Submission(
            assignment_id=stored_assignment.id,
            student_id=student_id,
            submission_text="Done",
        )
        cassandra.respond(
            assignment_service._list_assignments_by_course,
            rows(make_row(stored_assignment, assignment_id=stored_assignment.id)),
        )
        cassandra.respond(
            assignment_service._get_student_submission, rows(make_row(mine))
        )

        ((assignment, submission),) = await assignment_service.list_student_assignments(
            student_id, course.id
        )

        assert assignment.id == stored_assignment.id
        assert submission.id == mine.id


@pytest.mark.parametrize(
    ("url", "accepted"),
    [
        ("https://example.com/report.pdf", True),
        ("http://drive.google.com/file/d/1", True),
        ("http://docs.google.com/document/d/1", True),
        ("http://example.com/report.pdf", False),
        ("javascript:alert(1)", False),
        ("not a url", False),
    ],
)
def test_is_accepted_url(url, accepted) -> None:
    assert is_accepted_url(url) is accepted
