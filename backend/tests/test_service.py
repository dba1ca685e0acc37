"""Test cases for the submission service."""

import logging
from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.grading import (
    AlreadySubmitted,
    AssignmentNotFound,
    AssignmentNotPublished,
    NoQuestions,
    StoreUnavailable,
    SubmissionNotFound,
    SubmissionService,
    SubmissionStore,
)
from app.grading.schemas import AnswerIn, AssignmentRecord, QuestionKey
from app.grading.service import collect_answers
from app.models import Submission, StudentAnswer


def answers(**selected):
    return [AnswerIn(question_id=q, selected_option_id=o) for q, o in selected.items()]


def count(db_session, model):
    return db_session.scalar(select(func.count()).select_from(model))


class TestSubmit:
    """Grading and recording a submission."""

    def test_concrete_scenario(self, service, db_session, sample_assignment):
        result = service.submit("assignment-a", "student-1", answers(q1="optA", q2="optD"))

        assert result.score == 50
        assert result.letter_grade == "D"
        assert [(d.question_id, d.selected_option_id, d.correct_option_id, d.is_correct) for d in result.details] == [
            ("q1", "optA", "optA", True),
            ("q2", "optD", "optC", False),
        ]

        submission = db_session.scalars(select(Submission)).one()
        assert submission.id == result.submission_id
        assert submission.assignment_id == "assignment-a"
        assert submission.student_id == "student-1"
        assert submission.score == 50
        assert submission.submitted_at is not None
        assert {(a.question_id, a.selected_option_id) for a in submission.answers} == {
            ("q1", "optA"),
            ("q2", "optD"),
        }

    def test_empty_submission_is_recorded(self, service, db_session, sample_assignment):
        result = service.submit("assignment-a", "student-1", [])

        assert result.score == 0
        assert [(d.question_id, d.selected_option_id, d.correct_option_id, d.is_correct) for d in result.details] == [
            ("q1", None, "optA", False),
            ("q2", None, "optC", False),
        ]
        assert count(db_session, Submission) == 1
        assert count(db_session, StudentAnswer) == 0

    def test_accepts_plain_dict_answers(self, service, sample_assignment):
        result = service.submit(
            "assignment-a", "student-1",
            [{"question_id": "q1", "selected_option_id": "optA"}, {"question_id": "q2", "selected_option_id": "optC"}],
        )
        assert result.score == 100
        assert result.letter_grade == "A"

    def test_second_submit_is_rejected(self, service, db_session, sample_assignment):
        first = service.submit("assignment-a", "student-1", answers(q1="optA", q2="optD"))

        with pytest.raises(AlreadySubmitted):
            service.submit("assignment-a", "student-1", answers(q1="optA", q2="optC"))

        submission = db_session.scalars(select(Submission)).one()
        assert submission.score == first.score == 50
        assert count(db_session, StudentAnswer) == 2

    def test_other_students_can_submit(self, service, db_session, sample_assignment):
        service.submit("assignment-a", "student-1", answers(q1="optA"))
        service.submit("assignment-a", "student-2", answers(q1="optB"))
        assert count(db_session, Submission) == 2

    def test_stray_answers_ignored(self, service, db_session, sample_assignment):
        result = service.submit("assignment-a", "student-1", answers(q1="optA", q2="optC", q99="optZ"))

        assert result.score == 100
        assert [d.question_id for d in result.details] == ["q1", "q2"]
        stored = {a.question_id for a in db_session.scalars(select(StudentAnswer))}
        assert stored == {"q1", "q2"}

    def test_answer_from_another_question_is_incorrect(self, service, db_session, sample_assignment):
        result = service.submit("assignment-a", "student-1", answers(q1="optC"))

        assert result.score == 0
        assert result.details[0].selected_option_id == "optC"
        stored = db_session.scalars(select(StudentAnswer)).one()
        assert stored.question_id == "q1"
        assert stored.selected_option_id is None

    def test_last_answer_per_question_wins(self, service, db_session, sample_assignment):
        submitted = answers(q1="optB") + answers(q1="optA")
        result = service.submit("assignment-a", "student-1", submitted)

        assert result.details[0].selected_option_id == "optA"
        assert count(db_session, StudentAnswer) == 1

    def test_unkeyed_questions_graded_leniently(self, service, assignment_factory, caplog):
        assignment_factory("unkeyed", [("u1", ["x1", "y1"], "x1"), ("u2", ["x2", "y2"], None)])

        with caplog.at_level(logging.WARNING, logger="app.grading.service"):
            result = service.submit("unkeyed", "student-1", answers(u1="x1", u2="x2"))

        assert result.score == 50
        assert result.details[1].is_correct is False
        assert any("without a correct option" in r.getMessage() for r in caplog.records)


class TestPreconditions:
    """Preconditions are checked in order and fail without writing."""

    def test_missing_assignment(self, service, db_session):
        with pytest.raises(AssignmentNotFound):
            service.submit("missing", "student-1", [])
        assert count(db_session, Submission) == 0

    def test_unpublished_assignment(self, service, db_session, unpublished_assignment):
        with pytest.raises(AssignmentNotPublished):
            service.submit("assignment-draft", "student-1", answers(dq1="dopt1"))
        assert count(db_session, Submission) == 0

    def test_no_questions(self, service, db_session, empty_assignment):
        with pytest.raises(NoQuestions):
            service.submit("assignment-empty", "student-1", [])
        assert count(db_session, Submission) == 0

    def test_already_submitted_checked_before_questions(self, service, db_session, empty_assignment):
        db_session.add(Submission(assignment_id="assignment-empty", student_id="student-1", score=0))
        db_session.commit()

        with pytest.raises(AlreadySubmitted):
            service.submit("assignment-empty", "student-1", [])

    def test_unpublished_checked_before_duplicate(self, service, db_session, unpublished_assignment):
        db_session.add(Submission(assignment_id="assignment-draft", student_id="student-1", score=0))
        db_session.commit()

        with pytest.raises(AssignmentNotPublished):
            service.submit("assignment-draft", "student-1", [])

    def test_duplicate_not_logged_as_error(self, service, sample_assignment, caplog):
        service.submit("assignment-a", "student-1", [])

        with caplog.at_level(logging.DEBUG):
            with pytest.raises(AlreadySubmitted):
                service.submit("assignment-a", "student-1", [])

        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]


class TestConcurrency:
    """Duplicate requests racing past the pre-check."""

    def test_race_loser_gets_already_submitted(self, service, store, db_session, sample_assignment, monkeypatch):
        first = service.submit("assignment-a", "student-1", answers(q1="optA"))

        # The second request read before the first one committed
        real_find = store.find_submission
        calls = []

        def stale_then_real(assignment_id, student_id):
            calls.append((assignment_id, student_id))
            if len(calls) == 1:
                return None
            return real_find(assignment_id, student_id)

        monkeypatch.setattr(store, "find_submission", stale_then_real)

        with pytest.raises(AlreadySubmitted):
            service.submit("assignment-a", "student-1", answers(q1="optB", q2="optC"))

        submission = db_session.scalars(select(Submission)).one()
        assert submission.score == first.score
        assert count(db_session, StudentAnswer) == 1


class TestStoreFailures:
    """Store failures surface as StoreUnavailable with nothing written."""

    def test_commit_failure_leaves_no_rows(self, service, db_session, sample_assignment, monkeypatch):
        def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("canceling statement due to statement timeout"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(StoreUnavailable):
            service.submit("assignment-a", "student-1", answers(q1="optA", q2="optC"))

        monkeypatch.undo()
        assert count(db_session, Submission) == 0
        assert count(db_session, StudentAnswer) == 0

    def test_store_errors_propagate_without_retry(self):
        store = MagicMock(spec=SubmissionStore)
        store.get_published_assignment.return_value = AssignmentRecord(id="a", title="A", is_published=True)
        store.find_submission.return_value = None
        store.get_questions_with_options.return_value = [
            QuestionKey(question_id="q1", option_ids=["o1"], correct_option_id="o1")
        ]
        store.insert_submission_atomic.side_effect = StoreUnavailable("timed out")

        with pytest.raises(StoreUnavailable):
            SubmissionService(store).submit("a", "student-1", answers(q1="o1"))

        store.insert_submission_atomic.assert_called_once_with("a", "student-1", 100, {"q1": "o1"})

    def test_lookup_timeout_surfaces_as_store_unavailable(self):
        store = MagicMock(spec=SubmissionStore)
        store.get_published_assignment.side_effect = StoreUnavailable("timed out")

        with pytest.raises(StoreUnavailable):
            SubmissionService(store).submit("a", "student-1", [])

        store.insert_submission_atomic.assert_not_called()


class TestQueries:
    """Reading back submissions and answer keys."""

    def test_get_submission(self, service, sample_assignment):
        result = service.submit("assignment-a", "student-1", answers(q1="optA", q2="optC"))

        submission = service.get_submission(result.submission_id)
        assert submission.score == 100
        assert submission.letter_grade == "A"
        assert {(a.question_id, a.selected_option_id) for a in submission.answers} == {
            ("q1", "optA"),
            ("q2", "optC"),
        }

    def test_get_missing_submission(self, service):
        with pytest.raises(SubmissionNotFound):
            service.get_submission("missing")

    def test_list_submissions(self, service, sample_assignment):
        service.submit("assignment-a", "student-1", answers(q1="optA"))
        service.submit("assignment-a", "student-2", [])

        by_assignment = service.list_submissions(assignment_id="assignment-a")
        by_student = service.list_submissions(student_id="student-2")

        assert {s.student_id for s in by_assignment} == {"student-1", "student-2"}
        assert [(s.student_id, s.score, s.letter_grade) for s in by_student] == [("student-2", 0, "E")]

    def test_readiness(self, service, assignment_factory):
        assignment_factory("draft", [("r1", ["a", "b"], "a"), ("r2", ["c", "d"], None)], is_published=False)

        readiness = service.publication_readiness("draft")

        assert readiness.question_count == 2
        assert readiness.unkeyed_question_ids == ["r2"]
        assert readiness.is_published is False
        assert readiness.ready is False

    def test_readiness_without_questions(self, service, empty_assignment):
        readiness = service.publication_readiness("assignment-empty")
        assert readiness.ready is False
        assert readiness.unkeyed_question_ids == []

    def test_readiness_missing_assignment(self, service):
        with pytest.raises(AssignmentNotFound):
            service.publication_readiness("missing")

    def test_set_correct_option_changes_grading(self, service, sample_assignment):
        updated = service.set_correct_option("q2", "optD")
        assert updated.correct_option_id == "optD"

        result = service.submit("assignment-a", "student-1", answers(q1="optA", q2="optD"))
        assert result.score == 100


def test_collect_answers_last_wins():
    collected = collect_answers(answers(q1="a") + answers(q2="b") + answers(q1="c"))
    assert collected == {"q1": "c", "q2": "b"}
