"""Data store client for the submission grader.

``SubmissionStore`` is the contract the grader depends on; ``SQLAlchemySubmissionStore``
implements it on top of a SQLAlchemy session. Every database failure inside a store
call is rolled back and surfaced as ``StoreUnavailable``; nothing is retried here.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, UTC
from typing import Iterator, Mapping, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.models import Assignment, Question, AnswerOption, Submission, StudentAnswer
from .exceptions import (
    AssignmentNotFound,
    AssignmentNotPublished,
    ConstraintViolation,
    OptionNotFound,
    QuestionNotFound,
    StoreUnavailable,
)
from .schemas import AssignmentRecord, QuestionKey, SubmissionRecord

logger = logging.getLogger(__name__)

SUBMISSION_UNIQUE_CONSTRAINT = "uq_submissions_assignment_student"


class SubmissionStore(ABC):
    """Operations the grader needs from the persistent store."""

    @abstractmethod
    def get_assignment(self, assignment_id: str) -> Optional[AssignmentRecord]:
        """Return the assignment, published or not, or None."""

    @abstractmethod
    def get_published_assignment(self, assignment_id: str) -> AssignmentRecord:
        """Return a published assignment.

        Raises:
            AssignmentNotFound: No assignment has this id.
            AssignmentNotPublished: The assignment is still hidden from students.
        """

    @abstractmethod
    def get_questions_with_options(self, assignment_id: str) -> list[QuestionKey]:
        """Return the assignment's questions in display order with their answer keys."""

    @abstractmethod
    def find_submission(self, assignment_id: str, student_id: str) -> Optional[SubmissionRecord]:
        """Return the student's submission for the assignment, or None."""

    @abstractmethod
    def insert_submission_atomic(
        self,
        assignment_id: str,
        student_id: str,
        score: int,
        answers: Mapping[str, Optional[str]],
    ) -> SubmissionRecord:
        """Insert a submission and its answers in one transaction.

        Args:
            answers: Selected option id (or None) keyed by question id.

        Raises:
            ConstraintViolation: A submission for the pair already exists.
        """

    @abstractmethod
    def get_submission(self, submission_id: str) -> Optional[SubmissionRecord]:
        """Return a submission with its answers, or None."""

    @abstractmethod
    def list_submissions(
        self, assignment_id: Optional[str] = None, student_id: Optional[str] = None
    ) -> list[SubmissionRecord]:
        """Return submissions matching the filters, newest first."""

    @abstractmethod
    def set_correct_option(self, question_id: str, option_id: str) -> str:
        """Make ``option_id`` the only correct option of the question and return it."""


class SQLAlchemySubmissionStore(SubmissionStore):
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _store_call(self, operation: str) -> Iterator[None]:
        """Roll back and wrap database errors raised by a store operation."""
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"Store operation {operation} failed: {e}")
            self.db.rollback()
            raise StoreUnavailable(f"Data store unavailable during {operation}", original=e) from e

    def get_assignment(self, assignment_id: str) -> Optional[AssignmentRecord]:
        with self._store_call("get_assignment"):
            assignment = self.db.get(Assignment, assignment_id)
            if assignment is None:
                return None
            return AssignmentRecord.model_validate(assignment)

    def get_published_assignment(self, assignment_id: str) -> AssignmentRecord:
        assignment = self.get_assignment(assignment_id)
        if assignment is None:
            raise AssignmentNotFound(assignment_id)
        if not assignment.is_published:
            raise AssignmentNotPublished(assignment_id)
        return assignment

    def get_questions_with_options(self, assignment_id: str) -> list[QuestionKey]:
        with self._store_call("get_questions_with_options"):
            questions = self.db.scalars(
                select(Question)
                .where(Question.assignment_id == assignment_id)
                .options(selectinload(Question.options))
                .order_by(Question.position, Question.created_at)
            ).all()
            return [
                QuestionKey(
                    question_id=question.id,
                    option_ids=[option.id for option in question.options],
                    correct_option_id=question.designated_option_id,
                )
                for question in questions
            ]

    def find_submission(self, assignment_id: str, student_id: str) -> Optional[SubmissionRecord]:
        with self._store_call("find_submission"):
            submission = self.db.scalars(
                select(Submission)
                .where(
                    Submission.assignment_id == assignment_id,
                    Submission.student_id == student_id,
                )
                .options(selectinload(Submission.answers))
            ).first()
            if submission is None:
                return None
            return SubmissionRecord.model_validate(submission)

    def insert_submission_atomic(
        self,
        assignment_id: str,
        student_id: str,
        score: int,
        answers: Mapping[str, Optional[str]],
    ) -> SubmissionRecord:
        with self._store_call("insert_submission_atomic"):
            submission = Submission(
                assignment_id=assignment_id,
                student_id=student_id,
                score=score,
                submitted_at=datetime.now(UTC),
            )
            submission.answers = [
                StudentAnswer(question_id=question_id, selected_option_id=option_id)
                for question_id, option_id in answers.items()
            ]
            self.db.add(submission)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                # Another request won the race for the same pair
                if self.find_submission(assignment_id, student_id) is not None:
                    raise ConstraintViolation(SUBMISSION_UNIQUE_CONSTRAINT) from e
                raise
            self.db.refresh(submission)
            return SubmissionRecord.model_validate(submission)

    def get_submission(self, submission_id: str) -> Optional[SubmissionRecord]:
        with self._store_call("get_submission"):
            submission = self.db.get(
                Submission, submission_id, options=[selectinload(Submission.answers)]
            )
            if submission is None:
                return None
            return SubmissionRecord.model_validate(submission)

    def list_submissions(
        self, assignment_id: Optional[str] = None, student_id: Optional[str] = None
    ) -> list[SubmissionRecord]:
        with self._store_call("list_submissions"):
            query = select(Submission).options(selectinload(Submission.answers))
            if assignment_id is not None:
                query = query.where(Submission.assignment_id == assignment_id)
            if student_id is not None:
                query = query.where(Submission.student_id == student_id)
            query = query.order_by(Submission.submitted_at.desc())
            return [SubmissionRecord.model_validate(s) for s in self.db.scalars(query).all()]

    def set_correct_option(self, question_id: str, option_id: str) -> str:
        with self._store_call("set_correct_option"):
            question = self.db.get(Question, question_id)
            if question is None:
                raise QuestionNotFound(question_id)
            if option_id not in {option.id for option in question.options}:
                raise OptionNotFound(question_id, option_id)

            # Clear first so the single-correct index never sees two flags
            self.db.execute(
                update(AnswerOption)
                .where(
                    AnswerOption.question_id == question_id,
                    AnswerOption.id != option_id,
                    AnswerOption.is_correct.is_(True),
                )
                .values(is_correct=False)
            )
            self.db.execute(
                update(AnswerOption)
                .where(AnswerOption.id == option_id)
                .values(is_correct=True)
            )
            question.correct_option_id = option_id
            self.db.commit()
            return option_id
