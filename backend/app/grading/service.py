"""Submission orchestration: single-submission checks, grading and persistence."""
import logging
from typing import Iterable, Mapping, Optional, Union

from . import engine
from .exceptions import (
    AlreadySubmitted,
    AssignmentNotFound,
    ConstraintViolation,
    NoQuestions,
    SubmissionNotFound,
)
from .schemas import (
    AnswerIn,
    QuestionKeyResponse,
    ReadinessResponse,
    SubmissionResponse,
    SubmissionRecord,
    SubmitResponse,
)
from .store import SubmissionStore

logger = logging.getLogger(__name__)

Answer = Union[AnswerIn, Mapping[str, str]]


def collect_answers(answers: Iterable[Answer]) -> dict[str, str]:
    """Turn submitted answers into a question id -> option id mapping.

    A question answered more than once keeps its last answer.
    """
    collected = {}
    for answer in answers:
        if not isinstance(answer, AnswerIn):
            answer = AnswerIn.model_validate(answer)
        collected[answer.question_id] = answer.selected_option_id
    return collected


class SubmissionService:
    """Grades a student's answers once and records the result.

    Holds no state between calls; every call works only through the store.
    """

    def __init__(self, store: SubmissionStore):
        self.store = store

    def submit(self, assignment_id: str, student_id: str, answers: Iterable[Answer]) -> SubmitResponse:
        """Grade and record a student's answers for an assignment.

        Raises:
            AssignmentNotFound: The assignment does not exist.
            AssignmentNotPublished: The assignment is not visible to students.
            AlreadySubmitted: The student already has a submission for it.
            NoQuestions: The assignment has nothing to grade.
            StoreUnavailable: The data store failed or timed out.
        """
        self.store.get_published_assignment(assignment_id)

        if self.store.find_submission(assignment_id, student_id) is not None:
            logger.info(f"Duplicate submission for assignment {assignment_id} by student {student_id}")
            raise AlreadySubmitted(assignment_id, student_id)

        questions = self.store.get_questions_with_options(assignment_id)
        if not questions:
            raise NoQuestions(assignment_id)

        submitted = collect_answers(answers)
        by_id = {question.question_id: question for question in questions}

        stray = [question_id for question_id in submitted if question_id not in by_id]
        if stray:
            logger.warning(
                f"Ignoring {len(stray)} answer(s) to questions outside assignment {assignment_id}"
            )
        unkeyed = engine.unkeyed_questions(questions)
        if unkeyed:
            logger.warning(
                f"Assignment {assignment_id} has {len(unkeyed)} question(s) without a correct option; "
                "they are graded as incorrect"
            )

        result = engine.grade(questions, submitted)

        # Only the assignment's own questions are stored, and only real options of each
        stored_answers = {
            question_id: option_id if option_id in by_id[question_id].option_ids else None
            for question_id, option_id in submitted.items()
            if question_id in by_id
        }

        try:
            submission = self.store.insert_submission_atomic(
                assignment_id, student_id, result.score, stored_answers
            )
        except ConstraintViolation as e:
            logger.info(f"Concurrent duplicate submission for assignment {assignment_id} by student {student_id}")
            raise AlreadySubmitted(assignment_id, student_id) from e

        logger.info(
            f"Recorded submission {submission.id} for assignment {assignment_id} "
            f"by student {student_id}: score {result.score} "
            f"({result.correct_count}/{result.question_count})"
        )
        return SubmitResponse(
            submission_id=submission.id,
            score=result.score,
            letter_grade=engine.letter_grade(result.score),
            details=result.details,
        )

    def get_submission(self, submission_id: str) -> SubmissionResponse:
        submission = self.store.get_submission(submission_id)
        if submission is None:
            raise SubmissionNotFound(submission_id)
        return self._with_grade(submission)

    def list_submissions(
        self, assignment_id: Optional[str] = None, student_id: Optional[str] = None
    ) -> list[SubmissionResponse]:
        """Submissions newest first, for the admin overview or a student's dashboard."""
        return [
            self._with_grade(submission)
            for submission in self.store.list_submissions(assignment_id=assignment_id, student_id=student_id)
        ]

    def publication_readiness(self, assignment_id: str) -> ReadinessResponse:
        """Advisory check before publishing. Never blocks grading."""
        assignment = self.store.get_assignment(assignment_id)
        if assignment is None:
            raise AssignmentNotFound(assignment_id)
        questions = self.store.get_questions_with_options(assignment_id)
        unkeyed = engine.unkeyed_questions(questions)
        return ReadinessResponse(
            assignment_id=assignment_id,
            is_published=assignment.is_published,
            question_count=len(questions),
            unkeyed_question_ids=unkeyed,
            ready=bool(questions) and not unkeyed,
        )

    def set_correct_option(self, question_id: str, option_id: str) -> QuestionKeyResponse:
        correct_option_id = self.store.set_correct_option(question_id, option_id)
        logger.info(f"Question {question_id} answer key set to option {correct_option_id}")
        return QuestionKeyResponse(question_id=question_id, correct_option_id=correct_option_id)

    @staticmethod
    def _with_grade(submission: SubmissionRecord) -> SubmissionResponse:
        return SubmissionResponse(
            **submission.model_dump(),
            letter_grade=engine.letter_grade(submission.score),
        )
