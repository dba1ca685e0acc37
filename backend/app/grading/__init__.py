"""Submission grading package."""
from .exceptions import (
    GradingError,
    AssignmentNotFound,
    AssignmentNotPublished,
    NoQuestions,
    AlreadySubmitted,
    StoreUnavailable,
    QuestionNotFound,
    OptionNotFound,
    SubmissionNotFound,
    ConstraintViolation,
)
from .engine import grade, letter_grade
from .store import SubmissionStore, SQLAlchemySubmissionStore
from .service import SubmissionService
from .router import router as grading_router

__all__ = [
    'GradingError',
    'AssignmentNotFound',
    'AssignmentNotPublished',
    'NoQuestions',
    'AlreadySubmitted',
    'StoreUnavailable',
    'QuestionNotFound',
    'OptionNotFound',
    'SubmissionNotFound',
    'ConstraintViolation',
    'grade',
    'letter_grade',
    'SubmissionStore',
    'SQLAlchemySubmissionStore',
    'SubmissionService',
    'grading_router',
]
