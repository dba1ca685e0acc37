"""SQLAlchemy models for the submission grader."""

from .assignment import Assignment
from .question import Question, AnswerOption
from .submission import Submission, StudentAnswer

__all__ = [
    "Assignment",
    "Question",
    "AnswerOption",
    "Submission",
    "StudentAnswer",
]
