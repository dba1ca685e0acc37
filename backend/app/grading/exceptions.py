"""Errors raised by the submission grader.

Each error maps to one HTTP status so the router can report it without
inspecting messages.
"""

from fastapi import status


class GradingError(Exception):
    """Base exception for submission and grading errors."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(self.message)


class AssignmentNotFound(GradingError):
    """Raised when no assignment exists with the given id."""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, assignment_id: str, message: str = ""):
        self.assignment_id = assignment_id
        super().__init__(message or f"Assignment not found: {assignment_id}")


class AssignmentNotPublished(GradingError):
    """Raised when the assignment exists but is not visible to students yet."""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, assignment_id: str, message: str = ""):
        self.assignment_id = assignment_id
        super().__init__(message or f"Assignment is not published: {assignment_id}")


class NoQuestions(GradingError):
    """Raised when an assignment has no questions and cannot be graded."""
    status_code = 422

    def __init__(self, assignment_id: str, message: str = ""):
        self.assignment_id = assignment_id
        super().__init__(message or f"Assignment has no questions: {assignment_id}")


class AlreadySubmitted(GradingError):
    """Raised when the student already has a submission for the assignment."""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, assignment_id: str, student_id: str, message: str = ""):
        self.assignment_id = assignment_id
        self.student_id = student_id
        super().__init__(
            message or f"Student {student_id} already submitted assignment {assignment_id}"
        )


class StoreUnavailable(GradingError):
    """Raised when the data store fails or times out. Safe for the caller to retry."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "", original: Exception = None):
        self.original = original
        super().__init__(message or "Data store unavailable")


class QuestionNotFound(GradingError):
    """Raised when no question exists with the given id."""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, question_id: str, message: str = ""):
        self.question_id = question_id
        super().__init__(message or f"Question not found: {question_id}")


class OptionNotFound(GradingError):
    """Raised when an option does not belong to the given question."""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, question_id: str, option_id: str, message: str = ""):
        self.question_id = question_id
        self.option_id = option_id
        super().__init__(message or f"Option {option_id} does not belong to question {question_id}")


class SubmissionNotFound(GradingError):
    """Raised when no submission exists with the given id."""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, submission_id: str, message: str = ""):
        self.submission_id = submission_id
        super().__init__(message or f"Submission not found: {submission_id}")


class ConstraintViolation(Exception):
    """Raised by the store when an insert loses a uniqueness race."""

    def __init__(self, constraint: str, message: str = ""):
        self.constraint = constraint
        self.message = message or f"Unique constraint violated: {constraint}"
        super().__init__(self.message)
