"""Router for submission grading endpoints."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from .exceptions import GradingError
from .schemas import (
    CorrectOptionUpdate,
    QuestionKeyResponse,
    ReadinessResponse,
    SubmissionResponse,
    SubmitRequest,
    SubmitResponse,
)
from .service import SubmissionService
from .store import SQLAlchemySubmissionStore

router = APIRouter(tags=["Submissions"])


def get_submission_service(db: Session = Depends(get_db)) -> SubmissionService:
    """Dependency to get an instance of SubmissionService."""
    return SubmissionService(SQLAlchemySubmissionStore(db))


def _http_error(error: GradingError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.message)


@router.post("/submissions", response_model=SubmitResponse)
def submit_assignment(
    payload: SubmitRequest,
    service: SubmissionService = Depends(get_submission_service)
):
    """Grade a student's answers and lock them in. One submission per student and assignment."""
    try:
        return service.submit(payload.assignment_id, payload.student_id, payload.answers)
    except GradingError as e:
        raise _http_error(e)


@router.get("/submissions/{submission_id}", response_model=SubmissionResponse)
def read_submission(
    submission_id: str,
    service: SubmissionService = Depends(get_submission_service)
):
    """Get a submission with the answers that were recorded."""
    try:
        return service.get_submission(submission_id)
    except GradingError as e:
        raise _http_error(e)


@router.get("/assignments/{assignment_id}/submissions", response_model=list[SubmissionResponse])
def list_assignment_submissions(
    assignment_id: str,
    service: SubmissionService = Depends(get_submission_service)
):
    """List every submission for an assignment, newest first."""
    try:
        return service.list_submissions(assignment_id=assignment_id)
    except GradingError as e:
        raise _http_error(e)


@router.get("/students/{student_id}/submissions", response_model=list[SubmissionResponse])
def list_student_submissions(
    student_id: str,
    service: SubmissionService = Depends(get_submission_service)
):
    """List a student's submissions, newest first."""
    try:
        return service.list_submissions(student_id=student_id)
    except GradingError as e:
        raise _http_error(e)


@router.get("/assignments/{assignment_id}/readiness", response_model=ReadinessResponse)
def assignment_readiness(
    assignment_id: str,
    service: SubmissionService = Depends(get_submission_service)
):
    """Report questions that still lack a correct option before publishing."""
    try:
        return service.publication_readiness(assignment_id)
    except GradingError as e:
        raise _http_error(e)


@router.put("/questions/{question_id}/correct-option", response_model=QuestionKeyResponse)
def set_correct_option(
    question_id: str,
    payload: CorrectOptionUpdate,
    service: SubmissionService = Depends(get_submission_service)
):
    """Designate the correct option of a question."""
    try:
        return service.set_correct_option(question_id, payload.option_id)
    except GradingError as e:
        raise _http_error(e)
