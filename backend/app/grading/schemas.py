"""Pydantic schemas for grading inputs, store records and API payloads."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# Grading engine input/output
class QuestionKey(BaseModel):
    """A question as the grading engine sees it: its options and answer key."""
    question_id: str
    option_ids: list[str] = []
    correct_option_id: Optional[str] = None


class Verdict(BaseModel):
    question_id: str
    selected_option_id: Optional[str] = None
    correct_option_id: Optional[str] = None
    is_correct: bool


class GradeResult(BaseModel):
    score: int
    correct_count: int
    question_count: int
    details: list[Verdict]


# Store records
class AssignmentRecord(BaseModel):
    id: str
    title: str
    is_published: bool
    deadline: Optional[datetime] = None
    course_id: Optional[str] = None
    class_id: Optional[str] = None
    semester_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class StudentAnswerRecord(BaseModel):
    question_id: str
    selected_option_id: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SubmissionRecord(BaseModel):
    id: str
    assignment_id: str
    student_id: str
    score: int
    submitted_at: datetime
    answers: list[StudentAnswerRecord] = []

    model_config = ConfigDict(from_attributes=True)


# API payloads
class AnswerIn(BaseModel):
    question_id: str
    selected_option_id: str


class SubmitRequest(BaseModel):
    assignment_id: str
    student_id: str
    answers: list[AnswerIn] = []


class SubmitResponse(BaseModel):
    submission_id: str
    score: int = Field(..., ge=0, le=100)
    letter_grade: str
    details: list[Verdict]


class SubmissionResponse(SubmissionRecord):
    letter_grade: str


class ReadinessResponse(BaseModel):
    assignment_id: str
    is_published: bool
    question_count: int
    unkeyed_question_ids: list[str]
    ready: bool


class CorrectOptionUpdate(BaseModel):
    option_id: str


class QuestionKeyResponse(BaseModel):
    question_id: str
    correct_option_id: str
