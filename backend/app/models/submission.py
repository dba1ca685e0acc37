"""Submission and StudentAnswer models."""

from datetime import datetime, UTC

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
import uuid

from ..database import Base


class Submission(Base):
    """One graded attempt of a student at an assignment. Immutable once written."""
    __tablename__ = "submissions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    assignment_id = Column(String(36), ForeignKey("assignments.id"), nullable=False, index=True)
    student_id = Column(String(36), nullable=False, index=True)
    score = Column(Integer, nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_submissions_assignment_student"),
        CheckConstraint("score >= 0 AND score <= 100", name="ck_submissions_score_range"),
    )

    # Relationships
    assignment = relationship("Assignment", back_populates="submissions")
    answers = relationship(
        "StudentAnswer",
        back_populates="submission",
        order_by="StudentAnswer.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Submission(id={self.id}, student_id='{self.student_id}', score={self.score})>"


class StudentAnswer(Base):
    """Option a student picked for one question, stored with its submission."""
    __tablename__ = "student_answers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    submission_id = Column(String(36), ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(String(36), ForeignKey("questions.id"), nullable=False)
    # Null when the submitted id was not one of the question's options
    selected_option_id = Column(String(36), ForeignKey("answer_options.id"), nullable=True)

    __table_args__ = (
        UniqueConstraint("submission_id", "question_id", name="uq_student_answers_submission_question"),
    )

    submission = relationship("Submission", back_populates="answers")

    def __repr__(self):
        return f"<StudentAnswer(question_id={self.question_id}, selected_option_id={self.selected_option_id})>"
