"""Question and AnswerOption models."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Boolean, Integer, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from ..database import Base


class Question(Base):
    """Multiple choice question belonging to one assignment."""
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    assignment_id = Column(String(36), ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    # Not a foreign key: questions and options reference each other
    correct_option_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    assignment = relationship("Assignment", back_populates="questions")
    options = relationship(
        "AnswerOption",
        back_populates="question",
        order_by="AnswerOption.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Question(id={self.id}, assignment_id={self.assignment_id})>"

    @property
    def designated_option_id(self):
        """Id of the option acting as answer key, or None.

        ``correct_option_id`` wins when it names one of this question's
        options; otherwise the option flagged ``is_correct`` is used.
        """
        option_ids = {option.id for option in self.options}
        if self.correct_option_id and self.correct_option_id in option_ids:
            return self.correct_option_id
        for option in self.options:
            if option.is_correct:
                return option.id
        return None


class AnswerOption(Base):
    """Selectable option of a question."""
    __tablename__ = "answer_options"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    question_id = Column(String(36), ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    option_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)

    # At most one correct option per question
    __table_args__ = (
        Index(
            "uq_answer_options_single_correct",
            "question_id",
            unique=True,
            postgresql_where=text("is_correct = true"),
            sqlite_where=text("is_correct = 1"),
        ),
    )

    question = relationship("Question", back_populates="options")

    def __repr__(self):
        return f"<AnswerOption(id={self.id}, is_correct={self.is_correct})>"
