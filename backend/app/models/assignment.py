"""Assignment model."""

from sqlalchemy import Column, String, Text, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from ..database import Base


class Assignment(Base):
    """Assignment model.

    Course, class and semester are owned by the admin side of the system,
    so they are kept as plain identifiers here.
    """
    __tablename__ = "assignments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text)
    course_id = Column(String(36), index=True)
    class_id = Column(String(36), index=True)
    semester_id = Column(String(36), index=True)
    deadline = Column(DateTime(timezone=True))
    is_published = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    questions = relationship(
        "Question",
        back_populates="assignment",
        order_by="[Question.position, Question.created_at]",
        cascade="all, delete-orphan",
    )
    submissions = relationship("Submission", back_populates="assignment")

    def __repr__(self):
        return f"<Assignment(id={self.id}, title='{self.title}')>"

    @property
    def question_count(self):
        """Get count of questions in this assignment."""
        return len(self.questions)

    @property
    def submission_count(self):
        """Get count of submissions for this assignment."""
        return len(self.submissions)
