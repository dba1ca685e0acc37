"""Test configuration and fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.models import Assignment, Question, AnswerOption
from app.grading import SQLAlchemySubmissionStore, SubmissionService


# Use in-memory SQLite for testing
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture
def engine():
    """Create a fresh test database engine per test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    """Create test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db_session):
    return SQLAlchemySubmissionStore(db_session)


@pytest.fixture
def service(store):
    return SubmissionService(store)


@pytest.fixture
def assignment_factory(db_session):
    """Build an assignment from (question_id, option_ids, correct_option_id) tuples."""
    def factory(assignment_id, questions=(), is_published=True):
        assignment = Assignment(
            id=assignment_id,
            title=f"Quiz {assignment_id}",
            course_id="course-1",
            class_id="class-1",
            semester_id="semester-1",
            is_published=is_published,
        )
        for position, (question_id, option_ids, correct_option_id) in enumerate(questions):
            question = Question(
                id=question_id,
                question_text=f"Question {question_id}",
                position=position,
                correct_option_id=correct_option_id,
            )
            question.options = [
                AnswerOption(
                    id=option_id,
                    option_text=f"Option {option_id}",
                    is_correct=option_id == correct_option_id,
                )
                for option_id in option_ids
            ]
            assignment.questions.append(question)
        db_session.add(assignment)
        db_session.commit()
        return assignment
    return factory


@pytest.fixture
def sample_assignment(assignment_factory):
    """Published assignment A: Q1 (correct optA) and Q2 (correct optC)."""
    return assignment_factory(
        "assignment-a",
        [
            ("q1", ["optA", "optB"], "optA"),
            ("q2", ["optC", "optD"], "optC"),
        ],
    )


@pytest.fixture
def unpublished_assignment(assignment_factory):
    return assignment_factory("assignment-draft", [("dq1", ["dopt1", "dopt2"], "dopt1")], is_published=False)


@pytest.fixture
def empty_assignment(assignment_factory):
    return assignment_factory("assignment-empty", [])


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient
    from app.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
