"""Grading engine.

Pure functions: no I/O, no clock, no randomness. The same questions and
answers always produce the same result.
"""
from typing import Mapping, Optional, Sequence

from .schemas import GradeResult, QuestionKey, Verdict

# Lower bound of each letter grade, best first
LETTER_GRADES = (
    (80, "A"),
    (70, "B"),
    (60, "C"),
    (50, "D"),
)
LOWEST_GRADE = "E"


def percentage(correct: int, total: int) -> int:
    """Integer percentage rounded half up; 0 when there is nothing to count."""
    if total <= 0:
        return 0
    # round(100 * correct / total) with halves going up, in integers
    return (200 * correct + total) // (2 * total)


def letter_grade(score: int) -> str:
    """Convert a 0-100 score to its letter grade."""
    for lower_bound, grade in LETTER_GRADES:
        if score >= lower_bound:
            return grade
    return LOWEST_GRADE


def answer_key(question: QuestionKey) -> Optional[str]:
    """The question's correct option id, or None when it is not one of its options."""
    if question.correct_option_id in question.option_ids:
        return question.correct_option_id
    return None


def is_correct(question: QuestionKey, selected_option_id: Optional[str]) -> bool:
    """A question counts only if its answer key is one of its options and was picked."""
    key = answer_key(question)
    if selected_option_id is None or key is None:
        return False
    return selected_option_id == key


def grade(questions: Sequence[QuestionKey], answers: Mapping[str, str]) -> GradeResult:
    """Grade submitted answers against the assignment's questions.

    Args:
        questions: Every question of the assignment, in display order.
        answers: Selected option id keyed by question id. Missing questions
            count as unanswered; ids of other assignments' questions are ignored.

    Returns:
        The score and one verdict per question, in the order given.
    """
    details = []
    for question in questions:
        selected = answers.get(question.question_id)
        details.append(
            Verdict(
                question_id=question.question_id,
                selected_option_id=selected,
                correct_option_id=answer_key(question),
                is_correct=is_correct(question, selected),
            )
        )

    correct_count = sum(1 for verdict in details if verdict.is_correct)
    return GradeResult(
        score=percentage(correct_count, len(details)),
        correct_count=correct_count,
        question_count=len(details),
        details=details,
    )


def unkeyed_questions(questions: Sequence[QuestionKey]) -> list[str]:
    """Ids of questions that can never be answered correctly."""
    return [
        question.question_id
        for question in questions
        if answer_key(question) is None
    ]
