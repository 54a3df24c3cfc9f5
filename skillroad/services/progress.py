"""
Module progress and assessment scoring.

Module states: locked -> unlocked -> completed. Completing a module (a
progress update that carries completed_at) unlocks only the next module in
the roadmap. Completion is never undone.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from skillroad import storage
from skillroad.models import UserProgress
from skillroad.services.market import round_half_up

logger = logging.getLogger(__name__)

DEFAULT_PASSING_SCORE = 70


def get_owned_module(db: Session, user_id: str, module_id: int):
    """The module, if it belongs to one of the user's roadmaps."""
    module = storage.get_module(db, module_id)
    if module is None or storage.get_roadmap(db, module.roadmap_id, user_id) is None:
        return None
    return module


def record_progress(
    db: Session,
    user_id: str,
    module_id: int,
    completed_at: Optional[datetime] = None,
    time_spent: Optional[int] = None,
    score: Optional[int] = None,
) -> UserProgress:
    """
    Upsert the user's progress for a module and run the unlock step.
    Raises LookupError for an unknown module or one in another user's roadmap.
    """
    module = get_owned_module(db, user_id, module_id)
    if module is None:
        raise LookupError(f"Module {module_id} not found")

    progress = storage.create_or_update_progress(
        db, user_id, module_id,
        completed_at=completed_at,
        time_spent=time_spent,
        score=score,
    )

    if progress.completed_at is not None:
        complete_module(db, module)

    return progress


def complete_module(db: Session, module) -> None:
    """Mark the module completed and unlock the one right after it."""
    if not module.is_completed:
        storage.update_module(db, module.id, is_completed=True)

    next_module = next(
        (m for m in storage.get_modules_by_roadmap(db, module.roadmap_id) if m.order_index == module.order_index + 1),
        None,
    )
    if next_module is not None and next_module.is_locked:
        storage.update_module(db, next_module.id, is_locked=False)
        logger.info("Module %s completed, unlocked module %s", module.id, next_module.id)


def score_assessment(questions: list[dict], answers: list[Optional[int]]) -> tuple[int, int, int]:
    """
    Returns (correct_answers, total_questions, score 0-100).

    answers[i] is the option index picked for question i. Missing, negative
    or out-of-range answers count as wrong.
    """
    total = len(questions)
    correct = 0
    for index, question in enumerate(questions):
        if index >= len(answers):
            break
        selected = answers[index]
        options = question.get("options") or []
        if selected is None or not 0 <= selected < len(options):
            continue
        if options[selected].get("isCorrect"):
            correct += 1

    score = round_half_up(correct / total * 100) if total else 0
    return correct, total, score


def submit_assessment(db: Session, user_id: str, assessment_id: int, answers: list[Optional[int]]) -> dict:
    """
    Grade a submission and record it as progress.
    Passing (score >= the assessment's passing score) completes the module.
    Raises LookupError for an unknown assessment or one in another user's roadmap.
    """
    assessment = storage.get_assessment(db, assessment_id)
    if assessment is None or get_owned_module(db, user_id, assessment.module_id) is None:
        raise LookupError(f"Assessment {assessment_id} not found")

    correct, total, score = score_assessment(assessment.questions or [], answers)
    passing_score = assessment.passing_score if assessment.passing_score is not None else DEFAULT_PASSING_SCORE
    passed = score >= passing_score

    progress = record_progress(
        db, user_id, assessment.module_id,
        score=score,
        completed_at=datetime.utcnow() if passed else None,
    )

    return {
        "score": score,
        "passed": passed,
        "correct_answers": correct,
        "total_questions": total,
        "progress": progress,
    }
