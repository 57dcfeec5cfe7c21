"""Records kept by the tracker: questions, practice logs, review state and tasks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

STATUS_NEW = "NEW"
STATUS_LEARNING = "LEARNING"
STATUS_REVIEW = "REVIEW"
STATUS_MASTERED = "MASTERED"

LOG_SOLVED = "SOLVED"
LOG_FAILED = "FAILED"

DEFAULT_EASE_FACTOR = 2.5


@dataclass
class Question:
    """A problem that can be practised."""

    id: str = ""
    leetcode_id: int = 0
    title: str = ""
    slug: str = ""
    difficulty: str = ""
    category: str = ""
    is_neetcode_150: bool = False
    created_at: datetime | None = None


@dataclass
class SubmissionLog:
    """One practice attempt, as recorded in the study log."""

    id: str = ""
    user_id: str = ""
    question_id: str = ""
    status: str = LOG_SOLVED
    mastery_level: int = 0
    time_taken_seconds: int = 0
    notes: str = ""
    attempted_at: datetime | None = None


@dataclass
class UserQuestionStats:
    """The spaced-repetition state of one user on one question."""

    id: str = ""
    user_id: str = ""
    question_id: str = ""
    streak: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = 0
    status: str = STATUS_NEW
    next_review_at: datetime | None = None
    last_reviewed_at: datetime | None = None


@dataclass
class QuestionTask:
    """A question due for practice, with how far past its review date it is."""

    question_id: str = ""
    title: str = ""
    slug: str = ""
    difficulty: str = ""
    status: str = STATUS_NEW
    next_review_at: datetime | None = None
    overdue_by_days: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping of the task."""
        return {
            "question_id": self.question_id,
            "title": self.title,
            "slug": self.slug,
            "difficulty": self.difficulty,
            "status": self.status,
            "next_review_at": (
                self.next_review_at.isoformat() if self.next_review_at else None
            ),
            "overdue_by_days": self.overdue_by_days,
        }