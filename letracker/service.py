"""Review workflow: grading single attempts and replaying imported history."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from .models import (
    DEFAULT_EASE_FACTOR,
    LOG_FAILED,
    LOG_SOLVED,
    STATUS_LEARNING,
    STATUS_MASTERED,
    STATUS_NEW,
    STATUS_REVIEW,
    Question,
    QuestionTask,
    SubmissionLog,
    UserQuestionStats,
)
from .repository import QuestionNotFoundError, Repository
from .srs import ReviewInput, ReviewOutput, calculate_next_review

logger = logging.getLogger(__name__)

DAILY_TASK_LIMIT = 3
ACCEPTED_STATUS = "Accepted"
_GRADE_GOOD = 2
_GRADE_AGAIN = 0
_SAME_SESSION_DAYS = 0.5
_SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True)
class ReviewRequest:
    """A grade given to one question. Grades run from 0 (again) to 3 (easy)."""

    question_id: str
    grade: int


@dataclass(frozen=True)
class HistoryItem:
    """One past submission as reported by the browser extension."""

    title: str = ""
    slug: str = ""
    status: str = ""
    timestamp: int = 0


def _string_field(data: Mapping[str, Any], name: str) -> str:
    value = data.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string")
    return value


def _parse_history_item(data: Any) -> HistoryItem:
    if not isinstance(data, Mapping):
        raise ValueError("history entries must be objects")
    timestamp = data.get("timestamp")
    if timestamp is None:
        timestamp = 0
    elif isinstance(timestamp, bool) or not isinstance(timestamp, int):
        raise ValueError("timestamp must be an integer")
    return HistoryItem(
        title=_string_field(data, "title"),
        slug=_string_field(data, "slug"),
        status=_string_field(data, "status"),
        timestamp=timestamp,
    )


@dataclass
class ImportSubmissionRequest:
    """A batch of past submissions to replay."""

    history: list[HistoryItem] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> ImportSubmissionRequest:
        """Build a request from decoded JSON; raise ValueError if malformed."""
        if not isinstance(data, Mapping):
            raise ValueError("expected a JSON object")
        raw = data.get("history")
        if raw is None:
            return cls([])
        if not isinstance(raw, list):
            raise ValueError("history must be a list")
        return cls([_parse_history_item(item) for item in raw])


@dataclass(frozen=True)
class _ReplayItem:
    timestamp: datetime
    status: str
    title: str


def determine_status(streak: int) -> str:
    """Map a streak of correct answers to a learning status."""
    if streak == 0:
        return STATUS_LEARNING
    if streak > 5:
        return STATUS_MASTERED
    return STATUS_REVIEW


class ReviewService:
    """Business logic for reviews, history imports and the daily task list."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def process_review(self, user_id: str, request: ReviewRequest) -> ReviewOutput:
        """Grade one attempt, store the new state and log it."""
        current = self._repo.get_user_stats(user_id, request.question_id)
        if current is None:
            current = UserQuestionStats(
                interval_days=0, ease_factor=DEFAULT_EASE_FACTOR, streak=0
            )

        result = calculate_next_review(
            ReviewInput(
                current_interval=current.interval_days,
                current_ef=current.ease_factor,
                repetitions=current.streak,
                grade=request.grade,
                actual_days=0.0,
            )
        )

        self._repo.upsert_user_stats(
            UserQuestionStats(
                user_id=user_id,
                question_id=request.question_id,
                streak=result.repetitions,
                ease_factor=result.ease_factor,
                interval_days=result.interval,
                next_review_at=result.next_review_at,
                last_reviewed_at=datetime.now(),
                status=determine_status(result.repetitions),
            )
        )

        self._repo.create_log(
            SubmissionLog(
                user_id=user_id,
                question_id=request.question_id,
                status=LOG_FAILED if request.grade == _GRADE_AGAIN else LOG_SOLVED,
                mastery_level=request.grade,
                attempted_at=datetime.now(),
            )
        )
        return result

    def import_history(self, user_id: str, request: ImportSubmissionRequest) -> None:
        """Replay past submissions, oldest first, question by question."""
        by_slug: dict[str, list[_ReplayItem]] = {}
        for item in sorted(request.history, key=lambda entry: entry.timestamp):
            by_slug.setdefault(item.slug, []).append(
                _ReplayItem(
                    timestamp=datetime.fromtimestamp(item.timestamp),
                    status=item.status,
                    title=item.title,
                )
            )

        for slug, items in by_slug.items():
            try:
                question_id = self._ensure_question_exists(slug, items[0].title)
            except Exception:  # a question that cannot be stored is skipped
                logger.warning("skipping history for %r", slug, exc_info=True)
                continue

            final_stats, logs = self._replay_history(user_id, question_id, items)
            self._repo.upsert_user_stats(final_stats)
            if logs:
                self._repo.batch_create_logs(logs)

    def get_today_tasks(self, user_id: str) -> list[QuestionTask]:
        """Return the most pressing questions for today."""
        return self._repo.get_daily_tasks(user_id, DAILY_TASK_LIMIT)

    def _ensure_question_exists(self, slug: str, title: str) -> str:
        try:
            return self._repo.get_question_by_slug(slug).id
        except QuestionNotFoundError:
            return self._repo.create_question(
                Question(slug=slug, title=title, is_neetcode_150=True)
            )

    @staticmethod
    def _replay_history(
        user_id: str, question_id: str, items: Sequence[_ReplayItem]
    ) -> tuple[UserQuestionStats, list[SubmissionLog]]:
        stats = UserQuestionStats(
            user_id=user_id,
            question_id=question_id,
            interval_days=0,
            ease_factor=DEFAULT_EASE_FACTOR,
            streak=0,
            status=STATUS_NEW,
        )
        logs: list[SubmissionLog] = []
        last_review: datetime | None = None

        for item in items:
            mastery = _GRADE_GOOD if item.status == ACCEPTED_STATUS else _GRADE_AGAIN
            logs.append(
                SubmissionLog(
                    user_id=user_id,
                    question_id=question_id,
                    status=LOG_SOLVED if mastery else LOG_FAILED,
                    mastery_level=mastery,
                    attempted_at=item.timestamp,
                )
            )

            if last_review is None:
                actual_days = 0.0
            else:
                actual_days = (
                    item.timestamp - last_review
                ).total_seconds() / _SECONDS_PER_DAY
                # Several attempts in one sitting are logged but not rescheduled.
                if actual_days < _SAME_SESSION_DAYS:
                    continue

            output = calculate_next_review(
                ReviewInput(
                    current_interval=stats.interval_days,
                    current_ef=stats.ease_factor,
                    repetitions=stats.streak,
                    grade=mastery,
                    actual_days=actual_days,
                )
            )
            stats.interval_days = output.interval
            stats.ease_factor = output.ease_factor
            stats.streak = output.repetitions
            stats.status = determine_status(output.repetitions)
            last_review = item.timestamp

        stats.last_reviewed_at = last_review
        if last_review is not None:
            stats.next_review_at = last_review + timedelta(days=stats.interval_days)
        return stats, logs