"""Storage of questions, review state and study logs."""

from __future__ import annotations

import sqlite3
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime

from .models import (
    STATUS_NEW,
    Question,
    QuestionTask,
    SubmissionLog,
    UserQuestionStats,
)

_SECONDS_PER_DAY = 86400.0
_NEW_QUESTION_PRIORITY = 1000.0


class QuestionNotFoundError(LookupError):
    """Raised when no question has the requested slug."""


class Repository(ABC):
    """Operations the review service needs from storage."""

    @abstractmethod
    def get_question_by_slug(self, slug: str) -> Question:
        """Return the question with this slug or raise QuestionNotFoundError."""

    @abstractmethod
    def create_question(self, question: Question) -> str:
        """Store a question and return its id."""

    @abstractmethod
    def get_user_stats(self, user_id: str, question_id: str) -> UserQuestionStats | None:
        """Return the review state, or None if the user never practised it."""

    @abstractmethod
    def upsert_user_stats(self, stats: UserQuestionStats) -> None:
        """Insert or replace the review state of a user on a question."""

    @abstractmethod
    def create_log(self, log: SubmissionLog) -> None:
        """Record one practice attempt."""

    @abstractmethod
    def batch_create_logs(self, logs: Iterable[SubmissionLog]) -> None:
        """Record many attempts at once; all or none are stored."""

    @abstractmethod
    def get_daily_tasks(
        self, user_id: str, limit: int, now: datetime | None = None
    ) -> list[QuestionTask]:
        """Return the most pressing due or new questions, at most ``limit``."""


_SCHEMA = """
CREATE TABLE IF NOT EXISTS questions (
    id TEXT PRIMARY KEY,
    leetcode_id INTEGER NOT NULL DEFAULT 0,
    title TEXT NOT NULL,
    slug TEXT NOT NULL UNIQUE,
    difficulty TEXT NOT NULL DEFAULT '',
    category TEXT NOT NULL DEFAULT '',
    is_neetcode_150 INTEGER NOT NULL DEFAULT 0,
    created_at TEXT
);
CREATE TABLE IF NOT EXISTS user_question_stats (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    question_id TEXT NOT NULL,
    streak INTEGER NOT NULL DEFAULT 0,
    ease_factor REAL NOT NULL DEFAULT 2.5,
    interval_days INTEGER NOT NULL DEFAULT 0,
    status TEXT NOT NULL DEFAULT 'NEW',
    next_review_at TEXT,
    last_reviewed_at TEXT,
    UNIQUE (user_id, question_id)
);
CREATE TABLE IF NOT EXISTS study_logs (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    question_id TEXT NOT NULL,
    status TEXT NOT NULL,
    mastery_level INTEGER NOT NULL DEFAULT 0,
    time_taken_seconds INTEGER NOT NULL DEFAULT 0,
    notes TEXT NOT NULL DEFAULT '',
    attempted_at TEXT
);
"""


def _to_text(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _from_text(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value is not None else None


def _new_id() -> str:
    return str(uuid.uuid4())


class SQLiteRepository(Repository):
    """Repository backed by an sqlite3 connection."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection

    def _query(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        cursor = self._conn.cursor()
        cursor.row_factory = sqlite3.Row
        return cursor.execute(sql, params)

    def create_schema(self) -> None:
        """Create the tables if they do not exist yet."""
        with self._conn:
            self._conn.executescript(_SCHEMA)

    def get_question_by_slug(self, slug: str) -> Question:
        row = self._query("SELECT * FROM questions WHERE slug = ?", (slug,)).fetchone()
        if row is None:
            raise QuestionNotFoundError("question not found")
        return Question(
            id=row["id"],
            leetcode_id=row["leetcode_id"],
            title=row["title"],
            slug=row["slug"],
            difficulty=row["difficulty"],
            category=row["category"],
            is_neetcode_150=bool(row["is_neetcode_150"]),
            created_at=_from_text(row["created_at"]),
        )

    def create_question(self, question: Question) -> str:
        question_id = question.id or _new_id()
        created_at = question.created_at or datetime.now()
        with self._conn:
            self._conn.execute(
                "INSERT INTO questions (id, leetcode_id, title, slug, difficulty,"
                " category, is_neetcode_150, created_at)"
                " VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    question_id,
                    question.leetcode_id,
                    question.title,
                    question.slug,
                    question.difficulty,
                    question.category,
                    int(question.is_neetcode_150),
                    _to_text(created_at),
                ),
            )
        return question_id

    def get_user_stats(self, user_id: str, question_id: str) -> UserQuestionStats | None:
        row = self._query(
            "SELECT * FROM user_question_stats WHERE user_id = ? AND question_id = ?",
            (user_id, question_id),
        ).fetchone()
        if row is None:
            return None
        return UserQuestionStats(
            id=row["id"],
            user_id=row["user_id"],
            question_id=row["question_id"],
            streak=row["streak"],
            ease_factor=row["ease_factor"],
            interval_days=row["interval_days"],
            status=row["status"],
            next_review_at=_from_text(row["next_review_at"]),
            last_reviewed_at=_from_text(row["last_reviewed_at"]),
        )

    def upsert_user_stats(self, stats: UserQuestionStats) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT INTO user_question_stats (id, user_id, question_id, streak,"
                " ease_factor, interval_days, next_review_at, last_reviewed_at, status)"
                " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)"
                " ON CONFLICT (user_id, question_id) DO UPDATE SET"
                " streak = excluded.streak,"
                " ease_factor = excluded.ease_factor,"
                " interval_days = excluded.interval_days,"
                " next_review_at = excluded.next_review_at,"
                " last_reviewed_at = excluded.last_reviewed_at,"
                " status = excluded.status",
                (
                    stats.id or _new_id(),
                    stats.user_id,
                    stats.question_id,
                    stats.streak,
                    stats.ease_factor,
                    stats.interval_days,
                    _to_text(stats.next_review_at),
                    _to_text(stats.last_reviewed_at),
                    stats.status,
                ),
            )

    def create_log(self, log: SubmissionLog) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT INTO study_logs (id, user_id, question_id, status,"
                " mastery_level, attempted_at) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    log.id or _new_id(),
                    log.user_id,
                    log.question_id,
                    log.status,
                    log.mastery_level,
                    _to_text(log.attempted_at),
                ),
            )

    def batch_create_logs(self, logs: Iterable[SubmissionLog]) -> None:
        with self._conn:
            self._conn.executemany(
                "INSERT INTO study_logs (id, user_id, question_id, status, attempted_at)"
                " VALUES (?, ?, ?, ?, ?)",
                (
                    (
                        log.id or _new_id(),
                        log.user_id,
                        log.question_id,
                        log.status,
                        _to_text(log.attempted_at),
                    )
                    for log in logs
                ),
            )

    def get_daily_tasks(
        self, user_id: str, limit: int, now: datetime | None = None
    ) -> list[QuestionTask]:
        now = now if now is not None else datetime.now()
        rows = self._query(
            "SELECT q.id, q.title, q.slug, q.difficulty, s.status,"
            " s.next_review_at, s.interval_days"
            " FROM user_question_stats s JOIN questions q ON s.question_id = q.id"
            " WHERE s.user_id = ?",
            (user_id,),
        ).fetchall()

        candidates = []
        for row in rows:
            next_review = _from_text(row["next_review_at"])
            is_due = next_review is not None and next_review <= now
            if not is_due and row["status"] != STATUS_NEW:
                continue
            overdue_seconds = (
                (now - next_review).total_seconds() if next_review is not None else 0.0
            )
            interval = row["interval_days"]
            priority = (
                _NEW_QUESTION_PRIORITY
                if interval == 0
                else overdue_seconds / (interval * _SECONDS_PER_DAY)
            )
            task = QuestionTask(
                question_id=row["id"],
                title=row["title"],
                slug=row["slug"],
                difficulty=row["difficulty"],
                status=row["status"],
                next_review_at=next_review,
                overdue_by_days=overdue_seconds / _SECONDS_PER_DAY,
            )
            candidates.append((priority, task))

        candidates.sort(key=lambda pair: pair[0], reverse=True)
        return [task for _, task in candidates[: max(limit, 0)]]