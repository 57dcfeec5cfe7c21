import sqlite3
from datetime import datetime, timedelta

import pytest

from letracker.models import Question, UserQuestionStats
from letracker.repository import SQLiteRepository
from letracker.service import (
    HistoryItem,
    ImportSubmissionRequest,
    ReviewRequest,
    ReviewService,
    determine_status,
)

T0 = 1_700_000_000
DAY = 86400


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def repo(conn):
    repository = SQLiteRepository(conn)
    repository.create_schema()
    return repository


@pytest.fixture
def service(repo):
    return ReviewService(repo)


def _log_statuses(conn):
    rows = conn.execute(
        "SELECT status FROM study_logs ORDER BY attempted_at"
    ).fetchall()
    return [row[0] for row in rows]


@pytest.mark.parametrize(
    "streak, expected",
    [(0, "LEARNING"), (1, "REVIEW"), (5, "REVIEW"), (6, "MASTERED")],
)
def test_determine_status(streak, expected):
    assert determine_status(streak) == expected


def test_first_review_good_schedules_one_day(service, repo, conn):
    result = service.process_review("u1", ReviewRequest("q1", 2))
    assert result.interval == 1
    assert result.repetitions == 1
    stats = repo.get_user_stats("u1", "q1")
    assert stats.streak == 1
    assert stats.interval_days == 1
    assert stats.status == "REVIEW"
    assert _log_statuses(conn) == ["SOLVED"]


def test_second_good_review_uses_early_stage_interval(service, repo):
    service.process_review("u1", ReviewRequest("q1", 2))
    result = service.process_review("u1", ReviewRequest("q1", 2))
    assert result.interval == 5
    assert repo.get_user_stats("u1", "q1").streak == 2


def test_again_logs_failure_and_resets_streak(service, repo, conn):
    service.process_review("u1", ReviewRequest("q1", 2))
    result = service.process_review("u1", ReviewRequest("q1", 0))
    assert result.repetitions == 0
    assert result.interval == 1
    stats = repo.get_user_stats("u1", "q1")
    assert stats.status == "LEARNING"
    assert stats.ease_factor < 2.5
    assert _log_statuses(conn) == ["SOLVED", "FAILED"]


def test_import_creates_question_and_replays(service, repo, conn):
    request = ImportSubmissionRequest(
        [
            HistoryItem("Two Sum", "two-sum", "Accepted", T0),
            HistoryItem("Two Sum", "two-sum", "Accepted", T0 + 2 * DAY),
        ]
    )
    service.import_history("u1", request)

    question = repo.get_question_by_slug("two-sum")
    assert question.title == "Two Sum"
    assert question.is_neetcode_150 is True

    stats = repo.get_user_stats("u1", question.id)
    assert stats.streak == 2
    assert stats.interval_days == 5
    last = datetime.fromtimestamp(T0 + 2 * DAY)
    assert stats.last_reviewed_at == last
    assert stats.next_review_at == last + timedelta(days=5)
    assert _log_statuses(conn) == ["SOLVED", "SOLVED"]


def test_import_same_session_attempts_only_logged(service, repo, conn):
    request = ImportSubmissionRequest(
        [
            HistoryItem("Two Sum", "two-sum", "Accepted", T0),
            HistoryItem("Two Sum", "two-sum", "Accepted", T0 + 3600),
        ]
    )
    service.import_history("u1", request)
    question = repo.get_question_by_slug("two-sum")
    stats = repo.get_user_stats("u1", question.id)
    assert stats.streak == 1
    assert stats.last_reviewed_at == datetime.fromtimestamp(T0)
    assert len(_log_statuses(conn)) == 2


def test_import_failed_attempt(service, repo, conn):
    request = ImportSubmissionRequest(
        [HistoryItem("Two Sum", "two-sum", "Wrong Answer", T0)]
    )
    service.import_history("u1", request)
    question = repo.get_question_by_slug("two-sum")
    stats = repo.get_user_stats("u1", question.id)
    assert stats.streak == 0
    assert stats.status == "LEARNING"
    assert _log_statuses(conn) == ["FAILED"]


def test_import_sorts_by_timestamp(service, repo):
    request = ImportSubmissionRequest(
        [
            HistoryItem("Two Sum", "two-sum", "Accepted", T0 + 3 * DAY),
            HistoryItem("Two Sum", "two-sum", "Accepted", T0),
        ]
    )
    service.import_history("u1", request)
    question = repo.get_question_by_slug("two-sum")
    stats = repo.get_user_stats("u1", question.id)
    assert stats.last_reviewed_at == datetime.fromtimestamp(T0 + 3 * DAY)
    assert stats.streak == 2


def test_import_reuses_existing_question(service, repo):
    existing_id = repo.create_question(Question(title="Valid Anagram", slug="valid-anagram"))
    service.import_history(
        "u1",
        ImportSubmissionRequest(
            [HistoryItem("Other Title", "valid-anagram", "Accepted", T0)]
        ),
    )
    assert repo.get_question_by_slug("valid-anagram").title == "Valid Anagram"
    assert repo.get_user_stats("u1", existing_id).streak == 1


def test_import_groups_by_slug(service, repo):
    service.import_history(
        "u1",
        ImportSubmissionRequest(
            [
                HistoryItem("Two Sum", "two-sum", "Accepted", T0),
                HistoryItem("Valid Anagram", "valid-anagram", "Accepted", T0 + 10),
            ]
        ),
    )
    for slug in ("two-sum", "valid-anagram"):
        question = repo.get_question_by_slug(slug)
        assert repo.get_user_stats("u1", question.id).streak == 1


def test_today_tasks_limited_to_three(service, repo):
    for n in range(5):
        question_id = repo.create_question(Question(title=f"Q{n}", slug=f"q-{n}"))
        repo.upsert_user_stats(
            UserQuestionStats(user_id="u1", question_id=question_id, status="NEW")
        )
    tasks = service.get_today_tasks("u1")
    assert len(tasks) == 3
    assert all(task.status == "NEW" for task in tasks)


def test_import_request_from_dict():
    request = ImportSubmissionRequest.from_dict(
        {"history": [{"title": "Two Sum", "slug": "two-sum", "status": "Accepted", "timestamp": T0}]}
    )
    assert request.history == [HistoryItem("Two Sum", "two-sum", "Accepted", T0)]


def test_import_request_missing_history_is_empty():
    assert ImportSubmissionRequest.from_dict({}).history == []


@pytest.mark.parametrize(
    "data",
    [
        None,
        [],
        {"history": "nope"},
        {"history": [{"timestamp": "soon"}]},
        {"history": [{"slug": 5}]},
        {"history": [42]},
    ],
)
def test_import_request_rejects_malformed(data):
    with pytest.raises(ValueError):
        ImportSubmissionRequest.from_dict(data)