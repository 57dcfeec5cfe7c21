"""HTTP endpoints for submitting reviews, importing history and listing tasks."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

from flask import Flask, Response, jsonify, request

from .service import ImportSubmissionRequest, ReviewRequest, ReviewService

logger = logging.getLogger(__name__)

REVIEW_USER_ID = "test-user-id"
IMPORT_USER_ID = "00000000-0000-0000-0000-000000000000"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
SUCCESS_MESSAGE = "Review recorded successfully. Keep it up!"


class RequestValidationError(ValueError):
    """Raised when a request body is missing fields or has bad values."""


@dataclass(frozen=True)
class SubmitReviewRequest:
    """Body of a review submission. Grades: 0 again, 1 hard, 2 good, 3 easy."""

    question_id: str
    grade: int = 0

    @classmethod
    def from_json(cls, data: Any) -> SubmitReviewRequest:
        """Validate decoded JSON and build the request."""
        if not isinstance(data, Mapping):
            raise RequestValidationError("request body must be a JSON object")

        question_id = data.get("question_id")
        if question_id is not None and not isinstance(question_id, str):
            raise RequestValidationError("question_id must be a string")
        if not question_id:
            raise RequestValidationError("question_id is required")

        grade = data.get("grade")
        if grade is None:
            grade = 0
        if isinstance(grade, bool) or not isinstance(grade, int):
            raise RequestValidationError("grade must be an integer")
        if not 0 <= grade <= 3:
            raise RequestValidationError("grade must be between 0 and 3")

        return cls(question_id=question_id, grade=grade)


@dataclass(frozen=True)
class SubmitReviewResponse:
    """Reply to a review submission."""

    next_review_at: str
    interval_days: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping."""
        return {
            "next_review_at": self.next_review_at,
            "interval_days": self.interval_days,
            "message": self.message,
        }


class ReviewHandler:
    """Flask views backed by a review service."""

    def __init__(self, service: ReviewService) -> None:
        self._service = service

    def submit_review(self) -> tuple[Response, int]:
        """Handle a single graded review."""
        try:
            body = SubmitReviewRequest.from_json(request.get_json(silent=True))
        except RequestValidationError as err:
            return jsonify({"error": str(err)}), 400

        try:
            result = self._service.process_review(
                REVIEW_USER_ID, ReviewRequest(body.question_id, body.grade)
            )
        except Exception:
            logger.exception("processing review failed")
            return jsonify({"error": "Failed to process review"}), 500

        response = SubmitReviewResponse(
            next_review_at=result.next_review_at.strftime(TIMESTAMP_FORMAT),
            interval_days=result.interval,
            message=SUCCESS_MESSAGE,
        )
        return jsonify(response.to_dict()), 200

    def import_history(self) -> tuple[Response, int]:
        """Handle a batch import of past submissions."""
        try:
            body = ImportSubmissionRequest.from_dict(request.get_json(silent=True))
        except ValueError as err:
            return jsonify({"error": f"Invalid JSON format: {err}"}), 400

        try:
            self._service.import_history(IMPORT_USER_ID, body)
        except Exception as err:
            logger.exception("history import failed")
            return jsonify({"error": f"Import failed: {err}"}), 500

        return (
            jsonify(
                {
                    "message": "History imported successfully",
                    "count": len(body.history),
                }
            ),
            200,
        )

    def daily_tasks(self) -> tuple[Response, int]:
        """List today's questions."""
        try:
            tasks = self._service.get_today_tasks(REVIEW_USER_ID)
        except Exception:
            logger.exception("fetching tasks failed")
            return jsonify({"error": "Failed to fetch tasks"}), 500

        return (
            jsonify(
                {
                    "date": date.today().isoformat(),
                    "tasks": [task.to_dict() for task in tasks],
                }
            ),
            200,
        )


def create_app(service: ReviewService) -> Flask:
    """Build the Flask application serving the review API."""
    app = Flask(__name__)
    handler = ReviewHandler(service)
    app.add_url_rule(
        "/api/v1/reviews",
        endpoint="submit_review",
        view_func=handler.submit_review,
        methods=["POST"],
    )
    app.add_url_rule(
        "/api/v1/reviews/import",
        endpoint="import_history",
        view_func=handler.import_history,
        methods=["POST"],
    )
    app.add_url_rule(
        "/api/v1/tasks/daily",
        endpoint="daily_tasks",
        view_func=handler.daily_tasks,
        methods=["GET"],
    )
    return app