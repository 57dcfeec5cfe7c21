# letracker

letracker records your practice on coding problems and works out when each
problem should come up for review again. It has three parts:

- a spaced-repetition scheduler in the SM-2 family,
- SQLite storage,
- a small Flask JSON API.

## Scheduling

`letracker.srs.calculate_next_review(review, now=None, rng=None)` takes a
`ReviewInput` and returns a `ReviewOutput`.

A `ReviewInput` holds:

- `current_interval`
- `current_ef`
- `repetitions`
- `grade`
- `actual_days`, which is optional

A `ReviewOutput` holds:

- `next_review_at`
- `interval`
- `ease_factor`
- `repetitions`

The grade is 0 (Again), 1 (Hard), 2 (Good) or 3 (Easy).

- **Again** schedules the next review one day ahead and resets the streak to 0.
  It lowers the ease factor by 0.2, but never below 1.3.
- **Other grades** change the ease factor by the SM-2 formula, again with a
  floor of 1.3. They also raise the streak by one.
  - **First correct review:** the interval is 1 day.
  - **Second correct review:** the interval is 3, 5 or 7 days, for Hard,
    Good or Easy.
  - **Later reviews:** the interval is the previous interval times the ease
    factor. Hard scales it further by 0.8 and Easy by 1.1.
- **Retention bonus.** It applies on later reviews only.
  - **When:** a Good or Easy answer is given, and `actual_days` is more than
    1.5 times the previous interval.
  - **Effect:** the interval becomes at least `actual_days * 1.5`, and the
    ease factor rises by 0.15.
- **Jitter.** An interval over 10 days is multiplied by a random factor
  between 0.95 and 1.05, then rounded. You can pass `rng`, any object with a
  `random()` method, to control this.
- **Minimum.** The interval is never less than 1 day.

`now` defaults to the current local time.

## Storage

`letracker.repository.Repository` is the abstract storage interface.
`SQLiteRepository` implements it over an `sqlite3` connection.

- Call `create_schema()` once to create three tables: `questions`,
  `user_question_stats` and `study_logs`.
- `get_question_by_slug` raises `QuestionNotFoundError` when no question has
  that slug.
- `get_user_stats` returns `None` for a question the user has never
  practised.
- `get_daily_tasks(user_id, limit, now=None)` returns the user's questions
  that are due, or whose status is `NEW`.
  - Questions with a zero interval come first.
  - The rest are ordered by how overdue they are relative to their interval.

The records are dataclasses in `letracker.models`:

- `Question`
- `SubmissionLog`
- `UserQuestionStats`
- `QuestionTask`, which has `to_dict()`

## Review service

`letracker.service.ReviewService` wraps a repository.

- **`process_review(user_id, ReviewRequest(question_id, grade))`** grades
  one attempt.
  - It stores the new state, with a status from `determine_status`.
  - It logs the attempt as `SOLVED`, or as `FAILED` for grade 0.
  - It returns the `ReviewOutput`.
- **`import_history(user_id, ImportSubmissionRequest)`** replays past
  submissions, oldest first, one question at a time.
  - It creates any question that is missing.
  - `"Accepted"` counts as Good; any other status counts as Again.
  - Every attempt is logged. An attempt less than 12 hours after the last
    scheduled one does not move the schedule.
  - A question that cannot be stored is skipped, with a logged warning.
- **`get_today_tasks(user_id)`** returns up to three tasks.

`determine_status(streak)` maps the streak to a status:

- 0 gives `LEARNING`.
- 1 to 5 gives `REVIEW`.
- More than 5 gives `MASTERED`.

`ImportSubmissionRequest.from_dict` builds a request from decoded JSON of
this shape:
`{"history": [{"title": ..., "slug": ..., "status": ..., "timestamp": <unix seconds>}]}`.
It raises `ValueError` if the data is malformed.

```python
import sqlite3

from letracker.models import Question
from letracker.repository import SQLiteRepository
from letracker.service import ReviewRequest, ReviewService

repo = SQLiteRepository(sqlite3.connect("letracker.db"))
repo.create_schema()
question_id = repo.create_question(Question(title="Two Sum", slug="two-sum"))

service = ReviewService(repo)
result = service.process_review("some-user", ReviewRequest(question_id=question_id, grade=2))
print(result.interval, result.next_review_at)
print(service.get_today_tasks("some-user"))
```

## Web API

`letracker.handler.create_app(service)` returns a Flask application, with
views provided by `ReviewHandler`.

- **`POST /api/v1/reviews`** takes the body
  `{"question_id": "...", "grade": 0-3}`.
  - The grade defaults to 0.
  - The reply holds `next_review_at` (`YYYY-MM-DD HH:MM:SS`),
    `interval_days` and a message.
  - A missing question id, or a grade outside 0–3, gives a 400 reply.
- **`POST /api/v1/reviews/import`** takes an import body as shown above.
  - The reply holds a message and the number of history items.
  - A malformed body gives a 400 reply.
- **`GET /api/v1/tasks/daily`** returns today's date and the task list.

When the service fails, the reply is a 500 with an `error` field.

## What it does not do

- **No authentication.** The API acts for fixed user ids:
  - `test-user-id` for reviews and daily tasks,
  - `00000000-0000-0000-0000-000000000000` for history imports.

  So tasks listed over the API do not include imported history.
- **No command to start the server.** Build the app yourself with
  `create_app`, passing a service backed by a repository whose schema has
  been created, and serve it with Flask.