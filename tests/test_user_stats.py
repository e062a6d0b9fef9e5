"""Tests for per-user submission stats and the profile endpoints."""

from datetime import date, timedelta
from types import SimpleNamespace

from conftest import login, utc
from models import db, Prompt, PromptCategory, Submission
from services.user_stats import NO_FAVORITE_CATEGORY, favorite_category, submission_streaks
from utils.helpers import utcnow

TODAY = date(2024, 3, 10)


def _at(day, hour=12):
    return utc(day.year, day.month, day.day, hour)


class TestSubmissionStreaks:
    """Test submission_streaks."""

    def test_no_submissions(self):
        assert submission_streaks([], TODAY) == (0, 0)

    def test_consecutive_days_up_to_today(self):
        stamps = [_at(TODAY - timedelta(days=n)) for n in range(4)]
        assert submission_streaks(stamps, TODAY) == (4, 4)

    def test_gap_breaks_the_streak(self):
        stamps = [
            _at(TODAY),
            _at(TODAY - timedelta(days=1)),
            # TODAY - 2 missing
            _at(TODAY - timedelta(days=3)),
            _at(TODAY - timedelta(days=4)),
            _at(TODAY - timedelta(days=5)),
        ]
        assert submission_streaks(stamps, TODAY) == (2, 3)

    def test_nothing_today_means_no_current_streak(self):
        stamps = [_at(TODAY - timedelta(days=1)), _at(TODAY - timedelta(days=2))]
        assert submission_streaks(stamps, TODAY) == (0, 2)

    def test_several_submissions_on_one_day_count_once(self):
        stamps = [_at(TODAY, 1), _at(TODAY, 9), _at(TODAY, 23)]
        assert submission_streaks(stamps, TODAY) == (1, 1)

    def test_days_are_utc_calendar_days(self):
        # 23:30 UTC the previous day and naive values stored as UTC
        stamps = [
            utc(2024, 3, 9, 23, 30),
            utc(2024, 3, 10, 0, 15).replace(tzinfo=None),
        ]
        assert submission_streaks(stamps, TODAY) == (2, 2)


class TestFavoriteCategory:
    """Test favorite_category."""

    @staticmethod
    def _submission(category_name):
        category = SimpleNamespace(name=category_name) if category_name else None
        return SimpleNamespace(prompt=SimpleNamespace(category=category))

    def test_none_without_submissions(self):
        assert favorite_category([]) == NO_FAVORITE_CATEGORY

    def test_most_frequent_wins(self):
        subs = [self._submission(n) for n in ("Writing", "Photography", "Photography")]
        assert favorite_category(subs) == "Photography"

    def test_tie_goes_to_first_seen(self):
        subs = [self._submission(n) for n in ("Writing", "Photography")]
        assert favorite_category(subs) == "Writing"

    def test_uncategorized_prompts_are_skipped(self):
        assert favorite_category([self._submission(None)]) == NO_FAVORITE_CATEGORY


class TestProfileEndpoints:
    """Test /api/submissions/user and /api/users/stats."""

    def _submit(self, user, prompt, submitted_at, is_public=True):
        submission = Submission(
            prompt_id=prompt.id, user_id=user.id, type="TEXT",
            status="APPROVED", is_public=is_public, submitted_at=submitted_at,
        )
        db.session.add(submission)
        db.session.commit()
        return submission

    def test_requires_login(self, client, app):
        assert client.get("/api/submissions/user").status_code == 401
        assert client.get("/api/users/stats").status_code == 401

    def test_lists_only_own_submissions(self, client, regular_user, admin_user, make_prompt):
        first = make_prompt("First", utc(2024, 1, 1))
        second = make_prompt("Second", utc(2024, 1, 2))
        self._submit(regular_user, first, utc(2024, 1, 1, 8))
        self._submit(regular_user, second, utc(2024, 1, 2, 8), is_public=False)
        self._submit(admin_user, first, utc(2024, 1, 1, 9))
        login(client, regular_user)

        data = client.get("/api/submissions/user").get_json()["data"]

        assert [s["prompt"]["title"] for s in data] == ["Second", "First"]
        assert data[0]["isPublic"] is False
        assert data[0]["prompt"]["category"] == "Photography"

    def test_stats_with_streak(self, client, regular_user, make_prompt):
        now = utcnow()
        writing = PromptCategory(name="Creative Writing")
        db.session.add(writing)
        db.session.commit()
        prompts = [make_prompt(f"P{n}", utc(2024, 1, 1) + timedelta(days=n)) for n in range(4)]
        extra = Prompt(title="Story", description="d", category_id=writing.id, scheduled_for=utc(2024, 2, 1))
        db.session.add(extra)
        db.session.commit()

        for days_ago, prompt in zip((0, 1, 2, 6), prompts):
            self._submit(regular_user, prompt, now - timedelta(days=days_ago))
        self._submit(regular_user, extra, now - timedelta(days=9))
        login(client, regular_user)

        data = client.get("/api/users/stats").get_json()["data"]

        assert data == {
            "totalSubmissions": 5,
            "currentStreak": 3,
            "longestStreak": 3,
            "favoriteCategory": "Photography",
        }

    def test_stats_when_streak_is_broken(self, client, regular_user, make_prompt):
        now = utcnow()
        prompts = [make_prompt(f"P{n}", utc(2024, 1, 1) + timedelta(days=n)) for n in range(2)]
        self._submit(regular_user, prompts[0], now - timedelta(days=2))
        self._submit(regular_user, prompts[1], now - timedelta(days=3))
        login(client, regular_user)

        data = client.get("/api/users/stats").get_json()["data"]

        assert data["currentStreak"] == 0
        assert data["longestStreak"] == 2

    def test_stats_without_submissions(self, client, regular_user):
        login(client, regular_user)
        data = client.get("/api/users/stats").get_json()["data"]
        assert data == {
            "totalSubmissions": 0,
            "currentStreak": 0,
            "longestStreak": 0,
            "favoriteCategory": NO_FAVORITE_CATEGORY,
        }
