"""Tests for the linear schedule report and rescheduling."""

from datetime import timedelta
from types import SimpleNamespace

from conftest import utc
from services.reconciliation import (
    STATUS_COMPLETED,
    STATUS_UPCOMING,
    build_schedule_report,
    expected_slot,
    next_slot_after,
    reschedule_all,
)
from services.scheduling_config import SchedulingConfig

BASE = utc(2024, 1, 1)


def _prompt(scheduled_for, is_active=False):
    return SimpleNamespace(scheduled_for=scheduled_for, is_active=is_active)


def _config(interval=2):
    return SchedulingConfig(interval_minutes=interval, base_time=BASE, is_active=True)


class TestExpectedSlot:
    """Test expected_slot."""

    def test_positions_are_one_interval_apart(self):
        assert expected_slot(BASE, 2, 0) == BASE
        assert expected_slot(BASE, 2, 3) == BASE + timedelta(minutes=6)


class TestBuildScheduleReport:
    """Test build_schedule_report."""

    def test_drift_just_under_a_minute_is_on_schedule(self):
        prompts = [_prompt(BASE + timedelta(milliseconds=59999))]
        report = build_schedule_report(prompts, _config(), BASE)
        assert report.records[0].is_on_schedule is True

    def test_drift_of_a_minute_is_off_schedule(self):
        prompts = [_prompt(BASE + timedelta(milliseconds=60000))]
        report = build_schedule_report(prompts, _config(), BASE)
        assert report.records[0].is_on_schedule is False

    def test_early_drift_counts_too(self):
        prompts = [_prompt(BASE - timedelta(minutes=3))]
        record = build_schedule_report(prompts, _config(), BASE).records[0]
        assert record.is_on_schedule is False
        assert record.drift == timedelta(minutes=-3)

    def test_status_split_at_now(self):
        prompts = [
            _prompt(BASE),
            _prompt(BASE + timedelta(minutes=2)),
            _prompt(BASE + timedelta(minutes=4)),
        ]
        report = build_schedule_report(prompts, _config(), BASE + timedelta(minutes=2))
        # a prompt scheduled exactly at now has not completed yet
        assert [r.status for r in report.records] == [STATUS_COMPLETED, STATUS_UPCOMING, STATUS_UPCOMING]

    def test_next_slot_follows_last_prompt(self):
        prompts = [_prompt(BASE), _prompt(BASE + timedelta(minutes=30))]
        report = build_schedule_report(prompts, _config(), BASE)
        assert report.next_available_slot == BASE + timedelta(minutes=32)

    def test_next_slot_without_prompts_is_one_interval_from_now(self):
        now = BASE + timedelta(minutes=7, seconds=13)
        report = build_schedule_report([], _config(5), now)
        assert report.records == []
        assert report.next_available_slot == now + timedelta(minutes=5)

    def test_stats(self):
        prompts = [
            _prompt(BASE, is_active=True),
            _prompt(BASE + timedelta(minutes=2)),
            _prompt(BASE + timedelta(minutes=9)),
        ]
        report = build_schedule_report(prompts, _config(), BASE + timedelta(minutes=1))
        assert report.stats == {
            "totalPrompts": 3,
            "activePrompts": 1,
            "completedPrompts": 1,
            "upcomingPrompts": 2,
            "onSchedulePrompts": 2,
            "currentInterval": 2,
            "nextAvailableSlot": "2024-01-01T00:11:00.000Z",
            "baseTime": "2024-01-01T00:00:00.000Z",
        }

    def test_does_not_modify_prompts(self):
        prompt = _prompt(BASE + timedelta(minutes=17))
        build_schedule_report([prompt], _config(), BASE)
        assert prompt.scheduled_for == BASE + timedelta(minutes=17)

    def test_naive_stored_times_are_treated_as_utc(self):
        prompts = [_prompt((BASE + timedelta(minutes=2)).replace(tzinfo=None))]
        record = build_schedule_report(prompts, _config(), BASE).records[0]
        assert record.actual == BASE + timedelta(minutes=2)


class TestNextSlotAfter:
    """Test next_slot_after."""

    def test_after_last_scheduled(self):
        assert next_slot_after(BASE, 15, BASE + timedelta(days=1)) == BASE + timedelta(minutes=15)

    def test_from_now_rounded_to_minute(self):
        now = BASE + timedelta(minutes=3, seconds=42, microseconds=5)
        assert next_slot_after(None, 15, now) == BASE + timedelta(minutes=18)


class TestRescheduleAll:
    """Test reschedule_all."""

    def test_lays_prompts_back_to_back(self):
        prompts = [
            _prompt(BASE + timedelta(hours=5), is_active=True),
            _prompt(BASE + timedelta(hours=9)),
            _prompt(BASE + timedelta(days=2)),
        ]
        new_base = utc(2024, 2, 1, 9)

        count = reschedule_all(prompts, new_base, 60)

        assert count == 3
        assert [p.scheduled_for for p in prompts] == [
            new_base, new_base + timedelta(hours=1), new_base + timedelta(hours=2),
        ]

    def test_keeps_active_flags(self):
        prompts = [_prompt(BASE, is_active=False), _prompt(BASE, is_active=True)]
        reschedule_all(prompts, BASE, 2)
        assert [p.is_active for p in prompts] == [False, True]

    def test_report_after_reschedule_is_all_on_schedule(self):
        prompts = [_prompt(BASE + timedelta(minutes=m)) for m in (3, 11, 40)]
        reschedule_all(prompts, BASE, 2)
        report = build_schedule_report(prompts, _config(2), BASE)
        assert report.stats["onSchedulePrompts"] == 3

    def test_empty(self):
        assert reschedule_all([], BASE, 2) == 0
