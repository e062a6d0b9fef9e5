"""Tests for the cyclic prompt rotation."""

from datetime import timedelta

import pytest

from conftest import utc
from services.rotation import NO_PROMPT_INDEX, RotationWindow, calculate_rotation, current_rotation
from services.scheduling_config import SchedulingConfig

BASE = utc(2024, 1, 1)


class TestCalculateRotation:
    """Test calculate_rotation."""

    @pytest.mark.parametrize("now, expected_index", [
        (utc(2024, 1, 1, 0, 0, 30), 0),
        (utc(2024, 1, 1, 0, 2, 30), 1),
        (utc(2024, 1, 1, 0, 8, 1), 0),
    ])
    def test_walks_prompts_and_wraps(self, now, expected_index):
        window = calculate_rotation(now, BASE, 2, 4)
        assert window.index == expected_index

    def test_no_prompts_gives_sentinel(self):
        now = utc(2024, 1, 1, 0, 5)
        window = calculate_rotation(now, BASE, 2, 0)
        assert window.index == NO_PROMPT_INDEX
        assert not window.has_prompt
        assert window.interval_start == now
        assert window.interval_end == now

    def test_is_deterministic(self):
        now = utc(2024, 3, 7, 13, 41, 12)
        assert calculate_rotation(now, BASE, 15, 7) == calculate_rotation(now, BASE, 15, 7)

    def test_window_contains_now_and_spans_one_interval(self):
        for offset in (0, 59, 119, 120, 121, 3600, 86399):
            now = BASE + timedelta(seconds=offset)
            window = calculate_rotation(now, BASE, 2, 3)
            assert window.interval_start <= now < window.interval_end
            assert window.interval_end - window.interval_start == timedelta(minutes=2)

    def test_interval_boundary_starts_next_prompt(self):
        window = calculate_rotation(BASE + timedelta(minutes=2), BASE, 2, 3)
        assert window.index == 1
        assert window.interval_start == BASE + timedelta(minutes=2)

    def test_every_prompt_shown_once_per_cycle(self):
        total = 5
        indices = [
            calculate_rotation(BASE + timedelta(minutes=10 * i, seconds=1), BASE, 10, total).index
            for i in range(3 * total)
        ]
        assert indices == list(range(total)) * 3

    def test_before_base_time_cycles_backwards(self):
        window = calculate_rotation(BASE - timedelta(seconds=30), BASE, 2, 4)
        assert window.index == 3
        assert window.interval_start == BASE - timedelta(minutes=2)
        assert window.interval_end == BASE

    def test_far_before_base_time_stays_in_range(self):
        window = calculate_rotation(BASE - timedelta(days=3, minutes=1), BASE, 7, 6)
        assert 0 <= window.index < 6
        assert window.interval_start <= BASE - timedelta(days=3, minutes=1) < window.interval_end

    def test_accepts_naive_utc_datetimes(self):
        naive_now = utc(2024, 1, 1, 0, 2, 30).replace(tzinfo=None)
        window = calculate_rotation(naive_now, BASE.replace(tzinfo=None), 2, 4)
        assert window.index == 1
        assert window.interval_start.tzinfo is not None


class TestRotationWindow:
    """Test RotationWindow helpers."""

    def test_seconds_remaining(self):
        window = RotationWindow(0, BASE, BASE + timedelta(minutes=2))
        assert window.seconds_remaining(BASE + timedelta(seconds=30)) == 90

    def test_seconds_remaining_never_negative(self):
        window = RotationWindow(0, BASE, BASE + timedelta(minutes=2))
        assert window.seconds_remaining(BASE + timedelta(minutes=5)) == 0


class TestCurrentRotation:
    """Test current_rotation against a SchedulingConfig."""

    def test_uses_config_base_and_interval(self):
        config = SchedulingConfig(interval_minutes=5, base_time=BASE, is_active=True)
        window = current_rotation(config, 3, now=BASE + timedelta(minutes=11))
        assert window.index == 2
        assert window.interval_start == BASE + timedelta(minutes=10)
