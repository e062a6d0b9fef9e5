# services/rotation.py

from dataclasses import dataclass
from datetime import datetime, timedelta

from utils.helpers import as_utc, utcnow

NO_PROMPT_INDEX = -1


@dataclass(frozen=True)
class RotationWindow:
    """
    Which prompt is current, and the interval it is current for.
    index == NO_PROMPT_INDEX means there is nothing to show.
    """
    index: int
    interval_start: datetime
    interval_end: datetime

    @property
    def has_prompt(self):
        return self.index != NO_PROMPT_INDEX

    def seconds_remaining(self, now=None):
        now = as_utc(now) if now is not None else utcnow()
        return max(0, int((self.interval_end - now).total_seconds()))


def calculate_rotation(now, base_time, interval_minutes, total_prompts):
    """
    Map wall-clock time onto a repeating cycle over `total_prompts` prompts.

    Each prompt gets one interval of `interval_minutes`, counted from
    `base_time`; after the last prompt the cycle starts over. Times before
    `base_time` walk the cycle backwards (floor division + true modulo), so
    one interval before base time is the last prompt, not the first.

    Pure: same inputs, same RotationWindow.
    """
    now = as_utc(now)
    if total_prompts <= 0:
        return RotationWindow(NO_PROMPT_INDEX, now, now)

    base_time = as_utc(base_time)
    interval = timedelta(minutes=interval_minutes)

    # timedelta // timedelta floors, so negative elapsed rounds down, not toward zero
    intervals_passed = (now - base_time) // interval
    index = intervals_passed % total_prompts

    interval_start = base_time + intervals_passed * interval
    return RotationWindow(index, interval_start, interval_start + interval)


def current_rotation(config, total_prompts, now=None):
    """Rotation for `config` (a SchedulingConfig) at `now` (defaults to the current time)."""
    return calculate_rotation(
        now if now is not None else utcnow(),
        config.base_time,
        config.interval_minutes,
        total_prompts,
    )
