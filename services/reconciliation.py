# services/reconciliation.py

"""
Linear schedule model: prompts laid out back-to-back from base_time, one per
interval, each used once. Backs the admin drift report and rescheduling.
The "current prompt" rotation is the cyclic model in services/rotation.py.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from utils.helpers import as_utc, floor_minute, to_iso

ON_SCHEDULE_TOLERANCE = timedelta(minutes=1)

STATUS_COMPLETED = "completed"
STATUS_UPCOMING = "upcoming"


@dataclass(frozen=True)
class ScheduleHealthRecord:
    prompt: object
    position: int
    expected: datetime
    actual: datetime
    is_on_schedule: bool
    status: str

    @property
    def drift(self):
        return self.actual - self.expected


@dataclass
class ScheduleReport:
    records: list
    next_available_slot: datetime
    base_time: datetime
    interval_minutes: int
    stats: dict = field(default_factory=dict)


def expected_slot(base_time, interval_minutes, position):
    """Slot the prompt at 0-based `position` should occupy."""
    return as_utc(base_time) + position * timedelta(minutes=interval_minutes)


def next_slot_after(last_scheduled, interval_minutes, now):
    """
    First free slot for a new prompt: one interval after the last scheduled
    prompt, or one interval from now (on the minute) if there are none.
    The empty case rounds now down to the minute on purpose, so it does not
    match the report's unrounded now + interval; new slots land on whole minutes.
    """
    if last_scheduled is not None:
        return as_utc(last_scheduled) + timedelta(minutes=interval_minutes)
    return floor_minute(now) + timedelta(minutes=interval_minutes)


def build_schedule_report(prompts, config, now):
    """
    Compare each prompt's stored slot with the slot it should hold.

    Inputs:
        - prompts: ordered by scheduled_for ascending; need .scheduled_for and .is_active
        - config: SchedulingConfig
        - now: reference time for completed/upcoming
    Outputs:
        - ScheduleReport (read-only; prompts are not modified)
    """
    now = as_utc(now)
    interval = timedelta(minutes=config.interval_minutes)

    records = []
    for position, prompt in enumerate(prompts):
        expected = expected_slot(config.base_time, config.interval_minutes, position)
        actual = as_utc(prompt.scheduled_for)
        records.append(ScheduleHealthRecord(
            prompt=prompt,
            position=position,
            expected=expected,
            actual=actual,
            is_on_schedule=abs(expected - actual) < ON_SCHEDULE_TOLERANCE,
            status=STATUS_COMPLETED if now > actual else STATUS_UPCOMING,
        ))

    if records:
        next_available = records[-1].actual + interval
    else:
        next_available = now + interval

    report = ScheduleReport(
        records=records,
        next_available_slot=next_available,
        base_time=as_utc(config.base_time),
        interval_minutes=config.interval_minutes,
    )
    report.stats = {
        "totalPrompts": len(records),
        "activePrompts": sum(1 for r in records if r.prompt.is_active),
        "completedPrompts": sum(1 for r in records if r.status == STATUS_COMPLETED),
        "upcomingPrompts": sum(1 for r in records if r.status == STATUS_UPCOMING),
        "onSchedulePrompts": sum(1 for r in records if r.is_on_schedule),
        "currentInterval": config.interval_minutes,
        "nextAvailableSlot": to_iso(next_available),
        "baseTime": to_iso(config.base_time),
    }
    return report


def reschedule_all(prompts, base_time, interval_minutes):
    """
    Lay `prompts` (already in ascending scheduled_for order) back onto the
    linear schedule. Only scheduled_for changes; is_active is left alone.
    Caller commits.
    """
    for position, prompt in enumerate(prompts):
        prompt.scheduled_for = expected_slot(base_time, interval_minutes, position)
    return len(prompts)
