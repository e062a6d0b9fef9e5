# services/user_stats.py

from collections import Counter
from datetime import timedelta

from utils.helpers import as_utc

NO_FAVORITE_CATEGORY = "None"


def submission_streaks(submitted_at, today):
    """
    Daily submission streaks, counted on UTC calendar days.
    Inputs:
        - submitted_at: iterable of submission timestamps (any order, repeats fine)
        - today: date the current streak counts back from
    Outputs:
        - (current_streak, longest_streak)
    The current streak is 0 unless there is a submission on `today`.
    """
    days = {as_utc(ts).date() for ts in submitted_at if ts is not None}
    one_day = timedelta(days=1)

    current = 0
    day = today
    while day in days:
        current += 1
        day -= one_day

    longest = run = 0
    previous = None
    for day in sorted(days):
        run = run + 1 if previous is not None and day - previous == one_day else 1
        longest = max(longest, run)
        previous = day

    return current, longest


def favorite_category(submissions):
    """
    Category name the user submitted to most often.
    Ties go to whichever category comes first in `submissions`.
    """
    counts = Counter(
        s.prompt.category.name
        for s in submissions
        if s.prompt is not None and s.prompt.category is not None
    )
    if not counts:
        return NO_FAVORITE_CATEGORY
    return counts.most_common(1)[0][0]
