# services/activation.py

import logging
import threading
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from models import db, Prompt
from utils.helpers import floor_minute, to_iso, utcnow

logger = logging.getLogger(__name__)


# --- Single pass -------------------------------------------------------------
def activation_window(now, interval_minutes):
    window_start = floor_minute(now)
    return window_start, window_start + timedelta(minutes=interval_minutes)


def reconcile_prompts(now, interval_minutes):
    """
    Bring stored is_active flags in line with the current window.
    Inputs:
        - now: reference time (rounded down to the minute)
        - interval_minutes: window width
    Outputs:
        - (activated_count, deactivated_count)
    Side Effects:
        - Activates inactive prompts scheduled inside [window_start, window_end)
        - Deactivates active prompts scheduled before window_start
    Needs an app context. Database errors roll back and propagate.
    """
    window_start, window_end = activation_window(now, interval_minutes)
    logger.info("Current window: %s to %s", to_iso(window_start), to_iso(window_end))

    to_activate = Prompt.query.filter(
        Prompt.scheduled_for >= window_start,
        Prompt.scheduled_for < window_end,
        Prompt.is_active.is_(False),
    ).all()

    to_deactivate = Prompt.query.filter(
        Prompt.is_active.is_(True),
        Prompt.scheduled_for < window_start,
    ).all()

    try:
        if to_deactivate:
            Prompt.query.filter(Prompt.id.in_([p.id for p in to_deactivate])).update(
                {Prompt.is_active: False}, synchronize_session=False
            )
        if to_activate:
            Prompt.query.filter(Prompt.id.in_([p.id for p in to_activate])).update(
                {Prompt.is_active: True}, synchronize_session=False
            )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.error("Prompt reconciliation failed; rolled back")
        raise

    # bulk update skipped the identity map
    db.session.expire_all()

    if to_deactivate:
        logger.info("Deactivated %d old prompt(s)", len(to_deactivate))
    if to_activate:
        logger.info("Activated %d new prompt(s)", len(to_activate))
        for prompt in to_activate:
            logger.info('   - "%s" (%s)', prompt.title, prompt.category.name if prompt.category else "uncategorized")
    else:
        logger.info("No new prompts to activate in this window")

    currently_active = Prompt.query.filter(Prompt.is_active.is_(True)).count()
    logger.info("Currently active prompts: %d", currently_active)

    return len(to_activate), len(to_deactivate)


# --- Background job ----------------------------------------------------------
class ActivationReconciler:
    """
    Runs reconcile_prompts once on start and then every interval_minutes
    (read from the config store at each tick) on a daemon thread.

    stop() is cooperative: the loop waits on an Event, so it wakes as soon as
    stop is requested instead of sleeping out the interval. Ticks are
    serialized; one that would overlap a running tick is skipped.

    Independent of SchedulingConfig.is_active.
    """

    def __init__(self, app, store, clock=utcnow):
        self.app = app
        self.store = store
        self._clock = clock
        self._thread = None
        self._stop_event = threading.Event()
        self._tick_lock = threading.Lock()

    @property
    def is_running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.is_running:
            logger.warning("Prompt reconciler is already running")
            return
        # one Event per run; a thread outliving a timed-out stop() keeps its own, already set
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._loop, args=(self._stop_event,), daemon=True, name="prompt-reconciler",
        )
        self._thread.start()
        logger.info("Started prompt reconciler (every %s minutes)", self._interval_minutes())

    def stop(self, timeout=5):
        """
        Signal the loop and join it. If the join times out (a tick is still
        running), the thread handle is kept and is_running stays True.
        """
        self._stop_event.set()
        thread = self._thread
        if thread is None:
            return
        if thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Prompt reconciler did not stop within %ss; tick still in flight", timeout)
                return
        self._thread = None
        logger.info("Prompt reconciler stopped")

    def wait(self, timeout=None):
        """Block until stop() is called (or timeout). Returns True if stopped."""
        return self._stop_event.wait(timeout)

    def run_once(self, now=None):
        """
        One reconciliation tick inside an app context.
        Returns (activated, deactivated), or None if another tick was in flight.
        """
        if not self._tick_lock.acquire(blocking=False):
            logger.info("Reconciliation tick already in flight, skipping")
            return None
        try:
            with self.app.app_context():
                interval = self.store.get().interval_minutes
                return reconcile_prompts(now if now is not None else self._clock(), interval)
        finally:
            self._tick_lock.release()

    def _interval_minutes(self):
        return self.store.get().interval_minutes

    def _loop(self, stop_event):
        while not stop_event.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Prompt reconciliation tick error")
            if stop_event.wait(self._interval_minutes() * 60):
                return
