# services/scheduling_config.py

import json
import logging
import os
import tempfile
from dataclasses import dataclass, replace

from flask import current_app

from utils.helpers import parse_timestamp, to_iso, utcnow

logger = logging.getLogger(__name__)

# --- Defaults ----------------------------------------------------------------
DEFAULT_INTERVAL_MINUTES = 2  # 2 minutes for testing, 1440 for production (24 hours)
DEFAULT_CONFIG_FILENAME = ".scheduling-config.json"
EXTENSION_KEY = "scheduling_config"

# stored key -> dataclass field
_FIELD_KEYS = {
    "intervalMinutes": "interval_minutes",
    "baseTime": "base_time",
    "isActive": "is_active",
}


class SchedulingConfigError(Exception):
    """Raised when the scheduling config cannot be persisted."""


@dataclass(frozen=True)
class SchedulingConfig:
    interval_minutes: int
    base_time: object  # tz-aware UTC datetime
    is_active: bool

    def to_dict(self):
        return {
            "intervalMinutes": self.interval_minutes,
            "baseTime": to_iso(self.base_time),
            "isActive": self.is_active,
        }


def _validate_interval(value):
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"interval_minutes must be a positive integer, got {value!r}")
    return value


class SchedulingConfigStore:
    """
    File-backed store for the process-wide scheduling configuration.

    Reads never fail: a missing file is created with defaults, a corrupt or
    unreadable one falls back to the in-memory default (scheduling inactive).
    Writes replace the whole record atomically and raise SchedulingConfigError
    on failure. There is no locking; concurrent writers are last-writer-wins.
    """

    def __init__(self, path, clock=utcnow):
        self.path = str(path)
        self._clock = clock
        self._default = None

    # --- defaults ------------------------------------------------------------
    def default(self):
        # base_time is pinned at first use so repeated fallbacks agree
        if self._default is None:
            self._default = SchedulingConfig(
                interval_minutes=DEFAULT_INTERVAL_MINUTES,
                base_time=self._clock(),
                is_active=False,
            )
        return self._default

    # --- public API ----------------------------------------------------------
    def get(self):
        if not os.path.exists(self.path):
            config = self.default()
            try:
                self._write(config)
            except SchedulingConfigError:
                logger.warning("Could not persist default scheduling config to %s", self.path)
            return config

        try:
            return self._read()
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Failed to read scheduling config %s: %s", self.path, e)
            return self.default()

    def update(self, **partial):
        unknown = set(partial) - set(_FIELD_KEYS.values())
        if unknown:
            raise ValueError(f"Unknown scheduling config field(s): {', '.join(sorted(unknown))}")

        changes = {k: v for k, v in partial.items() if v is not None}
        if "interval_minutes" in changes:
            _validate_interval(changes["interval_minutes"])
        if "base_time" in changes:
            changes["base_time"] = parse_timestamp(changes["base_time"])
        if "is_active" in changes:
            changes["is_active"] = bool(changes["is_active"])

        merged = replace(self.get(), **changes)
        self._write(merged)
        logger.info(
            "Scheduling config updated: interval=%s base_time=%s active=%s",
            merged.interval_minutes, to_iso(merged.base_time), merged.is_active,
        )
        return merged

    def reset(self):
        config = self.default()
        self._write(config)
        logger.info("Scheduling config reset to defaults")
        return config

    # --- file I/O ------------------------------------------------------------
    def _read(self):
        with open(self.path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise ValueError("scheduling config must be a JSON object")

        # stored keys win over defaults, missing keys fall back
        values = {
            "interval_minutes": self.default().interval_minutes,
            "base_time": self.default().base_time,
            "is_active": self.default().is_active,
        }
        for key, field in _FIELD_KEYS.items():
            if key in raw:
                values[field] = raw[key]

        values["interval_minutes"] = _validate_interval(values["interval_minutes"])
        values["base_time"] = parse_timestamp(values["base_time"])
        if not isinstance(values["is_active"], bool):
            raise ValueError(f"isActive must be a boolean, got {values['is_active']!r}")
        return SchedulingConfig(**values)

    def _write(self, config):
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".scheduling-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(config.to_dict(), f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise SchedulingConfigError(f"Failed to write scheduling config {self.path}: {e}") from e


# --- App wiring --------------------------------------------------------------
def init_app(app):
    """Attach one store per app, built from app.config['SCHEDULING_CONFIG_PATH']."""
    store = SchedulingConfigStore(app.config["SCHEDULING_CONFIG_PATH"])
    app.extensions[EXTENSION_KEY] = store
    return store


def get_store():
    """The store for the current app; routes pass it (or its values) to the scheduling services."""
    return current_app.extensions[EXTENSION_KEY]
