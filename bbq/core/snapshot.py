"""Persisted timer state: a versioned snapshot of the four TimeCounter fields."""

from dataclasses import dataclass

# Store keys. These are stable across versions; never rename them.
PREF_IS_RUNNING = "Timer_isRunning"
PREF_IS_PAUSED = "Timer_isPaused"  # new in schema version 2
PREF_START_TIME = "Timer_startTime"
PREF_PAUSE_TIME = "Timer_pauseTime"
PREF_SCHEMA_VERSION = "Timer_schemaVersion"

# Version 1 data predates the paused flag; it only knew Running and Stopped.
SCHEMA_VERSION = 2
_LEGACY_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class TimerSnapshot:
    """The raw fields exactly as stored — no invariants enforced here.

    Decoding never fails: every absent or unreadable field takes its default,
    which is what lets version 1 data (no ``Timer_isPaused``) load as "not
    paused".  Repairing inconsistent combinations is TimeCounter.load()'s job.
    """
    is_running: bool = False
    is_paused: bool = False
    start_time: int = 0
    pause_time: int = 0
    schema_version: int = SCHEMA_VERSION

    @classmethod
    def read_from(cls, store):
        return cls(
            is_running=store.get_bool(PREF_IS_RUNNING, False),
            is_paused=store.get_bool(PREF_IS_PAUSED, False),
            start_time=store.get_int(PREF_START_TIME, 0),
            pause_time=store.get_int(PREF_PAUSE_TIME, 0),
            schema_version=store.get_int(PREF_SCHEMA_VERSION, _LEGACY_SCHEMA_VERSION),
        )

    def write_to(self, store):
        store.put_bool(PREF_IS_RUNNING, self.is_running)
        store.put_bool(PREF_IS_PAUSED, self.is_paused)
        store.put_int(PREF_START_TIME, self.start_time)
        store.put_int(PREF_PAUSE_TIME, self.pause_time)
        store.put_int(PREF_SCHEMA_VERSION, SCHEMA_VERSION)
