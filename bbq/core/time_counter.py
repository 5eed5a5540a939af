from enum import Enum
from bbq.common.logger import log
from bbq.core.clock import Clock, elapsed_time_to_wall_time
from bbq.core.snapshot import TimerSnapshot
from bbq.util.duration import DurationFormatter, format_hh_mm_ss


class RunState(Enum):
    RUNNING = "Running"
    PAUSED = "Paused"
    STOPPED = "Stopped"


# A stopwatch time counter (data model). The run states are {Running, Paused, Stopped}, where Paused is like Stopped
# except it stays visible with controls so it can be resumed. All times are monotonic clock milliseconds, so the
# counter is immune to wall clock changes. There is no internal locking; callers sharing one across threads must
# serialize access themselves.
class TimeCounter:

    # pauseable says whether the host can show a Paused timer with its own controls. When it can't, Paused at 0:00
    # is indistinguishable from Stopped, and load() downgrades it to Stopped.
    def __init__(self, clock=None, formatter=None, pauseable=True):
        self.clock = clock or Clock()
        self.formatter = formatter or DurationFormatter()
        self.pauseable = pauseable

        self._is_running = False
        self._is_paused = False  # distinguishes Paused from Stopped (if not running)
        self._start_time = 0  # monotonic ms when the timer was started
        self._pause_time = 0  # monotonic ms when the timer was paused

    #region === Persistence ===

    def snapshot(self):
        return TimerSnapshot(
            is_running=self._is_running,
            is_paused=self._is_paused,
            start_time=self._start_time,
            pause_time=self._pause_time,
        )

    # Stages the state into the store. The caller commits.
    def save(self, store):
        self.snapshot().write_to(store)
        log.debug(f"Saved {self}")

    # Loads state from the store, enforcing invariants and normalizing it. Returns True if the caller should save()
    # the normalized state right away. That happens when the loaded state is Running or Paused with a future
    # start_time, which means the device rebooted since. That's only detectable until the monotonic clock catches up
    # with the stale start_time, so the repair must be saved before then.
    def load(self, store):
        snap = TimerSnapshot.read_from(store)
        self._is_running = snap.is_running
        self._is_paused = snap.is_paused
        self._start_time = snap.start_time
        self._pause_time = snap.pause_time

        need_to_save = False
        now = self.clock.monotonic_ms()

        if self._is_running:
            self._is_paused = False
            if self._start_time > now:
                log.warning(f"Loaded a Running timer with start time {self._start_time} ahead of the clock ({now}), "
                            f"the device must have rebooted. Stopping it.")
                self.stop()
                need_to_save = True
        elif self._is_paused:
            if self._start_time > self._pause_time or self._start_time > now:
                log.warning(f"Loaded an inconsistent Paused timer (start {self._start_time}, pause "
                            f"{self._pause_time}, clock {now}). Stopping it.")
                self.stop()
                need_to_save = True
            elif self._start_time == self._pause_time and not self.pauseable:
                log.info("Loaded a timer Paused at 0:00, which can't be shown here. Stopping it.")
                self.stop()
                need_to_save = True
        else:
            self.stop()

        log.debug(f"Loaded {self} from schema version {snap.schema_version} (need_to_save={need_to_save})")
        return need_to_save

    #endregion === Persistence ===

    #region === Queries ===

    @property
    def start_time(self):
        return self._start_time

    @property
    def pause_time(self):
        return self._pause_time

    def elapsed_time_to_wall_time(self, elapsed):
        return elapsed_time_to_wall_time(elapsed, self.clock)

    def is_running(self):
        return self._is_running
    def is_paused(self):
        return not self._is_running and self._is_paused
    def is_stopped(self):
        return not self._is_running and not self._is_paused

    # True if Paused at 0:00, the result of reset().
    def is_paused_at_0(self):
        return self.is_paused() and self.elapsed_time() == 0

    def run_state(self):
        if self._is_running:
            return RunState.RUNNING
        elif self._is_paused:
            return RunState.PAUSED
        return RunState.STOPPED

    # Returns the elapsed time in milliseconds, live while Running.
    def elapsed_time(self):
        return (self.clock.monotonic_ms() if self._is_running else self._pause_time) - self._start_time

    #endregion === Queries ===

    #region === Transitions ===

    # Stops and clears the timer to 0:00.
    def stop(self):
        self._start_time = self._pause_time = 0
        self._is_running = False
        self._is_paused = False
        log.debug("Stopped timer")

    # Starts or resumes the timer, keeping whatever time had accumulated before the pause.
    def start(self):
        if not self._is_running:
            self._start_time = self.clock.monotonic_ms() - (self._pause_time - self._start_time)
            self._is_running = True
            self._is_paused = False
            log.debug(f"Started timer at start time {self._start_time}")

    def pause(self):
        if self._is_running:
            self._pause_time = self.clock.monotonic_ms()
            self._is_running = False
            log.debug(f"Paused timer at {self._pause_time}")
        self._is_paused = True

    # Toggles between Running and Paused. Returns True if the timer is now running.
    def toggle_run_pause(self):
        if self._is_running:
            self.pause()
        else:
            self.start()
        return self._is_running

    # Cycles the state: Paused at 0:00 or Stopped -> Running -> Paused -> Stopped.
    def cycle(self):
        if self.is_running():
            self.pause()
        elif self.is_stopped() or self.is_paused_at_0():
            self.start()
        else:
            self.stop()

    # Resets the timer to Paused at 0:00.
    def reset(self):
        self._start_time = self._pause_time = 0
        self._is_running = False
        self._is_paused = True
        log.debug("Reset timer to Paused at 0:00")

    #endregion === Transitions ===

    # Formats this counter's elapsed time as a styled, localized [h:]mm:ss.f duration.
    def format_hh_mm_ss_fraction(self):
        return self.formatter.format_hh_mm_ss_fraction(self.elapsed_time())

    def __str__(self):
        return f"TimeCounter {self.run_state().value} @ {format_hh_mm_ss(self.elapsed_time())}"
