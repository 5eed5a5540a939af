"""Clock sources for the timer — "time since boot" plus the wall clock."""

import time
from PySide6.QtCore import QDateTime, QElapsedTimer

# Linux only. Unlike CLOCK_MONOTONIC it keeps counting while the machine is suspended.
_BOOTTIME = getattr(time, "CLOCK_BOOTTIME", None)


class Clock:
    """Reads the two clocks a TimeCounter needs, in integer milliseconds.

    ``monotonic_ms()`` counts from system boot, so it survives app restarts but
    starts over after a reboot.  On Linux it reads ``CLOCK_BOOTTIME``, which
    includes time spent suspended.  Elsewhere it falls back to Qt's monotonic
    reference (``QElapsedTimer``), which on macOS and some other platforms stops
    while the machine sleeps, so a timer left running over a suspend there
    under-reports by the length of the sleep.  ``wall_ms()`` is real time since
    the Unix epoch, used only to convert readings into wall time for display.
    """

    def monotonic_ms(self):
        if _BOOTTIME is not None:
            return time.clock_gettime_ns(_BOOTTIME) // 1_000_000
        timer = QElapsedTimer()
        timer.start()
        return timer.msecsSinceReference()

    def wall_ms(self):
        return QDateTime.currentMSecsSinceEpoch()


# Converts a monotonic reading to the wall clock time it corresponds to, e.g. for a "started at" label.
def elapsed_time_to_wall_time(elapsed, clock):
    return elapsed - clock.monotonic_ms() + clock.wall_ms()
