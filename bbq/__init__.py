"""Stopwatch-style elapsed time counter with reboot-safe persisted state."""

from bbq.core import TimeCounter, RunState, Clock, TimerSnapshot, open_store
from bbq.util import DurationFormatter, RichDuration, format_hh_mm_ss

__version__ = "0.1.0"
