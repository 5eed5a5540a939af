"""Locale-aware [h:]mm:ss.f duration formatting — pure logic, no UI.

The fractional tenths are truncated, never rounded, so "12:34:56.9" can't turn
into "12:34:57.0" a tick before the integer seconds themselves roll over.
"""

import html
import threading
from html.parser import HTMLParser
from dataclasses import dataclass
from PySide6.QtCore import QLocale
from bbq.common.logger import log

# Template for assembling a styled duration. {hhmmss} is the already-localized [h:]mm:ss string and {fraction} is
# the already-localized fraction like ".7", shrunk so the fast-changing digit is less distracting.
DEFAULT_TIME_STYLE = "{hhmmss}<small><small>{fraction}</small></small>"


#region === Rich text ===

@dataclass(frozen=True)
class Segment:
    text: str
    size: int = 0  # relative size step; each enclosing <small> is -1, each <big> is +1


@dataclass(frozen=True)
class RichDuration:
    """A parsed styled duration: the source markup and its styled text runs."""
    markup: str
    segments: tuple

    @property
    def plain(self):
        return "".join(seg.text for seg in self.segments)

    def __str__(self):
        return self.plain

    # Parses loose HTML the way a rich text label would: entities are decoded, void tags like <br> are ignored
    # and unbalanced tags never raise.
    @classmethod
    def from_markup(cls, markup):
        parser = _SegmentParser()
        parser.feed(markup)
        parser.close()
        return cls(markup=markup, segments=tuple(parser.segments))


_SIZE_STEPS = {"small": -1, "big": 1}
_VOID_TAGS = {"area", "base", "br", "col", "embed", "hr", "img", "input", "link", "meta", "source", "track", "wbr"}

# Emits one Segment per text run, sized by the <small>/<big> tags currently open. Other tags pass through without
# changing the size.
class _SegmentParser(HTMLParser):

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.segments = []
        self._open = []  # (tag, size step) for every open non-void tag

    def handle_starttag(self, tag, attrs):
        if tag not in _VOID_TAGS:
            self._open.append((tag, _SIZE_STEPS.get(tag, 0)))

    def handle_endtag(self, tag):
        # Close the innermost matching tag and anything left open inside it. A stray end tag is dropped.
        for i in range(len(self._open) - 1, -1, -1):
            if self._open[i][0] == tag:
                del self._open[i:]
                return

    def handle_data(self, data):
        if data:
            self.segments.append(Segment(data, sum(step for _, step in self._open)))

#endregion === Rich text ===

#region === Formatting ===

def _clamp(elapsed_ms):
    if elapsed_ms < 0:
        log.debug(f"Clamping negative duration {elapsed_ms} ms to 0")
        return 0
    return int(elapsed_ms)

# Assembles [h:]mm:ss from whole seconds. to_digits renders one number, zero is the locale's zero digit used to
# pad minutes and seconds to two places.
def _compose_hh_mm_ss(seconds, to_digits, zero):
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)

    def two(value):
        text = to_digits(value)
        return zero + text if value < 10 else text

    if hours > 0:
        return f"{to_digits(hours)}:{two(minutes)}:{two(secs)}"
    return f"{two(minutes)}:{two(secs)}"

# Formats a millisecond duration as [h:]mm:ss (no hours field under an hour). With no locale the digits are ASCII.
def format_hh_mm_ss(elapsed_ms, locale=None):
    seconds = _clamp(elapsed_ms) // 1000
    if locale is None:
        return _compose_hh_mm_ss(seconds, str, "0")
    numbers = QLocale(locale)
    numbers.setNumberOptions(QLocale.NumberOption.OmitGroupSeparator)
    return _compose_hh_mm_ss(seconds, numbers.toString, locale.zeroDigit())


class DurationFormatter:
    """Formats durations in the active locale, caching what it derives from it.

    The cache (decimal separator, zero digit, a number locale without grouping)
    is rebuilt lazily whenever ``locale_provider()`` returns a locale different
    from the cached one.  One lock covers both that check and the formatting
    that uses the cache, so a locale change can't slip in between them.
    """

    def __init__(self, locale_provider=QLocale, time_style=DEFAULT_TIME_STYLE):
        self.locale_provider = locale_provider
        self.time_style = time_style
        self._lock = threading.Lock()
        self._locale = None
        self._numbers = None
        self._decimal_point = "."
        self._zero = "0"

    # Must hold self._lock.
    def _ensure_locale(self):
        locale = self.locale_provider()
        if self._locale is not None and locale == self._locale:
            return
        self._locale = QLocale(locale)
        self._numbers = QLocale(locale)
        self._numbers.setNumberOptions(QLocale.NumberOption.OmitGroupSeparator)
        self._decimal_point = locale.decimalPoint()
        self._zero = locale.zeroDigit()
        log.debug(f"Rebuilt duration formatters for locale '{locale.name()}'")

    def format_hh_mm_ss(self, elapsed_ms):
        seconds = _clamp(elapsed_ms) // 1000
        with self._lock:
            self._ensure_locale()
            return _compose_hh_mm_ss(seconds, self._numbers.toString, self._zero)

    # Just the truncated tenths of a second, without the integer part, e.g. ".7" or ",7".
    def format_fraction(self, elapsed_ms):
        tenths = _clamp(elapsed_ms) // 100 % 10
        with self._lock:
            self._ensure_locale()
            return f"{self._decimal_point}{self._numbers.toString(tenths)}"

    def format_hh_mm_ss_fraction(self, elapsed_ms):
        elapsed_ms = _clamp(elapsed_ms)
        with self._lock:
            self._ensure_locale()
            hhmmss = _compose_hh_mm_ss(elapsed_ms // 1000, self._numbers.toString, self._zero)
            fraction = f"{self._decimal_point}{self._numbers.toString(elapsed_ms // 100 % 10)}"
            markup = self.time_style.format(hhmmss=html.escape(hhmmss), fraction=html.escape(fraction))
        return RichDuration.from_markup(markup)

#endregion === Formatting ===

# Returns True if the template fills in with the two placeholders. str.format raises on stray braces, unknown
# fields and positional fields, so a bad template can be rejected once up front instead of on every format.
def is_valid_time_style(time_style):
    try:
        time_style.format(hhmmss="00:00", fraction=".0")
    except (KeyError, IndexError, ValueError, AttributeError):
        return False
    return True
