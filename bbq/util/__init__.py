from bbq.util.misc import now_iso
from bbq.util.duration import DurationFormatter, RichDuration, format_hh_mm_ss
