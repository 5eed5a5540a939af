from bbq.core.clock import Clock, elapsed_time_to_wall_time
from bbq.core.snapshot import TimerSnapshot
from bbq.core.store import KeyValueStore, MemoryStore, JsonFileStore, QSettingsStore, open_store
from bbq.core.time_counter import RunState, TimeCounter
