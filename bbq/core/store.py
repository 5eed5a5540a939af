import json
from pathlib import Path
from PySide6.QtCore import QSettings
from bbq.common.logger import log
from bbq.util import now_iso

_FILE_SCHEMA_VERSION = 1

#region === Store Interface ===

# A small typed key/value store, shaped after the platform preference stores the timer state lives in. Writes are
# staged with put_*() and only made durable by commit(), so a group of puts lands together.
class KeyValueStore:

    def contains(self, key):
        raise NotImplementedError

    def get_bool(self, key, default=False):
        raise NotImplementedError
    def get_int(self, key, default=0):
        raise NotImplementedError

    def put_bool(self, key, value):
        raise NotImplementedError
    def put_int(self, key, value):
        raise NotImplementedError

    def commit(self):
        raise NotImplementedError

#endregion === Store Interface ===

#region === Implementations ===

# Plain dict-backed store, for tests and for embedding the timer without any file behind it.
class MemoryStore(KeyValueStore):

    def __init__(self, values=None):
        self.values = dict(values or {})
        self.commits = 0

    def contains(self, key):
        return key in self.values

    def get_bool(self, key, default=False):
        value = self.values.get(key, default)
        return value if isinstance(value, bool) else default
    def get_int(self, key, default=0):
        value = self.values.get(key, default)
        # bool is an int subclass, but a stored bool is never a valid timestamp.
        return value if isinstance(value, int) and not isinstance(value, bool) else default

    def put_bool(self, key, value):
        self.values[key] = bool(value)
    def put_int(self, key, value):
        self.values[key] = int(value)

    def commit(self):
        self.commits += 1


# Store persisted as a small JSON document: {"meta": {...}, "values": {...}}. Values are read on construction and
# written back whole on commit().
class JsonFileStore(MemoryStore):

    def __init__(self, path):
        super().__init__()
        self.path = Path(path)
        self.values = self._read()

    def _read(self):
        try:
            if not self.path.exists():
                log.info(f"No existing store found at '{self.path}', starting empty.")
                return {}
            with open(self.path, "r", encoding="utf-8") as f:
                doc = json.load(f)
            if not isinstance(doc, dict) or not isinstance(doc.get("values"), dict):
                log.warning(f"Store at '{self.path}' has no usable 'values' section, starting empty.")
                return {}
            log.debug(f"Loaded {len(doc['values'])} values from '{self.path}'")
            return dict(doc["values"])
        # Fall back to an empty store in case of error, but warn in log
        except (FileNotFoundError, json.JSONDecodeError, OSError, TypeError):
            log.warning(f"Ran into an error while trying to read '{self.path}', starting empty.", exc_info=True)
            return {}

    def commit(self):
        doc = {
            "meta": {
                "schema_version": _FILE_SCHEMA_VERSION,
                "saved_at": now_iso(),
            },
            "values": self.values,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(doc, f, indent=2)
        self.commits += 1
        log.debug(f"Committed {len(self.values)} values to '{self.path}'")


# Store backed by a QSettings INI file. INI values come back as strings, so every read names its type explicitly.
class QSettingsStore(KeyValueStore):

    def __init__(self, path):
        self.path = Path(path)
        self.settings = QSettings(str(self.path), QSettings.Format.IniFormat)

    def contains(self, key):
        return self.settings.contains(key)

    def get_bool(self, key, default=False):
        if not self.settings.contains(key):
            return default
        return self.settings.value(key, default, type=bool)
    def get_int(self, key, default=0):
        if not self.settings.contains(key):
            return default
        try:
            return int(self.settings.value(key, default))
        except (TypeError, ValueError):
            log.warning(f"Ignoring non-integer value for '{key}' in '{self.path}'")
            return default

    def put_bool(self, key, value):
        self.settings.setValue(key, bool(value))
    def put_int(self, key, value):
        self.settings.setValue(key, int(value))

    def commit(self):
        self.settings.sync()
        if self.settings.status() != QSettings.Status.NoError:
            raise OSError(f"Could not write settings to '{self.path}': {self.settings.status()}")
        log.debug(f"Synced settings to '{self.path}'")

#endregion === Implementations ===

# Picks a store implementation from the file suffix: .ini files go through QSettings, everything else is JSON.
def open_store(path):
    path = Path(path)
    if path.suffix.lower() == ".ini":
        return QSettingsStore(path)
    return JsonFileStore(path)
