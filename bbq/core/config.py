import json
from bbq.common.logger import log
from bbq.common.setup import PATHS
from bbq.util.duration import DEFAULT_TIME_STYLE, is_valid_time_style

#region === Helpers and Paths ===

SETTINGS_PATH = PATHS.data / "settings.json"

# Default values for every setting.
_SETTINGS_DEFAULTS = {
    # Whether a Paused timer can be shown with its own controls. When it can't, Paused at 0:00 is unified with
    # Stopped, and TimeCounter.load() downgrades such a state to Stopped.
    "pauseable_notifications": True,
    # Markup template for styled durations, see bbq.util.duration.
    "time_style": DEFAULT_TIME_STYLE,
    # Timer state file inside PATHS.current. A .ini suffix selects the QSettings store.
    "store_file": "timer.json",
}
# Helper to return a truly fresh, default settings dict.
def build_default_settings():
    return dict(_SETTINGS_DEFAULTS)

#endregion === Helpers and Paths ===

#region === Saving and Loading Settings ===

# Loads settings from SETTINGS_PATH, filling in defaults for anything missing or of the wrong type.
def load_settings():
    try:
        if not SETTINGS_PATH.exists():
            log.info(f"No existing settings found at '{SETTINGS_PATH}', using defaults.")
            return build_default_settings()

        with open(SETTINGS_PATH, "r", encoding="utf-8") as f:
            settings = json.load(f)
        if not isinstance(settings, dict):
            log.warning(f"Settings at '{SETTINGS_PATH}' are not a JSON object, using defaults.")
            return build_default_settings()

        defaulted_values = set()
        for key, default in _SETTINGS_DEFAULTS.items():
            if key not in settings or not isinstance(settings[key], type(default)):
                defaulted_values.add(key)
                settings[key] = default

        # A template that can't be filled in would break every formatted duration, so swap it out now.
        if not is_valid_time_style(settings["time_style"]):
            log.warning(f"Ignoring unusable time_style {settings['time_style']!r} from '{SETTINGS_PATH}', using the default.")
            defaulted_values.add("time_style")
            settings["time_style"] = DEFAULT_TIME_STYLE

        # Log results
        if defaulted_values:
            log.warning(f"Loaded settings from '{SETTINGS_PATH}', but with missing values that were defaulted: {', '.join(sorted(defaulted_values))}")
        else:
            log.info(f"Successfully loaded settings from '{SETTINGS_PATH}'.")
        return settings
    # Fall back to defaults in case of error, but warn in log
    except (FileNotFoundError, json.JSONDecodeError, OSError, TypeError):
        log.warning("Ran into an error while trying to load settings.json, falling back to defaults.", exc_info=True)
        return build_default_settings()

# Write the given settings to SETTINGS_PATH
def save_settings(settings):
    with open(SETTINGS_PATH, "w", encoding="utf-8") as f:
        json.dump(settings, f, indent=2)
    log.info(f"Successfully saved settings to '{SETTINGS_PATH}'")

#endregion === Saving and Loading Settings ===
