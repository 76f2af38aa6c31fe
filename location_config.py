import json
import os

from location_permission import ACCURACY_METERS

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
CONFIG_FILENAME = "config.json"
CONFIG_FILE = os.path.join(SCRIPT_DIR, CONFIG_FILENAME)

# Default Config (Grouped: Meta, Location Manager, Timers, Paths, Features)
DEFAULT_CONFIG = {
    "script_version": "0.1.0",

    "desired_accuracy": "kilometer",
    "distance_filter_m": 5,

    "timeout_s": 60,

    "log_dir": "fixes",

    "export_logs": False,
    "open_settings_on_ok": True
}


def load_config(config_file=CONFIG_FILE):
    """Load config.json over the defaults, writing a default file if there is none."""
    config = DEFAULT_CONFIG.copy()
    if os.path.exists(config_file):
        try:
            with open(config_file, 'r') as f:
                user_config = json.load(f)
            if not isinstance(user_config, dict):
                raise ValueError("expected a JSON object")
            config.update(user_config)
            print(f"Loaded configuration from {config_file}")
        except (OSError, ValueError) as e:
            print(f"Error loading {os.path.basename(config_file)}: {e}. Using defaults.")
    else:
        # Create default config file for user to edit
        try:
            with open(config_file, 'w') as f:
                json.dump(DEFAULT_CONFIG, f, indent=4)
            print(f"Created default configuration: {config_file}")
        except OSError as e:
            print(f"Warning: Could not create {os.path.basename(config_file)}: {e}. Using defaults.")
    return check_config(config)


def check_config(config):
    """Replace values the location manager cannot use with their defaults."""
    accuracy = config.get("desired_accuracy")
    if not isinstance(accuracy, str) or accuracy not in ACCURACY_METERS:
        print(f"Unknown desired_accuracy {accuracy!r}. "
              f"Using {DEFAULT_CONFIG['desired_accuracy']!r}.")
        config["desired_accuracy"] = DEFAULT_CONFIG["desired_accuracy"]

    for key in ("distance_filter_m", "timeout_s"):
        value = config.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            print(f"Invalid {key} {value!r}. Using {DEFAULT_CONFIG[key]}.")
            config[key] = DEFAULT_CONFIG[key]
    return config


def log_dir_path(config, base_dir=SCRIPT_DIR):
    return os.path.join(base_dir, config.get("log_dir", "fixes"))
