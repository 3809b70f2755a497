import yaml
from pathlib import Path
import os
from typing import Any, Dict, Optional, Tuple
import logging
import re
from collections import namedtuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from prayercal.core.errors import ConfigError

DEFAULT_CONFIG_FILE = "config.yaml"

DEFAULT_OBLIGATORY_PRAYERS = ("Fajr", "Zuhr", "Asr", "Maghrib", "Isha")
DEFAULT_PAYLOAD_PATH = ("props", "pageProps", "defaultSalatInfo", "multiDayTimings")

UID_STRATEGIES = ("random", "stable")

# Immutable run configuration, built once and handed to the source and the synthesizer.
CalendarConfig = namedtuple(
    "CalendarConfig",
    [
        "time_zone",               # IANA zone name; "today" and all local times use it
        "obligatory_prayers",      # tuple of exact, case-sensitive prayer names
        "source_type",             # key for sources.get_source()
        "source_url",
        "payload_path",            # tuple of keys into the embedded JSON
        "request_timeout",         # seconds or None (wait indefinitely)
        "output_dir",
        "output_filename",
        "event_duration_minutes",
        "calendar_name",
        "prod_id",
        "uid_strategy",            # "random" | "stable"
        "log_level",
        "log_file",
    ],
    defaults=(
        "Europe/Berlin",
        DEFAULT_OBLIGATORY_PRAYERS,
        "alislam",
        "https://www.alislam.org/adhan",
        DEFAULT_PAYLOAD_PATH,
        None,
        "docs",
        "gebetszeiten.ics",
        10,
        "Muslimische Gebetszeiten",
        "//alislam.org//Gebetszeiten//DE",
        "random",
        "INFO",
        None,
    ),
)


class Config:
    """Loads config.yaml (optional) plus .env and produces a CalendarConfig"""

    def __init__(self, config_path: Optional[str] = None):
        logging.debug("Initializing Config class")

        self.config_file = Path(config_path or DEFAULT_CONFIG_FILE).resolve()
        self.config_dir = self.config_file.parent

        logging.debug(f"Using config file: {self.config_file}")

        # Load environment variables from .env file
        self._load_env_file()
        self.data = self._load_config()

    def _load_env_file(self) -> None:
        """Load environment variables from .env file"""
        # Look for .env file in config directory or project root
        env_files = [
            self.config_dir / ".env",
            self.config_dir.parent / ".env",
            Path.cwd() / ".env"
        ]

        env_file = None
        for path in env_files:
            if path.exists():
                env_file = path
                break

        if not env_file:
            logging.debug("No .env file found, skipping environment variable loading")
            return

        logging.info(f"Loading environment variables from: {env_file}")
        try:
            with open(env_file, 'r') as f:
                for line in f:
                    line = line.strip()
                    # Skip empty lines and comments
                    if not line or line.startswith('#'):
                        continue

                    # Parse KEY=VALUE format
                    match = re.match(r'^([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$', line)
                    if match:
                        key, value = match.groups()
                        value = value.strip('"').strip("'")
                        # Never override the real environment
                        if key not in os.environ:
                            os.environ[key] = value
                            logging.debug(f"Loaded env var: {key}")
        except OSError as e:
            logging.warning(f"Error loading .env file: {e}")

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively substitute ${VAR_NAME} or $VAR_NAME strings from the environment"""
        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]
        elif isinstance(data, str):
            if data.startswith('${') and data.endswith('}'):
                return os.environ.get(data[2:-1], data)
            elif data.startswith('$') and len(data) > 1:
                return os.environ.get(data[1:], data)
            return data
        return data

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file; a missing file means all defaults"""
        if not self.config_file.exists():
            logging.info(f"No config file at {self.config_file}, using defaults")
            return {}

        logging.debug(f"Loading config from: {self.config_file}")
        try:
            with open(self.config_file) as f:
                new_data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config {self.config_file}: {e}") from e

        if new_data is None:
            return {}
        if not isinstance(new_data, dict):
            raise ConfigError("Invalid config format: root must be a dictionary")

        new_data = self._substitute_env_vars(new_data)
        logging.debug(f"Loaded config data: {new_data}")
        return new_data

    def build(self, **overrides: Any) -> CalendarConfig:
        """Turn the loaded data into a validated CalendarConfig. None overrides are ignored."""
        return build_calendar_config(self.data, **overrides)


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{name}' must be a dictionary")
    return value


def _as_tuple(value: Any, key: str) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = [part for part in value.split(".") if part]
    if not isinstance(value, (list, tuple)) or not value:
        raise ConfigError(f"Config value '{key}' must be a non-empty list")
    return tuple(str(item) for item in value)


def _whole_minutes(value: Any) -> int:
    """Accept ints, integral floats and digit strings; never truncate."""
    if isinstance(value, bool):
        raise ConfigError(f"Invalid event_duration_minutes: {value}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ConfigError(f"event_duration_minutes must be a whole number: {value}")
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid event_duration_minutes: {value}") from e


def build_calendar_config(data: Optional[Dict[str, Any]] = None, **overrides: Any) -> CalendarConfig:
    """Build a CalendarConfig from a raw config mapping, applying defaults and validation."""
    data = data or {}
    defaults = CalendarConfig()
    source = _section(data, "source")
    output = _section(data, "output")
    calendar = _section(data, "calendar")
    log_cfg = _section(data, "logging")

    values = {
        "time_zone": data.get("time_zone", defaults.time_zone),
        "obligatory_prayers": data.get("obligatory_prayers", defaults.obligatory_prayers),
        "source_type": source.get("type", defaults.source_type),
        "source_url": source.get("url", defaults.source_url),
        "payload_path": source.get("payload_path", defaults.payload_path),
        "request_timeout": source.get("request_timeout", defaults.request_timeout),
        "output_dir": output.get("directory", defaults.output_dir),
        "output_filename": output.get("filename", defaults.output_filename),
        "event_duration_minutes": data.get("event_duration_minutes", defaults.event_duration_minutes),
        "calendar_name": calendar.get("name", defaults.calendar_name),
        "prod_id": calendar.get("prod_id", defaults.prod_id),
        "uid_strategy": data.get("uid_strategy", defaults.uid_strategy),
        "log_level": log_cfg.get("level", defaults.log_level),
        "log_file": log_cfg.get("file", defaults.log_file),
    }
    for key, value in overrides.items():
        if key not in values:
            raise ConfigError(f"Unknown config override: {key}")
        if value is not None:
            values[key] = value

    try:
        ZoneInfo(str(values["time_zone"]))
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"Unknown time zone: {values['time_zone']}") from e

    values["obligatory_prayers"] = _as_tuple(values["obligatory_prayers"], "obligatory_prayers")
    values["payload_path"] = _as_tuple(values["payload_path"], "source.payload_path")

    values["event_duration_minutes"] = _whole_minutes(values["event_duration_minutes"])
    if values["event_duration_minutes"] <= 0:
        raise ConfigError("event_duration_minutes must be positive")

    if values["request_timeout"] is not None:
        timeout = values["request_timeout"]
        try:
            if isinstance(timeout, bool):
                raise TypeError("bool")
            values["request_timeout"] = float(timeout)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid source.request_timeout: {timeout}") from e
        # requests rejects zero or negative timeouts with a bare ValueError
        if not values["request_timeout"] > 0:
            raise ConfigError("source.request_timeout must be positive")

    if values["uid_strategy"] not in UID_STRATEGIES:
        raise ConfigError(f"uid_strategy must be one of {', '.join(UID_STRATEGIES)}")

    level = str(values["log_level"]).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"Unknown logging level: {values['log_level']}")
    values["log_level"] = level
    if values["log_file"]:
        values["log_file"] = os.path.expanduser(str(values["log_file"]))

    return CalendarConfig(**values)


def load_config(config_path: Optional[str] = None, **overrides: Any) -> CalendarConfig:
    """Read config file and environment, return the immutable CalendarConfig"""
    return Config(config_path).build(**overrides)
