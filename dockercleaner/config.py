import json
import re
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

from .exceptions import ConfigError, InvalidDurationError

DEFAULT_DOCKER_URL = "unix:///var/run/docker.sock"

DEFAULT_CONFIG = {
    "log_level": "INFO",
    "log_file": None,  # console only unless set
}

# seconds per unit, same units the `1h30m` grammar accepts
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1,
    "m": 60,
    "h": 3600,
}
_DURATION_PART = re.compile(r"([0-9]+\.?[0-9]*|\.[0-9]+)(ns|us|µs|μs|ms|s|m|h)")
# largest duration a signed 64-bit nanosecond count can hold, about 2562047h
MAX_DURATION_SECONDS = (2**63 - 1) / 1e9


def parse_duration(value: str) -> timedelta:
    """Parses a duration such as '24h', '90m' or '1h30m15s' into a timedelta."""
    text = value
    sign = 1
    if text[:1] in ("-", "+"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    if text == "0":
        return timedelta(0)
    if not text:
        raise InvalidDurationError(value)

    seconds = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise InvalidDurationError(value)
        number, unit = match.groups()
        seconds += float(number) * _DURATION_UNITS[unit]
        pos = match.end()

    if seconds > MAX_DURATION_SECONDS:
        raise InvalidDurationError(value)
    return timedelta(seconds=sign * seconds)


def threshold_seconds(duration: timedelta) -> int:
    """Whole seconds of a duration, truncated toward zero."""
    return int(duration.total_seconds())


@dataclass(frozen=True)
class Options:
    """Everything one cleanup run needs, fixed once the command line is parsed."""

    docker_url: str = DEFAULT_DOCKER_URL
    clean_old: Optional[timedelta] = None
    clean_none: bool = False
    stop_old: Optional[timedelta] = None
    no_confirm: bool = False
    dry_run: bool = False

    @property
    def has_action(self) -> bool:
        return self.clean_none or self.clean_old is not None or self.stop_old is not None

    @property
    def cleans_images(self) -> bool:
        return self.clean_none or self.clean_old is not None


def build_options(
    docker_url: str = DEFAULT_DOCKER_URL,
    clean_old: str = "",
    clean_none: bool = False,
    stop_old: str = "",
    no_confirm: bool = False,
    dry_run: bool = False,
) -> Options:
    """Builds Options from raw flag values. Empty duration strings mean 'not set'."""
    return Options(
        docker_url=docker_url,
        clean_old=parse_duration(clean_old) if clean_old else None,
        clean_none=clean_none,
        stop_old=parse_duration(stop_old) if stop_old else None,
        no_confirm=no_confirm,
        dry_run=dry_run,
    )


def load_config(path: Optional[Path] = None) -> dict:
    """Loads the logging configuration from a JSON file, falling back to defaults."""
    config = dict(DEFAULT_CONFIG)
    if path is None:
        return config
    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config file {path} is not valid JSON: {e}") from e
    except OSError as e:
        raise ConfigError(f"Could not read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a JSON object")

    # Only known keys are taken, the rest is ignored
    for key in DEFAULT_CONFIG:
        if key in data:
            config[key] = data[key]
    return config
