"""Tests for duration parsing, Options and the logging config file."""

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path

import pytest

from dockercleaner.config import (
    DEFAULT_CONFIG,
    DEFAULT_DOCKER_URL,
    Options,
    build_options,
    load_config,
    parse_duration,
    threshold_seconds,
)
from dockercleaner.exceptions import ConfigError, InvalidDurationError


@pytest.mark.parametrize(
    "value, expected",
    [
        ("24h", timedelta(hours=24)),
        ("90m", timedelta(minutes=90)),
        ("45s", timedelta(seconds=45)),
        ("1h30m15s", timedelta(hours=1, minutes=30, seconds=15)),
        ("1.5h", timedelta(minutes=90)),
        ("500ms", timedelta(milliseconds=500)),
        ("0", timedelta(0)),
        ("-2m", timedelta(minutes=-2)),
    ],
)
def test_parse_duration(value: str, expected: timedelta) -> None:
    assert parse_duration(value) == expected


@pytest.mark.parametrize(
    "value",
    [
        "",
        "24",
        "h",
        "1d",
        "1x",
        "1h 30m",
        "abc",
        "+",
        ".s",
        " 24h ",
        "24h\n",
        "\uff12\uff14h",
        "100000000000h",
        "2562048h",
        "9" * 400 + "h",
    ],
)
def test_parse_duration_rejects_malformed(value: str) -> None:
    with pytest.raises(InvalidDurationError):
        parse_duration(value)


def test_invalid_duration_is_a_value_error() -> None:
    with pytest.raises(ValueError, match="'3 days'"):
        parse_duration("3 days")


def test_threshold_truncates_to_whole_seconds() -> None:
    assert threshold_seconds(parse_duration("1500ms")) == 1
    assert threshold_seconds(parse_duration("30m")) == 1800


def test_build_options_defaults() -> None:
    options = build_options()
    assert options == Options()
    assert options.docker_url == DEFAULT_DOCKER_URL
    assert not options.has_action
    assert not options.cleans_images


def test_build_options_parses_durations() -> None:
    options = build_options(clean_old="24h", stop_old="30m", no_confirm=True)
    assert options.clean_old == timedelta(hours=24)
    assert options.stop_old == timedelta(minutes=30)
    assert options.no_confirm is True
    assert options.has_action
    assert options.cleans_images


def test_clean_none_alone_is_an_action() -> None:
    options = build_options(clean_none=True)
    assert options.has_action
    assert options.cleans_images
    assert options.stop_old is None


def test_build_options_rejects_bad_duration() -> None:
    with pytest.raises(InvalidDurationError):
        build_options(stop_old="forever")


def test_options_are_immutable() -> None:
    options = build_options(clean_none=True)
    with pytest.raises(AttributeError):
        options.clean_none = False  # type: ignore[misc]


def test_load_config_without_path_returns_defaults() -> None:
    assert load_config() == DEFAULT_CONFIG


def test_load_config_merges_known_keys(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"log_level": "DEBUG", "unknown": 1}), encoding="utf-8")
    config = load_config(path)
    assert config == {"log_level": "DEBUG", "log_file": None}


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Could not read"):
        load_config(tmp_path / "missing.json")


def test_load_config_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="not valid JSON"):
        load_config(path)


def test_load_config_requires_object(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError, match="JSON object"):
        load_config(path)


def test_parse_duration_accepts_the_largest_duration() -> None:
    assert parse_duration("2562047h") == timedelta(hours=2562047)
