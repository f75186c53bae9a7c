"""Race configuration: loading from JSON and parsing of time spans."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from os import PathLike
from pathlib import Path
from typing import Any, Mapping, Union

logger = logging.getLogger(__name__)

CONFIG_PATH = Path("files/configs/config.json")
EVENTS_PATH = Path("files/events/events.txt")

_HHMMSS = re.compile(r"(\d{1,2}):(\d{2}):(\d{2})(?:[.,]\d+)?")


class ConfigError(Exception):
    """Raised when a race configuration cannot be opened, read or decoded."""


@dataclass(frozen=True)
class ConfigInfo:
    """Settings of a single race."""

    laps_count: int = 0
    lap_len: int = 0
    penalty_lap_len: int = 0
    firing_lines_count: int = 0
    start_time: str = ""
    start_delta: str = ""

    # JSON key -> (attribute name, expected type)
    _FIELDS = {
        "laps": ("laps_count", int),
        "lapLen": ("lap_len", int),
        "penaltyLen": ("penalty_lap_len", int),
        "firingLines": ("firing_lines_count", int),
        "start": ("start_time", str),
        "startDelta": ("start_delta", str),
    }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "ConfigInfo":
        """Build a config from decoded JSON; absent or null keys keep their defaults.

        Keys are matched exactly first, then without regard to case.
        Unknown keys are ignored. A value of the wrong type raises ConfigError.
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError("config must be a JSON object")

        folded = {}
        for key, value in data.items():
            folded.setdefault(str(key).lower(), value)

        values: dict[str, Any] = {}
        for json_key, (attr, kind) in cls._FIELDS.items():
            if json_key in data:
                value = data[json_key]
            elif json_key.lower() in folded:
                value = folded[json_key.lower()]
            else:
                continue
            if value is None:
                continue
            if kind is int:
                if isinstance(value, bool) or not isinstance(value, int):
                    raise ConfigError(f"{json_key!r} must be an integer")
            elif not isinstance(value, str):
                raise ConfigError(f"{json_key!r} must be a string")
            values[attr] = value
        return cls(**values)


def parse_hhmmss(text: str) -> timedelta:
    """Parse a clock reading ``HH:MM:SS`` into a time span.

    A fractional part after the seconds is accepted and dropped.
    Raises ValueError on malformed or out-of-range input.
    """
    match = _HHMMSS.fullmatch(text)
    if match is None:
        raise ValueError(f"cannot parse {text!r} as HH:MM:SS")
    hours, minutes, seconds = (int(group) for group in match.groups())
    if hours > 23:
        raise ValueError(f"hour out of range in {text!r}")
    if minutes > 59:
        raise ValueError(f"minute out of range in {text!r}")
    if seconds > 59:
        raise ValueError(f"second out of range in {text!r}")
    return timedelta(hours=hours, minutes=minutes, seconds=seconds)


def load_config(path: Union[str, PathLike[str]]) -> ConfigInfo:
    """Read and decode the race configuration stored as JSON at ``path``."""
    try:
        with open(path, "rb") as handle:
            try:
                raw = handle.read()
            except OSError as exc:
                logger.error("Problem in reading config data of file %s", path)
                raise ConfigError("problem in file data") from exc
    except OSError as exc:
        logger.error("Problem in opening config file %s", path)
        raise ConfigError("opening file problem") from exc

    try:
        config = ConfigInfo.from_mapping(json.loads(raw))
    except (ValueError, ConfigError) as exc:
        logger.error("Problem in json format of file %s", path)
        raise ConfigError("json format") from exc

    logger.info("%s correctly parsed", path)
    return config