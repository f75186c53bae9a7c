"""Processing of incoming race events and per-competitor bookkeeping."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import timedelta
from os import PathLike
from typing import Iterable, Mapping, Optional, Union

from .config import ConfigInfo, parse_hhmmss

logger = logging.getLogger(__name__)

_EVENT_ID = re.compile(r"[+-]?\d+")
_CLOCK_EXACT_MS = re.compile(r"(\d{1,2}):(\d{2}):(\d{2})[.,](\d{3})")
_CLOCK_ANY_FRACTION = re.compile(r"(\d{1,2}):(\d{2}):(\d{2})(?:[.,](\d+))?")

_EVENT_MESSAGES = {
    1: "The competitor({cid}) registered",
    2: "The start time for the competitor({cid}) was set by a draw to ({extra})",
    3: "The competitor({cid}) is on the start line",
    4: "The competitor({cid}) has started",
    5: "The competitor({cid}) is on the firing range({extra})",
    6: "The target({extra}) has been hit by competitor({cid})",
    7: "The competitor({cid}) left the firing range",
    8: "The competitor({cid}) entered the penalty laps",
    9: "The competitor({cid}) left the penalty laps",
    10: "The competitor({cid}) ended the main lap",
    11: "The competitor({cid}) can`t continue: {extra}",
}


@dataclass
class CompetitorInfo:
    """What is known about one competitor while events are processed.

    ``lap_times`` maps a lap number to ``[start, finish]`` clock strings;
    ``penalty_lap_times`` maps the main lap number during which penalty laps
    were run to ``[start, finish]``.
    """

    not_started: bool = True
    not_finished: bool = True
    scheduled_start: str = ""
    actual_start: str = ""
    lap_times: dict[int, list[str]] = field(default_factory=dict)
    penalty_lap_times: dict[int, list[str]] = field(default_factory=dict)
    hits: int = 0


def _parse_clock(text: str, exact_millis: bool) -> Optional[timedelta]:
    """Parse a clock reading into time since midnight, or None if malformed.

    With ``exact_millis`` the reading must end in exactly three fractional
    digits; otherwise any fractional part is optional.
    """
    pattern = _CLOCK_EXACT_MS if exact_millis else _CLOCK_ANY_FRACTION
    match = pattern.fullmatch(text)
    if match is None:
        return None
    hours, minutes, seconds = (int(group) for group in match.groups()[:3])
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    fraction = match.group(4) or ""
    micros = int((fraction + "000000")[:6])
    return timedelta(hours=hours, minutes=minutes, seconds=seconds, microseconds=micros)


def _parse_event_id(text: str) -> int:
    return int(text) if _EVENT_ID.fullmatch(text) else 0


def format_event(event_id: int, event_time: str, competitor_id: str, extra: str) -> Optional[str]:
    """Return the log line for an event, or None for an unknown event id."""
    template = _EVENT_MESSAGES.get(event_id)
    if template is None:
        return None
    return f"{event_time} {template.format(cid=competitor_id, extra=extra)}"


class Biathlon:
    """A single race: its configuration and the state of every competitor."""

    def __init__(self, config: ConfigInfo) -> None:
        self.config = config
        self._competitors: dict[str, CompetitorInfo] = {}

    @property
    def competitors(self) -> Mapping[str, CompetitorInfo]:
        """Competitors by id, in the order they first appeared."""
        return self._competitors

    def process_file(self, path: Union[str, PathLike[str]]) -> None:
        """Process every event line of the file at ``path``."""
        with open(path, encoding="utf-8", newline="") as handle:
            data = handle.read()
        self.process_lines(data.split("\n"))

    def process_lines(self, lines: Iterable[str]) -> None:
        """Process event lines in order, skipping empty ones."""
        for line in lines:
            if line.endswith("\n"):
                line = line[:-1]
            if line:
                self.process_line(line)

    def process_line(self, line: str) -> None:
        """Process one event line of the form ``[HH:MM:SS.fff] event competitor [extra]``."""
        parts = line.split(" ")
        if len(parts) < 3:
            return

        event_time = parts[0].strip()
        clock = event_time[1:-1]
        event_id = _parse_event_id(parts[1].strip())
        competitor_id = parts[2].strip()
        extra = " ".join(parts[3:]).strip()

        self._competitors.setdefault(competitor_id, CompetitorInfo())

        self._apply(event_id, competitor_id, clock, extra)
        message = format_event(event_id, event_time, competitor_id, extra)
        if message is not None:
            logger.info(message)

    def _apply(self, event_id: int, competitor_id: str, clock: str, extra: str) -> None:
        info = self._competitors[competitor_id]
        if event_id == 1:
            info.lap_times = {1: ["", ""]}
            info.penalty_lap_times = {}
        elif event_id == 2:
            info.scheduled_start = extra
            info.lap_times[1][0] = extra
        elif event_id == 4:
            info.actual_start = clock
            info.not_started = not self._started_in_window(info)
        elif event_id == 6:
            info.hits += 1
        elif event_id == 8:
            info.penalty_lap_times[len(info.lap_times)] = [clock, ""]
        elif event_id == 9:
            info.penalty_lap_times[len(info.lap_times)][1] = clock
        elif event_id == 10:
            info.lap_times[len(info.lap_times)][1] = clock
            if len(info.lap_times) < self.config.laps_count:
                info.lap_times[len(info.lap_times) + 1] = [clock, ""]
            else:
                info.not_finished = False
        elif event_id == 11:
            info.not_finished = True

    def _started_in_window(self, info: CompetitorInfo) -> bool:
        actual = _parse_clock(info.actual_start, exact_millis=True)
        scheduled = _parse_clock(info.scheduled_start, exact_millis=False)
        if actual is None or scheduled is None:
            return False
        try:
            delta = parse_hhmmss(self.config.start_delta)
        except ValueError:
            delta = timedelta(0)
        return scheduled < actual < scheduled + delta