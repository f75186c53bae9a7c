"""Final race report: per-competitor results, ordering and formatting."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping, Optional, Sequence

from .race import Biathlon

logger = logging.getLogger(__name__)

_CLOCK = re.compile(r"(\d{1,2}):(\d{2}):(\d{2})[.,](\d{3})")
_DAY_MS = 86_400_000
_TARGETS_PER_LINE = 5


@dataclass
class CompetitorResult:
    """Summary of one competitor's race, ready to be printed."""

    competitor_id: str
    status: str = ""
    total_time: float = -1.0
    total_time_str: str = "-1"
    lap_info: str = ""
    penalty_info: str = ""
    shots_info: str = ""


def _parse_clock(text: str) -> Optional[timedelta]:
    """Parse ``HH:MM:SS.fff`` into time since midnight, or None if malformed."""
    match = _CLOCK.fullmatch(text)
    if match is None:
        return None
    hours, minutes, seconds, millis = (int(group) for group in match.groups())
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    return timedelta(hours=hours, minutes=minutes, seconds=seconds, milliseconds=millis)


def _clock_or_midnight(text: str) -> timedelta:
    """Parse a clock reading; a malformed one counts as midnight."""
    parsed = _parse_clock(text)
    return timedelta(0) if parsed is None else parsed


def _format_clock(span: timedelta) -> str:
    """Format a span as a wall-clock reading, wrapping around the day."""
    millis = (span // timedelta(milliseconds=1)) % _DAY_MS
    hours, rest = divmod(millis, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"


def _format_speed(distance: float, seconds: float) -> str:
    if seconds == 0:
        if distance > 0:
            return "+Inf"
        if distance < 0:
            return "-Inf"
        return "NaN"
    return f"{distance / seconds:.3f}"


def _trunc_div(value: int, divisor: int) -> int:
    quotient = abs(value) // divisor
    return quotient if value >= 0 else -quotient


def _signed_rem(value: int, divisor: int) -> int:
    remainder = abs(value) % divisor
    return remainder if value >= 0 else -remainder


def _laps_done(lap_times: Mapping[int, Sequence[str]]) -> int:
    if not lap_times:
        return 0
    last = lap_times.get(len(lap_times))
    if last is None or last[1] == "":
        return len(lap_times) - 1
    return len(lap_times)


def each_lap_info(
    lap_times: Mapping[int, Sequence[str]], laps_done: int, lap_len: int, laps_count: int
) -> str:
    """Describe every completed lap as ``{duration, average speed}``.

    Laps without a start or finish are left out; if fewer than ``laps_count``
    laps were done an empty ``{,}`` entry is appended.
    """
    parts = ["["]
    for lap_num in range(1, len(lap_times) + 1):
        times = lap_times.get(lap_num)
        if not times or not times[0] or not times[1]:
            continue
        span = _clock_or_midnight(times[1]) - _clock_or_midnight(times[0])
        parts.append(
            "{" + _format_clock(span) + ", " + _format_speed(lap_len, span.total_seconds()) + "}"
        )
        if lap_num != laps_done:
            parts.append("; ")
    if laps_done < laps_count:
        parts.append("; {,}")
    parts.append("]")
    return "".join(parts)


def penalty_laps_info(
    penalty_times: Mapping[int, Sequence[str]], penalty_laps_count: int, penalty_lap_len: int
) -> str:
    """Describe the total time spent on penalty laps and the average speed there.

    Sessions whose start or finish cannot be parsed are skipped. When nothing
    was spent on penalty laps the result is ``{,}``.
    """
    total = timedelta(0)
    for times in penalty_times.values():
        start = _parse_clock(times[0])
        if start is None:
            logger.warning("Error parsing start time: %r", times[0])
            continue
        finish = _parse_clock(times[1])
        if finish is None:
            logger.warning("Error parsing finish time: %r", times[1])
            continue
        total += finish - start

    distance = float(penalty_laps_count * penalty_lap_len)
    seconds = total.total_seconds()
    speed = distance / seconds if seconds > 0 else 0.0

    micros = total // timedelta(microseconds=1)
    hours = _trunc_div(micros, 3_600_000_000)
    minutes = _signed_rem(_trunc_div(micros, 60_000_000), 60)
    secs = _signed_rem(_trunc_div(micros, 1_000_000), 60)
    millis = _signed_rem(_trunc_div(micros, 1000), 1000)

    text = f"{{{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}, {speed:.3f}}}"
    return "{,}" if text == "{00:00:00.000, 0.000}" else text


def _format_result(result: CompetitorResult, with_total: bool) -> str:
    head = (
        f"{result.status} {result.competitor_id}({result.total_time_str})"
        if with_total
        else f"{result.status} {result.competitor_id}"
    )
    return f"{head} {result.lap_info} {result.penalty_info} {result.shots_info}"


class FinalReport:
    """Results of a race split into finishers and everyone else."""

    def __init__(self) -> None:
        self.finished: list[CompetitorResult] = []
        self.not_finished: list[CompetitorResult] = []

    def create(self, race: Biathlon) -> None:
        """Build the results of every competitor of ``race``."""
        config = race.config
        targets = _TARGETS_PER_LINE * config.firing_lines_count
        finished: list[CompetitorResult] = []
        others: list[CompetitorResult] = []

        for competitor_id, info in race.competitors.items():
            laps_done = _laps_done(info.lap_times)
            result = CompetitorResult(
                competitor_id=competitor_id,
                shots_info=f"{info.hits}/{targets}",
                lap_info=each_lap_info(
                    info.lap_times, laps_done, config.lap_len, config.laps_count
                ),
                penalty_info=penalty_laps_info(
                    info.penalty_lap_times, targets - info.hits, config.penalty_lap_len
                ),
            )

            if info.not_finished or info.not_started or laps_done != config.laps_count:
                result.status = "[NotStarted]" if info.not_started else "[NotFinished]"
                others.append(result)
                continue

            result.status = "[Finished]"
            last_lap = info.lap_times.get(laps_done, ["", ""])
            span = _clock_or_midnight(last_lap[1]) - _clock_or_midnight(info.scheduled_start)
            result.total_time = span.total_seconds()
            result.total_time_str = _format_clock(span)
            finished.append(result)

        self.finished = finished
        self.not_finished = others

    def sort(self) -> None:
        """Order finishers by total time and the rest by competitor id."""
        self.finished.sort(key=lambda result: result.total_time)
        self.not_finished.sort(key=lambda result: result.competitor_id)

    def lines(self) -> list[str]:
        """Sort the report and return its printable lines."""
        self.sort()
        return [_format_result(result, True) for result in self.finished] + [
            _format_result(result, False) for result in self.not_finished
        ]