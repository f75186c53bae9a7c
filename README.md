# biathlon

Reads a biathlon race configuration and a log of race events, logs each
event as it is processed, and then logs a final report: finishers ordered
by total time, followed by competitors who did not start or did not finish,
ordered by id.

## Installation

```
pip install .
```

For running the tests:

```
pip install .[test]
pytest
```

## Usage

```
biathlon [--config PATH] [--events PATH]
```

- `--config` — race configuration in JSON, default `files/configs/config.json`
- `--events` — incoming events file, default `files/events/events.txt`

Both defaults are relative to the current directory. All output (the
configuration that was read, one line per event, then the report) is written
to standard error. The exit status is 1 when the configuration cannot be
loaded or the events file cannot be opened or decoded, 0 otherwise.

### Configuration

A JSON object:

```json
{
  "laps": 2,
  "lapLen": 3651,
  "penaltyLen": 50,
  "firingLines": 1,
  "start": "09:30:00.000",
  "startDelta": "00:00:30"
}
```

Missing or `null` keys take a default (0 or an empty string). Keys are
matched exactly first and then regardless of case; unknown keys are ignored.
A value of the wrong type is an error.

### Events

One event per line: time in square brackets, event id, competitor id and an
optional extra parameter, separated by single spaces. Empty lines and lines
with fewer than three fields are skipped.

```
[09:05:59.867] 1 1
[09:15:00.841] 2 1 09:30:00.000
[09:30:01.005] 4 1
```

| Id | Meaning                          | Extra parameter   |
|----|----------------------------------|-------------------|
| 1  | competitor registered            |                   |
| 2  | start time set by draw           | start time        |
| 3  | competitor on the start line     |                   |
| 4  | competitor started               |                   |
| 5  | competitor on the firing range   | firing range      |
| 6  | target hit                       | target            |
| 7  | competitor left the firing range |                   |
| 8  | competitor entered penalty laps  |                   |
| 9  | competitor left penalty laps     |                   |
| 10 | competitor ended the main lap    |                   |
| 11 | competitor can't continue        | comment           |

A competitor counts as started only if the start event falls strictly
between the drawn start time and that time plus `startDelta`.

### Report

Each line holds the status (`[Finished]`, `[NotStarted]` or
`[NotFinished]`), the competitor id (with the total time for finishers),
duration and average speed for every completed lap (`{,}` for laps not
done), total time and average speed on penalty laps (`{,}` if none), and
hits out of shots (five targets per firing line):

```
[Finished] <id>(<HH:MM:SS.fff>) [{<lap time>, <speed>}; ...] {<penalty time>, <speed>} <hits>/<shots>
[NotStarted] 3 [; {,}] {,} 0/5
```

## Library use

```python
from biathlon.config import load_config
from biathlon.race import Biathlon
from biathlon.report import FinalReport

race = Biathlon(load_config("config.json"))
race.process_file("events.txt")

report = FinalReport()
report.create(race)
for line in report.lines():
    print(line)
```

- `biathlon.config`: `ConfigInfo` (with `ConfigInfo.from_mapping`),
  `load_config`, `parse_hhmmss` and `ConfigError`. `load_config` raises
  `ConfigError` when the file is missing, unreadable, not valid JSON or holds
  a value of the wrong type.
- `biathlon.race`: `Biathlon` with `process_line`, `process_lines`,
  `process_file` and the `competitors` mapping of `CompetitorInfo`;
  `format_event` gives the text logged for an event.
- `biathlon.report`: `FinalReport` with `create`, `sort` (finishers by total
  time, the rest by id) and `lines` (sorts, then returns the printable
  lines); `CompetitorResult`, `each_lap_info` and `penalty_laps_info`.

Event and report lines are sent through the standard `logging` module under
the `biathlon` logger; the command attaches a handler for them, library
callers configure logging themselves.