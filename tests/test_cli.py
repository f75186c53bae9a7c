import json
import logging

import pytest

from biathlon.cli import main
from biathlon.config import load_config
from biathlon.race import Biathlon
from biathlon.report import FinalReport

EVENTS = [
    "[09:05:59.867] 1 1",
    "[09:06:00.000] 1 2",
    "[09:15:00.841] 2 1 09:30:00.000",
    "[09:15:01.000] 2 2 09:31:00.000",
    "[09:30:01.005] 4 1",
    "[09:35:00.000] 4 2",
    "[09:49:33.123] 6 1 1",
    "[09:59:03.872] 10 1",
    "[10:28:00.000] 10 1",
]


@pytest.fixture
def files(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(
        json.dumps(
            {
                "laps": 2,
                "lapLen": 3651,
                "penaltyLen": 50,
                "firingLines": 1,
                "start": "09:30:00.000",
                "startDelta": "00:00:30",
            }
        ),
        encoding="utf-8",
    )
    events_path = tmp_path / "events.txt"
    events_path.write_text("\n".join(EVENTS) + "\n", encoding="utf-8")
    return config_path, events_path


def _expected_report(config_path, events_path):
    race = Biathlon(load_config(config_path))
    race.process_file(events_path)
    report = FinalReport()
    report.create(race)
    return report.lines()


def test_full_run_prints_events_and_report(files, capsys):
    config_path, events_path = files
    status = main(["--config", str(config_path), "--events", str(events_path)])
    err_lines = capsys.readouterr().err.splitlines()

    assert status == 0
    assert "[09:05:59.867] The competitor(1) registered" in err_lines
    expected = _expected_report(config_path, events_path)
    assert err_lines[-len(expected):] == expected


def test_report_orders_finishers_first(files, capsys):
    config_path, events_path = files
    main(["--config", str(config_path), "--events", str(events_path)])
    err_lines = capsys.readouterr().err.splitlines()
    report = [line for line in err_lines if line.startswith("[Finished]") or line.startswith("[Not")]
    assert [line.split()[0] for line in report] == ["[Finished]", "[NotStarted]"]


def test_config_is_echoed(files, capsys):
    config_path, events_path = files
    main(["--config", str(config_path), "--events", str(events_path)])
    assert "{2 3651 50 1 09:30:00.000 00:00:30}" in capsys.readouterr().err.splitlines()


def test_missing_config_fails(tmp_path, capsys):
    status = main(["--config", str(tmp_path / "nofile.json"), "--events", str(tmp_path / "e.txt")])
    err = capsys.readouterr().err
    assert status == 1
    assert "registered" not in err


def test_bad_json_config_fails(tmp_path, capsys):
    config_path = tmp_path / "bad.json"
    config_path.write_text("{not json", encoding="utf-8")
    assert main(["--config", str(config_path), "--events", str(tmp_path / "e.txt")]) == 1


def test_missing_events_fails(files, tmp_path, capsys):
    config_path, _ = files
    status = main(["--config", str(config_path), "--events", str(tmp_path / "missing.txt")])
    assert status == 1
    assert "Problem in opening input file" in capsys.readouterr().err


def test_handler_removed_after_run(files):
    config_path, events_path = files
    package_logger = logging.getLogger("biathlon")
    before = list(package_logger.handlers)
    status = main(["--config", str(config_path), "--events", str(events_path)])
    assert status == 0
    assert package_logger.handlers == before