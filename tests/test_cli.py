from pathlib import Path

import pytest

from multicore_sched.cli import main
from multicore_sched.scheduler import Scheduler

WORKLOAD = (
    '[{"arrival_time":0,"workload":6,"mission":true},'
    '{"arrival_time":1,"workload":3},'
    '{"arrival_time":2,"workload":4}]'
)


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    # keep rich from wrapping table cells in captured output
    monkeypatch.setenv("COLUMNS", "200")


def _workload(tmp_path: Path) -> str:
    p = tmp_path / "w.json"
    p.write_text(WORKLOAD)
    return str(p)


def test_run_prints_metrics(tmp_path: Path, capsys):
    assert main(["run", "-w", _workload(tmp_path), "--policy", "rr", "-q", "1", "--p-cores", "1"]) == 0
    out = capsys.readouterr().out
    assert "Per-process metrics" in out
    assert "System metrics" in out
    assert "Round Robin" in out


def test_run_live(tmp_path: Path, capsys):
    assert main(["run", "-w", _workload(tmp_path), "--live", "--tick-delay", "0"]) == 0
    assert "Per-process metrics" in capsys.readouterr().out


def test_compare_policies(tmp_path: Path, capsys):
    assert main(["compare", "-w", _workload(tmp_path), "--policies", "fcfs", "srtf"]) == 0
    out = capsys.readouterr().out
    assert "Policy comparison" in out
    assert "Shortest Remaining Time First" in out


def test_config_file_is_applied(tmp_path: Path, capsys):
    config = tmp_path / "sim.json"
    config.write_text('{"performance_cores": 0, "efficiency_cores": 1}')
    assert main(["--config", str(config), "run", "-w", _workload(tmp_path)]) == 0
    out = capsys.readouterr().out
    assert "0 performance" in out


def test_missing_workload_reports_error(tmp_path: Path, capsys):
    assert main(["run", "-w", str(tmp_path / "missing.json")]) == 1
    assert "Error" in capsys.readouterr().out


def test_unknown_policy_reports_error(tmp_path: Path, capsys):
    assert main(["run", "-w", _workload(tmp_path), "--policy", "lottery"]) == 1
    assert "lottery" in capsys.readouterr().out


def test_unfinished_run_reports_error(tmp_path: Path, capsys):
    assert main(["run", "-w", _workload(tmp_path), "--max-ticks", "2"]) == 1
    assert "did not finish" in capsys.readouterr().out


def test_interrupted_live_run_is_aborted(tmp_path: Path, capsys, monkeypatch):
    def interrupted_step(self):
        # leave the tick half written, as a Ctrl-C inside step() would
        for processor in self.get_processor_list():
            self.ledger.record(processor, self.get_elapsed_time(), None)
        raise KeyboardInterrupt

    monkeypatch.setattr(Scheduler, "step", interrupted_step)
    assert main(["run", "-w", _workload(tmp_path), "--live", "--tick-delay", "0"]) == 1
    out = capsys.readouterr().out
    assert "run aborted at tick 0" in out
    assert "Error" not in out
    assert "Per-process metrics" not in out


def test_missing_command_is_rejected_by_parser(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 2
