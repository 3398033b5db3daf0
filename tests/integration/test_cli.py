"""
CLI integration tests

Runs the click commands end to end with short task delays.
"""

import json
import signal

import pytest
import yaml
from click.testing import CliRunner

import blockon.cli as cli_module
from blockon.cli import abort_on_sigint, cli
from blockon.core.abort import AbortFlag

FAST = {"BLOCKON_PERMUTE_DELAY_SECONDS": "0"}


@pytest.fixture
def runner():
    return CliRunner()


class TestCommands:
    """Individual commands"""

    def test_count(self, runner):
        result = runner.invoke(cli, ["--log-level", "WARNING", "count", "5"])
        assert result.exit_code == 0, result.output
        assert "count: 5" in result.output

    def test_permute(self, runner):
        result = runner.invoke(
            cli,
            ["--log-level", "WARNING", "permute", "--base", "1,6,4,3,2,5",
             "--target", "1,2,3,4,5,6", "--delay", "0"],
        )
        assert result.exit_code == 0, result.output
        assert "permutations: 3" in result.output

    def test_permute_mismatch_is_fatal(self, runner):
        result = runner.invoke(
            cli,
            ["--log-level", "WARNING", "permute", "--base", "1,2,3", "--target", "1,2,4"],
        )
        assert result.exit_code == 1
        assert "same elements" in result.output

    def test_permute_bad_sequence(self, runner):
        result = runner.invoke(cli, ["permute", "--base", "1,x", "--target", "1,2"])
        assert result.exit_code == 2

    def test_demo(self, runner):
        result = runner.invoke(cli, ["--log-level", "WARNING", "demo"], env=FAST)
        assert result.exit_code == 0, result.output
        assert "async_main 10" in result.output
        assert "permutations: 3" in result.output

    def test_demo_with_config_file(self, runner, tmp_path):
        path = tmp_path / "blockon.yaml"
        path.write_text("permute_delay_seconds: 0\nlog_level: ERROR\n", encoding="utf-8")

        result = runner.invoke(cli, ["--config", str(path), "demo"])
        assert result.exit_code == 0, result.output
        assert "permutations: 3" in result.output

    def test_invalid_config_file(self, runner, tmp_path):
        path = tmp_path / "blockon.yaml"
        path.write_text("threads: 8\n", encoding="utf-8")

        result = runner.invoke(cli, ["--config", str(path), "count", "1"])
        assert result.exit_code == 2

    @pytest.mark.parametrize(
        "content, key",
        [("permute_delay_seconds: fast\n", "permute_delay_seconds"), ("log_level: 10\n", "log_level")],
    )
    def test_wrong_typed_config_value(self, runner, tmp_path, content, key):
        path = tmp_path / "blockon.yaml"
        path.write_text(content, encoding="utf-8")

        result = runner.invoke(cli, ["--config", str(path), "count", "2"])
        assert result.exit_code == 2
        assert result.exception is None or isinstance(result.exception, SystemExit)
        assert f"Invalid value for {key}" in result.output

    def test_trace_summary(self, runner):
        result = runner.invoke(cli, ["--log-level", "WARNING", "--trace", "count", "3"])
        assert result.exit_code == 0, result.output
        assert '"total_polls": 3' in result.output


class TestRunPlan:
    """Plan files"""

    def write_plan(self, tmp_path):
        path = tmp_path / "plan.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "tasks": [
                        {"type": "count", "max": 10, "name": "count-ten"},
                        {"type": "permute", "base": [3, 1, 2], "target": [1, 2, 3], "delay": 0},
                    ]
                }
            ),
            encoding="utf-8",
        )
        return path

    def test_run_json(self, runner, tmp_path):
        path = self.write_plan(tmp_path)
        result = runner.invoke(cli, ["--log-level", "WARNING", "run", str(path)])
        assert result.exit_code == 0, result.output

        data = json.loads(result.stdout)
        assert data[0] == {"name": "count-ten", "type": "count", "cancellable": False, "result": 10}
        assert data[1]["result"] == 2
        assert data[1]["cancellable"] is True

    def test_run_yaml(self, runner, tmp_path):
        path = self.write_plan(tmp_path)
        result = runner.invoke(cli, ["--log-level", "WARNING", "run", str(path), "--format", "yaml"])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.stdout)[0]["result"] == 10

    def test_run_invalid_plan(self, runner, tmp_path):
        path = tmp_path / "plan.yaml"
        path.write_text("tasks:\n  - type: count\n    max: -3\n", encoding="utf-8")

        result = runner.invoke(cli, ["--log-level", "WARNING", "run", str(path)])
        assert result.exit_code == 1
        assert "Invalid plan" in result.output


class TestAbort:
    """Ctrl-C wiring"""

    def test_sigint_sets_flag_and_restores_handler(self):
        flag = AbortFlag()
        before = signal.getsignal(signal.SIGINT)

        with abort_on_sigint(flag):
            signal.raise_signal(signal.SIGINT)
            assert flag.is_set()

        assert signal.getsignal(signal.SIGINT) is before

    def test_aborted_permute_reports_partial_result(self, runner, monkeypatch):
        class RaisedAbortFlag(AbortFlag):
            def __init__(self):
                super().__init__()
                self.set()

        monkeypatch.setattr(cli_module, "AbortFlag", RaisedAbortFlag)

        result = runner.invoke(
            cli,
            ["--log-level", "WARNING", "permute", "--base", "2,1", "--target", "1,2"],
        )
        assert result.exit_code == 0, result.output
        assert "aborted after 0 steps: [2, 1]" in result.output
        assert "permutations: 0" in result.output

    def test_counter_runs_to_completion_despite_abort(self, runner, monkeypatch):
        class RaisedAbortFlag(AbortFlag):
            def __init__(self):
                super().__init__()
                self.set()

        monkeypatch.setattr(cli_module, "AbortFlag", RaisedAbortFlag)

        result = runner.invoke(cli, ["--log-level", "WARNING", "count", "7"])
        assert result.exit_code == 0, result.output
        assert "count: 7" in result.output
