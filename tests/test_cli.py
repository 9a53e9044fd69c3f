# Author: Bradley R. Kinnard
# tests for the command line entry point and run configuration

import json
from pathlib import Path

import pytest
import yaml

from main import main
from utils.helpers import ConfigError, load_run_config, validate_run_config

CONFIG_PATH = Path(__file__).parent.parent / "config" / "verify_config.yaml"

QUICK = ["--trials", "20", "--max-actions", "25", "--seed", "3"]


class TestRunConfig:
    """test yaml loading and schema validation."""

    def test_default_config_loads(self):
        config = load_run_config(CONFIG_PATH)
        assert config["domain"] == "todo"
        assert config["seed"] == 42
        assert config["weights"]["counter"]["increment"] == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_run_config(tmp_path / "absent.yaml")

    @pytest.mark.parametrize("config", [
        {"trials": 0},
        {"max_actions": -1},
        {"semantics": "infinite"},
        {"seed": "abc"},
        {"workers": 0},
        {"weights": {"counter": {"increment": -2}}},
        {"unknown_key": True},
    ])
    def test_invalid_config(self, config):
        with pytest.raises(ConfigError):
            validate_run_config(config)

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)

    def test_invalid_yaml_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump({"trials": 0}))
        with pytest.raises(ConfigError):
            load_run_config(path)


class TestMain:
    """test exit codes and output of the cli."""

    def test_passing_domain(self, capsys):
        assert main(["--domain", "counter", *QUICK]) == 0
        assert "PASS [counter]" in capsys.readouterr().out

    def test_failing_domain(self, capsys):
        assert main(["--domain", "counter-broken", *QUICK]) == 1
        out = capsys.readouterr().out
        assert "FAIL [counter-broken]" in out
        assert "count_non_negative" in out

    def test_todo_domain(self):
        assert main(["--domain", "todo", "--workers", "2", *QUICK]) == 0

    def test_stutter_semantics(self):
        assert main(["--domain", "counter", "--semantics", "stutter", *QUICK]) == 0

    def test_json_output(self, capsys):
        assert main(["--domain", "counter-broken", "--json", *QUICK]) == 1
        report = json.loads(capsys.readouterr().out)
        assert report["verdict"] == "fail"
        assert report["seed"] == 3
        assert report["first_global_counterexample"]["actions"][-1] == "decrement"

    def test_config_file_with_overrides(self):
        args = ["--config", str(CONFIG_PATH), "--domain", "counter", "--trials", "10"]
        assert main(args) == 0

    def test_unknown_domain(self, capsys):
        assert main(["--domain", "nope", *QUICK]) == 2
        assert "unknown domain" in capsys.readouterr().err

    def test_invalid_flag_value(self):
        assert main(["--domain", "counter", "--trials", "0"]) == 2

    def test_missing_config_file(self, tmp_path):
        assert main(["--config", str(tmp_path / "absent.yaml")]) == 2

    def test_invalid_config_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("trials: -3\n")
        assert main(["--config", str(path)]) == 2

    def test_bad_semantics_rejected_by_parser(self):
        with pytest.raises(SystemExit):
            main(["--semantics", "infinite"])

    def test_list_domains(self, capsys):
        assert main(["--list-domains"]) == 0
        out = capsys.readouterr().out
        for name in ("counter", "counter-broken", "todo"):
            assert name in out


class TestReplay:
    """test saving a run log and replaying its counterexample."""

    def test_log_out_then_replay(self, tmp_path, capsys):
        log_path = tmp_path / "run.json"
        assert main(["--domain", "counter-broken", "--log-out", str(log_path), *QUICK]) == 1
        assert log_path.exists()
        capsys.readouterr()

        assert main(["--domain", "counter-broken", "--replay", str(log_path)]) == 1
        assert "VIOLATED" in capsys.readouterr().out

    def test_replay_on_fixed_system_passes(self, tmp_path):
        log_path = tmp_path / "run.json"
        main(["--domain", "counter-broken", "--log-out", str(log_path), *QUICK])
        # the fixed counter refuses the decrement that broke the invariant
        assert main(["--domain", "counter", "--replay", str(log_path)]) == 0

    def test_replay_bare_counterexample(self, tmp_path, capsys):
        cx_path = tmp_path / "cx.json"
        cx_path.write_text(json.dumps({"actions": ["increment", "decrement", "decrement"]}))
        assert main(["--domain", "counter-broken", "--replay", str(cx_path), "--json"]) == 1
        assert json.loads(capsys.readouterr().out)["reproduced"] is True

    def test_replay_log_without_counterexample(self, tmp_path):
        log_path = tmp_path / "run.json"
        assert main(["--domain", "counter", "--log-out", str(log_path), *QUICK]) == 0
        assert main(["--domain", "counter", "--replay", str(log_path)]) == 2

    def test_replay_missing_file(self, tmp_path):
        assert main(["--domain", "counter", "--replay", str(tmp_path / "absent.json")]) == 2

    @pytest.mark.parametrize("domain,actions", [
        ("todo", [{"type": "teleport"}]),
        ("todo", [{"type": "toggleTodo"}]),
        ("todo", [{"type": "setFilter", "filter": "someday"}]),
        ("todo", ["addTodo"]),
        ("counter", ["bogus"]),
    ])
    def test_replay_undecodable_action(self, tmp_path, capsys, domain, actions):
        cx_path = tmp_path / "cx.json"
        cx_path.write_text(json.dumps({"actions": actions}))
        assert main(["--domain", domain, "--replay", str(cx_path)]) == 2
        assert "cannot decode action" in capsys.readouterr().err

    def test_replay_actions_not_a_list(self, tmp_path):
        cx_path = tmp_path / "cx.json"
        cx_path.write_text(json.dumps({"actions": "increment"}))
        assert main(["--domain", "counter", "--replay", str(cx_path)]) == 2
