import json

from devcontainer_bootstrap.lib.env import TOOLCHAIN
from devcontainer_bootstrap.main import main


def _args(tmp_path, *extra):
    return ["--state", str(tmp_path / "state.json"), "--log", str(tmp_path / "bootstrap.log"), *extra]


def _state(tmp_path):
    return json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))


def test_full_run_issues_commands_in_order(fake_run, tmp_path, capsys):
    assert main(_args(tmp_path)) == 0

    assert fake_run.argvs() == [
        ["apt-get", "update"],
        ["apt-get", "install", "-y", "curl", "git", "gcc"],
        ["curl", "https://sh.rustup.rs", "-sSf"],
        ["sh", "-s", "--", *TOOLCHAIN.installer_args()],
        ["sh", "-c", '. "$1" && env -0', "sh", str(tmp_path / ".cargo" / "env")],
        ["rustup", "--version"],
        ["cargo", "--version"],
        ["rustc", "--version"],
    ]
    assert "rustc 1.80.0-nightly (ada5e2c7b 2024-05-31)" in capsys.readouterr().out

    state = _state(tmp_path)
    assert state["execution"]["summary"]["failed_steps"] == []
    assert len(state["execution"]["completed_steps"]) == 4
    assert state["execution"]["paths"]["log_path_actual"] == str(tmp_path / "bootstrap.log")


def test_early_failure_does_not_halt_and_exit_is_last_status(fake_run, tmp_path):
    fake_run.returncodes["apt-get update"] = 100
    fake_run.returncodes["apt-get install"] = 100

    assert main(_args(tmp_path)) == 0
    assert ["rustc", "--version"] in fake_run.argvs()
    assert _state(tmp_path)["execution"]["summary"]["failed_steps"] == [
        "10_refresh_index",
        "20_install_packages",
    ]


def test_exit_status_follows_final_version_command(fake_run, tmp_path):
    fake_run.returncodes["rustc --version"] = 1
    assert main(_args(tmp_path)) == 1


def test_missing_compiler_exits_127(fake_run, tmp_path):
    fake_run.missing.add("rustc")
    assert main(_args(tmp_path)) == 127


def test_fail_fast_stops_and_records_error(fake_run, tmp_path):
    fake_run.returncodes["apt-get update"] = 100

    assert main(_args(tmp_path, "--fail-fast")) == 100
    assert fake_run.argvs() == [["apt-get", "update"]]

    state = _state(tmp_path)
    assert state["execution"]["run_config"]["on_error"] == "stop"
    assert state["config"]["on_error"] == "continue"
    assert state["execution"]["errors"][0]["step"] == "10_refresh_index"


def test_dry_run_executes_nothing(fake_run, tmp_path):
    assert main(_args(tmp_path, "--dry-run")) == 0
    assert fake_run.calls == []
    state = _state(tmp_path)
    assert state["execution"]["run_config"]["dry_run"] is True
    assert state["config"]["dry_run"] is False
    assert state["execution"]["completed_steps"] == []


def test_second_run_reinstalls_unless_resumed(fake_run, tmp_path):
    assert main(_args(tmp_path)) == 0
    first = len(fake_run.calls)

    assert main(_args(tmp_path)) == 0
    assert len(fake_run.calls) == 2 * first

    assert main(_args(tmp_path, "--resume")) == 0
    assert len(fake_run.calls) == 2 * first
    assert len(_state(tmp_path)["execution"]["summary"]["skipped_steps"]) == 4


def test_start_at_report_only(fake_run, tmp_path):
    assert main(_args(tmp_path, "--start-at", "40_report_versions")) == 0
    assert fake_run.argvs()[1:] == [["rustup", "--version"], ["cargo", "--version"], ["rustc", "--version"]]


def test_plain_run_after_dry_run_executes_everything(fake_run, tmp_path):
    assert main(_args(tmp_path, "--dry-run")) == 0
    assert main(_args(tmp_path)) == 0
    assert len(fake_run.calls) == 8


def test_resume_after_dry_run_runs_every_step(fake_run, tmp_path):
    assert main(_args(tmp_path, "--dry-run")) == 0
    assert main(_args(tmp_path, "--resume")) == 0

    assert len(fake_run.calls) == 8
    assert _state(tmp_path)["execution"]["summary"]["skipped_steps"] == []


def test_fail_fast_does_not_stick_to_later_runs(fake_run, tmp_path):
    fake_run.returncodes["apt-get update"] = 100
    assert main(_args(tmp_path, "--fail-fast")) == 100

    assert main(_args(tmp_path)) == 0
    assert len(fake_run.calls) == 1 + 8


def test_no_fail_fast_overrides_file_config(fake_run, tmp_path):
    (tmp_path / "state.json").write_text(json.dumps({"config": {"on_error": "stop"}}), encoding="utf-8")
    fake_run.returncodes["apt-get update"] = 100

    assert main(_args(tmp_path, "--no-fail-fast")) == 0
    assert len(fake_run.calls) == 8
    assert _state(tmp_path)["config"]["on_error"] == "stop"


def test_failed_rerun_drops_completion_mark(fake_run, tmp_path):
    assert main(_args(tmp_path)) == 0
    fake_run.returncodes["apt-get update"] = 100
    assert main(_args(tmp_path)) == 0

    completed = _state(tmp_path)["execution"]["completed_steps"]
    assert "10_refresh_index" not in completed
    assert "20_install_packages" in completed

    fake_run.returncodes["apt-get update"] = 0
    before = len(fake_run.calls)
    assert main(_args(tmp_path, "--resume")) == 0
    assert fake_run.argvs()[before:] == [["apt-get", "update"]]
