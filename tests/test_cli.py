"""Tests for argument parsing and the show/propose entry points."""

import io
import logging

import pytest

import cli_propose
from analysis.stale import DetectionResult
from args import parse_args
from cli_inputs import setup_logging
from cli_show import run_show
from constants import Constants, ExitCodes, OutcomeStatus
from rehab import main
from remediation.orchestrator import ProposalResult, RemediationOutcome

MODULES = b"""{
\t"Path": "github.com/x/main",
\t"Main": true
}
{
\t"Path": "github.com/x/a",
\t"Version": "v1.0.0"
}
{
\t"Path": "github.com/x/b",
\t"Version": "v1.1.0",
\t"Update": {"Path": "github.com/x/b", "Version": "v1.2.0"}
}
{
\t"Path": "github.com/x/c",
\t"Version": "v0.2.0"
}
"""

# main asks for b v1.0.0 but a raises it to v1.1.0; a asks for c v0.1.0 but
# main raises it to v0.2.0.
GRAPH = b"""github.com/x/main github.com/x/a@v1.0.0
github.com/x/main github.com/x/b@v1.0.0
github.com/x/main github.com/x/c@v0.2.0
github.com/x/a@v1.0.0 github.com/x/b@v1.1.0
github.com/x/a@v1.0.0 github.com/x/c@v0.1.0
"""


@pytest.fixture
def inputs(tmp_path):
    modules_file = tmp_path / "modules.json"
    graph_file = tmp_path / "graph.txt"
    modules_file.write_bytes(MODULES)
    graph_file.write_bytes(GRAPH)
    return ["--modules-file", str(modules_file), "--graph-file", str(graph_file)]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setenv(Constants.ENV_LOG_LEVEL, "WARNING")


@pytest.fixture(autouse=True)
def restore_root_level():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


class TestParseArgs:
    """Test CLI flag wiring."""

    def test_show_defaults(self):
        args = parse_args(["show"])
        assert args.action == "show"
        assert args.DIRECTORY == "."
        assert args.ALL is False
        assert args.LOG_LEVEL is None
        assert args.EXCLUDE_PREFIXES is None

    def test_propose_flags(self):
        args = parse_args([
            "propose", "-d", "/src", "--all", "--selected", "--pull",
            "--branch-prefix", "bot/", "--token", "t", "--workers", "2",
            "--exclude-prefix", "golang.org/", "--exclude-prefix", "k8s.io/",
            "--loglevel", "info",
        ])
        assert args.action == "propose"
        assert (args.DIRECTORY, args.ALL, args.SELECTED, args.PULL) == ("/src", True, True, True)
        assert (args.BRANCH_PREFIX, args.TOKEN, args.WORKERS) == ("bot/", "t", 2)
        assert args.EXCLUDE_PREFIXES == ["golang.org/", "k8s.io/"]
        assert args.LOG_LEVEL == "INFO"

    def test_action_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_show_rejects_propose_flags(self):
        with pytest.raises(SystemExit):
            parse_args(["show", "--pull"])


class TestShow:
    """Test the show action end to end on saved go output."""

    def test_main_only(self, inputs):
        out = io.StringIO()
        assert run_show(parse_args(["show", *inputs]), out) == ExitCodes.SUCCESS.value
        assert out.getvalue() == (
            "github.com/x/main requires github.com/x/b@v1.0.0, builds with v1.1.0 "
            "via github.com/x/a@v1.0.0 (highest v1.2.0)\n"
        )

    def test_all(self, inputs):
        out = io.StringIO()
        run_show(parse_args(["show", "--all", *inputs]), out)
        lines = out.getvalue().splitlines()
        assert lines == [
            "github.com/x/a@v1.0.0 requires github.com/x/c@v0.1.0, builds with v0.2.0 "
            "via github.com/x/main (highest v0.2.0)",
            "github.com/x/main requires github.com/x/b@v1.0.0, builds with v1.1.0 "
            "via github.com/x/a@v1.0.0 (highest v1.2.0)",
        ]

    def test_all_from_config_file(self, inputs, tmp_path):
        config = tmp_path / "rehab.yml"
        config.write_text("rehab:\n  all: true\n", encoding="utf-8")
        out = io.StringIO()
        run_show(parse_args(["show", "-c", str(config), *inputs]), out)
        assert len(out.getvalue().splitlines()) == 2

    def test_missing_input_exits(self, tmp_path):
        args = parse_args(["show", "--modules-file", str(tmp_path / "nope"), "--graph-file", str(tmp_path / "nope")])
        with pytest.raises(SystemExit) as exc:
            run_show(args, io.StringIO())
        assert exc.value.code == ExitCodes.FILE_ERROR.value

    def test_main_entry(self, inputs, capsys):
        assert main(["show", *inputs]) == ExitCodes.SUCCESS.value
        assert "github.com/x/main requires github.com/x/b@v1.0.0" in capsys.readouterr().out


class TestPropose:
    """Test the propose action with remediation stubbed out."""

    def test_prints_outcomes(self, inputs, monkeypatch):
        seen = {}

        def fake_propose(modules, graph, options):
            seen["options"] = options
            return ProposalResult(DetectionResult(), [
                RemediationOutcome("github.com/x/main", OutcomeStatus.COMPARE, url="https://github.com/x/main/compare/x"),
            ])
        monkeypatch.setattr(cli_propose, "propose", fake_propose)

        out = io.StringIO()
        args = parse_args(["propose", "--pull", "--token", "t", *inputs])
        assert cli_propose.run_propose(args, out) == ExitCodes.SUCCESS.value
        assert out.getvalue() == "github.com/x/main: https://github.com/x/main/compare/x\n"
        assert seen["options"].open_pull_request
        assert seen["options"].token == "t"

    def test_failure_sets_exit_code(self, inputs, monkeypatch, caplog):
        def fake_propose(modules, graph, options):
            return ProposalResult(DetectionResult(), [
                RemediationOutcome("github.com/x/a", OutcomeStatus.FAILED, error="boom"),
                RemediationOutcome("github.com/x/c", OutcomeStatus.NO_CHANGES),
            ])
        monkeypatch.setattr(cli_propose, "propose", fake_propose)

        out = io.StringIO()
        with caplog.at_level(logging.WARNING):
            code = cli_propose.run_propose(parse_args(["propose", *inputs]), out)
        assert code == ExitCodes.REMEDIATION_FAILED.value
        assert out.getvalue() == "github.com/x/a: failed (boom)\ngithub.com/x/c: no changes\n"
        assert "No GitHub token" in caplog.text


class TestSetupLogging:
    """Test how the log level is chosen."""

    def test_environment_level(self, monkeypatch):
        monkeypatch.setenv(Constants.ENV_LOG_LEVEL, "DEBUG")
        setup_logging(parse_args(["show"]))
        assert logging.getLogger().level == logging.DEBUG

    def test_loglevel_flag_beats_environment(self, monkeypatch):
        monkeypatch.setenv(Constants.ENV_LOG_LEVEL, "DEBUG")
        setup_logging(parse_args(["show", "--loglevel", "error"]))
        assert logging.getLogger().level == logging.ERROR

    def test_default_warning(self, monkeypatch):
        monkeypatch.delenv(Constants.ENV_LOG_LEVEL)
        setup_logging(parse_args(["show"]))
        assert logging.getLogger().level == logging.WARNING

    def test_verbose_from_config_file(self, tmp_path):
        config = tmp_path / "rehab.yml"
        config.write_text("rehab:\n  verbose: true\n", encoding="utf-8")
        setup_logging(parse_args(["show", "-c", str(config), "--loglevel", "ERROR"]))
        assert logging.getLogger().level == logging.DEBUG
