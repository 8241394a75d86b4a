import pytest
from typer.testing import CliRunner

from tabsh import cli

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Run every command in a scratch directory with no user config and no log handlers."""
    (tmp_path / "report.log").write_bytes(b"0" * 2048)
    (tmp_path / "notes.txt").write_text("n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("TABSH_CONFIG", raising=False)
    monkeypatch.setattr("tabsh.config.DEFAULT_CONFIG_PATH", tmp_path / "no-config.yaml")
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    return tmp_path


def test_exec_prints_table():
    """exec runs one line and prints the rendered table."""
    result = runner.invoke(cli.app, ["exec", "ls | where Size > 1kb | select Name"])
    assert result.exit_code == 0
    assert "| report.log" in result.output
    assert "notes.txt" not in result.output


def test_exec_error_sets_exit_status():
    """A failing line exits with status 1 and explains itself."""
    result = runner.invoke(cli.app, ["exec", "ls | sort-by Size sideways"])
    assert result.exit_code == 1
    assert "E_DIRECTION" in result.output


def test_config_option(isolated):
    """--config applies the file's settings."""
    cfg = isolated / "tabsh.yaml"
    cfg.write_text("empty_notice: no rows\n")
    result = runner.invoke(cli.app, ["--config", str(cfg), "exec", "ls | limit 0"])
    assert result.exit_code == 0
    assert "no rows" in result.output


def test_bad_config_exits_with_two(isolated):
    """An invalid config file stops the CLI before anything runs."""
    cfg = isolated / "tabsh.yaml"
    cfg.write_text("paddin: 3\n")
    result = runner.invoke(cli.app, ["--config", str(cfg), "exec", "ls"])
    assert result.exit_code == 2
    assert "E_CONFIG_KEY" in result.output


def test_complete_prints_candidates():
    """complete prints one candidate per line."""
    result = runner.invoke(cli.app, ["complete", "ls | where S"])
    assert result.exit_code == 0
    assert result.output.split() == ["Size"]


def test_stages_table():
    """stages lists every filter stage with its usage."""
    result = runner.invoke(cli.app, ["stages"])
    assert result.exit_code == 0
    for name in ("where", "sort-by", "select", "contains", "limit"):
        assert name in result.output


def test_shell_reads_until_exit():
    """The interactive shell runs lines until exit."""
    result = runner.invoke(cli.app, ["shell"], input="ls | select Name\nexit\n")
    assert result.exit_code == 0
    assert "| notes.txt" in result.output


def test_shell_stops_at_end_of_input():
    """End of input ends the shell cleanly."""
    result = runner.invoke(cli.app, [], input="pwd\n")
    assert result.exit_code == 0


def test_ctrl_c_cancels_the_line_only(monkeypatch):
    """An interrupt at the prompt drops the line and the shell keeps reading."""
    replies = iter([KeyboardInterrupt(), "ls | select Name", "exit"])

    def _input(prompt=""):
        reply = next(replies)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    monkeypatch.setattr("builtins.input", _input)
    result = runner.invoke(cli.app, ["shell"])
    assert result.exit_code == 0
    assert "| report.log" in result.output
