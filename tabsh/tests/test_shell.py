import pytest

from tabsh.config import ShellConfig
from tabsh.shell import Shell


@pytest.fixture
def sh(tmp_path):
    (tmp_path / "big.log").write_bytes(b"0" * 4096)
    (tmp_path / "small.txt").write_bytes(b"0" * 10)
    (tmp_path / "sub").mkdir()
    return Shell(cwd=str(tmp_path))


def test_table_command_renders(sh):
    """A producer pipeline prints its rendered table."""
    result = sh.exec("ls | contains Name log | select Name Size")
    assert result.exit_code == 0 and result.stderr == ""
    assert "| big.log" in result.stdout
    assert "small.txt" not in result.stdout


def test_errors_are_reported_not_raised(sh):
    """User errors come back as stderr text and exit code 1."""
    result = sh.exec("ls | where Bogus > 1")
    assert result.exit_code == 1
    assert result.stderr.startswith("tabsh: where: [E_UNKNOWN_FIELD]")
    assert "Hint:" in result.stderr


def test_parse_errors_are_reported(sh):
    """Unbalanced quotes do not escape the shell."""
    result = sh.exec('ls | contains Name "oops')
    assert result.exit_code == 1 and "[E_PARSE]" in result.stderr


def test_blank_line_does_nothing(sh):
    """An empty line is a no-op."""
    result = sh.exec("   ")
    assert (result.stdout, result.stderr, result.exit_code) == ("", "", 0)


def test_cd_and_pwd(sh, tmp_path):
    """cd changes the shell's own directory, which ls then lists."""
    assert sh.exec("pwd").stdout.strip() == str(tmp_path.resolve())
    assert sh.exec("cd sub").exit_code == 0
    assert sh.exec("pwd").stdout.strip() == str((tmp_path / "sub").resolve())
    assert sh.exec("ls").stdout == "(empty table)\n"
    sh.exec("cd ..")
    assert sh.cwd == str(tmp_path.resolve())


def test_cd_to_missing_directory(sh):
    """cd into a missing directory fails and keeps the old directory."""
    before = sh.cwd
    result = sh.exec("cd nowhere")
    assert result.exit_code == 1 and "nowhere" in result.stderr
    assert sh.cwd == before


def test_builtins_do_not_feed_stages(sh):
    """Builtin output is not a table."""
    result = sh.exec("pwd | limit 1")
    assert result.exit_code == 1 and "[E_NOT_TABULAR]" in result.stderr


def test_help_lists_stages(sh):
    """help describes builtins, producers and every stage."""
    out = sh.exec("help").stdout
    for word in ("cd", "ls", "ps", "where FIELD OPERATOR VALUE", "sort-by FIELD [asc|desc]", "limit N"):
        assert word in out


def test_exit_requests_termination(sh):
    """exit and quit ask the front end to stop."""
    assert sh.exec("exit").exit_requested
    assert sh.exec("quit").exit_requested
    assert not sh.exec("pwd").exit_requested


def test_config_controls_rendering(tmp_path):
    """Padding, the empty notice and hidden files follow the config."""
    (tmp_path / ".secret").write_text("x")
    sh = Shell(ShellConfig(empty_notice="nothing", show_hidden=False), cwd=str(tmp_path))
    assert sh.exec("ls").stdout == "nothing\n"
    sh = Shell(ShellConfig(padding=2), cwd=str(tmp_path))
    assert "| .secret |" in sh.exec("ls | select Name").stdout


def test_prompt_shows_directory(tmp_path):
    """The prompt template may include the working directory."""
    sh = Shell(ShellConfig(prompt="[{cwd}] "), cwd=str(tmp_path))
    assert sh.prompt() == f"[{tmp_path.resolve()}] "


def test_external_command_output_and_status(sh):
    """External programs pass their output and exit status through."""
    result = sh.exec("cat small.txt")
    assert result.exit_code == 0 and result.stdout == "0" * 10
    missing = sh.exec("definitely-not-a-command-tabsh")
    assert missing.exit_code == 127 and "[E_COMMAND_NOT_FOUND]" in missing.stderr


def test_binary_output_does_not_end_the_shell(sh, tmp_path):
    """Programs printing non-UTF-8 bytes still produce a result."""
    (tmp_path / "blob.bin").write_bytes(b"\xff\xfe\x80abc\n")
    result = sh.exec("cat blob.bin")
    assert result.exit_code == 0
    assert result.stdout.endswith("abc\n")
    assert "�" in result.stdout


def test_unexecutable_file_is_reported(sh, tmp_path):
    """An executable file with no valid format fails with a message."""
    junk = tmp_path / "junk"
    junk.write_bytes(b"\x00\x01\x02garbage")
    junk.chmod(0o755)
    result = sh.exec(str(junk))
    assert result.exit_code == 1 and "[E_COMMAND_FAILED]" in result.stderr
    assert sh.exec("pwd").exit_code == 0


def test_unexpected_errors_are_reported(sh, monkeypatch):
    """Any other failure inside a command is reported and the shell keeps going."""

    def _boom(self, options=None):
        raise RuntimeError("boom")

    monkeypatch.setattr("tabsh.shell.Pipeline.run", _boom)
    result = sh.exec("ls")
    assert result.exit_code == 1
    assert "RuntimeError: boom" in result.stderr
    assert sh.exec("pwd").exit_code == 0
