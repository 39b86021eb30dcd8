from typer.testing import CliRunner

from stride_cli.__main__ import app


runner = CliRunner()


def test_help_lists_commands() -> None:
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "--plain" in result.stdout
    for command in ["run", "routines", "history", "config"]:
        assert command in result.stdout


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.stdout


def test_json_and_plain_are_mutually_exclusive() -> None:
    result = runner.invoke(app, ["--json", "--plain", "routines", "list"])
    assert result.exit_code == 2
    assert "mutually exclusive" in result.stdout


def test_broken_config_file_exits(tmp_path) -> None:
    path = tmp_path / "broken.toml"
    path.write_text("[session\n")
    result = runner.invoke(app, ["--config", str(path), "routines", "list"])
    assert result.exit_code == 2
    assert "Config error" in result.stdout
