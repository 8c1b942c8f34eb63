from typer.testing import CliRunner

from linear_connector.cli import app

runner = CliRunner()


def test_config_show_masks_api_key(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LINEAR_API_KEY", "lin_api_0123456789abcdef")

    result = runner.invoke(app, ["config-show"])

    assert result.exit_code == 0
    assert "lin_api_0123456789abcdef" not in result.output
    assert "lin_" in result.output


def test_schemas_requires_ticketing(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LINEAR_API_KEY", "key")
    monkeypatch.delenv("LINEAR_TICKETING", raising=False)

    result = runner.invoke(app, ["schemas"])

    assert result.exit_code == 1
    assert "Ticketing is not enabled" in result.output


def test_invalid_config_combination(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LINEAR_API_KEY", "key")
    monkeypatch.setenv("LINEAR_TICKET_SCHEMA_TEAM_IDS", "t1")
    monkeypatch.delenv("LINEAR_TICKETING", raising=False)

    result = runner.invoke(app, ["validate"])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output
