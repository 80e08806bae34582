"""Tests for the credbind CLI."""

import json

import pytest
from click.testing import CliRunner

from credbind.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


class TestCertCommands:
    def test_show_json_rsa(self, runner):
        result = runner.invoke(cli, ["cert", "show", "--json"])
        assert result.exit_code == 0
        details = json.loads(result.output)
        assert details["kind"] == "rsa"
        assert details["subject"] == "CredbindInMemoryCertificate"
        assert details["exportable_private_key"] is True
        assert len(details["thumbprint"]) == 40

    def test_show_json_platform_key(self, runner):
        result = runner.invoke(cli, ["cert", "show", "--json", "--platform-key", "cli-key"])
        assert result.exit_code == 0
        details = json.loads(result.output)
        assert details["kind"] == "elliptic_curve"
        assert details["subject"] == "cli-key"
        assert details["exportable_private_key"] is False

    def test_show_table(self, runner):
        result = runner.invoke(cli, ["cert", "show"])
        assert result.exit_code == 0
        assert "Binding Certificate" in result.output
        assert "thumbprint" in result.output

    def test_payload(self, runner):
        result = runner.invoke(cli, ["cert", "payload"])
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["latch_key"] is False
        assert payload["cnf"]["jwk"]["alg"] == "RS256"


class TestConfigValidate:
    def test_valid(self, runner, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("client_id: app-1\nclient_secret: s3cret\n")
        result = runner.invoke(cli, ["config", "validate", str(path)])
        assert result.exit_code == 0
        assert "client_id=app-1" in result.output

    def test_missing_credential(self, runner, tmp_path):
        path = tmp_path / "app.yaml"
        path.write_text("client_id: app-1\n")
        result = runner.invoke(cli, ["config", "validate", str(path)])
        assert result.exit_code == 1
        assert "Invalid" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["config", "validate", str(tmp_path / "nope.yaml")])
        assert result.exit_code != 0
