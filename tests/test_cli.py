"""Tests for the deploy_tables command-line entrypoint."""

import io
import logging
from pathlib import Path

import pytest

import deploy_tables

from tests.conftest import FakeAthenaClient

SERVICE_YAML = """
service: athena-plugin-test
provider:
  name: aws
  region: us-east-1
custom:
  athenaTables:
    athena_plugintest_1:
      DDL: CREATE EXTERNAL TABLE athena_plugintest_1 (id string)
      OutputLocation: s3://athena-results/out/
      TableName: athena_plugintest_1
      DatabaseName: plugintest
    athena_plugintest_2:
      DDLFile: ddl/athena_plugintest_2.sql
      DDLSubstitutions:
        S3Location: s3://data/plugintest/
      OutputLocation: s3://athena-results/out/
      TableName: athena_plugintest_2
      DatabaseName: plugintest
"""


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            handler.close()
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def config_path(tmp_path) -> Path:
    ddl_dir = tmp_path / "ddl"
    ddl_dir.mkdir()
    (ddl_dir / "athena_plugintest_2.sql").write_text(
        "CREATE EXTERNAL TABLE athena_plugintest_2 (id string) LOCATION '{S3Location}'",
        encoding="utf-8",
    )
    path = tmp_path / "serverless.yml"
    path.write_text(SERVICE_YAML.strip(), encoding="utf-8")
    return path


@pytest.fixture
def cli_client(monkeypatch) -> FakeAthenaClient:
    client = FakeAthenaClient()
    regions = []

    def fake_create_client(region=None, endpoint_url=None):
        regions.append(region)
        return client

    monkeypatch.setattr("athena_tables.plugin.create_athena_client", fake_create_client)
    client.regions = regions
    return client


def test_validate_exits_zero(config_path, cli_client):
    assert deploy_tables.main(["--config", str(config_path), "--quiet", "validate"]) == 0
    assert cli_client.submissions == []


def test_validate_invalid_definition_exits_one(tmp_path):
    path = tmp_path / "serverless.yml"
    path.write_text(
        "custom:\n  athenaTables:\n    broken:\n      TableName: broken\n",
        encoding="utf-8",
    )
    assert deploy_tables.main(["--config", str(path), "--quiet", "validate"]) == 1


def test_missing_config_exits_one(tmp_path):
    assert deploy_tables.main(["--config", str(tmp_path / "none.yml"), "--quiet", "validate"]) == 1


def test_deploy_all(config_path, cli_client):
    assert deploy_tables.main(["--config", str(config_path), "--quiet", "deploy"]) == 0
    assert cli_client.tables["plugintest"] == {"athena_plugintest_1", "athena_plugintest_2"}
    assert "CREATE EXTERNAL TABLE athena_plugintest_2 (id string) LOCATION 's3://data/plugintest/'" in cli_client.queries
    assert cli_client.regions == ["us-east-1"]


def test_deploy_single_table(config_path, cli_client):
    argv = ["--config", str(config_path), "--quiet", "deploy", "--table", "athena_plugintest_1"]
    assert deploy_tables.main(argv) == 0
    assert cli_client.tables["plugintest"] == {"athena_plugintest_1"}


def test_region_override(config_path, cli_client):
    argv = ["--config", str(config_path), "--region", "eu-west-1", "--quiet", "deploy"]
    assert deploy_tables.main(argv) == 0
    assert cli_client.regions == ["eu-west-1"]


def test_deploy_unknown_table_exits_one(config_path, cli_client):
    argv = ["--config", str(config_path), "--quiet", "deploy", "--table", "nope"]
    assert deploy_tables.main(argv) == 1


def test_remove_missing_table_exits_one(config_path, cli_client):
    argv = ["--config", str(config_path), "--quiet", "remove", "--table", "athena_plugintest_1"]
    assert deploy_tables.main(argv) == 1
    assert cli_client.queries == ["DROP TABLE athena_plugintest_1"]


def test_list_prints_tables(config_path, cli_client, capsys):
    deploy_tables.main(["--config", str(config_path), "--quiet", "deploy"])
    capsys.readouterr()

    argv = [
        "--config", str(config_path), "--quiet",
        "list", "--database", "plugintest", "--output-location", "s3://athena-results/out/",
    ]
    assert deploy_tables.main(argv) == 0
    out = capsys.readouterr().out
    assert out.splitlines() == ["athena_plugintest_1", "athena_plugintest_2"]


def test_invalid_poll_interval(config_path):
    with pytest.raises(SystemExit) as exc_info:
        deploy_tables.main(["--config", str(config_path), "--poll-interval", "0", "validate"])
    assert exc_info.value.code == 2


def test_version(capsys):
    with pytest.raises(SystemExit) as exc_info:
        deploy_tables.main(["--version"])
    assert exc_info.value.code == 0
    assert "athena-tables" in capsys.readouterr().out


def test_malformed_tables_section_exits_one(tmp_path, cli_client):
    path = tmp_path / "serverless.yml"
    path.write_text("custom:\n  athenaTables: [a, b]\n", encoding="utf-8")
    assert deploy_tables.main(["--config", str(path), "--quiet", "validate"]) == 1
    assert deploy_tables.main(["--config", str(path), "--quiet", "deploy"]) == 1
    assert cli_client.submissions == []


def test_malformed_poll_interval_env(config_path, monkeypatch):
    monkeypatch.setenv("ATHENA_TABLES_POLL_INTERVAL", "1s")
    with pytest.raises(SystemExit) as exc_info:
        deploy_tables.main(["--config", str(config_path), "--quiet", "validate"])
    assert exc_info.value.code == 2


def test_no_colors_when_output_is_not_a_terminal(config_path, cli_client, monkeypatch):
    calls = []
    monkeypatch.setattr(deploy_tables.sys, "stdout", io.StringIO())
    monkeypatch.setattr(
        deploy_tables, "setup_logging", lambda **kwargs: calls.append(kwargs)
    )
    assert deploy_tables.main(["--config", str(config_path), "validate"]) == 0
    assert calls[0]["use_colors"] is False
