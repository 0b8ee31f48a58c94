import json

import pytest
from click.testing import CliRunner

from allocopt import cli as cli_module
from allocopt.cli import cli

from conftest import INDEXER_ID, FakeManagementClient, make_hash


@pytest.fixture
def lists_file(tmp_path):
    path = tmp_path / "lists.csv"
    path.write_text(f"whitelist,blacklist,pinnedlist,frozenlist\n,,,{make_hash(5)}\n", encoding="utf-8")
    return path


@pytest.fixture
def endpoints(monkeypatch, app_config, network_client):
    management = FakeManagementClient()
    urls = []

    def fake_client(url):
        urls.append(url)
        return management if url.startswith(app_config.management_url) else network_client

    logging_calls = []
    monkeypatch.setattr(cli_module, "GraphQLClient", fake_client)
    monkeypatch.setattr(cli_module, "configure_logging", lambda **kwargs: logging_calls.append(kwargs))
    return {"management": management, "network": network_client, "urls": urls, "logging": logging_calls}


def _args(command, lists_file, *extra, lifetime="28"):
    return [
        command,
        "--indexer",
        INDEXER_ID,
        "--filepath",
        str(lists_file),
        "--maxgas",
        "0",
        "--allocation-lifetime",
        lifetime,
        "--maxnew",
        "2",
        "--tau",
        "0.2",
        *extra,
    ]


def test_rules_prints_one_command_per_action(app_config, endpoints, lists_file):
    result = CliRunner().invoke(cli, _args("rules", lists_file), obj=app_config)
    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines
    assert all(line.startswith("graph indexer allocations ") for line in lines)
    assert not any(make_hash(5) in line or "0xa5" in line for line in lines)
    assert endpoints["management"].calls == []


def test_actionqueue_queues_and_echoes_the_actions(app_config, endpoints, lists_file):
    result = CliRunner().invoke(cli, _args("actionqueue", lists_file), obj=app_config)
    assert result.exit_code == 0, result.output
    queued = json.loads(result.stdout)
    assert len(endpoints["management"].calls) == 1
    assert [item["id"] for item in queued] == list(range(1, len(queued) + 1))
    assert app_config.management_url in endpoints["urls"]


def test_cli_overrides_reach_the_config(app_config, endpoints, lists_file):
    args = _args("rules", lists_file, "--network-url", "http://other.test/network", "--log-level", "debug")
    result = CliRunner().invoke(cli, args, obj=app_config)
    assert result.exit_code == 0, result.output
    assert endpoints["urls"] == ["http://other.test/network"]
    assert endpoints["logging"][0]["level"] == "debug"


def test_invalid_lifetime_is_reported_without_queries(app_config, endpoints, lists_file):
    result = CliRunner().invoke(cli, _args("actionqueue", lists_file, lifetime="29"), obj=app_config)
    assert result.exit_code == 1
    assert "Allocation lifetime" in result.output
    assert endpoints["network"].calls == []
    assert endpoints["management"].calls == []


def test_missing_list_file_is_reported(app_config, endpoints, tmp_path):
    result = CliRunner().invoke(cli, _args("rules", tmp_path / "absent.csv"), obj=app_config)
    assert result.exit_code == 1
    assert "Error" in result.output
    assert endpoints["network"].calls == []


def test_required_options_are_enforced(app_config, endpoints):
    result = CliRunner().invoke(cli, ["rules", "--indexer", INDEXER_ID], obj=app_config)
    assert result.exit_code == 2


def test_min_allocation_reaches_the_optimizer(app_config, endpoints, lists_file):
    args = _args("rules", lists_file, "--min-allocation", "300000")
    result = CliRunner().invoke(cli, args, obj=app_config)
    assert result.exit_code == 0, result.output
    amounts = [
        float(line.rsplit(" ", 1)[1])
        for line in result.stdout.splitlines()
        if " create " in line or " reallocate " in line
    ]
    assert amounts
    assert all(amount >= 300_000 for amount in amounts)


def test_bad_environment_is_reported_without_a_traceback(monkeypatch, tmp_path):
    monkeypatch.setenv("ALLOCOPT_PAGE_SIZE", "lots")
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, _args("rules", tmp_path / "lists.csv"))
    assert result.exit_code == 1
    assert "Invalid configuration: ALLOCOPT_PAGE_SIZE must be an integer" in result.output
