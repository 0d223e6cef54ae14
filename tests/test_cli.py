"""
Tests for CLI commands using Click's CliRunner.

The adapter registry is injected through ``obj`` so no docker or go
binary is needed; prompts are answered through ``input=``.
"""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from fabctl.adapters.mock import MockAdapter
from fabctl.adapters.registry import AdapterRegistry
from fabctl.core.models.action import Receipt
from fabctl.core.persistence.audit import AuditWriter
from fabctl.main import cli
from fabctl.ui.cli._common import is_affirmative


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def network_file(network_root):
    path = network_root / "network.yml"
    path.write_text(
        "network:\n"
        "  go_toolchain: container\n"
        "  ready_retries: 3\n"
        "  ready_interval: 0\n"
        "  ready_timeout: 10\n"
    )
    return path


@pytest.fixture
def invoke(runner, network_file, registry):
    """Run ``fabctl --config network.yml <args>`` against the mocked registry."""

    def _invoke(*args: str, input: str | None = None, reg: AdapterRegistry | None = None):
        return runner.invoke(
            cli,
            ["--config", str(network_file), *args],
            input=input,
            obj={"registry": reg or registry},
        )

    return _invoke


def _crypto_args(config):
    return str(config.config_path), str(config.cryptos_path)


class TestIsAffirmative:
    @pytest.mark.parametrize("answer", ["y", "Y", "yes", "YES", "e", "sure"])
    def test_yes(self, answer):
        assert is_affirmative(answer)

    @pytest.mark.parametrize("answer", ["", "   ", "n", "no", "nope", None])
    def test_no(self, answer):
        assert not is_affirmative(answer)


class TestCliBasics:
    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("install", "start", "stop", "history", "generate", "channel", "chaincode", "benchmark"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "fabctl" in result.output

    def test_invalid_config(self, runner, tmp_path):
        path = tmp_path / "network.yml"
        path.write_text("channel_name: [oops\n")
        result = runner.invoke(cli, ["--config", str(path), "history"])
        assert result.exit_code == 1
        assert "Invalid YAML" in result.output


class TestGenerateCommands:
    def test_cryptos(self, invoke, config, docker, simulate_tools):
        result = invoke("generate", "cryptos", *_crypto_args(config))
        assert result.exit_code == 0, result.output
        assert "cryptos generated" in result.output
        assert docker.called_ids == ["crypto:generate"]

    def test_cryptos_decline(self, invoke, config, docker):
        (config.cryptos_path / "keep.pem").parent.mkdir(parents=True)
        (config.cryptos_path / "keep.pem").write_text("keep")
        result = invoke("generate", "cryptos", *_crypto_args(config), input="n\n")
        assert result.exit_code == 0, result.output
        assert "Kept existing cryptos" in result.output
        assert (config.cryptos_path / "keep.pem").read_text() == "keep"
        assert docker.call_count == 0

    def test_cryptos_accept(self, invoke, config, docker, simulate_tools):
        config.cryptos_path.mkdir()
        (config.cryptos_path / "stale.pem").write_text("stale")
        result = invoke("generate", "cryptos", *_crypto_args(config), input="yes\n")
        assert result.exit_code == 0, result.output
        assert not (config.cryptos_path / "stale.pem").exists()

    def test_genesis_missing_cryptos(self, invoke, config, docker):
        result = invoke(
            "generate", "genesis", str(config.base_path), str(config.config_path),
            str(config.cryptos_path), "OneOrgOrdererGenesis",
        )
        assert result.exit_code == 1
        assert "Missing prerequisite crypto material" in result.output
        assert docker.call_count == 0

    def test_channeltx_explicit_arguments(self, invoke, config, docker, simulate_tools):
        config.cryptos_path.mkdir()
        result = invoke(
            "generate", "channeltx", "trade", str(config.base_path), str(config.config_path),
            str(config.cryptos_path), "OneOrgOrdererGenesis", "TradeChannel", "Org2MSP",
        )
        assert result.exit_code == 0, result.output
        anchors = docker.call_log[-1].params["command"]
        assert anchors[anchors.index("-asOrg") + 1] == "Org2MSP"
        assert (config.channels_root / "trade").is_dir()

    @pytest.mark.parametrize(
        "args, message",
        [
            (("cryptos",), "Config path missing"),
            (("genesis",), "Base path missing"),
            (("channeltx",), "Channel name missing"),
        ],
    )
    def test_missing_arguments_are_usage_errors(self, invoke, docker, args, message):
        result = invoke("generate", *args)
        assert result.exit_code == 1
        assert message in result.output
        assert docker.call_count == 0

    def test_channeltx_rejects_path_like_channel(self, invoke, config, docker):
        config.cryptos_path.mkdir()
        result = invoke(
            "generate", "channeltx", "../config", str(config.base_path), str(config.config_path),
            str(config.cryptos_path), "OneOrgOrdererGenesis", "OneOrgChannel", "Org1MSP",
            input="y\n",
        )
        assert result.exit_code == 1
        assert "Invalid channel name" in result.output
        assert (config.config_path / "configtx.yaml").is_file()


class TestChannelCommands:
    def test_create_without_artifact(self, invoke, docker):
        result = invoke("channel", "create", "mychannel")
        assert result.exit_code == 1
        assert "Missing prerequisite" in result.output
        assert docker.call_count == 0

    @pytest.mark.parametrize(
        "args, message",
        [
            (("create",), "Channel name missing"),
            (("join",), "Channel name missing"),
            (("update",), "Channel name missing"),
            (("update", "mychannel"), "MSP missing"),
        ],
    )
    def test_missing_arguments_are_usage_errors(self, invoke, config, docker, args, message):
        block = config.channels_root / "mychannel" / "mychannel.block"
        block.parent.mkdir(parents=True)
        block.write_text("block")
        result = invoke("channel", *args)
        assert result.exit_code == 1
        assert message in result.output
        assert docker.call_count == 0

    def test_join(self, invoke, config, docker):
        block = config.channels_root / "other" / "other.block"
        block.parent.mkdir(parents=True)
        block.write_text("block")
        result = invoke("channel", "join", "other")
        assert result.exit_code == 0, result.output
        assert "Joined channel other" in result.output


class TestChaincodeCommands:
    @pytest.mark.parametrize("command", ["build", "test"])
    def test_missing_name_is_a_usage_error(self, invoke, docker, command):
        result = invoke("chaincode", command)
        assert result.exit_code == 1
        assert "Chaincode name missing" in result.output
        assert docker.call_count == 0

    def test_build(self, invoke, docker):
        result = invoke("chaincode", "build", "mychaincode")
        assert result.exit_code == 0, result.output
        assert docker.called_ids == ["chaincode:build"]

    def test_install_missing_path(self, invoke, docker):
        result = invoke("chaincode", "install", "mychaincode", "1.0")
        assert result.exit_code == 1
        assert "Chaincode path missing" in result.output
        assert docker.call_count == 0

    def test_upgrade(self, invoke, docker):
        result = invoke("chaincode", "upgrade", "mychaincode", "1.1", "mychannel")
        assert result.exit_code == 0, result.output
        assert "mychaincode:1.1@mychannel" in result.output
        assert docker.called_ids == ["chaincode:build", "chaincode:test", "chaincode:install", "chaincode:upgrade"]

    def test_invoke_missing_request(self, invoke, docker):
        result = invoke("chaincode", "invoke", "mychannel", "mychaincode")
        assert result.exit_code == 1
        assert "Request missing" in result.output
        assert docker.call_count == 0

    def test_query(self, invoke, docker):
        docker.set_response(
            "chaincode:query", Receipt.success(adapter="docker", action_id="chaincode:query", output="42")
        )
        result = invoke("chaincode", "query", "mychannel", "mychaincode", '{"Args":["get","k"]}')
        assert result.exit_code == 0, result.output
        assert "42" in result.output

    def test_peer_error_exit_code(self, invoke, docker):
        docker.set_failure("chaincode:invoke", error="chaincode mychaincode not found")
        result = invoke("chaincode", "invoke", "mychannel", "mychaincode", '{"Args":["put","k","v"]}')
        assert result.exit_code == 1
        assert "chaincode mychaincode not found" in result.output


class TestNetworkCommands:
    def test_start(self, invoke, config, docker, simulate_tools):
        result = invoke("start")
        assert result.exit_code == 0, result.output
        assert "Network up: 13/13 stages" in result.output

        entries = AuditWriter.for_network(config).read_all()
        assert [(e.operation_type, e.status) for e in entries] == [("start", "ok")]

    def test_start_failure(self, invoke, config, docker, simulate_tools):
        docker.set_failure("network:up", error="port 7050 already allocated")
        result = invoke("start")

        assert result.exit_code == 1
        assert "Stage 'network:up' failed" in result.output
        assert "port 7050 already allocated" in result.output
        assert "channel:create" not in docker.called_ids

        entry = AuditWriter.for_network(config).read_all()[-1]
        assert entry.status == "failed"
        assert entry.context["failed"] == 1

    def test_start_json(self, invoke, docker, simulate_tools):
        result = invoke("start", "--json")
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["status"] == "ok"

    def test_start_requires_docker(self, invoke):
        reg = AdapterRegistry()
        reg.register(MockAdapter(adapter_name="docker", available=False))
        result = invoke("start", reg=reg)
        assert result.exit_code == 1
        assert "docker required but not installed" in result.output

    def test_stop_removes_data_on_yes(self, invoke, config):
        (config.data_path / "ledger").mkdir(parents=True)
        result = invoke("stop", input="y\n")
        assert result.exit_code == 0, result.output
        assert "Network stopped" in result.output
        assert not config.data_path.exists()

    def test_stop_keeps_data_on_no(self, invoke, config):
        (config.data_path / "ledger").mkdir(parents=True)
        result = invoke("stop", input="n\n")
        assert result.exit_code == 0, result.output
        assert config.data_path.is_dir()

    def test_install(self, invoke, docker):
        result = invoke("install")
        assert result.exit_code == 0, result.output
        assert "9 images installed" in result.output

    def test_history(self, invoke):
        invoke("stop")
        invoke("stop")
        result = invoke("history", "--json")
        assert result.exit_code == 0, result.output
        assert [e["operation_type"] for e in json.loads(result.output)] == ["stop", "stop"]

    def test_history_empty(self, invoke):
        result = invoke("history")
        assert result.exit_code == 0
        assert "No operations recorded yet" in result.output


class TestBenchmarkCommands:
    def test_load(self, invoke, config, docker):
        result = invoke("benchmark", "load", "2", "3")
        assert result.exit_code == 0, result.output
        assert "Attempted:  6" in result.output
        assert docker.call_count == 6
        assert AuditWriter.for_network(config).read_all()[-1].operation_type == "benchmark"

    def test_load_json(self, invoke):
        result = invoke("benchmark", "load", "1", "2", "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["attempted"] == 2
        assert data["succeeded"] == 2

    def test_missing_jobs(self, invoke, docker):
        result = invoke("benchmark", "load")
        assert result.exit_code == 1
        assert "Provide a number of jobs to run in parallel" in result.output
        assert docker.call_count == 0

    def test_missing_entries(self, invoke, docker):
        result = invoke("benchmark", "load", "4")
        assert result.exit_code == 1
        assert "Provide a number of entries per job" in result.output
