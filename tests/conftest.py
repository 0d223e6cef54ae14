"""
Shared test fixtures and configuration.

Services are exercised against a registry whose "docker" and "shell"
adapters are MockAdapters; per-action handlers stand in for the files
the real generator tools and peer would have written.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from fabctl.adapters.mock import MockAdapter
from fabctl.adapters.registry import AdapterRegistry
from fabctl.core.context import OpsContext
from fabctl.core.models.network import NetworkConfig


def write_file(path: Path, content: str = "x\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class FakeClock:
    """Monotonic clock that only moves when ``sleep`` is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def network_root(tmp_path: Path) -> Path:
    """A network directory with the prerequisite inputs in place."""
    write_file(tmp_path / "config" / "crypto-config.yaml", "OrdererOrgs: []\n")
    write_file(tmp_path / "config" / "configtx.yaml", "Profiles: {}\n")
    write_file(tmp_path / "docker-compose.yaml", "services: {}\n")
    write_file(tmp_path / "chaincode" / "mychaincode" / "main.go", "package main\n")
    return tmp_path


@pytest.fixture
def config(network_root: Path) -> NetworkConfig:
    return NetworkConfig(
        root=network_root,
        go_toolchain="container",
        ready_retries=3,
        ready_interval=1.0,
        ready_timeout=10.0,
    )


@pytest.fixture
def docker() -> MockAdapter:
    return MockAdapter(adapter_name="docker", default_output="")


@pytest.fixture
def shell() -> MockAdapter:
    return MockAdapter(adapter_name="shell", default_output="")


@pytest.fixture
def registry(docker: MockAdapter, shell: MockAdapter) -> AdapterRegistry:
    reg = AdapterRegistry()
    reg.register(docker)
    reg.register(shell)
    return reg


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def answers() -> list[str]:
    """Every confirmation question asked, in order."""
    return []


@pytest.fixture
def make_ops(config: NetworkConfig, registry: AdapterRegistry, clock: FakeClock, answers: list[str]):
    """Build an OpsContext whose confirmation prompt always answers ``confirm``."""

    def _make(confirm: bool = False, cfg: NetworkConfig | None = None) -> OpsContext:
        def _confirm(message: str) -> bool:
            answers.append(message)
            return confirm

        return OpsContext(
            config=cfg or config,
            registry=registry,
            confirm=_confirm,
            sleep=clock.sleep,
            clock=clock,
        )

    return _make


@pytest.fixture
def ops(make_ops) -> OpsContext:
    return make_ops()


@pytest.fixture
def simulate_tools(config: NetworkConfig, docker: MockAdapter):
    """Make the mocked tools leave behind what the real ones would."""

    def _cryptos(ctx):
        write_file(config.cryptos_path / "peerOrganizations" / "org1" / "msp" / "cert.pem")

    def _genesis(ctx):
        write_file(config.channels_root / "orderer-system-channel" / "genesis_block.pb")

    def _channel_tx(ctx):
        write_file(config.channels_root / config.channel_name / f"{config.channel_name}_tx.pb")

    def _anchors(ctx):
        write_file(config.channels_root / config.channel_name / f"{config.org_msp}_anchors_tx.pb")

    def _block(ctx):
        write_file(config.channels_root / config.channel_name / f"{config.channel_name}.block")

    docker.set_handler("crypto:generate", _cryptos)
    docker.set_handler("genesis:generate", _genesis)
    docker.set_handler("channeltx:generate", _channel_tx)
    docker.set_handler("channeltx:anchors", _anchors)
    docker.set_handler("channel:create", _block)
    return docker
