"""Shared pytest fixtures for tron-deployments tests."""

import json
import os
import shutil
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence
from unittest import mock

import pytest

from tron_deployments.exceptions import DeploymentRejectedError
from tron_deployments.types import ContractAddress, DeployResult

# Private key 0x...01; its account id is the well-known 0x7E5F...5Bdf
DEPLOYER_KEY = "0" * 63 + "1"
DEPLOYER_HEX = "417e5f4552091a69125d5dfcb7b8c2659029395bdf"

# USDT on TRON mainnet
USDT_BASE58 = "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t"
USDT_HEX = "41a614f803b6fd780986a42c78ec9c7f77e6ded13c"


class FakeEnvironment:
    """In-memory execution environment that hands out sequential addresses."""

    def __init__(
        self,
        balance: int = 500_000_000,
        fail_on: Optional[Dict[str, Exception]] = None,
    ):
        self.balance = balance
        self.fail_on = fail_on or {}
        self.calls: List[Dict[str, Any]] = []
        self.balance_reads = 0
        self.owner = ContractAddress.from_hex(DEPLOYER_HEX)
        self._counter = 0

    def deploy(
        self, contract: str, args: Sequence[Any], timeout: Optional[float] = None
    ) -> DeployResult:
        self.calls.append({"contract": contract, "args": list(args), "timeout": timeout})
        if contract in self.fail_on:
            raise self.fail_on[contract]
        self._counter += 1
        address = ContractAddress.from_hex(f"41{self._counter:040x}")
        return DeployResult(address=address, transaction_id=f"{self._counter:064x}")

    def get_balance(self, address: Optional[str] = None) -> int:
        self.balance_reads += 1
        return self.balance

    @property
    def deployed(self) -> List[str]:
        return [call["contract"] for call in self.calls]


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def artifacts_dir(fixtures_dir: Path) -> Path:
    """Return the path to the sample build artifacts."""
    return fixtures_dir / "artifacts"


@pytest.fixture
def build_dir(tmp_path: Path, artifacts_dir: Path) -> Path:
    """Copy the sample artifacts into a temporary build/contracts directory."""
    target = tmp_path / "build" / "contracts"
    shutil.copytree(artifacts_dir, target)
    return target


@pytest.fixture
def sample_plan_path(fixtures_dir: Path) -> Path:
    """Return path to the sample JSON plan."""
    return fixtures_dir / "sample_plan.json"


@pytest.fixture
def sample_ledger_json(fixtures_dir: Path) -> Dict[str, Any]:
    """Load and return the sample ledger fixture."""
    with open(fixtures_dir / "sample_ledger.json") as f:
        return json.load(f)


@pytest.fixture
def plan_config() -> Dict[str, str]:
    """Configuration values referenced by the sample plan."""
    return {
        "USDT_CONTRACT_ADDRESS": USDT_BASE58,
        "PUBLIC_ADDRESS": USDT_HEX,
    }


@pytest.fixture
def fake_env() -> FakeEnvironment:
    """A fresh in-memory execution environment."""
    return FakeEnvironment()


@pytest.fixture
def rejecting_env() -> FakeEnvironment:
    """An environment that rejects the AccessControlModule creation."""
    return FakeEnvironment(
        fail_on={"AccessControlModule": DeploymentRejectedError("REVERT opcode executed")}
    )


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch) -> Iterator[Path]:
    """Run from an empty directory with a restorable, TRON-free environment."""
    with mock.patch.dict(os.environ):
        for name in list(os.environ):
            if name.startswith("TRON_") or name.endswith("_ADDRESS") or name == "PRIVATE_KEY":
                del os.environ[name]
        monkeypatch.chdir(tmp_path)
        yield tmp_path
