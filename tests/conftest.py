"""Shared pytest fixtures for cosmwasm-deployments tests."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from cosmwasm_deployments.config import Settings
from cosmwasm_deployments.exceptions import (
    ChainRpcError,
    CodeNotFoundError,
    ContractNotFoundError,
    UploadError,
)
from cosmwasm_deployments.manifest import ManifestStore
from cosmwasm_deployments.orchestrator import Orchestrator
from cosmwasm_deployments.types import CodeMetadata, ContractMetadata, Environment


class FakeChainClient:
    """In-memory chain that records every call made to it."""

    def __init__(
        self,
        address: str = "neutron1deployer",
        first_code_id: int = 7,
        ibc_port: Optional[str] = "wasm.contract",
    ):
        self.address = address
        self.next_code_id = first_code_id
        self.ibc_port = ibc_port
        self.codes: Dict[int, bytes] = {}
        self.contracts: Dict[str, int] = {}
        self.calls: List[Tuple[str, Tuple[Any, ...]]] = []
        self.fail_on: Set[str] = set()
        self.funded = True
        self.balance = 1_000_000

    def _call(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if method in self.fail_on:
            error = UploadError if method == "upload" else ChainRpcError
            raise error(f"{method} rejected by fake chain")

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def args_of(self, method: str) -> List[Tuple[Any, ...]]:
        return [args for name, args in self.calls if name == method]

    def upload(self, wasm: bytes) -> int:
        self._call("upload", wasm)
        code_id = self.next_code_id
        self.next_code_id += 1
        self.codes[code_id] = wasm
        return code_id

    def get_code_metadata(self, code_id: int) -> CodeMetadata:
        self._call("get_code_metadata", code_id)
        if code_id not in self.codes:
            raise CodeNotFoundError(f"code {code_id} not found")
        return CodeMetadata(code_id=code_id, creator=self.address)

    def instantiate(
        self, code_id: int, init_msg: Dict[str, Any], label: str, admin: str
    ) -> str:
        self._call("instantiate", code_id, init_msg, label, admin)
        address = f"{label}-contract-{len(self.contracts) + 1}"
        self.contracts[address] = code_id
        return address

    def migrate(
        self, contract_address: str, new_code_id: int, migrate_msg: Dict[str, Any]
    ) -> None:
        self._call("migrate", contract_address, new_code_id, migrate_msg)
        if contract_address not in self.contracts:
            raise ContractNotFoundError(f"contract {contract_address} not found")
        self.contracts[contract_address] = new_code_id

    def get_contract_metadata(self, contract_address: str) -> ContractMetadata:
        self._call("get_contract_metadata", contract_address)
        if contract_address not in self.contracts:
            raise ContractNotFoundError(f"contract {contract_address} not found")
        return ContractMetadata(
            address=contract_address,
            code_id=self.contracts[contract_address],
            ibc_port=self.ibc_port,
        )

    def get_balance(self, address: str, denom: str) -> int:
        self._call("get_balance", address, denom)
        return self.balance

    def account_exists(self, address: str) -> bool:
        self._call("account_exists", address)
        return self.funded


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def sample_manifest_json(fixtures_dir: Path) -> Dict[str, Any]:
    """Load and return the sample deploy.json fixture."""
    with open(fixtures_dir / "sample_manifest.json") as f:
        return json.load(f)


@pytest.fixture
def sample_network_path(fixtures_dir: Path) -> Path:
    """Return path to the sample network.json fixture."""
    return fixtures_dir / "sample_network.json"


@pytest.fixture
def temp_manifest(tmp_path: Path, sample_manifest_json: Dict[str, Any]) -> Path:
    """Create a temporary deploy.json file with sample data."""
    manifest_path = tmp_path / "deploy.json"
    with open(manifest_path, "w") as f:
        json.dump(sample_manifest_json, f, indent=2)
    return manifest_path


@pytest.fixture
def artifacts_dir(tmp_path: Path) -> Path:
    """Create a wasm artifacts directory with one artifact per default contract."""
    directory = tmp_path / "wasm" / "artifacts"
    directory.mkdir(parents=True)
    for name in ("warehouse", "payment", "nft"):
        (directory / f"{name}.wasm").write_bytes(b"\x00asm\x01\x00\x00\x00" + name.encode())
    return directory


@pytest.fixture
def store(tmp_path: Path) -> ManifestStore:
    """Manifest store backed by a not-yet-existing file."""
    return ManifestStore(tmp_path / "deploy.json")


@pytest.fixture
def chain_factory():
    """Return the FakeChainClient class for tests that build their own chains."""
    return FakeChainClient


@pytest.fixture
def clients() -> Dict[str, FakeChainClient]:
    """One fake chain per default target."""
    return {
        "neutron": FakeChainClient(address="neutron1deployer", first_code_id=7),
        "kujira": FakeChainClient(address="kujira1deployer", first_code_id=40),
        "stargaze": FakeChainClient(address="stars1deployer", first_code_id=100, ibc_port=None),
    }


@pytest.fixture
def settings(store: ManifestStore, artifacts_dir: Path) -> Settings:
    """Testnet settings over the temp manifest and artifacts."""
    return Settings(
        environment=Environment.TESTNET,
        manifest_path=store.path,
        artifacts_dir=artifacts_dir,
    )


@pytest.fixture
def orchestrator(
    settings: Settings, store: ManifestStore, clients: Dict[str, FakeChainClient]
) -> Orchestrator:
    """Orchestrator wired to fake chains."""
    return Orchestrator(settings, store, clients)
