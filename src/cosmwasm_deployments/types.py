"""Data types and dataclasses for cosmwasm-deployments library."""

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional

from .exceptions import InvariantViolation


class Environment(Enum):
    """Deployment environment. Value strings appear in manifest and config keys."""

    TESTNET = "testnet"
    LOCAL = "local"


class Action(Enum):
    """Top-level sequence selected on the command line."""

    DEPLOY = "deploy"
    MIGRATE = "migrate"


class UploadMode(Enum):
    """How the reconciler treats an artifact that may already be on chain."""

    FORCE_UPLOAD = "force-upload"  # migrate path
    UPLOAD_IF_CHANGED = "upload-if-changed"  # deploy path


class UploadAction(Enum):
    UPLOAD = "upload"
    SKIP = "skip"


class FailurePolicy(Enum):
    """
    What the orchestrator does when a pair fails.

    - FAIL_FAST: stop the run at the first failing pair
    - ISOLATE: record chain/artifact failures and move on to the next pair
    """

    FAIL_FAST = "fail-fast"
    ISOLATE = "isolate"


class ManifestKey(NamedTuple):
    """Composite manifest key. Serialized as ``<contract>_<environment>``."""

    contract: str
    environment: Environment

    def to_str(self) -> str:
        return f"{self.contract}_{self.environment.value}"

    @classmethod
    def from_str(cls, key: str) -> "ManifestKey":
        """
        Parse a serialized key.

        Splits on the last underscore, so contract names may contain underscores.

        Raises:
            ValueError: If the key has no underscore or an unknown environment
        """
        contract, sep, env = key.rpartition("_")
        if not sep or not contract:
            raise ValueError(f"Malformed manifest key: '{key}'")
        return cls(contract, Environment(env))


@dataclass
class DeployRecord:
    """Deployment state of one contract in one environment."""

    content_hash: Optional[str] = None  # hex sha256 of last uploaded artifact
    code_id: Optional[int] = None
    contract_address: Optional[str] = None
    ibc_port: Optional[str] = None

    # Fields found in the manifest file that this library does not manage
    extra: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def has_code(self) -> bool:
        return bool(self.content_hash) and self.code_id is not None

    def with_code(self, content_hash: str, code_id: int) -> "DeployRecord":
        """Return a copy pointing at newly uploaded code."""
        return replace(self, content_hash=content_hash, code_id=code_id)

    def validate(self) -> None:
        """
        Check record invariants.

        Raises:
            InvariantViolation: If an address exists without a code id, or a
                port exists without an address
        """
        if self.contract_address and self.code_id is None:
            raise InvariantViolation(
                f"Record has contract address {self.contract_address} but no code id"
            )
        if self.ibc_port and not self.contract_address:
            raise InvariantViolation(
                f"Record has ibc port {self.ibc_port} but no contract address"
            )


@dataclass(frozen=True)
class UploadDecision:
    """Result of upload reconciliation."""

    action: UploadAction
    reason: str  # "forced", "new", "changed", "unchanged" or "stale code id"

    @property
    def should_upload(self) -> bool:
        return self.action is UploadAction.UPLOAD


@dataclass(frozen=True)
class Artifact:
    """A compiled contract artifact and its content fingerprint."""

    path: Path
    data: bytes = field(repr=False)
    content_hash: str


@dataclass(frozen=True)
class CodeMetadata:
    """Code info returned by the chain for a code id."""

    code_id: int
    creator: Optional[str] = None
    data_hash: Optional[str] = None


@dataclass(frozen=True)
class ContractMetadata:
    """Contract info returned by the chain for a contract address."""

    address: str
    code_id: Optional[int] = None
    admin: Optional[str] = None
    label: Optional[str] = None
    ibc_port: Optional[str] = None


@dataclass(frozen=True)
class NetworkConfig:
    """Connection settings for one target chain in one environment."""

    target: str  # e.g. "neutron"
    environment: Environment
    rpc_url: str
    rest_url: str
    chain_id: str
    denom: str
    addr_prefix: str
    gas_price: str = "0"
    full_denom: Optional[str] = None


@dataclass(frozen=True)
class DeployTarget:
    """A contract paired with the chain it is deployed to."""

    contract: str  # e.g. "warehouse"; artifact is <contract>.wasm
    target: str  # chain name, e.g. "neutron"
    init_msg: Dict[str, Any] = field(default_factory=dict, hash=False)
    migrate_msg: Dict[str, Any] = field(default_factory=dict, hash=False)
    expects_ibc_port: bool = True


@dataclass
class PairOutcome:
    """What happened to one contract/target pair during a run."""

    target: DeployTarget
    action: Action
    uploaded: bool = False
    instantiated: bool = False
    migrated: bool = False
    decision: Optional[UploadDecision] = None
    record: Optional[DeployRecord] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunReport:
    """Outcomes of a deploy or migrate run, in iteration order."""

    action: Action
    environment: Environment
    outcomes: List[PairOutcome] = field(default_factory=list)
    aborted: bool = False  # True if a fatal error stopped the run

    @property
    def failed(self) -> List[PairOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def ok(self) -> bool:
        return not self.aborted and not self.failed
