"""
cosmwasm-deployments: idempotent upload, instantiate and migrate of CosmWasm contracts
"""

from importlib.metadata import PackageNotFoundError, version

from .chain import ChainClient, RestChainClient, Signer
from .config import Settings
from .exceptions import (
    AccountNotFoundError,
    ArtifactReadError,
    ChainRpcError,
    ChainTimeoutError,
    CodeNotFoundError,
    ConfigurationError,
    ContractNotFoundError,
    DeploymentError,
    InvariantViolation,
    ManifestIOError,
    UploadError,
)
from .hashing import hash_artifact
from .manifest import ManifestStore
from .orchestrator import Orchestrator
from .reconciler import decide
from .types import (
    Action,
    DeployRecord,
    DeployTarget,
    Environment,
    FailurePolicy,
    ManifestKey,
    RunReport,
    UploadDecision,
    UploadMode,
)

try:
    __version__ = version("cosmwasm-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "Orchestrator",
    "ManifestStore",
    "Settings",
    "decide",
    "hash_artifact",
    "ChainClient",
    "RestChainClient",
    "Signer",
    "Action",
    "DeployRecord",
    "DeployTarget",
    "Environment",
    "FailurePolicy",
    "ManifestKey",
    "RunReport",
    "UploadDecision",
    "UploadMode",
    "DeploymentError",
    "ConfigurationError",
    "ArtifactReadError",
    "ManifestIOError",
    "ChainRpcError",
    "ChainTimeoutError",
    "UploadError",
    "CodeNotFoundError",
    "ContractNotFoundError",
    "AccountNotFoundError",
    "InvariantViolation",
]
