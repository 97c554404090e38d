"""Custom exception classes for cosmwasm-deployments library."""


class DeploymentError(Exception):
    """Base exception for deployment-related errors."""

    pass


class ConfigurationError(DeploymentError, ValueError):
    """Raised when CLI arguments, network config or environment are invalid."""

    pass


class ArtifactReadError(DeploymentError, FileNotFoundError):
    """Raised when a compiled contract artifact is missing or unreadable."""

    pass


class ManifestIOError(DeploymentError, OSError):
    """Raised when the deploy manifest cannot be read, parsed or written."""

    pass


class ChainRpcError(DeploymentError, RuntimeError):
    """Raised when a chain query or transaction fails."""

    pass


class ChainTimeoutError(ChainRpcError, TimeoutError):
    """Raised when a chain call exceeds its timeout."""

    pass


class UploadError(ChainRpcError):
    """Raised when uploading contract code fails."""

    pass


class CodeNotFoundError(ChainRpcError, LookupError):
    """Raised when the chain has no code stored under a code id."""

    pass


class ContractNotFoundError(ChainRpcError, LookupError):
    """Raised when the chain has no contract at an address."""

    pass


class InvariantViolation(DeploymentError, RuntimeError):
    """Raised when a lifecycle step runs out of order or a record is corrupt."""

    pass


class AccountNotFoundError(ChainRpcError, LookupError):
    """Raised when the chain has no account at an address (never funded)."""

    pass
