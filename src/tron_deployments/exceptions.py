"""Custom exception classes for tron-deployments library."""

from typing import Optional


class DeploymentError(Exception):
    """Base exception for deployment-related errors.

    Errors raised while executing a plan are annotated by the orchestrator
    with the index and contract name of the failing step.
    """

    def __init__(self, *args: object) -> None:
        super().__init__(*args)
        self.step_index: Optional[int] = None
        self.contract: Optional[str] = None


class MissingConfigurationError(DeploymentError, LookupError):
    """Raised when a required configuration value is absent."""

    pass


class ConfigurationError(DeploymentError, ValueError):
    """Raised when a configuration value is present but malformed."""

    pass


class UnresolvedDependencyError(DeploymentError, LookupError):
    """Raised when a step references an address that has not been recorded."""

    pass


class InvalidPlanError(DeploymentError, ValueError):
    """Raised when a deployment plan is not a valid ordered step list."""

    pass


class DeploymentRejectedError(DeploymentError, RuntimeError):
    """Raised when the node rejects or reverts a contract creation."""

    pass


class InsufficientBalanceError(DeploymentRejectedError):
    """Raised when the deployer balance is below the configured minimum."""

    pass


class DeploymentTimeoutError(DeploymentError, TimeoutError):
    """Raised when contract creation is not confirmed within the timeout."""

    pass


class EnvironmentUnavailableError(DeploymentError, RuntimeError):
    """Raised when the node cannot be reached or answers with an HTTP error."""

    pass


class ArtifactNotFoundError(DeploymentError, FileNotFoundError):
    """Raised when a compiled contract artifact is not found."""

    pass


class InvalidArtifactError(DeploymentError, ValueError):
    """Raised when a contract artifact is not valid JSON or lacks abi/bytecode."""

    pass


class InvalidAddressError(DeploymentError, ValueError):
    """Raised when an address cannot be decoded or fails its checksum."""

    pass


class LedgerError(DeploymentError, ValueError):
    """Raised on an out-of-order ledger write or an unreadable ledger file."""

    pass
