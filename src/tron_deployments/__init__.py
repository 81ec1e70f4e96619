"""
tron-deployments: ordered, dependency-aware deployment of TRON smart contracts
"""

from importlib.metadata import PackageNotFoundError, version

from .client import TronClient
from .config import Settings
from .exceptions import (
    ArtifactNotFoundError,
    ConfigurationError,
    DeploymentError,
    DeploymentRejectedError,
    DeploymentTimeoutError,
    EnvironmentUnavailableError,
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidArtifactError,
    InvalidPlanError,
    LedgerError,
    MissingConfigurationError,
    UnresolvedDependencyError,
)
from .ledger import DeploymentLedger, load_ledger, save_ledger
from .orchestrator import DeploymentOrchestrator, preflight, resolve_arguments
from .plans import BNPL_SUITE, validate_plan
from .types import (
    ConfigArg,
    ContractAddress,
    DeploymentStep,
    DeployResult,
    LedgerEntry,
    LiteralArg,
    StepRef,
)

try:
    __version__ = version("tron-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "DeploymentOrchestrator",
    "TronClient",
    "Settings",
    "preflight",
    "resolve_arguments",
    "validate_plan",
    "BNPL_SUITE",
    "DeploymentLedger",
    "load_ledger",
    "save_ledger",
    "ContractAddress",
    "DeploymentStep",
    "DeployResult",
    "LedgerEntry",
    "LiteralArg",
    "ConfigArg",
    "StepRef",
    "DeploymentError",
    "MissingConfigurationError",
    "ConfigurationError",
    "UnresolvedDependencyError",
    "InvalidPlanError",
    "DeploymentRejectedError",
    "InsufficientBalanceError",
    "DeploymentTimeoutError",
    "EnvironmentUnavailableError",
    "ArtifactNotFoundError",
    "InvalidAddressError",
    "InvalidArtifactError",
    "LedgerError",
]
