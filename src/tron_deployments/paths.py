"""Path management utilities for tron-deployments library."""

from pathlib import Path
from typing import Optional, Union


def get_default_build_dir() -> Path:
    """
    Get default artifact directory (TronBox/Truffle layout).

    Returns:
        Path to ./build/contracts
    """
    return Path.cwd() / "build" / "contracts"


def get_default_state_dir() -> Path:
    """
    Get default directory for ledger files.

    Returns:
        Path to ./.tron-deployments
    """
    return Path.cwd() / ".tron-deployments"


def get_ledger_path(
    network: str, state_root: Optional[Union[Path, str]] = None
) -> Path:
    """
    Get the ledger file path for a network.

    Args:
        network: Network name ("mainnet", "shasta" or "nile")
        state_root: Custom state directory (defaults to ./.tron-deployments)

    Returns:
        Path to {state_root}/{network}.ledger.json
    """
    if state_root is None:
        state_root = get_default_state_dir()
    else:
        state_root = Path(state_root).absolute()

    return state_root / f"{network}.ledger.json"


def get_artifact_path(contract: str, build_dir: Optional[Union[Path, str]] = None) -> Path:
    """
    Get the build artifact path for a contract.

    Args:
        contract: Contract name, e.g. "LiquidityPool"
        build_dir: Artifact directory (defaults to ./build/contracts)

    Returns:
        Path to {build_dir}/{contract}.json
    """
    if build_dir is None:
        build_dir = get_default_build_dir()
    return Path(build_dir) / f"{contract}.json"
