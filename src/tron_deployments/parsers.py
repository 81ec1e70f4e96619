"""Plan and artifact file parsers for tron-deployments library."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .exceptions import ArtifactNotFoundError, InvalidArtifactError, InvalidPlanError
from .paths import get_artifact_path
from .types import Binding, ConfigArg, ContractArtifact, DeploymentStep, LiteralArg, StepRef


def parse_binding(raw: Any) -> Binding:
    """
    Parse one constructor argument from its JSON form.

    Forms:
    - {"env": "KEY"}     -> ConfigArg("KEY")
    - {"step": 3}        -> StepRef(3)
    - {"literal": value} -> LiteralArg(value)
    - any scalar or list -> LiteralArg(value)

    Raises:
        InvalidPlanError: If an object argument has an unknown shape
    """
    if not isinstance(raw, dict):
        return LiteralArg(raw)

    if set(raw) == {"env"} and isinstance(raw["env"], str):
        return ConfigArg(raw["env"])
    if set(raw) == {"step"} and isinstance(raw["step"], int) and not isinstance(raw["step"], bool):
        return StepRef(raw["step"])
    if set(raw) == {"literal"}:
        return LiteralArg(raw["literal"])

    raise InvalidPlanError(f"Unrecognized argument binding: {raw!r}")


def parse_plan_data(data: Dict[str, Any]) -> List[DeploymentStep]:
    """
    Build deployment steps from a decoded plan document.

    Steps without an explicit "index" are numbered by position.

    Raises:
        InvalidPlanError: If the document is missing "steps" or a step is malformed
    """
    raw_steps = data.get("steps") if isinstance(data, dict) else None
    if not isinstance(raw_steps, list):
        raise InvalidPlanError("Plan document must contain a 'steps' list")

    steps: List[DeploymentStep] = []
    for position, raw_step in enumerate(raw_steps):
        if not isinstance(raw_step, dict) or "contract" not in raw_step:
            raise InvalidPlanError(f"Step at position {position} has no 'contract'")

        index = raw_step.get("index", position)
        if not isinstance(index, int) or isinstance(index, bool):
            raise InvalidPlanError(f"Step at position {position} has a non-integer index")

        steps.append(
            DeploymentStep(
                index=index,
                contract=raw_step["contract"],
                args=tuple(parse_binding(arg) for arg in raw_step.get("args", [])),
                export=raw_step.get("export"),
                label=raw_step.get("label"),
            )
        )

    return steps


def parse_plan(file_path: Path) -> List[DeploymentStep]:
    """
    Parse a JSON deployment plan file.

    Args:
        file_path: Path to plan JSON file

    Returns:
        Steps in file order (not yet validated, see plans.validate_plan)
    """
    with open(file_path) as f:
        data = json.load(f)
    return parse_plan_data(data)


def parse_artifact(file_path: Path) -> ContractArtifact:
    """
    Parse a TronBox/Truffle build artifact.

    Args:
        file_path: Path to {build_dir}/{Contract}.json

    Returns:
        ContractArtifact with the bytecode stripped of any 0x prefix

    Raises:
        ArtifactNotFoundError: If the file does not exist
        InvalidArtifactError: If the file is not JSON or "abi"/"bytecode" is missing
    """
    if not file_path.exists():
        raise ArtifactNotFoundError(
            f"Contract artifact not found at {file_path}. Compile the contracts first."
        )

    try:
        with open(file_path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InvalidArtifactError(f"Contract artifact {file_path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise InvalidArtifactError(f"Contract artifact {file_path} must be a JSON object")
    missing = [key for key in ("abi", "bytecode") if key not in data]
    if missing:
        raise InvalidArtifactError(
            f"Contract artifact {file_path} is missing {', '.join(missing)}"
        )
    if not isinstance(data["bytecode"], str) or not isinstance(data["abi"], list):
        raise InvalidArtifactError(
            f"Contract artifact {file_path} needs a list abi and a string bytecode"
        )

    bytecode = data["bytecode"]
    if bytecode.startswith("0x"):
        bytecode = bytecode[2:]

    return ContractArtifact(
        name=data.get("contractName", file_path.stem),
        abi=data["abi"],
        bytecode=bytecode,
        source_path=str(file_path),
    )


def load_artifact(
    contract: str, build_dir: Optional[Union[Path, str]] = None
) -> ContractArtifact:
    """Load the artifact for a contract name from the build directory."""
    return parse_artifact(get_artifact_path(contract, build_dir))
