"""Sequential deployment orchestration for tron-deployments library."""

import logging
from typing import Any, Callable, List, Mapping, Optional, Protocol, Sequence

from .constants import SUN_PER_TRX
from .exceptions import (
    ArtifactNotFoundError,
    DeploymentError,
    InsufficientBalanceError,
    LedgerError,
    MissingConfigurationError,
    UnresolvedDependencyError,
)
from .ledger import DeploymentLedger
from .plans import validate_plan
from .types import Binding, ConfigArg, DeploymentStep, DeployResult, LedgerEntry, LiteralArg, StepRef

logger = logging.getLogger(__name__)


class ExecutionEnvironment(Protocol):
    """What the orchestrator needs from a blockchain client."""

    def deploy(
        self, contract: str, args: Sequence[Any], timeout: Optional[float] = None
    ) -> DeployResult: ...

    def get_balance(self, address: Optional[str] = None) -> int: ...


def resolve_binding(
    binding: Binding, config: Mapping[str, str], ledger: DeploymentLedger
) -> Any:
    """
    Resolve one constructor argument.

    Raises:
        MissingConfigurationError: If a config key is absent or empty
        UnresolvedDependencyError: If a referenced step has no ledger entry
    """
    if isinstance(binding, LiteralArg):
        return binding.value
    if isinstance(binding, ConfigArg):
        value = config.get(binding.key)
        if value is None or value == "":
            raise MissingConfigurationError(f"Required configuration ${binding.key} is not set")
        return value
    if isinstance(binding, StepRef):
        try:
            return ledger.address(binding.index).base58
        except UnresolvedDependencyError as e:
            raise UnresolvedDependencyError(
                f"Step {binding.index} has not been deployed in this run"
            ) from e
    raise TypeError(f"Unknown binding type: {type(binding).__name__}")


def resolve_arguments(
    step: DeploymentStep, config: Mapping[str, str], ledger: DeploymentLedger
) -> List[Any]:
    """Resolve all of a step's constructor arguments, in order."""
    return [resolve_binding(arg, config, ledger) for arg in step.args]


def preflight(
    steps: Sequence[DeploymentStep],
    config: Mapping[str, str],
    artifact_exists: Optional[Callable[[str], bool]] = None,
) -> None:
    """
    Check a plan without touching the network.

    Args:
        steps: Steps in execution order
        config: Configuration source for ConfigArg bindings
        artifact_exists: Predicate on contract names, skipped if None

    Raises:
        InvalidPlanError: If the plan order or references are invalid
        MissingConfigurationError: Listing every absent configuration key
        ArtifactNotFoundError: Listing every missing artifact
    """
    validate_plan(steps)

    missing_keys = sorted(
        {key for step in steps for key in step.config_keys() if not config.get(key)}
    )
    if missing_keys:
        raise MissingConfigurationError(
            f"Missing configuration: {', '.join(missing_keys)}"
        )

    if artifact_exists is not None:
        missing_artifacts = [s.contract for s in steps if not artifact_exists(s.contract)]
        if missing_artifacts:
            raise ArtifactNotFoundError(
                f"Missing artifacts: {', '.join(dict.fromkeys(missing_artifacts))}"
            )


class DeploymentOrchestrator:
    """Runs deployment steps strictly in order, recording each address."""

    def __init__(
        self,
        environment: ExecutionEnvironment,
        config: Mapping[str, str],
        ledger: Optional[DeploymentLedger] = None,
        timeout: Optional[float] = None,
        min_balance: Optional[int] = None,
        on_record: Optional[Callable[[LedgerEntry], None]] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            environment: Blockchain client used for every submission
            config: Configuration source for ConfigArg bindings
            ledger: Ledger to append to; a loaded ledger resumes a previous run
            timeout: Seconds to wait for each confirmation
            min_balance: Minimum deployer balance in SUN required to start
            on_record: Called after each entry is recorded
        """
        self.environment = environment
        self.config = config
        self.ledger = ledger if ledger is not None else DeploymentLedger()
        self.timeout = timeout
        self.min_balance = min_balance
        self.on_record = on_record

    def pending(
        self, steps: Sequence[DeploymentStep], start: Optional[int] = None
    ) -> List[DeploymentStep]:
        """
        Steps that still need deploying.

        Raises:
            LedgerError: If a recorded entry belongs to a different contract, or
                a pending step sits below the last recorded index
        """
        result = []
        for step in steps:
            if step.index in self.ledger:
                recorded = self.ledger.entry(step.index)
                if recorded.contract != step.contract:
                    raise LedgerError(
                        f"Ledger step {step.index} is {recorded.contract}, plan has {step.contract}"
                    )
                continue
            if start is not None and step.index < start:
                continue
            result.append(step)

        last = self.ledger.last_index
        for step in result:
            if last is not None and step.index < last:
                error = LedgerError(
                    f"Step {step.index} ({step.contract}) is not recorded but step {last} is; "
                    f"pass a start index above {last} to skip it"
                )
                error.step_index = step.index
                error.contract = step.contract
                raise error
        return result

    def check_dependencies(self, todo: Sequence[DeploymentStep]) -> None:
        """
        Fail before any network call if a pending step can never resolve.

        Raises:
            UnresolvedDependencyError: If a reference is neither recorded
                nor deployed earlier in this run
        """
        available = set(self.ledger.addresses())
        for step in todo:
            for ref in step.references():
                if ref not in available:
                    error = UnresolvedDependencyError(
                        f"Step {step.index} ({step.contract}) references step {ref}, "
                        "which is neither recorded nor scheduled before it"
                    )
                    error.step_index = step.index
                    error.contract = step.contract
                    logger.error("%s", error)
                    raise error
            available.add(step.index)

    def check_balance(self) -> int:
        """
        Log the deployer balance and enforce min_balance.

        Raises:
            InsufficientBalanceError: If the balance is below min_balance
        """
        balance = self.environment.get_balance()
        logger.info("Deployer balance: %.6f TRX", balance / SUN_PER_TRX)
        if self.min_balance is not None and balance < self.min_balance:
            raise InsufficientBalanceError(
                f"Deployer balance {balance} SUN is below the required {self.min_balance} SUN"
            )
        return balance

    def run_step(self, step: DeploymentStep) -> LedgerEntry:
        """
        Resolve, deploy and record a single step.

        Raises:
            DeploymentError: Annotated with the step index and contract
        """
        try:
            args = resolve_arguments(step, self.config, self.ledger)
            logger.info("Step %d: deploying %s", step.index, step.name)
            result = self.environment.deploy(step.contract, args, timeout=self.timeout)

            entry = LedgerEntry(
                index=step.index,
                contract=step.contract,
                address=result.address,
                transaction_id=result.transaction_id,
            )
            self.ledger.record(entry)
        except DeploymentError as e:
            if e.step_index is None:
                e.step_index = step.index
                e.contract = step.contract
            logger.error("Step %d (%s) failed: %s", step.index, step.contract, e)
            raise

        logger.info("%s deployed (hex): %s", step.name, entry.address.hex)
        logger.info("%s deployed (base58): %s", step.name, entry.address.base58)

        if self.on_record is not None:
            try:
                self.on_record(entry)
            except OSError as e:
                error = LedgerError(
                    f"{step.name} deployed at {entry.address.base58} "
                    f"but the ledger could not be saved: {e}"
                )
                error.step_index = step.index
                error.contract = step.contract
                raise error from e
        return entry

    def run(
        self, steps: Sequence[DeploymentStep], start: Optional[int] = None
    ) -> DeploymentLedger:
        """
        Execute a plan.

        Steps already in the ledger are skipped, as are steps below start.
        The run stops at the first failure; earlier deployments stay recorded.

        Args:
            steps: Steps in execution order
            start: Lowest step index to deploy

        Returns:
            The ledger, holding one entry per completed step

        Raises:
            InvalidPlanError: If the plan is invalid (nothing is submitted)
            DeploymentError: From the first failing step
        """
        validate_plan(steps)
        todo = self.pending(steps, start)

        if not todo:
            logger.info("Nothing to deploy: all %d steps are recorded", len(steps))
            return self.ledger

        skipped = len(steps) - len(todo)
        if skipped:
            logger.info("Skipping %d recorded steps", skipped)

        self.check_dependencies(todo)
        self.check_balance()

        for step in todo:
            self.run_step(step)

        logger.info("All contracts deployed successfully (%d steps)", len(todo))
        return self.ledger
