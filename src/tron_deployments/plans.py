"""Deployment plans and static plan validation for tron-deployments library."""

from typing import Dict, List, Sequence, Set

from .exceptions import InvalidPlanError
from .types import ConfigArg, DeploymentStep, LiteralArg, StepRef

USDT = ConfigArg("USDT_CONTRACT_ADDRESS")
DEPLOYER = ConfigArg("PUBLIC_ADDRESS")
VAULT_ADMIN = ConfigArg("VAULT_ADMIN_ADDRESS")


def validate_plan(steps: Sequence[DeploymentStep]) -> None:
    """
    Check that a step list is a valid deployment order.

    Rules:
    - Indices are unique and strictly increasing in list order
    - Every StepRef points at a step with a strictly smaller index
      that is part of the plan
    - Export names are unique

    Args:
        steps: Steps in execution order

    Raises:
        InvalidPlanError: On the first violation found
    """
    seen: Set[int] = set()
    exports: Set[str] = set()
    previous = None

    for step in steps:
        if step.index in seen:
            raise InvalidPlanError(f"Duplicate step index {step.index} ({step.contract})")
        if previous is not None and step.index < previous:
            raise InvalidPlanError(
                f"Step {step.index} ({step.contract}) is out of order after step {previous}"
            )

        for ref in step.references():
            if ref >= step.index:
                raise InvalidPlanError(
                    f"Step {step.index} ({step.contract}) references step {ref}, "
                    "which does not come before it"
                )
            if ref not in seen:
                raise InvalidPlanError(
                    f"Step {step.index} ({step.contract}) references unknown step {ref}"
                )

        if step.export is not None:
            if step.export in exports:
                raise InvalidPlanError(f"Duplicate export name {step.export}")
            exports.add(step.export)

        seen.add(step.index)
        previous = step.index


# Escrow, lending and attestation suite, in migration order
BNPL_SUITE: List[DeploymentStep] = [
    DeploymentStep(0, "AttestationRegistry"),
    DeploymentStep(1, "FeeSplitter", (USDT, DEPLOYER, DEPLOYER)),
    DeploymentStep(2, "BPayEscrowVault", (USDT, StepRef(0))),
    DeploymentStep(3, "PaymentRouter", (StepRef(2),)),
    DeploymentStep(4, "BPayEscrowVaultV2", (USDT, StepRef(0))),
    DeploymentStep(5, "PaymentRouterV2", (StepRef(4),)),
    DeploymentStep(
        6,
        "AccessControlModule",
        (DEPLOYER, DEPLOYER),
        export="ACCESS_CONTROL_CONTRACT_ADDRESS",
    ),
    DeploymentStep(
        7,
        "LiquidityPool",
        (USDT, StepRef(6)),
        export="LIQUIDITY_POOL_CONTRACT_ADDRESS",
    ),
    DeploymentStep(
        8,
        "BorderlessCreditScoreNFT",
        (DEPLOYER,),
        export="BORDERLESSCS_NFT_CONTRACT_ADDRESS",
    ),
    DeploymentStep(
        9,
        "LoanVaultCore",
        (StepRef(6), StepRef(7)),
        export="LOAN_VAULT_CONTRACT_ADDRESS",
    ),
    # (accessControl, liquidityPool, vault, creditNFT)
    DeploymentStep(10, "LoanManager", (StepRef(6), StepRef(7), StepRef(9), StepRef(8))),
    DeploymentStep(11, "P2PExchange", (USDT,)),
    DeploymentStep(12, "VaultLendingV2", (StepRef(6),)),
    DeploymentStep(13, "BNPLAttestationOracle", export="ATTESTATION_ADDRESS"),
    DeploymentStep(
        14,
        "OverdraftLineVault",
        (VAULT_ADMIN, USDT, LiteralArg(6), LiteralArg(6)),
    ),
    # (name, symbol, decimals, initialAdmin, initialSupply)
    DeploymentStep(
        15,
        "StableCoinCore",
        (
            LiteralArg("GBPa"),
            LiteralArg("GBPa"),
            LiteralArg(6),
            VAULT_ADMIN,
            LiteralArg(1_000_000_000_000),
        ),
    ),
    DeploymentStep(
        16,
        "VaultLendingV6",
        (
            USDT,
            StepRef(13),
            ConfigArg("PLATFORM_TREASURY_ADDRESS"),
            VAULT_ADMIN,
            ConfigArg("CREDIT_OFFICER_ADDRESS"),
            LiteralArg(6),
            LiteralArg("UBNPL"),
            LiteralArg("BNPL Liquidity Pool"),
        ),
    ),
]

BUILTIN_PLANS: Dict[str, List[DeploymentStep]] = {
    "bnpl-suite": BNPL_SUITE,
}


def get_builtin_plan(name: str) -> List[DeploymentStep]:
    """
    Look up a built-in plan by name.

    Raises:
        InvalidPlanError: If no built-in plan has that name
    """
    if name not in BUILTIN_PLANS:
        raise InvalidPlanError(
            f"Unknown plan '{name}'. Available: {', '.join(sorted(BUILTIN_PLANS))}"
        )
    return list(BUILTIN_PLANS[name])
