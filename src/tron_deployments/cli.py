"""Command-line interface for tron-deployments."""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from dotenv import find_dotenv, load_dotenv

from .client import TronClient
from .config import Settings
from .constants import ENV_NETWORK, NETWORK_CONFIG, SUN_PER_TRX
from .exceptions import DeploymentError
from .ledger import DeploymentLedger, format_env_exports, load_ledger, save_ledger
from .orchestrator import DeploymentOrchestrator, preflight
from .parsers import parse_plan
from .paths import get_artifact_path, get_ledger_path
from .plans import BUILTIN_PLANS, get_builtin_plan
from .types import DeploymentStep, LiteralArg, StepRef

logger = logging.getLogger("tron_deployments.cli")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the deployment CLI."""
    parser = argparse.ArgumentParser(
        prog="tron-deploy",
        description="Deploy an ordered set of TRON contracts, feeding earlier addresses into later constructors",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--env-file",
        type=Path,
        help="Read environment from this file instead of ./.env",
    )
    parser.add_argument(
        "--network",
        choices=sorted(NETWORK_CONFIG),
        help=f"Target network (overrides ${ENV_NETWORK})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    plan_parent = argparse.ArgumentParser(add_help=False)
    source = plan_parent.add_mutually_exclusive_group()
    source.add_argument("--plan", type=Path, help="Path to a JSON deployment plan")
    source.add_argument(
        "--builtin",
        default="bnpl-suite",
        choices=sorted(BUILTIN_PLANS),
        help="Built-in plan to use when --plan is not given (default: bnpl-suite)",
    )

    ledger_parent = argparse.ArgumentParser(add_help=False)
    ledger_parent.add_argument(
        "--ledger",
        type=Path,
        help="Ledger file (default: ./.tron-deployments/<network>.ledger.json)",
    )

    run_parser = subparsers.add_parser(
        "run",
        parents=[plan_parent, ledger_parent],
        help="Deploy every step not yet recorded in the ledger",
    )
    run_parser.add_argument(
        "--no-ledger",
        action="store_true",
        help="Do not read or write a ledger file (redeploys every step)",
    )
    run_parser.add_argument("--start", type=int, help="Lowest step index to deploy")
    run_parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds to wait for each confirmation (overrides $TRON_CONFIRMATION_TIMEOUT)",
    )
    run_parser.add_argument(
        "--env-out",
        type=Path,
        help="Write KEY=address lines for exported steps to this file",
    )
    run_parser.set_defaults(func=cmd_run)

    check_parser = subparsers.add_parser(
        "check",
        parents=[plan_parent],
        help="Validate plan, configuration and artifacts without deploying",
    )
    check_parser.set_defaults(func=cmd_check)

    plan_parser = subparsers.add_parser(
        "plan", parents=[plan_parent], help="Print the steps of a plan"
    )
    plan_parser.set_defaults(func=cmd_plan)

    show_parser = subparsers.add_parser(
        "show", parents=[ledger_parent], help="Print recorded addresses"
    )
    show_parser.set_defaults(func=cmd_show)

    balance_parser = subparsers.add_parser("balance", help="Print an account balance")
    balance_parser.add_argument("address", nargs="?", help="Account (default: deployer)")
    balance_parser.set_defaults(func=cmd_balance)

    return parser


def _load_steps(args: argparse.Namespace) -> List[DeploymentStep]:
    if args.plan is not None:
        return parse_plan(args.plan)
    return get_builtin_plan(args.builtin)


def _ledger_path(args: argparse.Namespace, settings: Settings) -> Path:
    return args.ledger if args.ledger is not None else get_ledger_path(settings.network)


def _describe_arg(arg) -> str:
    if isinstance(arg, LiteralArg):
        return repr(arg.value)
    if isinstance(arg, StepRef):
        return f"<step {arg.index}>"
    return f"${arg.key}"


def cmd_run(args: argparse.Namespace, settings: Settings, environ: Dict[str, str]) -> int:
    steps = _load_steps(args)

    ledger_path = None if args.no_ledger else _ledger_path(args, settings)
    if ledger_path is None:
        ledger = DeploymentLedger(network=settings.network)
    else:
        ledger = load_ledger(ledger_path, settings.network)
        if len(ledger):
            logger.info("Resuming from %s (%d steps recorded)", ledger_path, len(ledger))

    def persist(_entry) -> None:
        save_ledger(ledger, ledger_path)

    client = TronClient.from_settings(settings)
    logger.info(
        "Deploying to %s (%s) as %s",
        NETWORK_CONFIG[settings.network]["chain_name"],
        settings.full_host,
        client.owner.base58,
    )

    orchestrator = DeploymentOrchestrator(
        client,
        environ,
        ledger=ledger,
        timeout=args.timeout if args.timeout is not None else settings.confirmation_timeout,
        min_balance=settings.min_balance,
        on_record=persist if ledger_path is not None else None,
    )
    orchestrator.run(steps, start=args.start)

    if args.env_out is not None:
        args.env_out.write_text(format_env_exports(ledger.exports(steps)))
        logger.info("Wrote exported addresses to %s", args.env_out)

    return 0


def cmd_check(args: argparse.Namespace, settings: Settings, environ: Dict[str, str]) -> int:
    steps = _load_steps(args)
    preflight(
        steps,
        environ,
        artifact_exists=lambda name: get_artifact_path(name, settings.build_dir).exists(),
    )
    logger.info("Plan OK: %d steps, configuration and artifacts present", len(steps))
    return 0


def cmd_plan(args: argparse.Namespace, settings: Settings, environ: Dict[str, str]) -> int:
    for step in _load_steps(args):
        rendered = ", ".join(_describe_arg(a) for a in step.args)
        suffix = f"  -> ${step.export}" if step.export else ""
        print(f"{step.index:>3}  {step.name}({rendered}){suffix}")
    return 0


def cmd_show(args: argparse.Namespace, settings: Settings, environ: Dict[str, str]) -> int:
    ledger_path = _ledger_path(args, settings)
    ledger = load_ledger(ledger_path, settings.network)
    if not len(ledger):
        print(f"No deployments recorded in {ledger_path}")
        return 0
    for entry in ledger:
        print(f"{entry.index:>3}  {entry.contract:<28} {entry.address.hex}  {entry.address.base58}")
    return 0


def cmd_balance(args: argparse.Namespace, settings: Settings, environ: Dict[str, str]) -> int:
    client = TronClient.from_settings(settings)
    balance = client.get_balance(args.address)
    address = args.address or client.owner.base58
    print(f"{address}: {balance / SUN_PER_TRX:.6f} TRX ({balance} SUN)")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Existing environment variables take precedence over the file
    load_dotenv(args.env_file if args.env_file is not None else find_dotenv(usecwd=True))
    environ = dict(os.environ)
    if args.network is not None:
        environ[ENV_NETWORK] = args.network

    try:
        settings = Settings.from_env(environ)
        return args.func(args, settings, environ)
    except DeploymentError as e:
        if e.step_index is not None:
            logger.error("Deployment failed at step %d (%s): %s", e.step_index, e.contract, e)
        else:
            logger.error("%s", e)
        return 1
    except (OSError, ValueError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
