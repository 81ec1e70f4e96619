"""Integration tests for DeploymentOrchestrator with an in-memory environment."""

import logging
from pathlib import Path

import pytest
from conftest import USDT_BASE58, USDT_HEX, FakeEnvironment

from tron_deployments import (
    ConfigArg,
    DeploymentLedger,
    DeploymentOrchestrator,
    DeploymentStep,
    LedgerEntry,
    LiteralArg,
    StepRef,
)
from tron_deployments.exceptions import (
    DeploymentRejectedError,
    DeploymentTimeoutError,
    InsufficientBalanceError,
    InvalidPlanError,
    LedgerError,
    MissingConfigurationError,
    UnresolvedDependencyError,
)
from tron_deployments.ledger import load_ledger, save_ledger
from tron_deployments.parsers import parse_plan
from tron_deployments.plans import BNPL_SUITE
from tron_deployments.types import ContractAddress

DEPLOY_A = DeploymentStep(0, "A")
DEPLOY_B = DeploymentStep(1, "B", (StepRef(0),))


class TestTwoStepScenario:
    """A deploys first, B receives A's address."""

    def test_b_receives_a_address(self, fake_env: FakeEnvironment):
        orchestrator = DeploymentOrchestrator(fake_env, {})
        ledger = orchestrator.run([DEPLOY_A, DEPLOY_B])

        a1 = ledger.address(0)
        b1 = ledger.address(1)
        assert fake_env.deployed == ["A", "B"]
        assert fake_env.calls[0]["args"] == []
        assert fake_env.calls[1]["args"] == [a1.base58]
        assert ledger.addresses() == {0: a1, 1: b1}
        assert a1 != b1

    def test_rejected_first_step_leaves_ledger_empty(self):
        env = FakeEnvironment(fail_on={"A": DeploymentRejectedError("revert")})
        orchestrator = DeploymentOrchestrator(env, {})

        with pytest.raises(DeploymentRejectedError) as exc_info:
            orchestrator.run([DEPLOY_A, DEPLOY_B])

        assert exc_info.value.step_index == 0
        assert exc_info.value.contract == "A"
        assert len(orchestrator.ledger) == 0
        assert env.deployed == ["A"]


class TestFailureHandling:
    """Test that the first failure aborts the run."""

    def test_failure_keeps_earlier_entries(self):
        env = FakeEnvironment(fail_on={"C": DeploymentTimeoutError("no confirmation")})
        steps = [DEPLOY_A, DEPLOY_B, DeploymentStep(2, "C"), DeploymentStep(3, "D")]
        orchestrator = DeploymentOrchestrator(env, {})

        with pytest.raises(DeploymentTimeoutError) as exc_info:
            orchestrator.run(steps)

        assert exc_info.value.step_index == 2
        assert list(orchestrator.ledger.addresses()) == [0, 1]
        assert "D" not in env.deployed

    def test_missing_config_stops_before_submission(self, fake_env: FakeEnvironment):
        steps = [DEPLOY_A, DeploymentStep(1, "P2PExchange", (ConfigArg("USDT_CONTRACT_ADDRESS"),))]
        orchestrator = DeploymentOrchestrator(fake_env, {})

        with pytest.raises(MissingConfigurationError) as exc_info:
            orchestrator.run(steps)

        assert exc_info.value.step_index == 1
        assert fake_env.deployed == ["A"]

    def test_unresolved_dependency_before_any_network_call(self, fake_env: FakeEnvironment):
        """Starting past a step that was never recorded cannot resolve its address."""
        orchestrator = DeploymentOrchestrator(fake_env, {})

        with pytest.raises(UnresolvedDependencyError) as exc_info:
            orchestrator.run([DEPLOY_A, DEPLOY_B], start=1)

        assert exc_info.value.step_index == 1
        assert fake_env.calls == []
        assert fake_env.balance_reads == 0

    def test_invalid_plan_submits_nothing(self, fake_env: FakeEnvironment):
        orchestrator = DeploymentOrchestrator(fake_env, {})

        with pytest.raises(InvalidPlanError):
            orchestrator.run([DeploymentStep(0, "A", (StepRef(1),)), DeploymentStep(1, "B")])

        assert fake_env.calls == []

    def test_insufficient_balance(self):
        env = FakeEnvironment(balance=10)
        orchestrator = DeploymentOrchestrator(env, {}, min_balance=100)

        with pytest.raises(InsufficientBalanceError):
            orchestrator.run([DEPLOY_A])

        assert env.calls == []

    def test_errors_are_logged_with_step(self, caplog):
        env = FakeEnvironment(fail_on={"B": DeploymentRejectedError("out of energy")})
        orchestrator = DeploymentOrchestrator(env, {})

        with caplog.at_level(logging.ERROR, logger="tron_deployments"):
            with pytest.raises(DeploymentRejectedError):
                orchestrator.run([DEPLOY_A, DEPLOY_B])

        assert "Step 1 (B) failed: out of energy" in caplog.text


class TestResume:
    """Test continuing from a previously recorded ledger."""

    def test_skips_recorded_steps(self, fake_env: FakeEnvironment):
        ledger = DeploymentLedger()
        recorded = ContractAddress.from_hex(USDT_HEX)
        ledger.record(LedgerEntry(0, "A", recorded))

        DeploymentOrchestrator(fake_env, {}, ledger=ledger).run([DEPLOY_A, DEPLOY_B])

        assert fake_env.deployed == ["B"]
        assert fake_env.calls[0]["args"] == [USDT_BASE58]
        assert ledger.address(0) == recorded

    def test_nothing_to_do(self, fake_env: FakeEnvironment):
        ledger = DeploymentLedger()
        ledger.record(LedgerEntry(0, "A", ContractAddress.from_hex(USDT_HEX)))

        DeploymentOrchestrator(fake_env, {}, ledger=ledger).run([DEPLOY_A])

        assert fake_env.calls == []
        assert fake_env.balance_reads == 0

    def test_ledger_from_other_plan_rejected(self, fake_env: FakeEnvironment):
        ledger = DeploymentLedger()
        ledger.record(LedgerEntry(0, "SomethingElse", ContractAddress.from_hex(USDT_HEX)))

        with pytest.raises(LedgerError):
            DeploymentOrchestrator(fake_env, {}, ledger=ledger).run([DEPLOY_A, DEPLOY_B])

        assert fake_env.calls == []

    def test_resume_after_failure_through_file(self, tmp_path: Path):
        """A failed run persisted to disk continues at the failing step."""
        path = tmp_path / "nile.ledger.json"
        steps = [DEPLOY_A, DEPLOY_B, DeploymentStep(2, "C", (StepRef(0), StepRef(1)))]

        first_env = FakeEnvironment(fail_on={"C": DeploymentRejectedError("balance")})
        ledger = load_ledger(path, "nile")
        first = DeploymentOrchestrator(
            first_env, {}, ledger=ledger, on_record=lambda _: save_ledger(ledger, path)
        )
        with pytest.raises(DeploymentRejectedError):
            first.run(steps)

        second_env = FakeEnvironment()
        resumed = load_ledger(path, "nile")
        DeploymentOrchestrator(second_env, {}, ledger=resumed).run(steps)

        assert second_env.deployed == ["C"]
        assert second_env.calls[0]["args"] == [
            resumed.address(0).base58,
            resumed.address(1).base58,
        ]
        assert len(resumed) == 3

    def test_rerun_after_start_keeps_skipped_step_undeployed(self):
        steps = [DEPLOY_A, DeploymentStep(1, "B")]
        ledger = DeploymentLedger()
        DeploymentOrchestrator(FakeEnvironment(), {}, ledger=ledger).run(steps, start=1)

        rerun_env = FakeEnvironment()
        with pytest.raises(LedgerError, match="start index above 1") as exc_info:
            DeploymentOrchestrator(rerun_env, {}, ledger=ledger).run(steps)

        assert exc_info.value.step_index == 0
        assert exc_info.value.contract == "A"
        assert rerun_env.calls == []
        assert rerun_env.balance_reads == 0
        assert [entry.index for entry in ledger] == [1]

    def test_loaded_ledger_with_gap_submits_nothing(self, fake_env: FakeEnvironment):
        ledger = DeploymentLedger.from_dict(
            {"network": "nile", "steps": {"1": {"contract": "B", "hex": USDT_HEX}}}
        )
        steps = [DEPLOY_A, DeploymentStep(1, "B"), DeploymentStep(2, "C")]

        with pytest.raises(LedgerError):
            DeploymentOrchestrator(fake_env, {}, ledger=ledger).run(steps)

        assert fake_env.calls == []

    def test_start_above_gap_continues(self, fake_env: FakeEnvironment):
        ledger = DeploymentLedger.from_dict(
            {"network": "nile", "steps": {"1": {"contract": "B", "hex": USDT_HEX}}}
        )
        steps = [DEPLOY_A, DeploymentStep(1, "B"), DeploymentStep(2, "C")]

        DeploymentOrchestrator(fake_env, {}, ledger=ledger).run(steps, start=2)

        assert fake_env.deployed == ["C"]
        assert [entry.index for entry in ledger] == [1, 2]


class TestRunOptions:
    """Test timeouts, callbacks and logging."""

    def test_timeout_passed_to_environment(self, fake_env: FakeEnvironment):
        DeploymentOrchestrator(fake_env, {}, timeout=12.5).run([DEPLOY_A])
        assert fake_env.calls[0]["timeout"] == 12.5

    def test_on_record_called_per_step(self, fake_env: FakeEnvironment):
        seen = []
        DeploymentOrchestrator(fake_env, {}, on_record=seen.append).run([DEPLOY_A, DEPLOY_B])
        assert [entry.index for entry in seen] == [0, 1]

    def test_logs_both_encodings(self, fake_env: FakeEnvironment, caplog):
        with caplog.at_level(logging.INFO, logger="tron_deployments"):
            ledger = DeploymentOrchestrator(fake_env, {}).run([DeploymentStep(0, "A", label="Alpha")])

        address = ledger.address(0)
        assert f"Alpha deployed (hex): {address.hex}" in caplog.text
        assert f"Alpha deployed (base58): {address.base58}" in caplog.text

    def test_start_skips_lower_steps(self, fake_env: FakeEnvironment):
        steps = [DEPLOY_A, DeploymentStep(1, "B"), DeploymentStep(2, "C")]
        DeploymentOrchestrator(fake_env, {}).run(steps, start=1)
        assert fake_env.deployed == ["B", "C"]

    def test_unsaved_ledger_reports_step_and_address(self, fake_env: FakeEnvironment):
        def fail_to_save(_entry):
            raise PermissionError("read-only file system")

        orchestrator = DeploymentOrchestrator(fake_env, {}, on_record=fail_to_save)
        with pytest.raises(LedgerError, match="could not be saved") as exc_info:
            orchestrator.run([DEPLOY_A, DEPLOY_B])

        error = exc_info.value
        assert error.step_index == 0
        assert error.contract == "A"
        assert orchestrator.ledger.address(0).base58 in str(error)
        assert isinstance(error.__cause__, PermissionError)
        assert fake_env.deployed == ["A"]


class TestPlans:
    """Run complete plans end to end."""

    def test_sample_plan(self, sample_plan_path: Path, plan_config, fake_env: FakeEnvironment):
        steps = parse_plan(sample_plan_path)
        ledger = DeploymentOrchestrator(fake_env, plan_config).run(steps)

        access_control = ledger.address(0).base58
        assert fake_env.calls[0]["args"] == [USDT_HEX, USDT_HEX]
        assert fake_env.calls[1]["args"] == [USDT_BASE58, access_control]
        assert fake_env.calls[2]["args"] == ["GBPa", "GBPa", 6, access_control, 1000000000000]
        assert ledger.exports(steps) == {
            "ACCESS_CONTROL_CONTRACT_ADDRESS": access_control,
            "LIQUIDITY_POOL_CONTRACT_ADDRESS": ledger.address(1).base58,
        }

    def test_builtin_suite(self, fake_env: FakeEnvironment):
        config = {
            key: USDT_BASE58
            for step in BNPL_SUITE
            for key in step.config_keys()
        }
        ledger = DeploymentOrchestrator(fake_env, config).run(BNPL_SUITE)

        assert len(ledger) == len(BNPL_SUITE)
        assert fake_env.deployed == [step.contract for step in BNPL_SUITE]
        assert all(isinstance(step.args, tuple) for step in BNPL_SUITE)
        assert LiteralArg(6) in BNPL_SUITE[14].args
