"""Deployment ledger for tron-deployments library."""

import json
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .exceptions import LedgerError, UnresolvedDependencyError
from .types import ContractAddress, DeploymentStep, LedgerEntry


class DeploymentLedger:
    """Append-only record of addresses produced by completed steps.

    Entries are accepted only in strictly increasing index order and are
    never removed or replaced.
    """

    def __init__(self, network: Optional[str] = None):
        self.network = network
        self._entries: Dict[int, LedgerEntry] = {}

    def record(self, entry: LedgerEntry) -> None:
        """
        Append an entry.

        Raises:
            LedgerError: If the index is already recorded or not above the last one
        """
        if entry.index in self._entries:
            raise LedgerError(f"Step {entry.index} is already recorded")
        last = self.last_index
        if last is not None and entry.index < last:
            raise LedgerError(
                f"Step {entry.index} cannot be recorded after step {last}"
            )
        self._entries[entry.index] = entry

    def address(self, index: int) -> ContractAddress:
        """
        Get the address produced by a step.

        Raises:
            UnresolvedDependencyError: If the step has not completed
        """
        if index not in self._entries:
            raise UnresolvedDependencyError(f"Step {index} has not been deployed")
        return self._entries[index].address

    def entry(self, index: int) -> LedgerEntry:
        if index not in self._entries:
            raise UnresolvedDependencyError(f"Step {index} has not been deployed")
        return self._entries[index]

    @property
    def last_index(self) -> Optional[int]:
        return max(self._entries) if self._entries else None

    def entries(self) -> List[LedgerEntry]:
        """All entries in index order."""
        return [self._entries[i] for i in sorted(self._entries)]

    def addresses(self) -> Dict[int, ContractAddress]:
        return {e.index: e.address for e in self.entries()}

    def exports(self, steps: List[DeploymentStep]) -> Dict[str, str]:
        """
        Map each step's export name to its recorded base58 address.

        Steps without an export name or without an entry are left out.
        """
        return {
            step.export: self._entries[step.index].address.base58
            for step in steps
            if step.export is not None and step.index in self._entries
        }

    def __contains__(self, index: object) -> bool:
        return index in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LedgerEntry]:
        return iter(self.entries())

    def to_dict(self) -> Dict[str, Any]:
        # JSON keys must be strings
        steps: Dict[str, Any] = {}
        for entry in self.entries():
            steps[str(entry.index)] = {
                "contract": entry.contract,
                "hex": entry.address.hex,
                "base58": entry.address.base58,
            }
            if entry.transaction_id is not None:
                steps[str(entry.index)]["transaction_id"] = entry.transaction_id
        return {"network": self.network, "steps": steps}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentLedger":
        """
        Rebuild a ledger from its JSON form.

        Raises:
            LedgerError: If entries are malformed or the encodings disagree
        """
        ledger = cls(network=data.get("network"))
        try:
            raw_steps = data["steps"]
            for key in sorted(raw_steps, key=int):
                raw = raw_steps[key]
                address = ContractAddress.from_hex(raw["hex"])
                if "base58" in raw and raw["base58"] != address.base58:
                    raise LedgerError(
                        f"Step {key}: base58 {raw['base58']} does not match hex {raw['hex']}"
                    )
                ledger.record(
                    LedgerEntry(
                        index=int(key),
                        contract=raw["contract"],
                        address=address,
                        transaction_id=raw.get("transaction_id"),
                    )
                )
        except LedgerError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise LedgerError(f"Malformed ledger data: {e}") from e
        return ledger


def load_ledger(ledger_path: Path, network: Optional[str] = None) -> DeploymentLedger:
    """
    Load a persisted ledger, or return an empty one.

    Args:
        ledger_path: Path to ledger JSON file
        network: Expected network; a ledger written for another network is rejected

    Returns:
        DeploymentLedger (empty if the file doesn't exist)

    Raises:
        LedgerError: If the file is corrupted or belongs to another network
    """
    try:
        with open(ledger_path) as f:
            data = json.load(f)
    except FileNotFoundError:
        return DeploymentLedger(network=network)
    except json.JSONDecodeError as e:
        raise LedgerError(f"Corrupted ledger file {ledger_path}: {e}") from e

    ledger = DeploymentLedger.from_dict(data)
    if network is not None and ledger.network not in (None, network):
        raise LedgerError(
            f"Ledger {ledger_path} was written for network '{ledger.network}', not '{network}'"
        )
    ledger.network = network or ledger.network
    return ledger


def save_ledger(ledger: DeploymentLedger, ledger_path: Path) -> None:
    """
    Save ledger to disk.

    Creates parent directories if they don't exist.
    """
    ledger_path.parent.mkdir(parents=True, exist_ok=True)
    with open(ledger_path, "w") as f:
        json.dump(ledger.to_dict(), f, indent=2)


def format_env_exports(exports: Dict[str, str]) -> str:
    """Render exports as KEY=value lines for a .env file."""
    return "".join(f"{key}={value}\n" for key, value in exports.items())
