"""Data types and dataclasses for tron-deployments library."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .addresses import base58_to_hex, hex_to_base58, normalize_hex


@dataclass(frozen=True)
class ContractAddress:
    """An on-chain address in both of its encodings."""

    hex: str  # "41" + 40 hex digits, lower-case
    base58: str  # base58check display form, "T..."

    @classmethod
    def from_hex(cls, hex_address: str) -> "ContractAddress":
        canonical = normalize_hex(hex_address)
        return cls(hex=canonical, base58=hex_to_base58(canonical))

    @classmethod
    def from_base58(cls, base58_address: str) -> "ContractAddress":
        return cls(hex=base58_to_hex(base58_address), base58=base58_address)

    @classmethod
    def parse(cls, address: str) -> "ContractAddress":
        """Build from any supported encoding (base58, 41-hex, 0x-hex)."""
        return cls.from_hex(normalize_hex(address))

    def __str__(self) -> str:
        return self.base58


@dataclass(frozen=True)
class LiteralArg:
    """Constructor argument passed through unchanged."""

    value: Any


@dataclass(frozen=True)
class ConfigArg:
    """Constructor argument read from the configuration source."""

    key: str  # e.g., "USDT_CONTRACT_ADDRESS"


@dataclass(frozen=True)
class StepRef:
    """Constructor argument bound to the address produced by an earlier step."""

    index: int


Binding = Union[LiteralArg, ConfigArg, StepRef]


@dataclass(frozen=True)
class DeploymentStep:
    """One contract creation in a deployment plan."""

    index: int  # Unique, defines total order
    contract: str  # Artifact name, e.g., "LiquidityPool"
    args: Tuple[Binding, ...] = ()

    # Optional fields
    export: Optional[str] = None  # Env var operators store the address under
    label: Optional[str] = None

    def references(self) -> List[int]:
        """Indices of the earlier steps this step depends on."""
        return [arg.index for arg in self.args if isinstance(arg, StepRef)]

    def config_keys(self) -> List[str]:
        """Configuration keys this step reads."""
        return [arg.key for arg in self.args if isinstance(arg, ConfigArg)]

    @property
    def name(self) -> str:
        return self.label or self.contract


@dataclass(frozen=True)
class LedgerEntry:
    """Address recorded for a successfully completed step."""

    index: int
    contract: str
    address: ContractAddress
    transaction_id: Optional[str] = None


@dataclass(frozen=True)
class DeployResult:
    """What the execution environment returns for a confirmed creation."""

    address: ContractAddress
    transaction_id: Optional[str] = None
    block: Optional[int] = None


@dataclass
class ContractArtifact:
    """Compiled contract loaded from a TronBox/Truffle build file."""

    name: str
    abi: List[Dict[str, Any]]
    bytecode: str  # Hex without 0x prefix

    source_path: Optional[str] = None

    def constructor_inputs(self) -> List[Dict[str, Any]]:
        """ABI inputs of the constructor (empty if it takes none)."""
        for item in self.abi:
            if item.get("type") == "constructor":
                return list(item.get("inputs", []))
        return []
