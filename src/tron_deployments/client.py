"""TRON HTTP API client used as the deployment execution environment."""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import requests
from eth_abi import encode
from eth_abi.exceptions import EncodingError
from eth_keys import keys
from eth_utils import ValidationError

from .addresses import to_abi_address
from .config import Settings
from .constants import (
    DEFAULT_FEE_LIMIT,
    DEFAULT_ORIGIN_ENERGY_LIMIT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_USER_RESOURCE_PERCENT,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    ConfigurationError,
    DeploymentRejectedError,
    DeploymentTimeoutError,
    EnvironmentUnavailableError,
    InvalidPlanError,
)
from .parsers import load_artifact
from .types import ContractAddress, ContractArtifact, DeployResult

logger = logging.getLogger(__name__)


def _decode_message(message: Any) -> str:
    """Node error messages are usually hex-encoded UTF-8."""
    if not isinstance(message, str):
        return str(message)
    try:
        return bytes.fromhex(message).decode("utf-8", errors="replace")
    except ValueError:
        return message


def _abi_type(param: Dict[str, Any]) -> str:
    abi_type = param["type"]
    if abi_type.startswith("tuple"):
        inner = ",".join(_abi_type(c) for c in param.get("components", []))
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


def _coerce_arg(abi_type: str, value: Any) -> Any:
    # Config values arrive as strings
    if abi_type == "address":
        return to_abi_address(value)
    if abi_type.startswith("address[") and isinstance(value, (list, tuple)):
        return [to_abi_address(v) for v in value]
    if abi_type.startswith(("uint", "int")) and "[" not in abi_type and isinstance(value, str):
        try:
            return int(value, 0)
        except ValueError as e:
            raise InvalidPlanError(f"Expected an integer for {abi_type}, got {value!r}") from e
    return value


def encode_constructor_args(artifact: ContractArtifact, args: Sequence[Any]) -> str:
    """
    ABI-encode constructor arguments for an artifact.

    Args:
        artifact: Compiled contract
        args: Resolved argument values in constructor order

    Returns:
        Hex string without 0x prefix (empty if the constructor takes no arguments)

    Raises:
        InvalidPlanError: If the argument count does not match the constructor
    """
    inputs = artifact.constructor_inputs()
    if len(inputs) != len(args):
        raise InvalidPlanError(
            f"{artifact.name} constructor takes {len(inputs)} arguments, got {len(args)}"
        )
    if not inputs:
        return ""

    types = [_abi_type(param) for param in inputs]
    values = [_coerce_arg(t, v) for t, v in zip(types, args)]
    try:
        return encode(types, values).hex()
    except (EncodingError, TypeError, ValueError) as e:
        raise InvalidPlanError(f"Cannot encode {artifact.name} constructor arguments: {e}") from e


class TronClient:
    """Deploys contracts and reads balances through a TRON full node."""

    def __init__(
        self,
        full_host: str,
        private_key: str,
        build_dir: Optional[Union[Path, str]] = None,
        api_key: Optional[str] = None,
        fee_limit: int = DEFAULT_FEE_LIMIT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            full_host: Node URL, e.g. https://api.nileex.io
            private_key: Deployer key as hex (0x prefix allowed)
            build_dir: Artifact directory (defaults to ./build/contracts)
            api_key: TronGrid API key, sent as TRON-PRO-API-KEY
            fee_limit: Maximum fee per deployment in SUN
            poll_interval: Seconds between confirmation queries
            session: requests session to reuse

        Raises:
            ConfigurationError: If the private key is not 32 bytes of hex
        """
        key_hex = private_key[2:] if private_key.startswith("0x") else private_key
        try:
            self._key = keys.PrivateKey(bytes.fromhex(key_hex))
        except (ValueError, ValidationError) as e:
            raise ConfigurationError("Private key must be 32 bytes of hex") from e
        self.owner = ContractAddress.from_hex(self._key.public_key.to_canonical_address().hex())

        self.full_host = full_host.rstrip("/")
        self.build_dir = build_dir
        self.fee_limit = fee_limit
        self.poll_interval = poll_interval

        self._session = session or requests.Session()
        if api_key:
            self._session.headers["TRON-PRO-API-KEY"] = api_key

    @classmethod
    def from_settings(cls, settings: Settings) -> "TronClient":
        return cls(
            full_host=settings.full_host,
            private_key=settings.require_private_key(),
            build_dir=settings.build_dir,
            api_key=settings.api_key,
            fee_limit=settings.fee_limit,
            poll_interval=settings.poll_interval,
        )

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.full_host}{path}"
        logger.debug("POST %s", url)
        try:
            response = self._session.post(url, json=payload, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise EnvironmentUnavailableError(f"Network error calling {path}: {e}") from e

        if response.status_code != 200:
            raise EnvironmentUnavailableError(
                f"{path} failed with status {response.status_code}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise EnvironmentUnavailableError(f"{path} returned invalid JSON") from e

    def get_balance(self, address: Optional[str] = None) -> int:
        """
        Read an account balance.

        Args:
            address: Any address encoding (defaults to the deployer)

        Returns:
            Balance in SUN, 0 for accounts not yet activated
        """
        target = self.owner if address is None else ContractAddress.parse(address)
        account = self._post("/wallet/getaccount", {"address": target.hex})
        return int(account.get("balance", 0))

    def deploy(
        self, contract: str, args: Sequence[Any], timeout: Optional[float] = None
    ) -> DeployResult:
        """
        Create a contract and wait for confirmation.

        Args:
            contract: Artifact name in the build directory
            args: Resolved constructor arguments
            timeout: Seconds to wait for confirmation (None waits indefinitely)

        Returns:
            DeployResult with the created address and transaction id

        Raises:
            ArtifactNotFoundError: If the artifact is missing
            InvalidPlanError: If the arguments do not fit the constructor
            DeploymentRejectedError: If the node rejects or reverts the creation
            DeploymentTimeoutError: If confirmation does not arrive in time
            EnvironmentUnavailableError: On transport failure
        """
        artifact = load_artifact(contract, self.build_dir)
        parameter = encode_constructor_args(artifact, args)

        transaction = self.create_deploy_transaction(artifact, parameter)
        self.sign(transaction)
        self.broadcast(transaction)

        txid = transaction["txID"]
        logger.info("Broadcast %s creation, transaction %s", contract, txid)
        info = self.wait_for_confirmation(txid, timeout)

        receipt_result = info.get("receipt", {}).get("result")
        if info.get("result") == "FAILED" or receipt_result not in (None, "SUCCESS"):
            reason = _decode_message(info.get("resMessage", receipt_result or "FAILED"))
            raise DeploymentRejectedError(
                f"{contract} creation failed on-chain ({receipt_result}): {reason}"
            )

        created = info.get("contract_address") or transaction.get("contract_address")
        if not created:
            raise DeploymentRejectedError(f"{contract} creation confirmed without an address")

        return DeployResult(
            address=ContractAddress.from_hex(created),
            transaction_id=txid,
            block=info.get("blockNumber"),
        )

    def create_deploy_transaction(
        self, artifact: ContractArtifact, parameter: str
    ) -> Dict[str, Any]:
        """Ask the node to build an unsigned contract creation transaction."""
        transaction = self._post(
            "/wallet/deploycontract",
            {
                "owner_address": self.owner.hex,
                "abi": json.dumps(artifact.abi),
                "bytecode": artifact.bytecode,
                "parameter": parameter,
                "call_value": 0,
                "name": artifact.name,
                "consume_user_resource_percent": DEFAULT_USER_RESOURCE_PERCENT,
                "fee_limit": self.fee_limit,
                "origin_energy_limit": DEFAULT_ORIGIN_ENERGY_LIMIT,
            },
        )

        if "Error" in transaction:
            raise DeploymentRejectedError(
                f"{artifact.name} creation rejected: {transaction['Error']}"
            )
        if "txID" not in transaction:
            raise DeploymentRejectedError(f"{artifact.name} creation returned no transaction")
        return transaction

    def sign(self, transaction: Dict[str, Any]) -> Dict[str, Any]:
        """Sign a transaction id with the deployer key (in place)."""
        signature = self._key.sign_msg_hash(bytes.fromhex(transaction["txID"]))
        signatures: List[str] = transaction.setdefault("signature", [])
        signatures.append(signature.to_bytes().hex())
        return transaction

    def broadcast(self, transaction: Dict[str, Any]) -> None:
        """
        Broadcast a signed transaction.

        Raises:
            DeploymentRejectedError: If the node refuses the transaction
        """
        result = self._post("/wallet/broadcasttransaction", transaction)
        if not result.get("result"):
            code = result.get("code", "UNKNOWN")
            message = _decode_message(result.get("message", ""))
            raise DeploymentRejectedError(f"Broadcast rejected ({code}): {message}")

    def wait_for_confirmation(self, txid: str, timeout: Optional[float]) -> Dict[str, Any]:
        """
        Poll for transaction info until the node reports it.

        Raises:
            DeploymentTimeoutError: If nothing is reported within timeout seconds
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            info = self._post("/wallet/gettransactioninfobyid", {"value": txid})
            if info:
                return info
            if deadline is not None and time.monotonic() >= deadline:
                raise DeploymentTimeoutError(
                    f"Transaction {txid} not confirmed within {timeout:g}s"
                )
            time.sleep(self.poll_interval)
