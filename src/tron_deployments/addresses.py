"""TRON address encodings for tron-deployments library.

A TRON account is a 21-byte value: the 0x41 prefix followed by the 20-byte
id shared with the EVM. It has three textual forms:

- hex: ``41`` + 40 hex digits (network-native, used by the HTTP API)
- base58: base58check of the 21 bytes (``T...``, shown to operators)
- ABI: ``0x`` + 40 hex digits (what the contract ABI encoder expects)

All conversions here are pure functions.
"""

import base58

from .constants import ADDRESS_LENGTH, ADDRESS_PREFIX
from .exceptions import InvalidAddressError


def _check_raw(raw: bytes, source: str) -> bytes:
    if len(raw) != ADDRESS_LENGTH or raw[0] != ADDRESS_PREFIX:
        raise InvalidAddressError(f"Not a TRON address: {source!r}")
    return raw


def hex_to_base58(hex_address: str) -> str:
    """
    Convert a ``41...`` hex address to its base58check display form.

    Args:
        hex_address: 42 hex digits starting with ``41`` (``0x`` prefix allowed)

    Returns:
        Base58check-encoded address

    Raises:
        InvalidAddressError: If the value is not a 21-byte TRON hex address
    """
    value = hex_address[2:] if hex_address[:2].lower() == "0x" else hex_address
    try:
        raw = bytes.fromhex(value)
    except ValueError as e:
        raise InvalidAddressError(f"Not a hex address: {hex_address!r}") from e
    return base58.b58encode_check(_check_raw(raw, hex_address)).decode("ascii")


def base58_to_hex(base58_address: str) -> str:
    """
    Convert a base58check address to the lower-case ``41...`` hex form.

    Raises:
        InvalidAddressError: If decoding or the checksum fails
    """
    try:
        raw = base58.b58decode_check(base58_address)
    except ValueError as e:
        raise InvalidAddressError(f"Invalid base58check address: {base58_address!r}") from e
    return _check_raw(raw, base58_address).hex()


def normalize_hex(address: str) -> str:
    """
    Convert any supported address form to the ``41...`` hex form.

    Accepts base58 (``T...``), TRON hex (``41...``, optionally ``0x41...``)
    and 20-byte EVM/ABI hex (``0x...``).
    """
    if not isinstance(address, str) or not address:
        raise InvalidAddressError(f"Not an address: {address!r}")

    if address.startswith("T"):
        return base58_to_hex(address)

    value = address[2:] if address[:2].lower() == "0x" else address
    if len(value) == 40:
        # 20-byte EVM form, add the TRON prefix
        value = f"{ADDRESS_PREFIX:02x}{value}"
    try:
        raw = bytes.fromhex(value)
    except ValueError as e:
        raise InvalidAddressError(f"Not a hex address: {address!r}") from e
    return _check_raw(raw, address).hex()


def to_abi_address(address: str) -> str:
    """Convert any supported address form to the ``0x`` 20-byte ABI form."""
    return "0x" + normalize_hex(address)[2:]


def is_address(value: object) -> bool:
    """Return True if value parses as a TRON address in any supported form."""
    try:
        normalize_hex(value)  # type: ignore[arg-type]
    except InvalidAddressError:
        return False
    return True
