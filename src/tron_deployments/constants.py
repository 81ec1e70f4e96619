"""Configuration constants for tron-deployments library."""

# TRON mainnet/testnet address prefix byte (hex "41", base58 "T...")
ADDRESS_PREFIX = 0x41
ADDRESS_LENGTH = 21  # prefix + 20-byte account id

# Network configuration
# Node endpoints follow the TronGrid public hosts used by TronWeb
NETWORK_CONFIG = {
    "mainnet": {
        "full_host": "https://api.trongrid.io",
        "chain_name": "TRON Mainnet",
        "block_explorer_url": "https://tronscan.org",
    },
    "shasta": {
        "full_host": "https://api.shasta.trongrid.io",
        "chain_name": "Shasta Testnet",
        "block_explorer_url": "https://shasta.tronscan.org",
    },
    "nile": {
        "full_host": "https://api.nileex.io",
        "chain_name": "Nile Testnet",
        "block_explorer_url": "https://nile.tronscan.org",
    },
}

DEFAULT_NETWORK = "nile"

# Deployment defaults (SUN / seconds)
DEFAULT_FEE_LIMIT = 1_000_000_000
DEFAULT_ORIGIN_ENERGY_LIMIT = 10_000_000
DEFAULT_USER_RESOURCE_PERCENT = 100
DEFAULT_CONFIRMATION_TIMEOUT = 120.0
DEFAULT_POLL_INTERVAL = 3.0
REQUEST_TIMEOUT = 30

SUN_PER_TRX = 1_000_000

# Environment variable names read by Settings.from_env
ENV_NETWORK = "TRON_NETWORK"
ENV_FULL_HOST = "TRON_FULL_HOST"
ENV_PRIVATE_KEY = "PRIVATE_KEY"
ENV_API_KEY = "TRON_PRO_API_KEY"
ENV_FEE_LIMIT = "TRON_FEE_LIMIT"
ENV_CONFIRMATION_TIMEOUT = "TRON_CONFIRMATION_TIMEOUT"
ENV_POLL_INTERVAL = "TRON_POLL_INTERVAL"
ENV_BUILD_DIR = "TRON_BUILD_DIR"
ENV_MIN_BALANCE = "TRON_MIN_BALANCE"
