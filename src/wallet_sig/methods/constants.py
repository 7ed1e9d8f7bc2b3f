"""
Signing Method and EVM Chain Configuration

Provides the signing-method taxonomy, the static EVM chain table used to
resolve chain contexts, and environment-aware RPC settings.
"""

import os
from enum import Enum
from typing import Dict, Optional

import dotenv
from pydantic import BaseModel, Field

from ..engine.exceptions import ConfigurationError

dotenv.load_dotenv()


class SigningMethod(str, Enum):
    """
    Wallet signing methods understood by the formatter and the verifier.

    The value of each member is the JSON-RPC method name sent to the wallet.
    """
    ETH_SIGN = "eth_sign"
    PERSONAL_SIGN = "personal_sign"
    SIGN_TYPED_DATA_V1 = "eth_signTypedData_v1"
    SIGN_TYPED_DATA_V3 = "eth_signTypedData_v3"
    SIGN_TYPED_DATA_V4 = "eth_signTypedData_v4"

    @classmethod
    def from_string(cls, value: str) -> Optional["SigningMethod"]:
        """Return the member named by ``value``, or None when unknown."""
        try:
            return cls(value)
        except ValueError:
            return None


class ChainConfig(BaseModel):
    """EVM blockchain network configuration."""
    chain_id: int = Field(..., description="EIP-155 chain id")
    name: str = Field(..., description="Human-readable network name")
    network: str = Field(..., description="Short network slug")
    type: str = Field(default="evm", description="Blockchain type")
    rpc_url: Optional[str] = Field(None, description="JSON-RPC endpoint URL template")
    public_rpc_url: str = Field(..., description="Public RPC endpoint (fallback when no infra key)")
    explorer_url: str = Field(..., description="Block explorer URL")


# ---------------------------------------------------------------------------
# ERC-1271 constants
# ---------------------------------------------------------------------------

#: Magic value returned by a valid ERC-1271 ``isValidSignature`` call.
ERC1271_MAGIC_VALUE: bytes = b"\x16\x26\xba\x7e"

#: Chain used when no chain id is supplied or the id is unknown.
DEFAULT_CHAIN_ID: int = 1

DEFAULT_RPC_TIMEOUT: int = 60


# Raw chain configuration data
# Premium RPC templates carry a {RPC_KEYS} placeholder and are used only when
# EVM_RPC_KEY is set; otherwise the public RPC endpoint is used.
_EVM_CHAINS_DATA: Dict[int, Dict] = {
    1: {
        "network": "ethereum-mainnet",
        "name": "Ethereum Mainnet",
        "rpc_url": "https://mainnet.infura.io/v3/{RPC_KEYS}",
        "public_rpc_url": "https://eth.merkle.io",
        "explorer_url": "https://etherscan.io",
    },
    10: {
        "network": "optimism-mainnet",
        "name": "OP Mainnet",
        "rpc_url": "https://optimism-mainnet.infura.io/v3/{RPC_KEYS}",
        "public_rpc_url": "https://mainnet.optimism.io",
        "explorer_url": "https://optimistic.etherscan.io",
    },
    56: {
        "network": "bsc-mainnet",
        "name": "BNB Smart Chain",
        "rpc_url": "https://bsc-mainnet.infura.io/v3/{RPC_KEYS}",
        "public_rpc_url": "https://bsc-dataseed1.bnbchain.org",
        "explorer_url": "https://bscscan.com",
    },
    137: {
        "network": "polygon-mainnet",
        "name": "Polygon Mainnet",
        "rpc_url": "https://polygon-mainnet.infura.io/v3/{RPC_KEYS}",
        "public_rpc_url": "https://polygon-rpc.com",
        "explorer_url": "https://polygonscan.com",
    },
    8453: {
        "network": "base-mainnet",
        "name": "Base Mainnet",
        "rpc_url": "https://base-mainnet.infura.io/v3/{RPC_KEYS}",
        "public_rpc_url": "https://mainnet.base.org",
        "explorer_url": "https://basescan.org",
    },
    42161: {
        "network": "arbitrum-mainnet",
        "name": "Arbitrum One",
        "rpc_url": "https://arbitrum-mainnet.infura.io/v3/{RPC_KEYS}",
        "public_rpc_url": "https://arb1.arbitrum.io/rpc",
        "explorer_url": "https://arbiscan.io",
    },
    43114: {
        "network": "avalanche-mainnet",
        "name": "Avalanche C-Chain",
        "rpc_url": "https://avalanche-mainnet.infura.io/v3/{RPC_KEYS}",
        "public_rpc_url": "https://api.avax.network/ext/bc/C/rpc",
        "explorer_url": "https://snowtrace.io",
    },
    11155111: {
        "network": "ethereum-sepolia",
        "name": "Sepolia Testnet",
        "rpc_url": "https://sepolia.infura.io/v3/{RPC_KEYS}",
        "public_rpc_url": "https://rpc.sepolia.org",
        "explorer_url": "https://sepolia.etherscan.io",
    },
    84532: {
        "network": "base-sepolia",
        "name": "Base Sepolia",
        "rpc_url": "https://base-sepolia.infura.io/v3/{RPC_KEYS}",
        "public_rpc_url": "https://sepolia.base.org",
        "explorer_url": "https://sepolia.basescan.org",
    },
}


def load_chain_configs() -> Dict[int, ChainConfig]:
    """
    Build validated ``ChainConfig`` objects from the static chain table.

    Returns:
        Dict[int, ChainConfig]: Chain configurations keyed by chain id.
    """
    return {
        chain_id: ChainConfig(chain_id=chain_id, **data)
        for chain_id, data in _EVM_CHAINS_DATA.items()
    }


def get_rpc_url(config: ChainConfig, rpc_key: Optional[str] = None) -> str:
    """
    Pick the RPC endpoint for a chain.

    The premium template is used when both a template and an infrastructure
    key are available; otherwise the public endpoint is returned.

    Args:
        config: Chain configuration.
        rpc_key: Optional infrastructure API key (e.g. Infura project id).

    Returns:
        str: RPC URL ready to be passed to an HTTP provider.
    """
    if rpc_key and config.rpc_url:
        return config.rpc_url.replace("{RPC_KEYS}", rpc_key)
    return config.public_rpc_url


def get_rpc_key_from_env() -> Optional[str]:
    """
    Load the EVM infrastructure API key from environment variables.

    Environment Variable:
        - EVM_RPC_KEY: Infrastructure provider API key (e.g. an Infura key)

    Returns:
        str: Key from environment, or None if not configured (public RPC
        endpoints are then used)
    """
    return os.getenv("EVM_RPC_KEY") or None


def get_rpc_timeout_from_env() -> int:
    """
    Load the RPC request timeout (seconds) from ``EVM_RPC_TIMEOUT``.

    Raises:
        ConfigurationError: If the variable is set but is not a positive integer.
    """
    raw = os.getenv("EVM_RPC_TIMEOUT")
    if not raw:
        return DEFAULT_RPC_TIMEOUT
    try:
        timeout = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"EVM_RPC_TIMEOUT must be an integer, got {raw!r}") from exc
    if timeout <= 0:
        raise ConfigurationError(f"EVM_RPC_TIMEOUT must be positive, got {timeout}")
    return timeout
