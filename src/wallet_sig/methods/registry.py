"""
EVM Chain Registry

Resolves a numeric chain id to the connection parameters used by
on-chain-aware signature verification. The registry is read-only after
construction; every lookup returns a fresh ``ChainContext``.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional

from web3 import AsyncWeb3

from ..engine.exceptions import ConfigurationError
from ..utils import logger
from .constants import (
    DEFAULT_CHAIN_ID,
    DEFAULT_RPC_TIMEOUT,
    ChainConfig,
    get_rpc_key_from_env,
    get_rpc_timeout_from_env,
    get_rpc_url,
    load_chain_configs,
)

#: Builds an AsyncWeb3 instance from ``(rpc_url, request_timeout)``.
Web3Factory = Callable[[str, int], AsyncWeb3]


def default_web3_factory(rpc_url: str, request_timeout: int) -> AsyncWeb3:
    """Create an ``AsyncWeb3`` over HTTP for ``rpc_url``."""
    return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(
        rpc_url,
        request_kwargs={"timeout": request_timeout}
    ))


@dataclass(frozen=True)
class ChainContext:
    """
    Resolved chain parameters for a single verification call.

    Attributes:
        config: Static configuration of the resolved chain.
        rpc_url: Endpoint selected for this chain.
        request_timeout: HTTP request timeout in seconds.
        web3_factory: Callable that builds the ``AsyncWeb3`` client.
    """
    config: ChainConfig
    rpc_url: str
    request_timeout: int = DEFAULT_RPC_TIMEOUT
    web3_factory: Web3Factory = default_web3_factory

    @property
    def chain_id(self) -> int:
        return self.config.chain_id

    def web3(self) -> AsyncWeb3:
        """Build a new ``AsyncWeb3`` client connected to ``rpc_url``."""
        return self.web3_factory(self.rpc_url, self.request_timeout)


class ChainRegistry:
    """
    Read-only lookup from chain id to ``ChainContext``.

    Unknown or absent chain ids resolve to the default chain. Tests can
    construct a registry with a minimal set of chains and a ``web3_factory``
    returning a mock client.

    Example:
        registry = ChainRegistry.from_env()
        context = registry.resolve(8453)
        w3 = context.web3()
    """

    def __init__(
        self,
        chains: Mapping[int, ChainConfig],
        *,
        default_chain_id: int = DEFAULT_CHAIN_ID,
        rpc_key: Optional[str] = None,
        request_timeout: int = DEFAULT_RPC_TIMEOUT,
        web3_factory: Optional[Web3Factory] = None,
    ):
        if default_chain_id not in chains:
            raise ConfigurationError(
                f"Default chain {default_chain_id} is not present in the chain registry"
            )
        self._chains: Mapping[int, ChainConfig] = MappingProxyType(dict(chains))
        self._default_chain_id = default_chain_id
        self._rpc_key = rpc_key
        self._request_timeout = request_timeout
        self._web3_factory = web3_factory or default_web3_factory

    @classmethod
    def from_env(cls, **kwargs) -> "ChainRegistry":
        """
        Build a registry over the static chain table using environment
        settings (``EVM_RPC_KEY``, ``EVM_RPC_TIMEOUT``). Keyword arguments
        override the environment.
        """
        kwargs.setdefault("rpc_key", get_rpc_key_from_env())
        kwargs.setdefault("request_timeout", get_rpc_timeout_from_env())
        return cls(load_chain_configs(), **kwargs)

    @property
    def default_chain_id(self) -> int:
        return self._default_chain_id

    @property
    def chains(self) -> Mapping[int, ChainConfig]:
        return self._chains

    def get_chain(self, chain_id: Optional[int]) -> ChainConfig:
        """Return the config for ``chain_id``, or the default chain's."""
        if chain_id is not None and chain_id in self._chains:
            return self._chains[chain_id]
        if chain_id is not None:
            logger.debug(
                f"Unknown chain id {chain_id}, falling back to chain {self._default_chain_id}"
            )
        return self._chains[self._default_chain_id]

    def resolve(self, chain_id: Optional[int] = None) -> ChainContext:
        """
        Resolve a fresh ``ChainContext`` for ``chain_id``.

        Args:
            chain_id: Numeric EIP-155 chain id, or None for the default chain.

        Returns:
            ChainContext: Context for the matching chain or the default chain.
        """
        config = self.get_chain(chain_id)
        return ChainContext(
            config=config,
            rpc_url=get_rpc_url(config, self._rpc_key),
            request_timeout=self._request_timeout,
            web3_factory=self._web3_factory,
        )
