"""
Network registry for the supported EVM networks.

Built once at process start and handed to the chain data client, so the
per-network Alchemy endpoints, explorer links and marketplace slugs live in
one place instead of module-level client instances.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .address import SUPPORTED_NETWORKS, normalize_chain


@dataclass(frozen=True)
class NetworkConfig:
    """Static metadata for one network."""
    key: str
    name: str
    chain_id: int
    alchemy_slug: str
    native_symbol: str
    native_name: str
    explorer_url: str
    marketplace_slug: str
    native_decimals: int = 18

    def rpc_url(self, api_key: str) -> str:
        return f"https://{self.alchemy_slug}.g.alchemy.com/v2/{api_key}"

    def nft_url(self, api_key: str, method: str) -> str:
        return f"https://{self.alchemy_slug}.g.alchemy.com/nft/v3/{api_key}/{method}"

    def explorer_address_url(self, address: str) -> str:
        return f"{self.explorer_url}/address/{address}"

    def explorer_tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url}/tx/{tx_hash}"

    def explorer_block_url(self, number: int) -> str:
        return f"{self.explorer_url}/block/{number}"

    def marketplace_url(self, contract_address: str, token_id: str) -> str:
        return f"https://opensea.io/assets/{self.marketplace_slug}/{contract_address}/{token_id}"


DEFAULT_NETWORKS: Dict[str, NetworkConfig] = {
    "ethereum": NetworkConfig(
        key="ethereum",
        name="Ethereum",
        chain_id=1,
        alchemy_slug="eth-mainnet",
        native_symbol="ETH",
        native_name="Ether",
        explorer_url="https://etherscan.io",
        marketplace_slug="ethereum",
    ),
    "polygon": NetworkConfig(
        key="polygon",
        name="Polygon",
        chain_id=137,
        alchemy_slug="polygon-mainnet",
        native_symbol="POL",
        native_name="Polygon Ecosystem Token",
        explorer_url="https://polygonscan.com",
        marketplace_slug="matic",
    ),
    "arbitrum": NetworkConfig(
        key="arbitrum",
        name="Arbitrum",
        chain_id=42161,
        alchemy_slug="arb-mainnet",
        native_symbol="ETH",
        native_name="Ether",
        explorer_url="https://arbiscan.io",
        marketplace_slug="arbitrum",
    ),
    "optimism": NetworkConfig(
        key="optimism",
        name="Optimism",
        chain_id=10,
        alchemy_slug="opt-mainnet",
        native_symbol="ETH",
        native_name="Ether",
        explorer_url="https://optimistic.etherscan.io",
        marketplace_slug="optimism",
    ),
    "base": NetworkConfig(
        key="base",
        name="Base",
        chain_id=8453,
        alchemy_slug="base-mainnet",
        native_symbol="ETH",
        native_name="Ether",
        explorer_url="https://basescan.org",
        marketplace_slug="base",
    ),
}


class UnsupportedNetworkError(ValueError):
    """Raised when a network identifier is not in the registry."""

    def __init__(self, network: str):
        self.network = network
        super().__init__(f"Unsupported network '{network}'. Supported: {', '.join(SUPPORTED_NETWORKS)}")


class NetworkRegistry:
    """Lookup table from network key (or alias, or Alchemy slug) to config."""

    def __init__(self, networks: Optional[Iterable[NetworkConfig]] = None):
        items = list(networks) if networks is not None else list(DEFAULT_NETWORKS.values())
        self._by_key: Dict[str, NetworkConfig] = {cfg.key: cfg for cfg in items}
        self._by_slug: Dict[str, NetworkConfig] = {cfg.alchemy_slug: cfg for cfg in items}

    def get(self, network: str) -> NetworkConfig:
        cfg = self._by_slug.get(network) or self._by_key.get(normalize_chain(network))
        if cfg is None:
            raise UnsupportedNetworkError(network)
        return cfg

    def find(self, network: str) -> Optional[NetworkConfig]:
        try:
            return self.get(network)
        except UnsupportedNetworkError:
            return None

    def __contains__(self, network: str) -> bool:
        return self.find(network) is not None

    def keys(self) -> List[str]:
        return list(self._by_key)

    def all(self) -> List[NetworkConfig]:
        return list(self._by_key.values())


__all__ = [
    "NetworkConfig",
    "NetworkRegistry",
    "UnsupportedNetworkError",
    "DEFAULT_NETWORKS",
]
