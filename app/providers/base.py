from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..types import (
    AddressInfo,
    BlockInfo,
    ContractValidation,
    GasPrice,
    NFTResult,
    PortfolioResult,
    TokenMetadata,
    TransactionHistory,
    TransactionInfo,
)


class ChainDataError(Exception):
    """A blockchain-data lookup failed.

    ``message`` is safe to show end users and to embed in LLM context; it
    never carries credentials or raw stack traces.
    """

    def __init__(
        self,
        message: str,
        *,
        network: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.network = network
        self.status_code = status_code

    def __str__(self) -> str:
        if self.network:
            return f"{self.message} ({self.network})"
        return self.message


class Provider(ABC):
    """Base provider interface"""

    name: str
    timeout_s: float = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is ready to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass


class ChainDataProvider(Provider):
    """Provider for live chain state (balances, NFTs, transfers, contracts, blocks)."""

    @abstractmethod
    async def get_token_balances(self, address: str, networks: List[str]) -> PortfolioResult:
        """Native and ERC-20 balances across networks, sorted by USD value"""
        pass

    @abstractmethod
    async def get_nfts(self, address: str, networks: List[str]) -> NFTResult:
        """NFTs owned by an address across networks"""
        pass

    @abstractmethod
    async def get_transaction_history(self, address: str, network: str) -> TransactionHistory:
        """Most recent outbound transfers, newest first"""
        pass

    @abstractmethod
    async def validate_contract(self, address: str, network: str) -> ContractValidation:
        """Contract-vs-account check with optional token metadata and creator"""
        pass

    @abstractmethod
    async def get_token_metadata(self, address: str, network: str) -> Optional[TokenMetadata]:
        pass

    @abstractmethod
    async def get_block(self, number: int, network: str) -> BlockInfo:
        pass

    @abstractmethod
    async def get_block_number(self, network: str) -> int:
        pass

    @abstractmethod
    async def get_transaction(self, tx_hash: str, network: str) -> TransactionInfo:
        pass

    @abstractmethod
    async def get_address_info(self, address: str, network: str) -> AddressInfo:
        pass

    @abstractmethod
    async def get_gas_price(self, network: str) -> GasPrice:
        pass
