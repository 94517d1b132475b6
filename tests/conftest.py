"""Shared fakes for pipeline and API tests."""

from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest

from app.core.gateway import LLMGateway
from app.providers.base import ChainDataError, ChainDataProvider
from app.providers.llm import LLMMessage, LLMProvider, LLMResponse
from app.types import (
    AddressInfo,
    BlockInfo,
    ContractValidation,
    GasPrice,
    NetworkResult,
    NFTResult,
    NormalizedToken,
    PortfolioResult,
    TokenMetadata,
    TransactionHistory,
    TransactionInfo,
)


class FakeChainClient(ChainDataProvider):
    """In-memory chain data client recording every call it receives."""

    name = "alchemy"

    def __init__(self):
        self.calls: List[tuple] = []
        self.failures: Dict[str, ChainDataError] = {}

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, *args))
        if method in self.failures:
            raise self.failures[method]

    async def ready(self) -> bool:
        return True

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy", "latest_block": 19_000_000}

    async def get_token_balances(self, address: str, networks: List[str]) -> PortfolioResult:
        self._record("get_token_balances", address, list(networks))
        return PortfolioResult(
            address=address,
            tokens=[
                NormalizedToken(
                    network=networks[0], symbol="ETH", name="Ether", decimals=18, balance="1.5",
                    price_usd=Decimal("2000"), value_usd=Decimal("3000"),
                ),
            ],
            total_value_usd=Decimal("3000"),
            networks=[NetworkResult(network=n, status="fulfilled", count=1) for n in networks],
        )

    async def get_nfts(self, address: str, networks: List[str]) -> NFTResult:
        self._record("get_nfts", address, list(networks))
        return NFTResult(address=address, networks=[NetworkResult(network=n, status="fulfilled") for n in networks])

    async def get_transaction_history(self, address: str, network: str) -> TransactionHistory:
        self._record("get_transaction_history", address, network)
        return TransactionHistory(address=address, network=network)

    async def validate_contract(self, address: str, network: str) -> ContractValidation:
        self._record("validate_contract", address, network)
        return ContractValidation(
            address=address,
            network=network,
            alchemy_network="eth-mainnet",
            is_contract=True,
            bytecode_length=100,
            metadata=TokenMetadata(name="Tether USD", symbol="USDT", decimals=6),
        )

    async def get_token_metadata(self, address: str, network: str) -> Optional[TokenMetadata]:
        self._record("get_token_metadata", address, network)
        return TokenMetadata(name="Tether USD", symbol="USDT", decimals=6)

    async def get_block(self, number: int, network: str) -> BlockInfo:
        self._record("get_block", number, network)
        return BlockInfo(network=network, number=number, transaction_count=3)

    async def get_block_number(self, network: str) -> int:
        self._record("get_block_number", network)
        return 19_000_000

    async def get_transaction(self, tx_hash: str, network: str) -> TransactionInfo:
        self._record("get_transaction", tx_hash, network)
        return TransactionInfo(network=network, hash=tx_hash, value="1", status="success")

    async def get_address_info(self, address: str, network: str) -> AddressInfo:
        self._record("get_address_info", address, network)
        return AddressInfo(network=network, address=address, balance="2", transaction_count=5)

    async def get_gas_price(self, network: str) -> GasPrice:
        self._record("get_gas_price", network)
        return GasPrice(network=network, wei=1_000_000_000, gwei="1")


class EchoProvider(LLMProvider):
    """LLM provider that returns a canned reply and keeps the prompts it saw."""

    def __init__(self, reply: str = "Here you go 🚀"):
        self.reply = reply
        self.seen: List[List[LLMMessage]] = []
        super().__init__("test-key", "test-model")

    def _setup_client(self, **kwargs) -> None:
        pass

    async def generate_response(self, messages, max_tokens=None, temperature=None, **kwargs) -> LLMResponse:
        self.seen.append(list(messages))
        return self._create_response(content=self.reply)

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy", "provider": "openai", "model": self.model}


async def _no_sleep(_delay: float) -> None:
    return None


@pytest.fixture
def chain_client() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def llm_provider() -> EchoProvider:
    return EchoProvider()


@pytest.fixture
def gateway(llm_provider) -> LLMGateway:
    return LLMGateway(llm_provider, max_attempts=3, retry_delay=0, sleep=_no_sleep)
