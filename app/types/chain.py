from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field


NetworkStatus = Literal["fulfilled", "rejected"]


class NetworkResult(BaseModel):
    network: str = Field(description="Network identifier")
    status: NetworkStatus = Field(description="Outcome of the fetch for this network")
    error: Optional[str] = Field(default=None, description="Error message when rejected")
    count: int = Field(default=0, description="Number of items returned for this network")


class NormalizedToken(BaseModel):
    network: str = Field(description="Network the balance lives on")
    contract_address: Optional[str] = Field(default=None, description="Token contract (None for the native token)")
    symbol: str = Field(description="Token symbol (e.g. ETH, USDC)")
    name: Optional[str] = Field(default=None, description="Full token name")
    decimals: int = Field(description="Token decimal places")
    balance: str = Field(description="Human readable balance derived from the atomic amount")
    price_usd: Optional[Decimal] = Field(default=None, description="Price per token in USD")
    value_usd: Optional[Decimal] = Field(default=None, description="Total value in USD")
    logo: Optional[str] = Field(default=None, description="Token logo URL")


class PortfolioResult(BaseModel):
    address: str = Field(description="Wallet address")
    tokens: List[NormalizedToken] = Field(default_factory=list, description="Non-zero balances sorted by USD value")
    total_value_usd: Decimal = Field(default=Decimal("0"), description="Sum of known USD values")
    networks: List[NetworkResult] = Field(default_factory=list, description="Per-network fetch outcome")

    @property
    def networks_checked(self) -> List[str]:
        return [item.network for item in self.networks]

    @property
    def failed_networks(self) -> List[NetworkResult]:
        return [item for item in self.networks if item.status == "rejected"]


class NormalizedNFT(BaseModel):
    network: str
    contract_address: Optional[str] = None
    token_id: Optional[str] = None
    token_type: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    collection_name: Optional[str] = None
    external_url: Optional[str] = None


class NFTResult(BaseModel):
    address: str
    nfts: List[NormalizedNFT] = Field(default_factory=list)
    networks: List[NetworkResult] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.nfts)


class NormalizedTransfer(BaseModel):
    hash: str
    from_address: Optional[str] = Field(default=None, alias="from")
    to_address: Optional[str] = Field(default=None, alias="to")
    value: Optional[str] = None
    asset: Optional[str] = None
    category: str = "external"
    block_number: Optional[int] = None
    timestamp: Optional[datetime] = None

    model_config = {"populate_by_name": True}


class TransactionHistory(BaseModel):
    address: str
    network: str
    transfers: List[NormalizedTransfer] = Field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.transfers)


class TokenMetadata(BaseModel):
    name: Optional[str] = None
    symbol: Optional[str] = None
    decimals: Optional[int] = None
    logo: Optional[str] = None


class ContractValidation(BaseModel):
    address: str
    network: str
    alchemy_network: str
    is_contract: bool
    bytecode_length: int = 0
    metadata: Optional[TokenMetadata] = None
    creator: Optional[str] = None
    creation_tx: Optional[str] = None


class BlockInfo(BaseModel):
    network: str
    number: int
    hash: Optional[str] = None
    parent_hash: Optional[str] = None
    timestamp: Optional[datetime] = None
    miner: Optional[str] = None
    gas_used: Optional[int] = None
    gas_limit: Optional[int] = None
    base_fee_per_gas: Optional[int] = None
    transaction_count: int = 0


class TransactionInfo(BaseModel):
    network: str
    hash: str
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    value_wei: int = 0
    value: str = "0"
    block_number: Optional[int] = None
    gas: Optional[int] = None
    gas_price: Optional[int] = None
    nonce: Optional[int] = None
    status: Optional[str] = None
    gas_used: Optional[int] = None
    contract_address: Optional[str] = None


class AddressInfo(BaseModel):
    network: str
    address: str
    balance_wei: int = 0
    balance: str = "0"
    native_symbol: str = "ETH"
    transaction_count: int = 0
    is_contract: bool = False


class GasPrice(BaseModel):
    network: str
    wei: int
    gwei: str


class ChainData(BaseModel):
    """Fetched payload handed to the context formatter, or the error that replaced it."""

    kind: Literal["balance", "nfts", "transactions", "contract", "block", "transaction", "address", "gas", "latest_block"]
    network: str
    address: Optional[str] = None
    data: Any = None
    error: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None and self.data is not None
