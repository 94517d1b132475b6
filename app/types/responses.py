from decimal import Decimal
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

from .chain import (
    ContractValidation,
    NetworkResult,
    NormalizedNFT,
    NormalizedToken,
    NormalizedTransfer,
    TokenMetadata,
)


class ChatResponse(BaseModel):
    response: str = Field(description="Assistant reply text")


class ErrorResponse(BaseModel):
    error: str = Field(description="Short error description")
    details: Optional[str] = Field(default=None, description="Additional context safe to show callers")


class PortfolioResponse(BaseModel):
    success: bool = Field(description="Whether at least one network was fetched")
    address: str = Field(description="Wallet address")
    tokens: List[NormalizedToken] = Field(default_factory=list)
    total_value: Decimal = Field(default=Decimal("0"), description="Total portfolio value in USD")
    networks: List[NetworkResult] = Field(default_factory=list, description="Per-network status")


class NFTResponse(BaseModel):
    success: bool
    address: str
    count: int = 0
    nfts: List[NormalizedNFT] = Field(default_factory=list)
    networks: List[NetworkResult] = Field(default_factory=list)


class TransactionsResponse(BaseModel):
    success: bool
    address: str
    chain: str
    total_count: int = 0
    transactions: List[NormalizedTransfer] = Field(default_factory=list)


class ContractResponse(BaseModel):
    success: bool
    action: Literal["validate", "getMetadata"]
    valid: Optional[bool] = None
    is_contract: Optional[bool] = None
    validation: Optional[ContractValidation] = None
    metadata: Optional[TokenMetadata] = None
    message: Optional[str] = None


class Segment(BaseModel):
    type: Literal["text", "image", "link"]
    text: Optional[str] = None
    url: Optional[str] = None
    alt: Optional[str] = None
    fallback: Optional["Segment"] = None


class RenderResponse(BaseModel):
    segments: List[Segment] = Field(default_factory=list)


Segment.model_rebuild()
