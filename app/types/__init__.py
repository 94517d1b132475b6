from .chain import (
    AddressInfo,
    BlockInfo,
    ChainData,
    ContractValidation,
    GasPrice,
    NetworkResult,
    NFTResult,
    NormalizedNFT,
    NormalizedToken,
    NormalizedTransfer,
    PortfolioResult,
    TokenMetadata,
    TransactionHistory,
    TransactionInfo,
)
from .requests import AttachedFile, ChatMessage, ChatRequest, ContractRequest, RenderRequest
from .responses import (
    ChatResponse,
    ContractResponse,
    ErrorResponse,
    NFTResponse,
    PortfolioResponse,
    RenderResponse,
    Segment,
    TransactionsResponse,
)

__all__ = [
    "AddressInfo",
    "BlockInfo",
    "ChainData",
    "ContractValidation",
    "GasPrice",
    "NetworkResult",
    "NFTResult",
    "NormalizedNFT",
    "NormalizedToken",
    "NormalizedTransfer",
    "PortfolioResult",
    "TokenMetadata",
    "TransactionHistory",
    "TransactionInfo",
    "AttachedFile",
    "ChatMessage",
    "ChatRequest",
    "ContractRequest",
    "RenderRequest",
    "ChatResponse",
    "ContractResponse",
    "ErrorResponse",
    "NFTResponse",
    "PortfolioResponse",
    "RenderResponse",
    "Segment",
    "TransactionsResponse",
]
