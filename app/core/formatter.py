"""
Render fetched chain data as plain-text context blocks for the LLM prompt.

Each block has a fixed, labeled layout per data kind. Missing values are
printed as ``N/A`` and a failed fetch always produces a block that says so,
so the model never answers a data question without grounding.
"""

from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Sequence

from ..services.chains import NetworkConfig, NetworkRegistry
from ..services.units import round_usd, wei_to_gwei
from ..types import (
    AddressInfo,
    BlockInfo,
    ChainData,
    ContractValidation,
    GasPrice,
    NFTResult,
    PortfolioResult,
    TransactionHistory,
    TransactionInfo,
)
from .classifier import ChainQueryIntent

NA = "N/A"
MAX_DESCRIPTION_LENGTH = 200
MAX_IMAGE_URL_LENGTH = 500
MAX_TRANSACTIONS_SHOWN = 10
SOURCE = "ALCHEMY API"

_default_registry = NetworkRegistry()


def _or_na(value: object) -> str:
    if value is None or value == "":
        return NA
    return str(value)


def _usd(value: Optional[Decimal]) -> str:
    rounded = round_usd(value)
    return NA if rounded is None else f"${rounded:.2f}"


def _price(value: Optional[Decimal]) -> str:
    if value is None:
        return NA
    return f"${value.normalize():f}"


def _truncate(text: Optional[str], limit: int) -> Optional[str]:
    if text is None or len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def _timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return "Unknown"
    return value.strftime("%Y-%m-%d %H:%M:%S UTC")


def _gwei(wei: Optional[int]) -> str:
    if wei is None:
        return NA
    return f"{wei_to_gwei(wei)} gwei"


# ---------------------------------------------------------------------------
# Per-kind blocks
# ---------------------------------------------------------------------------

def format_balance_block(
    portfolio: PortfolioResult,
    *,
    other_wallet: bool = False,
) -> str:
    networks = ", ".join(portfolio.networks_checked) or NA
    lines = [
        f"{'WALLET' if other_wallet else 'USER WALLET'} DATA FROM {SOURCE}:",
        f"Address: {portfolio.address}",
        f"Networks checked: {networks}",
        f"Total Portfolio Value: {_usd(portfolio.total_value_usd)} USD",
    ]

    failed = portfolio.failed_networks
    if failed:
        lines.append("Networks unavailable:")
        for item in failed:
            lines.append(f"- {item.network}: {_or_na(item.error)}")

    lines.append("")
    lines.append("TOKENS:")
    if portfolio.tokens:
        for idx, token in enumerate(portfolio.tokens, start=1):
            lines.append(f"{idx}. {token.symbol} ({token.name or 'Unknown'})")
            lines.append(f"   Chain: {token.network}")
            lines.append(f"   Balance: {token.balance}")
            lines.append(f"   USD Price: {_price(token.price_usd)}")
            lines.append(f"   USD Value: {_usd(token.value_usd)}")
    else:
        lines.append(f"No tokens found on {networks}.")
    return "\n".join(lines)


def _nft_image(url: Optional[str], thumbnail: Optional[str]) -> str:
    if url and len(url) > MAX_IMAGE_URL_LENGTH and thumbnail and len(thumbnail) <= MAX_IMAGE_URL_LENGTH:
        return thumbnail
    return _or_na(_truncate(url, MAX_IMAGE_URL_LENGTH))


def format_nft_block(result: NFTResult, registry: NetworkRegistry) -> str:
    lines = [
        f"USER NFT DATA FROM {SOURCE}:",
        f"Address: {result.address}",
        f"Total NFTs: {result.count}",
    ]
    for item in result.networks:
        if item.status == "rejected":
            lines.append(f"Network {item.network} unavailable: {_or_na(item.error)}")

    if not result.nfts:
        lines.append("")
        lines.append("No NFTs found for this address.")

    for idx, nft in enumerate(result.nfts, start=1):
        lines.append("")
        lines.append(f"NFT {idx}:")
        lines.append(f"Name: {nft.name or 'Unnamed NFT'}")
        lines.append(f"Description: {_truncate(nft.description, MAX_DESCRIPTION_LENGTH) or 'No description'}")
        lines.append(f"Collection: {nft.collection_name or 'Unknown'}")
        lines.append(f"Chain: {nft.network}")
        lines.append(f"Token ID: {_or_na(nft.token_id)}")
        lines.append(f"Token Type: {_or_na(nft.token_type)}")
        lines.append(f"Contract Address: {_or_na(nft.contract_address)}")
        lines.append(f"Image URL: {_nft_image(nft.image_url, nft.thumbnail_url)}")
        if nft.thumbnail_url and len(nft.thumbnail_url) <= MAX_IMAGE_URL_LENGTH:
            lines.append(f"Thumbnail URL: {nft.thumbnail_url}")
        if nft.external_url:
            lines.append(f"External URL: {_truncate(nft.external_url, MAX_IMAGE_URL_LENGTH)}")
        cfg = registry.find(nft.network)
        if cfg and nft.contract_address and nft.token_id:
            lines.append(f"Marketplace URL: {cfg.marketplace_url(nft.contract_address, nft.token_id)}")
    return "\n".join(lines)


def format_transactions_block(history: TransactionHistory) -> str:
    lines = [
        f"USER TRANSACTION DATA FROM {SOURCE}:",
        f"Address: {history.address}",
        f"Chain: {history.network}",
        f"Total Transactions: {history.total_count}",
    ]
    if not history.transfers:
        lines.append("")
        lines.append("No outgoing transfers found for this address.")
        return "\n".join(lines)

    for idx, tx in enumerate(history.transfers[:MAX_TRANSACTIONS_SHOWN], start=1):
        lines.append("")
        lines.append(f"{idx}. {tx.category.upper()}")
        lines.append(f"   Hash: {tx.hash or NA}")
        lines.append(f"   From: {_or_na(tx.from_address)}")
        lines.append(f"   To: {tx.to_address or 'Contract Creation'}")
        lines.append(f"   Value: {_or_na(tx.value)} {tx.asset or ''}".rstrip())
        lines.append(f"   Block: {_or_na(tx.block_number)}")
        lines.append(f"   Time: {_timestamp(tx.timestamp)}")

    remaining = history.total_count - MAX_TRANSACTIONS_SHOWN
    if remaining > 0:
        lines.append("")
        lines.append(f"... and {remaining} more transactions not shown.")
    return "\n".join(lines)


def format_contract_block(validation: ContractValidation) -> str:
    if not validation.is_contract:
        return (
            "ADDRESS VALIDATION:\n"
            f"Address {validation.address} is NOT a smart contract on {validation.network}. "
            "It appears to be a regular wallet address (EOA - Externally Owned Account)."
        )

    lines = [
        f"SMART CONTRACT DATA FROM {SOURCE}:",
        f"Address: {validation.address}",
        f"Chain: {validation.network}",
        f"Network: {validation.alchemy_network}",
        "Is Contract: ✅ YES",
        f"Bytecode Length: {validation.bytecode_length} bytes",
    ]
    if validation.creator:
        lines.append(f"Creator: {validation.creator}")
    if validation.creation_tx:
        lines.append(f"Creation Transaction: {validation.creation_tx}")

    summary = f"This is a verified smart contract on {validation.network}."
    meta = validation.metadata
    if meta:
        lines.append("")
        lines.append("TOKEN METADATA:")
        lines.append(f"Name: {_or_na(meta.name)}")
        lines.append(f"Symbol: {_or_na(meta.symbol)}")
        lines.append(f"Decimals: {_or_na(meta.decimals)}")
        lines.append(f"Logo: {_or_na(meta.logo)}")
        if meta.name or meta.symbol:
            summary += f" It appears to be a token contract for {_or_na(meta.name)} ({_or_na(meta.symbol)})."
    lines.append("")
    lines.append(summary)
    return "\n".join(lines)


def format_block_block(block: BlockInfo) -> str:
    return "\n".join([
        f"BLOCK DATA FROM {SOURCE}:",
        f"Chain: {block.network}",
        f"Block Number: {block.number}",
        f"Hash: {_or_na(block.hash)}",
        f"Parent Hash: {_or_na(block.parent_hash)}",
        f"Time: {_timestamp(block.timestamp)}",
        f"Miner: {_or_na(block.miner)}",
        f"Transactions: {block.transaction_count}",
        f"Gas Used: {_or_na(block.gas_used)}",
        f"Gas Limit: {_or_na(block.gas_limit)}",
        f"Base Fee: {_gwei(block.base_fee_per_gas)}",
    ])


def format_transaction_block(tx: TransactionInfo, cfg: Optional[NetworkConfig]) -> str:
    symbol = cfg.native_symbol if cfg else "ETH"
    lines = [
        f"TRANSACTION DATA FROM {SOURCE}:",
        f"Chain: {tx.network}",
        f"Hash: {tx.hash}",
        f"Status: {_or_na(tx.status)}",
        f"Block: {tx.block_number if tx.block_number is not None else 'Pending'}",
        f"From: {_or_na(tx.from_address)}",
        f"To: {tx.to_address or 'Contract Creation'}",
        f"Value: {tx.value} {symbol}",
        f"Gas Limit: {_or_na(tx.gas)}",
        f"Gas Used: {_or_na(tx.gas_used)}",
        f"Gas Price: {_gwei(tx.gas_price)}",
        f"Nonce: {_or_na(tx.nonce)}",
    ]
    if tx.contract_address:
        lines.append(f"Created Contract: {tx.contract_address}")
    if cfg:
        lines.append(f"Explorer: {cfg.explorer_tx_url(tx.hash)}")
    return "\n".join(lines)


def format_address_block(info: AddressInfo) -> str:
    return "\n".join([
        f"ADDRESS DATA FROM {SOURCE}:",
        f"Address: {info.address}",
        f"Chain: {info.network}",
        f"Type: {'Smart contract' if info.is_contract else 'Wallet (EOA)'}",
        f"Native Balance: {info.balance} {info.native_symbol}",
        f"Transactions Sent: {info.transaction_count}",
    ])


def format_gas_block(gas: GasPrice) -> str:
    return "\n".join([
        f"GAS PRICE DATA FROM {SOURCE}:",
        f"Chain: {gas.network}",
        f"Gas Price: {gas.gwei} gwei ({gas.wei} wei)",
    ])


def format_latest_block(network: str, number: int) -> str:
    return "\n".join([
        f"LATEST BLOCK FROM {SOURCE}:",
        f"Chain: {network}",
        f"Latest Block Number: {number}",
    ])


_LABELS: Dict[str, str] = {
    "balance": "balance data",
    "nfts": "NFT data",
    "transactions": "transaction history",
    "contract": "contract validation",
    "block": "block data",
    "transaction": "transaction details",
    "address": "address data",
    "gas": "gas price",
    "latest_block": "latest block number",
}


def format_failure(item: ChainData, registry: NetworkRegistry) -> str:
    """State the failure plainly, adding an explorer link where one makes sense."""

    label = _LABELS.get(item.kind, "blockchain data")
    lines = [f"Failed to fetch {label} from {SOURCE}. Error: {item.error or 'Unknown error'}"]
    cfg = registry.find(item.network)
    if cfg is None:
        return "\n".join(lines)

    explorer: Optional[str] = None
    if item.kind == "transaction" and item.extra.get("tx_hash"):
        explorer = cfg.explorer_tx_url(item.extra["tx_hash"])
    elif item.kind == "block" and item.extra.get("block_number") is not None:
        explorer = cfg.explorer_block_url(item.extra["block_number"])
    elif item.address:
        explorer = cfg.explorer_address_url(item.address)

    if explorer:
        if item.kind == "transactions":
            lines.append(f"Transaction history is available on the block explorer: {explorer}")
        else:
            lines.append(f"Block explorer: {explorer}")
    return "\n".join(lines)


def format_chain_data(
    item: ChainData,
    intent: Optional[ChainQueryIntent] = None,
    registry: Optional[NetworkRegistry] = None,
) -> str:
    registry = registry or _default_registry
    if not item.ok:
        return format_failure(item, registry)

    renderers: Dict[str, Callable[[], str]] = {
        "balance": lambda: format_balance_block(
            item.data, other_wallet=bool(intent and intent.is_other_wallet)
        ),
        "nfts": lambda: format_nft_block(item.data, registry),
        "transactions": lambda: format_transactions_block(item.data),
        "contract": lambda: format_contract_block(item.data),
        "block": lambda: format_block_block(item.data),
        "transaction": lambda: format_transaction_block(item.data, registry.find(item.network)),
        "address": lambda: format_address_block(item.data),
        "gas": lambda: format_gas_block(item.data),
        "latest_block": lambda: format_latest_block(item.network, item.data),
    }
    return renderers[item.kind]()


def format_context(
    intent: Optional[ChainQueryIntent],
    chain_data: Sequence[ChainData],
    registry: Optional[NetworkRegistry] = None,
) -> str:
    """Join one block per fetched item; empty string when nothing was fetched."""

    blocks: List[str] = [format_chain_data(item, intent, registry) for item in chain_data]
    return "\n\n".join(block for block in blocks if block)


__all__ = [
    "format_context",
    "format_chain_data",
    "format_failure",
    "format_balance_block",
    "format_nft_block",
    "format_transactions_block",
    "format_contract_block",
    "format_block_block",
    "format_transaction_block",
    "format_address_block",
    "format_gas_block",
    "format_latest_block",
    "MAX_DESCRIPTION_LENGTH",
    "MAX_IMAGE_URL_LENGTH",
    "MAX_TRANSACTIONS_SHOWN",
]
