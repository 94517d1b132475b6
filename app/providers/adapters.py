"""Map raw Alchemy payloads onto the normalized chain types.

This is the only module that knows Alchemy field names; everything else in
the app consumes ``NormalizedToken``/``NormalizedNFT``/``NormalizedTransfer``
and friends. Missing or oddly typed fields degrade to ``None`` rather than
raising.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from ..services.units import coerce_decimals, format_units, is_zero, parse_quantity, to_decimal
from ..types import (
    AddressInfo,
    BlockInfo,
    NormalizedNFT,
    NormalizedToken,
    NormalizedTransfer,
    TokenMetadata,
    TransactionInfo,
)

IPFS_SCHEME = "ipfs://"


def rewrite_ipfs(url: Optional[str], gateway: str) -> Optional[str]:
    """Turn ``ipfs://<cid>/path`` (and ``ipfs://ipfs/<cid>``) into a gateway URL."""

    if not url:
        return None
    url = url.strip()
    if not url.lower().startswith(IPFS_SCHEME):
        return url
    path = url[len(IPFS_SCHEME):]
    if path.startswith("ipfs/"):
        path = path[len("ipfs/"):]
    return f"{gateway.rstrip('/')}/{path.lstrip('/')}"


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    text = str(value)
    if text.lower().startswith("0x"):
        seconds = parse_quantity(text)
        return datetime.fromtimestamp(seconds, tz=timezone.utc) if seconds is not None else None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

def pick_usd_price(token_prices: Any) -> Optional[Decimal]:
    if not isinstance(token_prices, list):
        return None
    for entry in token_prices:
        entry = _as_dict(entry)
        if str(entry.get("currency", "")).lower() == "usd":
            return to_decimal(entry.get("value"))
    return None


def token_from_data_api(raw: Dict[str, Any], network: str, native_symbol: str = "ETH") -> Optional[NormalizedToken]:
    """Normalize one entry of the Data API ``tokens/by-address`` response.

    Returns ``None`` for zero balances.
    """

    meta = _as_dict(raw.get("tokenMetadata"))
    contract_address = _clean_str(raw.get("tokenAddress"))
    decimals = coerce_decimals(meta.get("decimals"))
    balance = format_units(raw.get("tokenBalance") or "0", decimals)
    if is_zero(balance):
        return None

    price_usd = pick_usd_price(raw.get("tokenPrices"))
    value_usd = None
    if price_usd is not None:
        value_usd = Decimal(balance) * price_usd

    symbol = _clean_str(meta.get("symbol")) or (native_symbol if contract_address is None else "TOKEN")
    return NormalizedToken(
        network=network,
        contract_address=contract_address,
        symbol=symbol,
        name=_clean_str(meta.get("name")),
        decimals=decimals,
        balance=balance,
        price_usd=price_usd,
        value_usd=value_usd,
        logo=_clean_str(meta.get("logo")),
    )


def sort_tokens(tokens: Iterable[NormalizedToken]) -> List[NormalizedToken]:
    """USD value descending, tokens without a value last."""

    return sorted(
        tokens,
        key=lambda t: (t.value_usd is None, -(t.value_usd or Decimal("0"))),
    )


def token_metadata_from_rpc(raw: Any) -> Optional[TokenMetadata]:
    meta = _as_dict(raw)
    if not meta:
        return None
    decimals = meta.get("decimals")
    metadata = TokenMetadata(
        name=_clean_str(meta.get("name")),
        symbol=_clean_str(meta.get("symbol")),
        decimals=coerce_decimals(decimals) if decimals is not None else None,
        logo=_clean_str(meta.get("logo")),
    )
    if not any((metadata.name, metadata.symbol, metadata.decimals is not None, metadata.logo)):
        return None
    return metadata


# ---------------------------------------------------------------------------
# NFTs
# ---------------------------------------------------------------------------

def resolve_nft_image(raw: Dict[str, Any], gateway: str) -> Optional[str]:
    """Pick the display image: cached URL, original URL, media gateway, raw metadata image."""

    image = _as_dict(raw.get("image"))
    media = raw.get("media")
    media_gateway = None
    if isinstance(media, list) and media:
        media_gateway = _as_dict(media[0]).get("gateway")
    metadata = _as_dict(_as_dict(raw.get("raw")).get("metadata")) or _as_dict(raw.get("metadata"))

    candidates = (
        image.get("cachedUrl"),
        image.get("originalUrl"),
        media_gateway,
        image.get("pngUrl"),
        image.get("thumbnailUrl"),
        metadata.get("image"),
        metadata.get("image_url"),
    )
    for candidate in candidates:
        url = _clean_str(candidate)
        if url:
            return rewrite_ipfs(url, gateway)
    return None


def nft_from_alchemy(raw: Dict[str, Any], network: str, gateway: str) -> NormalizedNFT:
    contract = _as_dict(raw.get("contract"))
    opensea = _as_dict(contract.get("openSeaMetadata"))
    collection = _as_dict(raw.get("collection"))
    metadata = _as_dict(_as_dict(raw.get("raw")).get("metadata"))
    image = _as_dict(raw.get("image"))

    token_id = _clean_str(raw.get("tokenId"))
    name = _clean_str(raw.get("name")) or _clean_str(metadata.get("name")) or _clean_str(contract.get("name"))
    if name is None and token_id is not None:
        name = f"#{token_id}"

    return NormalizedNFT(
        network=network,
        contract_address=_clean_str(contract.get("address")),
        token_id=token_id,
        token_type=_clean_str(raw.get("tokenType")) or _clean_str(contract.get("tokenType")),
        name=name,
        description=_clean_str(raw.get("description")) or _clean_str(metadata.get("description")),
        image_url=resolve_nft_image(raw, gateway),
        thumbnail_url=rewrite_ipfs(_clean_str(image.get("thumbnailUrl")), gateway),
        collection_name=(
            _clean_str(collection.get("name"))
            or _clean_str(opensea.get("collectionName"))
            or _clean_str(contract.get("name"))
        ),
        external_url=_clean_str(metadata.get("external_url")) or _clean_str(metadata.get("url")),
    )


# ---------------------------------------------------------------------------
# Transfers
# ---------------------------------------------------------------------------

def transfer_from_alchemy(raw: Dict[str, Any]) -> NormalizedTransfer:
    raw_contract = _as_dict(raw.get("rawContract"))
    value: Optional[str] = None
    raw_value = raw_contract.get("value")
    raw_decimals = raw_contract.get("decimal")
    if raw_value is not None and raw_decimals is not None:
        value = format_units(raw_value, coerce_decimals(raw_decimals))
    elif raw.get("value") is not None:
        value = str(raw.get("value"))
    elif raw.get("erc721TokenId") or raw.get("tokenId"):
        value = "1"

    return NormalizedTransfer(
        hash=raw.get("hash") or raw.get("uniqueId") or "",
        from_address=_clean_str(raw.get("from")),
        to_address=_clean_str(raw.get("to")),
        value=value,
        asset=_clean_str(raw.get("asset")),
        category=_clean_str(raw.get("category")) or "external",
        block_number=parse_quantity(raw.get("blockNum")),
        timestamp=_parse_timestamp(_as_dict(raw.get("metadata")).get("blockTimestamp")),
    )


# ---------------------------------------------------------------------------
# JSON-RPC objects
# ---------------------------------------------------------------------------

def block_from_rpc(raw: Dict[str, Any], network: str) -> BlockInfo:
    transactions = raw.get("transactions")
    return BlockInfo(
        network=network,
        number=parse_quantity(raw.get("number")) or 0,
        hash=_clean_str(raw.get("hash")),
        parent_hash=_clean_str(raw.get("parentHash")),
        timestamp=_parse_timestamp(raw.get("timestamp")),
        miner=_clean_str(raw.get("miner")),
        gas_used=parse_quantity(raw.get("gasUsed")),
        gas_limit=parse_quantity(raw.get("gasLimit")),
        base_fee_per_gas=parse_quantity(raw.get("baseFeePerGas")),
        transaction_count=len(transactions) if isinstance(transactions, list) else 0,
    )


def transaction_from_rpc(
    raw: Dict[str, Any],
    network: str,
    receipt: Optional[Dict[str, Any]] = None,
) -> TransactionInfo:
    value_wei = parse_quantity(raw.get("value")) or 0
    receipt = _as_dict(receipt)
    status = None
    if receipt:
        status_code = parse_quantity(receipt.get("status"))
        if status_code is not None:
            status = "success" if status_code == 1 else "failed"
    return TransactionInfo(
        network=network,
        hash=raw.get("hash") or "",
        from_address=_clean_str(raw.get("from")),
        to_address=_clean_str(raw.get("to")),
        value_wei=value_wei,
        value=format_units(value_wei, 18),
        block_number=parse_quantity(raw.get("blockNumber")),
        gas=parse_quantity(raw.get("gas")),
        gas_price=parse_quantity(raw.get("gasPrice")),
        nonce=parse_quantity(raw.get("nonce")),
        status=status,
        gas_used=parse_quantity(receipt.get("gasUsed")) if receipt else None,
        contract_address=_clean_str(receipt.get("contractAddress")) if receipt else None,
    )


def address_info_from_rpc(
    address: str,
    network: str,
    native_symbol: str,
    balance_hex: Any,
    nonce_hex: Any,
    code: Any,
) -> AddressInfo:
    balance_wei = parse_quantity(balance_hex) or 0
    return AddressInfo(
        network=network,
        address=address,
        balance_wei=balance_wei,
        balance=format_units(balance_wei, 18),
        native_symbol=native_symbol,
        transaction_count=parse_quantity(nonce_hex) or 0,
        is_contract=has_bytecode(code),
    )


def has_bytecode(code: Any) -> bool:
    return isinstance(code, str) and code.lower() not in ("", "0x", "0x0")


def bytecode_length(code: Any) -> int:
    if not has_bytecode(code):
        return 0
    return (len(code) - 2) // 2
