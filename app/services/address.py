"""Helpers for normalizing network identifiers and validating addresses and hashes."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

_EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_TX_HASH_RE = re.compile(r"^0x[a-fA-F0-9]{64}$")

_CHAIN_ALIASES = {
    "eth": "ethereum",
    "ethereum": "ethereum",
    "mainnet": "ethereum",
    "eth-mainnet": "ethereum",
    "matic": "polygon",
    "polygon": "polygon",
    "polygon-mainnet": "polygon",
    "arb": "arbitrum",
    "arbitrum": "arbitrum",
    "arb-mainnet": "arbitrum",
    "op": "optimism",
    "optimism": "optimism",
    "opt-mainnet": "optimism",
    "base": "base",
    "base-mainnet": "base",
}

SUPPORTED_NETWORKS = ("ethereum", "polygon", "arbitrum", "optimism", "base")


def normalize_chain(chain: str | None) -> str:
    """Collapse user-provided chain identifiers into canonical slugs.

    Accepts ``name:id`` forms such as ``ethereum:1`` by dropping the suffix.
    """

    if not chain:
        return "ethereum"
    cleaned = chain.lower().strip()
    if ":" in cleaned:
        cleaned = cleaned.split(":", 1)[0]
    canonical = _CHAIN_ALIASES.get(cleaned)
    return canonical or cleaned


def is_supported_chain(chain: str) -> bool:
    """Return True if the chain is one we attempt to serve today."""

    return chain in SUPPORTED_NETWORKS


def parse_chains(raw: Optional[str], default: Iterable[str] = ("ethereum",)) -> List[str]:
    """Split a comma separated ``chains`` parameter into canonical, de-duplicated slugs."""

    if not raw or not raw.strip():
        return list(default)
    seen: List[str] = []
    for part in raw.split(","):
        if not part.strip():
            continue
        chain = normalize_chain(part)
        if chain not in seen:
            seen.append(chain)
    return seen or list(default)


def is_valid_address(address: Optional[str]) -> bool:
    if not address:
        return False
    return bool(_EVM_ADDRESS_RE.fullmatch(address))


def is_valid_tx_hash(tx_hash: Optional[str]) -> bool:
    if not tx_hash:
        return False
    return bool(_TX_HASH_RE.fullmatch(tx_hash))


def short_address(address: str, chars: int = 6) -> str:
    """Truncate: 0x1234...abcd"""
    if len(address) <= chars * 2 + 3:
        return address
    return f"{address[:chars]}...{address[-chars:]}"


__all__ = [
    "SUPPORTED_NETWORKS",
    "normalize_chain",
    "is_supported_chain",
    "parse_chains",
    "is_valid_address",
    "is_valid_tx_hash",
    "short_address",
]
