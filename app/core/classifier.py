"""
Keyword-driven classification of chat messages into chain data intents.

Everything here is a pure function of the message, the recent history and the
connected wallet; nothing touches the network. The tables are plain tuples so
they can be tuned without touching the matching logic.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from ..config import settings
from ..services.address import SUPPORTED_NETWORKS
from ..types import ChatMessage

BLOCKCHAIN_KEYWORDS: Tuple[str, ...] = (
    "balance", "wallet", "token", "eth", "ethereum", "polygon", "arbitrum",
    "optimism", "base chain", "my tokens", "my balance", "check balance",
    "show balance", "how much", "transfer", "send", "transaction", "tx",
    "contract", "nft", "gas", "wei", "gwei", "block", "smart contract",
    "contract address", "validate contract", "defi", "web3", "crypto",
    "blockchain", "portfolio", "holdings",
)

# Phrases that name a balance lookup on their own.
BALANCE_KEYWORDS: Tuple[str, ...] = (
    "my balance", "my tokens", "check balance", "show balance",
    "balance on", "balance of", "wallet balance", "token balance",
    "my portfolio", "show portfolio", "my holdings", "check wallet",
    "what's my balance", "whats my balance",
)

# Phrases that only mean "balance" when nothing more specific was asked.
GENERIC_BALANCE_KEYWORDS: Tuple[str, ...] = (
    "check my", "show my", "what do i have", "how much do i have",
    "what's my", "whats my", "what's in", "whats in", "my wallet", "balance",
    "portfolio", "holdings",
)

NFT_KEYWORDS: Tuple[str, ...] = (
    "nft", "nfts", "my nft", "show nft", "my collection", "collectible",
)

TRANSACTION_KEYWORDS: Tuple[str, ...] = (
    "transaction", "transactions", "my transactions", "recent transactions",
    "tx history", "transfer history", "activity",
)

CONTRACT_KEYWORDS: Tuple[str, ...] = (
    "contract", "smart contract", "contract address", "validate contract",
    "check contract", "contract details", "token contract", "about this contract",
)

GAS_KEYWORDS: Tuple[str, ...] = (
    "gas price", "gas fee", "gas fees", "gas cost", "gwei", "current gas",
    "how much is gas", "gas now",
)

LATEST_BLOCK_KEYWORDS: Tuple[str, ...] = (
    "latest block", "current block", "block height", "block number",
    "newest block", "last block",
)

CONTINUATION_PHRASES: Tuple[str, ...] = (
    "more", "continue", "what about", "tell me more", "and on", "same for",
    "how about",
)

# Questions about concepts rather than a specific contract.
EDUCATIONAL_PREFIXES: Tuple[str, ...] = (
    "what is", "what are", "what's a", "whats a", "explain", "how do",
    "how does", "why do", "why does", "define",
)

ALL_NETWORKS_PHRASES: Tuple[str, ...] = (
    "all chains", "all networks", "every chain", "every network", "across chains",
)

# Priority order: the first network that matches wins.
_NETWORK_PATTERNS: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("polygon", re.compile(r"polygon|\bmatic\b")),
    ("base", re.compile(r"\bbase\b")),
    ("arbitrum", re.compile(r"arbitrum|\barb\b")),
    ("optimism", re.compile(r"optimism|\bop\b")),
    ("ethereum", re.compile(r"ethereum|\beth\b|\bmainnet\b")),
)

_HEX_CANDIDATE_RE = re.compile(r"\b0x[0-9a-zA-Z]+\b")
_HEX_BODY_RE = re.compile(r"^[0-9a-fA-F]+$")
_BLOCK_NUMBER_RE = re.compile(r"\bblock\s*(?:#\s*|/|number\s+#?)(\d{1,12})\b", re.IGNORECASE)

# Hex runs shorter than this are treated as plain numbers (``0x0``, ``0x1f``).
MALFORMED_MIN_LENGTH = 20


@dataclass
class ChainQueryIntent:
    """What a single chat message asks of the chain data client."""

    is_blockchain_related: bool = False
    wants_balance: bool = False
    wants_nfts: bool = False
    wants_transactions: bool = False
    wants_contract_validation: bool = False
    wants_block: bool = False
    wants_latest_block: bool = False
    wants_transaction_lookup: bool = False
    wants_gas: bool = False
    mentions_contract: bool = False
    is_follow_up: bool = False
    is_educational: bool = False

    extracted_address: Optional[str] = None
    extracted_tx_hash: Optional[str] = None
    extracted_block_number: Optional[int] = None
    malformed_address: Optional[str] = None

    network: str = "ethereum"
    networks: List[str] = field(default_factory=lambda: ["ethereum"])
    network_explicit: bool = False

    wallet_address: Optional[str] = None

    @property
    def target_address(self) -> Optional[str]:
        """Address from the message, falling back to the connected wallet."""
        return self.extracted_address or self.wallet_address

    @property
    def is_other_wallet(self) -> bool:
        if not self.extracted_address:
            return False
        if not self.wallet_address:
            return True
        return self.extracted_address.lower() != self.wallet_address.lower()

    @property
    def wants_wallet_data(self) -> bool:
        return self.wants_balance or self.wants_nfts or self.wants_transactions

    @property
    def wants_address_info(self) -> bool:
        """A bare address with no more specific ask gets a native balance/nonce summary."""
        return (
            self.extracted_address is not None
            and not self.wants_wallet_data
            and not self.wants_contract_validation
            and not self.mentions_contract
        )

    @property
    def needs_contract_address(self) -> bool:
        """Contract keyword present but nothing to validate."""
        return (
            self.mentions_contract
            and not self.is_educational
            and self.extracted_address is None
            and self.extracted_tx_hash is None
        )

    @property
    def needs_wallet(self) -> bool:
        return self.wants_balance and self.target_address is None

    @property
    def wants_chain_data(self) -> bool:
        return any((
            self.wants_wallet_data,
            self.wants_contract_validation,
            self.wants_block,
            self.wants_latest_block,
            self.wants_transaction_lookup,
            self.wants_gas,
            self.wants_address_info,
        ))


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def is_blockchain_query(message: str) -> bool:
    return _contains_any(message.lower(), BLOCKCHAIN_KEYWORDS)


def is_contract_query(message: str) -> bool:
    return _contains_any(message.lower(), CONTRACT_KEYWORDS)


def is_nft_query(message: str) -> bool:
    return _contains_any(message.lower(), NFT_KEYWORDS)


def is_transaction_query(message: str) -> bool:
    return _contains_any(message.lower(), TRANSACTION_KEYWORDS)


def is_balance_query(message: str) -> bool:
    lowered = message.lower()
    if _contains_any(lowered, BALANCE_KEYWORDS):
        return True
    if _contains_any(lowered, GENERIC_BALANCE_KEYWORDS):
        return not (is_nft_query(lowered) or is_transaction_query(lowered))
    return False


def is_gas_query(message: str) -> bool:
    return _contains_any(message.lower(), GAS_KEYWORDS)


def is_latest_block_query(message: str) -> bool:
    return _contains_any(message.lower(), LATEST_BLOCK_KEYWORDS)


def is_educational_query(message: str) -> bool:
    return message.lower().strip().startswith(EDUCATIONAL_PREFIXES)


def extract_network(message: str) -> Optional[str]:
    """Return the first network named in ``message``, or ``None``."""

    lowered = message.lower()
    for network, pattern in _NETWORK_PATTERNS:
        if pattern.search(lowered):
            return network
    return None


def extract_hex_values(message: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Split ``0x`` tokens into (address, tx hash, malformed candidate).

    Each token is classified on its full length, so a 64-hex hash is never
    read as an address.
    """

    address: Optional[str] = None
    tx_hash: Optional[str] = None
    malformed: Optional[str] = None
    for candidate in _HEX_CANDIDATE_RE.findall(message):
        body = candidate[2:]
        is_hex = bool(_HEX_BODY_RE.match(body))
        if is_hex and len(body) == 40:
            address = address or candidate
        elif is_hex and len(body) == 64:
            tx_hash = tx_hash or candidate
        elif len(body) >= MALFORMED_MIN_LENGTH:
            malformed = malformed or candidate
    return address, tx_hash, malformed


def extract_wallet_address(message: str) -> Optional[str]:
    return extract_hex_values(message)[0]


def extract_block_number(message: str) -> Optional[int]:
    match = _BLOCK_NUMBER_RE.search(message)
    return int(match.group(1)) if match else None


def is_follow_up(message: str, history: Sequence[ChatMessage], max_length: Optional[int] = None) -> bool:
    """Short or continuation-style messages inside an existing conversation."""

    if not history:
        return False
    cutoff = settings.follow_up_max_length if max_length is None else max_length
    text = message.strip().lower()
    if not text:
        return False
    if len(text) < cutoff:
        return True
    return any(re.search(rf"\b{re.escape(phrase)}\b", text) for phrase in CONTINUATION_PHRASES)


def _last_user_message(history: Sequence[ChatMessage]) -> Optional[str]:
    for item in reversed(history):
        if item.role == "user" and item.content:
            return item.content
    return None


def classify(
    message: str,
    history: Optional[Sequence[ChatMessage]] = None,
    wallet_address: Optional[str] = None,
    *,
    follow_up_max_length: Optional[int] = None,
) -> ChainQueryIntent:
    """Derive a ``ChainQueryIntent`` from a user message."""

    history = list(history or [])
    text = message or ""
    lowered = text.lower()

    address, tx_hash, malformed = extract_hex_values(text)
    block_number = extract_block_number(text)
    named_network = extract_network(text)

    intent = ChainQueryIntent(
        extracted_address=address,
        extracted_tx_hash=tx_hash,
        extracted_block_number=block_number,
        malformed_address=malformed if address is None else None,
        wallet_address=wallet_address or None,
        network=named_network or "ethereum",
        network_explicit=named_network is not None,
        is_educational=is_educational_query(text),
    )
    intent.networks = [intent.network]
    if _contains_any(lowered, ALL_NETWORKS_PHRASES):
        intent.networks = list(SUPPORTED_NETWORKS)

    intent.mentions_contract = is_contract_query(text)
    intent.wants_contract_validation = intent.mentions_contract and address is not None
    intent.wants_transaction_lookup = tx_hash is not None
    intent.wants_block = block_number is not None
    intent.wants_latest_block = block_number is None and is_latest_block_query(text)
    intent.wants_gas = is_gas_query(text)

    if not intent.wants_contract_validation and not intent.wants_transaction_lookup:
        intent.wants_nfts = is_nft_query(text)
        intent.wants_transactions = is_transaction_query(text)
        intent.wants_balance = is_balance_query(text)

    intent.is_follow_up = is_follow_up(text, history, follow_up_max_length)

    if intent.is_follow_up and intent.network_explicit and not intent.wants_chain_data:
        # "what about polygon?" re-asks the previous wallet question on another network
        previous = _last_user_message(history)
        if previous:
            prior = classify(previous, wallet_address=wallet_address)
            intent.wants_balance = prior.wants_balance
            intent.wants_nfts = prior.wants_nfts
            intent.wants_transactions = prior.wants_transactions
            if intent.extracted_address is None and prior.extracted_address:
                intent.extracted_address = prior.extracted_address

    intent.is_blockchain_related = (
        is_blockchain_query(text)
        or intent.is_follow_up
        or address is not None
        or tx_hash is not None
        or block_number is not None
    )

    if intent.is_educational and intent.wants_gas:
        # "what is gwei?" is a concept question, "what is the gas price now?" is a lookup
        intent.wants_gas = bool(re.search(r"\b(price|fee|fees|cost|now|current|today)\b", lowered))

    return intent


__all__ = [
    "ChainQueryIntent",
    "classify",
    "extract_block_number",
    "extract_hex_values",
    "extract_network",
    "extract_wallet_address",
    "is_balance_query",
    "is_blockchain_query",
    "is_contract_query",
    "is_follow_up",
    "is_nft_query",
    "is_transaction_query",
]
