"""
Chat pipeline: classify the message, fetch whatever chain data it asks for,
render that data into the system prompt and let the LLM phrase the reply.

Validation failures (malformed addresses, missing wallet, contract questions
without an address) are answered directly, before any provider call.
"""

import asyncio
import logging
from typing import Awaitable, List, Optional, Tuple

from ..providers.base import ChainDataError, ChainDataProvider
from ..services.address import is_valid_address
from ..services.chains import NetworkRegistry
from ..types import ChainData, ChatRequest, ChatResponse, NFTResult, PortfolioResult
from .classifier import ChainQueryIntent, classify
from .files import analyze_attachment
from .formatter import format_context
from .gateway import LLMGateway
from .postprocess import clean_markdown
from .prompts import build_system_prompt

_logger = logging.getLogger(__name__)

INVALID_ADDRESS_REPLY = (
    "❌ Invalid wallet address!\n\n"
    "Please provide a valid Ethereum address (0x followed by 40 hex characters). 🔍"
)
CONTRACT_ADDRESS_NEEDED_REPLY = (
    "🔍 Which contract should I look at?\n\n"
    "Paste the contract address (0x followed by 40 hex characters) and I'll check whether it's "
    "a smart contract and pull its token details. 📜"
)
CONNECT_WALLET_REPLY = (
    "💡 To check wallet balance, either:\n\n"
    "1️⃣ Connect your wallet using the button above\n"
    "2️⃣ Provide a wallet address in your message (e.g., 'check balance 0x...')\n\n"
    "Try again! 🚀"
)
PIPELINE_ERROR_REPLY = "⚠️ Something went wrong while handling your message. Please try again. 🙏"


def validation_reply(intent: ChainQueryIntent) -> Optional[str]:
    """Direct answer for requests that cannot reach the data client, else ``None``."""

    if intent.malformed_address and not intent.extracted_address:
        return INVALID_ADDRESS_REPLY
    if intent.needs_contract_address:
        return CONTRACT_ADDRESS_NEEDED_REPLY
    if intent.needs_wallet:
        return CONNECT_WALLET_REPLY
    if intent.wants_wallet_data and intent.target_address and not is_valid_address(intent.target_address):
        return INVALID_ADDRESS_REPLY
    return None


def _all_rejected(result: object) -> Optional[str]:
    if isinstance(result, (PortfolioResult, NFTResult)) and result.networks:
        if all(item.status == "rejected" for item in result.networks):
            return "; ".join(f"{item.network}: {item.error}" for item in result.networks)
    return None


async def _collect(
    kind: str,
    network: str,
    awaitable: Awaitable[object],
    *,
    address: Optional[str] = None,
    **extra: object,
) -> ChainData:
    try:
        data = await awaitable
    except ChainDataError as exc:
        _logger.warning("Chain data fetch failed kind=%s network=%s error=%s", kind, network, exc.message)
        return ChainData(kind=kind, network=network, address=address, error=exc.message, extra=extra)

    failure = _all_rejected(data)
    if failure:
        return ChainData(kind=kind, network=network, address=address, error=failure, extra=extra)
    return ChainData(kind=kind, network=network, address=address, data=data, extra=extra)


async def fetch_chain_data(intent: ChainQueryIntent, client: ChainDataProvider) -> List[ChainData]:
    """Run every lookup the intent asks for concurrently."""

    network = intent.network
    jobs: List[Tuple[str, Awaitable[ChainData]]] = []

    if intent.wants_contract_validation and intent.extracted_address:
        address = intent.extracted_address
        jobs.append(("contract", _collect(
            "contract", network, client.validate_contract(address, network), address=address,
        )))

    if intent.wants_transaction_lookup and intent.extracted_tx_hash:
        tx_hash = intent.extracted_tx_hash
        jobs.append(("transaction", _collect(
            "transaction", network, client.get_transaction(tx_hash, network), tx_hash=tx_hash,
        )))

    if intent.wants_block and intent.extracted_block_number is not None:
        number = intent.extracted_block_number
        jobs.append(("block", _collect(
            "block", network, client.get_block(number, network), block_number=number,
        )))

    if intent.wants_latest_block:
        jobs.append(("latest_block", _collect("latest_block", network, client.get_block_number(network))))

    if intent.wants_gas:
        jobs.append(("gas", _collect("gas", network, client.get_gas_price(network))))

    target = intent.target_address
    if target and is_valid_address(target):
        if intent.wants_balance:
            jobs.append(("balance", _collect(
                "balance", network, client.get_token_balances(target, intent.networks), address=target,
            )))
        if intent.wants_nfts:
            jobs.append(("nfts", _collect(
                "nfts", network, client.get_nfts(target, intent.networks), address=target,
            )))
        if intent.wants_transactions:
            jobs.append(("transactions", _collect(
                "transactions", network, client.get_transaction_history(target, network), address=target,
            )))

    if intent.wants_address_info and intent.extracted_address:
        address = intent.extracted_address
        jobs.append(("address", _collect(
            "address", network, client.get_address_info(address, network), address=address,
        )))

    if not jobs:
        return []

    _logger.info("Fetching chain data kinds=%s network=%s", [kind for kind, _ in jobs], network)
    return list(await asyncio.gather(*(job for _, job in jobs)))


async def run_chat(
    request: ChatRequest,
    chain_client: ChainDataProvider,
    gateway: LLMGateway,
    registry: Optional[NetworkRegistry] = None,
) -> ChatResponse:
    """Process a chat request end to end and return the assistant reply."""

    message = request.message.strip()

    if request.file is not None:
        reply = await analyze_attachment(request.file, message, gateway)
        return ChatResponse(response=reply)

    intent = classify(message, request.messages, request.wallet_address)
    _logger.info(
        "Chat intent blockchain=%s follow_up=%s network=%s data=%s",
        intent.is_blockchain_related,
        intent.is_follow_up,
        intent.network,
        intent.wants_chain_data,
    )

    direct = validation_reply(intent)
    if direct is not None:
        return ChatResponse(response=direct)

    chain_data = await fetch_chain_data(intent, chain_client) if intent.wants_chain_data else []
    context_block = format_context(intent, chain_data, registry)

    wallet = request.wallet_address if is_valid_address(request.wallet_address) else None
    system_prompt = build_system_prompt(context_block or None, wallet)
    reply = await gateway.complete(
        system_prompt,
        request.messages,
        message,
        context_block=context_block or None,
        image=request.image,
    )
    return ChatResponse(response=clean_markdown(reply))


__all__ = [
    "CONNECT_WALLET_REPLY",
    "CONTRACT_ADDRESS_NEEDED_REPLY",
    "INVALID_ADDRESS_REPLY",
    "PIPELINE_ERROR_REPLY",
    "fetch_chain_data",
    "run_chat",
    "validation_reply",
]
