"""Alchemy-backed chain data client.

One pooled ``httpx.AsyncClient`` serves every network; per-network endpoints
come from the ``NetworkRegistry`` handed in at construction. Every failure
surfaces as ``ChainDataError`` so callers can render a graceful fallback.
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

import httpx

from ..config import settings
from ..services.chains import NetworkConfig, NetworkRegistry, UnsupportedNetworkError
from ..services.units import parse_quantity, wei_to_gwei
from ..types import (
    AddressInfo,
    BlockInfo,
    ContractValidation,
    GasPrice,
    NetworkResult,
    NFTResult,
    NormalizedNFT,
    NormalizedToken,
    PortfolioResult,
    TokenMetadata,
    TransactionHistory,
    TransactionInfo,
)
from .adapters import (
    address_info_from_rpc,
    block_from_rpc,
    bytecode_length,
    has_bytecode,
    nft_from_alchemy,
    sort_tokens,
    token_from_data_api,
    token_metadata_from_rpc,
    transaction_from_rpc,
    transfer_from_alchemy,
)
from .base import ChainDataError, ChainDataProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSFER_CATEGORIES = ["external", "erc20", "erc721", "erc1155"]
MAX_TRANSFERS = 50
MAX_TOKEN_PAGES = 25


class AlchemyProvider(ChainDataProvider):
    """Alchemy API provider for multi-network EVM lookups"""

    name = "alchemy"

    def __init__(
        self,
        registry: Optional[NetworkRegistry] = None,
        api_key: Optional[str] = None,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_s: Optional[float] = None,
        data_base_url: Optional[str] = None,
        ipfs_gateway: Optional[str] = None,
        nft_max_pages: Optional[int] = None,
    ):
        self.registry = registry or NetworkRegistry()
        self.api_key = settings.alchemy_api_key if api_key is None else api_key
        self.timeout_s = timeout_s or settings.request_timeout_seconds
        self.data_base_url = (data_base_url or settings.alchemy_data_base_url).rstrip("/")
        self.ipfs_gateway = ipfs_gateway or settings.ipfs_gateway
        self.nft_max_pages = max(1, nft_max_pages or settings.nft_max_pages)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self.timeout_s,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def ready(self) -> bool:
        return bool(self.api_key)

    async def health_check(self) -> Dict[str, Any]:
        if not await self.ready():
            return {
                "status": "unavailable",
                "reason": "API key not configured"
            }

        try:
            block = await self.get_block_number("ethereum")
            return {"status": "healthy", "latest_block": block}
        except ChainDataError as e:
            return {"status": "error", "reason": e.message}

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    def _network(self, network: str) -> NetworkConfig:
        try:
            return self.registry.get(network)
        except UnsupportedNetworkError as exc:
            raise ChainDataError(str(exc), network=network, status_code=400) from exc

    def _require_key(self, network: Optional[str] = None) -> None:
        if not self.api_key:
            raise ChainDataError("Blockchain data provider is not configured", network=network)

    async def _request_json(
        self,
        method: str,
        url: str,
        network: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(method, url, json=json, params=params, timeout=self.timeout_s)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("Alchemy HTTP error network=%s status=%s", network, status)
            raise ChainDataError(
                f"Blockchain data provider returned HTTP {status}",
                network=network,
                status_code=status,
            ) from exc
        except httpx.RequestError as exc:
            logger.warning("Alchemy request failed network=%s error=%s", network, type(exc).__name__)
            raise ChainDataError("Could not reach the blockchain data provider", network=network) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ChainDataError("Malformed response from blockchain data provider", network=network) from exc

    async def _rpc(self, network: str, method: str, params: List[Any]) -> Any:
        self._require_key(network)
        cfg = self._network(network)
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        data = await self._request_json("POST", cfg.rpc_url(self.api_key), cfg.key, json=payload)

        if not isinstance(data, dict):
            raise ChainDataError(f"Malformed {method} response", network=cfg.key)
        if data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ChainDataError(f"{method} failed: {message or 'unknown error'}", network=cfg.key)
        if "result" not in data:
            raise ChainDataError(f"Malformed {method} response", network=cfg.key)
        return data["result"]

    async def _fan_out(
        self,
        networks: List[str],
        fetch: Callable[[NetworkConfig], Awaitable[List[T]]],
    ) -> Tuple[List[T], List[NetworkResult]]:
        """Run ``fetch`` for every network concurrently; one failure never sinks the others."""

        configs: List[Tuple[str, Optional[NetworkConfig]]] = []
        for network in networks:
            configs.append((network, self.registry.find(network)))

        async def _run(network: str, cfg: Optional[NetworkConfig]) -> List[T]:
            if cfg is None:
                raise ChainDataError(f"Unsupported network '{network}'", network=network, status_code=400)
            return await fetch(cfg)

        results = await asyncio.gather(
            *(_run(network, cfg) for network, cfg in configs),
            return_exceptions=True,
        )

        items: List[T] = []
        statuses: List[NetworkResult] = []
        for (network, cfg), result in zip(configs, results):
            key = cfg.key if cfg else network
            if isinstance(result, ChainDataError):
                statuses.append(NetworkResult(network=key, status="rejected", error=result.message))
            elif isinstance(result, BaseException):
                logger.exception("Unexpected failure fetching %s", key, exc_info=result)
                statuses.append(NetworkResult(network=key, status="rejected", error="Unexpected provider error"))
            else:
                items.extend(result)
                statuses.append(NetworkResult(network=key, status="fulfilled", count=len(result)))
        return items, statuses

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    async def get_token_balances(self, address: str, networks: List[str]) -> PortfolioResult:
        """Native and ERC-20 balances for ``address`` across ``networks``."""

        self._require_key()
        tokens, statuses = await self._fan_out(
            networks,
            lambda cfg: self._fetch_network_tokens(address, cfg),
        )
        ordered = sort_tokens(tokens)
        total = sum((t.value_usd for t in ordered if t.value_usd is not None), Decimal("0"))
        return PortfolioResult(
            address=address,
            tokens=ordered,
            total_value_usd=total,
            networks=statuses,
        )

    async def _fetch_network_tokens(self, address: str, cfg: NetworkConfig) -> List[NormalizedToken]:
        url = f"{self.data_base_url}/{self.api_key}/assets/tokens/by-address"
        base_body = {
            "addresses": [{"address": address, "networks": [cfg.alchemy_slug]}],
            "withMetadata": True,
            "withPrices": True,
            "includeNativeTokens": True,
            "includeErc20Tokens": True,
        }

        tokens: List[NormalizedToken] = []
        page_key: Optional[str] = None
        seen_keys = set()
        for _ in range(MAX_TOKEN_PAGES):
            body = {**base_body, "pageKey": page_key} if page_key else base_body
            data = await self._request_json("POST", url, cfg.key, json=body)
            payload = data.get("data") if isinstance(data, dict) else None
            if not isinstance(payload, dict):
                raise ChainDataError("Malformed token balance response", network=cfg.key)

            for raw in payload.get("tokens") or []:
                if not isinstance(raw, dict):
                    continue
                token = token_from_data_api(raw, cfg.key, cfg.native_symbol)
                if token is not None:
                    tokens.append(token)

            page_key = payload.get("pageKey") or None
            if not page_key or page_key in seen_keys:
                break
            seen_keys.add(page_key)
        else:
            logger.warning("Token pagination truncated network=%s pages=%s", cfg.key, MAX_TOKEN_PAGES)

        return tokens

    # ------------------------------------------------------------------
    # NFTs
    # ------------------------------------------------------------------

    async def get_nfts(self, address: str, networks: List[str]) -> NFTResult:
        self._require_key()
        nfts, statuses = await self._fan_out(
            networks,
            lambda cfg: self._fetch_network_nfts(address, cfg),
        )
        return NFTResult(address=address, nfts=nfts, networks=statuses)

    async def _fetch_network_nfts(self, address: str, cfg: NetworkConfig) -> List[NormalizedNFT]:
        url = cfg.nft_url(self.api_key, "getNFTsForOwner")
        nfts: List[NormalizedNFT] = []
        page_key: Optional[str] = None

        for _ in range(self.nft_max_pages):
            params: Dict[str, Any] = {"owner": address, "withMetadata": "true", "pageSize": 100}
            if page_key:
                params["pageKey"] = page_key
            data = await self._request_json("GET", url, cfg.key, params=params)
            if not isinstance(data, dict) or not isinstance(data.get("ownedNfts", []), list):
                raise ChainDataError("Malformed NFT response", network=cfg.key)

            for raw in data.get("ownedNfts") or []:
                if isinstance(raw, dict):
                    nfts.append(nft_from_alchemy(raw, cfg.key, self.ipfs_gateway))

            page_key = data.get("pageKey") or None
            if not page_key:
                break

        return nfts

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    async def get_transaction_history(self, address: str, network: str) -> TransactionHistory:
        cfg = self._network(network)
        result = await self._rpc(cfg.key, "alchemy_getAssetTransfers", [{
            "fromBlock": "0x0",
            "toBlock": "latest",
            "fromAddress": address,
            "category": TRANSFER_CATEGORIES,
            "maxCount": hex(MAX_TRANSFERS),
            "order": "desc",
            "withMetadata": True,
        }])
        raw_transfers = result.get("transfers") if isinstance(result, dict) else None
        if not isinstance(raw_transfers, list):
            raise ChainDataError("Malformed transfer history response", network=cfg.key)

        transfers = [transfer_from_alchemy(raw) for raw in raw_transfers if isinstance(raw, dict)]
        transfers.sort(key=lambda t: t.block_number or 0, reverse=True)
        return TransactionHistory(address=address, network=cfg.key, transfers=transfers[:MAX_TRANSFERS])

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------

    async def get_token_metadata(self, address: str, network: str) -> Optional[TokenMetadata]:
        result = await self._rpc(network, "alchemy_getTokenMetadata", [address])
        return token_metadata_from_rpc(result)

    async def validate_contract(self, address: str, network: str) -> ContractValidation:
        cfg = self._network(network)
        code = await self._rpc(cfg.key, "eth_getCode", [address, "latest"])

        if not has_bytecode(code):
            return ContractValidation(
                address=address,
                network=cfg.key,
                alchemy_network=cfg.alchemy_slug,
                is_contract=False,
            )

        metadata, creation = await asyncio.gather(
            self._optional(self.get_token_metadata(address, cfg.key), "token metadata", cfg.key),
            self._optional(self._find_creation(address, cfg.key), "creator lookup", cfg.key),
        )
        creator, creation_tx = creation or (None, None)
        return ContractValidation(
            address=address,
            network=cfg.key,
            alchemy_network=cfg.alchemy_slug,
            is_contract=True,
            bytecode_length=bytecode_length(code),
            metadata=metadata,
            creator=creator,
            creation_tx=creation_tx,
        )

    async def _find_creation(self, address: str, network: str) -> Optional[Tuple[Optional[str], Optional[str]]]:
        result = await self._rpc(network, "alchemy_getAssetTransfers", [{
            "fromBlock": "0x0",
            "toBlock": "latest",
            "toAddress": address,
            "category": ["external"],
            "maxCount": "0x1",
            "order": "asc",
        }])
        transfers = result.get("transfers") if isinstance(result, dict) else None
        if not transfers or not isinstance(transfers[0], dict):
            return None
        first = transfers[0]
        return first.get("from"), first.get("hash")

    async def _optional(self, awaitable: Awaitable[T], label: str, network: str) -> Optional[T]:
        try:
            return await awaitable
        except ChainDataError as exc:
            logger.info("Optional %s lookup skipped network=%s reason=%s", label, network, exc.message)
            return None

    # ------------------------------------------------------------------
    # Point lookups
    # ------------------------------------------------------------------

    async def get_block(self, number: int, network: str) -> BlockInfo:
        cfg = self._network(network)
        result = await self._rpc(cfg.key, "eth_getBlockByNumber", [hex(number), False])
        if not isinstance(result, dict):
            raise ChainDataError(f"Block {number} not found", network=cfg.key, status_code=404)
        return block_from_rpc(result, cfg.key)

    async def get_block_number(self, network: str) -> int:
        result = await self._rpc(network, "eth_blockNumber", [])
        number = parse_quantity(result)
        if number is None:
            raise ChainDataError("Malformed eth_blockNumber response", network=network)
        return number

    async def get_transaction(self, tx_hash: str, network: str) -> TransactionInfo:
        cfg = self._network(network)
        tx, receipt = await asyncio.gather(
            self._rpc(cfg.key, "eth_getTransactionByHash", [tx_hash]),
            self._optional(self._rpc(cfg.key, "eth_getTransactionReceipt", [tx_hash]), "receipt", cfg.key),
        )
        if not isinstance(tx, dict):
            raise ChainDataError("Transaction not found", network=cfg.key, status_code=404)
        return transaction_from_rpc(tx, cfg.key, receipt if isinstance(receipt, dict) else None)

    async def get_address_info(self, address: str, network: str) -> AddressInfo:
        cfg = self._network(network)
        balance, nonce, code = await asyncio.gather(
            self._rpc(cfg.key, "eth_getBalance", [address, "latest"]),
            self._rpc(cfg.key, "eth_getTransactionCount", [address, "latest"]),
            self._rpc(cfg.key, "eth_getCode", [address, "latest"]),
        )
        return address_info_from_rpc(address, cfg.key, cfg.native_symbol, balance, nonce, code)

    async def get_gas_price(self, network: str) -> GasPrice:
        cfg = self._network(network)
        result = await self._rpc(cfg.key, "eth_gasPrice", [])
        wei = parse_quantity(result)
        if wei is None:
            raise ChainDataError("Malformed eth_gasPrice response", network=cfg.key)
        return GasPrice(network=cfg.key, wei=wei, gwei=wei_to_gwei(wei))
