from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from ..config import settings
from ..core.postprocess import render
from ..providers.base import ChainDataError, ChainDataProvider
from ..services.address import (
    is_supported_chain,
    is_valid_address,
    is_valid_tx_hash,
    normalize_chain,
    parse_chains,
)
from ..types import (
    AddressInfo,
    BlockInfo,
    ContractRequest,
    ContractResponse,
    GasPrice,
    NFTResponse,
    PortfolioResponse,
    RenderRequest,
    RenderResponse,
    TransactionInfo,
    TransactionsResponse,
)
from .deps import get_chain_client

router = APIRouter()


def _require_address(address: str) -> str:
    address = address.strip()
    if not is_valid_address(address):
        raise HTTPException(
            status_code=400,
            detail="Invalid address format (expected 0x followed by 40 hex characters)",
        )
    return address


def _require_chain(chain: str) -> str:
    normalized = normalize_chain(chain)
    if not is_supported_chain(normalized):
        raise HTTPException(status_code=400, detail=f"Unsupported chain '{chain}'")
    return normalized


def _require_chains(raw: str) -> List[str]:
    chains = parse_chains(raw, default=settings.default_networks)
    unsupported = [chain for chain in chains if not is_supported_chain(chain)]
    if unsupported:
        raise HTTPException(status_code=400, detail=f"Unsupported chain(s): {', '.join(unsupported)}")
    return chains


def _upstream_error(exc: ChainDataError) -> HTTPException:
    status = exc.status_code if exc.status_code in (400, 404) else 502
    return HTTPException(status_code=status, detail=exc.message)


@router.get("/portfolio")
async def get_portfolio_endpoint(
    address: str = Query(..., description="Wallet address to analyze"),
    chains: str = Query("", description="Comma separated networks (default: ethereum)"),
    client: ChainDataProvider = Depends(get_chain_client),
) -> PortfolioResponse:
    """Token balances and USD value for a wallet across one or more networks"""

    address = _require_address(address)
    networks = _require_chains(chains)

    try:
        result = await client.get_token_balances(address, networks)
    except ChainDataError as e:
        raise _upstream_error(e) from e

    return PortfolioResponse(
        success=any(item.status == "fulfilled" for item in result.networks),
        address=result.address,
        tokens=result.tokens,
        total_value=result.total_value_usd,
        networks=result.networks,
    )


@router.get("/nfts")
async def get_nfts_endpoint(
    address: str = Query(..., description="Wallet address that owns the NFTs"),
    chains: str = Query("", description="Comma separated networks (default: ethereum)"),
    client: ChainDataProvider = Depends(get_chain_client),
) -> NFTResponse:
    address = _require_address(address)
    networks = _require_chains(chains)

    try:
        result = await client.get_nfts(address, networks)
    except ChainDataError as e:
        raise _upstream_error(e) from e

    return NFTResponse(
        success=any(item.status == "fulfilled" for item in result.networks),
        address=result.address,
        count=result.count,
        nfts=result.nfts,
        networks=result.networks,
    )


@router.get("/transactions")
async def get_transactions_endpoint(
    address: str = Query(..., description="Wallet address"),
    chain: str = Query("ethereum", description="Network, optionally as name:id (ethereum:1)"),
    client: ChainDataProvider = Depends(get_chain_client),
) -> TransactionsResponse:
    """Most recent outgoing transfers for a wallet"""

    address = _require_address(address)
    network = _require_chain(chain)

    try:
        history = await client.get_transaction_history(address, network)
    except ChainDataError as e:
        raise _upstream_error(e) from e

    return TransactionsResponse(
        success=True,
        address=address,
        chain=history.network,
        total_count=history.total_count,
        transactions=history.transfers,
    )


@router.post("/contract")
async def contract_endpoint(
    payload: ContractRequest,
    client: ChainDataProvider = Depends(get_chain_client),
) -> ContractResponse:
    """Validate a contract address or fetch its token metadata"""

    address = _require_address(payload.address)
    network = _require_chain(payload.chain)

    try:
        if payload.action == "getMetadata":
            metadata = await client.get_token_metadata(address, network)
            return ContractResponse(
                success=True,
                action=payload.action,
                metadata=metadata,
                message=None if metadata else "No token metadata found for this address",
            )

        validation = await client.validate_contract(address, network)
    except ChainDataError as e:
        raise _upstream_error(e) from e

    return ContractResponse(
        success=True,
        action=payload.action,
        valid=True,
        is_contract=validation.is_contract,
        validation=validation,
        metadata=validation.metadata,
        message=None if validation.is_contract else "Address is an externally owned account, not a contract",
    )


@router.get("/block/{number}")
async def get_block_endpoint(
    number: int = Path(..., ge=0, description="Block number"),
    chain: str = Query("ethereum", description="Network"),
    client: ChainDataProvider = Depends(get_chain_client),
) -> BlockInfo:
    network = _require_chain(chain)
    try:
        return await client.get_block(number, network)
    except ChainDataError as e:
        raise _upstream_error(e) from e


@router.get("/tx/{tx_hash}")
async def get_transaction_endpoint(
    tx_hash: str = Path(..., description="Transaction hash (0x followed by 64 hex characters)"),
    chain: str = Query("ethereum", description="Network"),
    client: ChainDataProvider = Depends(get_chain_client),
) -> TransactionInfo:
    if not is_valid_tx_hash(tx_hash):
        raise HTTPException(status_code=400, detail="Invalid transaction hash format")
    network = _require_chain(chain)
    try:
        return await client.get_transaction(tx_hash, network)
    except ChainDataError as e:
        raise _upstream_error(e) from e


@router.get("/address/{address}")
async def get_address_endpoint(
    address: str = Path(..., description="Wallet or contract address"),
    chain: str = Query("ethereum", description="Network"),
    client: ChainDataProvider = Depends(get_chain_client),
) -> AddressInfo:
    address = _require_address(address)
    network = _require_chain(chain)
    try:
        return await client.get_address_info(address, network)
    except ChainDataError as e:
        raise _upstream_error(e) from e


@router.get("/gas")
async def get_gas_endpoint(
    chain: str = Query("ethereum", description="Network"),
    client: ChainDataProvider = Depends(get_chain_client),
) -> GasPrice:
    network = _require_chain(chain)
    try:
        return await client.get_gas_price(network)
    except ChainDataError as e:
        raise _upstream_error(e) from e


@router.post("/render")
async def render_endpoint(payload: RenderRequest) -> RenderResponse:
    """Split an assistant reply into text, link and image segments"""

    return RenderResponse(segments=render(payload.text))
