"""
Tests for the Alchemy chain data client against a mocked transport.
"""

import json
from decimal import Decimal

import httpx
import pytest

from app.providers.alchemy import AlchemyProvider
from app.providers.base import ChainDataError
from app.services.chains import NetworkRegistry

ADDRESS = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
API_KEY = "test-key-123456"


def make_provider(handler) -> AlchemyProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AlchemyProvider(
        NetworkRegistry(),
        api_key=API_KEY,
        http_client=client,
        data_base_url="https://data.test/v1",
        ipfs_gateway="https://ipfs.io/ipfs/",
        nft_max_pages=3,
    )


def rpc_result(result):
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": result})


def token_payload(tokens, page_key=None):
    return httpx.Response(200, json={"data": {"tokens": tokens, "pageKey": page_key}})


class TestTokenBalances:
    @pytest.mark.asyncio
    async def test_partial_network_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            network = body["addresses"][0]["networks"][0]
            if network == "polygon-mainnet":
                return httpx.Response(503, json={"error": "unavailable"})
            return token_payload([
                {
                    "tokenAddress": None,
                    "tokenBalance": "0x1bc16d674ec80000",  # 2 ETH
                    "tokenMetadata": {"decimals": 18},
                    "tokenPrices": [{"currency": "usd", "value": "3000"}],
                },
                {
                    "tokenAddress": "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
                    "tokenBalance": "0x0",
                    "tokenMetadata": {"symbol": "USDC", "decimals": 6},
                },
            ])

        provider = make_provider(handler)
        result = await provider.get_token_balances(ADDRESS, ["ethereum", "polygon"])

        statuses = {item.network: item.status for item in result.networks}
        assert statuses == {"ethereum": "fulfilled", "polygon": "rejected"}
        assert [t.symbol for t in result.tokens] == ["ETH"]
        assert result.total_value_usd == Decimal("6000")
        failed = result.failed_networks[0]
        assert "503" in failed.error
        assert API_KEY not in failed.error

    @pytest.mark.asyncio
    async def test_follows_page_keys(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            calls.append(body.get("pageKey"))
            if body.get("pageKey") is None:
                return token_payload(
                    [{"tokenAddress": "0x1", "tokenBalance": "1", "tokenMetadata": {"symbol": "A", "decimals": 0}}],
                    page_key="next",
                )
            return token_payload(
                [{"tokenAddress": "0x2", "tokenBalance": "2", "tokenMetadata": {"symbol": "B", "decimals": 0}}],
            )

        provider = make_provider(handler)
        result = await provider.get_token_balances(ADDRESS, ["ethereum"])

        assert calls == [None, "next"]
        assert sorted(t.symbol for t in result.tokens) == ["A", "B"]

    @pytest.mark.asyncio
    async def test_unsupported_network_is_rejected_not_raised(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return token_payload([])

        provider = make_provider(handler)
        result = await provider.get_token_balances(ADDRESS, ["ethereum", "solana"])

        statuses = {item.network: item.status for item in result.networks}
        assert statuses == {"ethereum": "fulfilled", "solana": "rejected"}

    @pytest.mark.asyncio
    async def test_missing_api_key_raises(self):
        provider = AlchemyProvider(NetworkRegistry(), api_key="")
        with pytest.raises(ChainDataError):
            await provider.get_token_balances(ADDRESS, ["ethereum"])
        await provider.aclose()


class TestNFTs:
    @pytest.mark.asyncio
    async def test_pagination_is_bounded(self):
        pages = []

        def handler(request: httpx.Request) -> httpx.Response:
            pages.append(request.url.params.get("pageKey"))
            assert "/nft/v3/" in request.url.path
            return httpx.Response(200, json={
                "ownedNfts": [{"contract": {"address": "0xc0ffee"}, "tokenId": str(len(pages))}],
                "pageKey": f"page-{len(pages)}",
            })

        provider = make_provider(handler)
        result = await provider.get_nfts(ADDRESS, ["ethereum"])

        assert len(pages) == 3
        assert pages[0] is None
        assert result.count == 3


class TestRpc:
    @pytest.mark.asyncio
    async def test_json_rpc_error_surfaces(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "boom"}})

        provider = make_provider(handler)
        with pytest.raises(ChainDataError) as excinfo:
            await provider.get_gas_price("ethereum")

        assert "eth_gasPrice failed: boom" in excinfo.value.message

    @pytest.mark.asyncio
    async def test_gas_price(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.host == "base-mainnet.g.alchemy.com"
            return rpc_result("0x3b9aca00")

        provider = make_provider(handler)
        gas = await provider.get_gas_price("base")

        assert gas.wei == 1_000_000_000
        assert gas.gwei == "1"

    @pytest.mark.asyncio
    async def test_validate_eoa(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content)["method"] == "eth_getCode"
            return rpc_result("0x")

        provider = make_provider(handler)
        validation = await provider.validate_contract(ADDRESS, "ethereum")

        assert validation.is_contract is False
        assert validation.alchemy_network == "eth-mainnet"

    @pytest.mark.asyncio
    async def test_validate_contract_tolerates_metadata_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            method = json.loads(request.content)["method"]
            if method == "eth_getCode":
                return rpc_result("0x60806040")
            if method == "alchemy_getTokenMetadata":
                return httpx.Response(500)
            return rpc_result({"transfers": [{"from": "0xdeployer", "hash": "0xcreation"}]})

        provider = make_provider(handler)
        validation = await provider.validate_contract(ADDRESS, "ethereum")

        assert validation.is_contract is True
        assert validation.bytecode_length == 4
        assert validation.metadata is None
        assert validation.creator == "0xdeployer"

    @pytest.mark.asyncio
    async def test_missing_block_is_404(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return rpc_result(None)

        provider = make_provider(handler)
        with pytest.raises(ChainDataError) as excinfo:
            await provider.get_block(99, "ethereum")

        assert excinfo.value.status_code == 404

    @pytest.mark.asyncio
    async def test_transaction_history_sorted_newest_first(self):
        def handler(request: httpx.Request) -> httpx.Response:
            params = json.loads(request.content)["params"][0]
            assert params["fromAddress"] == ADDRESS
            assert params["order"] == "desc"
            return rpc_result({"transfers": [
                {"hash": "0x1", "blockNum": "0x1", "category": "external"},
                {"hash": "0x3", "blockNum": "0x3", "category": "erc20"},
            ]})

        provider = make_provider(handler)
        history = await provider.get_transaction_history(ADDRESS, "ethereum")

        assert [t.hash for t in history.transfers] == ["0x3", "0x1"]
        assert history.total_count == 2

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        provider = make_provider(handler)
        with pytest.raises(ChainDataError) as excinfo:
            await provider.get_block_number("ethereum")

        assert excinfo.value.message == "Could not reach the blockchain data provider"

    @pytest.mark.asyncio
    async def test_health_check_unconfigured(self):
        provider = AlchemyProvider(NetworkRegistry(), api_key="")
        status = await provider.health_check()
        assert status["status"] == "unavailable"
        await provider.aclose()
