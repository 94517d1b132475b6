"""
Tests for mapping raw Alchemy payloads onto normalized chain types.
"""

from decimal import Decimal

from app.providers.adapters import (
    block_from_rpc,
    has_bytecode,
    nft_from_alchemy,
    resolve_nft_image,
    rewrite_ipfs,
    sort_tokens,
    token_from_data_api,
    token_metadata_from_rpc,
    transaction_from_rpc,
    transfer_from_alchemy,
)
from app.types import NormalizedToken

GATEWAY = "https://ipfs.io/ipfs/"


class TestTokens:
    def test_erc20_with_price(self):
        raw = {
            "tokenAddress": "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
            "tokenBalance": "0x1dcd6500",  # 500 USDC
            "tokenMetadata": {"symbol": "USDC", "name": "USD Coin", "decimals": 6},
            "tokenPrices": [{"currency": "usd", "value": "1.0001"}],
        }

        token = token_from_data_api(raw, "ethereum")

        assert token.symbol == "USDC"
        assert token.balance == "500"
        assert token.price_usd == Decimal("1.0001")
        assert token.value_usd == Decimal("500.0500")

    def test_native_token_uses_network_symbol(self):
        raw = {"tokenAddress": None, "tokenBalance": "1000000000000000000", "tokenMetadata": {}}

        token = token_from_data_api(raw, "polygon", native_symbol="POL")

        assert token.symbol == "POL"
        assert token.contract_address is None
        assert token.value_usd is None

    def test_zero_balance_dropped(self):
        raw = {"tokenAddress": "0xabc", "tokenBalance": "0x0", "tokenMetadata": {"decimals": 18}}
        assert token_from_data_api(raw, "ethereum") is None

    def test_sort_puts_unpriced_last(self):
        tokens = [
            NormalizedToken(network="ethereum", symbol="A", decimals=18, balance="1"),
            NormalizedToken(network="ethereum", symbol="B", decimals=18, balance="1", value_usd=Decimal("5")),
            NormalizedToken(network="ethereum", symbol="C", decimals=18, balance="1", value_usd=Decimal("50")),
        ]
        assert [t.symbol for t in sort_tokens(tokens)] == ["C", "B", "A"]

    def test_metadata_empty_is_none(self):
        assert token_metadata_from_rpc({}) is None
        assert token_metadata_from_rpc({"name": None, "symbol": None, "decimals": None}) is None
        meta = token_metadata_from_rpc({"name": "Tether", "symbol": "USDT", "decimals": 6})
        assert meta.decimals == 6


class TestNFTs:
    def test_ipfs_rewrite(self):
        assert rewrite_ipfs("ipfs://QmHash/1.png", GATEWAY) == "https://ipfs.io/ipfs/QmHash/1.png"
        assert rewrite_ipfs("ipfs://ipfs/QmHash", GATEWAY) == "https://ipfs.io/ipfs/QmHash"
        assert rewrite_ipfs("https://x.io/a.png", GATEWAY) == "https://x.io/a.png"
        assert rewrite_ipfs(None, GATEWAY) is None

    def test_image_priority(self):
        raw = {
            "image": {"originalUrl": "https://orig.png"},
            "raw": {"metadata": {"image": "ipfs://QmRaw"}},
        }
        assert resolve_nft_image(raw, GATEWAY) == "https://orig.png"

        raw["image"] = {}
        assert resolve_nft_image(raw, GATEWAY) == "https://ipfs.io/ipfs/QmRaw"

    def test_nft_fields(self):
        raw = {
            "contract": {"address": "0xc0ffee", "openSeaMetadata": {"collectionName": "Cool Cats"}},
            "tokenId": "42",
            "tokenType": "ERC721",
            "raw": {"metadata": {"description": "A cat"}},
            "image": {"cachedUrl": "https://cache/42.png", "thumbnailUrl": "https://cache/42-thumb.png"},
        }

        nft = nft_from_alchemy(raw, "ethereum", GATEWAY)

        assert nft.name == "#42"
        assert nft.collection_name == "Cool Cats"
        assert nft.description == "A cat"
        assert nft.image_url == "https://cache/42.png"
        assert nft.thumbnail_url == "https://cache/42-thumb.png"


class TestRpcObjects:
    def test_transfer_uses_raw_contract_decimals(self):
        raw = {
            "hash": "0xfeed",
            "from": "0xaaa",
            "to": "0xbbb",
            "asset": "USDC",
            "category": "erc20",
            "blockNum": "0x10",
            "rawContract": {"value": "0x0f4240", "decimal": "0x6"},
            "metadata": {"blockTimestamp": "2024-01-02T03:04:05.000Z"},
        }

        transfer = transfer_from_alchemy(raw)

        assert transfer.value == "1"
        assert transfer.block_number == 16
        assert transfer.timestamp.year == 2024

    def test_block(self):
        block = block_from_rpc(
            {"number": "0x10", "hash": "0xhash", "timestamp": "0x5f5e100", "transactions": ["0x1", "0x2"]},
            "ethereum",
        )
        assert block.number == 16
        assert block.transaction_count == 2
        assert block.timestamp is not None

    def test_transaction_with_receipt(self):
        tx = transaction_from_rpc(
            {"hash": "0xabc", "value": "0xde0b6b3a7640000", "blockNumber": "0x1", "gasPrice": "0x3b9aca00"},
            "ethereum",
            {"status": "0x0", "gasUsed": "0x5208"},
        )
        assert tx.value == "1"
        assert tx.status == "failed"
        assert tx.gas_used == 21000

    def test_bytecode_detection(self):
        assert has_bytecode("0x6080") is True
        assert has_bytecode("0x") is False
        assert has_bytecode(None) is False
