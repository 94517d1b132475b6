"""
Tests for the plain-text context blocks handed to the LLM.
"""

from decimal import Decimal

from app.core.classifier import classify
from app.core.formatter import (
    MAX_DESCRIPTION_LENGTH,
    format_balance_block,
    format_chain_data,
    format_context,
    format_contract_block,
    format_failure,
    format_nft_block,
    format_transactions_block,
)
from app.services.chains import NetworkRegistry
from app.types import (
    ChainData,
    ContractValidation,
    NetworkResult,
    NFTResult,
    NormalizedNFT,
    NormalizedToken,
    NormalizedTransfer,
    PortfolioResult,
    TokenMetadata,
    TransactionHistory,
)

WALLET = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
OTHER = "0x1234567890abcdef1234567890abcdef12345678"
registry = NetworkRegistry()


def portfolio(**overrides):
    data = dict(
        address=WALLET,
        tokens=[
            NormalizedToken(
                network="ethereum", symbol="ETH", name="Ether", decimals=18, balance="1.5",
                price_usd=Decimal("2000"), value_usd=Decimal("3000.004"),
            ),
            NormalizedToken(network="ethereum", symbol="MYST", decimals=18, balance="10"),
        ],
        total_value_usd=Decimal("3000.004"),
        networks=[NetworkResult(network="ethereum", status="fulfilled", count=2)],
    )
    data.update(overrides)
    return PortfolioResult(**data)


class TestBalanceBlock:
    def test_usd_two_decimals_and_na(self):
        block = format_balance_block(portfolio())

        assert block.startswith("USER WALLET DATA FROM ALCHEMY API:")
        assert "Total Portfolio Value: $3000.00 USD" in block
        assert "USD Value: $3000.00" in block
        assert "1. ETH (Ether)" in block
        assert "2. MYST (Unknown)" in block
        assert "USD Price: N/A" in block
        assert "USD Value: N/A" in block

    def test_other_wallet_heading(self):
        block = format_balance_block(portfolio(), other_wallet=True)
        assert block.startswith("WALLET DATA FROM ALCHEMY API:")

    def test_failed_networks_listed(self):
        result = portfolio(networks=[
            NetworkResult(network="ethereum", status="fulfilled"),
            NetworkResult(network="polygon", status="rejected", error="timeout"),
        ])
        block = format_balance_block(result)
        assert "Networks unavailable:" in block
        assert "- polygon: timeout" in block

    def test_empty_portfolio(self):
        block = format_balance_block(portfolio(tokens=[], total_value_usd=Decimal("0")))
        assert "No tokens found on ethereum." in block
        assert "$0.00" in block


class TestNFTBlock:
    def test_marketplace_and_truncation(self):
        nft = NormalizedNFT(
            network="polygon",
            contract_address="0xc0ffee",
            token_id="7",
            name="Cat #7",
            description="x" * 500,
            image_url="https://img.test/7.png",
        )
        block = format_nft_block(NFTResult(address=WALLET, nfts=[nft]), registry)

        assert "Total NFTs: 1" in block
        assert "Marketplace URL: https://opensea.io/assets/matic/0xc0ffee/7" in block
        assert "Image URL: https://img.test/7.png" in block
        description = next(line for line in block.splitlines() if line.startswith("Description: "))
        assert len(description) == len("Description: ") + MAX_DESCRIPTION_LENGTH
        assert description.endswith("...")

    def test_long_image_prefers_thumbnail(self):
        nft = NormalizedNFT(
            network="ethereum",
            image_url="data:image/svg+xml;base64," + "A" * 1000,
            thumbnail_url="https://thumb.test/1.png",
        )
        block = format_nft_block(NFTResult(address=WALLET, nfts=[nft]), registry)
        assert "Image URL: https://thumb.test/1.png" in block
        assert "Token ID: N/A" in block


class TestTransactionsBlock:
    def test_shows_ten_with_remainder_note(self):
        transfers = [
            NormalizedTransfer(hash=f"0x{i:02x}", value="1", asset="ETH", block_number=100 - i)
            for i in range(14)
        ]
        block = format_transactions_block(
            TransactionHistory(address=WALLET, network="ethereum", transfers=transfers)
        )

        assert "Total Transactions: 14" in block
        assert "10. EXTERNAL" in block
        assert "11. EXTERNAL" not in block
        assert "... and 4 more transactions not shown." in block
        assert "To: Contract Creation" in block
        assert "Time: Unknown" in block


class TestContractBlock:
    def test_token_contract(self):
        block = format_contract_block(ContractValidation(
            address=OTHER,
            network="ethereum",
            alchemy_network="eth-mainnet",
            is_contract=True,
            bytecode_length=1234,
            metadata=TokenMetadata(name="Tether USD", symbol="USDT", decimals=6),
        ))

        assert "Is Contract: ✅ YES" in block
        assert "TOKEN METADATA:" in block
        assert "Logo: N/A" in block
        assert "token contract for Tether USD (USDT)" in block

    def test_eoa(self):
        block = format_contract_block(ContractValidation(
            address=OTHER, network="base", alchemy_network="base-mainnet", is_contract=False,
        ))
        assert "is NOT a smart contract on base" in block


class TestFailures:
    def test_transactions_failure_links_explorer(self):
        item = ChainData(kind="transactions", network="ethereum", address=WALLET, error="HTTP 500")
        text = format_failure(item, registry)

        assert text.startswith("Failed to fetch transaction history from ALCHEMY API. Error: HTTP 500")
        assert f"https://etherscan.io/address/{WALLET}" in text

    def test_tx_failure_links_tx_page(self):
        tx_hash = "0x" + "ab" * 32
        item = ChainData(kind="transaction", network="arbitrum", error="not found", extra={"tx_hash": tx_hash})
        assert f"https://arbiscan.io/tx/{tx_hash}" in format_failure(item, registry)

    def test_failure_without_data_never_renders_success(self):
        item = ChainData(kind="gas", network="ethereum")
        assert format_chain_data(item).startswith("Failed to fetch gas price")


def test_context_joins_blocks():
    intent = classify(f"check balance {OTHER}", wallet_address=WALLET)
    context = format_context(intent, [
        ChainData(kind="balance", network="ethereum", address=OTHER, data=portfolio(address=OTHER)),
        ChainData(kind="latest_block", network="ethereum", data=19_000_000),
    ])

    assert context.startswith("WALLET DATA FROM ALCHEMY API:")
    assert "\n\nLATEST BLOCK FROM ALCHEMY API:" in context
    assert "Latest Block Number: 19000000" in context


def test_empty_context():
    assert format_context(None, []) == ""
