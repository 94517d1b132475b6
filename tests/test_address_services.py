from app.services.address import (
    is_supported_chain,
    is_valid_address,
    is_valid_tx_hash,
    normalize_chain,
    parse_chains,
    short_address,
)


def test_normalize_chain_defaults_to_ethereum():
    assert normalize_chain(None) == "ethereum"
    assert normalize_chain(" Ethereum ") == "ethereum"


def test_normalize_chain_aliases():
    assert normalize_chain("eth") == "ethereum"
    assert normalize_chain("MATIC") == "polygon"
    assert normalize_chain("arb") == "arbitrum"
    assert normalize_chain("op") == "optimism"
    assert normalize_chain("base-mainnet") == "base"


def test_normalize_chain_drops_chain_id_suffix():
    assert normalize_chain("ethereum:1") == "ethereum"
    assert normalize_chain("polygon:137") == "polygon"


def test_supported_chain_flags():
    assert is_supported_chain("ethereum") is True
    assert is_supported_chain("base") is True
    assert is_supported_chain("polygon") is True
    assert is_supported_chain("solana") is False
    assert is_supported_chain("avalanche") is False


def test_parse_chains_dedupes_and_defaults():
    assert parse_chains("eth, ethereum ,polygon") == ["ethereum", "polygon"]
    assert parse_chains("") == ["ethereum"]
    assert parse_chains(None, default=["base"]) == ["base"]
    assert parse_chains(" , ") == ["ethereum"]


def test_address_validation_evm():
    address = "0x1234567890abcdef1234567890ABCDEF12345678"
    assert is_valid_address(address) is True
    assert is_valid_address(address[:-1]) is False
    assert is_valid_address(address + "0") is False
    assert is_valid_address("0x123456789012345678901234567890123456789g") is False
    assert is_valid_address(None) is False


def test_tx_hash_validation():
    tx_hash = "0x" + "ab" * 32
    assert is_valid_tx_hash(tx_hash) is True
    assert is_valid_tx_hash(tx_hash[:-2]) is False
    # an address is not a hash
    assert is_valid_tx_hash("0x" + "a" * 40) is False


def test_short_address():
    address = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
    assert short_address(address) == "0xd8dA...A96045"
    assert short_address("0x1234") == "0x1234"
