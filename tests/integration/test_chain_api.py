import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_chain_client, get_gateway
from app.main import app
from app.providers.base import ChainDataError

client = TestClient(app)

WALLET = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
TX_HASH = "0x" + "ab" * 32


@pytest.fixture(autouse=True)
def wired_app(chain_client, gateway):
    app.dependency_overrides[get_chain_client] = lambda: chain_client
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield
    app.dependency_overrides.clear()


def test_portfolio(chain_client):
    resp = client.get("/portfolio", params={"address": WALLET, "chains": "eth,matic"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert [n["network"] for n in body["networks"]] == ["ethereum", "polygon"]
    assert body["tokens"][0]["symbol"] == "ETH"
    assert chain_client.calls == [("get_token_balances", WALLET, ["ethereum", "polygon"])]


def test_portfolio_invalid_address():
    resp = client.get("/portfolio", params={"address": "0x123"})

    assert resp.status_code == 400
    assert "Invalid address" in resp.json()["error"]


def test_portfolio_unsupported_chain():
    resp = client.get("/portfolio", params={"address": WALLET, "chains": "solana"})

    assert resp.status_code == 400
    assert "solana" in resp.json()["error"]


def test_portfolio_requires_address():
    resp = client.get("/portfolio")

    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request"


def test_upstream_failure_is_502(chain_client):
    chain_client.failures["get_token_balances"] = ChainDataError("Blockchain data provider is not configured")

    resp = client.get("/portfolio", params={"address": WALLET})

    assert resp.status_code == 502
    assert resp.json()["error"] == "Blockchain data provider is not configured"


def test_nfts_and_transactions():
    nfts = client.get("/nfts", params={"address": WALLET})
    txs = client.get("/transactions", params={"address": WALLET, "chain": "base:8453"})

    assert nfts.status_code == 200
    assert nfts.json()["count"] == 0
    assert txs.status_code == 200
    assert txs.json()["chain"] == "base"


def test_contract_validate_and_metadata():
    validate = client.post("/contract", json={"address": WALLET})
    metadata = client.post("/contract", json={"address": WALLET, "action": "getMetadata"})

    assert validate.status_code == 200
    assert validate.json()["is_contract"] is True
    assert metadata.json()["metadata"]["symbol"] == "USDT"


def test_contract_unknown_action():
    resp = client.post("/contract", json={"address": WALLET, "action": "deploy"})
    assert resp.status_code == 400


def test_block_not_found_passes_404(chain_client):
    chain_client.failures["get_block"] = ChainDataError("Block 99 not found", status_code=404)

    resp = client.get("/block/99")

    assert resp.status_code == 404


def test_tx_lookup():
    assert client.get(f"/tx/{TX_HASH}").json()["status"] == "success"
    assert client.get("/tx/0x1234").status_code == 400


def test_address_and_gas():
    address = client.get(f"/address/{WALLET}", params={"chain": "optimism"})
    gas = client.get("/gas", params={"chain": "arbitrum"})

    assert address.json()["transaction_count"] == 5
    assert gas.json() == {"network": "arbitrum", "wei": 1_000_000_000, "gwei": "1"}


def test_render():
    resp = client.post("/render", json={"text": "**Cat** [Image](https://img.test/cat)"})

    segments = resp.json()["segments"]
    assert segments[0] == {"type": "text", "text": "Cat ", "url": None, "alt": None, "fallback": None}
    assert segments[1]["type"] == "image"
    assert segments[1]["fallback"]["type"] == "link"


def test_healthz(gateway):
    resp = client.get("/healthz")

    body = resp.json()
    assert body["status"] == "healthy"
    assert body["providers"]["alchemy"]["status"] == "healthy"
    assert body["providers"]["llm"]["status"] == "configured"
    assert body["total_providers"] == 2


def test_healthz_deep_pings_llm(llm_provider):
    body = client.get("/healthz", params={"deep": "true"}).json()
    assert body["providers"]["llm"]["status"] == "healthy"


def test_missing_clients_are_503():
    app.dependency_overrides.clear()

    resp = client.get("/gas")

    assert resp.status_code == 503


def test_wildcard_cors_is_not_credentialed():
    resp = client.options(
        "/portfolio",
        headers={"Origin": "https://wallet.example", "Access-Control-Request-Method": "GET"},
    )

    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "access-control-allow-credentials" not in resp.headers
