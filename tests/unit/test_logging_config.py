import structlog

from app.logging_config import build_processors, redact_secrets


def test_alchemy_urls_are_masked():
    event = {
        "event": "GET https://eth-mainnet.g.alchemy.com/v2/abcDEF123456789 failed",
        "url": "https://polygon-mainnet.g.alchemy.com/nft/v3/abcDEF123456789/getNFTsForOwner",
        "status": 500,
    }

    redacted = redact_secrets(None, "info", event)

    assert "abcDEF123456789" not in redacted["event"]
    assert redacted["event"].endswith("/v2/*** failed")
    assert redacted["url"].endswith("/nft/v3/***/getNFTsForOwner")
    assert redacted["status"] == 500


def test_plain_messages_untouched():
    event = {"event": "Chat intent blockchain=True network=ethereum"}
    assert redact_secrets(None, "info", event)["event"] == "Chat intent blockchain=True network=ethereum"


def test_rendered_tracebacks_are_masked():
    processors = build_processors(is_dev=False)
    start = processors.index(structlog.processors.format_exc_info)
    assert processors.index(redact_secrets) > start

    try:
        raise RuntimeError("Client error for url 'https://eth-mainnet.g.alchemy.com/v2/abcDEF123456789'")
    except RuntimeError as exc:
        event = {"event": "Alchemy request failed", "exc_info": exc}

    for processor in processors[start:]:
        event = processor(None, "error", event)

    assert "exc_info" not in event
    assert "RuntimeError" in event["exception"]
    assert "abcDEF123456789" not in event["exception"]
    assert "/v2/***" in event["exception"]
