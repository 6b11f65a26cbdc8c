import asyncio
import logging

from conftest import (
    BONK_MINT,
    USDC_MINT,
    WSOL_MINT,
    FakeFetcher,
    FakeRPC,
    metadata_account_bytes,
    metadata_pda,
    token_2022_mint,
)
from metadata_enricher.backend.resolvers import (
    ExtensionMetadataResolver,
    LegacyMetadataResolver,
    SDKMetadataResolver,
)

PUMP_MINT = "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R"
BONK_URI = "https://arweave.net/bonk.json"


# Token-2022 extension

def test_extension_keeps_onchain_name_and_merges_offchain():
    rpc = FakeRPC(parsed={PUMP_MINT: token_2022_mint("Pump", "PMP", "ipfs://QmPump")})
    fetcher = FakeFetcher({"ipfs://QmPump": {
        "name": "Other Name",
        "image": "https://ipfs.io/ipfs/QmImg",
        "twitter": "https://x.com/pump",
        "description": "a token",
    }})

    metadata = asyncio.run(ExtensionMetadataResolver(rpc, fetcher).resolve(PUMP_MINT))

    assert metadata.name == "Pump"
    assert metadata.symbol == "PMP"
    assert metadata.image == "https://ipfs.io/ipfs/QmImg"
    assert metadata.twitter == "https://x.com/pump"
    assert metadata.description == "a token"


def test_extension_without_offchain_document():
    rpc = FakeRPC(parsed={PUMP_MINT: token_2022_mint("Pump", "", "ipfs://missing")})

    metadata = asyncio.run(ExtensionMetadataResolver(rpc, FakeFetcher()).resolve(PUMP_MINT))

    assert metadata.name == "Pump"
    assert metadata.symbol == "UNKNOWN"
    assert metadata.image is None


def test_extension_not_applicable():
    parsed = {
        USDC_MINT: {"type": "mint", "info": {"decimals": 6}},
        BONK_MINT: {"type": "account", "info": {}},
        PUMP_MINT: {"type": "mint", "info": {"extensions": [{"extension": "transferFeeConfig"}]}},
    }
    resolver = ExtensionMetadataResolver(FakeRPC(parsed=parsed), FakeFetcher())

    for mint in (USDC_MINT, BONK_MINT, PUMP_MINT):
        assert asyncio.run(resolver.resolve(mint)) is None


def test_extension_missing_account():
    resolver = ExtensionMetadataResolver(FakeRPC(), FakeFetcher())

    assert asyncio.run(resolver.resolve(PUMP_MINT)) is None


def test_extension_retries_rate_limited_lookup(sleeps):
    rpc = FakeRPC()
    responses = [Exception("429 Too Many Requests"), token_2022_mint("Pump", "PMP", "")]

    async def get_parsed_account(address):
        value = responses.pop(0)
        if isinstance(value, Exception):
            raise value
        return value

    rpc.get_parsed_account = get_parsed_account

    metadata = asyncio.run(ExtensionMetadataResolver(rpc, FakeFetcher()).resolve(PUMP_MINT))

    assert metadata.name == "Pump"
    assert len(sleeps) == 1


# Manual RPC decoding

def test_legacy_prefers_offchain_name_and_symbol():
    rpc = FakeRPC(accounts={
        metadata_pda(BONK_MINT): metadata_account_bytes(BONK_MINT, "Bonk", "Bonk", BONK_URI),
    })
    fetcher = FakeFetcher({BONK_URI: {
        "name": "Bonk Inu",
        "symbol": "BONK",
        "image": "https://arweave.net/img",
        "extensions": {"website": "https://bonkcoin.com"},
    }})

    metadata = asyncio.run(LegacyMetadataResolver(rpc, fetcher).resolve(BONK_MINT))

    assert metadata.name == "Bonk Inu"
    assert metadata.symbol == "BONK"
    assert metadata.image == "https://arweave.net/img"
    assert metadata.website == "https://bonkcoin.com"
    assert rpc.calls == [("data", metadata_pda(BONK_MINT))]


def test_legacy_falls_back_to_onchain_fields():
    rpc = FakeRPC(accounts={
        metadata_pda(BONK_MINT): metadata_account_bytes(BONK_MINT, "Bonk", "Bonk", BONK_URI),
    })

    metadata = asyncio.run(LegacyMetadataResolver(rpc, FakeFetcher()).resolve(BONK_MINT))

    assert metadata.name == "Bonk"
    assert metadata.symbol == "Bonk"
    assert metadata.image is None


def test_legacy_missing_or_malformed_account():
    rpc = FakeRPC(accounts={metadata_pda(USDC_MINT): bytes(20)})
    resolver = LegacyMetadataResolver(rpc, FakeFetcher())

    assert asyncio.run(resolver.resolve(USDC_MINT)) is None
    assert asyncio.run(resolver.resolve(BONK_MINT)) is None


# Metaplex client

def test_sdk_resolves_with_offchain_document():
    rpc = FakeRPC(accounts={
        metadata_pda(BONK_MINT): metadata_account_bytes(BONK_MINT, "Bonk", "Bonk", BONK_URI),
    })
    fetcher = FakeFetcher({BONK_URI: {"symbol": "BONK", "image": "https://arweave.net/img"}})

    metadata = asyncio.run(SDKMetadataResolver(rpc, fetcher).resolve(BONK_MINT))

    assert metadata.name == "Bonk"
    assert metadata.symbol == "BONK"
    assert metadata.image == "https://arweave.net/img"


def test_sdk_failed_offchain_fetch_keeps_onchain_fields():
    rpc = FakeRPC(accounts={
        metadata_pda(BONK_MINT): metadata_account_bytes(BONK_MINT, "Bonk", "Bonk", BONK_URI),
    })

    metadata = asyncio.run(SDKMetadataResolver(rpc, FakeFetcher()).resolve(BONK_MINT))

    assert (metadata.name, metadata.symbol, metadata.image) == ("Bonk", "Bonk", None)


def test_sdk_without_uri_hands_over_to_legacy():
    rpc = FakeRPC(accounts={
        metadata_pda(USDC_MINT): metadata_account_bytes(USDC_MINT, "USD Coin", "USDC", ""),
    })
    legacy = LegacyMetadataResolver(rpc, FakeFetcher())

    metadata = asyncio.run(SDKMetadataResolver(rpc, FakeFetcher(), legacy=legacy).resolve(USDC_MINT))

    assert (metadata.name, metadata.symbol, metadata.image) == ("USD Coin", "USDC", None)
    assert len(rpc.calls) == 2


def test_sdk_without_uri_and_no_legacy():
    rpc = FakeRPC(accounts={
        metadata_pda(USDC_MINT): metadata_account_bytes(USDC_MINT, "USD Coin", "USDC", ""),
    })

    metadata = asyncio.run(SDKMetadataResolver(rpc, FakeFetcher()).resolve(USDC_MINT))

    assert (metadata.name, metadata.symbol) == ("USD Coin", "USDC")
    assert len(rpc.calls) == 1


def test_sdk_client_errors_are_strategy_failures():
    rpc = FakeRPC(accounts={
        metadata_pda(USDC_MINT): metadata_account_bytes(USDC_MINT, "USD Coin", "USDC", "", key=6),
        metadata_pda(WSOL_MINT): RuntimeError("connection reset"),
    })
    resolver = SDKMetadataResolver(rpc, FakeFetcher())

    assert asyncio.run(resolver.resolve(USDC_MINT)) is None
    assert asyncio.run(resolver.resolve(BONK_MINT)) is None
    assert asyncio.run(resolver.resolve(WSOL_MINT)) is None


def test_not_applicable_outcomes_log_below_warning(caplog):
    resolvers = [
        ExtensionMetadataResolver(FakeRPC(), FakeFetcher()),
        LegacyMetadataResolver(FakeRPC(), FakeFetcher()),
    ]

    with caplog.at_level(logging.INFO):
        for resolver in resolvers:
            assert asyncio.run(resolver.resolve(BONK_MINT)) is None

    assert "No account found" in caplog.text
    assert "No metadata found" in caplog.text
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
