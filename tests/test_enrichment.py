import asyncio

import pytest

from conftest import BONK_MINT, FakeFetcher, FakeRPC
from metadata_enricher.backend import enrichment
from metadata_enricher.backend.enrichment import EnrichmentDriver
from metadata_enricher.backend.errors import TokenStoreError
from metadata_enricher.backend.models import TokenMetadata
from metadata_enricher.backend.orchestrator import MetadataOrchestrator
from metadata_enricher.backend.token_store import TokenStore


class FakeOrchestrator:
    def __init__(self, results):
        self.results = results
        self.calls = []

    async def resolve(self, address):
        self.calls.append(address)
        result = self.results.get(address)
        if isinstance(result, Exception):
            raise result
        return result


class FailingWriteStore(TokenStore):
    def __init__(self, failing_address):
        super().__init__(":memory:")
        self.failing_address = failing_address

    def update_token_metadata(self, address, metadata):
        if address == self.failing_address:
            raise TokenStoreError("disk I/O error")
        super().update_token_metadata(address, metadata)


class BrokenPageStore(TokenStore):
    def get_tokens_page(self, limit, offset=0, only_unenriched=False):
        raise TokenStoreError("no such table: tokens")


@pytest.fixture
def driver_sleeps(monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(enrichment, "sleep", fake_sleep)
    return delays


def seed(store, *addresses):
    store.insert_tokens([
        {"address": address, "launch_date": f"2025-01-0{i + 1}T00:00:00Z"}
        for i, address in enumerate(addresses)
    ])


def test_failed_write_is_counted_and_batch_continues(driver_sleeps):
    store = FailingWriteStore("TokenY11")
    seed(store, "TokenX11", "TokenY11")
    orchestrator = FakeOrchestrator({
        "TokenX11": TokenMetadata(name="X", symbol="X"),
        "TokenY11": TokenMetadata(name="Y", symbol="Y"),
    })

    result = asyncio.run(EnrichmentDriver(store, orchestrator).run_batch(limit=10))

    assert (result.processed, result.succeeded, result.failed) == (2, 1, 1)
    assert result.next_offset == 2
    assert store.get_token("TokenX11")["enriched"] == 1
    assert store.get_token("TokenY11")["enriched"] == 0


def test_tokens_processed_in_launch_order_with_delay_between(driver_sleeps):
    store = TokenStore(":memory:")
    seed(store, "TokenA11", "TokenB11", "TokenC11")
    orchestrator = FakeOrchestrator({
        "TokenA11": TokenMetadata(name="A", symbol="A"),
        "TokenB11": None,
        "TokenC11": RuntimeError("unexpected"),
    })

    result = asyncio.run(EnrichmentDriver(store, orchestrator, delay_ms=4).run_batch(limit=10))

    assert orchestrator.calls == ["TokenA11", "TokenB11", "TokenC11"]
    assert (result.succeeded, result.failed) == (1, 2)
    assert driver_sleeps == [0.004, 0.004]


def test_page_offset_and_unenriched_filter(driver_sleeps):
    store = TokenStore(":memory:")
    seed(store, "TokenA11", "TokenB11", "TokenC11")
    store.update_token_metadata("TokenB11", TokenMetadata(name="B", symbol="B"))
    orchestrator = FakeOrchestrator({})

    asyncio.run(EnrichmentDriver(store, orchestrator).run_batch(limit=1, offset=1, only_unenriched=True))

    assert orchestrator.calls == ["TokenC11"]


def test_empty_page(driver_sleeps):
    result = asyncio.run(
        EnrichmentDriver(TokenStore(":memory:"), FakeOrchestrator({})).run_batch(offset=300)
    )

    assert result.to_response() == {
        "success": True,
        "message": "No tokens need metadata enrichment",
        "tokensProcessed": 0,
        "successCount": 0,
        "failCount": 0,
        "offset": 300,
        "nextOffset": 300,
    }
    assert driver_sleeps == []


def test_page_read_error_propagates():
    driver = EnrichmentDriver(BrokenPageStore(":memory:"), FakeOrchestrator({}))

    with pytest.raises(TokenStoreError):
        asyncio.run(driver.run_batch())


def test_unresolvable_token_leaves_row_untouched(driver_sleeps):
    store = TokenStore(":memory:")
    store.insert_tokens([{"address": BONK_MINT, "symbol": "BONK", "launch_date": "2025-01-01T00:00:00Z"}])
    orchestrator = MetadataOrchestrator.default(FakeRPC(), FakeFetcher())

    result = asyncio.run(EnrichmentDriver(store, orchestrator).run_batch())

    assert (result.processed, result.succeeded, result.failed) == (1, 0, 1)
    token = store.get_token(BONK_MINT)
    assert token["enriched"] == 0
    assert token["name"] is None
    assert token["symbol"] == "BONK"


def test_unenriched_cursor_steps_over_failed_rows_only(driver_sleeps):
    store = TokenStore(":memory:")
    seed(store, "TokenA11", "TokenB11", "TokenC11", "TokenD11")
    orchestrator = FakeOrchestrator({
        address: TokenMetadata(name=address, symbol="T")
        for address in ("TokenA11", "TokenB11", "TokenC11", "TokenD11")
    })
    driver = EnrichmentDriver(store, orchestrator)

    first = asyncio.run(driver.run_batch(limit=2, offset=0, only_unenriched=True))
    second = asyncio.run(driver.run_batch(limit=2, offset=first.next_offset, only_unenriched=True))

    assert first.next_offset == 0
    assert second.processed == 2
    assert orchestrator.calls == ["TokenA11", "TokenB11", "TokenC11", "TokenD11"]


def test_unenriched_cursor_after_failures(driver_sleeps):
    store = TokenStore(":memory:")
    seed(store, "TokenA11", "TokenB11", "TokenC11")
    orchestrator = FakeOrchestrator({"TokenB11": TokenMetadata(name="B", symbol="B")})
    driver = EnrichmentDriver(store, orchestrator)

    first = asyncio.run(driver.run_batch(limit=2, offset=0, only_unenriched=True))
    second = asyncio.run(driver.run_batch(limit=2, offset=first.next_offset, only_unenriched=True))

    assert (first.failed, first.next_offset) == (1, 1)
    assert orchestrator.calls == ["TokenA11", "TokenB11", "TokenC11"]
    assert second.processed == 1
