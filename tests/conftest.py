import struct

import pytest
from solders.pubkey import Pubkey

from metadata_enricher.backend import retry
from metadata_enricher.backend.errors import OffchainFetchError
from metadata_enricher.backend.metadata_layout import find_metadata_pda
from metadata_enricher.backend.offchain import parse_offchain_metadata

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
BONK_MINT = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"
WSOL_MINT = "So11111111111111111111111111111111111111112"


def borsh_string(value, pad_to=None):
    raw = value.encode("utf-8")
    if pad_to is not None:
        raw = raw.ljust(pad_to, b"\x00")
    return struct.pack("<I", len(raw)) + raw


def metadata_account_bytes(mint, name, symbol, uri, key=4, seller_fee_basis_points=500):
    """Serialized MetadataV1 account prefix, NUL padded like Metaplex stores it"""
    return (
        bytes([key])
        + bytes(32)
        + bytes(Pubkey.from_string(mint))
        + borsh_string(name, pad_to=32)
        + borsh_string(symbol, pad_to=10)
        + borsh_string(uri, pad_to=200)
        + struct.pack("<H", seller_fee_basis_points)
        + bytes([0])
    )


def metadata_pda(mint):
    return str(find_metadata_pda(mint))


def token_2022_mint(name, symbol, uri):
    return {
        "type": "mint",
        "info": {
            "decimals": 6,
            "extensions": [
                {"extension": "metadataPointer", "state": {}},
                {
                    "extension": "tokenMetadata",
                    "state": {"name": name, "symbol": symbol, "uri": uri},
                },
            ],
        },
    }


class FakeRPC:
    """Account lookups served from dicts; Exception values are raised"""

    def __init__(self, accounts=None, parsed=None):
        self.accounts = accounts or {}
        self.parsed = parsed or {}
        self.calls = []

    async def get_account_data(self, address):
        self.calls.append(("data", address))
        value = self.accounts.get(address)
        if isinstance(value, Exception):
            raise value
        return value

    async def get_parsed_account(self, address):
        self.calls.append(("parsed", address))
        value = self.parsed.get(address)
        if isinstance(value, Exception):
            raise value
        return value


class FakeFetcher:
    """Off-chain documents served from a dict keyed by URI"""

    def __init__(self, documents=None):
        self.documents = documents or {}
        self.calls = []

    async def fetch(self, uri):
        self.calls.append(uri)
        document = self.documents.get(uri)
        if document is None:
            raise OffchainFetchError(f"{uri} returned HTTP 404")
        return parse_offchain_metadata(document)


@pytest.fixture(autouse=True)
def sleeps(monkeypatch):
    """Record retry back-off delays instead of sleeping"""
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(retry, "sleep", fake_sleep)
    return delays
