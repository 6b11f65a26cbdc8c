"""Process-wide wiring of the RPC client and resolver chain"""
from contextlib import asynccontextmanager
from typing import AsyncIterator

import aiohttp

from .config import EnricherConfig
from .offchain import OffchainMetadataFetcher
from .orchestrator import MetadataOrchestrator
from .solana_client import SolanaRPCClient


@asynccontextmanager
async def open_orchestrator(
    config: EnricherConfig,
    session: aiohttp.ClientSession
) -> AsyncIterator[MetadataOrchestrator]:
    """
    Open the RPC client and build the resolver chain around it

    The RPC client is closed when the context exits; the session
    belongs to the caller.

    Args:
        config: Resolved configuration
        session: Shared HTTP session for off-chain JSON

    Yields:
        MetadataOrchestrator sharing the opened clients
    """
    async with SolanaRPCClient(config.rpc_endpoint) as rpc:
        fetcher = OffchainMetadataFetcher(session, config.ipfs_gateway)
        yield MetadataOrchestrator.default(
            rpc,
            fetcher,
            sdk_legacy_fallback=config.sdk_legacy_fallback
        )
