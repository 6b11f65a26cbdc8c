"""Base interface for metadata resolution strategies"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

from ..errors import OffchainFetchError
from ..models import OffchainMetadata, TokenMetadata

logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"
UNKNOWN_SYMBOL = "UNKNOWN"


def onchain_only(name: Optional[str], symbol: Optional[str]) -> TokenMetadata:
    """Metadata built from on-chain fields alone"""
    return TokenMetadata(
        name=name or UNKNOWN_NAME,
        symbol=symbol or UNKNOWN_SYMBOL,
        image=None,
    )


class MetadataResolver(ABC):
    """One strategy for turning a mint address into TokenMetadata"""

    strategy: str

    def __init__(self, rpc, fetcher, max_retries: int = 3, base_delay_ms: float = 100):
        """
        Args:
            rpc: Shared SolanaRPCClient
            fetcher: Shared OffchainMetadataFetcher
            max_retries: Retries for each RPC call
            base_delay_ms: Base retry delay in milliseconds
        """
        self.rpc = rpc
        self.fetcher = fetcher
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms

    @abstractmethod
    async def resolve(self, address: str) -> Optional[TokenMetadata]:
        """Resolve metadata for a mint, or None if this strategy cannot"""
        pass

    async def fetch_offchain(self, uri: str, address: str) -> Optional[OffchainMetadata]:
        """Fetch off-chain JSON, returning None when it is unavailable"""
        if not uri:
            return None

        try:
            return await self.fetcher.fetch(uri)
        except OffchainFetchError as e:
            logger.warning(f"Failed to fetch URI {uri} for {address}: {e}")
            return None
