"""Metaplex metadata resolver backed by the metadata program client"""
import logging
from typing import Optional

from ..metaplex import MetaplexMetadataClient
from ..models import TokenMetadata
from .base import MetadataResolver, onchain_only, UNKNOWN_NAME, UNKNOWN_SYMBOL
from .legacy import LegacyMetadataResolver

logger = logging.getLogger(__name__)


class SDKMetadataResolver(MetadataResolver):
    """
    Resolve metadata through MetaplexMetadataClient

    Any client error (missing account, bad layout, RPC failure) is a
    failure of this strategy. When the account has no URI and a legacy
    resolver was supplied, resolution is handed over to it.
    """

    strategy = "metaplex"

    def __init__(
        self,
        rpc,
        fetcher,
        legacy: Optional[LegacyMetadataResolver] = None,
        max_retries: int = 3,
        base_delay_ms: float = 100
    ):
        super().__init__(rpc, fetcher, max_retries, base_delay_ms)
        self.client = MetaplexMetadataClient(rpc)
        self.legacy = legacy

    async def resolve(self, address: str) -> Optional[TokenMetadata]:
        try:
            account = await self.client.fetch_metadata(address)
        except Exception as e:
            logger.info(f"Metaplex fetch failed for {address}: {e}")
            return None

        if not account.uri:
            if self.legacy is None:
                return onchain_only(account.name, account.symbol)

            logger.info(f"No URI found for token {address}, trying direct RPC")
            try:
                return await self.legacy.resolve(address)
            except Exception as e:
                logger.warning(f"Direct RPC fallback failed for {address}: {e}")
                return None

        offchain = await self.fetch_offchain(account.uri, address)
        if offchain is None:
            return onchain_only(account.name, account.symbol)

        return offchain.merge(
            offchain.name or account.name or UNKNOWN_NAME,
            offchain.symbol or account.symbol or UNKNOWN_SYMBOL,
        )
