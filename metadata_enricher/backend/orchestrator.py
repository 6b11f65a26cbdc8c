"""Ordered fallback across metadata resolution strategies"""
import logging
from typing import List, Optional, Sequence, Tuple

from solders.pubkey import Pubkey

from .models import TokenMetadata
from .resolvers import (
    MetadataResolver,
    ExtensionMetadataResolver,
    SDKMetadataResolver,
    LegacyMetadataResolver,
)

logger = logging.getLogger(__name__)


def is_valid_address(address: str) -> bool:
    """Check that a string decodes to a 32-byte public key"""
    try:
        Pubkey.from_string(address)
        return True
    except ValueError:
        return False


class MetadataOrchestrator:
    """
    Try each resolver in priority order and return the first hit

    A resolver that returns None or raises simply hands over to the
    next one. When every strategy fails the result is None.
    """

    def __init__(self, resolvers: Sequence[MetadataResolver]):
        self.resolvers: List[MetadataResolver] = list(resolvers)

    @classmethod
    def default(
        cls,
        rpc,
        fetcher,
        sdk_legacy_fallback: bool = True,
        max_retries: int = 3,
        base_delay_ms: float = 100
    ) -> "MetadataOrchestrator":
        """
        Build the standard Token-2022 -> Metaplex -> manual RPC chain

        Args:
            rpc: Shared SolanaRPCClient
            fetcher: Shared OffchainMetadataFetcher
            sdk_legacy_fallback: Let the Metaplex resolver hand URI-less
                accounts to the manual resolver
        """
        legacy = LegacyMetadataResolver(rpc, fetcher, max_retries, base_delay_ms)
        sdk = SDKMetadataResolver(
            rpc,
            fetcher,
            legacy=legacy if sdk_legacy_fallback else None,
            max_retries=max_retries,
            base_delay_ms=base_delay_ms
        )
        extension = ExtensionMetadataResolver(rpc, fetcher, max_retries, base_delay_ms)
        return cls([extension, sdk, legacy])

    async def resolve_with_strategy(self, address: str) -> Tuple[Optional[str], Optional[TokenMetadata]]:
        """
        Resolve metadata and report which strategy produced it

        Returns:
            (strategy name, metadata), or (None, None) if all strategies failed
        """
        logger.info(f"Processing token: {address}")

        if not is_valid_address(address):
            logger.warning(f"Invalid mint address: {address}")
            return None, None

        for resolver in self.resolvers:
            try:
                metadata = await resolver.resolve(address)
            except Exception as e:
                logger.warning(f"{resolver.strategy} failed for {address}: {e}")
                continue

            if metadata is not None:
                logger.info(
                    f"SUCCESS via {resolver.strategy}: {metadata.name} ({metadata.symbol})"
                )
                return resolver.strategy, metadata

        logger.info(f"FAILED: No metadata found for {address}")
        return None, None

    async def resolve(self, address: str) -> Optional[TokenMetadata]:
        _, metadata = await self.resolve_with_strategy(address)
        return metadata
