"""Metaplex metadata resolver using manual account decoding"""
import logging
from typing import Optional

from ..metadata_layout import find_metadata_pda, decode_metadata_account
from ..models import TokenMetadata
from ..retry import with_retry
from .base import MetadataResolver, onchain_only, UNKNOWN_NAME, UNKNOWN_SYMBOL

logger = logging.getLogger(__name__)


class LegacyMetadataResolver(MetadataResolver):
    """Fetch the metadata PDA over raw RPC and decode it by hand"""

    strategy = "manual-rpc"

    async def resolve(self, address: str) -> Optional[TokenMetadata]:
        metadata_pda = find_metadata_pda(address)

        data = await with_retry(
            lambda: self.rpc.get_account_data(str(metadata_pda)),
            self.max_retries,
            self.base_delay_ms
        )

        if data is None:
            logger.info(f"No metadata found for {address}")
            return None

        account = decode_metadata_account(data)
        if account is None:
            logger.warning(f"Malformed metadata account {metadata_pda} for {address}")
            return None

        logger.info(
            f"Found metadata for {address}: {account.name} ({account.symbol}) - URI: {account.uri}"
        )

        offchain = await self.fetch_offchain(account.uri, address)
        if offchain is None:
            return onchain_only(account.name, account.symbol)

        return offchain.merge(
            offchain.name or account.name or UNKNOWN_NAME,
            offchain.symbol or account.symbol or UNKNOWN_SYMBOL,
        )
