"""Token-2022 metadata extension resolver"""
import logging
from typing import Optional

from ..models import TokenMetadata
from ..retry import with_retry
from .base import MetadataResolver, UNKNOWN_NAME, UNKNOWN_SYMBOL

logger = logging.getLogger(__name__)

TOKEN_METADATA_EXTENSION = "tokenMetadata"


class ExtensionMetadataResolver(MetadataResolver):
    """
    Read metadata embedded in a Token-2022 mint account

    pump.fun style mints carry name, symbol and uri in a tokenMetadata
    extension, so a single jsonParsed account lookup is enough.
    """

    strategy = "token-2022"

    async def resolve(self, address: str) -> Optional[TokenMetadata]:
        parsed = await with_retry(
            lambda: self.rpc.get_parsed_account(address),
            self.max_retries,
            self.base_delay_ms
        )

        if parsed is None:
            logger.info(f"No account found for {address}")
            return None

        if parsed.get('type') != 'mint':
            return None

        extensions = (parsed.get('info') or {}).get('extensions')
        if not extensions:
            return None

        metadata_extension = next(
            (
                ext for ext in extensions
                if isinstance(ext, dict) and ext.get('extension') == TOKEN_METADATA_EXTENSION
            ),
            None
        )
        if not metadata_extension or not metadata_extension.get('state'):
            return None

        state = metadata_extension['state']
        name = state.get('name') or UNKNOWN_NAME
        symbol = state.get('symbol') or UNKNOWN_SYMBOL
        uri = state.get('uri') or ''

        logger.info(f"Found Token-2022 metadata for {address}: {name} ({symbol}) - URI: {uri}")

        offchain = await self.fetch_offchain(uri, address)
        if offchain is None:
            return TokenMetadata(name=name, symbol=symbol, image=None)

        return offchain.merge(name, symbol)
