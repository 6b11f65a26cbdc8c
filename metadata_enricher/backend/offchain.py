"""Off-chain metadata JSON fetching (IPFS, Arweave, plain HTTP)"""
import asyncio
import json
import logging
from typing import Dict, Any, Optional, Tuple

import aiohttp

from .config import DEFAULT_IPFS_GATEWAY
from .errors import OffchainFetchError
from .models import OffchainMetadata

logger = logging.getLogger(__name__)

IPFS_SCHEME = "ipfs://"
FETCH_TIMEOUT_SECONDS = 10

# Containers pump.fun style metadata uses to nest social links
SOCIAL_CONTAINERS = ("extensions", "socials", "links", "social")


def normalize_ipfs_uri(uri: str, gateway: str = DEFAULT_IPFS_GATEWAY) -> str:
    """
    Convert an ipfs:// URI into an HTTP gateway URL

    Args:
        uri: Metadata URI (ipfs://, https://, ...)
        gateway: Gateway prefix ending with a slash

    Returns:
        HTTP-accessible URL; non-IPFS URIs are returned unchanged
    """
    if uri.startswith(IPFS_SCHEME):
        return gateway + uri[len(IPFS_SCHEME):]
    return uri


def _first_present(data: Dict[str, Any], paths: Tuple[Tuple[str, ...], ...]) -> Optional[Any]:
    for path in paths:
        node: Any = data
        for key in path:
            if not isinstance(node, dict):
                node = None
                break
            node = node.get(key)
        if node:
            return node
    return None


def _social_paths(key: str) -> Tuple[Tuple[str, ...], ...]:
    return ((key,),) + tuple((container, key) for container in SOCIAL_CONTAINERS)


TWITTER_PATHS = _social_paths("twitter")
TELEGRAM_PATHS = _social_paths("telegram")
WEBSITE_PATHS = _social_paths("website") + (("external_url",),)


def extract_social_links(data: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """Pick twitter/website/telegram from the places metadata JSON keeps them"""
    return {
        'twitter': _first_present(data, TWITTER_PATHS),
        'website': _first_present(data, WEBSITE_PATHS),
        'telegram': _first_present(data, TELEGRAM_PATHS),
    }


def parse_offchain_metadata(data: Dict[str, Any]) -> OffchainMetadata:
    """Map a metadata JSON document onto OffchainMetadata"""
    socials = extract_social_links(data)
    return OffchainMetadata(
        name=data.get('name') or None,
        symbol=data.get('symbol') or None,
        description=data.get('description') or None,
        image=data.get('image') or None,
        twitter=socials['twitter'],
        website=socials['website'],
        telegram=socials['telegram'],
        show_name=data.get('showName') or None,
        created_on=data.get('createdOn') or None,
    )


class OffchainMetadataFetcher:
    """Fetch and parse the JSON document a metadata URI points to"""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        gateway: str = DEFAULT_IPFS_GATEWAY,
        timeout: float = FETCH_TIMEOUT_SECONDS
    ):
        self.session = session
        self.gateway = gateway
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def fetch(self, uri: str) -> OffchainMetadata:
        """
        Fetch off-chain metadata

        Args:
            uri: Metadata URI from the on-chain account

        Returns:
            Parsed OffchainMetadata

        Raises:
            OffchainFetchError: on non-2xx status, timeout, transport
                error or a body that is not a JSON object
        """
        url = normalize_ipfs_uri(uri, self.gateway)

        try:
            async with self.session.get(
                url,
                headers={'Accept': 'application/json'},
                timeout=self.timeout
            ) as resp:
                if resp.status < 200 or resp.status >= 300:
                    raise OffchainFetchError(f"{url} returned HTTP {resp.status}")
                body = await resp.read()
        except asyncio.TimeoutError as e:
            raise OffchainFetchError(f"Timed out fetching {url}") from e
        except aiohttp.ClientError as e:
            raise OffchainFetchError(f"Failed to fetch {url}: {e}") from e

        try:
            data = json.loads(body.decode("utf-8-sig"))
        except (UnicodeDecodeError, ValueError) as e:
            raise OffchainFetchError(f"Invalid JSON at {url}") from e

        if not isinstance(data, dict):
            raise OffchainFetchError(f"Metadata at {url} is not a JSON object")

        logger.debug(f"Fetched JSON metadata from {url}: {data}")
        return parse_offchain_metadata(data)
