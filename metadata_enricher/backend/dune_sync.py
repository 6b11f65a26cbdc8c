"""Seed the token store from a Dune Analytics query"""
import logging
import re
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional

import aiohttp

from .config import DEFAULT_DUNE_QUERY_ID
from .errors import ConfigurationError, DuneAPIError
from .token_store import TokenStore

logger = logging.getLogger(__name__)

DUNE_API_URL = "https://api.dune.com/api/v1/query"
PAGE_SIZE = 1000

ADDRESS_PATTERN = re.compile(r">([A-Za-z0-9]{30,50})<")
SYMBOL_PATTERN = re.compile(r">([^<]+)<")


def extract_address(html: Optional[str]) -> Optional[str]:
    """Pull the address out of a Dune HTML link cell"""
    if not html:
        return None
    match = ADDRESS_PATTERN.search(html)
    return match.group(1) if match else None


def extract_symbol(html: Optional[str]) -> Optional[str]:
    """Pull the link text (the symbol) out of a Dune HTML link cell"""
    if not html:
        return None
    match = SYMBOL_PATTERN.search(html)
    return match.group(1) if match else None


def sanitize(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return value.replace("\x00", "")


def dune_row_to_token(row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Convert one Dune result row into a token row

    Returns:
        Token dict, or None if the row has no usable address
    """
    address = sanitize(extract_address(row.get('token') or ''))
    if not address:
        return None

    launch_date = row.get('graduated_date') or datetime.now(timezone.utc).isoformat()

    return {
        'address': address,
        'symbol': sanitize(extract_symbol(row.get('symbol') or '')),
        'launch_date': str(launch_date),
        'category': sanitize(row.get('category')),
        'ath': row.get('ath') or None,
        'ath_last24hrs': row.get('ath_last24hrs') or None,
    }


class DuneClient:
    """Paged reader for Dune query results"""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        api_key: Optional[str],
        query_id: int = DEFAULT_DUNE_QUERY_ID,
        page_size: int = PAGE_SIZE
    ):
        if not api_key:
            raise ConfigurationError("DUNE_API_KEY environment variable is not set")

        self.session = session
        self.api_key = api_key
        self.query_id = query_id
        self.page_size = page_size

    async def fetch_page(self, offset: int) -> Dict[str, Any]:
        url = f"{DUNE_API_URL}/{self.query_id}/results"
        params = {'limit': self.page_size, 'offset': offset}

        async with self.session.get(
            url,
            params=params,
            headers={'x-dune-api-key': self.api_key},
            timeout=aiohttp.ClientTimeout(total=60)
        ) as resp:
            if resp.status != 200:
                raise DuneAPIError(resp.status, resp.reason or "")
            return await resp.json()

    async def fetch_all_rows(self) -> List[Dict[str, Any]]:
        """Fetch every result row, following limit/offset pagination"""
        rows: List[Dict[str, Any]] = []
        offset = 0

        while True:
            logger.info(f"Fetching rows {offset} to {offset + self.page_size}...")
            data = await self.fetch_page(offset)

            result = data.get('result') or {}
            page = result.get('rows') or []
            if not page:
                break

            rows.extend(page)
            offset += self.page_size
            logger.info(f"Fetched {len(rows)} rows so far...")

            total = (result.get('metadata') or {}).get('total_row_count')
            if total and offset >= total:
                break

        return rows


async def sync_dune(store: TokenStore, client: DuneClient) -> Dict[str, Any]:
    """
    Insert tokens from the Dune query that are not in the store yet

    Returns:
        Summary dict for the API response
    """
    rows = await client.fetch_all_rows()

    if not rows:
        return {
            'success': True,
            'message': 'No tokens found in Dune query result',
            'tokensProcessed': 0,
        }

    logger.info(f"Found {len(rows)} tokens from Dune")

    tokens = [token for token in (dune_row_to_token(row) for row in rows) if token]
    logger.info(f"Extracted {len(tokens)} valid token addresses")

    existing = set(store.get_existing_addresses([t['address'] for t in tokens]))
    new_tokens = []
    seen = set()
    for token in tokens:
        if token['address'] in existing or token['address'] in seen:
            continue
        seen.add(token['address'])
        new_tokens.append(token)

    if not new_tokens:
        return {
            'success': True,
            'message': 'All tokens are already in the database',
            'tokensProcessed': 0,
            'totalTokens': len(tokens),
        }

    logger.info(f"Inserting {len(new_tokens)} tokens into database (without metadata)")
    store.insert_tokens(new_tokens)

    return {
        'success': True,
        'message': 'Sync completed successfully',
        'tokensProcessed': len(new_tokens),
        'totalTokens': len(tokens),
        'newTokens': len(new_tokens),
        'existingTokens': len(existing),
    }
