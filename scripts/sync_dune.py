#!/usr/bin/env python3
"""Insert newly launched tokens from the Dune query into the token store"""
import asyncio
import json
import os
import sys

import aiohttp
from dotenv import load_dotenv

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from metadata_enricher.backend.config import EnricherConfig, configure_logging
from metadata_enricher.backend.dune_sync import DuneClient, sync_dune
from metadata_enricher.backend.errors import EnricherError
from metadata_enricher.backend.token_store import TokenStore


async def main():
    load_dotenv()
    config = EnricherConfig.from_env()
    configure_logging(config.quiet)

    store = TokenStore(config.db_path)
    try:
        async with aiohttp.ClientSession() as session:
            client = DuneClient(session, config.dune_api_key, config.dune_query_id)
            summary = await sync_dune(store, client)
    except EnricherError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        store.close()

    print(json.dumps(summary, indent=2))


if __name__ == '__main__':
    asyncio.run(main())
