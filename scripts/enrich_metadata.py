#!/usr/bin/env python3
"""Enrichment worker: page through the token store and fill in metadata"""
import argparse
import asyncio
import dataclasses
import os
import sys

import aiohttp
from dotenv import load_dotenv

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from metadata_enricher.backend.config import EnricherConfig, Worker, configure_logging
from metadata_enricher.backend.enrichment import EnrichmentDriver
from metadata_enricher.backend.pipeline import open_orchestrator
from metadata_enricher.backend.token_store import TokenStore


async def run(args, config: EnricherConfig):
    store = TokenStore(config.db_path)
    totals = {'processed': 0, 'succeeded': 0, 'failed': 0}

    try:
        async with aiohttp.ClientSession() as session, open_orchestrator(config, session) as orchestrator:
            driver = EnrichmentDriver(store, orchestrator, config.request_delay_ms)

            offset = args.offset
            batches = 0
            while args.max_batches is None or batches < args.max_batches:
                result = await driver.run_batch(args.limit, offset, args.unenriched)
                batches += 1

                if result.processed == 0:
                    break

                totals['processed'] += result.processed
                totals['succeeded'] += result.succeeded
                totals['failed'] += result.failed

                if not config.quiet:
                    print(f"Batch {batches}: offset {result.offset}, "
                          f"processed {result.processed}, "
                          f"success {result.succeeded}, failed {result.failed}")

                offset = result.next_offset
    finally:
        store.close()

    print(f"\n{'='*70}")
    print(f"Worker {config.worker_id.value} finished")
    print(f"{'='*70}")
    print(f"Processed: {totals['processed']}")
    print(f"Successful: {totals['succeeded']}")
    print(f"Failed: {totals['failed']}")

    return totals


def main():
    parser = argparse.ArgumentParser(description='Enrich token metadata in the token store')
    parser.add_argument('--limit', type=int, default=100, help='Tokens per batch')
    parser.add_argument('--offset', type=int, default=0, help='Starting offset')
    parser.add_argument('--max-batches', type=int, default=None,
                        help='Stop after this many batches (default: until the store is exhausted)')
    parser.add_argument('--unenriched', action='store_true', help='Only process tokens not enriched yet')
    parser.add_argument('--worker-id', choices=[w.value for w in Worker], default=None,
                        help='Worker id, selects the RPC endpoint (overrides WORKER_ID)')
    parser.add_argument('--quiet', action='store_true', help='Log errors only')

    args = parser.parse_args()

    load_dotenv()
    config = EnricherConfig.from_env()
    if args.worker_id is not None:
        config = dataclasses.replace(config, worker_id=Worker.parse(args.worker_id))
    if args.quiet:
        config = dataclasses.replace(config, quiet=True)

    configure_logging(config.quiet)

    asyncio.run(run(args, config))


if __name__ == '__main__':
    main()
