#!/usr/bin/env python3
"""Resolve token metadata for mint addresses and print it as JSON"""
import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

import aiohttp
from dotenv import load_dotenv

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from metadata_enricher.backend.config import EnricherConfig, configure_logging
from metadata_enricher.backend.pipeline import open_orchestrator


async def fetch_all_metadata(addresses, config: EnricherConfig, output_file: str = None):
    """Resolve metadata for every address, one at a time"""
    results = []

    async with aiohttp.ClientSession() as session, open_orchestrator(config, session) as orchestrator:
        for i, address in enumerate(addresses, 1):
            print(f"[{i}/{len(addresses)}] {address}", file=sys.stderr)
            strategy, metadata = await orchestrator.resolve_with_strategy(address)
            results.append({
                'address': address,
                'strategy': strategy,
                'metadata': metadata.to_dict() if metadata else None,
            })

    output = json.dumps(results, indent=2)
    if output_file:
        output_path = Path(output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(output)
        print(f"\n✓ Saved {len(results)} metadata entries to {output_file}", file=sys.stderr)
    else:
        print(output)

    return results


def main():
    parser = argparse.ArgumentParser(description='Fetch token metadata from on-chain and off-chain sources')
    parser.add_argument('addresses', nargs='+', help='Token mint addresses')
    parser.add_argument('--output', default=None, help='Write JSON to this file instead of stdout')
    args = parser.parse_args()

    load_dotenv()
    config = EnricherConfig.from_env()
    configure_logging(config.quiet)

    asyncio.run(fetch_all_metadata(args.addresses, config, args.output))


if __name__ == '__main__':
    main()
