"""Solana RPC client adapter used by the metadata resolvers"""
import json
import logging
from typing import Dict, Any, Optional

from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solders.pubkey import Pubkey

from .config import DEFAULT_RPC_URL

logger = logging.getLogger(__name__)


class SolanaRPCClient:
    """Thin wrapper around AsyncClient for account lookups"""

    def __init__(self, rpc_url: str = DEFAULT_RPC_URL, client: Optional[AsyncClient] = None):
        """
        Initialize Solana RPC Client

        Args:
            rpc_url: Solana RPC endpoint URL
            client: Pre-built AsyncClient to use instead of creating one
        """
        self.rpc_url = rpc_url
        self.client: Optional[AsyncClient] = client

    async def __aenter__(self):
        """Async context manager entry"""
        if self.client is None:
            self.client = AsyncClient(self.rpc_url, commitment=Confirmed)
            logger.info(f"Using RPC endpoint: {self.rpc_url}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()

    async def close(self):
        if self.client:
            await self.client.close()
            self.client = None

    def _require_client(self) -> AsyncClient:
        if not self.client:
            raise RuntimeError("Client not initialized. Use async context manager.")
        return self.client

    async def get_account_data(self, address: str) -> Optional[bytes]:
        """
        Get the raw bytes stored in an account

        Args:
            address: Base58 account address

        Returns:
            Account data, or None if the account does not exist
        """
        client = self._require_client()
        response = await client.get_account_info(Pubkey.from_string(address), commitment=Confirmed)

        if response.value is None:
            return None

        return bytes(response.value.data)

    async def get_parsed_account(self, address: str) -> Optional[Dict[str, Any]]:
        """
        Get the jsonParsed representation of an account

        Args:
            address: Base58 account address

        Returns:
            The parsed payload (e.g. {'type': 'mint', 'info': {...}}),
            an empty dict if the node could not parse the account,
            or None if the account does not exist
        """
        client = self._require_client()
        response = await client.get_account_info_json_parsed(
            Pubkey.from_string(address),
            commitment=Confirmed
        )

        if response.value is None:
            return None

        data = response.value.data
        if not hasattr(data, 'parsed'):
            return {}

        parsed = data.parsed
        if isinstance(parsed, str):
            parsed = json.loads(parsed)

        return parsed if isinstance(parsed, dict) else {}
