"""Runtime configuration and logging setup"""
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional


DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"
DEFAULT_IPFS_GATEWAY = "https://ipfs.io/ipfs/"
DEFAULT_DB_PATH = "data/tokens.db"
DEFAULT_DUNE_QUERY_ID = 4900797

TRUTHY = {"1", "true", "yes", "on"}


class Worker(Enum):
    """Enrichment worker identity, selects the RPC endpoint"""
    PRIMARY = "1"
    SECONDARY = "2"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Worker":
        if value is None:
            return cls.PRIMARY
        try:
            return cls(value.strip())
        except ValueError:
            return cls.PRIMARY


def _flag(value: Optional[str], default: bool = False) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in TRUTHY


@dataclass(frozen=True)
class EnricherConfig:
    """Configuration resolved once at process start"""
    rpc_primary: str = DEFAULT_RPC_URL
    rpc_secondary: Optional[str] = None
    worker_id: Worker = Worker.PRIMARY
    quiet: bool = False
    db_path: str = DEFAULT_DB_PATH
    ipfs_gateway: str = DEFAULT_IPFS_GATEWAY
    request_delay_ms: int = 4
    sdk_legacy_fallback: bool = True
    dune_api_key: Optional[str] = None
    dune_query_id: int = DEFAULT_DUNE_QUERY_ID

    @property
    def rpc_endpoint(self) -> str:
        """RPC URL for this worker; secondary workers fall back to primary"""
        if self.worker_id == Worker.SECONDARY and self.rpc_secondary:
            return self.rpc_secondary
        return self.rpc_primary

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EnricherConfig":
        """
        Build a configuration from environment variables

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            EnricherConfig instance
        """
        env = os.environ if environ is None else environ

        return cls(
            rpc_primary=env.get("SOLANA_RPC_URL") or DEFAULT_RPC_URL,
            rpc_secondary=env.get("SOLANA_RPC_URL_2") or None,
            worker_id=Worker.parse(env.get("WORKER_ID")),
            quiet=_flag(env.get("QUIET")),
            db_path=env.get("TOKEN_DB_PATH") or DEFAULT_DB_PATH,
            ipfs_gateway=env.get("IPFS_GATEWAY") or DEFAULT_IPFS_GATEWAY,
            request_delay_ms=int(env.get("ENRICH_DELAY_MS") or 4),
            sdk_legacy_fallback=_flag(env.get("SDK_LEGACY_FALLBACK"), default=True),
            dune_api_key=env.get("DUNE_API_KEY") or None,
            dune_query_id=int(env.get("DUNE_QUERY_ID") or DEFAULT_DUNE_QUERY_ID),
        )


def configure_logging(quiet: bool = False):
    """Configure root logging; quiet mode keeps errors only"""
    level = logging.ERROR if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(level)
