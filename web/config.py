"""Configuration for the HTTP API"""
from pathlib import Path

from dotenv import load_dotenv

from metadata_enricher.backend.config import EnricherConfig

PROJECT_ROOT = Path(__file__).parent.parent

# Load environment variables
load_dotenv(PROJECT_ROOT / ".env")

API_TITLE = "Token Metadata Enricher"
DEFAULT_PAGE_LIMIT = 100
HOST = "0.0.0.0"
PORT = 8000


def get_config() -> EnricherConfig:
    """Resolve configuration from the (dotenv-augmented) environment"""
    return EnricherConfig.from_env()
