"""HTTP API for token metadata enrichment"""
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

import aiohttp
import uvicorn
from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse

from metadata_enricher.backend.config import configure_logging
from metadata_enricher.backend.dune_sync import DuneClient, sync_dune
from metadata_enricher.backend.enrichment import EnrichmentDriver
from metadata_enricher.backend.errors import ConfigurationError
from metadata_enricher.backend.pipeline import open_orchestrator
from metadata_enricher.backend.token_store import TokenStore

from web.config import API_TITLE, DEFAULT_PAGE_LIMIT, HOST, PORT, get_config
from web.services import format_token, error_body

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the process-wide RPC client, HTTP session and store"""
    config = get_config()
    configure_logging(config.quiet)

    store = TokenStore(config.db_path)
    try:
        async with aiohttp.ClientSession() as session, open_orchestrator(config, session) as orchestrator:
            app.state.config = config
            app.state.session = session
            app.state.store = store
            app.state.driver = EnrichmentDriver(store, orchestrator, config.request_delay_ms)
            yield
    finally:
        store.close()


app = FastAPI(
    title=API_TITLE,
    description="Resolve Solana token metadata and store it",
    lifespan=lifespan
)


def get_store(request: Request) -> TokenStore:
    return request.app.state.store


def get_driver(request: Request) -> EnrichmentDriver:
    return request.app.state.driver


def get_dune_client(request: Request) -> DuneClient:
    config = request.app.state.config
    return DuneClient(request.app.state.session, config.dune_api_key, config.dune_query_id)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.get("/api/enrich-metadata")
async def enrich_metadata(
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1),
    offset: int = Query(0, ge=0),
    unenriched: bool = Query(False),
    driver: EnrichmentDriver = Depends(get_driver)
):
    """Enrich one page of tokens, oldest launch first"""
    try:
        result = await driver.run_batch(limit=limit, offset=offset, only_unenriched=unenriched)
    except Exception as e:
        logger.error(f"Error in metadata enrichment: {e}")
        return JSONResponse(status_code=500, content=error_body("Failed to enrich metadata", e))

    return result.to_response()


@app.get("/api/sync-dune")
async def sync_dune_tokens(
    store: TokenStore = Depends(get_store),
    client: DuneClient = Depends(get_dune_client)
):
    """Insert newly launched tokens from the Dune query"""
    try:
        return await sync_dune(store, client)
    except Exception as e:
        logger.error(f"Error in sync-dune: {e}")
        return JSONResponse(status_code=500, content=error_body("Failed to sync Dune data", e))


@app.get("/api/tokens/{address}")
async def get_token(address: str, store: TokenStore = Depends(get_store)):
    """Single token lookup"""
    try:
        row = store.get_token(address)
    except Exception as e:
        logger.error(f"Error fetching token: {e}")
        return JSONResponse(status_code=500, content=error_body("Failed to fetch token", e))

    if row is None:
        return JSONResponse(status_code=404, content={"error": "Token not found"})

    return {"success": True, "token": format_token(row)}


@app.get("/api/stats")
async def stats(store: TokenStore = Depends(get_store)):
    """Enrichment progress"""
    return store.get_stats()


if __name__ == "__main__":
    uvicorn.run(app, host=HOST, port=PORT)
