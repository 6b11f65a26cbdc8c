"""Batch metadata enrichment driver"""
from asyncio import sleep
import logging

from .models import BatchResult
from .orchestrator import MetadataOrchestrator
from .token_store import TokenStore

logger = logging.getLogger(__name__)


class EnrichmentDriver:
    """
    Enrich one page of tokens at a time

    Tokens are resolved and written strictly in page order. A failure on
    one token (no metadata, store error) is counted and never stops the
    batch; only a failed page read aborts it.
    """

    def __init__(
        self,
        store: TokenStore,
        orchestrator: MetadataOrchestrator,
        delay_ms: float = 4
    ):
        """
        Args:
            store: Token store to read pages from and write results to
            orchestrator: Resolver chain used for each token
            delay_ms: Pause between tokens, bounds the outbound request rate
        """
        self.store = store
        self.orchestrator = orchestrator
        self.delay_ms = delay_ms

    async def run_batch(
        self,
        limit: int = 100,
        offset: int = 0,
        only_unenriched: bool = False
    ) -> BatchResult:
        """
        Enrich a page of tokens

        Args:
            limit: Page size
            offset: Page start
            only_unenriched: Skip rows that were already enriched

        Returns:
            BatchResult with counts and the next offset
        """
        logger.info(f"Starting metadata enrichment (offset: {offset}, limit: {limit})")

        tokens = self.store.get_tokens_page(limit, offset, only_unenriched)

        if not tokens:
            logger.info("No tokens need enrichment")
            return BatchResult(
                processed=0, succeeded=0, failed=0, offset=offset, only_unenriched=only_unenriched
            )

        logger.info(f"Found {len(tokens)} tokens to enrich")

        succeeded = 0
        failed = 0

        for i, token in enumerate(tokens):
            logger.info(f"[{i + 1}/{len(tokens)}] {token.address}")

            try:
                metadata = await self.orchestrator.resolve(token.address)

                if metadata is None:
                    failed += 1
                else:
                    self.store.update_token_metadata(token.address, metadata)
                    logger.info(f"Saved metadata for {token.address}")
                    succeeded += 1
            except Exception as e:
                logger.error(f"Error enriching {token.address}: {e}")
                failed += 1

            if i < len(tokens) - 1 and self.delay_ms > 0:
                await sleep(self.delay_ms / 1000)

        result = BatchResult(
            processed=len(tokens),
            succeeded=succeeded,
            failed=failed,
            offset=offset,
            only_unenriched=only_unenriched
        )
        logger.info(
            f"Batch complete - offset: {offset}, processed: {result.processed}, "
            f"success: {succeeded}, failed: {failed}"
        )
        return result
