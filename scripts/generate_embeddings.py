"""
Generate Embeddings for Knowledge-Base Documents

Documents are normally embedded lazily, the first time a retrieval
considers them. This script embeds them ahead of time:
1. Fetches documents from the database
2. Generates embeddings through the configured embedding API
3. Writes the vectors back to the documents table

Fallback vectors (embedding API unreachable) are never written.

Usage:
    # Embed every document without a vector
    python scripts/generate_embeddings.py

    # Only one topic
    python scripts/generate_embeddings.py --topic "Calculus I"

    # Re-embed everything (e.g. after switching embedding model)
    python scripts/generate_embeddings.py --force

    # Limit number of documents to process
    python scripts/generate_embeddings.py --limit 100
"""

import sys
import asyncio
import logging
import argparse
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from tqdm import tqdm

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from professor_ai.rag import BackfillReport, RAGService, get_rag_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Load environment
load_dotenv()


class EmbeddingPipeline:
    """Pipeline for embedding stored documents."""

    def __init__(self, rag_service: Optional[RAGService] = None):
        """Initialize pipeline."""
        self.rag = rag_service if rag_service is not None else RAGService(get_rag_config())
        self.config = self.rag.config

        logger.info(f"Embedding model: {self.config.embedding_model}")
        logger.info(f"Embedding dimension: {self.config.embedding_dimension}")
        logger.info(f"Embedding endpoint: {self.config.embedding_api_url}")

    async def run(
        self,
        topic: Optional[str] = None,
        force: bool = False,
        limit: Optional[int] = None
    ) -> BackfillReport:
        """
        Run the embedding pipeline.

        Args:
            topic: Only documents with this topic
            force: Re-embed documents that already have a vector
            limit: Maximum number of documents to embed

        Returns:
            BackfillReport with statistics
        """
        logger.info("=" * 80)
        logger.info("STARTING EMBEDDING GENERATION PIPELINE")
        logger.info("=" * 80)

        report = await self.rag.backfill_embeddings(
            topic=topic,
            force=force,
            limit=limit,
            progress=lambda pending: tqdm(pending, desc="Embedding documents")
        )

        if not report.embedded and not report.skipped_fallback:
            logger.warning("No documents needed embedding.")

        self._print_summary(report)
        return report

    def _print_summary(self, report: BackfillReport):
        """Print pipeline execution summary."""
        logger.info("\n" + "=" * 80)
        logger.info("EMBEDDING GENERATION SUMMARY")
        logger.info("=" * 80)
        logger.info(f"Documents found:          {report.documents}")
        logger.info(f"Already embedded:         {report.already_embedded}")
        logger.info(f"Embedded now:             {report.embedded}")
        logger.info(f"Skipped (API fallback):   {report.skipped_fallback}")
        logger.info("=" * 80)


async def _run(args) -> BackfillReport:
    pipeline = EmbeddingPipeline()
    try:
        return await pipeline.run(topic=args.topic, force=args.force, limit=args.limit)
    finally:
        await pipeline.rag.aclose()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Generate embeddings for knowledge-base documents"
    )
    parser.add_argument(
        "--topic",
        type=str,
        help="Process only documents with this topic"
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Re-embed documents that already have an embedding"
    )
    parser.add_argument(
        "--limit",
        type=int,
        help="Limit number of documents to process"
    )

    args = parser.parse_args()

    try:
        report = asyncio.run(_run(args))
    except Exception as e:
        logger.error(f"Pipeline failed: {e}", exc_info=True)
        sys.exit(1)

    if report.skipped_fallback:
        logger.warning("Some documents were not embedded because the embedding API was unavailable")
        sys.exit(2)


if __name__ == "__main__":
    main()
