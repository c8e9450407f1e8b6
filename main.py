"""Command-line entry point for DocChat: ingest documents or start a chat."""

from __future__ import annotations

import argparse
import asyncio
import sqlite3
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from openai import AsyncOpenAI

from docchat import (
    AnswerComposer,
    ChatService,
    ContextRetriever,
    DocChatError,
    EmbeddingService,
    FaissVectorStore,
    IngestionPipeline,
    QueryRewriter,
    SessionLoop,
    TextChunker,
)
from docchat.config import config

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = config.get_logger(__name__)


def positive_int(value: str) -> int:
    """Argparse type for strictly positive integers."""  # noqa: DOC201
    number = int(value)
    if number < 1:
        msg = f"must be a positive integer, got {value}"
        raise argparse.ArgumentTypeError(msg)
    return number


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Build the CLI parser and read command-line arguments."""  # noqa: DOC201
    parser = argparse.ArgumentParser(
        description="Ask questions about your documents.",
    )
    subparsers = parser.add_subparsers(dest="command")

    ingest = subparsers.add_parser("ingest", help="Index a PDF or text document.")
    ingest.add_argument("path", type=Path, help="Document to index.")
    ingest.add_argument(
        "--chunk-size",
        type=positive_int,
        default=None,
        help=f"Characters per chunk (default: {config.CHUNK_SIZE}).",
    )
    ingest.add_argument(
        "--overlap",
        type=int,
        default=None,
        help=f"Characters shared between chunks (default: {config.CHUNK_OVERLAP}).",
    )

    chat = subparsers.add_parser("chat", help="Start an interactive session.")
    chat.add_argument(
        "--top-k",
        type=positive_int,
        default=None,
        help=f"Chunks retrieved per question (default: {config.RETRIEVAL_TOP_K}).",
    )

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "chat"
        args.top_k = None
    return args


def build_client() -> AsyncOpenAI:
    """Create the client shared by the embedding and chat services."""  # noqa: DOC201
    return AsyncOpenAI(
        api_key=config.get_openai_api_key(),
        **config.get_client_options(),
    )


def check_index_dimension(store: FaissVectorStore) -> None:
    """Refuse to start when the index was built with a different embedding size.

    Raises:
        ValueError: If EMBEDDING_DIMENSION is set and differs from the index.
    """
    expected = config.EMBEDDING_DIMENSION
    actual = store.dimension
    if expected is None or actual is None:
        return
    if expected != actual:
        msg = (
            f"Index at {store.index_path} holds {actual}-dimensional vectors "
            f"but EMBEDDING_DIMENSION is {expected}"
        )
        raise ValueError(msg)


def build_session(client: AsyncOpenAI, top_k: int | None = None) -> SessionLoop:
    """Wire the answering pipeline from configuration.

    Raises:
        ValueError: If the stored index does not match the configured dimension.
    """  # noqa: DOC201
    store = FaissVectorStore()
    store.load()
    check_index_dimension(store)
    if store.size == 0:
        logger.warning("Vector index is empty; run `ingest` first")

    rewrite_llm = ChatService(
        client=client,
        temperature=config.QUERY_REWRITE_TEMPERATURE,
        max_tokens=config.QUERY_REWRITE_MAX_TOKENS,
    )
    answer_llm = ChatService(client=client)

    return SessionLoop(
        rewriter=QueryRewriter(rewrite_llm),
        retriever=ContextRetriever(EmbeddingService(client=client), store),
        composer=AnswerComposer(answer_llm),
        top_k=top_k,
    )


async def run_chat(top_k: int | None) -> int:
    """Run an interactive session and return its exit code."""  # noqa: DOC201
    client = build_client()
    try:
        session = build_session(client, top_k=top_k)
    except (DocChatError, ValueError, sqlite3.Error, OSError):
        logger.exception("Unable to start chat session")
        await client.close()
        return 1

    try:
        return await session.run()
    finally:
        await client.close()


async def run_ingest(path: Path, chunk_size: int | None, overlap: int | None) -> int:
    """Index one document and return an exit code."""  # noqa: DOC201
    if not path.exists():
        logger.error("Document not found: %s", path)
        return 1

    client = build_client()
    try:
        pipeline = IngestionPipeline(
            embedding_service=EmbeddingService(client=client),
            vector_store=FaissVectorStore(),
            chunker=TextChunker(chunk_size=chunk_size, overlap=overlap),
        )
        stored = await pipeline.process_document(path)
    except (DocChatError, ValueError, sqlite3.Error, OSError):
        logger.exception("Ingestion failed for %s", path)
        return 1
    finally:
        await client.close()

    logger.info("Indexed %d chunks from %s", stored, path)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Validate configuration and dispatch to the selected command."""  # noqa: DOC201
    args = parse_args(argv)

    config.setup_logging()

    try:
        config.validate()
    except ValueError:
        logger.exception("Configuration invalid")
        return 1

    if args.command == "ingest":
        return asyncio.run(run_ingest(args.path, args.chunk_size, args.overlap))

    return asyncio.run(run_chat(args.top_k))


if __name__ == "__main__":
    sys.exit(main())
