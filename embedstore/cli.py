"""
Command-line tool to build, query, export, and benchmark document stores.

Examples:
    embedstore build --csv data.csv --id-col id --text-col text
    embedstore query --db vectors.sqlite --q "search query" --filter lang=en
    embedstore export --db vectors.sqlite --out vectors.jsonl
    embedstore bench --db vectors.sqlite
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Callable, Sequence

from .config import Settings, get_settings, make_embedder, setup_logging
from .core.errors import EmbedStoreError
from .core.store import open_store
from .core.vectors.vector_policies import BackendKind
from .ingest import build_from_csv

logger = logging.getLogger(__name__)

BENCH_QUERIES = (
    "machine learning artificial intelligence",
    "data science analytics statistics",
    "web development programming coding",
    "database management systems",
    "natural language processing",
    "computer vision image recognition",
    "deep learning neural networks",
    "software engineering development",
    "cloud computing infrastructure",
    "cybersecurity information security",
)


def parse_filter(raw: str | None) -> dict[str, str]:
    """Parse `"k=v,k2=v2"` into a filter mapping; pairs without `=` are ignored."""

    if not raw:
        return {}
    filters: dict[str, str] = {}
    for pair in raw.split(","):
        key, sep, value = pair.partition("=")
        if not sep:
            continue
        filters[key.strip()] = value.strip()
    return filters


def _split_columns(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [column.strip() for column in raw.split(",") if column.strip()]


def _require_existing(path: str) -> None:
    if not Path(path).exists():
        raise FileNotFoundError(f"Database file not found: {path}")


def cmd_build(args: argparse.Namespace) -> int:
    csv_path = Path(args.csv)
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")
    if Path(args.out).exists() and not args.append:
        raise FileExistsError(f"Output already exists: {args.out} (use --append to add to it)")

    embedder = make_embedder(args.model, args.dim)
    with open_store(args.out, args.format, embedder=embedder) as store:
        processed = build_from_csv(
            store,
            embedder,
            csv_path,
            id_column=args.id_col,
            text_column=args.text_col,
            meta_columns=_split_columns(args.meta_cols),
            batch_size=args.batch,
            normalize_embeddings=args.normalize,
        )
        if not args.no_index:
            store.create_indexes()

    print(f"Database built successfully! ({processed} documents)")
    return 0


def cmd_query(args: argparse.Namespace) -> int:
    _require_existing(args.db)
    embedder = make_embedder(args.model, args.dim)
    with open_store(args.db, args.format, embedder=embedder) as store:
        results = store.search(args.q, top_k=args.topk, filters=parse_filter(args.filter))

    output = {
        "query": args.q,
        "results": [result.to_dict(precision=4) for result in results],
    }
    print(json.dumps(output, indent=4, ensure_ascii=False))
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    _require_existing(args.db)
    with open_store(args.db, args.db_format) as store:
        if args.format == "csv":
            count = store.export_to_csv(args.out)
        else:
            count = store.export_to_jsonl(args.out)
    print(f"Export completed successfully! ({count} documents)")
    return 0


def cmd_bench(args: argparse.Namespace) -> int:
    _require_existing(args.db)
    embedder = make_embedder(args.model, args.dim)
    with open_store(args.db, args.format, embedder=embedder) as store:
        document_count = store.get_document_count()
        print(f"Database: {args.db}")
        print(f"Documents: {document_count}")
        print(f"Test queries: {args.queries}")
        print(f"Top-K: {args.topk}\n")

        if document_count == 0:
            print("No documents in database. Run 'build' command first.")
            return 0
        if args.queries <= 0:
            print("Nothing to run: --queries must be > 0.")
            return 0

        queries = [BENCH_QUERIES[i % len(BENCH_QUERIES)] for i in range(args.queries)]
        print("Running search benchmark...")
        started = time.perf_counter()
        total_results = 0
        for index, query in enumerate(queries, start=1):
            total_results += len(store.search(query, top_k=args.topk))
            if index % 10 == 0:
                logger.info("Completed %d queries...", index)
        elapsed = time.perf_counter() - started

    count = len(queries)
    print("\nBenchmark Results:")
    print("==================")
    print(f"Total time: {elapsed:.4f} seconds")
    print(f"Average query time: {elapsed / count * 1000:.2f} ms")
    print(f"Queries per second: {count / elapsed if elapsed > 0 else float('inf'):.2f}")
    print(f"Total results: {total_results}")
    print(f"Average results per query: {total_results / count:.2f}")
    return 0


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    backend_choices = [kind.value for kind in BackendKind]
    default_backend = settings.backend.value if settings.backend is not None else None

    parser = argparse.ArgumentParser(
        prog="embedstore",
        description="Store text documents with embeddings and run similarity search.",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_embedder_options(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--dim", type=int, default=settings.embedding_dimension, help="Embedding dimension")
        sub.add_argument("--model", default=settings.embedding_model, help="Embedding model")

    build = subparsers.add_parser("build", help="Build vector database from CSV file")
    build.add_argument("--csv", required=True, help="Path to CSV file")
    build.add_argument("--id-col", required=True, help="Column name for document ID")
    build.add_argument("--text-col", required=True, help="Column name for text content")
    build.add_argument("--meta-cols", help="Comma-separated metadata columns")
    build.add_argument("--out", default=settings.db_path, help="Output file path")
    build.add_argument("--format", choices=backend_choices, default=default_backend, help="Output format")
    add_embedder_options(build)
    build.add_argument("--batch", type=int, default=settings.batch_size, help="Batch size for processing")
    build.add_argument("--normalize", action="store_true", help="Normalize embeddings")
    build.add_argument("--append", action="store_true", help="Append to existing database")
    build.add_argument(
        "--no-index",
        action="store_true",
        default=not settings.create_indexes,
        help="Skip creating indexes",
    )
    build.set_defaults(handler=cmd_build)

    query = subparsers.add_parser("query", help="Query vector database for similar documents")
    query.add_argument("--db", default=settings.db_path, help="Path to vector database")
    query.add_argument("--q", required=True, help="Search query text")
    query.add_argument("--topk", type=int, default=settings.top_k, help="Number of results to return")
    query.add_argument("--filter", help="Filter by metadata (e.g. 'category=docs,lang=en')")
    query.add_argument("--format", choices=backend_choices, default=default_backend, help="Database format")
    add_embedder_options(query)
    query.set_defaults(handler=cmd_query)

    export = subparsers.add_parser("export", help="Export vector database to different formats")
    export.add_argument("--db", default=settings.db_path, help="Path to input database")
    export.add_argument("--out", required=True, help="Path to output file")
    export.add_argument("--format", choices=["jsonl", "csv"], default="jsonl", help="Output format")
    export.add_argument("--db-format", choices=backend_choices, default=default_backend, help="Input database format")
    export.set_defaults(handler=cmd_export)

    bench = subparsers.add_parser("bench", help="Run performance benchmarks")
    bench.add_argument("--db", default=settings.db_path, help="Path to vector database")
    bench.add_argument("--queries", type=int, default=100, help="Number of test queries")
    bench.add_argument("--topk", type=int, default=settings.top_k, help="Top-k for each query")
    bench.add_argument("--format", choices=backend_choices, default=default_backend, help="Database format")
    add_embedder_options(bench)
    bench.set_defaults(handler=cmd_bench)

    return parser


def main(argv: Sequence[str] | None = None, *, settings: Settings | None = None) -> int:
    settings = settings or get_settings()
    parser = build_parser(settings)
    args = parser.parse_args(argv)
    setup_logging(args.log_level.upper())

    handler: Callable[[argparse.Namespace], int] = args.handler
    try:
        return handler(args)
    except (EmbedStoreError, OSError, ValueError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
