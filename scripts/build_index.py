from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from src.corpus.filesystem import FileSystemCorpus
from src.corpus.sqlite import IngestionResult, SQLiteCorpus, SQLiteCorpusConfig
from src.logging_config import configure_logging


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    if Path(".env").exists():
        load_dotenv(".env", override=False)
    parser = argparse.ArgumentParser(description="Index a markdown topic corpus into SQLite.")
    parser.add_argument("corpus", type=Path, help="Corpus root directory")
    parser.add_argument("sqlite", type=Path, help="SQLite database to create or update")
    parser.add_argument("--pattern", default="**/*", help="Glob pattern under the root (default: **/*)")
    parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Clear the index before ingesting instead of skipping unchanged documents.",
    )
    parser.add_argument("--log-level", default="INFO", help="Log level (default: INFO)")
    return parser.parse_args(argv)


def build_index(corpus_root: Path, db_path: Path, *, pattern: str = "**/*", rebuild: bool = False) -> IngestionResult:
    if not corpus_root.is_dir():
        raise FileNotFoundError(f"Corpus directory not found: {corpus_root}")

    index = SQLiteCorpus(SQLiteCorpusConfig(db_path=db_path))
    index.initialize()
    try:
        if rebuild:
            index.delete_all()
        return index.ingest(FileSystemCorpus(corpus_root, pattern=pattern))
    finally:
        index.close()


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args.log_level)
    result = build_index(args.corpus, args.sqlite, pattern=args.pattern, rebuild=args.rebuild)
    print(
        "Indexing complete",
        {
            "documents": result.documents_processed,
            "written": result.documents_written,
            "unchanged": result.documents_unchanged,
            "skipped": result.documents_skipped,
            "removed": result.documents_removed,
            "sections": result.sections_written,
            "examples": result.examples_written,
            "sqlite_db": str(args.sqlite),
        },
    )


if __name__ == "__main__":
    main()
