from __future__ import annotations

import re
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set

import structlog

from src.corpus.base import Corpus
from src.corpus.errors import MalformedDocument, NotFound
from src.models.document import Document
from src.models.section import Example, Section

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class SQLiteCorpusConfig:
    """Configuration for the SQLite-backed corpus index."""

    db_path: Path
    enable_wal: bool = True


@dataclass(slots=True)
class IngestionResult:
    """Summarizes a copy from a source corpus into the index."""

    documents_processed: int = 0
    documents_written: int = 0
    documents_unchanged: int = 0
    documents_skipped: int = 0
    documents_removed: int = 0
    sections_written: int = 0
    examples_written: int = 0


@dataclass(slots=True)
class SectionHit:
    document_id: str
    heading: str
    level: int
    order: int
    score: float


class SQLiteCorpus(Corpus):
    """Persists parsed documents into SQLite with an FTS5 index over section text."""

    def __init__(self, config: SQLiteCorpusConfig) -> None:
        self.config = config
        self._conn: Optional[sqlite3.Connection] = None
        # one connection is shared across request threads
        self._lock = threading.RLock()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            if str(self.config.db_path) != ":memory:":
                Path(self.config.db_path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.config.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys=ON;")
            if self.config.enable_wal:
                self._conn.execute("PRAGMA journal_mode=WAL;")
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def initialize(self) -> None:
        """Create tables and FTS indices if they do not exist."""

        self.conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS documents (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                digest TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS document_tags (
                document_id TEXT NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
                tag TEXT NOT NULL,
                PRIMARY KEY (document_id, tag)
            );

            CREATE INDEX IF NOT EXISTS idx_document_tags_tag ON document_tags (tag);

            CREATE TABLE IF NOT EXISTS sections (
                document_id TEXT NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
                order_index INTEGER NOT NULL,
                heading TEXT NOT NULL,
                level INTEGER NOT NULL,
                body TEXT NOT NULL,
                line INTEGER NOT NULL DEFAULT 0,
                PRIMARY KEY (document_id, order_index)
            );

            CREATE TABLE IF NOT EXISTS examples (
                document_id TEXT NOT NULL,
                section_index INTEGER NOT NULL,
                order_index INTEGER NOT NULL,
                source TEXT NOT NULL,
                language TEXT,
                caption TEXT,
                expected_output TEXT,
                terminated INTEGER NOT NULL DEFAULT 1,
                line INTEGER NOT NULL DEFAULT 0,
                PRIMARY KEY (document_id, section_index, order_index),
                FOREIGN KEY (document_id, section_index)
                    REFERENCES sections(document_id, order_index) ON DELETE CASCADE
            );

            CREATE VIRTUAL TABLE IF NOT EXISTS sections_fts USING fts5(
                document_id UNINDEXED,
                heading,
                body,
                content='sections',
                content_rowid='rowid'
            );

            CREATE TRIGGER IF NOT EXISTS sections_ai AFTER INSERT ON sections BEGIN
                INSERT INTO sections_fts(rowid, document_id, heading, body)
                VALUES (new.rowid, new.document_id, new.heading, new.body);
            END;

            CREATE TRIGGER IF NOT EXISTS sections_ad AFTER DELETE ON sections BEGIN
                INSERT INTO sections_fts(sections_fts, rowid, document_id, heading, body)
                VALUES ('delete', old.rowid, old.document_id, old.heading, old.body);
            END;

            CREATE TRIGGER IF NOT EXISTS sections_au AFTER UPDATE ON sections BEGIN
                INSERT INTO sections_fts(sections_fts, rowid, document_id, heading, body)
                VALUES ('delete', old.rowid, old.document_id, old.heading, old.body);
                INSERT INTO sections_fts(rowid, document_id, heading, body)
                VALUES (new.rowid, new.document_id, new.heading, new.body);
            END;
            """
        )
        self.conn.commit()

    # ------------------------------------------------------------------ read API
    def _iter_ids(self) -> Iterator[str]:
        with self._lock:
            rows = self.conn.execute("SELECT id FROM documents ORDER BY id").fetchall()
        return iter([row["id"] for row in rows])

    def get_document(self, document_id: str) -> Document:
        with self._lock:
            return self._read_document(document_id)

    def _read_document(self, document_id: str) -> Document:
        row = self.conn.execute("SELECT * FROM documents WHERE id = ?", (document_id,)).fetchone()
        if row is None:
            raise NotFound(document_id)

        tags = {
            tag_row["tag"]
            for tag_row in self.conn.execute(
                "SELECT tag FROM document_tags WHERE document_id = ?", (document_id,)
            ).fetchall()
        }
        examples: Dict[int, List[Example]] = {}
        for example_row in self.conn.execute(
            "SELECT * FROM examples WHERE document_id = ? ORDER BY section_index, order_index",
            (document_id,),
        ).fetchall():
            examples.setdefault(example_row["section_index"], []).append(self._row_to_example(example_row))

        sections = [
            Section(
                heading=section_row["heading"],
                level=section_row["level"],
                body=section_row["body"],
                examples=examples.get(section_row["order_index"], []),
                line=section_row["line"],
            )
            for section_row in self.conn.execute(
                "SELECT * FROM sections WHERE document_id = ? ORDER BY order_index",
                (document_id,),
            ).fetchall()
        ]
        return Document(id=row["id"], title=row["title"], tags=tags, sections=sections)

    def get_digest(self, document_id: str) -> Optional[str]:
        with self._lock:
            row = self.conn.execute("SELECT digest FROM documents WHERE id = ?", (document_id,)).fetchone()
        return row["digest"] if row else None

    def list_by_tag(self, tag: str) -> List[str]:
        with self._lock:
            rows = self.conn.execute(
                "SELECT document_id FROM document_tags WHERE tag = ? ORDER BY document_id",
                (tag,),
            ).fetchall()
        return [row["document_id"] for row in rows]

    def search(self, query: str, *, limit: int = 10) -> List[SectionHit]:
        """Run a full-text search across section headings and bodies."""

        safe = re.sub(r"[^\w\s]", " ", query)
        tokens = [token for token in re.sub(r"\s+", " ", safe).strip().split(" ") if token]
        if not tokens:
            return []
        match_query = " OR ".join(f'"{token}"' for token in tokens)
        with self._lock:
            rows = self.conn.execute(
                """
                SELECT s.document_id, s.heading, s.level, s.order_index,
                       bm25(sections_fts) AS score
                FROM sections s
                JOIN sections_fts ON s.rowid = sections_fts.rowid
                WHERE sections_fts MATCH ?
                ORDER BY score
                LIMIT ?;
                """,
                (match_query, limit),
            ).fetchall()
        return [
            SectionHit(
                document_id=row["document_id"],
                heading=row["heading"],
                level=row["level"],
                order=row["order_index"],
                score=float(row["score"]),
            )
            for row in rows
        ]

    # ------------------------------------------------------------------ writes
    def put_document(self, document: Document) -> None:
        self._write(document, document.digest())
        logger.info("document_indexed", document_id=document.id, sections=len(document.sections))

    def _write(self, document: Document, digest: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._lock, self.conn:
            self.conn.execute("DELETE FROM examples WHERE document_id = ?", (document.id,))
            self.conn.execute("DELETE FROM sections WHERE document_id = ?", (document.id,))
            self.conn.execute("DELETE FROM document_tags WHERE document_id = ?", (document.id,))
            self.conn.execute(
                """
                INSERT INTO documents(id, title, digest, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title=excluded.title,
                    digest=excluded.digest,
                    updated_at=excluded.updated_at
                """,
                (document.id, document.title, digest, now, now),
            )
            self.conn.executemany(
                "INSERT INTO document_tags(document_id, tag) VALUES (?, ?)",
                ((document.id, tag) for tag in sorted(document.tags)),
            )
            for section_index, section in enumerate(document.sections):
                self.conn.execute(
                    """
                    INSERT INTO sections(document_id, order_index, heading, level, body, line)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (document.id, section_index, section.heading, section.level, section.body, section.line),
                )
                self.conn.executemany(
                    """
                    INSERT INTO examples(
                        document_id, section_index, order_index, source, language,
                        caption, expected_output, terminated, line
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        (
                            document.id,
                            section_index,
                            example_index,
                            example.source,
                            example.language,
                            example.caption,
                            example.expected_output,
                            int(example.terminated),
                            example.line,
                        )
                        for example_index, example in enumerate(section.examples)
                    ),
                )

    def ingest(self, source: Corpus) -> IngestionResult:
        """Copy every parseable document from ``source``, skipping unchanged ones by digest."""

        result = IngestionResult()
        current: Set[str] = set()
        for document_id in source.list_documents():
            result.documents_processed += 1
            try:
                document = source.get_document(document_id)
            except MalformedDocument as exc:
                result.documents_skipped += 1
                logger.warning("document_skipped", document_id=document_id, reason=exc.message)
                continue
            current.add(document_id)
            digest = document.digest()
            if self.get_digest(document_id) == digest:
                result.documents_unchanged += 1
                continue
            self._write(document, digest)
            result.documents_written += 1
            result.sections_written += len(document.sections)
            result.examples_written += sum(len(section.examples) for section in document.sections)

        # rows whose source is gone or no longer parses would otherwise be served stale
        for document_id in set(self._iter_ids()) - current:
            self._remove(document_id)
            result.documents_removed += 1

        logger.info(
            "corpus_ingested",
            processed=result.documents_processed,
            written=result.documents_written,
            unchanged=result.documents_unchanged,
            skipped=result.documents_skipped,
            removed=result.documents_removed,
        )
        return result

    def _remove(self, document_id: str) -> None:
        with self._lock, self.conn:
            self.conn.execute("DELETE FROM examples WHERE document_id = ?", (document_id,))
            self.conn.execute("DELETE FROM sections WHERE document_id = ?", (document_id,))
            self.conn.execute("DELETE FROM document_tags WHERE document_id = ?", (document_id,))
            self.conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
        logger.info("document_unindexed", document_id=document_id)

    def delete_all(self) -> None:
        """Drop every indexed row so the index can be rebuilt from its source."""

        with self._lock, self.conn:
            self.conn.executescript(
                """
                DELETE FROM examples;
                DELETE FROM sections;
                DELETE FROM document_tags;
                DELETE FROM documents;
                """
            )

    @staticmethod
    def _row_to_example(row: sqlite3.Row) -> Example:
        return Example(
            source=row["source"],
            language=row["language"],
            caption=row["caption"],
            expected_output=row["expected_output"],
            terminated=bool(row["terminated"]),
            line=int(row["line"] or 0),
        )


__all__ = ["IngestionResult", "SQLiteCorpus", "SQLiteCorpusConfig", "SectionHit"]
