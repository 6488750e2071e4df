from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import BaseModel, Field, field_validator

from src.corpus.base import Corpus
from src.corpus.filesystem import FileSystemCorpus
from src.corpus.sqlite import SQLiteCorpus, SQLiteCorpusConfig
from src.ingest.markdown import MarkdownReader, MarkdownReaderConfig


class CorpusConfig(BaseModel):
    backend: str = "filesystem"
    root: Path = Field(default=Path("docs"))
    pattern: str = "**/*"
    suffixes: List[str] = Field(default_factory=lambda: [".md", ".markdown"])
    encoding: str = "utf-8"
    db_path: Path = Field(default=Path("artifacts/corpus.db"))
    description: str | None = None

    @field_validator("backend")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in {"filesystem", "sqlite"}:
            raise ValueError(f"Unsupported corpus backend '{value}'")
        return value

    def resolve_paths(self, base_path: Path) -> "CorpusConfig":
        values = self.model_dump()
        for key in ("root", "db_path"):
            raw = Path(values[key])
            values[key] = raw if raw.is_absolute() else (base_path / raw).resolve()
        return CorpusConfig.model_validate(values)


def _load_structured_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    ext = path.suffix.lower()
    text = path.read_text(encoding="utf-8")

    if ext in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif ext == ".toml":
        data = tomllib.loads(text)
    elif ext == ".json":
        data = json.loads(text)
    else:
        raise ValueError(f"Unsupported config format '{ext}' for {path}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")
    return data


def load_corpus_config(path: Path) -> CorpusConfig:
    raw = _load_structured_file(path)
    config = CorpusConfig.model_validate(raw.get("corpus", raw))
    return config.resolve_paths(path.parent)


def open_corpus(config: CorpusConfig) -> Corpus:
    """Build the backend described by ``config``. SQLite indexes are initialized on open."""

    if config.backend == "sqlite":
        corpus = SQLiteCorpus(SQLiteCorpusConfig(db_path=config.db_path))
        corpus.initialize()
        return corpus
    reader = MarkdownReader(
        MarkdownReaderConfig(
            encoding=config.encoding,
            root=config.root,
            suffixes=tuple(suffix.lower() for suffix in config.suffixes),
        )
    )
    return FileSystemCorpus(config.root, pattern=config.pattern, reader=reader)


__all__ = ["CorpusConfig", "load_corpus_config", "open_corpus"]
