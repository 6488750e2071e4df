import pytest
from pydantic import ValidationError

from src.corpus.config_loader import CorpusConfig, load_corpus_config, open_corpus
from src.corpus.filesystem import FileSystemCorpus
from src.corpus.sqlite import SQLiteCorpus


def test_yaml_config_resolves_relative_paths(tmp_path):
    config_path = tmp_path / "corpus.yaml"
    config_path.write_text("backend: filesystem\nroot: docs\npattern: '**/*.md'\n", encoding="utf-8")

    config = load_corpus_config(config_path)

    assert config.root == (tmp_path / "docs").resolve()
    assert config.db_path == (tmp_path / "artifacts" / "corpus.db").resolve()
    assert config.pattern == "**/*.md"


def test_toml_config_with_corpus_table(tmp_path):
    config_path = tmp_path / "corpus.toml"
    config_path.write_text('[corpus]\nbackend = "sqlite"\ndb_path = "index.db"\n', encoding="utf-8")

    config = load_corpus_config(config_path)

    assert config.backend == "sqlite"
    assert config.db_path == (tmp_path / "index.db").resolve()


def test_bad_configs_are_rejected(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_corpus_config(tmp_path / "missing.yaml")

    ini = tmp_path / "corpus.ini"
    ini.write_text("[corpus]\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_corpus_config(ini)

    listing = tmp_path / "corpus.json"
    listing.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_corpus_config(listing)

    with pytest.raises(ValidationError):
        CorpusConfig(backend="postgres")


def test_open_corpus_builds_backends(tmp_path):
    (tmp_path / "operators.MD").write_text("# Operators\n", encoding="utf-8")
    (tmp_path / "guide.rst").write_text("Guide\n=====\n", encoding="utf-8")

    corpus = open_corpus(CorpusConfig(root=tmp_path, suffixes=[".MD", ".rst"]))
    assert isinstance(corpus, FileSystemCorpus)
    assert list(corpus.list_documents()) == ["guide", "operators"]

    index = open_corpus(CorpusConfig(backend="sqlite", db_path=tmp_path / "db" / "corpus.db"))
    assert isinstance(index, SQLiteCorpus)
    assert list(index.list_documents()) == []
    index.close()
