from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List

import pytest

from src.corpus.errors import NotFound
from src.corpus.filesystem import FileSystemCorpus
from src.corpus.sqlite import SQLiteCorpus, SQLiteCorpusConfig
from src.models.section import Example, Section
from src.validation.checks import ViolationCode


OPERATORS = """---
tags: [basics, operators]
---
# Operators

## Arithmetic

```python title="Adding"
print(1 + 2)
```

```output
3
```

## Comparison

Comparisons return booleans.
"""


def build_source(root: Path) -> FileSystemCorpus:
    (root / "operators.md").write_text(OPERATORS, encoding="utf-8")
    (root / "control_structures.md").write_text(
        "---\ntags: [basics]\n---\n# Control Structures\n\n## Loops\n\nUse for and while.\n",
        encoding="utf-8",
    )
    (root / "broken.md").write_text("---\ntags: [a\n---\n# Broken\n", encoding="utf-8")
    return FileSystemCorpus(root)


def open_index(tmp_path) -> SQLiteCorpus:
    index = SQLiteCorpus(SQLiteCorpusConfig(db_path=Path(tmp_path / "index" / "corpus.db")))
    index.initialize()
    return index


def test_ingest_copies_parseable_documents(tmp_path):
    docs = tmp_path / "docs"
    docs.mkdir()
    source = build_source(docs)
    index = open_index(tmp_path)

    result = index.ingest(source)

    assert result.documents_processed == 3
    assert result.documents_written == 2
    assert result.documents_skipped == 1
    assert result.sections_written == 5
    assert result.examples_written == 1
    assert list(index.list_documents()) == ["control_structures", "operators"]

    stored = index.get_document("operators")
    original = source.get_document("operators")
    assert stored == original
    assert stored.sections[1].examples[0].expected_output == "3"
    assert index.get_digest("operators") == original.digest()
    index.close()


def test_reingest_skips_unchanged_documents(tmp_path):
    docs = tmp_path / "docs"
    docs.mkdir()
    source = build_source(docs)
    index = open_index(tmp_path)
    index.ingest(source)

    again = index.ingest(source)
    assert again.documents_written == 0
    assert again.documents_unchanged == 2

    (docs / "operators.md").write_text(OPERATORS.replace("booleans", "True or False"), encoding="utf-8")
    changed = index.ingest(source)
    assert changed.documents_written == 1
    assert index.get_document("operators").sections[2].body == "Comparisons return True or False."
    index.close()


def test_search_and_tags(tmp_path):
    docs = tmp_path / "docs"
    docs.mkdir()
    index = open_index(tmp_path)
    index.ingest(build_source(docs))

    hits = index.search("booleans")
    assert len(hits) == 1
    assert hits[0].document_id == "operators"
    assert hits[0].heading == "Comparison"
    assert index.search("!!!") == []

    assert index.list_by_tag("basics") == ["control_structures", "operators"]
    assert index.list_by_tag("operators") == ["operators"]
    index.close()


def test_sqlite_lookup_and_authoring(tmp_path):
    docs = tmp_path / "docs"
    docs.mkdir()
    index = open_index(tmp_path)
    index.ingest(build_source(docs))

    with pytest.raises(NotFound):
        index.get_document("nonexistent")

    loops = Section(heading="Loops", level=2, body="Prefer for loops.")
    index.revise_section("control_structures", "Loops", loops)
    pending = Section(heading="Break", level=2)
    pending.add_example(Example(source="for x in y:\n    break", language="python", terminated=False))
    index.append_section("control_structures", pending)

    document = index.get_document("control_structures")
    assert document.headings() == ["Control Structures", "Loops", "Break"]
    assert document.sections[1].body == "Prefer for loops."
    assert not document.sections[2].examples[0].terminated
    assert index.search("prefer")[0].heading == "Loops"

    violations = index.validate_corpus()
    assert [(v.code, v.document_id, v.section) for v in violations] == [
        (ViolationCode.UNTERMINATED_FENCE, "control_structures", "Break")
    ]

    index.delete_all()
    assert list(index.list_documents()) == []
    assert index.search("prefer") == []
    index.close()


def test_reingest_drops_documents_gone_from_source(tmp_path):
    docs = tmp_path / "docs"
    docs.mkdir()
    source = build_source(docs)
    index = open_index(tmp_path)
    index.ingest(source)
    assert list(index.list_documents()) == ["control_structures", "operators"]

    (docs / "control_structures.md").unlink()
    (docs / "operators.md").write_text("---\ntags: [a\n---\n# Operators\n", encoding="utf-8")
    result = index.ingest(source)

    assert result.documents_removed == 2
    assert result.documents_skipped == 2
    assert list(index.list_documents()) == []
    assert index.search("booleans") == []
    assert index.list_by_tag("basics") == []
    with pytest.raises(NotFound):
        index.get_document("control_structures")
    index.close()


def test_concurrent_reads_see_whole_documents(tmp_path):
    docs = tmp_path / "docs"
    docs.mkdir()
    index = open_index(tmp_path)
    index.ingest(build_source(docs))
    short = index.get_document("operators")
    long = index.get_document("operators")
    long.add_section(Section(heading="Identity", level=2, body="Use is for None."))

    def rewrite() -> None:
        for turn in range(50):
            index.put_document(long if turn % 2 else short)

    def read() -> List[int]:
        return [len(index.get_document("operators").sections) for _ in range(50)]

    with ThreadPoolExecutor(max_workers=4) as pool:
        writer = pool.submit(rewrite)
        readers = [pool.submit(read) for _ in range(3)]
        writer.result()
        counts = [count for future in readers for count in future.result()]

    assert set(counts) <= {len(short.sections), len(long.sections)}
    index.close()
