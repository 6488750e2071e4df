from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import structlog
import yaml

from src.corpus.errors import MalformedDocument
from src.ingest.reader import DocumentReader, DocumentReaderConfig
from src.models.document import Document
from src.models.section import Example, Section

logger = structlog.get_logger(__name__)


_HEADING_PATTERN = re.compile(r"^ {0,3}(?P<hashes>#{1,6})(?:\s+(?P<title>.*?))?(?:\s+#+)?\s*$")
_FENCE_OPEN_PATTERN = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
_FENCE_CLOSE_PATTERN = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})\s*$")
_CAPTION_PATTERN = re.compile(r"""title=(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>\S+))""")
_BACKTICK_RUN = re.compile(r"`+")
_FRONT_MATTER_DELIMITER = "---"
_FRONT_MATTER_END = {"---", "..."}

OUTPUT_LANGUAGE = "output"


@dataclass(slots=True)
class _OpenFence:
    marker: str
    language: Optional[str]
    caption: Optional[str]
    line: int


def _parse_info(info: str) -> Tuple[Optional[str], Optional[str]]:
    """Split a fence info string into (language, caption)."""

    info = info.strip()
    if not info:
        return None, None
    language: Optional[str] = None
    first = info.split()[0]
    if "=" not in first:
        language = first
    caption = None
    match = _CAPTION_PATTERN.search(info)
    if match:
        caption = match.group("dq") if match.group("dq") is not None else match.group("sq")
        if caption is None:
            caption = match.group("bare")
    return language, caption


def _closes(line: str, fence: _OpenFence) -> bool:
    match = _FENCE_CLOSE_PATTERN.match(line)
    if not match:
        return False
    marker = match.group("fence")
    return marker[0] == fence.marker[0] and len(marker) >= len(fence.marker)


def _normalize_tags(raw: Any, document_id: str) -> Set[str]:
    if raw is None:
        return set()
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, (list, tuple, set)):
        items = [str(item) for item in raw if item is not None]
    else:
        raise MalformedDocument(document_id, "front matter 'tags' must be a list or a string")
    return {item.strip() for item in items if item.strip()}


def _split_front_matter(lines: List[str], document_id: str) -> Tuple[Dict[str, Any], int]:
    """Return (front matter mapping, index of the first body line)."""

    if not lines or lines[0].rstrip() != _FRONT_MATTER_DELIMITER:
        return {}, 0
    for index in range(1, len(lines)):
        if lines[index].rstrip() in _FRONT_MATTER_END:
            raw = "\n".join(lines[1:index])
            try:
                data = yaml.safe_load(raw) if raw.strip() else {}
            except yaml.YAMLError as exc:
                raise MalformedDocument(document_id, f"invalid front matter: {exc}", line=1) from exc
            if data is None:
                data = {}
            if not isinstance(data, dict):
                raise MalformedDocument(document_id, "front matter must be a mapping", line=1)
            return data, index + 1
    raise MalformedDocument(document_id, "front matter is never closed", line=1)


def _finish_body(lines: List[str]) -> str:
    body = "\n".join(lines).strip()
    return re.sub(r"\n{3,}", "\n\n", body)


def parse_markdown(text: str, document_id: str) -> Document:
    """Parse markdown text into a Document.

    Headings (``#`` to ``######``) start sections; fenced blocks become
    examples. A fence tagged ``output`` directly after an example is read as
    that example's expected output. A fence that is never closed produces an
    example with ``terminated=False`` holding the remainder of the file.
    """

    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.splitlines()
    front, start = _split_front_matter(lines, document_id)

    sections: List[Section] = []
    current = Section(heading="", level=0, line=start + 1)
    prose: List[str] = []
    attachable: Optional[Example] = None
    fence: Optional[_OpenFence] = None
    code: List[str] = []

    def flush() -> None:
        current.body = _finish_body(prose)
        if current.level > 0 or current.body or current.examples:
            sections.append(current)

    for number, line in enumerate(lines[start:], start=start + 1):
        if fence is not None:
            if not _closes(line, fence):
                code.append(line)
                continue
            source = "\n".join(code)
            if fence.language == OUTPUT_LANGUAGE and attachable is not None and attachable.expected_output is None:
                attachable.expected_output = source
                attachable = None
            else:
                example = Example(
                    source=source,
                    language=fence.language,
                    caption=fence.caption,
                    line=fence.line,
                )
                current.add_example(example)
                attachable = example
            fence = None
            code = []
            continue

        opening = _FENCE_OPEN_PATTERN.match(line)
        if opening and not (opening.group("fence")[0] == "`" and "`" in opening.group("info")):
            language, caption = _parse_info(opening.group("info"))
            fence = _OpenFence(marker=opening.group("fence"), language=language, caption=caption, line=number)
            continue

        heading = _HEADING_PATTERN.match(line)
        if heading:
            flush()
            current = Section(
                heading=(heading.group("title") or "").strip(),
                level=len(heading.group("hashes")),
                line=number,
            )
            prose = []
            attachable = None
            continue

        if line.strip():
            attachable = None
        prose.append(line)

    if fence is not None:
        current.add_example(
            Example(
                source="\n".join(code),
                language=fence.language,
                caption=fence.caption,
                terminated=False,
                line=fence.line,
            )
        )
    flush()

    if "title" in front:
        title = str(front["title"] or "").strip()
    else:
        title = next((section.heading for section in sections if section.level == 1), "")

    return Document(
        id=document_id,
        title=title,
        tags=_normalize_tags(front.get("tags"), document_id),
        sections=sections,
    )


def _fence_for(source: str) -> str:
    longest = max((len(run) for run in _BACKTICK_RUN.findall(source)), default=0)
    return "`" * max(3, longest + 1)


def _render_caption(caption: str) -> str:
    if '"' in caption:
        return f"title='{caption}'"
    return f'title="{caption}"'


def _render_example(example: Example) -> str:
    fence = _fence_for(example.source)
    info = example.language or ""
    if example.caption:
        info = f"{info} {_render_caption(example.caption)}".strip()
    block = f"{fence}{info}\n{example.source}\n{fence}" if example.source else f"{fence}{info}\n{fence}"
    if example.expected_output is not None:
        output_fence = _fence_for(example.expected_output)
        output = example.expected_output
        block += (
            f"\n\n{output_fence}{OUTPUT_LANGUAGE}\n{output}\n{output_fence}"
            if output
            else f"\n\n{output_fence}{OUTPUT_LANGUAGE}\n{output_fence}"
        )
    return block


def render_markdown(document: Document) -> str:
    """Serialize a Document back to markdown text."""

    parts: List[str] = []
    first_h1 = next((section.heading for section in document.sections if section.level == 1), None)
    meta: Dict[str, Any] = {}
    if document.title != (first_h1 or ""):
        meta["title"] = document.title
    if document.tags:
        meta["tags"] = sorted(document.tags)
    if meta:
        dumped = yaml.safe_dump(meta, sort_keys=False, allow_unicode=True).strip()
        parts.append(f"{_FRONT_MATTER_DELIMITER}\n{dumped}\n{_FRONT_MATTER_DELIMITER}")

    for section in document.sections:
        if section.level > 0:
            hashes = "#" * min(section.level, 6)
            parts.append(f"{hashes} {section.heading}".rstrip())
        if section.body:
            parts.append(section.body)
        parts.extend(_render_example(example) for example in section.examples)

    return "\n\n".join(parts) + "\n"


@dataclass(slots=True)
class MarkdownReaderConfig(DocumentReaderConfig):
    """Configuration for markdown files."""

    suffixes: Tuple[str, ...] = (".md", ".markdown")


class MarkdownReader(DocumentReader):
    """Read markdown topic files into Document objects."""

    config: MarkdownReaderConfig

    def __init__(self, config: MarkdownReaderConfig | None = None) -> None:
        super().__init__(config or MarkdownReaderConfig())
        assert isinstance(self.config, MarkdownReaderConfig)

    def accepts(self, path: Path) -> bool:
        return path.suffix.lower() in self.config.suffixes

    def build(self, document_path: Path) -> Document:
        document_id = self.document_id(document_path)
        try:
            text = document_path.read_text(encoding=self.config.encoding)
        except UnicodeDecodeError as exc:
            raise MalformedDocument(document_id, f"cannot decode as {self.config.encoding}: {exc.reason}") from exc
        except OSError as exc:
            raise MalformedDocument(document_id, f"cannot read: {exc.strerror or exc}") from exc
        document = parse_markdown(text, document_id)
        logger.debug(
            "document_parsed",
            document_id=document_id,
            path=str(document_path),
            sections=len(document.sections),
        )
        return document


__all__ = [
    "MarkdownReader",
    "MarkdownReaderConfig",
    "OUTPUT_LANGUAGE",
    "parse_markdown",
    "render_markdown",
]
