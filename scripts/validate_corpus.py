from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from src.corpus.config_loader import CorpusConfig, load_corpus_config, open_corpus
from src.logging_config import configure_logging
from src.validation.checks import ValidationReport, Violation


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    if Path(".env").exists():
        load_dotenv(".env", override=False)
    parser = argparse.ArgumentParser(description="Check a markdown topic corpus for structural problems.")
    parser.add_argument("corpus", type=Path, nargs="?", help="Corpus root directory")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML/TOML/JSON corpus config. Overrides the positional corpus root.",
    )
    parser.add_argument("--pattern", default="**/*", help="Glob pattern under the root (default: **/*)")
    parser.add_argument("--strict", action="store_true", help="Fail on warnings as well as errors.")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON.")
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    args = parser.parse_args(argv)
    if args.corpus is None and args.config is None:
        parser.error("provide a corpus root or --config")
    return args


def format_violation(violation: Violation) -> str:
    where = violation.document_id
    if violation.section:
        where += f" [{violation.section}]"
    if violation.line:
        where += f" line {violation.line}"
    return f"{violation.severity.value:<7} {violation.code.value:<18} {where}: {violation.message}"


def exit_code(report: ValidationReport, strict: bool = False) -> int:
    if report.errors or (strict and report.warnings):
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    if args.config:
        config = load_corpus_config(args.config)
    else:
        if not args.corpus.is_dir():
            raise FileNotFoundError(f"Corpus directory not found: {args.corpus}")
        config = CorpusConfig(root=args.corpus, pattern=args.pattern)

    report = open_corpus(config).validation_report()
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        for violation in report.violations:
            print(format_violation(violation))
        print(
            f"{report.documents_checked} documents checked: "
            f"{len(report.errors)} errors, {len(report.warnings)} warnings"
        )
    return exit_code(report, strict=args.strict)


if __name__ == "__main__":
    sys.exit(main())
