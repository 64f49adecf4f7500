"""CLI entrypoints for shirokuma-md commands."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict, replace
from pathlib import Path
from typing import List

from .config import ConfigError, DocsConfig, load_config
from .logging import configure_logging, file_logger, get_logger
from .md.analyzer import Analyzer
from .md.files import FileCollector
from .md.formatters import (
    format_analysis_json,
    format_analysis_markdown,
    format_analysis_text,
    format_lint_json,
    format_lint_markdown,
    format_lint_text,
)
from .md.heading_numbers import strip_heading_numbers
from .md.linter import Linter
from .md.markdown import FrontmatterError, parse_document, render_document
from .md.token_optimizer import TokenOptimizer
from .md.transforms import (
    count_duplicate_paragraphs,
    count_internal_links,
    has_excessive_whitespace,
    normalize_headings,
    transform_content,
)
from .models import TokenIssue
from .parsers.jsdoc import build_tag_config, extract_all_jsdocs
from .service import run_service

logger = get_logger("cli")


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_source_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Directory of Markdown sources (defaults to current directory).",
    )
    parser.add_argument(
        "--config",
        help="Path to shirokuma-md.config.yaml (defaults to the one inside PATH).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="shirokuma-md",
        description="Lint, optimize and analyze Markdown documentation for LLM consumption.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    lint_parser = subparsers.add_parser("lint", help="Check Markdown files against lint rules.")
    _add_verbose_option(lint_parser, suppress_default=True)
    _add_source_options(lint_parser)
    lint_parser.add_argument(
        "--format", choices=("text", "json", "markdown"), default="text", help="Report format."
    )
    lint_parser.add_argument(
        "--fail-on",
        choices=("warning", "error"),
        default="warning",
        help="Lowest severity that makes the run fail.",
    )
    lint_parser.add_argument(
        "--fix",
        action="store_true",
        help="Apply trivial fixes (trailing whitespace, blank-line runs) before linting.",
    )

    optimize_parser = subparsers.add_parser(
        "optimize", help="Report token optimization opportunities."
    )
    _add_verbose_option(optimize_parser, suppress_default=True)
    _add_source_options(optimize_parser)
    optimize_parser.add_argument(
        "--format", choices=("markdown", "json"), default="markdown", help="Report format."
    )

    analyze_parser = subparsers.add_parser(
        "analyze", help="Analyze cross-document dependencies."
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_source_options(analyze_parser)
    analyze_parser.add_argument("--metrics", action="store_true", help="Include file metrics.")
    analyze_parser.add_argument(
        "--split", action="store_true", help="Suggest H2 split points for large files."
    )
    analyze_parser.add_argument(
        "--graph", action="store_true", help="Append a Mermaid dependency graph."
    )
    analyze_parser.add_argument(
        "--format", choices=("text", "json", "markdown"), default="text", help="Report format."
    )

    strip_parser = subparsers.add_parser(
        "strip-headings", help="Remove numeric prefixes from Markdown headings."
    )
    _add_verbose_option(strip_parser, suppress_default=True)
    strip_parser.add_argument("file", help="Markdown file to process.")
    strip_parser.add_argument(
        "--write", action="store_true", help="Rewrite the file instead of printing the result."
    )

    jsdoc_parser = subparsers.add_parser(
        "jsdoc", help="Print the JSDoc of exported declarations in a source file as JSON."
    )
    _add_verbose_option(jsdoc_parser, suppress_default=True)
    jsdoc_parser.add_argument("file", help="TypeScript/JavaScript source file.")
    jsdoc_parser.add_argument("--config", help="Path to shirokuma-md.config.yaml.")

    normalize_parser = subparsers.add_parser(
        "normalize", help="Apply content transforms to Markdown files (whitespace by default)."
    )
    _add_verbose_option(normalize_parser, suppress_default=True)
    _add_source_options(normalize_parser)
    normalize_parser.add_argument(
        "--strip-links", action="store_true", help="Replace relative .md links with their text."
    )
    normalize_parser.add_argument(
        "--dedupe", action="store_true", help="Remove repeated paragraphs."
    )
    normalize_parser.add_argument(
        "--heading-paths",
        action="store_true",
        help='Rewrite headings as full paths, e.g. "Guide / Setup".',
    )
    normalize_parser.add_argument(
        "--write", action="store_true", help="Rewrite files instead of listing the changes."
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def _load_config(args: argparse.Namespace) -> DocsConfig:
    if getattr(args, "config", None):
        return load_config(Path(args.config))
    return load_config(Path(getattr(args, "path", ".")))


def _run_lint(args: argparse.Namespace, config: DocsConfig) -> bool:
    linter = Linter(config)
    if args.fix:
        changed, _ = linter.fix(args.path)
        print(f"Fixed {len(changed)} file(s)", file=sys.stderr)
    report = linter.lint(args.path, fail_on=args.fail_on)
    if args.format == "json":
        print(format_lint_json(report))
    elif args.format == "markdown":
        print(format_lint_markdown(report))
    else:
        print(format_lint_text(report))
    return report.passed


def _run_optimize(args: argparse.Namespace, config: DocsConfig) -> None:
    optimizer = TokenOptimizer()
    root = Path(args.path)
    issues: List[TokenIssue] = []
    for rel_path in FileCollector(config.build).collect(root):
        try:
            content = (root / rel_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            file_logger(logger, rel_path).warning("skipped: %s", exc)
            continue
        issues.extend(optimizer.analyze(content, rel_path))
    report = optimizer.generate_report(issues)
    if args.format == "json":
        print(optimizer.format_report_json(report))
    else:
        print(optimizer.format_report_markdown(report))


def _run_analyze(args: argparse.Namespace, config: DocsConfig) -> None:
    analyzer = Analyzer(config)
    result = analyzer.analyze(
        args.path, include_metrics=args.metrics, include_split_suggestions=args.split
    )
    graph = analyzer.generate_graph(result) if args.graph else None
    if args.format == "json":
        print(format_analysis_json(result, graph))
    elif args.format == "markdown":
        print(format_analysis_markdown(result, graph))
    else:
        print(format_analysis_text(result, graph))


def _describe_changes(args: argparse.Namespace, content: str) -> List[str]:
    changes: List[str] = []
    if args.strip_links and count_internal_links(content):
        changes.append(f"{count_internal_links(content)} internal link(s)")
    if args.dedupe and count_duplicate_paragraphs(content):
        changes.append(f"{count_duplicate_paragraphs(content)} duplicate paragraph(s)")
    if args.heading_paths and normalize_headings(content) != content:
        changes.append("heading paths")
    if has_excessive_whitespace(content):
        changes.append("whitespace")
    return changes


def _run_normalize(args: argparse.Namespace, config: DocsConfig) -> None:
    root = Path(args.path)
    changed = 0
    for rel_path in FileCollector(config.build).collect(root):
        path = root / rel_path
        try:
            document = parse_document(path.read_text(encoding="utf-8"), rel_path)
        except (OSError, UnicodeDecodeError, FrontmatterError) as exc:
            file_logger(logger, rel_path).warning("skipped: %s", exc)
            continue
        content = transform_content(
            document.content,
            internal_links=args.strip_links,
            duplicates=args.dedupe,
            heading_paths=args.heading_paths,
        )
        if content == document.content:
            continue
        changed += 1
        if args.write:
            path.write_text(render_document(replace(document, content=content)), encoding="utf-8")
            print(f"Updated {rel_path}")
        else:
            print(f"{rel_path}: {', '.join(_describe_changes(args, document.content))}")
    if not changed:
        print("No changes needed")


def _run_strip_headings(args: argparse.Namespace) -> None:
    path = Path(args.file)
    stripped = strip_heading_numbers(path.read_text(encoding="utf-8"))
    if args.write:
        path.write_text(stripped, encoding="utf-8")
        print(f"Updated {path}")
    else:
        sys.stdout.write(stripped)


def _run_jsdoc(args: argparse.Namespace) -> None:
    config = load_config(Path(args.config)) if args.config else DocsConfig()
    tag_config = build_tag_config(config.jsdoc.tags)
    source = Path(args.file).read_text(encoding="utf-8")
    entries = [
        {
            "name": entry.name,
            "description": entry.parsed.description,
            "tags": {
                name: value if isinstance(value, str) else [
                    item if isinstance(item, str) else asdict(item) for item in value
                ]
                for name, value in entry.parsed.tags.items()
            },
        }
        for entry in extract_all_jsdocs(source, tag_config)
    ]
    print(json.dumps(entries, indent=2, ensure_ascii=False))


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for shirokuma-md commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    try:
        if args.command == "lint":
            if not _run_lint(args, _load_config(args)):
                parser.exit(1)
        elif args.command == "optimize":
            _run_optimize(args, _load_config(args))
        elif args.command == "analyze":
            _run_analyze(args, _load_config(args))
        elif args.command == "normalize":
            _run_normalize(args, _load_config(args))
        elif args.command == "strip-headings":
            _run_strip_headings(args)
        elif args.command == "jsdoc":
            _run_jsdoc(args)
        elif args.command == "serve":
            run_service(host=args.host, port=args.port)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except ConfigError as exc:
        parser.exit(2, f"Invalid configuration: {exc}\n")
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")
    except (OSError, UnicodeDecodeError) as exc:
        parser.exit(1, f"shirokuma-md {args.command} failed: {exc}\nRun with --verbose for more details.\n")


if __name__ == "__main__":
    main(sys.argv[1:])
