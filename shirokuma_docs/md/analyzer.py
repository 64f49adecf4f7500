"""Cross-document dependency analysis.

Builds a reference graph from frontmatter ``dependencies`` lists, wiki-links
and Markdown links to ``.md`` files, then reports cycles, orphans, the most
referenced targets and, optionally, size metrics with split suggestions.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Sequence

from ..config import DocsConfig
from ..constants import CHARS_PER_TOKEN, MARKDOWN_LINK_MD, MOST_REFERENCED_LIMIT, WIKI_LINK
from ..logging import file_logger, get_logger
from ..models import DependencyEdge, Document, FileError, Heading
from .files import FileCollector
from .markdown import FrontmatterError, count_lines, flatten_headings, parse_document

logger = get_logger("analyzer")

Tokenizer = Callable[[str], int]


def estimate_tokens(text: str) -> int:
    """Approximate token count used when no tokenizer is available."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


@dataclass
class ReferenceCount:
    file: str
    count: int


@dataclass
class FileMetrics:
    file: str
    size: int
    lines: int
    tokens: int
    headings: List[Heading] = field(default_factory=list)
    top_level_sections: int = 0


@dataclass
class SplitPoint:
    heading: str
    level: int
    start_line: int
    end_line: int
    estimated_lines: int
    estimated_tokens: int


@dataclass
class SplitSuggestion:
    file: str
    reason: str
    current_size: int
    current_tokens: int
    suggested_splits: List[SplitPoint] = field(default_factory=list)


@dataclass
class AnalysisResult:
    """Everything one analyzer run found."""

    total_files: int
    dependencies: List[DependencyEdge] = field(default_factory=list)
    orphans: List[str] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)
    most_referenced: List[ReferenceCount] = field(default_factory=list)
    file_metrics: Optional[List[FileMetrics]] = None
    split_suggestions: Optional[List[SplitSuggestion]] = None
    total_tokens: Optional[int] = None
    average_tokens_per_file: Optional[float] = None
    errors: List[FileError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "total_files": self.total_files,
            "dependencies": [edge.to_dict() for edge in self.dependencies],
            "orphans": list(self.orphans),
            "cycles": [list(cycle) for cycle in self.cycles],
            "most_referenced": [asdict(entry) for entry in self.most_referenced],
            "errors": [asdict(error) for error in self.errors],
        }
        if self.file_metrics is not None:
            payload["file_metrics"] = [asdict(metrics) for metrics in self.file_metrics]
            payload["total_tokens"] = self.total_tokens
            payload["average_tokens_per_file"] = self.average_tokens_per_file
        if self.split_suggestions is not None:
            payload["split_suggestions"] = [asdict(item) for item in self.split_suggestions]
        return payload


def _build_graph(dependencies: Sequence[DependencyEdge]) -> Dict[str, List[str]]:
    graph: Dict[str, List[str]] = {}
    for edge in dependencies:
        graph.setdefault(edge.source, []).append(edge.target)
    return graph


class Analyzer:
    """Runs the dependency pipeline over a directory of Markdown files."""

    def __init__(
        self, config: Optional[DocsConfig] = None, tokenizer: Optional[Tokenizer] = None
    ) -> None:
        self.config = config or DocsConfig()
        self.tokenizer = tokenizer

    def analyze(
        self,
        source_dir: str | Path,
        *,
        include_metrics: bool = False,
        include_split_suggestions: bool = False,
    ) -> AnalysisResult:
        root = Path(source_dir)
        files = FileCollector(self.config.build).collect(root)
        documents: List[Document] = []
        sizes: Dict[str, int] = {}
        errors: List[FileError] = []

        for rel_path in files:
            path = root / rel_path
            try:
                text = path.read_text(encoding="utf-8")
                documents.append(parse_document(text, rel_path))
                sizes[rel_path] = path.stat().st_size
            except (OSError, UnicodeDecodeError, FrontmatterError) as exc:
                file_logger(logger, rel_path).warning("skipped: %s", exc)
                errors.append(FileError(file=rel_path, message=str(exc)))

        dependencies = self.extract_dependencies(documents)
        result = AnalysisResult(
            total_files=len(documents),
            dependencies=dependencies,
            orphans=self.detect_orphans(documents, dependencies),
            cycles=self.detect_cycles(dependencies),
            most_referenced=self.calculate_most_referenced(dependencies),
            errors=errors,
        )

        if include_metrics or include_split_suggestions:
            metrics = self.calculate_file_metrics(documents, sizes)
            if include_metrics:
                result.file_metrics = metrics
                result.total_tokens = sum(item.tokens for item in metrics)
                result.average_tokens_per_file = (
                    result.total_tokens / len(metrics) if metrics else 0.0
                )
            if include_split_suggestions:
                result.split_suggestions = self.generate_split_suggestions(documents, metrics)

        logger.debug(
            "Analyzed %d file(s): %d edge(s), %d cycle(s), %d orphan(s)",
            result.total_files,
            len(result.dependencies),
            len(result.cycles),
            len(result.orphans),
        )
        return result

    def extract_dependencies(self, documents: Sequence[Document]) -> List[DependencyEdge]:
        """One edge per reference occurrence; self references are dropped."""
        analyze = self.config.analyze
        edges: List[DependencyEdge] = []
        for document in documents:
            targets: List[tuple[str, str]] = []
            if analyze.detects("frontmatter"):
                declared = document.frontmatter.get("dependencies")
                if isinstance(declared, list):
                    targets.extend(
                        ("frontmatter", str(item)) for item in declared if item is not None
                    )
            if analyze.detects("wiki-link"):
                targets.extend(
                    ("wiki-link", match.group(1))
                    for match in WIKI_LINK.finditer(document.content)
                )
            if analyze.detects("markdown-link"):
                targets.extend(
                    ("markdown-link", match.group(2))
                    for match in MARKDOWN_LINK_MD.finditer(document.content)
                )
            for kind, target in targets:
                if target == document.path:
                    continue
                edges.append(DependencyEdge(source=document.path, target=target, type=kind))
        return edges

    def detect_cycles(self, dependencies: Sequence[DependencyEdge]) -> List[List[str]]:
        """Depth-first search with an explicit stack.

        Each back edge to a node on the current path yields the path slice
        from that node, closed by repeating it.
        """
        graph = _build_graph(dependencies)
        visited: set[str] = set()
        cycles: List[List[str]] = []

        for root in graph:
            if root in visited:
                continue
            visited.add(root)
            on_path = {root}
            path = [root]
            stack: List[tuple[str, Iterator[str]]] = [(root, iter(graph.get(root, ())))]

            while stack:
                node, neighbours = stack[-1]
                advanced = False
                for neighbour in neighbours:
                    if neighbour not in visited:
                        visited.add(neighbour)
                        on_path.add(neighbour)
                        path.append(neighbour)
                        stack.append((neighbour, iter(graph.get(neighbour, ()))))
                        advanced = True
                        break
                    if neighbour in on_path:
                        cycles.append(path[path.index(neighbour):] + [neighbour])
                if not advanced:
                    stack.pop()
                    on_path.discard(node)
                    path.pop()
        return cycles

    def detect_orphans(
        self, documents: Sequence[Document], dependencies: Sequence[DependencyEdge]
    ) -> List[str]:
        referenced = {edge.target for edge in dependencies}
        return [
            document.path
            for document in documents
            if Path(document.path).name not in referenced and document.path not in referenced
        ]

    def calculate_most_referenced(
        self, dependencies: Sequence[DependencyEdge], limit: int = MOST_REFERENCED_LIMIT
    ) -> List[ReferenceCount]:
        counts: Dict[str, int] = {}
        for edge in dependencies:
            counts[edge.target] = counts.get(edge.target, 0) + 1
        ranked = sorted(counts.items(), key=lambda item: -item[1])
        return [ReferenceCount(file=target, count=count) for target, count in ranked[:limit]]

    def count_tokens(self, text: str) -> int:
        if self.tokenizer is not None:
            try:
                return int(self.tokenizer(text))
            except Exception as exc:  # tokenizer is caller-supplied
                logger.debug("Tokenizer failed (%s); using character estimate", exc)
        return estimate_tokens(text)

    def calculate_file_metrics(
        self, documents: Sequence[Document], sizes: Optional[Mapping[str, int]] = None
    ) -> List[FileMetrics]:
        metrics: List[FileMetrics] = []
        for document in documents:
            size = (sizes or {}).get(document.path)
            if size is None:
                size = len(document.content.encode("utf-8"))
            metrics.append(
                FileMetrics(
                    file=document.path,
                    size=size,
                    lines=count_lines(document.content),
                    tokens=self.count_tokens(document.content),
                    headings=document.sections,
                    top_level_sections=len(document.sections),
                )
            )
        return metrics

    def generate_split_suggestions(
        self, documents: Sequence[Document], file_metrics: Sequence[FileMetrics]
    ) -> List[SplitSuggestion]:
        settings = self.config.analyze
        contents = {document.path: document.content.split("\n") for document in documents}
        suggestions: List[SplitSuggestion] = []

        for metrics in file_metrics:
            too_many_lines = metrics.lines > settings.max_lines
            too_many_tokens = metrics.tokens > settings.max_tokens
            if not (too_many_lines or too_many_tokens):
                continue

            lines = contents.get(metrics.file, [])
            splits: List[SplitPoint] = []
            for heading in flatten_headings(metrics.headings):
                if heading.level != 2:
                    continue
                section_lines = heading.end_line - heading.start_line + 1
                if section_lines < settings.min_split_lines:
                    continue
                section = "\n".join(lines[heading.start_line - 1 : heading.end_line])
                splits.append(
                    SplitPoint(
                        heading=heading.text,
                        level=heading.level,
                        start_line=heading.start_line,
                        end_line=heading.end_line,
                        estimated_lines=section_lines,
                        estimated_tokens=self.count_tokens(section),
                    )
                )

            if not splits:
                continue
            if too_many_lines and too_many_tokens:
                reason = f"File is too large ({metrics.lines} lines, {metrics.tokens} tokens)"
            elif too_many_lines:
                reason = f"File has too many lines ({metrics.lines})"
            else:
                reason = f"File has too many tokens ({metrics.tokens})"
            suggestions.append(
                SplitSuggestion(
                    file=metrics.file,
                    reason=reason,
                    current_size=metrics.lines,
                    current_tokens=metrics.tokens,
                    suggested_splits=splits,
                )
            )
        return suggestions

    def generate_graph(self, result: AnalysisResult) -> str:
        """Render the dependency graph as a fenced Mermaid flowchart."""
        lines = ["```mermaid", "graph TD"]
        node_ids: Dict[str, str] = {}
        for edge in result.dependencies:
            for name in (edge.source, edge.target):
                if name not in node_ids:
                    node_ids[name] = f"N{len(node_ids)}"
            arrow = "-.->" if edge.type == "wiki-link" else "-->"
            lines.append(
                f'  {node_ids[edge.source]}["{_label(edge.source)}"] {arrow} '
                f'{node_ids[edge.target]}["{_label(edge.target)}"]'
            )
        lines.append("```")
        return "\n".join(lines)


def _label(name: str) -> str:
    return name.replace('"', "#quot;")


__all__ = [
    "AnalysisResult",
    "Analyzer",
    "FileMetrics",
    "ReferenceCount",
    "SplitPoint",
    "SplitSuggestion",
    "Tokenizer",
    "estimate_tokens",
]
