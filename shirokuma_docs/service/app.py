"""FastAPI application entrypoint for shirokuma-md service mode."""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional, TypeVar

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import ConfigError, DocsConfig
from ..md.analyzer import Analyzer
from ..md.linter import Linter
from ..md.markdown import FrontmatterError, parse_document
from ..md.token_optimizer import TokenOptimizer
from ..parsers.braces import count_braces, find_matching_brace

_T = TypeVar("_T")


class LintRequest(BaseModel):
    content: str
    path: str = "document.md"


class IssueModel(BaseModel):
    rule: str
    severity: str
    message: str
    file: str
    line: Optional[int] = None


class LintResponse(BaseModel):
    issues: List[IssueModel]
    warnings: int
    errors: int


class OptimizeRequest(BaseModel):
    content: str
    path: str = "document.md"


class AnalyzeRequest(BaseModel):
    path: str
    include_metrics: bool = False
    include_split_suggestions: bool = False
    graph: bool = False


class BracesRequest(BaseModel):
    text: str
    index: Optional[int] = None


class BracesResponse(BaseModel):
    depth: int
    match: Optional[int] = None


class HealthResponse(BaseModel):
    status: str


async def _run_blocking(func: Callable[[], _T]) -> _T:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:  # pragma: no cover - fallback path when not in async context
        return func()
    return await loop.run_in_executor(None, func)


def create_app(config_factory: Callable[[], DocsConfig] = DocsConfig) -> FastAPI:
    """Create the FastAPI application exposing lint, optimize and analyze."""

    app = FastAPI(title="shirokuma-md Service", version="1.0.0")

    async def get_config() -> DocsConfig:
        # Fresh config per request keeps handlers stateless.
        return config_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/lint", response_model=LintResponse)
    async def lint(payload: LintRequest, config: DocsConfig = Depends(get_config)) -> LintResponse:
        linter = Linter(config)
        document = parse_document(payload.content, payload.path)
        issues = await _run_blocking(lambda: linter.lint_document(document))
        return LintResponse(
            issues=[IssueModel(**asdict(issue)) for issue in issues],
            warnings=sum(1 for issue in issues if issue.severity == "warning"),
            errors=sum(1 for issue in issues if issue.severity == "error"),
        )

    @app.post("/optimize")
    async def optimize(payload: OptimizeRequest) -> Dict[str, Any]:
        optimizer = TokenOptimizer()

        def _run() -> Dict[str, Any]:
            issues = optimizer.analyze(payload.content, payload.path)
            return optimizer.generate_report(issues).to_dict()

        return await _run_blocking(_run)

    @app.post("/analyze")
    async def analyze(
        payload: AnalyzeRequest, config: DocsConfig = Depends(get_config)
    ) -> Dict[str, Any]:
        analyzer = Analyzer(config)

        def _run() -> Dict[str, Any]:
            result = analyzer.analyze(
                payload.path,
                include_metrics=payload.include_metrics,
                include_split_suggestions=payload.include_split_suggestions,
            )
            body = result.to_dict()
            if payload.graph:
                body["graph"] = analyzer.generate_graph(result)
            return body

        return await _run_blocking(_run)

    @app.post("/braces", response_model=BracesResponse)
    async def braces(payload: BracesRequest) -> BracesResponse:
        match = find_matching_brace(payload.text, payload.index) if payload.index is not None else None
        return BracesResponse(depth=count_braces(payload.text), match=match)

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(
        _: Any, exc: FileNotFoundError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(NotADirectoryError)
    async def not_a_directory_handler(_: Any, exc: NotADirectoryError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(FrontmatterError)
    async def frontmatter_handler(_: Any, exc: FrontmatterError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    return app


def run_service(host: str = "0.0.0.0", port: int = 8000) -> None:  # pragma: no cover - integration path
    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]
