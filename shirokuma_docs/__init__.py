"""shirokuma-docs: Markdown linting, token optimization and dependency analysis."""

__version__ = "0.1.0"
