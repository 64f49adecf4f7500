"""Configuration loading for shirokuma-md (shirokuma-md.config.yaml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .constants import (
    BUILTIN_RULES,
    CONFIG_FILENAMES,
    DEFAULT_EXCLUDE,
    DEFAULT_INCLUDE,
    DEFAULT_MAX_LINES,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MIN_SPLIT_LINES,
    DEPENDENCY_TYPES,
    SEVERITIES,
)
from .parsers.jsdoc import build_tag_config

# Rules that are configured through dedicated sections rather than builtin_rules.
_EXTRA_RULES = (
    "file-naming",
    "consistent-structure-threshold",
    "consistent-structure-naming",
)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class BuildConfig:
    """File selection shared by lint, optimize and analyze."""

    include: List[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE))
    exclude: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))


@dataclass
class FileNamingConfig:
    pattern: str
    message: Optional[str] = None


@dataclass
class StructureRuleConfig:
    """Directory-level structure checks run by batch lint."""

    enabled: bool = False
    directory_threshold: int = 10
    overview_naming: str = "overview.md"


@dataclass
class LintConfig:
    """Rule enablement and severity overrides."""

    builtin_rules: Dict[str, bool] = field(default_factory=dict)
    severity: Dict[str, str] = field(default_factory=dict)
    file_naming: Optional[FileNamingConfig] = None
    consistent_structure: StructureRuleConfig = field(default_factory=StructureRuleConfig)

    def is_enabled(self, rule: str) -> bool:
        return self.builtin_rules.get(rule, True) is not False

    def severity_for(self, rule: str, default: str) -> str:
        return self.severity.get(rule, default)


@dataclass
class AnalyzeConfig:
    """Thresholds and extractor switches for the dependency analyzer."""

    max_lines: int = DEFAULT_MAX_LINES
    max_tokens: int = DEFAULT_MAX_TOKENS
    min_split_lines: int = DEFAULT_MIN_SPLIT_LINES
    dependency_detection: Dict[str, bool] = field(
        default_factory=lambda: {kind: True for kind in DEPENDENCY_TYPES}
    )

    def detects(self, kind: str) -> bool:
        return self.dependency_detection.get(kind, True)


@dataclass
class JsDocConfig:
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class DocsConfig:
    """Represents the settings defined in shirokuma-md.config.yaml."""

    root: Path = field(default_factory=Path.cwd)
    build: BuildConfig = field(default_factory=BuildConfig)
    lint: LintConfig = field(default_factory=LintConfig)
    analyze: AnalyzeConfig = field(default_factory=AnalyzeConfig)
    jsdoc: JsDocConfig = field(default_factory=JsDocConfig)


def load_config(config_path: Path) -> DocsConfig:
    """Load configuration from a file or from the first known name in a directory."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DocsConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")
    return config_from_mapping(data, root=root)


def config_from_mapping(data: Mapping[str, Any], *, root: Optional[Path] = None) -> DocsConfig:
    """Validate an already-loaded mapping and build a :class:`DocsConfig`."""
    return DocsConfig(
        root=(root or Path.cwd()).resolve(),
        build=_parse_build(_as_section(data, "build")),
        lint=_parse_lint(_as_section(data, "lint")),
        analyze=_parse_analyze(_as_section(data, "analyze")),
        jsdoc=_parse_jsdoc(_as_section(data, "jsdoc")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        for name in CONFIG_FILENAMES:
            candidate = config_path / name
            if candidate.exists():
                return candidate.resolve()
        return (config_path / CONFIG_FILENAMES[0]).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _parse_build(data: Dict[str, Any]) -> BuildConfig:
    build = BuildConfig()
    if "include" in data:
        build.include = _as_str_list(data["include"], "build.include")
    if "exclude" in data:
        build.exclude = _as_str_list(data["exclude"], "build.exclude")
    return build


def _parse_lint(data: Dict[str, Any]) -> LintConfig:
    lint = LintConfig()
    known = set(BUILTIN_RULES) | set(_EXTRA_RULES)

    for rule, enabled in _as_dict(data.get("builtin_rules"), "lint.builtin_rules").items():
        if rule not in BUILTIN_RULES:
            raise ConfigError(f"Unknown lint rule in lint.builtin_rules: {rule}")
        lint.builtin_rules[rule] = _as_bool(enabled, f"lint.builtin_rules.{rule}")

    for rule, level in _as_dict(data.get("severity"), "lint.severity").items():
        if rule not in known:
            raise ConfigError(f"Unknown lint rule in lint.severity: {rule}")
        lint.severity[rule] = _as_severity(level, f"lint.severity.{rule}")

    naming = data.get("file_naming")
    if naming is not None:
        naming_data = _as_dict(naming, "lint.file_naming")
        pattern = _as_str(naming_data.get("pattern"), "lint.file_naming.pattern")
        if pattern is None:
            raise ConfigError("lint.file_naming.pattern is required")
        message = _as_str(naming_data.get("message"), "lint.file_naming.message")
        lint.file_naming = FileNamingConfig(pattern=pattern, message=message)

    rules = _as_dict(data.get("rules"), "lint.rules")
    structure = _as_dict(rules.get("consistent_structure"), "lint.rules.consistent_structure")
    if structure:
        defaults = StructureRuleConfig()
        lint.consistent_structure = StructureRuleConfig(
            enabled=_as_bool(structure.get("enabled", defaults.enabled), "consistent_structure.enabled"),
            directory_threshold=_as_int(
                structure.get("directory_threshold", defaults.directory_threshold),
                "consistent_structure.directory_threshold",
            ),
            overview_naming=_as_str(
                structure.get("overview_naming", defaults.overview_naming),
                "consistent_structure.overview_naming",
            )
            or defaults.overview_naming,
        )
    return lint


def _parse_analyze(data: Dict[str, Any]) -> AnalyzeConfig:
    analyze = AnalyzeConfig()
    for key in ("max_lines", "max_tokens", "min_split_lines"):
        if key in data:
            setattr(analyze, key, _as_int(data[key], f"analyze.{key}"))

    detection = data.get("dependency_detection")
    if detection is None:
        return analyze
    if not isinstance(detection, list):
        raise ConfigError("analyze.dependency_detection must be a list")
    for entry in detection:
        entry_data = _as_dict(entry, "analyze.dependency_detection[]")
        kind = entry_data.get("type")
        if kind not in DEPENDENCY_TYPES:
            raise ConfigError(f"Unknown dependency type: {kind}")
        analyze.dependency_detection[kind] = _as_bool(
            entry_data.get("enabled", True), f"dependency_detection.{kind}.enabled"
        )
    return analyze


def _parse_jsdoc(data: Dict[str, Any]) -> JsDocConfig:
    tags = {
        str(name).lstrip("@"): _as_str(category, f"jsdoc.tags.{name}") or ""
        for name, category in _as_dict(data.get("tags"), "jsdoc.tags").items()
    }
    try:
        build_tag_config(tags)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc
    return JsDocConfig(tags=tags)


def _as_section(data: Mapping[str, Any], key: str) -> Dict[str, Any]:
    return _as_dict(data.get(key), key)


def _as_dict(value: Any, name: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be a mapping")
    return value


def _as_str(value: Any, name: str) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return str(value)
    raise ConfigError(f"{name} must be a string")


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
    raise ConfigError(f"{name} must be a number")


def _as_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ConfigError(f"{name} must be true or false")


def _as_severity(value: Any, name: str) -> str:
    if value not in SEVERITIES:
        raise ConfigError(f"{name} must be one of {', '.join(SEVERITIES)}")
    return value


def _as_str_list(value: Any, name: str) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ConfigError(f"{name} must be a list of glob patterns")


__all__ = [
    "AnalyzeConfig",
    "BuildConfig",
    "ConfigError",
    "DocsConfig",
    "FileNamingConfig",
    "JsDocConfig",
    "LintConfig",
    "StructureRuleConfig",
    "config_from_mapping",
    "load_config",
]
