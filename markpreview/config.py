from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError

CONFIG_FILENAME = "markpreview.yml"


class HighlightConfig(BaseModel):
    """Controls for syntax highlighting of fenced code blocks."""

    enabled: bool = Field(default=True, description="Toggle Pygments highlighting of fenced code.")
    css_class: str = Field(
        default="hljs",
        description="Class added next to language-<lang> on highlighted code elements.",
    )
    languages: list[str] | None = Field(
        default=None,
        description=(
            "Optional allow-list of language names to highlight. "
            "Leave unset to highlight every language Pygments knows."
        ),
    )

    @field_validator("languages", mode="before")
    def _normalize_languages(cls, value: Any) -> list[str] | None:
        if value is None:
            return None
        if isinstance(value, str):
            value = [value]
        return [str(item).strip().lower() for item in value if str(item).strip()]


class SearchConfig(BaseModel):
    """Markup used for search-term highlighting."""

    mark_class: str = Field(default="search-highlight")
    active_class: str = Field(default="search-highlight-active")
    active_id: str = Field(
        default="search-highlight-active",
        description="Element id given to the active match so hosts can scroll it into view.",
    )


class DiagramConfig(BaseModel):
    """Options for the server-side diagram renderer."""

    command: list[str] = Field(
        default_factory=lambda: ["mmdc"],
        description="Command used to invoke the Mermaid CLI.",
    )
    theme: str = Field(default="default", description="Mermaid theme: 'default' or 'dark'.")
    timeout: float = Field(default=30.0, gt=0, description="Seconds to wait for one diagram.")

    @field_validator("command", mode="before")
    def _split_command(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            return value.split()
        return list(value)

    @field_validator("theme")
    def _validate_theme(cls, value: str) -> str:
        text = value.strip().lower()
        if text not in {"default", "dark"}:
            raise ValueError("Diagram theme must be 'default' or 'dark'.")
        return text


class ExportConfig(BaseModel):
    """Options for standalone printable exports."""

    output_dir: Path = Field(default=Path("exports"))
    keep: int = Field(default=10, ge=1, description="Number of exported documents to retain.")

    @field_validator("output_dir", mode="before")
    def _ensure_path(cls, value: Any) -> Path:
        return Path(value)


class RenderConfig(BaseModel):
    """Top-level preview configuration loaded from markpreview.yml."""

    diagram_language: str = Field(
        default="mermaid",
        description="Fenced-code language deferred to the diagram renderer.",
    )
    breaks: bool = Field(default=True, description="Render single newlines as <br>.")
    linkify: bool = Field(default=True, description="Turn bare URLs into links.")
    typographer: bool = Field(default=False)
    html: bool = Field(
        default=True,
        description="Pass raw HTML through the parser; the sanitizer removes anything unsafe.",
    )
    highlight: HighlightConfig = Field(default_factory=HighlightConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    diagrams: DiagramConfig = Field(default_factory=DiagramConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)

    @field_validator("diagram_language")
    def _normalize_language(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("diagram_language must not be empty.")
        return text


def load_config(path: str | Path) -> RenderConfig:
    """Load configuration and resolve relative paths based on the config location.

    ``path`` may point to a file or to a directory containing ``markpreview.yml``.
    A directory without that file yields the defaults.
    """
    candidate = Path(path)
    data: dict[str, Any] = {}
    if candidate.is_dir():
        config_file = candidate / CONFIG_FILENAME
        if config_file.exists():
            data = _read_yaml(config_file)
        base_dir = candidate.resolve()
    else:
        if not candidate.exists():
            raise FileNotFoundError(candidate)
        data = _read_yaml(candidate)
        base_dir = candidate.parent.resolve()

    try:
        cfg = RenderConfig(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {candidate}: {exc}") from exc

    export = cfg.export
    if not export.output_dir.is_absolute():
        export.output_dir = (base_dir / export.output_dir).resolve()

    return cfg


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Unable to parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} should define a mapping.")
    return data
