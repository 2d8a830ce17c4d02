"""Exception types raised by markpreview."""

from __future__ import annotations


class MarkpreviewError(RuntimeError):
    """Base class for markpreview failures."""


class RenderError(MarkpreviewError):
    """Raised when the Markdown grammar pass fails and no preview can be produced."""


class ConfigError(MarkpreviewError):
    """Raised when a configuration file cannot be parsed or validated."""


class DiagramRendererError(MarkpreviewError):
    """Raised when the diagram tool fails to execute or produces no output."""


class DiagramRendererUnavailableError(DiagramRendererError):
    """Raised when the diagram tool is not available in the environment."""
