# fibr_gen/report_generator/errors.py
"""
Error definitions for report generation.

Every failure inside the engine is raised as a ReportGenerationError subclass.
Context (sheet, block, view, label ...) travels with the exception so the
message always names the offending configuration item.

Usage:
    raise MissingAxisError("matrix block needs both axes", block="SalesMatrix")
"""

from typing import Any, Dict


class ReportGenerationError(Exception):
    """Base class for all report generation failures."""

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context: Dict[str, Any] = dict(context)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"{self.message} ({ctx_str})" if ctx_str else self.message

    def with_context(self, **context: Any) -> "ReportGenerationError":
        """
        Attach additional context without overwriting what is already known.

        Inner layers know the block, outer layers know the sheet; the first
        value recorded for a key wins.
        """
        for key, value in context.items():
            self.context.setdefault(key, value)
        self.args = (self._format_message(),)
        return self

    def __str__(self) -> str:
        return self._format_message()

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form for logs and API responses."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            **{k: str(v) for k, v in self.context.items()},
        }


# === Configuration / reference errors (always fatal) ===

class ConfigError(ReportGenerationError):
    pass


class ConfigLoadError(ConfigError):
    pass


class ConfigValidationError(ConfigError):
    pass


class UnknownViewError(ConfigError):
    pass


class UnknownLabelError(ConfigError):
    pass


class UnknownParamLabelError(ConfigError):
    pass


class MissingAxisError(ConfigError):
    pass


class InvalidRangeError(ConfigError):
    pass


class UnsupportedBlockTypeError(ConfigError):
    pass


class DynamicDateError(ConfigError):
    pass


# === Data access ===

class DataFetchError(ReportGenerationError):
    pass


class ViewNotFoundError(DataFetchError):
    """Raised by a fetcher that has no data for the requested view."""


# === Document ===

class DocumentError(ReportGenerationError):
    pass


class SheetNotFoundError(DocumentError):
    pass
