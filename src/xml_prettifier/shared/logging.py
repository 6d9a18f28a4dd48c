"""Structured logging utilities for XML prettifying.

Every record emitted by the character, tokenization and formatting layers
carries the component that produced it and the correlation ID of the prettify
invocation, so one failing document can be followed through the pipeline.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from xml_prettifier.shared.errors import PrettifyError


class CorrelationLogger:
    """Logger that automatically includes correlation ID and component information."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        """Initialize correlation logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: Optional correlation ID for request tracking
            component: Component name, defaults to the last part of ``name``
        """
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.component = component or name.rsplit(".", 1)[-1]

    def _with_context(self, extra: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        context: Dict[str, Any] = {
            "component": self.component,
            "correlation_id": self.correlation_id,
        }
        context.update(extra or {})
        return context

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self.logger.debug(message, extra=self._with_context(extra))

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self.logger.info(message, extra=self._with_context(extra))

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self.logger.warning(message, extra=self._with_context(extra))

    def failure(
        self,
        message: str,
        error: "PrettifyError",
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a prettify error at WARNING with its kind and source location.

        The error is not raised here; callers raise it after logging.
        """
        details: Dict[str, Any] = {
            "error_kind": error.kind,
            "byte_offset": error.byte_offset,
        }
        if error.position is not None:
            details["line"] = error.position.line
            details["column"] = error.position.column
        details.update(extra or {})
        self.warning(message, details)


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Get a correlation-aware logger instance.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID for request tracking
        component: Component name for structured logging
    """
    return CorrelationLogger(name, correlation_id, component)
