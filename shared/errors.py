"""
Shared error handling for the memoizer.
"""

from typing import Dict, Any, Optional
from opentelemetry import trace
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class MemoizerException(Exception):
    """Base exception for memoizer errors."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class ValidationError(MemoizerException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None,
                 code: str = "VALIDATION_ERROR"):
        super().__init__(code, message, details)


class ParseError(ValidationError):
    """Text could not be decoded into a number."""

    def __init__(self, text: str, reason: str = "invalid numeric literal", details: Optional[Dict[str, Any]] = None):
        self.text = text
        merged = {"input": text, "reason": reason}
        merged.update(details or {})
        super().__init__(f"cannot parse {text!r}: {reason}", merged, code="PARSE_ERROR")


class DomainError(ValidationError):
    """Argument outside the domain a computation is defined on."""

    def __init__(self, message: str = "Argument out of domain", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="DOMAIN_ERROR")


class KeyHashError(MemoizerException, TypeError):
    """An argument could not be used as part of a cache key."""

    def __init__(self, position: int, value: Any):
        super().__init__(
            "KEY_HASH_ERROR",
            f"argument {position} of type {type(value).__name__} is not hashable",
            {"position": position, "type": type(value).__name__},
        )
