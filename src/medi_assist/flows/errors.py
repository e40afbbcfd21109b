"""
Error taxonomy for flow units, tools, orchestration and the direct transport.

Provides the exception classes that cross the core (configuration, validation,
incomplete generation, transport, upstream, agent failure), error
classification for structured logs, and the presentation-boundary mapping that
turns any AgentFailure into a generic "please try again" message.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)

GENERIC_FAILURE_MESSAGE = "An unexpected error occurred. Please try again."


class FlowError(Exception):
    """Base class for every error raised by the orchestration core."""


class ConfigurationError(FlowError):
    """Missing credential or endpoint, duplicate flow name, malformed template."""


class ValidationError(FlowError):
    """A value does not conform to its declared schema."""

    def __init__(self, field: str, message: str, schema: Optional[str] = None) -> None:
        self.field = field
        self.message = message
        self.schema = schema
        prefix = f"{schema}: " if schema else ""
        super().__init__(f"{prefix}field '{field}' {message}")


class GenerationIncomplete(FlowError):
    """Output is well-typed but empty where a non-empty value is required."""

    def __init__(self, field: str, message: str = "is empty") -> None:
        self.field = field
        super().__init__(f"field '{field}' {message}")


class TransportError(FlowError):
    """Network-level failure talking to the inference endpoint."""


class UpstreamError(FlowError):
    """The inference service itself reported an error."""

    def __init__(self, status_code: int, message: str, status: Optional[str] = None) -> None:
        self.status_code = status_code
        self.status = status
        self.message = message
        super().__init__(f"Upstream error: {status_code} - {message}")


class AgentFailure(FlowError):
    """User-safe failure raised by a flow unit; carries no internal cause."""

    def __init__(self, user_message: str = GENERIC_FAILURE_MESSAGE, flow: Optional[str] = None) -> None:
        self.user_message = user_message
        self.flow = flow
        super().__init__(user_message)


# -----------------------------------------------------------------------------
# Classification and structured logging
# -----------------------------------------------------------------------------


class ErrorCategory(str, Enum):
    """Where a failure originated; used as error_type in structured logs."""

    CALLER = "caller"  # input failed its schema
    GENERATION = "generation"  # model output invalid or incomplete
    TRANSPORT = "transport"
    UPSTREAM = "upstream"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


def classify_error(error: BaseException, *, stage: str = "output") -> ErrorCategory:
    """
    Classify an exception raised while invoking a flow.

    A ValidationError is a caller error only when it was raised while checking
    the input; anywhere else it means the model produced a nonconforming value.
    """
    if isinstance(error, ValidationError):
        return ErrorCategory.CALLER if stage == "input" else ErrorCategory.GENERATION
    if isinstance(error, GenerationIncomplete):
        return ErrorCategory.GENERATION
    if isinstance(error, TransportError):
        return ErrorCategory.TRANSPORT
    if isinstance(error, UpstreamError):
        return ErrorCategory.UPSTREAM
    if isinstance(error, ConfigurationError):
        return ErrorCategory.CONFIGURATION
    return ErrorCategory.UNKNOWN


class StructuredErrorLog(BaseModel):
    """Structured error log entry: flow, tool, error type, message, stack trace."""

    flow: str = Field(..., description="Flow unit that failed")
    tool: Optional[str] = Field(default=None, description="Tool involved if known")
    error_type: str = Field(..., description="ErrorCategory value")
    exception: str = Field(..., description="Exception class name")
    message: str = Field(..., description="Internal message (never shown to users)")
    stack_trace: Optional[str] = Field(default=None, description="Stack trace if available")
    timestamp: str = Field(default="", description="ISO timestamp")


def record_structured_error(
    flow: str,
    error: BaseException,
    tool: Optional[str] = None,
    stack_trace: Optional[str] = None,
) -> StructuredErrorLog:
    """Build a structured error log entry for a flow failure and log it via structlog."""
    entry = StructuredErrorLog(
        flow=flow,
        tool=tool,
        error_type=classify_error(error).value,
        exception=type(error).__name__,
        message=str(error),
        stack_trace=stack_trace,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
    logger.error(
        "flow_error",
        flow=entry.flow,
        tool=entry.tool,
        error_type=entry.error_type,
        exception=entry.exception,
        message=entry.message,
        stack_trace=entry.stack_trace,
    )
    return entry


def present_error(error: BaseException) -> str:
    """Message to show at the presentation boundary for a failed call."""
    if isinstance(error, AgentFailure):
        return error.user_message
    return GENERIC_FAILURE_MESSAGE
