"""
Tool error types for the SmartRoute execution engine.
"""

from enum import Enum
from typing import Optional


class ToolErrorKind(Enum):
    """Why a tool invocation was refused or failed."""
    TOOL_NOT_AVAILABLE = "tool_not_available"
    CONTEXT_NOT_SUITABLE = "context_not_suitable"
    INVALID_PARAMETERS = "invalid_parameters"
    PERFORMANCE_THRESHOLD_NOT_MET = "performance_threshold_not_met"
    EXECUTION_FAILED = "execution_failed"


class ToolError(Exception):
    """Base class for tool-scoped, non-fatal errors."""

    kind: ToolErrorKind = ToolErrorKind.EXECUTION_FAILED
    message_template = "Tool '{tool}' failed"

    def __init__(self, tool_name: str, detail: Optional[str] = None):
        self.tool_name = tool_name
        self.detail = detail
        message = self.message_template.format(tool=tool_name)
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    @property
    def is_validation_error(self) -> bool:
        """True if raised by the pre-execution gate."""
        return self.kind != ToolErrorKind.EXECUTION_FAILED


class ToolNotAvailableError(ToolError):
    kind = ToolErrorKind.TOOL_NOT_AVAILABLE
    message_template = "Tool '{tool}' is not available"


class ContextNotSuitableError(ToolError):
    kind = ToolErrorKind.CONTEXT_NOT_SUITABLE
    message_template = "Context not suitable for tool '{tool}'"


class InvalidParametersError(ToolError):
    kind = ToolErrorKind.INVALID_PARAMETERS
    message_template = "Invalid parameters for tool '{tool}'"


class PerformanceThresholdNotMetError(ToolError):
    kind = ToolErrorKind.PERFORMANCE_THRESHOLD_NOT_MET
    message_template = "Performance threshold not met for tool '{tool}'"


class ToolExecutionFailedError(ToolError):
    kind = ToolErrorKind.EXECUTION_FAILED
    message_template = "Execution failed for tool '{tool}'"
