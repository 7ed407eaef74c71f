"""
Base tool system components for SmartRoute.
"""

from .conversation import ConversationContext, TemporalContext, UserPreferences, WorkspaceType
from .tool_errors import (
    ContextNotSuitableError,
    InvalidParametersError,
    PerformanceThresholdNotMetError,
    ToolError,
    ToolExecutionFailedError,
    ToolNotAvailableError,
)
from .tool_interface import (
    ExecutionStrategy,
    Tool,
    ToolExecutionResult,
    ToolHandler,
    ToolParameters,
    ToolSuggestion,
)
from .tool_manager import ControllerState, SmartToolController
from .tool_registry import ToolRegistry
from .tool_router import ExecutionRouter, select_strategy

__all__ = [
    'ConversationContext',
    'TemporalContext',
    'UserPreferences',
    'WorkspaceType',
    'ToolError',
    'ToolNotAvailableError',
    'ContextNotSuitableError',
    'InvalidParametersError',
    'PerformanceThresholdNotMetError',
    'ToolExecutionFailedError',
    'ExecutionStrategy',
    'Tool',
    'ToolExecutionResult',
    'ToolHandler',
    'ToolParameters',
    'ToolSuggestion',
    'ControllerState',
    'SmartToolController',
    'ToolRegistry',
    'ExecutionRouter',
    'select_strategy'
]
