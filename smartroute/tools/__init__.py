"""
SmartRoute tools system - tool descriptors, routing and built-in tools.
"""

from .base.tool_interface import Tool, ToolExecutionResult, ToolParameters
from .base.tool_manager import SmartToolController
from .base.tool_registry import ToolRegistry

__all__ = [
    'Tool',
    'ToolExecutionResult',
    'ToolParameters',
    'SmartToolController',
    'ToolRegistry'
]
