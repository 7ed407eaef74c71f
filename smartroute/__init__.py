"""
SmartRoute - contextual tool routing and execution engine

Suggests tools for a conversation, runs them through direct, ensemble,
parallel or cascading execution and learns from their performance.
"""

__version__ = "0.1.0"
__description__ = "Contextual tool routing and execution engine"

from .tools.base.tool_manager import SmartToolController

__all__ = ["SmartToolController"]
