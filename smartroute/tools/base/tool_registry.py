"""
Tool registry for the SmartRoute tool system.
"""

import threading
from typing import Any, Dict, List, Mapping, Optional, Set
import logging

from ...config import RoutingConstants
from .conversation import ConversationContext
from .tool_interface import Tool, ToolCapability, ToolCategory
from .tool_performance_monitor import ToolPerformanceMetrics, ToolPerformanceTracker


class ToolRegistry:
    """
    Registry of tool descriptors keyed by tool id.

    Registration also makes sure the performance tracker holds exactly one
    record per registered id.
    """

    def __init__(self,
                 performance_tracker: Optional[ToolPerformanceTracker] = None,
                 constants: Optional[RoutingConstants] = None):
        """Initialize tool registry."""
        self.logger = logging.getLogger("smartroute.tools.registry")
        self.constants = constants or RoutingConstants()
        # an empty tracker is falsy, so test for None explicitly
        if performance_tracker is None:
            performance_tracker = ToolPerformanceTracker(self.constants)
        self.performance_tracker = performance_tracker
        self._tools: Dict[str, Tool] = {}
        self._categories: Dict[ToolCategory, Set[str]] = {}
        self._capabilities: Dict[ToolCapability, Set[str]] = {}
        self._lock = threading.RLock()

    def register(self, tool: Tool) -> bool:
        """
        Register a tool, replacing any tool with the same id.

        Returns:
            True if the id was new, False if an existing tool was replaced
        """
        if not tool.id or not tool.name:
            raise ValueError(f"Tool missing required attributes: {tool!r}")

        with self._lock:
            previous = self._tools.get(tool.id)
            if previous is not None:
                self._unindex(previous)
                self.logger.info(f"Re-registering tool: {tool.id}")

            self._tools[tool.id] = tool

            self._categories.setdefault(tool.category, set()).add(tool.id)
            for capability in tool.capabilities:
                self._capabilities.setdefault(capability, set()).add(tool.id)

        self.performance_tracker.ensure_tool(tool.id)
        self.logger.info(f"Registered tool: {tool.id} ({tool.category.value})")
        return previous is None

    def _unindex(self, tool: Tool) -> None:
        self._categories.get(tool.category, set()).discard(tool.id)
        for capability in tool.capabilities:
            self._capabilities.get(capability, set()).discard(tool.id)

    def lookup(self, tool_id: str) -> Optional[Tool]:
        """Get a tool by id."""
        with self._lock:
            return self._tools.get(tool_id)

    def __contains__(self, tool_id: str) -> bool:
        with self._lock:
            return tool_id in self._tools

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)

    def get_all_tools(self) -> List[Tool]:
        """All registered tools in registration order."""
        with self._lock:
            return list(self._tools.values())

    def list_available(self,
                       context: ConversationContext,
                       metrics: Optional[Mapping[str, ToolPerformanceMetrics]] = None) -> List[Tool]:
        """
        Tools usable in `context`, best first.

        A tool qualifies when its required context holds and it passes the
        performance admission threshold. Ordering is by relevance for the
        context, then by overall performance score.
        """
        metrics = metrics if metrics is not None else self.performance_tracker.snapshot()

        candidates = [
            tool for tool in self.get_all_tools()
            if tool.is_available_for_context(context)
            and tool.meets_performance_threshold(metrics.get(tool.id), self.constants)
        ]

        def sort_key(tool: Tool):
            tool_metrics = metrics.get(tool.id)
            score = tool_metrics.overall_score if tool_metrics else 0.0
            return (-tool.calculate_relevance(context), -score)

        candidates.sort(key=sort_key)
        return candidates

    def find_tools_by_capability(self, capability: ToolCapability) -> List[str]:
        """Ids of tools that declare a capability."""
        with self._lock:
            return sorted(self._capabilities.get(capability, set()))

    def get_tools_by_category(self, category: ToolCategory) -> List[str]:
        """Ids of tools in a category."""
        with self._lock:
            return sorted(self._categories.get(category, set()))

    def get_registry_stats(self) -> Dict[str, Any]:
        """Get registry statistics."""
        with self._lock:
            return {
                "total_tools": len(self._tools),
                "categories": len([c for c, ids in self._categories.items() if ids]),
                "category_counts": {
                    category.value: len(ids)
                    for category, ids in self._categories.items() if ids
                },
                "capabilities": len([c for c, ids in self._capabilities.items() if ids]),
            }
