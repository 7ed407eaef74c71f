"""
Analytics and export snapshots for the SmartRoute tool system.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .tool_interface import Tool
from .tool_learning import AdaptiveLearningData, IntelligentRecommendation, ToolUsageRecord, UsagePattern
from .tool_performance_monitor import ToolPerformanceMetrics


@dataclass(frozen=True)
class ToolAnalytics:
    """Aggregate view of tool usage and performance."""

    total_tool_usage: int
    unique_tools_used: int
    average_execution_time: float
    overall_success_rate: float
    most_used_tools: Tuple[Tuple[str, int], ...] = ()
    performance_insights: Tuple[str, ...] = ()
    usage_patterns: Tuple[UsagePattern, ...] = ()
    recommendations: Tuple[IntelligentRecommendation, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_tool_usage": self.total_tool_usage,
            "unique_tools_used": self.unique_tools_used,
            "average_execution_time": self.average_execution_time,
            "overall_success_rate": self.overall_success_rate,
            "most_used_tools": [
                {"tool_id": tool_id, "count": count} for tool_id, count in self.most_used_tools
            ],
            "performance_insights": list(self.performance_insights),
            "usage_patterns": [p.to_dict() for p in self.usage_patterns],
            "recommendations": [r.to_dict() for r in self.recommendations],
        }


@dataclass(frozen=True)
class ToolConfiguration:
    """Effective tool configuration."""

    enabled_tools: Tuple[str, ...] = ()
    tool_settings: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    performance_thresholds: Dict[str, float] = field(default_factory=dict)
    adaptive_learning_enabled: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled_tools": list(self.enabled_tools),
            "tool_settings": {k: dict(v) for k, v in self.tool_settings.items()},
            "performance_thresholds": dict(self.performance_thresholds),
            "adaptive_learning_enabled": self.adaptive_learning_enabled,
        }


@dataclass(frozen=True)
class ToolDataExport:
    """Full export of registry, history, metrics, learning data and configuration."""

    tool_registry: Tuple[Tool, ...]
    usage_history: Tuple[ToolUsageRecord, ...]
    performance_metrics: Dict[str, ToolPerformanceMetrics]
    learning_data: AdaptiveLearningData
    configuration: ToolConfiguration

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tool_registry": [tool.to_dict() for tool in self.tool_registry],
            "usage_history": [record.to_dict() for record in self.usage_history],
            "performance_metrics": {
                tool_id: metrics.to_dict() for tool_id, metrics in self.performance_metrics.items()
            },
            "learning_data": self.learning_data.to_dict(),
            "configuration": self.configuration.to_dict(),
        }


def calculate_average_execution_time(metrics: Mapping[str, ToolPerformanceMetrics],
                                     history_size: int) -> float:
    """Mean execution time across all tools; 0 when nothing has been used."""
    if history_size == 0:
        return 0.0

    total_time = sum(m.total_execution_time for m in metrics.values())
    total_executions = sum(m.total_executions for m in metrics.values())
    return total_time / total_executions if total_executions > 0 else 0.0


def calculate_overall_success_rate(metrics: Mapping[str, ToolPerformanceMetrics]) -> float:
    """Success rate across all tools; 1.0 when there are no executions."""
    total_successful = sum(m.successful_executions for m in metrics.values())
    total_executions = sum(m.total_executions for m in metrics.values())
    return total_successful / total_executions if total_executions > 0 else 1.0


def most_used_tools(records: Sequence[ToolUsageRecord], limit: int = 5) -> List[Tuple[str, int]]:
    return Counter(r.tool_id for r in records).most_common(limit)


def generate_performance_insights(metrics: Mapping[str, ToolPerformanceMetrics]) -> List[str]:
    insights: List[str] = []
    if not metrics:
        return insights

    total_executions = sum(m.total_executions for m in metrics.values())
    average_score = sum(m.overall_score for m in metrics.values()) / len(metrics)

    insights.append(f"Total tool executions: {total_executions}")
    insights.append(f"Average performance score: {average_score:.2f}")

    best_tool = max(metrics.items(), key=lambda item: item[1].overall_score)[0]
    insights.append(f"Best performing tool: {best_tool}")

    return insights
