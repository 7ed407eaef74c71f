"""
Usage history, adaptive learning records and pattern mining for SmartRoute.
"""

import threading
from collections import Counter, defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
import logging

from ...config import RoutingConstants
from .conversation import ConversationContext, TemporalContext
from .tool_context import ToolContext
from .tool_interface import SuggestionPriority, ToolExecutionResult, ToolParameters, ToolSuggestion
from .tool_performance_monitor import ToolPerformanceMetrics


@dataclass(frozen=True)
class ToolUsageRecord:
    """One tool invocation, logged when the invocation starts."""

    tool_id: str
    tool_name: str
    context: ConversationContext
    timestamp: datetime = field(default_factory=datetime.now)
    temporal_context: Optional[TemporalContext] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tool_id": self.tool_id,
            "tool_name": self.tool_name,
            "context": self.context.to_dict(),
            "timestamp": self.timestamp.isoformat(),
            "temporal_context": self.temporal_context.to_dict() if self.temporal_context else None,
        }


class UsageHistory:
    """Bounded FIFO log of tool usage records; oldest records are evicted first."""

    def __init__(self, max_size: int = 1000):
        self.max_size = max_size
        self._records: Deque[ToolUsageRecord] = deque(maxlen=max_size)
        self._lock = threading.RLock()

    def append(self, record: ToolUsageRecord) -> None:
        with self._lock:
            self._records.append(record)

    def recent(self, count: int) -> List[ToolUsageRecord]:
        """The most recent `count` records, oldest first."""
        if count <= 0:
            return []
        with self._lock:
            return list(self._records)[-count:]

    def records(self) -> List[ToolUsageRecord]:
        with self._lock:
            return list(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


@dataclass(frozen=True)
class ContextAnalysisRecord:
    """Suggestions produced for one context."""
    context: ToolContext
    suggestions: Tuple[ToolSuggestion, ...]
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "context": self.context.to_dict(),
            "suggestions": [s.to_dict() for s in self.suggestions],
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class ExecutionRecord:
    """Outcome of one tool execution; `result` is None when it raised."""
    tool_id: str
    parameters: ToolParameters
    context: ConversationContext
    result: Optional[ToolExecutionResult] = None
    error: Optional[str] = None
    execution_time: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def success(self) -> bool:
        return self.result is not None and self.result.success

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tool_id": self.tool_id,
            "parameters": self.parameters.to_dict(),
            "context": self.context.to_dict(),
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
            "execution_time": self.execution_time,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class AdaptiveLearningData:
    """Exported learning logs."""
    context_analysis_history: Tuple[ContextAnalysisRecord, ...] = ()
    execution_history: Tuple[ExecutionRecord, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "context_analysis_history": [r.to_dict() for r in self.context_analysis_history],
            "execution_history": [r.to_dict() for r in self.execution_history],
        }


class AdaptiveToolLearning:
    """Append-only logs of suggestion rounds and executions."""

    def __init__(self):
        self.logger = logging.getLogger("smartroute.tools.learning")
        self._context_analysis_history: List[ContextAnalysisRecord] = []
        self._execution_history: List[ExecutionRecord] = []
        self._lock = threading.RLock()

    def record_context_analysis(self, context: ToolContext, suggestions: Sequence[ToolSuggestion]) -> None:
        with self._lock:
            self._context_analysis_history.append(
                ContextAnalysisRecord(context=context, suggestions=tuple(suggestions))
            )

    def record_tool_execution(self,
                              tool_id: str,
                              parameters: ToolParameters,
                              context: ConversationContext,
                              result: Optional[ToolExecutionResult] = None,
                              error: Optional[BaseException] = None,
                              execution_time: float = 0.0) -> None:
        record = ExecutionRecord(
            tool_id=tool_id,
            parameters=parameters,
            context=context,
            result=result,
            error=(str(error) or type(error).__name__) if error is not None else None,
            execution_time=execution_time,
        )
        with self._lock:
            self._execution_history.append(record)

    def export_learning_data(self) -> AdaptiveLearningData:
        with self._lock:
            return AdaptiveLearningData(
                context_analysis_history=tuple(self._context_analysis_history),
                execution_history=tuple(self._execution_history),
            )

    def reset(self) -> None:
        with self._lock:
            self._context_analysis_history.clear()
            self._execution_history.clear()
        self.logger.info("Adaptive learning data reset")

    @property
    def context_analysis_count(self) -> int:
        with self._lock:
            return len(self._context_analysis_history)

    @property
    def execution_count(self) -> int:
        with self._lock:
            return len(self._execution_history)


class PatternType(Enum):
    """Kinds of usage pattern."""
    TEMPORAL = "temporal"
    CONTEXTUAL = "contextual"


@dataclass(frozen=True)
class UsagePattern:
    """A recurring way tools are used."""
    type: PatternType
    description: str
    confidence: float
    frequency: int
    tool_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "description": self.description,
            "confidence": self.confidence,
            "frequency": self.frequency,
            "tool_id": self.tool_id,
        }


class RecommendationType(Enum):
    """Kinds of intelligent recommendation."""
    PERFORMANCE = "performance"
    EFFICIENCY = "efficiency"
    OPTIMIZATION = "optimization"
    PRODUCTIVITY = "productivity"
    WORKFLOW = "workflow"


@dataclass(frozen=True)
class IntelligentRecommendation:
    """Advice derived from usage and performance data."""
    type: RecommendationType
    title: str
    description: str
    priority: SuggestionPriority
    action: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.name.lower(),
            "action": self.action,
        }


def analyze_usage_patterns(records: Iterable[ToolUsageRecord],
                           constants: Optional[RoutingConstants] = None) -> List[UsagePattern]:
    """Mine temporal (hour of day) and contextual (workspace) patterns."""
    constants = constants or RoutingConstants()
    records = list(records)
    patterns: List[UsagePattern] = []

    by_hour: Dict[int, List[ToolUsageRecord]] = defaultdict(list)
    for record in records:
        by_hour[record.timestamp.hour].append(record)

    for hour in sorted(by_hour):
        hour_records = by_hour[hour]
        tool_id, count = Counter(r.tool_id for r in hour_records).most_common(1)[0]
        if count > constants.temporal_pattern_min_count:
            patterns.append(UsagePattern(
                type=PatternType.TEMPORAL,
                description=f"Tool '{tool_id}' commonly used at {hour}:00",
                confidence=count / len(hour_records),
                frequency=count,
                tool_id=tool_id,
            ))

    by_workspace: Dict[Any, List[ToolUsageRecord]] = defaultdict(list)
    for record in records:
        by_workspace[record.context.workspace_type].append(record)

    for workspace, workspace_records in by_workspace.items():
        for tool_id, count in Counter(r.tool_id for r in workspace_records).items():
            if count > constants.workspace_pattern_min_count:
                patterns.append(UsagePattern(
                    type=PatternType.CONTEXTUAL,
                    description=f"Tool '{tool_id}' frequently used in {workspace.display_name} workspace",
                    confidence=count / len(workspace_records),
                    frequency=count,
                    tool_id=tool_id,
                ))

    return patterns


def identify_optimization_opportunities(metrics: Mapping[str, ToolPerformanceMetrics],
                                        available_tool_ids: Sequence[str],
                                        records: Sequence[ToolUsageRecord],
                                        constants: Optional[RoutingConstants] = None) -> List[IntelligentRecommendation]:
    """Flag underperforming, slow and unused tools."""
    constants = constants or RoutingConstants()
    recommendations: List[IntelligentRecommendation] = []

    for tool_id, tool_metrics in metrics.items():
        if (tool_metrics.success_rate < constants.low_success_rate and
                tool_metrics.total_executions > constants.low_success_min_executions):
            recommendations.append(IntelligentRecommendation(
                type=RecommendationType.PERFORMANCE,
                title="Tool Performance Issue",
                description=f"Tool '{tool_id}' has low success rate ({tool_metrics.success_rate * 100:.1f}%)",
                priority=SuggestionPriority.HIGH,
                action="Consider alternative tools or check configuration",
            ))

        if tool_metrics.average_execution_time > constants.slow_execution_time:
            recommendations.append(IntelligentRecommendation(
                type=RecommendationType.EFFICIENCY,
                title="Slow Tool Execution",
                description=f"Tool '{tool_id}' takes {tool_metrics.average_execution_time:.1f}s on average",
                priority=SuggestionPriority.MEDIUM,
                action="Consider optimizing parameters or using alternative approach",
            ))

    recently_used = {r.tool_id for r in list(records)[-constants.unused_tools_window:]}
    unused = [tool_id for tool_id in available_tool_ids if tool_id not in recently_used]

    if len(unused) > constants.unused_tools_threshold:
        recommendations.append(IntelligentRecommendation(
            type=RecommendationType.OPTIMIZATION,
            title="Unused Tools",
            description=f"{len(unused)} tools haven't been used recently",
            priority=SuggestionPriority.LOW,
            action="Consider exploring these tools or disabling them to improve performance",
        ))

    return recommendations
