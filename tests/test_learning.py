"""Tests for usage history, learning logs and pattern mining."""

from datetime import datetime, timedelta

from conftest import conversation
from smartroute.config import RoutingConstants
from smartroute.tools.base.conversation import WorkspaceType
from smartroute.tools.base.tool_context import ToolContext
from smartroute.tools.base.tool_interface import SuggestionPriority, ToolExecutionResult, ToolParameters
from smartroute.tools.base.tool_learning import (
    AdaptiveToolLearning,
    PatternType,
    RecommendationType,
    ToolUsageRecord,
    UsageHistory,
    analyze_usage_patterns,
    identify_optimization_opportunities,
)
from smartroute.tools.base.tool_performance_monitor import ToolPerformanceMetrics


def usage(tool_id, workspace=WorkspaceType.GENERAL, hour=10, minute=0):
    return ToolUsageRecord(
        tool_id=tool_id,
        tool_name=tool_id.title(),
        context=conversation(workspace),
        timestamp=datetime(2024, 5, 6, hour, minute),
    )


def test_history_is_bounded_fifo():
    history = UsageHistory(max_size=1000)
    for i in range(1005):
        history.append(usage(f"tool_{i}"))

    records = history.records()
    assert len(history) == 1000
    assert records[0].tool_id == "tool_5"
    assert records[-1].tool_id == "tool_1004"


def test_recent_returns_newest_in_order():
    history = UsageHistory(max_size=10)
    for i in range(5):
        history.append(usage(f"t{i}"))

    assert [r.tool_id for r in history.recent(2)] == ["t3", "t4"]
    assert history.recent(0) == []
    assert len(history.recent(50)) == 5

    history.clear()
    assert len(history) == 0


def test_learning_records_success_and_failure():
    learning = AdaptiveToolLearning()
    context = conversation()

    learning.record_tool_execution("a", ToolParameters(), context,
                                   result=ToolExecutionResult.success_result("done"), execution_time=0.2)
    learning.record_tool_execution("a", ToolParameters(), context,
                                   error=ValueError("bad input"), execution_time=0.1)
    learning.record_context_analysis(ToolContext(input="hi"), [])

    data = learning.export_learning_data()
    assert [r.success for r in data.execution_history] == [True, False]
    assert data.execution_history[1].error == "bad input"
    assert learning.context_analysis_count == 1

    learning.reset()
    assert learning.execution_count == 0
    assert learning.context_analysis_count == 0


def test_temporal_pattern_needs_more_than_two_uses():
    records = [usage("coder", hour=14, minute=m) for m in range(3)] + [usage("writer", hour=14)]
    records += [usage("coder", hour=9, minute=m) for m in range(2)]

    temporal = [p for p in analyze_usage_patterns(records) if p.type == PatternType.TEMPORAL]

    assert len(temporal) == 1
    assert temporal[0].tool_id == "coder"
    assert temporal[0].frequency == 3
    assert temporal[0].confidence == 0.75
    assert "14:00" in temporal[0].description


def test_contextual_pattern_per_workspace():
    records = [usage("coder", WorkspaceType.CODE, minute=m) for m in range(4)]
    records += [usage("writer", WorkspaceType.CREATIVE, minute=m) for m in range(3)]

    contextual = [p for p in analyze_usage_patterns(records) if p.type == PatternType.CONTEXTUAL]

    assert [(p.tool_id, p.frequency, p.confidence) for p in contextual] == [("coder", 4, 1.0)]
    assert "Code workspace" in contextual[0].description


def test_pattern_thresholds_are_configurable():
    records = [usage("coder", WorkspaceType.CODE, hour=8, minute=m) for m in range(2)]
    constants = RoutingConstants(temporal_pattern_min_count=1, workspace_pattern_min_count=1)

    kinds = {p.type for p in analyze_usage_patterns(records, constants)}

    assert kinds == {PatternType.TEMPORAL, PatternType.CONTEXTUAL}


def test_optimization_opportunities():
    metrics = {
        "flaky": ToolPerformanceMetrics(total_executions=6, successful_executions=3, success_rate=0.5),
        "young": ToolPerformanceMetrics(total_executions=5, successful_executions=1, success_rate=0.2),
        "slow": ToolPerformanceMetrics(total_executions=2, successful_executions=2, success_rate=1.0,
                                       average_execution_time=12.0),
    }
    available = ["flaky", "young", "slow", "idle_1", "idle_2"]
    records = [usage("flaky"), usage("young"), usage("slow")]

    recommendations = identify_optimization_opportunities(metrics, available, records)

    assert [(r.type, r.priority) for r in recommendations] == [
        (RecommendationType.PERFORMANCE, SuggestionPriority.HIGH),
        (RecommendationType.EFFICIENCY, SuggestionPriority.MEDIUM),
    ]
    assert "'flaky'" in recommendations[0].description
    assert "50.0%" in recommendations[0].description
    assert "12.0s" in recommendations[1].description


def test_unused_tools_flagged_above_threshold():
    available = ["a", "b", "c", "d", "e"]
    old = [usage("a", minute=0)]
    recent = [usage("b", minute=m) for m in range(50)]

    recommendations = identify_optimization_opportunities({}, available, old + recent)

    assert len(recommendations) == 1
    assert recommendations[0].type == RecommendationType.OPTIMIZATION
    # "a" fell out of the recent window
    assert recommendations[0].description.startswith("4 tools")

    assert identify_optimization_opportunities({}, available, [usage(t) for t in "abc"]) == []


def test_usage_record_serializes():
    record = usage("coder", WorkspaceType.CODE)
    record = ToolUsageRecord(
        tool_id=record.tool_id,
        tool_name=record.tool_name,
        context=record.context,
        timestamp=record.timestamp + timedelta(minutes=1),
    )

    data = record.to_dict()
    assert data["tool_id"] == "coder"
    assert data["context"]["workspace_type"] == "code"
    assert data["timestamp"] == "2024-05-06T10:01:00"
    assert data["temporal_context"] is None


def test_only_mined_pattern_kinds_exist():
    assert {kind.name for kind in PatternType} == {"TEMPORAL", "CONTEXTUAL"}
