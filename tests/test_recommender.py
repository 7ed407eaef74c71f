"""Tests for tool scoring and ranking."""

import pytest

from conftest import make_tool
from smartroute.tools.base.tool_context import (
    ContextAnalysis,
    ResourceRequirements,
    TaskComplexity,
    TaskDomain,
    TaskUrgency,
    UserIntent,
)
from smartroute.tools.base.tool_interface import (
    SuggestionPriority,
    ToolCapability,
    ToolCategory,
    ToolComplexity,
)
from smartroute.tools.base.tool_performance_monitor import ToolPerformanceTracker
from smartroute.tools.base.tool_recommender import (
    ToolRecommendationEngine,
    determine_priority,
    is_tool_relevant,
)


def analysis(complexity=TaskComplexity.LOW, domain=TaskDomain.GENERAL, urgency=TaskUrgency.LOW, **resources):
    return ContextAnalysis(
        complexity=complexity,
        domain=domain,
        urgency=urgency,
        resource_requirements=ResourceRequirements(**resources),
    )


@pytest.fixture
def engine():
    return ToolRecommendationEngine()


def test_debug_request_suggests_code_tool(engine):
    code_tool = make_tool("code_analysis", ToolCategory.CODE_PROCESSING)

    suggestions = engine.generate_recommendations(
        UserIntent.PROBLEM_SOLVING,
        analysis(domain=TaskDomain.PROGRAMMING),
        [code_tool],
        {},
    )

    assert len(suggestions) == 1
    assert suggestions[0].tool is code_tool
    assert suggestions[0].confidence == pytest.approx(0.6)
    assert suggestions[0].priority.value >= SuggestionPriority.MEDIUM.value


@pytest.mark.parametrize("score, urgency, expected", [
    (0.85, TaskUrgency.HIGH, SuggestionPriority.CRITICAL),
    (0.75, TaskUrgency.HIGH, SuggestionPriority.HIGH),
    (0.8, TaskUrgency.MEDIUM, SuggestionPriority.HIGH),
    (0.79, TaskUrgency.MEDIUM, SuggestionPriority.MEDIUM),
    (0.9, TaskUrgency.LOW, SuggestionPriority.MEDIUM),
    (0.6, TaskUrgency.HIGH, SuggestionPriority.MEDIUM),
    (0.59, TaskUrgency.HIGH, SuggestionPriority.LOW),
])
def test_determine_priority(score, urgency, expected):
    assert determine_priority(score, urgency) == expected


def test_relevance_table():
    code = make_tool("c", ToolCategory.CODE_PROCESSING)
    research = make_tool("r", ToolCategory.RESEARCH)
    creative = make_tool("cr", ToolCategory.CREATIVE)
    text = make_tool("t", ToolCategory.TEXT_PROCESSING)

    assert is_tool_relevant(code, UserIntent.OPTIMIZATION, TaskDomain.PROGRAMMING)
    assert not is_tool_relevant(code, UserIntent.OPTIMIZATION, TaskDomain.GENERAL)
    assert is_tool_relevant(research, UserIntent.INFORMATION, TaskDomain.CREATIVE)
    assert not is_tool_relevant(research, UserIntent.ANALYSIS, TaskDomain.GENERAL)
    assert is_tool_relevant(creative, UserIntent.CREATION, TaskDomain.GENERAL)
    assert not is_tool_relevant(creative, UserIntent.ANALYSIS, TaskDomain.PROGRAMMING)
    # text processing is the fallback for everything
    assert is_tool_relevant(text, UserIntent.ASSISTANCE, TaskDomain.RESEARCH)


def test_at_most_five_sorted_by_priority_then_confidence(engine):
    tools = [
        make_tool(f"text_{i}", complexity=complexity)
        for i, complexity in enumerate([ToolComplexity.LOW, ToolComplexity.MEDIUM, ToolComplexity.HIGH] * 3)
    ]

    suggestions = engine.generate_recommendations(
        UserIntent.ASSISTANCE, analysis(complexity=TaskComplexity.LOW), tools, {}
    )

    assert len(suggestions) == 5
    keys = [(-s.priority.value, -s.confidence) for s in suggestions]
    assert keys == sorted(keys)
    # exact-tier matches score 0.7 and come first
    assert all(s.tool.complexity == ToolComplexity.LOW for s in suggestions[:3])


def test_performance_bonus_requires_history(engine):
    seasoned = make_tool("seasoned")
    fresh = make_tool("fresh")
    tracker = ToolPerformanceTracker()
    tracker.ensure_tool("fresh")
    for _ in range(10):
        tracker.record("seasoned", 0.0, True)

    metrics = tracker.snapshot()
    fresh_score = engine.calculate_tool_score(fresh, analysis(), metrics["fresh"])
    seasoned_score = engine.calculate_tool_score(seasoned, analysis(), metrics["seasoned"])

    # medium tool vs low request: adjacent tier
    assert fresh_score == pytest.approx(0.6)
    assert seasoned_score == pytest.approx(min(1.0, 0.6 + metrics["seasoned"].overall_score * 0.3))


def test_resource_bonuses(engine):
    tool = make_tool("searcher", ToolCategory.RESEARCH, complexity=ToolComplexity.LOW,
                     capabilities={ToolCapability.SEARCH, ToolCapability.ANALYSIS})

    score = engine.calculate_tool_score(tool, analysis(compute_intensive=True, network_access=True), None)

    assert score == pytest.approx(0.9)


def test_score_is_clipped(engine):
    tool = make_tool("maxed", complexity=ToolComplexity.LOW,
                     capabilities={ToolCapability.SEARCH, ToolCapability.ANALYSIS})
    tracker = ToolPerformanceTracker()
    for _ in range(100):
        tracker.record("maxed", 0.0, True)

    score = engine.calculate_tool_score(
        tool, analysis(compute_intensive=True, network_access=True), tracker.get("maxed")
    )

    assert score == 1.0


def test_reason_by_category(engine):
    assert "code" in engine.generate_reason(make_tool("c", ToolCategory.CODE_PROCESSING)).lower()
    assert engine.generate_reason(make_tool("a", ToolCategory.AUTOMATION)) == "Suitable for this type of task"
