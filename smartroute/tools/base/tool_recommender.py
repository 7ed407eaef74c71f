"""
Tool recommendation engine: ranks candidate tools for an analyzed request.
"""

from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple
import logging

from ...config import RoutingConstants
from .conversation import UserPreferences
from .tool_context import ContextAnalysis, TaskDomain, TaskUrgency, UserIntent
from .tool_interface import (
    SuggestionPriority,
    Tool,
    ToolCapability,
    ToolCategory,
    ToolSuggestion,
)
from .tool_performance_monitor import ToolPerformanceMetrics


ANY_DOMAIN: Optional[TaskDomain] = None

# (category, intent) -> domains the pair is relevant in; None means any domain
RELEVANCE_TABLE: Dict[Tuple[ToolCategory, UserIntent], Optional[FrozenSet[TaskDomain]]] = {
    (ToolCategory.CODE_PROCESSING, UserIntent.ANALYSIS): frozenset({TaskDomain.PROGRAMMING}),
    (ToolCategory.CODE_PROCESSING, UserIntent.PROBLEM_SOLVING): frozenset({TaskDomain.PROGRAMMING}),
    (ToolCategory.CODE_PROCESSING, UserIntent.OPTIMIZATION): frozenset({TaskDomain.PROGRAMMING}),
    (ToolCategory.RESEARCH, UserIntent.INFORMATION): ANY_DOMAIN,
    (ToolCategory.RESEARCH, UserIntent.ANALYSIS): frozenset({TaskDomain.RESEARCH}),
    (ToolCategory.TEXT_PROCESSING, UserIntent.ANALYSIS): ANY_DOMAIN,
    (ToolCategory.CREATIVE, UserIntent.CREATION): frozenset({TaskDomain.CREATIVE, TaskDomain.GENERAL}),
    (ToolCategory.FILE_PROCESSING, UserIntent.ANALYSIS): ANY_DOMAIN,
    (ToolCategory.FILE_PROCESSING, UserIntent.INFORMATION): ANY_DOMAIN,
}

CATEGORY_REASONS = {
    ToolCategory.TEXT_PROCESSING: "Excellent for text analysis and processing tasks",
    ToolCategory.CODE_PROCESSING: "Specialized for code analysis and programming tasks",
    ToolCategory.RESEARCH: "Perfect for research and information gathering",
    ToolCategory.FILE_PROCESSING: "Designed for file analysis and processing",
    ToolCategory.CREATIVE: "Ideal for creative and generative tasks",
}


def is_tool_relevant(tool: Tool, intent: UserIntent, domain: TaskDomain) -> bool:
    """Relevance of a tool category for an (intent, domain) pair."""
    key = (tool.category, intent)
    if key in RELEVANCE_TABLE:
        domains = RELEVANCE_TABLE[key]
        if domains is ANY_DOMAIN or domain in domains:
            return True
    # Text processing is the default fallback
    return tool.category == ToolCategory.TEXT_PROCESSING


def determine_priority(score: float, urgency: TaskUrgency) -> SuggestionPriority:
    if score >= 0.8 and urgency == TaskUrgency.HIGH:
        return SuggestionPriority.CRITICAL
    if score >= 0.7 and urgency == TaskUrgency.HIGH:
        return SuggestionPriority.HIGH
    if score >= 0.8 and urgency == TaskUrgency.MEDIUM:
        return SuggestionPriority.HIGH
    if score >= 0.6:
        return SuggestionPriority.MEDIUM
    return SuggestionPriority.LOW


class ToolRecommendationEngine:
    """Scores relevant tools and returns the top suggestions."""

    def __init__(self, constants: Optional[RoutingConstants] = None):
        self.logger = logging.getLogger("smartroute.tools.recommender")
        self.constants = constants or RoutingConstants()

    def generate_recommendations(self,
                                 intent: UserIntent,
                                 analysis: ContextAnalysis,
                                 available_tools: Sequence[Tool],
                                 performance: Mapping[str, ToolPerformanceMetrics],
                                 preferences: Optional[UserPreferences] = None) -> List[ToolSuggestion]:
        """
        Rank tools for an analyzed request.

        Args:
            intent: Predicted user intent
            analysis: Context analysis of the request
            available_tools: Candidate tools
            performance: Snapshot of performance metrics by tool id
            preferences: Optional user preferences

        Returns:
            At most `max_suggestions` suggestions sorted by priority, then confidence
        """
        suggestions: List[ToolSuggestion] = []

        for tool in available_tools:
            if not is_tool_relevant(tool, intent, analysis.domain):
                continue

            score = self.calculate_tool_score(tool, analysis, performance.get(tool.id))
            suggestions.append(ToolSuggestion(
                tool=tool,
                reason=self.generate_reason(tool),
                confidence=score,
                priority=determine_priority(score, analysis.urgency),
            ))

        suggestions.sort(key=lambda s: s.sort_key)
        top = suggestions[:self.constants.max_suggestions]

        self.logger.debug(
            f"Ranked {len(suggestions)} relevant tools for intent={intent.value} "
            f"domain={analysis.domain.value}: {[s.tool.id for s in top if s.tool]}"
        )
        return top

    def calculate_tool_score(self,
                             tool: Tool,
                             analysis: ContextAnalysis,
                             metrics: Optional[ToolPerformanceMetrics]) -> float:
        score = 0.5

        if metrics is not None and metrics.has_history:
            score += metrics.overall_score * 0.3

        tier_distance = abs(tool.complexity.value - analysis.complexity.value)
        if tier_distance == 0:
            score += 0.2
        elif tier_distance == 1:
            score += 0.1

        requirements = analysis.resource_requirements
        if requirements.compute_intensive and tool.has_capability(ToolCapability.ANALYSIS):
            score += 0.1
        if requirements.network_access and tool.has_capability(ToolCapability.SEARCH):
            score += 0.1

        # Rounded so that e.g. 0.7 + 0.1 lands on the 0.8 priority boundary
        return min(1.0, max(0.0, round(score, 9)))

    def generate_reason(self, tool: Tool) -> str:
        return CATEGORY_REASONS.get(tool.category, "Suitable for this type of task")
