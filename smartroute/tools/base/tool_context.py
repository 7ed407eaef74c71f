"""
Tool context snapshots and request classification for SmartRoute.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING
import logging

from .conversation import (
    ConversationContext,
    SystemPerformanceMetrics,
    TemporalContext,
    UserPreferences,
)

if TYPE_CHECKING:
    from .tool_interface import Tool
    from .tool_learning import ToolUsageRecord


class TaskComplexity(Enum):
    """Complexity of the request."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3


class TaskDomain(Enum):
    """Domain the request belongs to."""
    PROGRAMMING = "programming"
    RESEARCH = "research"
    CREATIVE = "creative"
    ANALYSIS = "analysis"
    GENERAL = "general"


class TaskUrgency(Enum):
    """How soon the user needs an answer."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3


class UserIntent(Enum):
    """Coarse user intent."""
    ANALYSIS = "analysis"
    CREATION = "creation"
    INFORMATION = "information"
    PROBLEM_SOLVING = "problem-solving"
    OPTIMIZATION = "optimization"
    ASSISTANCE = "assistance"


@dataclass(frozen=True)
class ResourceRequirements:
    """Resources the request is likely to need."""
    compute_intensive: bool = False
    network_access: bool = False
    file_access: bool = False
    memory_intensive: bool = False


@dataclass(frozen=True)
class ContextAnalysis:
    """Classification of a tool context."""
    complexity: TaskComplexity
    domain: TaskDomain
    urgency: TaskUrgency
    resource_requirements: ResourceRequirements

    def to_dict(self) -> Dict[str, Any]:
        return {
            "complexity": self.complexity.name.lower(),
            "domain": self.domain.value,
            "urgency": self.urgency.name.lower(),
            "resource_requirements": {
                "compute_intensive": self.resource_requirements.compute_intensive,
                "network_access": self.resource_requirements.network_access,
                "file_access": self.resource_requirements.file_access,
                "memory_intensive": self.resource_requirements.memory_intensive,
            },
        }


@dataclass(frozen=True)
class ToolContext:
    """Snapshot used for one suggestion request. Never persisted."""

    input: str = ""
    conversation_context: ConversationContext = field(default_factory=ConversationContext)
    temporal_context: Optional[TemporalContext] = None
    user_preferences: Optional[UserPreferences] = None
    available_tools: Tuple["Tool", ...] = ()
    system_performance: SystemPerformanceMetrics = field(default_factory=SystemPerformanceMetrics)
    usage_history: Tuple["ToolUsageRecord", ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input": self.input,
            "conversation_context": self.conversation_context.to_dict(),
            "temporal_context": self.temporal_context.to_dict() if self.temporal_context else None,
            "user_preferences": self.user_preferences.to_dict() if self.user_preferences else None,
            "available_tools": [tool.id for tool in self.available_tools],
            "system_performance": self.system_performance.to_dict(),
            "usage_history": [record.tool_id for record in self.usage_history],
        }


def _mentions(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword in text for keyword in keywords)


class ContextAnalyzer:
    """
    Classifies a tool context into complexity, domain, urgency and resource needs.

    Stateless; the same input always yields the same analysis.
    """

    # Checked in order, first match wins
    DOMAIN_KEYWORDS: List[Tuple[TaskDomain, Tuple[str, ...]]] = [
        (TaskDomain.PROGRAMMING, ("code", "function", "variable")),
        (TaskDomain.RESEARCH, ("research", "find", "search")),
        (TaskDomain.CREATIVE, ("create", "write", "design")),
    ]

    URGENCY_KEYWORDS: List[Tuple[TaskUrgency, Tuple[str, ...]]] = [
        (TaskUrgency.HIGH, ("urgent", "asap", "quickly")),
        (TaskUrgency.MEDIUM, ("soon", "priority")),
    ]

    HIGH_COMPLEXITY_LENGTH = 1000
    MEDIUM_COMPLEXITY_LENGTH = 200
    COMPUTE_INTENSIVE_LENGTH = 500
    MEMORY_INTENSIVE_LENGTH = 1000

    def __init__(self):
        self.logger = logging.getLogger("smartroute.tools.analyzer")

    def analyze_context(self, context: ToolContext) -> ContextAnalysis:
        analysis = ContextAnalysis(
            complexity=self.analyze_complexity(context.input),
            domain=self.analyze_domain(context.input),
            urgency=self.analyze_urgency(context.input),
            resource_requirements=self.analyze_resource_requirements(context.input),
        )
        self.logger.debug(f"Context analysis: {analysis.to_dict()}")
        return analysis

    def analyze_complexity(self, text: str) -> TaskComplexity:
        if len(text) > self.HIGH_COMPLEXITY_LENGTH:
            return TaskComplexity.HIGH
        if len(text) > self.MEDIUM_COMPLEXITY_LENGTH:
            return TaskComplexity.MEDIUM
        return TaskComplexity.LOW

    def analyze_domain(self, text: str) -> TaskDomain:
        text_lower = text.lower()
        for domain, keywords in self.DOMAIN_KEYWORDS:
            if _mentions(text_lower, keywords):
                return domain
        return TaskDomain.GENERAL

    def analyze_urgency(self, text: str) -> TaskUrgency:
        text_lower = text.lower()
        for urgency, keywords in self.URGENCY_KEYWORDS:
            if _mentions(text_lower, keywords):
                return urgency
        return TaskUrgency.LOW

    def analyze_resource_requirements(self, text: str) -> ResourceRequirements:
        text_lower = text.lower()
        return ResourceRequirements(
            compute_intensive=len(text) > self.COMPUTE_INTENSIVE_LENGTH,
            network_access=_mentions(text_lower, ("search", "web")),
            file_access=_mentions(text_lower, ("file", "document")),
            memory_intensive=len(text) > self.MEMORY_INTENSIVE_LENGTH,
        )


class IntentPredictor:
    """Keyword-based intent classifier."""

    INTENT_KEYWORDS: List[Tuple[UserIntent, Tuple[str, ...]]] = [
        (UserIntent.ANALYSIS, ("analyze", "examine")),
        (UserIntent.CREATION, ("create", "generate", "write")),
        (UserIntent.INFORMATION, ("find", "search", "research")),
        (UserIntent.PROBLEM_SOLVING, ("fix", "debug", "solve")),
        (UserIntent.OPTIMIZATION, ("optimize", "improve", "enhance")),
    ]

    def predict_intent(self, text: str, context: Optional[ToolContext] = None) -> UserIntent:
        text_lower = text.lower()
        for intent, keywords in self.INTENT_KEYWORDS:
            if _mentions(text_lower, keywords):
                return intent
        return UserIntent.ASSISTANCE
