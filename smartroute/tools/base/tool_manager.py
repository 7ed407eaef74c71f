"""
Smart tool controller for the SmartRoute tool system.
"""

import asyncio
import threading
from collections import Counter
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, Union
import logging

from ...config import Config
from .conversation import (
    CircadianPhase,
    ConversationContext,
    SystemPerformanceMetrics,
    TemporalContext,
    TimeOfDay,
    UserPreferences,
)
from .tool_analytics import (
    ToolAnalytics,
    ToolConfiguration,
    ToolDataExport,
    calculate_average_execution_time,
    calculate_overall_success_rate,
    generate_performance_insights,
    most_used_tools,
)
from .tool_context import ContextAnalyzer, IntentPredictor, ToolContext
from .tool_interface import (
    SuggestionPriority,
    Tool,
    ToolCategory,
    ToolExecutionResult,
    ToolParameters,
    ToolSuggestion,
)
from .tool_learning import (
    AdaptiveToolLearning,
    IntelligentRecommendation,
    RecommendationType,
    UsageHistory,
    analyze_usage_patterns,
    identify_optimization_opportunities,
)
from .tool_performance_monitor import SystemMetricsSampler, ToolPerformanceTracker
from .tool_recommender import ToolRecommendationEngine
from .tool_registry import ToolRegistry
from .tool_router import ExecutionRouter


@dataclass(frozen=True)
class ControllerState:
    """Observable controller state. A new instance is published on every transition."""

    available_tools: Tuple[Tool, ...] = ()
    active_tools: Tuple[Tool, ...] = ()
    contextual_suggestions: Tuple[ToolSuggestion, ...] = ()
    is_processing: bool = False
    current_context: Optional[ToolContext] = None
    system_metrics: Optional[SystemPerformanceMetrics] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available_tools": [tool.id for tool in self.available_tools],
            "active_tools": [tool.id for tool in self.active_tools],
            "contextual_suggestions": [s.to_dict() for s in self.contextual_suggestions],
            "is_processing": self.is_processing,
            "current_context": self.current_context.to_dict() if self.current_context else None,
            "system_metrics": self.system_metrics.to_dict() if self.system_metrics else None,
        }


StateObserver = Callable[[ControllerState], None]

# (category, reason, confidence, priority)
TIME_OF_DAY_SUGGESTIONS = {
    TimeOfDay.MORNING: (ToolCategory.RESEARCH, "Great time for research and learning",
                        0.7, SuggestionPriority.MEDIUM),
    TimeOfDay.AFTERNOON: (ToolCategory.CODE_PROCESSING, "Optimal time for focused coding work",
                          0.8, SuggestionPriority.HIGH),
    TimeOfDay.EVENING: (ToolCategory.CREATIVE, "Evening creativity boost time",
                        0.75, SuggestionPriority.MEDIUM),
}

CIRCADIAN_SUGGESTIONS = {
    CircadianPhase.PEAK: (ToolCategory.CODE_PROCESSING, "Peak performance time for complex tasks",
                          0.9, SuggestionPriority.HIGH),
    CircadianPhase.DECLINING: (ToolCategory.TEXT_PROCESSING, "Good time for text analysis tasks",
                               0.6, SuggestionPriority.LOW),
}


class SmartToolController:
    """
    Central entry point of the SmartRoute engine.

    Suggests tools for a conversation, executes them through the routing
    strategies and keeps the performance and learning feedback loop up to
    date. Collaborators are injected; anything omitted gets a fresh default.
    """

    def __init__(self,
                 config: Optional[Config] = None,
                 registry: Optional[ToolRegistry] = None,
                 performance_tracker: Optional[ToolPerformanceTracker] = None,
                 usage_history: Optional[UsageHistory] = None,
                 learning: Optional[AdaptiveToolLearning] = None,
                 temporal_provider: Optional[Callable[[], Optional[TemporalContext]]] = None,
                 system_sampler: Optional[SystemMetricsSampler] = None,
                 register_builtin: Optional[bool] = None):
        """
        Initialize the controller.

        Args:
            config: Configuration; routing constants are taken from it
            registry: Tool registry to use
            performance_tracker: Performance tracker (defaults to the registry's)
            usage_history: Bounded usage log
            learning: Adaptive learning store
            temporal_provider: Callable returning the current temporal context
            system_sampler: System load sampler used by background monitoring
            register_builtin: Register the built-in tools (defaults to config)
        """
        self.logger = logging.getLogger("smartroute.tools.controller")

        self.config = config if config is not None else Config()
        self.constants = self.config.routing

        if performance_tracker is None:
            performance_tracker = (registry.performance_tracker if registry is not None
                                   else ToolPerformanceTracker(self.constants))
        self.performance_tracker = performance_tracker
        self.registry = registry if registry is not None else ToolRegistry(performance_tracker, self.constants)
        self.usage_history = usage_history if usage_history is not None else UsageHistory(self.constants.max_history_size)
        self.learning = learning if learning is not None else AdaptiveToolLearning()
        self.temporal_provider = temporal_provider or TemporalContext.now
        self.system_sampler = system_sampler if system_sampler is not None else SystemMetricsSampler()

        self.context_analyzer = ContextAnalyzer()
        self.intent_predictor = IntentPredictor()
        self.recommendation_engine = ToolRecommendationEngine(self.constants)
        self.router = ExecutionRouter(
            registry=self.registry,
            performance_tracker=self.performance_tracker,
            usage_history=self.usage_history,
            learning=self.learning,
            constants=self.constants,
            temporal_provider=self.temporal_provider,
        )

        self._state = ControllerState()
        self._state_lock = threading.RLock()
        self._observers: List[StateObserver] = []
        self._in_flight = 0
        self._init_tasks: Set[asyncio.Task] = set()

        self.logger.info("Initializing smart tool controller")

        if register_builtin if register_builtin is not None else self.config.register_builtin_tools:
            self._register_builtin_tools()

    # State and observers

    @property
    def state(self) -> ControllerState:
        with self._state_lock:
            return self._state

    def subscribe(self, observer: StateObserver) -> None:
        """Call `observer` with the new state after every state transition."""
        with self._state_lock:
            if observer not in self._observers:
                self._observers.append(observer)

    def unsubscribe(self, observer: StateObserver) -> None:
        with self._state_lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def _update_state(self, **changes: Any) -> ControllerState:
        with self._state_lock:
            self._state = replace(self._state, **changes)
            state = self._state
            observers = list(self._observers)
        return self._notify(state, observers)

    def _track_processing(self, delta: int, **changes: Any) -> ControllerState:
        """Adjust the in-flight count; `is_processing` stays set while any work is running."""
        with self._state_lock:
            self._in_flight += delta
            self._state = replace(self._state, is_processing=self._in_flight > 0, **changes)
            state = self._state
            observers = list(self._observers)
        return self._notify(state, observers)

    def _notify(self, state: ControllerState, observers: List[StateObserver]) -> ControllerState:
        for observer in observers:
            try:
                observer(state)
            except Exception as e:
                self.logger.warning(f"State observer {observer!r} failed: {e}")
        return state

    # Registration

    def _register_builtin_tools(self) -> None:
        from ..builtin import builtin_tools

        for tool in builtin_tools():
            self.register_tool(tool)
        self.logger.info(f"Registered {len(self.registry)} built-in tools")

    def register_tool(self, tool: Tool) -> bool:
        """
        Register a tool, replacing any tool with the same id.

        Handler initialization is scheduled in the background when an event
        loop is running; otherwise it happens on the tool's first execution.

        Returns:
            True if the id was new
        """
        is_new = self.registry.register(tool)
        self._schedule_initialization(tool)
        self._update_state(available_tools=tuple(self.registry.get_all_tools()))
        return is_new

    def _schedule_initialization(self, tool: Tool) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.logger.debug(f"No running loop; {tool.id} initializes on first execution")
            return

        task = loop.create_task(tool.initialize())
        self._init_tasks.add(task)
        task.add_done_callback(lambda t, tool_id=tool.id: self._initialization_done(tool_id, t))

    def _initialization_done(self, tool_id: str, task: asyncio.Task) -> None:
        self._init_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.warning(f"Initialization of {tool_id} failed: {error}")

    # Suggestions

    def build_tool_context(self,
                           input_text: str,
                           conversation_context: ConversationContext,
                           preferences: Optional[UserPreferences] = None) -> ToolContext:
        """Snapshot everything needed for one suggestion request."""
        return ToolContext(
            input=input_text,
            conversation_context=conversation_context,
            temporal_context=conversation_context.temporal_context or self.temporal_provider(),
            user_preferences=preferences or conversation_context.user_preferences,
            available_tools=tuple(self.registry.list_available(conversation_context)),
            system_performance=self.state.system_metrics or SystemPerformanceMetrics(),
            usage_history=tuple(self.usage_history.recent(self.constants.context_history_window)),
        )

    def analyze_context_and_suggest_tools(self,
                                          input_text: str,
                                          conversation_context: ConversationContext,
                                          preferences: Optional[UserPreferences] = None) -> List[ToolSuggestion]:
        """
        Analyze a request and suggest tools for it.

        Args:
            input_text: Raw user input
            conversation_context: Current conversation
            preferences: Optional user preferences

        Returns:
            Ranked suggestions, best first
        """
        self.logger.debug(f"Analyzing context for tool suggestions: {input_text[:80]!r}")
        tool_context = self.build_tool_context(input_text, conversation_context, preferences)
        self._track_processing(1, current_context=tool_context)

        try:
            intent = self.intent_predictor.predict_intent(input_text, tool_context)
            analysis = self.context_analyzer.analyze_context(tool_context)
            metrics = self.performance_tracker.snapshot()

            suggestions = self.recommendation_engine.generate_recommendations(
                intent=intent,
                analysis=analysis,
                available_tools=self.registry.list_available(conversation_context, metrics),
                performance=metrics,
                preferences=tool_context.user_preferences,
            )
            self.learning.record_context_analysis(tool_context, suggestions)
        finally:
            self._track_processing(-1)

        self._update_state(contextual_suggestions=tuple(suggestions))
        self.logger.info(f"Generated {len(suggestions)} tool suggestions")
        return suggestions

    def update_tool_availability(self, conversation_context: ConversationContext) -> List[Tool]:
        """Recompute the active tools for a conversation."""
        active = self.registry.list_available(conversation_context)
        self._update_state(active_tools=tuple(active))
        self.logger.debug(f"Active tools: {[tool.id for tool in active]}")
        return active

    # Execution

    async def execute_tool(self,
                           tool: Union[Tool, str],
                           parameters: Optional[ToolParameters] = None,
                           conversation_context: Optional[ConversationContext] = None) -> ToolExecutionResult:
        """
        Execute a tool by descriptor or id.

        Raises:
            ToolError: on validation or execution failure
        """
        parameters = parameters if parameters is not None else ToolParameters()
        conversation_context = conversation_context if conversation_context is not None else ConversationContext()

        self._track_processing(1)
        try:
            return await self.router.execute(tool, parameters, conversation_context)
        finally:
            self._track_processing(-1)

    # System load

    def adapt_to_system_metrics(self, metrics: SystemPerformanceMetrics) -> bool:
        """
        Adjust availability scores of all registered tools to the system load.

        Returns:
            True if the system was under load
        """
        tool_ids = [tool.id for tool in self.registry.get_all_tools()]
        under_load = self.performance_tracker.adapt_to_system_metrics(metrics, tool_ids)
        self._update_state(system_metrics=metrics)
        return under_load

    def start_system_monitoring(self) -> None:
        self.system_sampler.start_monitoring(self.adapt_to_system_metrics)

    def stop_system_monitoring(self) -> None:
        self.system_sampler.stop_monitoring()

    def shutdown(self) -> None:
        """Stop background monitoring and pending initializations."""
        if self.system_sampler.monitoring_active:
            self.stop_system_monitoring()
        for task in list(self._init_tasks):
            task.cancel()

    # Recommendations

    def _first_tool_in_category(self, category: ToolCategory) -> Optional[Tool]:
        return next((tool for tool in self.registry.get_all_tools() if tool.category == category), None)

    def generate_temporal_recommendations(self,
                                          temporal_context: Optional[TemporalContext] = None) -> List[ToolSuggestion]:
        """
        Suggestions for the time of day and circadian phase.

        Suggestions are returned even when no tool of the category is
        registered; their `tool` is None then.
        """
        if temporal_context is None:
            return []

        suggestions: List[ToolSuggestion] = []
        for table, key in ((TIME_OF_DAY_SUGGESTIONS, temporal_context.time_of_day),
                           (CIRCADIAN_SUGGESTIONS, temporal_context.circadian_phase)):
            if key not in table:
                continue
            category, reason, confidence, priority = table[key]
            suggestions.append(ToolSuggestion(
                tool=self._first_tool_in_category(category),
                reason=reason,
                confidence=confidence,
                priority=priority,
            ))
        return suggestions

    def update_contextual_recommendations(self,
                                          temporal_context: Optional[TemporalContext] = None) -> List[ToolSuggestion]:
        """Publish temporal suggestions for the given (or current) time as the contextual suggestions."""
        suggestions = self.generate_temporal_recommendations(temporal_context or self.temporal_provider())
        self._update_state(contextual_suggestions=tuple(suggestions))
        return suggestions

    def get_intelligent_recommendations(self, moment: Optional[datetime] = None) -> List[IntelligentRecommendation]:
        """Optimization, contextual and performance recommendations, in that order."""
        self.logger.debug("Generating intelligent recommendations")
        metrics = self.performance_tracker.snapshot()
        records = self.usage_history.records()

        recommendations = identify_optimization_opportunities(
            metrics, [tool.id for tool in self.registry.get_all_tools()], records, self.constants
        )
        recommendations.extend(self._contextual_recommendations(moment or datetime.now()))
        recommendations.extend(self._performance_recommendations())
        return recommendations

    def _contextual_recommendations(self, moment: datetime) -> List[IntelligentRecommendation]:
        c = self.constants
        recommendations: List[IntelligentRecommendation] = []

        if c.working_hours_start <= moment.hour <= c.working_hours_end:
            recommendations.append(IntelligentRecommendation(
                type=RecommendationType.PRODUCTIVITY,
                title="Productivity Enhancement",
                description="Prime working hours - consider using code analysis or research tools",
                priority=SuggestionPriority.MEDIUM,
                action="Try the Code Analysis or Web Research tools",
            ))

        recent = self.usage_history.recent(c.context_history_window)
        if recent:
            tool_id, count = Counter(r.tool_id for r in recent).most_common(1)[0]
            if count > c.frequent_tool_min_count:
                recommendations.append(IntelligentRecommendation(
                    type=RecommendationType.WORKFLOW,
                    title="Workflow Optimization",
                    description=f"You frequently use '{tool_id}' - consider creating a custom workflow",
                    priority=SuggestionPriority.LOW,
                    action="Set up keyboard shortcut or automation for this tool",
                ))

        return recommendations

    def _performance_recommendations(self) -> List[IntelligentRecommendation]:
        c = self.constants
        metrics = self.performance_tracker.snapshot()
        recommendations: List[IntelligentRecommendation] = []

        success_rate = calculate_overall_success_rate(metrics)
        if success_rate < c.target_success_rate:
            recommendations.append(IntelligentRecommendation(
                type=RecommendationType.PERFORMANCE,
                title="Overall Performance",
                description=f"Tool success rate is {success_rate * 100:.1f}% - below optimal",
                priority=SuggestionPriority.HIGH,
                action="Review tool configurations and parameters",
            ))

        average_time = calculate_average_execution_time(metrics, len(self.usage_history))
        if average_time > c.target_execution_time:
            recommendations.append(IntelligentRecommendation(
                type=RecommendationType.EFFICIENCY,
                title="Execution Speed",
                description=f"Average tool execution time is {average_time:.1f}s",
                priority=SuggestionPriority.MEDIUM,
                action="Consider system optimization or reducing concurrent operations",
            ))

        return recommendations

    # Analytics, reset and export

    def get_tool_analytics(self) -> ToolAnalytics:
        metrics = self.performance_tracker.snapshot()
        records = self.usage_history.records()

        return ToolAnalytics(
            total_tool_usage=len(records),
            unique_tools_used=len({r.tool_id for r in records}),
            average_execution_time=calculate_average_execution_time(metrics, len(records)),
            overall_success_rate=calculate_overall_success_rate(metrics),
            most_used_tools=tuple(most_used_tools(records, self.constants.most_used_tools_limit)),
            performance_insights=tuple(generate_performance_insights(metrics)),
            usage_patterns=tuple(analyze_usage_patterns(records, self.constants)),
            recommendations=tuple(identify_optimization_opportunities(
                metrics, [tool.id for tool in self.registry.get_all_tools()], records, self.constants
            )),
        )

    def clear_tool_history(self) -> None:
        """Clear usage history and learning data and reset every metric."""
        self.logger.info("Clearing tool history")
        self.usage_history.clear()
        self.learning.reset()
        self.performance_tracker.reset()
        self._update_state(contextual_suggestions=())

    def get_tool_configuration(self) -> ToolConfiguration:
        c = self.constants
        return ToolConfiguration(
            enabled_tools=tuple(tool.id for tool in self.registry.get_all_tools()),
            tool_settings={},
            performance_thresholds={
                "min_success_rate": c.admission_min_success_rate,
                "max_execution_time": c.admission_max_execution_time,
                "min_availability_score": c.min_availability_score,
            },
            adaptive_learning_enabled=True,
        )

    def export_tool_data(self) -> ToolDataExport:
        return ToolDataExport(
            tool_registry=tuple(self.registry.get_all_tools()),
            usage_history=tuple(self.usage_history.records()),
            performance_metrics=self.performance_tracker.snapshot(),
            learning_data=self.learning.export_learning_data(),
            configuration=self.get_tool_configuration(),
        )
