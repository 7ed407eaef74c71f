"""
Execution router: validates an invocation, picks a strategy and runs it.
"""

import asyncio
import time
from dataclasses import replace
from typing import Callable, List, Optional, Union
import logging

from ...config import RoutingConstants
from .conversation import ConversationContext, TemporalContext
from .tool_errors import (
    ContextNotSuitableError,
    InvalidParametersError,
    PerformanceThresholdNotMetError,
    ToolError,
    ToolExecutionFailedError,
    ToolNotAvailableError,
)
from .tool_interface import (
    ExecutionStrategy,
    Tool,
    ToolComplexity,
    ToolExecutionResult,
    ToolParameters,
)
from .tool_learning import AdaptiveToolLearning, ToolUsageRecord, UsageHistory
from .tool_performance_monitor import ToolPerformanceTracker
from .tool_registry import ToolRegistry


def select_strategy(tool: Tool, parameters: ToolParameters) -> ExecutionStrategy:
    """Pick the execution strategy from tool traits and parameter flags."""
    if tool.complexity == ToolComplexity.HIGH and parameters.requires_high_accuracy:
        return ExecutionStrategy.ENSEMBLE
    if tool.is_parallelizable and parameters.allow_parallel:
        return ExecutionStrategy.PARALLEL
    if tool.supports_cascading and parameters.prefer_cascading:
        return ExecutionStrategy.CASCADING
    return ExecutionStrategy.DIRECT


class ExecutionRouter:
    """
    Runs tool invocations.

    Every invocation goes through the validation gate first; nothing is
    recorded when validation fails. Once a strategy starts, the elapsed time
    and outcome are always handed to the performance tracker and the learning
    store, including when the handler raises or the invocation is cancelled.
    """

    def __init__(self,
                 registry: ToolRegistry,
                 performance_tracker: ToolPerformanceTracker,
                 usage_history: UsageHistory,
                 learning: AdaptiveToolLearning,
                 constants: Optional[RoutingConstants] = None,
                 temporal_provider: Optional[Callable[[], Optional[TemporalContext]]] = None):
        self.logger = logging.getLogger("smartroute.tools.router")
        self.registry = registry
        self.performance_tracker = performance_tracker
        self.usage_history = usage_history
        self.learning = learning
        self.constants = constants or RoutingConstants()
        self.temporal_provider = temporal_provider or TemporalContext.now

    def resolve_tool(self, tool: Union[Tool, str]) -> Tool:
        """Registered descriptor for a tool or tool id."""
        tool_id = tool if isinstance(tool, str) else tool.id
        registered = self.registry.lookup(tool_id)
        if registered is None:
            raise ToolNotAvailableError(tool if isinstance(tool, str) else tool.name)
        return registered

    def validate_execution(self,
                           tool: Tool,
                           parameters: ToolParameters,
                           context: ConversationContext) -> None:
        """Pre-execution gate. Raises the matching ToolError on the first failed check."""
        if tool.id not in self.registry:
            raise ToolNotAvailableError(tool.name)

        if not tool.is_available_for_context(context):
            raise ContextNotSuitableError(tool.name)

        try:
            parameters_ok = tool.validate_parameters(parameters)
        except Exception as e:
            raise InvalidParametersError(tool.name, str(e)) from e
        if not parameters_ok:
            raise InvalidParametersError(tool.name)

        if not tool.meets_performance_threshold(self.performance_tracker.get(tool.id), self.constants):
            raise PerformanceThresholdNotMetError(tool.name)

    async def execute(self,
                      tool: Union[Tool, str],
                      parameters: ToolParameters,
                      context: ConversationContext) -> ToolExecutionResult:
        """
        Validate and execute a tool with the selected strategy.

        Raises:
            ToolError: validation failures (nothing recorded) or execution failures
            asyncio.CancelledError: if the invocation is cancelled (recorded as a failure)
        """
        tool = self.resolve_tool(tool)
        self.validate_execution(tool, parameters, context)

        strategy = select_strategy(tool, parameters)
        self.logger.info(f"Executing tool: {tool.id} (strategy={strategy.value})")

        self.usage_history.append(ToolUsageRecord(
            tool_id=tool.id,
            tool_name=tool.name,
            context=context,
            temporal_context=self.temporal_provider(),
        ))

        start_time = time.perf_counter()
        try:
            await tool.initialize()
            result = await self._run_strategy(strategy, tool, parameters, context)
        except asyncio.CancelledError as e:
            self._record_outcome(tool, parameters, context, time.perf_counter() - start_time, error=e)
            self.logger.warning(f"Tool execution cancelled: {tool.id}")
            raise
        except ToolError as e:
            self._record_outcome(tool, parameters, context, time.perf_counter() - start_time, error=e)
            self.logger.error(f"Tool execution failed: {tool.id} - {e}")
            if e.is_validation_error:
                # the run already started, so this is an execution failure
                raise ToolExecutionFailedError(tool.name, str(e)) from e
            raise
        except Exception as e:
            self._record_outcome(tool, parameters, context, time.perf_counter() - start_time, error=e)
            self.logger.error(f"Tool execution error: {tool.id} - {e}", exc_info=True)
            raise ToolExecutionFailedError(tool.name, str(e)) from e

        elapsed = time.perf_counter() - start_time
        result = replace(result, execution_time=elapsed)
        self._record_outcome(tool, parameters, context, elapsed, result=result)
        self.logger.info(f"Tool execution completed: {tool.id} success={result.success} ({elapsed:.3f}s)")
        return result

    def _record_outcome(self,
                        tool: Tool,
                        parameters: ToolParameters,
                        context: ConversationContext,
                        elapsed: float,
                        result: Optional[ToolExecutionResult] = None,
                        error: Optional[BaseException] = None) -> None:
        success = result is not None and result.success and error is None
        self.performance_tracker.record(tool.id, elapsed, success)
        self.learning.record_tool_execution(
            tool_id=tool.id,
            parameters=parameters,
            context=context,
            result=result,
            error=error,
            execution_time=elapsed,
        )

    async def _run_strategy(self,
                            strategy: ExecutionStrategy,
                            tool: Tool,
                            parameters: ToolParameters,
                            context: ConversationContext) -> ToolExecutionResult:
        if strategy == ExecutionStrategy.ENSEMBLE:
            return await self.execute_ensemble(tool, parameters, context)
        if strategy == ExecutionStrategy.PARALLEL:
            return await self.execute_parallel(tool, parameters, context)
        if strategy == ExecutionStrategy.CASCADING:
            return await self.execute_cascading(tool, parameters, context)
        return await tool.execute(parameters, context)

    async def execute_ensemble(self,
                               tool: Tool,
                               parameters: ToolParameters,
                               context: ConversationContext) -> ToolExecutionResult:
        """Primary run, then an optional validator revises confidence and adds metadata."""
        primary_result = await tool.execute(parameters, context)

        if tool.ensemble_handler is None:
            return primary_result

        validation = await tool.ensemble_handler.validate(primary_result, parameters, context)
        return primary_result.with_metadata(validation.metadata, confidence=validation.confidence)

    async def execute_parallel(self,
                               tool: Tool,
                               parameters: ToolParameters,
                               context: ConversationContext) -> ToolExecutionResult:
        """
        Fan out over the parallel handler's parameter chunks.

        The first chunk that raises or returns an unsuccessful result cancels
        the remaining chunks and fails the call; results are only combined when
        every chunk succeeded.
        """
        handler = tool.parallel_handler
        if handler is None:
            return await tool.execute(parameters, context)

        chunks = handler.split_parameters(parameters)
        if not chunks:
            self.logger.debug(f"No parallel chunks for {tool.id}, executing directly")
            return await tool.execute(parameters, context)

        tasks: List[asyncio.Task] = [
            asyncio.create_task(self._execute_chunk(tool, chunk, context, index))
            for index, chunk in enumerate(chunks)
        ]
        self.logger.debug(f"Running {len(tasks)} parallel units for {tool.id}")

        try:
            pending = set(tasks)
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_EXCEPTION)
                for task in done:
                    error = task.exception()
                    if error is not None:
                        raise error
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        return handler.combine_results([task.result() for task in tasks])

    async def _execute_chunk(self,
                             tool: Tool,
                             chunk: ToolParameters,
                             context: ConversationContext,
                             index: int) -> ToolExecutionResult:
        result = await tool.execute(chunk, context)
        if not result.success:
            raise ToolExecutionFailedError(tool.name, f"parallel unit {index} failed: {result.output}")
        return result

    async def execute_cascading(self,
                                tool: Tool,
                                parameters: ToolParameters,
                                context: ConversationContext) -> ToolExecutionResult:
        """Run the cascading handler's stages in order, stopping early when it says so."""
        handler = tool.cascading_handler
        if handler is None:
            return await tool.execute(parameters, context)

        current_parameters = parameters
        combined = ToolExecutionResult(success=True, output="", confidence=1.0, execution_time=0.0, metadata={})

        for stage in handler.stages:
            self.logger.debug(f"Cascading stage '{stage.name}' for {tool.id}")
            stage_result = await tool.execute(current_parameters, context)

            combined = handler.combine_stage_result(combined, stage_result)
            current_parameters = handler.prepare_next_stage(current_parameters, stage_result)

            if handler.should_stop_early(stage_result):
                self.logger.debug(f"Cascading stopped early after stage '{stage.name}' for {tool.id}")
                break

        return combined
