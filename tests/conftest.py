"""Shared fixtures and handler doubles for SmartRoute tests."""

import asyncio
import os
from typing import Dict, List, Optional, Sequence

import pytest

from smartroute.config import Config
from smartroute.tools.base.conversation import ChatMessage, ConversationContext, WorkspaceType
from smartroute.tools.base.tool_interface import (
    CascadingHandler,
    CascadingStage,
    ParallelHandler,
    Tool,
    ToolCategory,
    ToolExecutionResult,
    ToolHandler,
    ToolParameters,
)
from smartroute.tools.base.tool_manager import SmartToolController


class RecordingHandler(ToolHandler):
    """Returns a fixed result (or raises) and remembers every call."""

    def __init__(self,
                 result: Optional[ToolExecutionResult] = None,
                 error: Optional[BaseException] = None,
                 delay: float = 0.0,
                 valid: bool = True):
        super().__init__()
        self.result = result or ToolExecutionResult.success_result("ok", confidence=0.9)
        self.error = error
        self.delay = delay
        self.valid = valid
        self.calls: List[ToolParameters] = []
        self.setup_calls = 0

    async def setup(self) -> None:
        self.setup_calls += 1

    async def execute(self, parameters, context):
        self.calls.append(parameters)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result

    def validate_parameters(self, parameters):
        return self.valid


class ChunkHandler(ToolHandler):
    """Per-chunk behaviour keyed by the `item` parameter."""

    def __init__(self, failing: Sequence[str] = (), unsuccessful: Sequence[str] = (), slow: float = 0.0):
        super().__init__()
        self.failing = set(failing)
        self.unsuccessful = set(unsuccessful)
        self.slow = slow
        self.started: List[str] = []
        self.finished: List[str] = []
        self.cancelled: List[str] = []

    async def execute(self, parameters, context):
        item = parameters.get("item")
        self.started.append(item)
        try:
            if item in self.failing:
                raise RuntimeError(f"chunk {item} exploded")
            if item not in self.unsuccessful:
                await asyncio.sleep(self.slow)
        except asyncio.CancelledError:
            self.cancelled.append(item)
            raise
        self.finished.append(item)
        if item in self.unsuccessful:
            return ToolExecutionResult.error_result(f"{item} failed")
        return ToolExecutionResult.success_result(item, confidence=0.8)


class ItemsParallelHandler(ParallelHandler):
    def __init__(self):
        self.combined: List[Sequence[ToolExecutionResult]] = []

    def split_parameters(self, parameters):
        return [ToolParameters(values={"item": item}) for item in parameters.get("items", [])]

    def combine_results(self, results):
        self.combined.append(results)
        return ToolExecutionResult.success_result(
            ",".join(r.output for r in results),
            confidence=min(r.confidence for r in results),
        )


class StageHandler(ToolHandler):
    """Echoes the stage name; confidence per stage is configurable."""

    def __init__(self, confidences: Optional[Dict[str, float]] = None, slow_stage: Optional[str] = None):
        super().__init__()
        self.confidences = confidences or {}
        self.slow_stage = slow_stage
        self.stages_run: List[str] = []

    async def execute(self, parameters, context):
        stage = parameters.get("stage", "first")
        self.stages_run.append(stage)
        if stage == self.slow_stage:
            await asyncio.sleep(10)
        return ToolExecutionResult.success_result(stage, confidence=self.confidences.get(stage, 0.7))


class ThreeStageCascade(CascadingHandler):
    NAMES = ["first", "second", "third"]

    def __init__(self, stop_at_confidence: float = 1.1):
        self.stop_at_confidence = stop_at_confidence

    @property
    def stages(self):
        return [CascadingStage(name) for name in self.NAMES]

    def combine_stage_result(self, combined, stage_result):
        output = "+".join(part for part in (combined.output, stage_result.output) if part)
        return ToolExecutionResult(
            success=combined.success and stage_result.success,
            output=output,
            confidence=min(combined.confidence, stage_result.confidence),
        )

    def prepare_next_stage(self, parameters, stage_result):
        position = self.NAMES.index(parameters.get("stage", "first"))
        return parameters.with_values(stage=self.NAMES[min(position + 1, len(self.NAMES) - 1)])

    def should_stop_early(self, stage_result):
        return stage_result.confidence >= self.stop_at_confidence


def make_tool(tool_id: str,
              category: ToolCategory = ToolCategory.TEXT_PROCESSING,
              handler: Optional[ToolHandler] = None,
              **kwargs) -> Tool:
    return Tool(
        id=tool_id,
        name=tool_id.replace("_", " ").title(),
        description=f"Test tool {tool_id}",
        category=category,
        handler=handler or RecordingHandler(),
        **kwargs
    )


def conversation(workspace: WorkspaceType = WorkspaceType.GENERAL, *messages: str) -> ConversationContext:
    return ConversationContext(
        workspace_type=workspace,
        recent_messages=[ChatMessage(content=m) for m in messages],
    )


@pytest.fixture
def config(tmp_path, monkeypatch):
    """Config isolated from the user's home directory and environment."""
    for name in list(os.environ):
        if name.startswith("SMARTROUTE_"):
            monkeypatch.delenv(name, raising=False)
    return Config(config_path=tmp_path / ".smartrouterc")


@pytest.fixture
def controller(config):
    return SmartToolController(config=config, register_builtin=False)


@pytest.fixture
def builtin_controller(config):
    return SmartToolController(config=config, register_builtin=True)
