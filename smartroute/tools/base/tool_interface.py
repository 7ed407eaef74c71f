"""
Base tool interface and result classes for the SmartRoute tool system.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple, Union, TYPE_CHECKING
import logging

from ...config import RoutingConstants
from .conversation import ConversationContext, WorkspaceType

if TYPE_CHECKING:
    from .tool_performance_monitor import ToolPerformanceMetrics


class ToolCategory(Enum):
    """Tool category."""
    TEXT_PROCESSING = "text-processing"
    CODE_PROCESSING = "code-processing"
    RESEARCH = "research"
    FILE_PROCESSING = "file-processing"
    CREATIVE = "creative"
    ANALYSIS = "analysis"
    AUTOMATION = "automation"


class ToolCapability(Enum):
    """Capabilities a tool can declare."""
    ANALYSIS = "analysis"
    SUMMARIZATION = "summarization"
    EXTRACTION = "extraction"
    OPTIMIZATION = "optimization"
    DEBUGGING = "debugging"
    SEARCH = "search"
    VERIFICATION = "verification"
    PROCESSING = "processing"
    CONVERSION = "conversion"
    GENERATION = "generation"
    IDEATION = "ideation"
    REFINEMENT = "refinement"


class ContextRequirement(Enum):
    """Pieces of conversation context a tool can require or prefer."""
    TEXT = "text"
    CODE = "code"
    FILE = "file"
    QUERY = "query"
    PROMPT = "prompt"
    WORKSPACE = "workspace"
    PROJECT = "project"
    PREFERENCES = "preferences"
    OUTPUT_FORMAT = "output_format"
    STYLE = "style"

    def is_satisfied_by(self, context: ConversationContext) -> bool:
        """Check this single requirement against a conversation."""
        if self in (ContextRequirement.TEXT, ContextRequirement.QUERY, ContextRequirement.PROMPT):
            return bool(context.recent_messages)
        if self == ContextRequirement.CODE:
            return context.workspace_type == WorkspaceType.CODE
        if self == ContextRequirement.PREFERENCES:
            return context.user_preferences is not None
        # File contents, project and formatting hints are resolved by the handler
        return True


class ToolComplexity(Enum):
    """Tool complexity tier."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3


class ExecutionStrategy(Enum):
    """Execution shape chosen per invocation."""
    DIRECT = "direct"
    ENSEMBLE = "ensemble"
    PARALLEL = "parallel"
    CASCADING = "cascading"


# Closed value type for result metadata
MetadataValue = Union[str, int, float, bool, Dict[str, "MetadataValue"]]


def validate_metadata(metadata: Mapping[str, Any], path: str = "") -> Dict[str, MetadataValue]:
    """
    Check that metadata only holds strings, numbers, booleans or nested mappings.

    Returns a plain dict copy. Raises TypeError on any other value.
    """
    validated: Dict[str, MetadataValue] = {}
    for key, value in metadata.items():
        if not isinstance(key, str):
            raise TypeError(f"Metadata key must be str, got {type(key).__name__} at '{path}'")
        location = f"{path}.{key}" if path else key
        if isinstance(value, Mapping):
            validated[key] = validate_metadata(value, location)
        elif isinstance(value, (str, int, float, bool)):
            validated[key] = value
        else:
            raise TypeError(f"Unsupported metadata value {type(value).__name__} at '{location}'")
    return validated


@dataclass(frozen=True)
class ToolParameters:
    """Parameters for a single invocation plus strategy preference flags."""

    values: Dict[str, Any] = field(default_factory=dict)
    requires_high_accuracy: bool = False
    allow_parallel: bool = False
    prefer_cascading: bool = False

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def with_values(self, **updates: Any) -> "ToolParameters":
        """Copy with some values replaced; flags are preserved."""
        return replace(self, values={**self.values, **updates})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "values": {key: _jsonable(value) for key, value in self.values.items()},
            "requires_high_accuracy": self.requires_high_accuracy,
            "allow_parallel": self.allow_parallel,
            "prefer_cascading": self.prefer_cascading,
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    return str(value)


@dataclass
class ToolExecutionResult:
    """Result object for tool execution."""

    success: bool
    output: str = ""
    confidence: float = 0.0
    execution_time: float = 0.0
    metadata: Dict[str, MetadataValue] = field(default_factory=dict)

    def __post_init__(self):
        """Clamp confidence and enforce the metadata value type."""
        self.confidence = min(1.0, max(0.0, float(self.confidence)))
        self.metadata = validate_metadata(self.metadata)

    def with_metadata(self, extra: Mapping[str, Any], confidence: Optional[float] = None) -> "ToolExecutionResult":
        """Copy with `extra` merged over the current metadata."""
        return ToolExecutionResult(
            success=self.success,
            output=self.output,
            confidence=self.confidence if confidence is None else confidence,
            execution_time=self.execution_time,
            metadata={**self.metadata, **extra},
        )

    @classmethod
    def success_result(cls, output: str, confidence: float = 1.0, **kwargs) -> "ToolExecutionResult":
        """Create successful result."""
        return cls(success=True, output=output, confidence=confidence, **kwargs)

    @classmethod
    def error_result(cls, output: str, **kwargs) -> "ToolExecutionResult":
        """Create error result."""
        return cls(success=False, output=output, confidence=0.0, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "output": self.output,
            "confidence": self.confidence,
            "execution_time": self.execution_time,
            "metadata": dict(self.metadata),
        }


class ToolHandler(ABC):
    """
    Abstract base class for tool execution handlers.

    A handler performs the tool's actual work. The engine decides when and how
    often it runs; the handler only has to execute, validate its parameters and
    optionally warm itself up.
    """

    def __init__(self):
        self.logger = logging.getLogger(f"smartroute.tools.{type(self).__name__}")
        self._is_initialized = False
        self._init_lock: Optional[asyncio.Lock] = None

    @abstractmethod
    async def execute(self, parameters: ToolParameters, context: ConversationContext) -> ToolExecutionResult:
        """
        Execute the tool.

        Raises:
            ToolExecutionFailedError: on an internal error
        """
        pass

    def validate_parameters(self, parameters: ToolParameters) -> bool:
        """Return True if the parameters are acceptable."""
        return True

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    async def initialize(self) -> None:
        """Idempotent one-time setup."""
        if self._is_initialized:
            return
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        async with self._init_lock:
            if not self._is_initialized:
                await self.setup()
                self._is_initialized = True

    async def setup(self) -> None:
        """Override to acquire resources on first initialization."""
        pass


@dataclass(frozen=True)
class EnsembleValidationResult:
    """Revised confidence and extra metadata produced by an ensemble validator."""

    confidence: float
    metadata: Dict[str, MetadataValue] = field(default_factory=dict)


class EnsembleHandler(ABC):
    """Second-opinion validator run after the primary result."""

    @abstractmethod
    async def validate(self,
                       primary_result: ToolExecutionResult,
                       parameters: ToolParameters,
                       context: ConversationContext) -> EnsembleValidationResult:
        pass


class ParallelHandler(ABC):
    """Splits one invocation into independent chunks and merges their results."""

    @abstractmethod
    def split_parameters(self, parameters: ToolParameters) -> List[ToolParameters]:
        pass

    @abstractmethod
    def combine_results(self, results: Sequence[ToolExecutionResult]) -> ToolExecutionResult:
        pass


@dataclass(frozen=True)
class CascadingStage:
    """A named stage of a cascading execution."""

    name: str
    description: str = ""


class CascadingHandler(ABC):
    """Multi-stage execution with early exit."""

    @property
    @abstractmethod
    def stages(self) -> List[CascadingStage]:
        pass

    @abstractmethod
    def combine_stage_result(self,
                             combined: ToolExecutionResult,
                             stage_result: ToolExecutionResult) -> ToolExecutionResult:
        pass

    @abstractmethod
    def prepare_next_stage(self,
                           parameters: ToolParameters,
                           stage_result: ToolExecutionResult) -> ToolParameters:
        pass

    def should_stop_early(self, stage_result: ToolExecutionResult) -> bool:
        return False


# Category x workspace relevance bonus
WORKSPACE_AFFINITY = {
    ("code-processing", WorkspaceType.CODE): 0.4,
    ("creative", WorkspaceType.CREATIVE): 0.4,
    ("research", WorkspaceType.RESEARCH): 0.4,
    ("text-processing", WorkspaceType.GENERAL): 0.2,
}


@dataclass(frozen=True)
class Tool:
    """
    Descriptor of a registered tool.

    Describes when a tool applies and how it may be executed. The work itself
    is delegated to `handler`.
    """

    id: str
    name: str
    description: str
    category: ToolCategory
    handler: ToolHandler
    capabilities: FrozenSet[ToolCapability] = frozenset()
    required_context: Tuple[ContextRequirement, ...] = ()
    optimal_context: Tuple[ContextRequirement, ...] = ()
    complexity: ToolComplexity = ToolComplexity.MEDIUM
    is_parallelizable: bool = False
    supports_cascading: bool = False
    ensemble_handler: Optional[EnsembleHandler] = None
    parallel_handler: Optional[ParallelHandler] = None
    cascading_handler: Optional[CascadingHandler] = None

    def __post_init__(self):
        # callers may pass sets and lists; store hashable copies
        object.__setattr__(self, "capabilities", frozenset(self.capabilities))
        object.__setattr__(self, "required_context", tuple(self.required_context))
        object.__setattr__(self, "optimal_context", tuple(self.optimal_context))

    async def execute(self, parameters: ToolParameters, context: ConversationContext) -> ToolExecutionResult:
        return await self.handler.execute(parameters, context)

    def validate_parameters(self, parameters: ToolParameters) -> bool:
        return self.handler.validate_parameters(parameters)

    async def initialize(self) -> None:
        await self.handler.initialize()

    def is_available_for_context(self, context: ConversationContext) -> bool:
        """All required context must be present."""
        return all(requirement.is_satisfied_by(context) for requirement in self.required_context)

    def calculate_relevance(self, context: ConversationContext) -> float:
        """Relevance in [0, 1] of this tool for a conversation."""
        relevance = 0.5

        if self.optimal_context:
            met = sum(1 for requirement in self.optimal_context if requirement.is_satisfied_by(context))
            relevance += met / len(self.optimal_context) * 0.3

        relevance += WORKSPACE_AFFINITY.get((self.category.value, context.workspace_type), 0.0)

        return min(1.0, max(0.0, relevance))

    def meets_performance_threshold(self,
                                    metrics: Optional["ToolPerformanceMetrics"],
                                    constants: Optional[RoutingConstants] = None) -> bool:
        """Admission check; tools without history are admitted."""
        constants = constants or RoutingConstants()
        if metrics is None:
            return True
        if metrics.availability_score < constants.min_availability_score:
            return False
        if metrics.total_executions == 0:
            return True
        return (metrics.success_rate > constants.admission_min_success_rate and
                metrics.average_execution_time < constants.admission_max_execution_time)

    def has_capability(self, capability: ToolCapability) -> bool:
        return capability in self.capabilities

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "capabilities": sorted(c.value for c in self.capabilities),
            "required_context": [r.value for r in self.required_context],
            "optimal_context": [r.value for r in self.optimal_context],
            "complexity": self.complexity.name.lower(),
            "is_parallelizable": self.is_parallelizable,
            "supports_cascading": self.supports_cascading,
            "handler": type(self.handler).__name__,
            "ensemble_handler": type(self.ensemble_handler).__name__ if self.ensemble_handler else None,
            "parallel_handler": type(self.parallel_handler).__name__ if self.parallel_handler else None,
            "cascading_handler": type(self.cascading_handler).__name__ if self.cascading_handler else None,
        }

    def __str__(self) -> str:
        return f"{self.name} ({self.category.value})"


class SuggestionPriority(Enum):
    """Suggestion priority levels, ordered."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


@dataclass(frozen=True)
class ToolSuggestion:
    """A ranked candidate tool, offered but not executed."""

    tool: Optional[Tool]
    reason: str
    confidence: float
    priority: SuggestionPriority

    @property
    def sort_key(self):
        """Higher priority first, then higher confidence."""
        return (-self.priority.value, -self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tool_id": self.tool.id if self.tool else None,
            "tool_name": self.tool.name if self.tool else None,
            "reason": self.reason,
            "confidence": self.confidence,
            "priority": self.priority.name.lower(),
        }
