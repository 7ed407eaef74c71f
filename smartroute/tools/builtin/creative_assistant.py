"""
Creative Assistant Tool for SmartRoute.

Runs directly as a single draft, or cascades through draft, refine and polish.
"""

from typing import List

from ..base.conversation import ConversationContext
from ..base.tool_errors import InvalidParametersError
from ..base.tool_interface import (
    CascadingHandler,
    CascadingStage,
    ContextRequirement,
    Tool,
    ToolCapability,
    ToolCategory,
    ToolExecutionResult,
    ToolHandler,
    ToolParameters,
)

TOOL_ID = "creative_assistant"

CREATIVE_DIRECTIONS = [
    "Innovative Approach: Consider unconventional angles that challenge assumptions",
    "Collaborative Elements: How might others contribute to or build upon this idea?",
    "Cross-disciplinary Connections: What insights from other fields could enhance this?",
    "Future Implications: How might this evolve or impact things long-term?",
    "Personal Touch: What unique perspective or experience can you bring?",
]

STAGES = [
    CascadingStage("draft", "Explore creative directions"),
    CascadingStage("refine", "Narrow the directions to the strongest ones"),
    CascadingStage("polish", "Turn the refined directions into a final brief"),
]

STAGE_CONFIDENCE = {"draft": 0.87, "refine": 0.9, "polish": 0.93}


class CreativeAssistantHandler(ToolHandler):
    """Deterministic brainstorming for a prompt, one stage per call."""

    async def execute(self, parameters: ToolParameters, context: ConversationContext) -> ToolExecutionResult:
        prompt = parameters.get("prompt") or context.last_message_content
        if not prompt:
            raise InvalidParametersError(TOOL_ID, "no prompt given")

        stage = parameters.get("stage", "draft")
        style = parameters.get("style")

        if stage == "draft":
            directions = "\n".join(f"{i}. {d}" for i, d in enumerate(CREATIVE_DIRECTIONS, 1))
            output = (
                "Creative Assistant Response:\n\n"
                f'Based on your prompt: "{prompt}"\n\n'
                "Here are some creative directions to explore:\n\n"
                f"{directions}\n\n"
                "The key is to balance originality with practical applicability."
            )
            suggestions = len(CREATIVE_DIRECTIONS)
        elif stage == "refine":
            shortlisted = CREATIVE_DIRECTIONS[:3]
            output = "Refined directions:\n" + "\n".join(f"- {d.split(':')[0]}" for d in shortlisted)
            suggestions = len(shortlisted)
        elif stage == "polish":
            tone = f" in a {style} style" if style else ""
            output = f'Final brief: develop "{prompt}"{tone}, leading with an innovative approach.'
            suggestions = 1
        else:
            raise InvalidParametersError(TOOL_ID, f"unknown stage '{stage}'")

        return ToolExecutionResult.success_result(
            output=output,
            confidence=STAGE_CONFIDENCE[stage],
            metadata={
                "prompt": prompt,
                "stage": stage,
                "suggestions_count": suggestions,
                "creative_score": 0.9,
            }
        )

    def validate_parameters(self, parameters: ToolParameters) -> bool:
        prompt = parameters.get("prompt")
        if prompt is not None and not isinstance(prompt, str):
            return False
        return parameters.get("stage", "draft") in STAGE_CONFIDENCE


class CreativeCascadingHandler(CascadingHandler):
    """Draft, refine, polish; stops as soon as a stage fails."""

    @property
    def stages(self) -> List[CascadingStage]:
        return list(STAGES)

    def combine_stage_result(self,
                             combined: ToolExecutionResult,
                             stage_result: ToolExecutionResult) -> ToolExecutionResult:
        output = "\n\n".join(part for part in (combined.output, stage_result.output) if part)
        completed = int(combined.metadata.get("stages_completed", 0)) + 1

        return ToolExecutionResult(
            success=combined.success and stage_result.success,
            output=output,
            confidence=min(combined.confidence, stage_result.confidence),
            execution_time=combined.execution_time + stage_result.execution_time,
            metadata={**combined.metadata, **stage_result.metadata, "stages_completed": completed},
        )

    def prepare_next_stage(self,
                           parameters: ToolParameters,
                           stage_result: ToolExecutionResult) -> ToolParameters:
        names = [stage.name for stage in STAGES]
        current = parameters.get("stage", names[0])
        position = names.index(current) if current in names else 0
        next_stage = names[min(position + 1, len(names) - 1)]
        return parameters.with_values(stage=next_stage, previous_output=stage_result.output)

    def should_stop_early(self, stage_result: ToolExecutionResult) -> bool:
        return not stage_result.success


def create_creative_assistant_tool() -> Tool:
    return Tool(
        id=TOOL_ID,
        name="Creative Assistant",
        description="AI-powered creative writing and brainstorming",
        category=ToolCategory.CREATIVE,
        handler=CreativeAssistantHandler(),
        capabilities={ToolCapability.GENERATION, ToolCapability.IDEATION, ToolCapability.REFINEMENT},
        required_context=[ContextRequirement.PROMPT],
        optimal_context=[ContextRequirement.PROMPT, ContextRequirement.STYLE, ContextRequirement.WORKSPACE],
        supports_cascading=True,
        cascading_handler=CreativeCascadingHandler(),
    )
