"""
Code Analysis Tool for SmartRoute.
"""

from ..base.conversation import ConversationContext
from ..base.tool_errors import InvalidParametersError
from ..base.tool_interface import (
    ContextRequirement,
    Tool,
    ToolCapability,
    ToolCategory,
    ToolExecutionResult,
    ToolHandler,
    ToolParameters,
)

TOOL_ID = "code_analysis"

COMMENT_PREFIXES = ("//", "#", "--", "/*", "*")


def estimate_complexity(code_lines: int) -> str:
    if code_lines > 50:
        return "High"
    if code_lines > 20:
        return "Medium"
    return "Low"


class CodeAnalysisHandler(ToolHandler):
    """Line statistics and a rough complexity estimate for source code."""

    async def execute(self, parameters: ToolParameters, context: ConversationContext) -> ToolExecutionResult:
        code = parameters.get("code") or context.last_message_content
        if not code:
            raise InvalidParametersError(TOOL_ID, "no code to analyze")

        lines = code.split("\n")
        code_lines = [line for line in lines if line.strip()]
        comment_lines = [line for line in code_lines if line.strip().startswith(COMMENT_PREFIXES)]
        complexity = estimate_complexity(len(code_lines))

        analysis = (
            "Code Analysis Results:\n"
            f"- Total lines: {len(lines)}\n"
            f"- Non-empty lines: {len(code_lines)}\n"
            f"- Comment lines: {len(comment_lines)}\n"
            f"- Code complexity: {complexity}"
        )

        return ToolExecutionResult.success_result(
            output=analysis,
            confidence=0.88,
            metadata={
                "total_lines": len(lines),
                "code_lines": len(code_lines),
                "comment_lines": len(comment_lines),
                "complexity": complexity.lower(),
            }
        )

    def validate_parameters(self, parameters: ToolParameters) -> bool:
        return isinstance(parameters.get("code"), str)


def create_code_analysis_tool() -> Tool:
    return Tool(
        id=TOOL_ID,
        name="Code Analysis",
        description="Advanced code analysis and optimization",
        category=ToolCategory.CODE_PROCESSING,
        handler=CodeAnalysisHandler(),
        capabilities={ToolCapability.ANALYSIS, ToolCapability.OPTIMIZATION, ToolCapability.DEBUGGING},
        required_context=[ContextRequirement.CODE],
        optimal_context=[ContextRequirement.CODE, ContextRequirement.WORKSPACE, ContextRequirement.PROJECT],
    )
