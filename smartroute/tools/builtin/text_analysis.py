"""
Text Analysis Tool for SmartRoute.
"""

import re
from typing import List, Sequence

from ..base.conversation import ConversationContext
from ..base.tool_errors import InvalidParametersError
from ..base.tool_interface import (
    ContextRequirement,
    ParallelHandler,
    Tool,
    ToolCapability,
    ToolCategory,
    ToolExecutionResult,
    ToolHandler,
    ToolParameters,
)

TOOL_ID = "text_analysis"

SENTENCE_BOUNDARY = re.compile(r"[.!?]+")


def count_sentences(text: str) -> int:
    return len([s for s in SENTENCE_BOUNDARY.split(text) if s.strip()])


class TextAnalysisHandler(ToolHandler):
    """Word, sentence and character statistics for a piece of text."""

    async def execute(self, parameters: ToolParameters, context: ConversationContext) -> ToolExecutionResult:
        texts = parameters.get("texts")
        if isinstance(texts, (list, tuple)):
            text = "\n\n".join(str(t) for t in texts)
        else:
            text = parameters.get("text") or context.last_message_content

        if not text:
            raise InvalidParametersError(TOOL_ID, "no text to analyze")

        word_count = len(text.split())
        sentence_count = count_sentences(text)
        character_count = len(text)
        words_per_sentence = word_count // sentence_count if sentence_count else 0

        analysis = (
            "Text Analysis Results:\n"
            f"- Word count: {word_count}\n"
            f"- Sentence count: {sentence_count}\n"
            f"- Character count: {character_count}\n"
            f"- Average words per sentence: {words_per_sentence}"
        )

        return ToolExecutionResult.success_result(
            output=analysis,
            confidence=0.95,
            metadata={
                "word_count": word_count,
                "sentence_count": sentence_count,
                "character_count": character_count,
            }
        )

    def validate_parameters(self, parameters: ToolParameters) -> bool:
        if "texts" in parameters.values:
            texts = parameters.get("texts")
            return isinstance(texts, (list, tuple)) and bool(texts)
        # without `text` the last message is analyzed
        text = parameters.get("text")
        return text is None or isinstance(text, str)


class TextAnalysisParallelHandler(ParallelHandler):
    """Analyzes each entry of a `texts` list separately and sums the statistics."""

    def split_parameters(self, parameters: ToolParameters) -> List[ToolParameters]:
        texts = parameters.get("texts")
        if not isinstance(texts, (list, tuple)) or not texts:
            return [parameters]
        return [ToolParameters(values={"text": str(text)}) for text in texts]

    def combine_results(self, results: Sequence[ToolExecutionResult]) -> ToolExecutionResult:
        totals = {"word_count": 0, "sentence_count": 0, "character_count": 0}
        for result in results:
            for key in totals:
                totals[key] += int(result.metadata.get(key, 0))

        sections = [f"[{index + 1}] {result.output}" for index, result in enumerate(results)]
        summary = (
            f"Combined totals across {len(results)} texts: "
            f"{totals['word_count']} words, {totals['sentence_count']} sentences, "
            f"{totals['character_count']} characters"
        )

        return ToolExecutionResult(
            success=all(r.success for r in results),
            output="\n\n".join(sections + [summary]),
            confidence=min((r.confidence for r in results), default=0.0),
            execution_time=max((r.execution_time for r in results), default=0.0),
            metadata={**totals, "chunks": len(results)},
        )


def create_text_analysis_tool() -> Tool:
    return Tool(
        id=TOOL_ID,
        name="Text Analysis",
        description="Intelligent text analysis and processing",
        category=ToolCategory.TEXT_PROCESSING,
        handler=TextAnalysisHandler(),
        capabilities={ToolCapability.ANALYSIS, ToolCapability.SUMMARIZATION, ToolCapability.EXTRACTION},
        required_context=[ContextRequirement.TEXT],
        optimal_context=[ContextRequirement.TEXT, ContextRequirement.WORKSPACE],
        is_parallelizable=True,
        parallel_handler=TextAnalysisParallelHandler(),
    )
