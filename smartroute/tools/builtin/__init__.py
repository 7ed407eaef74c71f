"""
Built-in tools for the SmartRoute tool system.
"""

from typing import List

from ..base.tool_interface import Tool
from .code_analysis import create_code_analysis_tool
from .creative_assistant import create_creative_assistant_tool
from .file_processor import create_file_processor_tool
from .text_analysis import create_text_analysis_tool
from .web_research import create_web_research_tool


def builtin_tools() -> List[Tool]:
    """Fresh descriptors (and handlers) for every built-in tool."""
    return [
        create_text_analysis_tool(),
        create_code_analysis_tool(),
        create_web_research_tool(),
        create_file_processor_tool(),
        create_creative_assistant_tool(),
    ]


__all__ = [
    'builtin_tools',
    'create_text_analysis_tool',
    'create_code_analysis_tool',
    'create_web_research_tool',
    'create_file_processor_tool',
    'create_creative_assistant_tool'
]
