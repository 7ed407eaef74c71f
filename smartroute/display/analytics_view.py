"""
Rich renderables for SmartRoute suggestions, results and analytics.
"""

from typing import List, Mapping, Sequence

from rich.columns import Columns
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..tools.base.tool_analytics import ToolAnalytics
from ..tools.base.tool_interface import SuggestionPriority, ToolExecutionResult, ToolSuggestion
from ..tools.base.tool_learning import IntelligentRecommendation
from ..tools.base.tool_performance_monitor import ToolPerformanceMetrics

PRIORITY_STYLES = {
    SuggestionPriority.CRITICAL: "bold red",
    SuggestionPriority.HIGH: "yellow",
    SuggestionPriority.MEDIUM: "cyan",
    SuggestionPriority.LOW: "dim",
}


def render_suggestions(suggestions: Sequence[ToolSuggestion], title: str = "Suggested Tools") -> Table:
    """Table of ranked suggestions."""
    table = Table(title=title, show_header=True, header_style="bold blue")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Tool", style="cyan")
    table.add_column("Priority")
    table.add_column("Confidence", justify="right", style="green")
    table.add_column("Reason", style="white")

    for index, suggestion in enumerate(suggestions, 1):
        priority = suggestion.priority
        table.add_row(
            str(index),
            suggestion.tool.id if suggestion.tool else "-",
            Text(priority.name.lower(), style=PRIORITY_STYLES[priority]),
            f"{suggestion.confidence:.2f}",
            suggestion.reason,
        )

    return table


def render_result(tool_id: str, result: ToolExecutionResult) -> Panel:
    """Panel with a tool's output and metadata."""
    content = Text()
    content.append(result.output or "(no output)")
    content.append("\n\n")
    content.append(f"Confidence: {result.confidence:.2f}", style="green")
    content.append(f"  Time: {result.execution_time * 1000:.1f}ms", style="dim")

    for key, value in sorted(result.metadata.items()):
        content.append(f"\n{key}: ", style="cyan")
        content.append(str(value))

    return Panel(
        content,
        title=f"{tool_id}",
        border_style="green" if result.success else "yellow",
    )


def render_error(message: str, title: str = "Tool Error") -> Panel:
    return Panel(Text(message, style="red"), title=title, border_style="red")


def render_metrics(metrics: Mapping[str, ToolPerformanceMetrics]) -> Table:
    """Per-tool performance table."""
    table = Table(title="Tool Performance", show_header=True, header_style="bold blue")
    table.add_column("Tool", style="cyan")
    table.add_column("Runs", justify="right")
    table.add_column("Success", justify="right", style="green")
    table.add_column("Avg Time", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Availability", justify="right", style="dim")

    for tool_id, m in sorted(metrics.items()):
        table.add_row(
            tool_id,
            str(m.total_executions),
            f"{m.success_rate * 100:.0f}%" if m.has_history else "-",
            f"{m.average_execution_time * 1000:.1f}ms" if m.has_history else "-",
            f"{m.overall_score:.2f}",
            f"{m.availability_score:.1f}",
        )

    return table


def render_recommendations(recommendations: Sequence[IntelligentRecommendation]) -> Panel:
    if not recommendations:
        return Panel(Text("No recommendations", style="dim"), title="Recommendations", border_style="blue")

    lines: List[str] = []
    for rec in recommendations:
        style = PRIORITY_STYLES[rec.priority]
        lines.append(f"[{style}]{rec.title}[/{style}]: {rec.description}")
        lines.append(f"  [dim]{rec.action}[/dim]")

    return Panel("\n".join(lines), title="Recommendations", border_style="blue")


def render_analytics(analytics: ToolAnalytics,
                     metrics: Mapping[str, ToolPerformanceMetrics],
                     recommendations: Sequence[IntelligentRecommendation]) -> Group:
    """Dashboard of usage totals, most used tools, per-tool metrics and recommendations."""
    summary = Text()
    summary.append(f"Total usage: {analytics.total_tool_usage}\n", style="bold")
    summary.append(f"Unique tools: {analytics.unique_tools_used}\n")
    summary.append(f"Average time: {analytics.average_execution_time * 1000:.1f}ms\n")
    summary.append(f"Success rate: {analytics.overall_success_rate * 100:.1f}%", style="green")

    most_used = Table(show_header=True, header_style="bold blue")
    most_used.add_column("Most Used", style="cyan")
    most_used.add_column("Count", justify="right", style="green")
    for tool_id, count in analytics.most_used_tools:
        most_used.add_row(tool_id, str(count))

    insights = "\n".join(f"- {line}" for line in analytics.performance_insights) or "No insights yet"
    patterns = "\n".join(f"- {p.description}" for p in analytics.usage_patterns) or "No patterns yet"

    return Group(
        Columns([
            Panel(summary, title="Usage", border_style="blue"),
            Panel(most_used, title="Top Tools", border_style="blue"),
        ]),
        render_metrics(metrics),
        Panel(insights, title="Insights", border_style="blue"),
        Panel(patterns, title="Usage Patterns", border_style="blue"),
        render_recommendations(recommendations),
    )
