"""
Terminal display helpers for SmartRoute.
"""

from .analytics_view import (
    render_analytics,
    render_error,
    render_metrics,
    render_recommendations,
    render_result,
    render_suggestions,
)

__all__ = [
    'render_analytics',
    'render_error',
    'render_metrics',
    'render_recommendations',
    'render_result',
    'render_suggestions'
]
