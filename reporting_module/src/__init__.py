"""
Reporting Module - Tables, charts and Markdown reports for fairness audits.

Provides:
- render_table: Ratios as plain text
- render_plot: Ratios as a PNG bar chart
- ReportGenerator: Write Markdown + PNG reports without aborting on I/O errors
"""

from .report_generator import (
    ReportGenerator,
    ReportSection,
    WriteResult,
    ratio_table,
    render_table,
)
from .visualization import plot_fairness_comparison, render_plot

__all__ = [
    'ReportGenerator',
    'ReportSection',
    'WriteResult',
    'ratio_table',
    'render_table',
    'plot_fairness_comparison',
    'render_plot',
]
