"""Reporting Module"""
from reporting_module.src.report_generator import ReportGenerator, render_table
from reporting_module.src.visualization import render_plot
__all__ = ['ReportGenerator', 'render_table', 'render_plot']
