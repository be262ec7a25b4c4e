"""Measurement Module"""
from measurement_module.src.fairness_analyzer import FairnessAnalyzer
from measurement_module.src.metrics_engine import evaluate
from measurement_module.src.library_adapters import FairlearnAdapter, compare_with_native
__all__ = ['FairnessAnalyzer', 'evaluate', 'FairlearnAdapter', 'compare_with_native']
