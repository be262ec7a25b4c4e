"""Measurement Module Source - Core Implementation"""

# Use relative imports (dot notation) since we're inside the package
from .fairness_analyzer import FairnessAnalyzer, within_band
from .metrics_engine import (
    METRIC_DEFINITIONS,
    binarize,
    compute_group_counts,
    evaluate,
    group_statistic,
)
from .library_adapters import FairlearnAdapter, compare_with_native

__all__ = [
    'FairnessAnalyzer',
    'within_band',
    'METRIC_DEFINITIONS',
    'binarize',
    'compute_group_counts',
    'evaluate',
    'group_statistic',
    'FairlearnAdapter',
    'compare_with_native',
]
