"""
Transformers - sklearn-compatible bias mitigation transformers.

Provides reweighing that can be used ahead of any estimator accepting
``sample_weight``.
"""

from .reweighting import Reweighing, compute_weights, weighted_label_rates

__all__ = [
    'Reweighing',
    'compute_weights',
    'weighted_label_rates',
]
