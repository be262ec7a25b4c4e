"""
Pipeline Module - Data loading, partitioning and reweighing.

Provides:
- load / split / partition: Read a tabular dataset and split it reproducibly
- Reweighing / compute_weights: Per-row weights that decouple label and
  protected attribute

Quick Start:
    from pipeline_module import load, split, compute_weights

    dataset = load('data/compas.csv', 'two_year_recid', 'race')
    train, validation = split(dataset, fraction=0.7, seed=42)
    weights = compute_weights(train.protected, train.labels)
"""

from .data_loader import Dataset, Split, load, partition, split
from .transformers import Reweighing, compute_weights, weighted_label_rates

__all__ = [
    'Dataset',
    'Split',
    'load',
    'partition',
    'split',
    'Reweighing',
    'compute_weights',
    'weighted_label_rates',
]
