"""Pipeline Module"""
from pipeline_module.src.data_loader import Dataset, Split, load, partition, split
from pipeline_module.src.transformers.reweighting import Reweighing, compute_weights, weighted_label_rates
__all__ = ['Dataset', 'Split', 'load', 'partition', 'split', 'Reweighing', 'compute_weights', 'weighted_label_rates']
