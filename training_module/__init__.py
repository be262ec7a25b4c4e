"""Training Module"""
from training_module.src.model_trainer import FittedModel, ModelFamily, fit, predict
__all__ = ['FittedModel', 'ModelFamily', 'fit', 'predict']
