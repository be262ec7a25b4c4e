"""
Training Module - Off-the-shelf model training for fairness audits.

Provides:
- ModelFamily: logistic regression, ridge, decision tree, random forest
- fit / predict: Train with optional reweighing weights and score rows

Quick Start:
    from training_module import ModelFamily, fit, predict

    model = fit(train, weights=weights, family=ModelFamily.RANDOM_FOREST)
    probabilities = predict(model, validation)
"""

from training_module.src.model_trainer import (
    FittedModel,
    ModelFamily,
    fit,
    predict,
)

__all__ = [
    'FittedModel',
    'ModelFamily',
    'fit',
    'predict',
]
