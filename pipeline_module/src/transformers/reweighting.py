"""
Reweighing Transformer - sklearn-compatible pre-processing for bias mitigation.

Assigns every training row a weight so that, under the weights, the label
looks statistically independent of the protected attribute:

    w(g, l) = P(A=g) * P(Y=l) / P(A=g, Y=l)

Compatible with sklearn.pipeline.Pipeline via fit_transform returning
(X, y, sample_weights).
"""

import numpy as np
import pandas as pd
from typing import Dict, Optional, Tuple, Union
from sklearn.base import BaseEstimator, TransformerMixin

from shared.exceptions import WeightMismatchError
from shared.schemas import group_key
from shared.validation import safe_divide, validate_binary_label
from shared.logging import get_logger

logger = get_logger(__name__)

ArrayLike = Union[np.ndarray, pd.Series, list]


def _cell_weights(protected: np.ndarray, label: np.ndarray) -> Dict[Tuple, float]:
    n_total = len(protected)
    groups, group_counts = np.unique(protected, return_counts=True)
    labels, label_counts = np.unique(label, return_counts=True)

    weights = {}
    for group, n_group in zip(groups, group_counts):
        for value, n_label in zip(labels, label_counts):
            n_cell = int(np.sum((protected == group) & (label == value)))
            if n_cell == 0:
                # Empty cell: no rows to weight
                weights[(group, value)] = 0.0
                continue
            expected = n_group * n_label / n_total
            weights[(group, value)] = expected / n_cell
    return weights


def compute_weights(protected: ArrayLike, label: ArrayLike) -> np.ndarray:
    """
    Compute per-row reweighing weights.

    Args:
        protected: Protected attribute for each row
        label: Binary label for each row

    Returns:
        Array of non-negative weights aligned with the input rows

    Raises:
        WeightMismatchError: If the two inputs differ in length or are empty
    """
    protected = np.asarray(protected)
    label = validate_binary_label(label, name="label")

    if len(protected) != len(label):
        raise WeightMismatchError(
            f"protected has {len(protected)} rows but label has {len(label)}"
        )
    if len(protected) == 0:
        raise WeightMismatchError("Cannot compute weights for zero rows")

    table = _cell_weights(protected, label)
    weights = np.array([table[(g, l)] for g, l in zip(protected, label)], dtype=float)

    logger.info(
        f"Computed reweighing weights: "
        f"mean={weights.mean():.3f}, min={weights.min():.3f}, max={weights.max():.3f}"
    )

    return weights


def weighted_label_rates(
    protected: ArrayLike,
    label: ArrayLike,
    weights: Optional[ArrayLike] = None,
) -> Dict[str, float]:
    """
    Weighted share of positive labels within each protected group.

    After reweighing every group should report the overall positive rate.
    """
    protected = np.asarray(protected)
    label = validate_binary_label(label, name="label")
    weights = np.ones(len(label)) if weights is None else np.asarray(weights, dtype=float)

    rates = {}
    for group in np.unique(protected):
        mask = protected == group
        total = weights[mask].sum()
        rates[group_key(group)] = float(safe_divide(weights[mask & (label == 1)].sum(), total))
    return rates


class Reweighing(BaseEstimator, TransformerMixin):
    """
    Reweigh samples so the label is independent of the protected attribute.

    Example:
        >>> reweigher = Reweighing()
        >>> X, y, weights = reweigher.fit_transform(
        ...     X_train, y_train, sensitive_features=race_train
        ... )
        >>> model.fit(X, y, sample_weight=weights)
    """

    def __init__(self, alpha: float = 1.0):
        """
        Args:
            alpha: Smoothing parameter (1.0 = full reweighing, 0.0 = uniform weights)
        """
        self.alpha = alpha

    def fit(
        self,
        X: Union[np.ndarray, pd.DataFrame],
        y: Optional[ArrayLike] = None,
        sensitive_features: Optional[ArrayLike] = None,
    ) -> "Reweighing":
        """
        Learn the (group, label) weight table.

        Args:
            X: Training features (not used, for sklearn compatibility)
            y: Binary training labels
            sensitive_features: Protected attribute for each sample

        Returns:
            self (fitted transformer)
        """
        if y is None or sensitive_features is None:
            raise ValueError("Reweighing.fit() requires y and sensitive_features")
        if not 0.0 <= self.alpha <= 1.0:
            raise ValueError(f"alpha must be in [0, 1], got {self.alpha}")

        protected = np.asarray(sensitive_features)
        label = validate_binary_label(y, name="y")
        if len(protected) != len(label):
            raise WeightMismatchError(
                f"sensitive_features has {len(protected)} rows but y has {len(label)}"
            )

        self.cell_weights_ = {
            cell: self.alpha * w + (1 - self.alpha) * 1.0
            for cell, w in _cell_weights(protected, label).items()
        }
        self.n_groups_ = len(np.unique(protected))

        logger.info(f"Fitted Reweighing: {self.cell_weights_}")

        return self

    def transform(self, X: Union[np.ndarray, pd.DataFrame]) -> Union[np.ndarray, pd.DataFrame]:
        """Features pass through unchanged; use get_sample_weights() for weights."""
        return X

    def fit_transform(
        self,
        X: Union[np.ndarray, pd.DataFrame],
        y: Optional[ArrayLike] = None,
        sensitive_features: Optional[ArrayLike] = None,
    ) -> Tuple[Union[np.ndarray, pd.DataFrame], np.ndarray, np.ndarray]:
        """
        Fit and return features, labels, and sample weights.

        Returns:
            Tuple of (X, y, sample_weights)
        """
        self.fit(X, y, sensitive_features)
        weights = self.get_sample_weights(sensitive_features, y)
        return X, np.asarray(y), weights

    def get_sample_weights(self, sensitive_features: ArrayLike, y: ArrayLike) -> np.ndarray:
        """
        Look up weights for rows; unseen (group, label) cells get weight 0.

        Args:
            sensitive_features: Protected attribute for each sample
            y: Binary label for each sample

        Returns:
            Array of sample weights
        """
        if not hasattr(self, "cell_weights_"):
            raise ValueError("Must call fit() before get_sample_weights()")

        protected = np.asarray(sensitive_features)
        label = validate_binary_label(y, name="y")
        if len(protected) != len(label):
            raise WeightMismatchError(
                f"sensitive_features has {len(protected)} rows but y has {len(label)}"
            )

        weights = np.array(
            [self.cell_weights_.get((g, l), 0.0) for g, l in zip(protected, label)],
            dtype=float,
        )

        logger.info(
            f"Generated sample weights: "
            f"mean={weights.mean():.3f}, min={weights.min():.3f}, max={weights.max():.3f}"
        )

        return weights
