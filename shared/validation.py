"""
Validation utilities for the fairness audit pipeline.
Input validation, data quality checks, and error handling.
"""

import numpy as np
import pandas as pd
from typing import Any, List, Optional, Union

from shared.constants import FAIRNESS_METRICS, MODEL_FAMILIES
from shared.exceptions import (
    ConfigurationError,
    DataFormatError,
    ValidationError,
    WeightMismatchError,
)


def validate_dataframe(
    df: pd.DataFrame,
    required_columns: Optional[List[str]] = None,
    min_rows: int = 1,
) -> None:
    """
    Validate DataFrame structure and content.

    Args:
        df: DataFrame to validate
        required_columns: List of required column names
        min_rows: Minimum number of rows required

    Raises:
        DataFormatError: If validation fails
    """
    if not isinstance(df, pd.DataFrame):
        raise DataFormatError(f"Expected DataFrame, got {type(df)}")

    if len(df) < min_rows:
        raise DataFormatError(
            f"DataFrame has {len(df)} rows, minimum {min_rows} required"
        )

    if required_columns:
        missing = [c for c in required_columns if c not in df.columns]
        if missing:
            raise DataFormatError(f"Missing required columns: {missing}")


def validate_binary_label(
    labels: Union[np.ndarray, pd.Series],
    name: str = "labels",
) -> np.ndarray:
    """
    Validate that labels contain only 0s and 1s and return them as ints.

    Raises:
        ValidationError: If labels are not binary
    """
    labels = np.asarray(labels)

    if labels.dtype == bool:
        return labels.astype(int)

    try:
        numeric = labels.astype(float)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be binary (0 or 1), got dtype {labels.dtype}")

    if np.any(np.isnan(numeric)):
        raise ValidationError(f"{name} contain missing values")

    unique_values = np.unique(numeric)
    if not np.all(np.isin(unique_values, [0, 1])):
        raise ValidationError(
            f"{name} must contain only 0 and 1. Found values: {unique_values}"
        )

    return numeric.astype(int)


def validate_predictions(
    y_true: Union[np.ndarray, pd.Series],
    y_score: Union[np.ndarray, pd.Series],
    protected: Union[np.ndarray, pd.Series],
) -> None:
    """
    Validate aligned label / score / protected-attribute arrays.

    Args:
        y_true: True labels
        y_score: Predicted probabilities or hard labels
        protected: Protected attribute per row

    Raises:
        ValidationError: If validation fails
    """
    y_true = np.asarray(y_true)
    y_score = np.asarray(y_score, dtype=float)
    protected = np.asarray(protected)

    lengths = [len(y_true), len(y_score), len(protected)]
    if len(set(lengths)) > 1:
        raise ValidationError(
            f"Length mismatch: labels={lengths[0]}, predictions={lengths[1]}, "
            f"protected={lengths[2]}"
        )

    if len(y_true) == 0:
        raise ValidationError("Empty prediction arrays")

    if np.any(np.isnan(y_score)) or np.any(np.isinf(y_score)):
        raise ValidationError("Predictions contain NaN or infinite values")

    if np.any((y_score < 0) | (y_score > 1)):
        raise ValidationError("Predictions must be probabilities in [0, 1]")

    if pd.isna(protected).any():
        raise ValidationError("Protected attribute contains missing values")


def validate_cutoff(cutoff: float) -> None:
    """Raise ConfigurationError unless cutoff lies in [0, 1]."""
    if not isinstance(cutoff, (int, float)) or not 0 <= cutoff <= 1:
        raise ConfigurationError(f"cutoff must be a number in [0, 1], got {cutoff!r}")


def validate_sample_weights(
    sample_weights: Union[np.ndarray, pd.Series],
    n_samples: int,
) -> np.ndarray:
    """
    Validate sample weights array.

    Args:
        sample_weights: Array of sample weights
        n_samples: Expected number of samples

    Returns:
        Weights as a float array

    Raises:
        WeightMismatchError: If validation fails
    """
    sample_weights = np.asarray(sample_weights, dtype=float)

    if sample_weights.ndim != 1 or len(sample_weights) != n_samples:
        raise WeightMismatchError(
            f"Sample weights length {len(sample_weights)} != n_samples {n_samples}"
        )

    if np.any(np.isnan(sample_weights)) or np.any(np.isinf(sample_weights)):
        raise WeightMismatchError("Sample weights contain NaN or infinite values")

    if np.any(sample_weights < 0):
        n_negative = int(np.sum(sample_weights < 0))
        raise WeightMismatchError(f"Sample weights must be non-negative ({n_negative} negative)")

    if np.sum(sample_weights) == 0:
        raise WeightMismatchError("Sum of sample weights is zero")

    return sample_weights


def validate_config(config: Any) -> List[str]:
    """
    Validate audit configuration.

    Args:
        config: AuditConfig object

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    required_attrs = ["label_column", "protected_attribute"]
    for attr in required_attrs:
        if not getattr(config, attr, None):
            errors.append(f"Missing required config: {attr}")

    if getattr(config, "privileged_group", None) is None:
        errors.append("Missing required config: privileged_group")

    invalid_metrics = [
        m for m in getattr(config, "metrics", []) if m not in FAIRNESS_METRICS
    ]
    if invalid_metrics:
        errors.append(
            f"Invalid fairness metrics: {invalid_metrics}. "
            f"Valid options: {list(FAIRNESS_METRICS.keys())}"
        )

    invalid_families = [
        f for f in getattr(config, "model_families", []) if f not in MODEL_FAMILIES
    ]
    if invalid_families:
        errors.append(
            f"Invalid model families: {invalid_families}. "
            f"Valid options: {list(MODEL_FAMILIES.keys())}"
        )

    cutoff = getattr(config, "cutoff", 0.5)
    if not _is_number(cutoff):
        errors.append(f"cutoff must be a number, got {cutoff!r}")
    elif not 0 <= cutoff <= 1:
        errors.append("cutoff must be between 0 and 1")

    fraction = getattr(config, "train_fraction", 0.7)
    if not _is_number(fraction):
        errors.append(f"train_fraction must be a number, got {fraction!r}")
    elif not 0 < fraction < 1:
        errors.append("train_fraction must be strictly between 0 and 1")

    threshold = getattr(config, "fairness_threshold", 0.8)
    if not _is_number(threshold):
        errors.append(f"fairness_threshold must be a number, got {threshold!r}")
    elif not 0 < threshold <= 1:
        errors.append("fairness_threshold must be in (0, 1]")

    return errors


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def safe_divide(
    numerator: float,
    denominator: float,
    default: float = 0.0,
) -> float:
    """
    Safely divide two numbers, returning default if denominator is zero.

    Args:
        numerator: Numerator
        denominator: Denominator
        default: Value to return if denominator is zero

    Returns:
        Division result or default
    """
    if denominator == 0:
        return default
    return numerator / denominator
