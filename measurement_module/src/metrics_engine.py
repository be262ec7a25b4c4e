"""
Metrics Engine - Group parity ratios relative to a privileged group.

Binarises predicted probabilities at a cutoff, computes one statistic per
protected group from its confusion counts (precision, true positive rate,
positive prediction rate, ...), and divides by the privileged group's value:

    ratio(g) = statistic(g) / statistic(privileged)

1.0 is parity, below 1.0 a disadvantage and above 1.0 an advantage relative
to the privileged group. Under the four-fifths rule ratios below 0.8 point
to adverse impact.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix

from shared.constants import DEFAULT_CUTOFF
from shared.exceptions import (
    EmptyGroupError,
    MetricComputationError,
    UnsupportedMetricError,
    ValidationError,
)
from shared.logging import get_logger, log_metric
from shared.schemas import FairnessReport, group_key
from shared.validation import validate_binary_label, validate_cutoff, validate_predictions

logger = get_logger(__name__)

ArrayLike = Union[np.ndarray, pd.Series, list]


@dataclass(frozen=True)
class ConfusionCounts:
    """Confusion-matrix cells of one group."""

    tn: int
    fp: int
    fn: int
    tp: int

    @property
    def n(self) -> int:
        return self.tn + self.fp + self.fn + self.tp


@dataclass(frozen=True)
class GroupStatistic:
    """
    How a metric's per-group statistic is formed from confusion counts.

    ``denominator_label`` names the rows the statistic is conditioned on
    and is used in EmptyGroupError messages.
    """

    name: str
    numerator: Callable[[ConfusionCounts], int]
    denominator: Callable[[ConfusionCounts], int]
    denominator_label: str

    def compute(self, counts: ConfusionCounts, group: Any, metric: str) -> float:
        denominator = self.denominator(counts)
        if denominator == 0:
            raise EmptyGroupError(
                f"Group '{group}' has no {self.denominator_label} rows; "
                f"cannot compute {self.name} for {metric}",
                group=group,
                metric=metric,
            )
        return self.numerator(counts) / denominator


METRIC_DEFINITIONS: Dict[str, GroupStatistic] = {
    "predictive_rate_parity": GroupStatistic(
        "precision", lambda c: c.tp, lambda c: c.tp + c.fp, "predicted-positive"
    ),
    "equal_opportunity": GroupStatistic(
        "true positive rate", lambda c: c.tp, lambda c: c.tp + c.fn, "actual-positive"
    ),
    "statistical_parity": GroupStatistic(
        "positive prediction rate", lambda c: c.tp + c.fp, lambda c: c.n, "evaluated"
    ),
    "false_positive_rate_parity": GroupStatistic(
        "false positive rate", lambda c: c.fp, lambda c: c.fp + c.tn, "actual-negative"
    ),
    "specificity_parity": GroupStatistic(
        "true negative rate", lambda c: c.tn, lambda c: c.tn + c.fp, "actual-negative"
    ),
    "negative_predictive_value_parity": GroupStatistic(
        "negative predictive value", lambda c: c.tn, lambda c: c.tn + c.fn, "predicted-negative"
    ),
    "accuracy_parity": GroupStatistic(
        "accuracy", lambda c: c.tp + c.tn, lambda c: c.n, "evaluated"
    ),
}


def get_metric_definition(metric: str) -> GroupStatistic:
    """Look up a metric, raising UnsupportedMetricError for unknown names."""
    if metric not in METRIC_DEFINITIONS:
        raise UnsupportedMetricError(
            f"Metric '{metric}' is not supported. "
            f"Choose from: {list(METRIC_DEFINITIONS)}"
        )
    return METRIC_DEFINITIONS[metric]


def binarize(predictions: ArrayLike, cutoff: float = DEFAULT_CUTOFF) -> np.ndarray:
    """Map probabilities to {0, 1}; values >= cutoff are positive."""
    validate_cutoff(cutoff)
    return (np.asarray(predictions, dtype=float) >= cutoff).astype(int)


def confusion_counts(y_true: np.ndarray, y_pred: np.ndarray) -> ConfusionCounts:
    """Confusion counts with both classes always present."""
    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
    return ConfusionCounts(tn=int(tn), fp=int(fp), fn=int(fn), tp=int(tp))


def compute_group_counts(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    protected: np.ndarray,
) -> Dict[str, ConfusionCounts]:
    """
    Confusion counts per protected group.

    Returns:
        Dictionary mapping group -> ConfusionCounts, in sorted group order
    """
    counts = {}
    for group in np.unique(protected):
        mask = protected == group
        counts[group_key(group)] = confusion_counts(y_true[mask], y_pred[mask])
    return counts


def group_statistic(
    metric: str,
    counts: ConfusionCounts,
    group: Any,
) -> float:
    """
    Compute one group's statistic for a metric.

    Raises:
        UnsupportedMetricError: For an unknown metric
        EmptyGroupError: If the group has no rows in the metric's denominator
    """
    return get_metric_definition(metric).compute(counts, group_key(group), metric)


def _prepare_inputs(
    predictions: ArrayLike,
    labels: ArrayLike,
    protected: ArrayLike,
    privileged_group: Any,
    cutoff: float,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    validate_cutoff(cutoff)
    validate_predictions(labels, predictions, protected)
    y_true = validate_binary_label(labels, name="labels")
    y_pred = binarize(predictions, cutoff)
    protected = np.asarray(protected)

    present = {group_key(g) for g in np.unique(protected)}
    if group_key(privileged_group) not in present:
        raise ValidationError(
            f"Privileged group {privileged_group!r} not found in protected attribute "
            f"(groups: {sorted(present)})"
        )

    return y_true, y_pred, protected


def evaluate(
    predictions: ArrayLike,
    labels: ArrayLike,
    protected: ArrayLike,
    privileged_group: Any,
    cutoff: float = DEFAULT_CUTOFF,
    metric: str = "predictive_rate_parity",
    model_id: str = "model",
) -> FairnessReport:
    """
    Compute a parity metric for every group relative to the privileged group.

    Args:
        predictions: Predicted probabilities (or hard 0/1 predictions)
        labels: True binary labels
        protected: Protected attribute per row
        privileged_group: Group used as the ratio denominator
        cutoff: Decision threshold; predictions >= cutoff are positive
        metric: Name of the metric (see METRIC_DEFINITIONS)
        model_id: Identifier stored in the report keys

    Returns:
        FairnessReport with one ratio per computable group. Groups with no
        rows in the metric's denominator are recorded in ``failures``.

    Raises:
        UnsupportedMetricError: For an unknown metric
        ValidationError / ConfigurationError: For malformed inputs
        EmptyGroupError: If the privileged group itself has no qualifying rows
        MetricComputationError: If the privileged group's statistic is zero
    """
    definition = get_metric_definition(metric)
    y_true, y_pred, protected = _prepare_inputs(
        predictions, labels, protected, privileged_group, cutoff
    )

    privileged = group_key(privileged_group)
    group_counts = compute_group_counts(y_true, y_pred, protected)
    report = FairnessReport(privileged_group=privileged, cutoff=cutoff)

    for group, counts in group_counts.items():
        report.group_sizes[(model_id, group)] = counts.n

    # Raises for the privileged group: without it no ratio exists
    reference = definition.compute(group_counts[privileged], privileged, metric)
    if reference == 0:
        raise MetricComputationError(
            f"Privileged group '{privileged}' has {definition.name} 0 for {metric}; "
            f"ratios are undefined"
        )

    for group, counts in group_counts.items():
        key = (model_id, group, metric)
        if group == privileged:
            report.statistics[key] = reference
            report.ratios[key] = 1.0
            continue

        try:
            value = definition.compute(counts, group, metric)
        except EmptyGroupError as e:
            logger.warning(f"{model_id}: {e}")
            report.failures[key] = e
            continue

        report.statistics[key] = value
        report.ratios[key] = value / reference
        log_metric(logger, metric, report.ratios[key], {"model": model_id, "group": group})

    return report
