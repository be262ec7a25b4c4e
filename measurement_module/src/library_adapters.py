# measurement_module/src/library_adapters.py
"""
Library Adapters - Recompute group ratios with Fairlearn.

Fairness libraries disagree on conventions (which group is the reference,
which label is positive, how empty groups are treated). The adapter runs
the same metric through ``fairlearn.metrics.MetricFrame`` under this
project's conventions (label 1 positive, ratios group / privileged) so the
native results can be cross-checked.
"""

from abc import ABC, abstractmethod
from functools import partial
from typing import Any, Callable, Dict, List, Optional

import numpy as np
import pandas as pd
from fairlearn.metrics import (
    MetricFrame,
    false_positive_rate,
    selection_rate,
    true_negative_rate,
    true_positive_rate,
)
from sklearn.metrics import accuracy_score, precision_score

from shared.exceptions import UnsupportedMetricError, ValidationError
from shared.logging import get_logger
from shared.schemas import FairnessReport, group_key
from shared.validation import validate_binary_label

from .metrics_engine import binarize

logger = get_logger(__name__)


class FairnessLibraryAdapter(ABC):
    """Abstract base class for fairness library adapters."""

    name: str = "abstract"

    @abstractmethod
    def group_statistics(
        self,
        metric: str,
        y_true: np.ndarray,
        y_pred: np.ndarray,
        protected: np.ndarray,
    ) -> pd.Series:
        """Per-group statistic for a metric, indexed by group name."""

    @abstractmethod
    def get_available_metrics(self) -> List[str]:
        """Return list of metrics supported by this adapter."""

    def ratios(
        self,
        metric: str,
        y_true: np.ndarray,
        y_pred: np.ndarray,
        protected: np.ndarray,
        privileged_group: Any,
    ) -> Dict[str, float]:
        """Per-group statistic divided by the privileged group's statistic."""
        stats = self.group_statistics(metric, y_true, y_pred, protected)
        privileged = group_key(privileged_group)
        if privileged not in stats.index:
            raise ValidationError(
                f"Privileged group {privileged_group!r} not found (groups: {list(stats.index)})"
            )

        reference = stats[privileged]
        result = {}
        for group, value in stats.items():
            if np.isnan(value) or np.isnan(reference) or reference == 0:
                result[group] = float("nan")
            else:
                result[group] = float(value / reference)
        return result


class FairlearnAdapter(FairnessLibraryAdapter):
    """Adapter for Microsoft Fairlearn's MetricFrame."""

    name = "fairlearn"

    def __init__(self):
        self._metric_functions: Dict[str, Callable] = {
            "predictive_rate_parity": partial(precision_score, zero_division=np.nan),
            "equal_opportunity": true_positive_rate,
            "statistical_parity": selection_rate,
            "false_positive_rate_parity": false_positive_rate,
            "specificity_parity": true_negative_rate,
            "negative_predictive_value_parity": partial(
                precision_score, pos_label=0, zero_division=np.nan
            ),
            "accuracy_parity": accuracy_score,
        }

    def get_available_metrics(self) -> List[str]:
        return list(self._metric_functions)

    def group_statistics(
        self,
        metric: str,
        y_true: np.ndarray,
        y_pred: np.ndarray,
        protected: np.ndarray,
    ) -> pd.Series:
        if metric not in self._metric_functions:
            raise UnsupportedMetricError(
                f"Metric '{metric}' is not available in {self.name}. "
                f"Choose from: {self.get_available_metrics()}"
            )

        frame = MetricFrame(
            metrics={metric: self._metric_functions[metric]},
            y_true=np.asarray(y_true),
            y_pred=np.asarray(y_pred),
            sensitive_features=pd.Series(np.asarray(protected), name="group"),
        )
        stats = frame.by_group[metric].astype(float)
        stats.index = [group_key(g) for g in stats.index]
        return stats


def compare_with_native(
    report: FairnessReport,
    predictions: Dict[str, np.ndarray],
    labels: np.ndarray,
    protected: np.ndarray,
    adapter: Optional[FairnessLibraryAdapter] = None,
) -> pd.DataFrame:
    """
    Cross-check every native ratio in a report against a library adapter.

    Args:
        report: Native FairnessReport
        predictions: model_id -> predicted probabilities on the evaluated rows
        labels: True binary labels of the evaluated rows
        protected: Protected attribute of the evaluated rows
        adapter: Library adapter (default: FairlearnAdapter)

    Returns:
        DataFrame with columns model, group, metric, native, library,
        abs_difference
    """
    adapter = adapter or FairlearnAdapter()
    y_true = validate_binary_label(labels, name="labels")
    protected = np.asarray(protected)

    cache: Dict[tuple, Dict[str, float]] = {}
    rows = []
    for (model_id, group, metric), native in report.ratios.items():
        if model_id not in predictions or metric not in adapter.get_available_metrics():
            continue

        if (model_id, metric) not in cache:
            y_pred = binarize(predictions[model_id], report.cutoff)
            cache[(model_id, metric)] = adapter.ratios(
                metric, y_true, y_pred, protected, report.privileged_group
            )

        library_value = cache[(model_id, metric)].get(group, float("nan"))
        rows.append({
            "model": model_id,
            "group": group,
            "metric": metric,
            "native": native,
            adapter.name: library_value,
            "abs_difference": abs(native - library_value),
        })

    comparison = pd.DataFrame(
        rows,
        columns=["model", "group", "metric", "native", adapter.name, "abs_difference"],
    )

    if not comparison.empty:
        logger.info(
            f"Cross-checked {len(comparison)} ratios against {adapter.name}: "
            f"max abs difference={comparison['abs_difference'].max():.2e}"
        )

    return comparison
