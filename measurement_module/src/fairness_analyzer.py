"""
Fairness Analyzer - Evaluate several metrics across several models.

Runs the metrics engine for each (model, metric) pair, merges the results
into one FairnessReport, and applies the four-fifths band check: a ratio
passes when it lies within [threshold, 1 / threshold].

Failures are isolated: a degenerate metric for one model is logged and
recorded, and evaluation continues for every other model and metric.
"""

from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from pipeline_module.src.data_loader import Dataset
from shared.constants import DEFAULT_CUTOFF, DEFAULT_METRICS, FOUR_FIFTHS_THRESHOLD
from shared.exceptions import ConfigurationError, FairnessAuditError
from shared.logging import get_logger, log_fairness_result
from shared.schemas import FairnessReport
from shared.validation import validate_cutoff
from training_module.src.model_trainer import FittedModel, predict

from .metrics_engine import evaluate, get_metric_definition

logger = get_logger(__name__)


def within_band(ratio: float, threshold: float = FOUR_FIFTHS_THRESHOLD) -> bool:
    """True if ratio lies in [threshold, 1 / threshold]."""
    return threshold <= ratio <= 1.0 / threshold


class FairnessAnalyzer:
    """
    Multi-metric, multi-model fairness evaluation.

    Args:
        privileged_group: Group used as the ratio denominator
        cutoff: Decision threshold applied to predicted probabilities
        metrics: Metric names to compute (default: predictive rate parity,
            equal opportunity, statistical parity)
        threshold: Lower edge of the acceptable ratio band (four-fifths rule)

    Example:
        >>> analyzer = FairnessAnalyzer(privileged_group='Caucasian')
        >>> report = analyzer.evaluate_models(models, validation)
        >>> analyzer.fairness_check(report)
    """

    def __init__(
        self,
        privileged_group: Any,
        cutoff: float = DEFAULT_CUTOFF,
        metrics: Optional[List[str]] = None,
        threshold: float = FOUR_FIFTHS_THRESHOLD,
    ):
        validate_cutoff(cutoff)
        if not 0 < threshold <= 1:
            raise ConfigurationError(f"threshold must be in (0, 1], got {threshold}")

        self.privileged_group = privileged_group
        self.cutoff = cutoff
        self.metrics = list(metrics) if metrics is not None else list(DEFAULT_METRICS)
        self.threshold = threshold

        # Fail early on unknown metric names
        for metric in self.metrics:
            get_metric_definition(metric)

        self.failures: Dict[Tuple[str, str], FairnessAuditError] = {}

    def evaluate_model(
        self,
        model_id: str,
        predictions: np.ndarray,
        labels: np.ndarray,
        protected: np.ndarray,
    ) -> FairnessReport:
        """
        Compute every configured metric for one model.

        Metrics that cannot be computed at all (e.g. the privileged group has
        no qualifying rows) are logged and recorded in the report's
        ``metric_failures`` as well as in ``self.failures``.
        """
        report = FairnessReport(privileged_group=self.privileged_group, cutoff=self.cutoff)

        for metric in self.metrics:
            try:
                result = evaluate(
                    predictions,
                    labels,
                    protected,
                    privileged_group=self.privileged_group,
                    cutoff=self.cutoff,
                    metric=metric,
                    model_id=model_id,
                )
            except FairnessAuditError as e:
                logger.error(f"{model_id}/{metric} could not be evaluated: {e}")
                self.failures[(model_id, metric)] = e
                report.metric_failures[(model_id, metric)] = e
                continue

            report = report.merge(result)

            ratios = {
                group: ratio
                for (_, group, m), ratio in result.ratios.items()
                if m == metric
            }
            log_fairness_result(
                logger,
                metric,
                model_id,
                is_fair=all(within_band(r, self.threshold) for r in ratios.values()),
                threshold=self.threshold,
                group_ratios=ratios,
            )

        return report

    def evaluate_models(
        self,
        models: Dict[str, FittedModel],
        dataset: Dataset,
    ) -> FairnessReport:
        """Predict with each model on the dataset and merge all reports."""
        report = FairnessReport(privileged_group=self.privileged_group, cutoff=self.cutoff)
        labels = dataset.labels
        protected = dataset.protected

        for model_id, model in models.items():
            predictions = predict(model, dataset)
            report = report.merge(
                self.evaluate_model(model_id, predictions, labels, protected)
            )

        return report

    def fairness_check(
        self,
        report: FairnessReport,
        threshold: Optional[float] = None,
    ) -> pd.DataFrame:
        """
        Flag each ratio as inside or outside the [threshold, 1/threshold] band.

        Returns:
            DataFrame with columns model, group, metric, ratio, passed
        """
        threshold = self.threshold if threshold is None else threshold
        frame = report.to_frame()
        frame = frame[~frame["privileged"].astype(bool)].copy()
        frame["passed"] = frame["ratio"].apply(lambda r: within_band(r, threshold))
        return frame[["model", "group", "metric", "ratio", "passed"]].reset_index(drop=True)

    def summarize(self, report: FairnessReport) -> pd.DataFrame:
        """Number of passed and failed band checks per model."""
        checks = self.fairness_check(report)
        if checks.empty:
            return pd.DataFrame(columns=["model", "passed", "failed"])

        summary = checks.groupby("model")["passed"].agg(
            passed="sum",
            failed=lambda s: int((~s).sum()),
        )
        summary["passed"] = summary["passed"].astype(int)
        return summary.reset_index()
