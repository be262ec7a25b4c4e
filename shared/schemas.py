"""
Data schemas for the fairness audit pipeline.
Defines dataclasses for structured data exchange between modules.
"""

import numbers
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
import yaml

from shared.constants import (
    DEFAULT_CUTOFF,
    DEFAULT_METRICS,
    DEFAULT_MODEL_FAMILIES,
    DEFAULT_PATHS,
    DEFAULT_SEED,
    DEFAULT_TRAIN_FRACTION,
    FOUR_FIFTHS_THRESHOLD,
)
from shared.exceptions import ConfigurationError, FairnessAuditError


ReportKey = Tuple[str, str, str]  # (model_id, group, metric)


def group_key(group: Any) -> str:
    """
    Canonical string form of a protected-group value.

    Whole-valued numbers collapse to their integer form, so a float-coded
    column (1.0) matches an integer privileged group (1). Strings are kept
    as given: the value 1 and the string "1" name the same group.
    """
    if isinstance(group, (bool, np.bool_)):
        return str(bool(group))
    if isinstance(group, numbers.Integral):
        return str(int(group))
    if isinstance(group, numbers.Real) and float(group).is_integer():
        return str(int(group))
    return str(group)


@dataclass
class FairnessReport:
    """
    Group parity ratios keyed by (model_id, group, metric).

    Every ratio is the group's statistic divided by the privileged
    group's statistic, so the privileged group's own ratio is 1.0.
    Groups whose statistic could not be computed are listed in
    ``failures`` instead of ``ratios``; metrics that failed for a whole
    model (e.g. the privileged statistic is zero) are listed in
    ``metric_failures`` keyed by (model_id, metric).
    """

    privileged_group: str
    cutoff: float
    ratios: Dict[ReportKey, float] = field(default_factory=dict)
    statistics: Dict[ReportKey, float] = field(default_factory=dict)
    group_sizes: Dict[Tuple[str, str], int] = field(default_factory=dict)
    failures: Dict[ReportKey, FairnessAuditError] = field(default_factory=dict)
    metric_failures: Dict[Tuple[str, str], FairnessAuditError] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        self.privileged_group = group_key(self.privileged_group)

    def __getitem__(self, key: ReportKey) -> float:
        model_id, group, metric = key
        return self.ratios[(model_id, group_key(group), metric)]

    def __contains__(self, key: ReportKey) -> bool:
        model_id, group, metric = key
        return (model_id, group_key(group), metric) in self.ratios

    def __iter__(self) -> Iterator[ReportKey]:
        return iter(self.ratios)

    def __len__(self) -> int:
        return len(self.ratios)

    def ratio(self, model_id: str, group: Any, metric: str) -> float:
        return self[(model_id, group, metric)]

    @property
    def models(self) -> List[str]:
        keys = list(self.ratios) + list(self.failures) + list(self.metric_failures)
        return _unique(k[0] for k in keys)

    @property
    def groups(self) -> List[str]:
        return _unique(k[1] for k in list(self.ratios) + list(self.failures))

    @property
    def metrics(self) -> List[str]:
        return _unique(
            [k[2] for k in list(self.ratios) + list(self.failures)]
            + [metric for _, metric in self.metric_failures]
        )

    def merge(self, other: "FairnessReport") -> "FairnessReport":
        """Combine two reports computed against the same privileged group and cutoff."""
        if other.privileged_group != self.privileged_group:
            raise ConfigurationError(
                f"Cannot merge reports with different privileged groups: "
                f"{self.privileged_group!r} vs {other.privileged_group!r}"
            )
        if other.cutoff != self.cutoff:
            raise ConfigurationError(
                f"Cannot merge reports with different cutoffs: "
                f"{self.cutoff} vs {other.cutoff}"
            )

        return FairnessReport(
            privileged_group=self.privileged_group,
            cutoff=self.cutoff,
            ratios={**self.ratios, **other.ratios},
            statistics={**self.statistics, **other.statistics},
            group_sizes={**self.group_sizes, **other.group_sizes},
            failures={**self.failures, **other.failures},
            metric_failures={**self.metric_failures, **other.metric_failures},
        )

    def to_frame(self) -> pd.DataFrame:
        """Long-format table: one row per (model, group, metric) ratio."""
        rows = []
        for (model_id, group, metric), ratio in self.ratios.items():
            rows.append({
                "model": model_id,
                "group": group,
                "metric": metric,
                "statistic": self.statistics.get((model_id, group, metric)),
                "ratio": ratio,
                "n_samples": self.group_sizes.get((model_id, group)),
                "privileged": group == self.privileged_group,
            })
        return pd.DataFrame(
            rows,
            columns=["model", "group", "metric", "statistic", "ratio", "n_samples", "privileged"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "privileged_group": self.privileged_group,
            "cutoff": self.cutoff,
            "ratios": {"|".join(k): v for k, v in self.ratios.items()},
            "failures": {"|".join(k): str(v) for k, v in self.failures.items()},
            "metric_failures": {"|".join(k): str(v) for k, v in self.metric_failures.items()},
            "timestamp": self.timestamp.isoformat(),
        }


def _unique(values) -> List[str]:
    seen = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


@dataclass
class DatasetMetadata:
    """Summary of a dataset for fairness analysis."""

    name: str
    n_samples: int
    n_features: int
    label_column: str
    protected_attribute: str
    group_distribution: Dict[str, int]
    class_balance: Dict[int, int]
    base_rates: Dict[str, float]

    @property
    def min_group_size(self) -> int:
        return min(self.group_distribution.values())

    @property
    def imbalance_ratio(self) -> float:
        sizes = list(self.group_distribution.values())
        return max(sizes) / min(sizes) if sizes else 1.0


@dataclass
class AuditConfig:
    """Configuration for one fairness audit run."""

    # Data configuration
    label_column: str
    protected_attribute: str
    privileged_group: Any
    data_path: Optional[str] = None
    positive_label: Any = 1
    feature_columns: Optional[List[str]] = None

    # Split configuration
    train_fraction: float = DEFAULT_TRAIN_FRACTION
    seed: int = DEFAULT_SEED
    stratify: bool = False

    # Training configuration
    model_families: List[str] = field(default_factory=lambda: list(DEFAULT_MODEL_FAMILIES))
    apply_reweighing: bool = True
    include_protected: bool = False

    # Metric configuration
    metrics: List[str] = field(default_factory=lambda: list(DEFAULT_METRICS))
    cutoff: float = DEFAULT_CUTOFF
    fairness_threshold: float = FOUR_FIFTHS_THRESHOLD

    # Reporting configuration
    output_dir: str = DEFAULT_PATHS["reports"]

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        from shared.validation import validate_config
        return validate_config(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "AuditConfig":
        """
        Build a config from the nested YAML layout::

            data: {path, label_column, protected_attribute, positive_label, feature_columns}
            split: {train_fraction, seed, stratify}
            training: {model_families, apply_reweighing, include_protected}
            fairness: {privileged_group, cutoff, metrics, threshold}
            reporting: {output_dir}
        """
        data = raw.get("data", {}) or {}
        split = raw.get("split", {}) or {}
        training = raw.get("training", {}) or {}
        fairness = raw.get("fairness", {}) or {}
        reporting = raw.get("reporting", {}) or {}

        missing = [
            name for name, section, key in [
                ("data.label_column", data, "label_column"),
                ("data.protected_attribute", data, "protected_attribute"),
                ("fairness.privileged_group", fairness, "privileged_group"),
            ]
            if section.get(key) is None
        ]
        if missing:
            raise ConfigurationError(f"Missing required config keys: {missing}")

        kwargs = {
            "label_column": data["label_column"],
            "protected_attribute": data["protected_attribute"],
            "privileged_group": fairness["privileged_group"],
            "data_path": data.get("path"),
            "positive_label": data.get("positive_label", 1),
            "feature_columns": data.get("feature_columns"),
            "train_fraction": split.get("train_fraction", DEFAULT_TRAIN_FRACTION),
            "seed": split.get("seed", DEFAULT_SEED),
            "stratify": split.get("stratify", False),
            "model_families": training.get("model_families", list(DEFAULT_MODEL_FAMILIES)),
            "apply_reweighing": training.get("apply_reweighing", True),
            "include_protected": training.get("include_protected", False),
            "metrics": fairness.get("metrics", list(DEFAULT_METRICS)),
            "cutoff": fairness.get("cutoff", DEFAULT_CUTOFF),
            "fairness_threshold": fairness.get("threshold", FOUR_FIFTHS_THRESHOLD),
            "output_dir": reporting.get("output_dir", DEFAULT_PATHS["reports"]),
        }
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "AuditConfig":
        """Load configuration from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Config not found: {path}")

        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}

        return cls.from_dict(raw)
