"""
Model Trainer - Fit off-the-shelf classifiers with optional sample weights.

Every model family is a scikit-learn estimator behind a shared
preprocessing step (one-hot encoding for categorical columns, scaling for
numeric ones). Fitted models are immutable values; ``predict`` always
returns probabilities of the positive class.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression, Ridge
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler
from sklearn.tree import DecisionTreeClassifier

from pipeline_module.src.data_loader import Dataset
from shared.exceptions import DataFormatError
from shared.logging import get_logger
from shared.validation import validate_sample_weights

logger = get_logger(__name__)


class ModelFamily(str, Enum):
    """Closed set of supported model families."""

    LOGISTIC_REGRESSION = "logistic_regression"
    RIDGE = "ridge"
    DECISION_TREE = "decision_tree"
    RANDOM_FOREST = "random_forest"

    @property
    def is_linear(self) -> bool:
        return self in (ModelFamily.LOGISTIC_REGRESSION, ModelFamily.RIDGE)

    @property
    def is_tree_based(self) -> bool:
        return self in (ModelFamily.DECISION_TREE, ModelFamily.RANDOM_FOREST)


def _build_estimator(family: ModelFamily, random_state: int) -> BaseEstimator:
    if family is ModelFamily.LOGISTIC_REGRESSION:
        return LogisticRegression(max_iter=1000, random_state=random_state)
    if family is ModelFamily.RIDGE:
        # Linear probability model on the 0/1 label
        return Ridge(alpha=1.0)
    if family is ModelFamily.DECISION_TREE:
        return DecisionTreeClassifier(max_depth=5, min_samples_leaf=5, random_state=random_state)
    if family is ModelFamily.RANDOM_FOREST:
        return RandomForestClassifier(
            n_estimators=200,
            max_depth=10,
            min_samples_leaf=5,
            n_jobs=-1,
            random_state=random_state,
        )
    raise ValueError(f"Unknown model family: {family}")


def _build_preprocessor(features: pd.DataFrame) -> ColumnTransformer:
    numeric = features.select_dtypes(include=["number"]).columns.tolist()
    categorical = [c for c in features.columns if c not in numeric]

    transformers = []
    if numeric:
        transformers.append(("num", StandardScaler(), numeric))
    if categorical:
        transformers.append(("cat", OneHotEncoder(handle_unknown="ignore"), categorical))

    return ColumnTransformer(transformers=transformers, remainder="drop")


@dataclass(frozen=True)
class FittedModel:
    """A fitted predictor and the columns it was trained on."""

    model_id: str
    family: ModelFamily
    pipeline: Pipeline
    feature_columns: List[str]
    label_column: str
    weighted: bool = False

    def __repr__(self) -> str:
        return (
            f"FittedModel(model_id={self.model_id!r}, family={self.family.value}, "
            f"features={len(self.feature_columns)}, weighted={self.weighted})"
        )


def fit(
    dataset: Dataset,
    label_column: Optional[str] = None,
    weights: Optional[Union[np.ndarray, pd.Series, list]] = None,
    family: Union[ModelFamily, str] = ModelFamily.LOGISTIC_REGRESSION,
    model_id: Optional[str] = None,
    random_state: int = 0,
    include_protected: bool = False,
) -> FittedModel:
    """
    Fit a model of the given family.

    Args:
        dataset: Training data
        label_column: Label column (defaults to the dataset's label). The
            dataset's own label column is excluded from the features either way
        weights: Optional per-row sample weights (length = rows, all >= 0)
        family: ModelFamily or its string value
        model_id: Identifier used in reports (defaults to the family name)
        random_state: Seed for stochastic estimators
        include_protected: Use the protected attribute as a feature

    Returns:
        FittedModel

    Raises:
        WeightMismatchError: If weights do not match the rows
        DataFormatError: If the label column is missing or single-class
    """
    family = ModelFamily(family)
    label_column = label_column or dataset.label_column

    frame = dataset.frame
    if label_column not in frame.columns:
        raise DataFormatError(f"Label column '{label_column}' not found in {dataset.name}")

    if weights is not None:
        weights = validate_sample_weights(weights, len(dataset))

    # The dataset label never becomes a feature, even when fitting another column
    drop = list(dict.fromkeys([label_column, dataset.label_column]))
    if not include_protected:
        drop.append(dataset.protected_attribute)
    features = frame.drop(columns=[c for c in drop if c in frame.columns])
    y = frame[label_column].to_numpy()

    if features.shape[1] == 0:
        raise DataFormatError(f"No feature columns left in {dataset.name}")
    if family is not ModelFamily.RIDGE and len(np.unique(y)) < 2:
        raise DataFormatError(
            f"Label column '{label_column}' has a single class; cannot fit {family.value}"
        )

    pipeline = Pipeline([
        ("preprocess", _build_preprocessor(features)),
        ("model", _build_estimator(family, random_state)),
    ])

    fit_params = {}
    if weights is not None:
        fit_params["model__sample_weight"] = weights

    logger.info(
        f"Fitting {family.value} on {len(features)} rows, {features.shape[1]} features "
        f"(weighted={weights is not None})"
    )

    pipeline.fit(features, y, **fit_params)

    return FittedModel(
        model_id=model_id or family.value,
        family=family,
        pipeline=pipeline,
        feature_columns=list(features.columns),
        label_column=label_column,
        weighted=weights is not None,
    )


def predict(model: FittedModel, dataset: Dataset) -> np.ndarray:
    """
    Predict positive-class probabilities, one per row in input order.

    Raises:
        DataFormatError: If the dataset lacks a training feature column
    """
    frame = dataset.frame
    missing = [c for c in model.feature_columns if c not in frame.columns]
    if missing:
        raise DataFormatError(
            f"Dataset {dataset.name} is missing feature columns used by "
            f"{model.model_id}: {missing}"
        )

    features = frame[model.feature_columns]

    if model.family is ModelFamily.RIDGE:
        scores = model.pipeline.predict(features)
        return np.clip(scores, 0.0, 1.0)

    estimator = model.pipeline.named_steps["model"]
    proba = model.pipeline.predict_proba(features)
    positive_column = list(estimator.classes_).index(1)
    return proba[:, positive_column]
