"""
Data Loader - Load and partition tabular recidivism-risk data.

Wraps a pandas DataFrame together with the names of its label and
protected-attribute columns, and splits it reproducibly into train
and validation partitions.

Example:
    >>> dataset = load('data/compas.csv', label_column='two_year_recid',
    ...                protected_attribute='race')
    >>> train, validation = split(dataset, fraction=0.7, seed=42)
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, IO, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from shared.exceptions import DataFormatError, InvalidFractionError
from shared.logging import get_logger
from shared.schemas import DatasetMetadata, group_key
from shared.validation import validate_dataframe

logger = get_logger(__name__)


class Dataset:
    """
    Read-only view of a tabular dataset with a binary label.

    The frame is copied on construction and on every access, so no stage
    of the pipeline can mutate data another stage reads.
    """

    def __init__(
        self,
        frame: pd.DataFrame,
        label_column: str,
        protected_attribute: str,
        name: str = "untitled",
    ):
        validate_dataframe(frame, required_columns=[label_column, protected_attribute])
        self._frame = frame.copy()
        self.label_column = label_column
        self.protected_attribute = protected_attribute
        self.name = name

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        return (
            f"Dataset(name={self.name!r}, rows={len(self)}, "
            f"label={self.label_column!r}, protected={self.protected_attribute!r})"
        )

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()

    @property
    def columns(self) -> List[str]:
        return list(self._frame.columns)

    @property
    def index(self) -> pd.Index:
        return self._frame.index.copy()

    @property
    def labels(self) -> np.ndarray:
        return self._frame[self.label_column].to_numpy(copy=True)

    @property
    def protected(self) -> np.ndarray:
        return self._frame[self.protected_attribute].to_numpy(copy=True)

    def features(self, include_protected: bool = False) -> pd.DataFrame:
        """All columns except the label (and the protected attribute unless asked)."""
        drop = [self.label_column]
        if not include_protected:
            drop.append(self.protected_attribute)
        return self._frame.drop(columns=drop)

    def take(self, positions: np.ndarray, name: Optional[str] = None) -> "Dataset":
        """New Dataset holding the rows at the given positions (original index kept)."""
        subset = self._frame.iloc[np.asarray(positions)]
        return Dataset(
            subset,
            label_column=self.label_column,
            protected_attribute=self.protected_attribute,
            name=name or self.name,
        )

    def describe(self) -> DatasetMetadata:
        """Group distribution, class balance and per-group base rate."""
        groups = self._frame[self.protected_attribute]
        labels = self._frame[self.label_column]

        group_distribution = {
            group_key(g): int(n) for g, n in groups.value_counts(sort=False).items()
        }
        class_balance = {int(c): int(n) for c, n in labels.value_counts().sort_index().items()}
        base_rates = {
            group_key(g): float(rate) for g, rate in labels.groupby(groups).mean().items()
        }

        return DatasetMetadata(
            name=self.name,
            n_samples=len(self._frame),
            n_features=self._frame.shape[1] - 2,
            label_column=self.label_column,
            protected_attribute=self.protected_attribute,
            group_distribution=group_distribution,
            class_balance=class_balance,
            base_rates=base_rates,
        )


@dataclass(frozen=True)
class Split:
    """Disjoint train/validation row positions covering the whole dataset."""

    train_index: np.ndarray
    validation_index: np.ndarray
    fraction: float
    seed: int

    @property
    def n_train(self) -> int:
        return len(self.train_index)

    @property
    def n_validation(self) -> int:
        return len(self.validation_index)


def _read_source(source: Union[str, Path, IO, pd.DataFrame]) -> pd.DataFrame:
    if isinstance(source, pd.DataFrame):
        return source.copy()

    if isinstance(source, (str, Path)) and not Path(source).exists():
        raise DataFormatError(f"Data source not found: {source}")

    try:
        return pd.read_csv(source)
    except (pd.errors.EmptyDataError, pd.errors.ParserError, UnicodeDecodeError) as e:
        raise DataFormatError(f"Could not parse data source {source}: {e}") from e


def _coerce_label(values: pd.Series, positive_label: Any, label_column: str) -> pd.Series:
    distinct = values.unique()
    if len(distinct) > 2:
        raise DataFormatError(
            f"Label column '{label_column}' must be binary, "
            f"found {len(distinct)} distinct values: {sorted(map(str, distinct))[:10]}"
        )
    if positive_label not in set(distinct) and len(distinct) == 2:
        raise DataFormatError(
            f"Positive label {positive_label!r} not present in label column "
            f"'{label_column}' (values: {sorted(map(str, distinct))})"
        )
    return (values == positive_label).astype(int)


def load(
    source: Union[str, Path, IO, pd.DataFrame],
    label_column: str,
    protected_attribute: str,
    feature_columns: Optional[List[str]] = None,
    positive_label: Any = 1,
    name: Optional[str] = None,
) -> Dataset:
    """
    Load a tabular dataset.

    Args:
        source: CSV path, file-like object or DataFrame
        label_column: Name of the binary outcome column
        protected_attribute: Name of the protected-attribute column
        feature_columns: Optional subset of feature columns to keep
        positive_label: Label value mapped to 1 (all others map to 0)
        name: Dataset name (defaults to the file stem)

    Returns:
        Dataset with the label coerced to {0, 1}

    Raises:
        DataFormatError: On unreadable input, missing columns, non-binary
            labels or missing label/protected values
    """
    df = _read_source(source)

    if df.empty:
        raise DataFormatError(f"Data source {source!r} contains no rows")

    required = [label_column, protected_attribute] + list(feature_columns or [])
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise DataFormatError(
            f"Missing required columns: {missing}. Available: {list(df.columns)}"
        )

    for column in (label_column, protected_attribute):
        n_missing = int(df[column].isna().sum())
        if n_missing:
            raise DataFormatError(f"Column '{column}' contains {n_missing} missing values")

    if feature_columns is not None:
        keep = list(dict.fromkeys(list(feature_columns) + [protected_attribute, label_column]))
        df = df[keep].copy()

    df[label_column] = _coerce_label(df[label_column], positive_label, label_column)

    if name is None:
        name = Path(source).stem if isinstance(source, (str, Path)) else "untitled"

    dataset = Dataset(df, label_column, protected_attribute, name=name)

    logger.info(
        f"Loaded {dataset.name}: {len(df)} rows, {df.shape[1]} columns "
        f"(label={label_column}, protected={protected_attribute})"
    )

    return dataset


def partition(
    dataset: Dataset,
    fraction: float,
    seed: int,
    stratify: bool = False,
) -> Split:
    """
    Deterministically partition row positions into train and validation.

    Args:
        dataset: Dataset to partition
        fraction: Share of rows assigned to train, strictly in (0, 1)
        seed: Shuffle seed
        stratify: Preserve the label balance in both partitions

    Raises:
        InvalidFractionError: If fraction is not in (0, 1)
        DataFormatError: If the dataset cannot yield two non-empty partitions
    """
    if isinstance(fraction, bool) or not isinstance(fraction, (int, float)) or not 0 < fraction < 1:
        raise InvalidFractionError(
            f"Split fraction must be strictly between 0 and 1, got {fraction!r}"
        )

    n = len(dataset)
    if n < 2:
        raise DataFormatError(f"Cannot split dataset with {n} rows")

    positions = np.arange(n)
    try:
        train_idx, validation_idx = train_test_split(
            positions,
            train_size=fraction,
            random_state=seed,
            shuffle=True,
            stratify=dataset.labels if stratify else None,
        )
    except ValueError as e:
        raise DataFormatError(
            f"Cannot split {n} rows with fraction={fraction}: {e}"
        ) from e

    return Split(
        train_index=np.sort(train_idx),
        validation_index=np.sort(validation_idx),
        fraction=fraction,
        seed=seed,
    )


def split(
    dataset: Dataset,
    fraction: float,
    seed: int,
    stratify: bool = False,
) -> Tuple[Dataset, Dataset]:
    """
    Split a dataset into (train, validation) Datasets.

    See ``partition`` for argument semantics.
    """
    parts = partition(dataset, fraction, seed, stratify=stratify)

    train = dataset.take(parts.train_index, name=f"{dataset.name}_train")
    validation = dataset.take(parts.validation_index, name=f"{dataset.name}_validation")

    logger.info(
        f"Split {dataset.name}: train={parts.n_train}, validation={parts.n_validation} "
        f"(fraction={fraction}, seed={seed})"
    )

    return train, validation
