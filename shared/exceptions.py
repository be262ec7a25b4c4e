"""
Custom Exceptions - Error handling for the fairness audit pipeline.

Provides specific exception types for different failure modes so that
callers can tell caller-contract violations apart from degenerate data.
"""


class FairnessAuditError(Exception):
    """Base exception for all fairness audit errors."""
    pass


class DataFormatError(FairnessAuditError, ValueError):
    """
    Raised when input data is malformed or required columns are missing.

    Example:
        >>> if label_column not in df.columns:
        ...     raise DataFormatError(
        ...         f"Label column '{label_column}' not found"
        ...     )
    """
    pass


class ValidationError(FairnessAuditError, ValueError):
    """Raised when input validation fails."""
    pass


class InvalidFractionError(FairnessAuditError, ValueError):
    """Raised when a split fraction is not strictly between 0 and 1."""
    pass


class WeightMismatchError(FairnessAuditError, ValueError):
    """
    Raised when sample weights do not line up with the training rows.

    Covers length mismatches, negative or non-finite entries, and
    all-zero weight vectors.
    """
    pass


class EmptyGroupError(FairnessAuditError):
    """
    Raised when a protected group has no rows satisfying a metric's
    denominator condition.

    Example:
        >>> # predictive rate parity needs predicted-positive rows
        >>> raise EmptyGroupError(
        ...     "Group 'B' has no predicted-positive rows",
        ...     group='B', metric='predictive_rate_parity'
        ... )
    """

    def __init__(self, message: str, group=None, metric: str = None):
        super().__init__(message)
        self.group = group
        self.metric = metric


class UnsupportedMetricError(FairnessAuditError, ValueError):
    """Raised when an unknown fairness metric is requested."""
    pass


class ConfigurationError(FairnessAuditError, ValueError):
    """
    Raised when configuration parameters are invalid or incompatible.

    Example:
        >>> if not 0 <= cutoff <= 1:
        ...     raise ConfigurationError(f"cutoff must be in [0, 1], got {cutoff}")
    """
    pass


class MetricComputationError(FairnessAuditError):
    """
    Raised when a ratio cannot be formed.

    Typically the privileged group's statistic is zero, so no group can
    be compared against it.
    """
    pass


class ReportWriteError(FairnessAuditError):
    """Raised (and usually captured) when a report artifact cannot be written."""
    pass
