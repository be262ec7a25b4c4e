"""
Shared utilities for the fairness audit pipeline.

Provides common schemas, constants, exceptions, logging, and validation
used across the loading, training, measurement, and reporting modules.
"""

from shared.schemas import (
    AuditConfig,
    DatasetMetadata,
    FairnessReport,
)

from shared.constants import (
    FAIRNESS_METRICS,
    DEFAULT_METRICS,
    DEFAULT_CUTOFF,
    FOUR_FIFTHS_THRESHOLD,
    MODEL_FAMILIES,
)

from shared.exceptions import (
    FairnessAuditError,
    DataFormatError,
    ValidationError,
    InvalidFractionError,
    WeightMismatchError,
    EmptyGroupError,
    UnsupportedMetricError,
    ConfigurationError,
    MetricComputationError,
    ReportWriteError,
)

from shared.logging import (
    get_logger,
    log_metric,
    log_pipeline_stage,
    log_fairness_result,
    log_config_validation,
    PipelineLogger,
)

from shared.validation import (
    validate_dataframe,
    validate_binary_label,
    validate_predictions,
    validate_cutoff,
    validate_config,
    validate_sample_weights,
    safe_divide,
)

__version__ = "0.1.0"

__all__ = [
    # Schemas
    "AuditConfig",
    "DatasetMetadata",
    "FairnessReport",
    # Constants
    "FAIRNESS_METRICS",
    "DEFAULT_METRICS",
    "DEFAULT_CUTOFF",
    "FOUR_FIFTHS_THRESHOLD",
    "MODEL_FAMILIES",
    # Exceptions
    "FairnessAuditError",
    "DataFormatError",
    "ValidationError",
    "InvalidFractionError",
    "WeightMismatchError",
    "EmptyGroupError",
    "UnsupportedMetricError",
    "ConfigurationError",
    "MetricComputationError",
    "ReportWriteError",
    # Logging
    "get_logger",
    "log_metric",
    "log_pipeline_stage",
    "log_fairness_result",
    "log_config_validation",
    "PipelineLogger",
    # Validation
    "validate_dataframe",
    "validate_binary_label",
    "validate_predictions",
    "validate_cutoff",
    "validate_config",
    "validate_sample_weights",
    "safe_divide",
]
