"""
Logging utilities for the fairness audit pipeline.

Every module logs through ``get_logger(__name__)``; audit stages are wrapped
in ``PipelineLogger`` so their start, duration and failure are recorded.
"""

import logging
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Get a logger writing audit records to stdout.

    Args:
        name: Logger name (typically __name__)
        level: Logging level

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    return logger


def _format_pairs(values: Dict[str, Any]) -> str:
    return ", ".join(f"{k}={v}" for k, v in values.items())


def log_metric(
    logger: logging.Logger,
    metric_name: str,
    value: float,
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """Log one computed ratio, tagged with its model and group."""
    suffix = f" [{_format_pairs(context)}]" if context else ""
    logger.info(f"METRIC: {metric_name}={value:.4f}{suffix}")


def log_pipeline_stage(
    logger: logging.Logger,
    stage: str,
    status: str = "started",
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """Log an audit stage transition ('started', 'completed' or 'failed')."""
    suffix = f" - {_format_pairs(details)}" if details else ""
    level = logging.ERROR if status == "failed" else logging.INFO
    logger.log(level, f"STAGE [{status.upper()}]: {stage}{suffix}")


def log_fairness_result(
    logger: logging.Logger,
    metric_name: str,
    model_id: str,
    is_fair: bool,
    threshold: float,
    group_ratios: Optional[Dict[str, float]] = None,
) -> None:
    """
    Log the ratios of one metric for one model with a pass/fail verdict.

    Args:
        logger: Logger instance
        metric_name: Fairness metric name
        model_id: Model the ratios belong to
        is_fair: Whether every ratio lies inside the threshold band
        threshold: Lower edge of the band (upper edge is 1/threshold)
        group_ratios: Per-group ratio values
    """
    status = "PASS" if is_fair else "FAIL"
    logger.info(
        f"FAIRNESS [{status}]: {metric_name} for {model_id} "
        f"(band=[{threshold:.2f}, {1 / threshold:.2f}])"
    )
    for group, ratio in (group_ratios or {}).items():
        logger.info(f"  └─ {group}: {ratio:.4f}")


def log_config_validation(logger: logging.Logger, config_name: str, errors: List[str]) -> None:
    """Log the outcome of validating an audit configuration."""
    if not errors:
        logger.info(f"CONFIG VALIDATION PASSED: {config_name}")
        return

    logger.error(f"CONFIG VALIDATION FAILED: {config_name}")
    for err in errors:
        logger.error(f"  └─ {err}")


class PipelineLogger:
    """
    Context manager timing one audit stage.

    Exceptions are logged as a failed stage and re-raised.
    """

    def __init__(self, logger: logging.Logger, stage: str):
        self.logger = logger
        self.stage = stage
        self.start_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        log_pipeline_stage(self.logger, self.stage)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        details = {"duration_seconds": f"{(datetime.now() - self.start_time).total_seconds():.2f}"}
        if exc_type is None:
            log_pipeline_stage(self.logger, self.stage, "completed", details)
        else:
            log_pipeline_stage(self.logger, self.stage, "failed", {"error": str(exc_val), **details})
        return False
