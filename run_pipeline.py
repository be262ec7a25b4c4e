"""
Fairness Audit Orchestrator

Executes the complete audit:
1. Load and validate configuration
2. Load data and split into train / validation
3. Compute reweighing sample weights on the train partition
4. Fit each configured model family (plain and reweighed)
5. Evaluate group parity ratios on the validation partition
6. Cross-check ratios against Fairlearn
7. Write table, chart and Markdown report

Usage:
    python run_pipeline.py --config config.yml
    python run_pipeline.py --config config.yml --data data/compas_sample.csv
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

import pandas as pd

from shared.constants import DEFAULT_PATHS
from shared.exceptions import ConfigurationError, FairnessAuditError
from shared.logging import PipelineLogger, get_logger, log_config_validation
from shared.schemas import AuditConfig, FairnessReport

from measurement_module import FairnessAnalyzer, compare_with_native
from pipeline_module import Dataset, compute_weights, load, split, weighted_label_rates
from reporting_module import ReportGenerator, render_table
from training_module import FittedModel, fit, predict

logger = get_logger(__name__)


class FairnessAuditOrchestrator:
    """
    Orchestrate one fairness audit run.

    Coordinates the pipeline, training, measurement and reporting modules.
    """

    def __init__(self, config: AuditConfig):
        """
        Initialize orchestrator.

        Args:
            config: Validated audit configuration

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        errors = config.validate()
        log_config_validation(logger, "audit", errors)
        if errors:
            raise ConfigurationError("; ".join(errors))

        self.config = config
        self.results: Dict[str, Any] = {}

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> "FairnessAuditOrchestrator":
        config = AuditConfig.from_yaml(config_path)
        logger.info(f"Loaded config from {config_path}")
        return cls(config)

    def load_data(self, source: Union[str, Path, pd.DataFrame, None] = None) -> Dataset:
        """Step 1: Load the dataset (argument overrides the configured path)."""
        with PipelineLogger(logger, "load"):
            source = source if source is not None else self.config.data_path
            if source is None:
                raise ConfigurationError("No data path specified")

            dataset = load(
                source,
                label_column=self.config.label_column,
                protected_attribute=self.config.protected_attribute,
                feature_columns=self.config.feature_columns,
                positive_label=self.config.positive_label,
            )

            metadata = dataset.describe()
            self.results["metadata"] = metadata
            logger.info(
                f"Groups: {metadata.group_distribution} "
                f"(smallest={metadata.min_group_size}, "
                f"imbalance={metadata.imbalance_ratio:.2f})"
            )
            for group, rate in metadata.base_rates.items():
                logger.info(f"  └─ base rate {group}: {rate:.3f}")
            return dataset

    def run_training(self, train: Dataset) -> Dict[str, FittedModel]:
        """
        Step 2: Fit every configured family, with and without reweighing.

        Returns:
            Dictionary of model_id -> FittedModel
        """
        with PipelineLogger(logger, "training"):
            weights = None
            if self.config.apply_reweighing:
                weights = compute_weights(train.protected, train.labels)
                before = weighted_label_rates(train.protected, train.labels)
                after = weighted_label_rates(train.protected, train.labels, weights)
                logger.info(
                    f"Reweighing: weights range [{weights.min():.3f}, {weights.max():.3f}]"
                )
                for group in before:
                    logger.info(
                        f"  └─ positive rate {group}: {before[group]:.3f} -> {after[group]:.3f}"
                    )

            models = {}
            for family in self.config.model_families:
                model = fit(
                    train,
                    family=family,
                    random_state=self.config.seed,
                    include_protected=self.config.include_protected,
                )
                models[model.model_id] = model

                if weights is not None:
                    reweighed = fit(
                        train,
                        weights=weights,
                        family=family,
                        model_id=f"{model.model_id}_reweighed",
                        random_state=self.config.seed,
                        include_protected=self.config.include_protected,
                    )
                    models[reweighed.model_id] = reweighed

            logger.info(f"Trained {len(models)} models: {list(models)}")
            return models

    def run_measurement(
        self,
        models: Dict[str, FittedModel],
        validation: Dataset,
    ) -> FairnessReport:
        """Step 3: Group parity ratios for each model on the validation partition."""
        with PipelineLogger(logger, "measurement"):
            analyzer = FairnessAnalyzer(
                privileged_group=self.config.privileged_group,
                cutoff=self.config.cutoff,
                metrics=self.config.metrics,
                threshold=self.config.fairness_threshold,
            )

            predictions = {
                model_id: predict(model, validation) for model_id, model in models.items()
            }

            report = FairnessReport(
                privileged_group=self.config.privileged_group, cutoff=self.config.cutoff
            )
            for model_id, scores in predictions.items():
                report = report.merge(analyzer.evaluate_model(
                    model_id, scores, validation.labels, validation.protected
                ))

            self.results["predictions"] = predictions
            self.results["checks"] = analyzer.fairness_check(report)
            self.results["summary"] = analyzer.summarize(report)
            self.results["metric_failures"] = dict(analyzer.failures)

            comparison = compare_with_native(
                report, predictions, validation.labels, validation.protected
            )
            self.results["comparison"] = comparison

            return report

    def run_reporting(self, report: FairnessReport, dataset_name: str) -> None:
        """Step 4: Print the ratio table and write the Markdown/PNG report."""
        with PipelineLogger(logger, "reporting"):
            table = render_table(report)
            self.results["table"] = table
            print(table)

            generator = ReportGenerator(
                output_dir=Path(self.config.output_dir),
                threshold=self.config.fairness_threshold,
            )
            written = generator.write(
                report,
                name=f"{dataset_name}_fairness",
                checks=self.results.get("checks"),
                metadata={
                    "dataset": dataset_name,
                    "protected attribute": self.config.protected_attribute,
                    "train fraction": self.config.train_fraction,
                    "seed": self.config.seed,
                    "models": ", ".join(report.models),
                },
            )
            self.results["written"] = written

            if not written.success:
                logger.warning(
                    f"Report written with {len(written.errors)} error(s); "
                    f"results are still available in memory"
                )

    def run(self, source: Union[str, Path, pd.DataFrame, None] = None) -> Dict[str, Any]:
        """
        Execute the complete audit.

        Args:
            source: Optional data path or DataFrame (overrides config)

        Returns:
            Dictionary of all results
        """
        logger.info("=" * 60)
        logger.info("STARTING FAIRNESS AUDIT")
        logger.info("=" * 60)

        dataset = self.load_data(source)

        with PipelineLogger(logger, "split"):
            train, validation = split(
                dataset,
                fraction=self.config.train_fraction,
                seed=self.config.seed,
                stratify=self.config.stratify,
            )

        models = self.run_training(train)
        self.results["models"] = models

        report = self.run_measurement(models, validation)
        self.results["report"] = report

        self.run_reporting(report, dataset.name)

        logger.info("=" * 60)
        logger.info("AUDIT COMPLETED")
        logger.info("=" * 60)

        return self.results


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Run fairness audit")
    parser.add_argument(
        '--config',
        type=str,
        default=DEFAULT_PATHS['config'],
        help='Path to config file'
    )
    parser.add_argument(
        '--data',
        type=str,
        help='Path to data file (overrides config)'
    )
    parser.add_argument(
        '--output-dir',
        type=str,
        help='Report directory (overrides config)'
    )

    args = parser.parse_args(argv)

    try:
        orchestrator = FairnessAuditOrchestrator.from_yaml(args.config)
        if args.output_dir:
            orchestrator.config.output_dir = args.output_dir
        results = orchestrator.run(args.data)
    except FairnessAuditError as e:
        logger.error(f"Audit failed: {e}")
        return 1

    summary = results["summary"]
    if not summary.empty:
        print("\nFour-fifths check per model:")
        print(summary.to_string(index=False))

    return 0


if __name__ == "__main__":
    sys.exit(main())
