"""
Tests for the shared modules: schemas, validation, logging, exceptions.
Run: pytest test_shared_modules.py -v
"""

import logging

import numpy as np
import pytest

from shared.exceptions import (
    ConfigurationError,
    DataFormatError,
    EmptyGroupError,
    FairnessAuditError,
    ValidationError,
    WeightMismatchError,
)
from shared.logging import PipelineLogger, get_logger
from shared.schemas import AuditConfig, FairnessReport, group_key
from shared.validation import (
    safe_divide,
    validate_binary_label,
    validate_config,
    validate_dataframe,
    validate_sample_weights,
)


# ============================================================================
# Schemas
# ============================================================================

def make_report(model_id='lr', privileged='A', cutoff=0.5):
    report = FairnessReport(privileged_group=privileged, cutoff=cutoff)
    report.ratios[(model_id, 'A', 'statistical_parity')] = 1.0
    report.ratios[(model_id, 'B', 'statistical_parity')] = 0.7
    report.statistics[(model_id, 'A', 'statistical_parity')] = 0.5
    report.statistics[(model_id, 'B', 'statistical_parity')] = 0.35
    report.group_sizes[(model_id, 'A')] = 10
    report.group_sizes[(model_id, 'B')] = 12
    return report


def test_report_lookup_normalises_group():
    report = FairnessReport(privileged_group=1, cutoff=0.5)
    report.ratios[('lr', '2', 'statistical_parity')] = 0.9

    assert report.privileged_group == '1'
    assert report['lr', 2, 'statistical_parity'] == 0.9
    assert ('lr', 2, 'statistical_parity') in report
    assert report.ratio('lr', '2', 'statistical_parity') == 0.9


def test_report_properties():
    report = make_report()
    assert report.models == ['lr']
    assert report.groups == ['A', 'B']
    assert report.metrics == ['statistical_parity']
    assert len(report) == 2


def test_report_merge():
    merged = make_report('lr').merge(make_report('rf'))
    assert set(merged.models) == {'lr', 'rf'}
    assert len(merged) == 4


def test_report_merge_keeps_metric_failures():
    other = FairnessReport(privileged_group='A', cutoff=0.5)
    other.metric_failures[('rf', 'equal_opportunity')] = ValidationError('zero')

    merged = make_report('lr').merge(other)

    assert ('rf', 'equal_opportunity') in merged.metric_failures
    assert merged.models == ['lr', 'rf']
    assert merged.metrics == ['statistical_parity', 'equal_opportunity']
    assert merged.to_dict()['metric_failures'] == {'rf|equal_opportunity': 'zero'}


def test_report_merge_rejects_mismatch():
    with pytest.raises(ConfigurationError):
        make_report(privileged='A').merge(make_report(privileged='B'))
    with pytest.raises(ConfigurationError):
        make_report(cutoff=0.5).merge(make_report(cutoff=0.6))


def test_report_to_frame():
    frame = make_report().to_frame()
    assert list(frame.columns) == [
        'model', 'group', 'metric', 'statistic', 'ratio', 'n_samples', 'privileged'
    ]
    assert frame.loc[frame['group'] == 'B', 'n_samples'].iloc[0] == 12
    assert frame['privileged'].tolist() == [True, False]


def test_report_to_dict():
    report = make_report()
    report.failures[('lr', 'C', 'statistical_parity')] = EmptyGroupError('no rows', group='C')
    data = report.to_dict()
    assert data['ratios']['lr|B|statistical_parity'] == 0.7
    assert data['failures']['lr|C|statistical_parity'] == 'no rows'


def test_group_key():
    assert group_key(3) == '3'
    assert group_key('Caucasian') == 'Caucasian'


@pytest.mark.parametrize('value', [1, 1.0, np.int64(1), np.float64(1.0), '1'])
def test_group_key_collapses_whole_numbers(value):
    assert group_key(value) == '1'


def test_group_key_keeps_fractions_and_flags():
    assert group_key(1.5) == '1.5'
    assert group_key(True) == 'True'
    assert group_key(np.bool_(False)) == 'False'


def test_audit_config_from_yaml(tmp_path):
    path = tmp_path / 'config.yml'
    path.write_text(
        "data:\n"
        "  path: data/compas.csv\n"
        "  label_column: two_year_recid\n"
        "  protected_attribute: race\n"
        "split:\n"
        "  train_fraction: 0.6\n"
        "fairness:\n"
        "  privileged_group: Caucasian\n"
        "  metrics: [statistical_parity]\n"
    )

    config = AuditConfig.from_yaml(path)

    assert config.label_column == 'two_year_recid'
    assert config.privileged_group == 'Caucasian'
    assert config.train_fraction == 0.6
    assert config.metrics == ['statistical_parity']
    assert config.cutoff == 0.5
    assert config.validate() == []


def test_audit_config_missing_keys():
    with pytest.raises(ConfigurationError, match="privileged_group"):
        AuditConfig.from_dict({'data': {'label_column': 'y', 'protected_attribute': 'g'}})


def test_audit_config_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        AuditConfig.from_yaml(tmp_path / 'missing.yml')


# ============================================================================
# Validation
# ============================================================================

def test_validate_config_collects_errors():
    config = AuditConfig(
        label_column='y',
        protected_attribute='g',
        privileged_group='A',
        metrics=['calibration'],
        model_families=['svm'],
        train_fraction=1.0,
        cutoff=2.0,
    )
    errors = validate_config(config)
    assert len(errors) == 4


@pytest.mark.parametrize('field', ['cutoff', 'train_fraction', 'fairness_threshold'])
def test_validate_config_rejects_non_numeric(field):
    config = AuditConfig(
        label_column='y',
        protected_attribute='g',
        privileged_group='A',
        **{field: '0.5'},
    )
    errors = validate_config(config)
    assert errors == [f"{field} must be a number, got '0.5'"]


def test_validate_dataframe():
    with pytest.raises(DataFormatError):
        validate_dataframe([1, 2, 3])


def test_validate_binary_label():
    np.testing.assert_array_equal(validate_binary_label([True, False]), [1, 0])
    with pytest.raises(ValidationError):
        validate_binary_label([0, 1, 2])


@pytest.mark.parametrize('weights', [
    [1.0, 1.0],
    [1.0, np.nan, 1.0],
    [1.0, -1.0, 1.0],
    [0.0, 0.0, 0.0],
])
def test_validate_sample_weights_rejects(weights):
    with pytest.raises(WeightMismatchError):
        validate_sample_weights(weights, 3)


def test_safe_divide():
    assert safe_divide(1, 0, default=-1) == -1
    assert safe_divide(1, 4) == 0.25


# ============================================================================
# Exceptions and logging
# ============================================================================

def test_exception_hierarchy():
    assert issubclass(DataFormatError, FairnessAuditError)
    assert issubclass(DataFormatError, ValueError)
    error = EmptyGroupError('empty', group='B', metric='equal_opportunity')
    assert error.group == 'B'
    assert error.metric == 'equal_opportunity'


def test_get_logger_single_handler():
    first = get_logger('fairness.test')
    second = get_logger('fairness.test')
    assert first is second
    assert len(first.handlers) == 1


def test_pipeline_logger_does_not_swallow():
    logger = get_logger('fairness.test.stage')
    with pytest.raises(RuntimeError):
        with PipelineLogger(logger, 'stage'):
            raise RuntimeError('boom')
    assert logger.level == logging.INFO
