"""
End-to-end test of the fairness audit.
Run: pytest test_audit_pipeline.py -v
"""

import numpy as np
import pytest

from generate_sample_data import generate_recidivism_dataset
from run_pipeline import FairnessAuditOrchestrator, main
from shared.exceptions import ConfigurationError
from shared.schemas import AuditConfig


@pytest.fixture
def sample_frame():
    return generate_recidivism_dataset(n_samples=600, seed=7)


@pytest.fixture
def config(tmp_path):
    return AuditConfig(
        label_column='two_year_recid',
        protected_attribute='race',
        privileged_group='Caucasian',
        model_families=['logistic_regression', 'random_forest'],
        metrics=['predictive_rate_parity', 'equal_opportunity', 'statistical_parity'],
        output_dir=str(tmp_path / 'reports'),
    )


def test_sample_data_shape(sample_frame):
    assert len(sample_frame) == 600
    assert set(sample_frame['two_year_recid'].unique()) == {0, 1}
    assert 'Caucasian' in set(sample_frame['race'])


def test_full_audit(sample_frame, config):
    results = FairnessAuditOrchestrator(config).run(sample_frame)

    assert set(results['models']) == {
        'logistic_regression',
        'logistic_regression_reweighed',
        'random_forest',
        'random_forest_reweighed',
    }

    report = results['report']
    assert set(report.models) == set(results['models'])
    for (_, group, _), ratio in report.ratios.items():
        if group == 'Caucasian':
            assert ratio == 1.0

    assert results['comparison']['abs_difference'].max() < 1e-9
    assert 'Caucasian' in results['table']
    assert results['written'].success
    assert results['written'].paths['markdown'].exists()
    assert results['written'].paths['plot'].exists()


def test_audit_without_reweighing(sample_frame, config):
    config.apply_reweighing = False
    config.model_families = ['decision_tree']

    results = FairnessAuditOrchestrator(config).run(sample_frame)

    assert list(results['models']) == ['decision_tree']


def test_audit_is_reproducible(sample_frame, config):
    config.model_families = ['logistic_regression']
    first = FairnessAuditOrchestrator(config).run(sample_frame)
    second = FairnessAuditOrchestrator(config).run(sample_frame)

    for model_id, scores in first['predictions'].items():
        np.testing.assert_allclose(scores, second['predictions'][model_id])


def test_report_failure_does_not_abort(sample_frame, config, tmp_path):
    blocker = tmp_path / 'blocker'
    blocker.write_text('occupied')
    config.output_dir = str(blocker / 'reports')
    config.model_families = ['logistic_regression']

    results = FairnessAuditOrchestrator(config).run(sample_frame)

    assert not results['written'].success
    assert len(results['report']) > 0


def test_invalid_config_rejected(config):
    config.metrics = ['calibration']
    with pytest.raises(ConfigurationError):
        FairnessAuditOrchestrator(config)


def test_cli(tmp_path, sample_frame):
    data_path = tmp_path / 'compas.csv'
    sample_frame.to_csv(data_path, index=False)
    config_path = tmp_path / 'config.yml'
    config_path.write_text(
        "data:\n"
        "  label_column: two_year_recid\n"
        "  protected_attribute: race\n"
        "training:\n"
        "  model_families: [logistic_regression]\n"
        "fairness:\n"
        "  privileged_group: Caucasian\n"
    )

    exit_code = main([
        '--config', str(config_path),
        '--data', str(data_path),
        '--output-dir', str(tmp_path / 'out'),
    ])

    assert exit_code == 0
    assert list((tmp_path / 'out').glob('compas_fairness_*.md'))


def test_cli_missing_data(tmp_path):
    config_path = tmp_path / 'config.yml'
    config_path.write_text(
        "data:\n"
        "  label_column: two_year_recid\n"
        "  protected_attribute: race\n"
        "fairness:\n"
        "  privileged_group: Caucasian\n"
    )
    assert main(['--config', str(config_path), '--data', str(tmp_path / 'none.csv')]) == 1


def test_cli_quoted_number_in_config(tmp_path):
    config_path = tmp_path / 'config.yml'
    config_path.write_text(
        "data:\n"
        "  label_column: two_year_recid\n"
        "  protected_attribute: race\n"
        "fairness:\n"
        "  privileged_group: Caucasian\n"
        "  cutoff: \"0.5\"\n"
    )
    assert main(['--config', str(config_path)]) == 1
