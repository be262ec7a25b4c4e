"""
Unit tests for the report generator.

Run: pytest reporting_module/src/tests/test_report_generator.py -v
"""

import json

import numpy as np
import pytest

from measurement_module.src.fairness_analyzer import FairnessAnalyzer
from measurement_module.src.metrics_engine import evaluate
from reporting_module.src.report_generator import ReportGenerator, ratio_table, render_table
from shared.exceptions import ReportWriteError
from shared.schemas import FairnessReport


@pytest.fixture
def analyzer():
    return FairnessAnalyzer(privileged_group='A')


@pytest.fixture
def report(analyzer):
    protected = np.array(['A', 'A', 'A', 'B', 'B', 'B'])
    labels = np.array([1, 1, 0, 1, 0, 0])
    predictions = np.array([1, 1, 1, 1, 1, 0])
    return analyzer.evaluate_model('lr', predictions, labels, protected)


def test_ratio_table_shape(report):
    table = ratio_table(report)
    assert list(table.index) == [('lr', 'A'), ('lr', 'B')]
    assert set(table.columns) == {'predictive_rate_parity', 'equal_opportunity', 'statistical_parity'}
    assert table.loc[('lr', 'B'), 'predictive_rate_parity'] == pytest.approx(0.75)


def test_render_table_contains_ratios(report):
    text = render_table(report)

    assert 'privileged group: A' in text
    assert 'predictive_rate_parity' in text
    assert '0.750' in text
    assert '1.000' in text


def test_render_table_lists_failures():
    protected = np.array(['A', 'A', 'B', 'B', 'C'])
    labels = np.array([1, 0, 1, 0, 1])
    predictions = np.array([1, 1, 1, 0, 0])
    report = evaluate(predictions, labels, protected, privileged_group='A', model_id='lr')

    text = render_table(report)

    assert 'Not evaluated:' in text
    assert 'lr / C / predictive_rate_parity' in text


@pytest.fixture
def failed_report():
    """Privileged group A has no predicted positives, so both metrics fail outright."""
    protected = np.array(['A', 'A', 'B', 'B'])
    labels = np.array([1, 0, 1, 0])
    predictions = np.array([0, 0, 1, 0])
    analyzer = FairnessAnalyzer(
        privileged_group='A',
        metrics=['predictive_rate_parity', 'statistical_parity'],
    )
    return analyzer.evaluate_model('lr', predictions, labels, protected)


def test_render_table_lists_metric_failures(failed_report):
    text = render_table(failed_report)

    assert '(no ratios computed)' in text
    assert 'Not evaluated:' in text
    assert 'lr / predictive_rate_parity:' in text
    assert 'lr / statistical_parity:' in text


def test_write_lists_metric_failures(tmp_path, failed_report):
    result = ReportGenerator(output_dir=tmp_path).write(failed_report, name='failed')

    assert result.success
    markdown = result.paths['markdown'].read_text(encoding='utf-8')
    assert '## Not Evaluated' in markdown
    assert '- lr / predictive_rate_parity:' in markdown
    assert '- lr / statistical_parity:' in markdown
    dumped = json.loads(result.paths['json'].read_text())
    assert set(dumped['metric_failures']) == {'lr|predictive_rate_parity', 'lr|statistical_parity'}


def test_render_empty_report():
    text = render_table(FairnessReport(privileged_group='A', cutoff=0.5))
    assert '(no ratios computed)' in text


def test_write_creates_markdown_and_png(tmp_path, report, analyzer):
    generator = ReportGenerator(output_dir=tmp_path / 'reports')

    result = generator.write(
        report,
        name='audit',
        checks=analyzer.fairness_check(report),
        metadata={'dataset': 'six_rows'},
    )

    assert result.success
    markdown = result.paths['markdown'].read_text(encoding='utf-8')
    assert '# Fairness Audit Report' in markdown
    assert '| lr | B |' in markdown
    assert '0.750' in markdown
    assert '## Four-Fifths Check' in markdown
    assert result.paths['plot'].name in markdown
    assert result.paths['plot'].read_bytes().startswith(b'\x89PNG')
    ratios = json.loads(result.paths['json'].read_text())['ratios']
    assert ratios['lr|B|predictive_rate_parity'] == pytest.approx(0.75)


def test_write_failure_is_not_fatal(tmp_path, report):
    """An unusable output directory is reported, not raised."""
    blocker = tmp_path / 'not_a_dir'
    blocker.write_text('occupied')

    result = ReportGenerator(output_dir=blocker / 'reports').write(report)

    assert not result.success
    assert isinstance(result.errors[0], ReportWriteError)
    assert result.paths == {}


def test_build_markdown_without_checks(report):
    content = ReportGenerator().build_markdown(report)
    assert '## Group Ratios' in content
    assert '## Four-Fifths Check' not in content
