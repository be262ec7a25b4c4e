"""
Unit tests for the model trainer.

Run: pytest training_module/src/tests/test_model_trainer.py -v
"""

import numpy as np
import pandas as pd
import pytest

from pipeline_module.src.data_loader import load, split
from pipeline_module.src.transformers import compute_weights
from shared.exceptions import DataFormatError, WeightMismatchError
from training_module.src.model_trainer import FittedModel, ModelFamily, fit, predict


@pytest.fixture
def recidivism_data():
    """Synthetic data where priors drive the label."""
    rng = np.random.default_rng(42)
    n = 300
    race = rng.choice(['African-American', 'Caucasian'], n)
    priors = rng.poisson(np.where(race == 'African-American', 3, 2))
    degree = rng.choice(['F', 'M'], n)
    score = 0.6 * priors - 1.5 + 0.5 * (degree == 'F') + rng.normal(0, 0.5, n)
    frame = pd.DataFrame({
        'age': rng.integers(18, 70, n),
        'priors_count': priors,
        'c_charge_degree': degree,
        'race': race,
        'two_year_recid': (score > 0).astype(int),
    })
    dataset = load(frame, 'two_year_recid', 'race', name='synthetic')
    return split(dataset, fraction=0.7, seed=0)


@pytest.mark.parametrize('family', list(ModelFamily))
def test_fit_predict_every_family(recidivism_data, family):
    """Every family yields one probability per validation row."""
    train, validation = recidivism_data

    model = fit(train, family=family)
    scores = predict(model, validation)

    assert isinstance(model, FittedModel)
    assert model.model_id == family.value
    assert scores.shape == (len(validation),)
    assert np.all((scores >= 0) & (scores <= 1))


def test_fit_accepts_family_name(recidivism_data):
    train, _ = recidivism_data
    model = fit(train, family='random_forest')
    assert model.family is ModelFamily.RANDOM_FOREST
    assert model.family.is_tree_based
    assert not model.family.is_linear


def test_predictions_are_informative(recidivism_data):
    """Logistic regression beats the majority class on learnable data."""
    train, validation = recidivism_data
    model = fit(train, family=ModelFamily.LOGISTIC_REGRESSION)
    accuracy = ((predict(model, validation) >= 0.5) == validation.labels).mean()
    majority = max(validation.labels.mean(), 1 - validation.labels.mean())
    assert accuracy > majority


def test_protected_attribute_excluded_by_default(recidivism_data):
    train, _ = recidivism_data
    assert 'race' not in fit(train).feature_columns
    assert 'race' in fit(train, include_protected=True).feature_columns


def test_dataset_label_excluded_with_other_label_column():
    """Fitting another target never uses the dataset's own label as a feature."""
    rng = np.random.default_rng(3)
    n = 80
    frame = pd.DataFrame({
        'x': rng.normal(size=n),
        'g': rng.choice(['A', 'B'], n),
        'y': rng.integers(0, 2, n),
    })
    frame['other'] = (frame['x'] > 0).astype(int)
    dataset = load(frame, 'y', 'g')

    model = fit(dataset, label_column='other')

    assert model.feature_columns == ['x']
    assert model.label_column == 'other'
    assert len(predict(model, dataset)) == n


def test_fit_with_weights(recidivism_data):
    train, validation = recidivism_data
    weights = compute_weights(train.protected, train.labels)

    weighted = fit(train, weights=weights, model_id='lr_reweighed')
    plain = fit(train)

    assert weighted.weighted
    assert not plain.weighted
    assert weighted.model_id == 'lr_reweighed'
    assert not np.allclose(predict(weighted, validation), predict(plain, validation))


def test_fit_unit_weights_match_unweighted(recidivism_data):
    train, validation = recidivism_data
    weighted = fit(train, weights=np.ones(len(train)))
    plain = fit(train)
    np.testing.assert_allclose(
        predict(weighted, validation), predict(plain, validation), atol=1e-6
    )


def test_fit_rejects_wrong_length_weights(recidivism_data):
    train, _ = recidivism_data
    with pytest.raises(WeightMismatchError):
        fit(train, weights=np.ones(len(train) - 1))


def test_fit_rejects_negative_weights(recidivism_data):
    train, _ = recidivism_data
    weights = np.ones(len(train))
    weights[0] = -1
    with pytest.raises(WeightMismatchError):
        fit(train, weights=weights)


def test_fit_rejects_single_class():
    frame = pd.DataFrame({'x': [1, 2, 3, 4], 'race': ['A', 'B', 'A', 'B'], 'y': [1, 1, 1, 1]})
    dataset = load(frame, 'y', 'race')
    with pytest.raises(DataFormatError, match="single class"):
        fit(dataset)


def test_fit_rejects_no_features():
    frame = pd.DataFrame({'race': ['A', 'B', 'A', 'B'], 'y': [0, 1, 0, 1]})
    dataset = load(frame, 'y', 'race')
    with pytest.raises(DataFormatError, match="No feature columns"):
        fit(dataset)


def test_predict_missing_feature(recidivism_data):
    train, validation = recidivism_data
    model = fit(train)
    reduced = load(
        validation.frame.drop(columns=['priors_count']), 'two_year_recid', 'race'
    )
    with pytest.raises(DataFormatError, match="missing feature columns"):
        predict(model, reduced)


def test_fit_does_not_mutate_dataset(recidivism_data):
    train, _ = recidivism_data
    before = train.frame
    fit(train, weights=np.ones(len(train)))
    pd.testing.assert_frame_equal(train.frame, before)
