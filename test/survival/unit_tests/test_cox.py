import numpy as np
import pytest
from numpy.random import default_rng
from pandas import DataFrame

from spatialmif.survival.cox import fit_cox
from spatialmif.survival.cox import kaplan_meier_by_split
from spatialmif.survival.cox import complete_rows
from spatialmif.survival.cox import expand_categorical


def cohort(count=200, seed=0):
    rng = default_rng(seed)
    x = rng.normal(size=count)
    return DataFrame({
        'x': x,
        'days': rng.exponential(np.exp(-x)) * 365,
        'status': rng.random(count) < 0.9,
        'stage': rng.choice(['I', 'II', 'III'], size=count),
    })


def test_higher_covariate_higher_hazard():
    result = fit_cox(cohort(), 'days', 'status', ['x'])
    assert result.summary.loc['x', 'coef'] > 0
    assert result.hazard_ratios()['x'] > 1
    assert 0.5 < result.concordance <= 1.0
    assert result.n_observations == 200


def test_missing_rows_and_categories():
    frame = cohort()
    frame.loc[:4, 'x'] = np.nan
    result = fit_cox(frame, 'days', 'status', ['x', 'stage'])
    assert result.n_observations == 195
    assert result.covariates == ('x', 'stage_II', 'stage_III')
    assert set(result.summary.index) == {'x', 'stage_II', 'stage_III'}


def test_invalid_models():
    frame = cohort()
    with pytest.raises(ValueError):
        fit_cox(frame, 'days', 'status', [])
    with pytest.raises(ValueError):
        fit_cox(frame.assign(status=False), 'days', 'status', ['x'])


def test_kaplan_meier_split():
    split = kaplan_meier_by_split(cohort(), 'x', 'days', 'status')
    assert set(split.fitters.keys()) == {'low', 'high'}
    assert (split.groups == 'high').sum() == 100
    assert split.p_value < 0.01
    with pytest.raises(ValueError):
        kaplan_meier_by_split(cohort(), 'x', 'days', 'status', split=100.0)
    with pytest.raises(ValueError):
        kaplan_meier_by_split(cohort(), 'x', 'days', 'status', split='mean')


def test_helpers():
    frame = DataFrame({'a': [1.0, np.nan, 3.0], 'b': ['u', 'v', 'v'], 'c': [True, False, True]})
    assert complete_rows(frame, ['a', 'b']).shape[0] == 2
    data, expanded = expand_categorical(frame.copy(), ['b', 'c'])
    assert expanded == ['b_v', 'c']
    assert list(data['c']) == [1, 0, 1]
    data, expanded = expand_categorical(frame.assign(b='u'), ['b'])
    assert expanded == []
