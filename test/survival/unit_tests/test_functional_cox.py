import numpy as np
import pytest

from spatialmif.survival.functional_data import FunctionalDataset
from spatialmif.survival.functional_data import trapezoid_weights
from spatialmif.survival.functional_cox import fit_functional_cox
from spatialmif.survival.functional_cox import fit_scalar_on_function
from spatialmif.standalone_utilities.errors import UnknownMethodError

from functional_fixtures import GRID
from functional_fixtures import basis
from functional_fixtures import functional_cohort

OUTCOMES = ('survival_days', 'survival_status')


@pytest.fixture
def fd():
    metadata, summary = functional_cohort()
    dataset = FunctionalDataset(metadata)
    dataset.add_summary('K', summary)
    return dataset


def projection(beta, phi):
    weights = trapezoid_weights(GRID)
    return float(np.sum(weights * beta * phi))


def test_subject_level(fd):
    result = fit_functional_cox(fd, 'K', OUTCOMES, pve=0.95)
    assert result.level == 'subject'
    assert result.cox.n_observations == 60
    assert list(result.coefficient_function.columns) == ['r', 'beta']
    assert np.allclose(result.coefficient_function['r'], GRID)
    phi1, _, _ = basis()
    assert projection(result.coefficient_function['beta'].to_numpy(), phi1) > 0
    assert fd.fpca['K'] is result.fpca
    assert fd.models['K cox'] is result


def test_sample_level_with_covariates(fd):
    result = fit_functional_cox(fd, 'K', OUTCOMES, covariates=['sex'], pve=0.95, level='sample')
    assert result.cox.n_observations == 120
    assert 'sex_M' in result.cox.covariates
    with pytest.raises(UnknownMethodError):
        fit_functional_cox(fd, 'K', OUTCOMES, level='cell')


def test_scalar_on_function(fd):
    result = fit_scalar_on_function(fd, 'K', 'age', pve=0.95)
    assert result.model.rsquared > 0.8
    _, phi2, _ = basis()
    assert abs(projection(result.coefficient_function['beta'].to_numpy(), phi2)) > 0
    assert fd.models['K age'] is result
