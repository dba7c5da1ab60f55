import numpy as np
import pytest
from pandas import DataFrame

from spatialmif.survival.functional_data import FunctionalDataset
from spatialmif.survival.functional_data import trapezoid_weights
from spatialmif.standalone_utilities.errors import MissingColumnsError

from functional_fixtures import functional_cohort


def small_dataset():
    metadata = DataFrame({
        'patient_id': ['p1', 'p1', 'p2', 'p3'],
        'image_id': ['a', 'b', 'c', 'd'],
        'age': [50, 50, 61, 70],
    })
    summary = DataFrame({
        'image_id': ['a'] * 3 + ['b'] * 3 + ['c'] * 3 + ['d'] * 3 + ['z'] * 3,
        'r': [0.0, 1.0, 2.0] * 5,
        'fundiff': [0.0, 1.0, 2.0,
                    2.0, np.nan, 4.0,
                    1.0, 1.0, np.nan,
                    3.0, 3.0, 3.0,
                    9.0, 9.0, 9.0],
    })
    fd = FunctionalDataset(metadata)
    fd.add_summary('K', summary)
    return fd


def test_metadata_validation():
    with pytest.raises(MissingColumnsError):
        FunctionalDataset(DataFrame({'image_id': ['a']}))
    with pytest.raises(ValueError):
        FunctionalDataset(DataFrame({'patient_id': ['p1', 'p2'], 'image_id': ['a', 'a']}))


def test_unknown_samples_ignored():
    fd = small_dataset()
    assert 'z' not in set(fd.summaries['K']['image_id'])


def test_curves_interpolate_interior_and_drop_incomplete():
    curves = small_dataset().curves('K')
    assert list(curves.index) == ['a', 'b', 'd']
    assert list(curves.columns) == [0.0, 1.0, 2.0]
    assert curves.loc['b', 1.0] == pytest.approx(3.0)


def test_subject_curves_and_metadata():
    fd = small_dataset()
    averaged = fd.subject_curves('K')
    assert list(averaged.index) == ['p1', 'p3']
    assert np.allclose(averaged.loc['p1'], [1.0, 2.0, 3.0])
    metadata = fd.subject_metadata(['age'])
    assert metadata.loc['p2', 'age'] == 61
    assert list(fd.subjects(['a', 'c'])) == ['p1', 'p2']


def test_unknown_summary():
    with pytest.raises(KeyError):
        small_dataset().curves('G')


def test_from_cell_table():
    metadata, _ = functional_cohort(n_subjects=4)
    cells = metadata.loc[metadata.index.repeat(3)].reset_index(drop=True)
    fd = FunctionalDataset.from_cell_table(cells, metadata_columns=['age', 'sex'])
    assert fd.metadata.shape[0] == metadata.shape[0]
    assert list(fd.metadata.columns) == ['patient_id', 'image_id', 'age', 'sex']


def test_trapezoid_weights():
    weights = trapezoid_weights([0.0, 1.0, 3.0])
    assert np.allclose(weights, [0.5, 1.5, 1.0])
    grid = np.linspace(0, 2, 11)
    assert np.sum(trapezoid_weights(grid) * grid) == pytest.approx(2.0)
    with pytest.raises(ValueError):
        trapezoid_weights([0.0, 2.0, 1.0])
    with pytest.raises(ValueError):
        trapezoid_weights([1.0])
