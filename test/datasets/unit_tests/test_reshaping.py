import logging

import numpy as np
import pytest
from pandas import DataFrame
from anndata import AnnData

from spatialmif.datasets.reshaping import cell_table
from spatialmif.datasets.reshaping import multi_assay_cell_table
from spatialmif.datasets.simulation import simulate_cohort
from spatialmif.standalone_utilities.errors import MissingColumnsError


def small_experiment(clinical=None):
    obs = DataFrame({
        'slide_id': ['s1', 's1', 's2', 's3'],
        'image_id': ['s1_a', 's1_a', 's2_a', 's3_a'],
        'phenotype': ['T', 'tumor', 'T', 'B'],
    }, index=['c1', 'c2', 'c3', 'c4'])
    x = np.arange(8, dtype=float).reshape(4, 2)
    adata = AnnData(
        X=x,
        obs=obs,
        var=DataFrame(index=['CD3', 'CK']),
        layers={'nucleus': x * 0.5, 'membrane': x * 2},
        obsm={'spatial': np.array([[0, 0], [1, 1], [2, 2], [3, 3]], dtype=float)},
    )
    if clinical is not None:
        adata.uns['clinical'] = clinical
    return adata


def test_one_row_per_cell_in_order():
    clinical = DataFrame({'slide_id': ['s1', 's2', 's3'], 'age': [50, 60, 70]})
    table = cell_table(small_experiment(clinical))
    assert table.shape[0] == 4
    assert list(table['cell_id']) == ['c1', 'c2', 'c3', 'c4']
    assert list(table['age']) == [50, 50, 60, 70]
    assert list(table['CK']) == [1.0, 3.0, 5.0, 7.0]
    assert list(table['cell_x']) == [0.0, 1.0, 2.0, 3.0]


def test_unmatched_slides_keep_their_cells():
    clinical = DataFrame({'slide_id': ['s1', 's2'], 'age': [50, 60]})
    table = cell_table(small_experiment(clinical))
    assert table.shape[0] == 4
    assert np.isnan(table['age'].iloc[3])


def test_duplicated_clinical_keys_rejected():
    clinical = DataFrame({'slide_id': ['s1', 's1', 's2', 's3'], 'age': [50, 51, 60, 70]})
    with pytest.raises(ValueError, match='duplicated'):
        cell_table(small_experiment(clinical))


def test_missing_join_key():
    clinical = DataFrame({'patient': ['p1'], 'age': [50]})
    with pytest.raises(MissingColumnsError):
        cell_table(small_experiment(clinical))


def test_no_clinical_table():
    table = cell_table(small_experiment())
    assert table.shape == (4, 8)


def test_annotation_collision():
    adata = small_experiment()
    adata.obs['CD3'] = 1
    with pytest.raises(ValueError, match='collide'):
        cell_table(adata)


def test_multi_assay_columns():
    table = multi_assay_cell_table(small_experiment(), layers=['nucleus', 'membrane'])
    assert 'nucleus_CD3' in table.columns
    assert 'membrane_CK' in table.columns
    assert 'CD3' not in table.columns
    assert list(table['membrane_CK']) == [2.0, 6.0, 10.0, 14.0]


def test_multi_assay_unknown_layer():
    with pytest.raises(KeyError):
        multi_assay_cell_table(small_experiment(), layers=['cytoplasm'])


def test_simulated_cohort_join():
    adata = simulate_cohort(n_patients=3, images_per_patient=1, cells_per_image=100)
    table = cell_table(adata)
    assert table.shape[0] == adata.n_obs
    assert table['survival_days'].notna().all()
    per_slide = table.groupby('slide_id')['survival_days'].nunique()
    assert (per_slide == 1).all()


def test_clinical_column_collision_keeps_annotation(caplog):
    clinical = DataFrame({'slide_id': ['s1', 's2', 's3'], 'phenotype': ['x', 'y', 'z'], 'age': [50, 60, 70]})
    with caplog.at_level(logging.WARNING):
        table = cell_table(small_experiment(clinical))
    assert list(table['phenotype']) == ['T', 'tumor', 'T', 'B']
    assert list(table['age']) == [50, 50, 60, 70]
    assert 'phenotype_x' not in table.columns
    assert "['phenotype']" in caplog.text
