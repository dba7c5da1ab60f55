import numpy as np
import pytest
from pandas import DataFrame
from anndata import AnnData

from spatialmif.datasets.sources import available_datasets
from spatialmif.datasets.sources import conform_experiment
from spatialmif.datasets.sources import load_dataset
from spatialmif.standalone_utilities.errors import UnknownDatasetError


def test_registered_names():
    assert set(available_datasets()) == {'simulated', 'imc', 'mibitof'}


def test_simulated(tmp_path):
    adata = load_dataset('simulated', cache_directory=str(tmp_path), n_patients=2, cells_per_image=50)
    assert {'image_id', 'slide_id'}.issubset(adata.obs.columns)
    assert adata.uns['clinical'].shape[0] == 2


def test_unknown_name(tmp_path):
    with pytest.raises(UnknownDatasetError):
        load_dataset('melanoma', cache_directory=str(tmp_path))


def test_h5ad_path(tmp_path):
    adata = load_dataset('simulated', cache_directory=str(tmp_path), n_patients=2, cells_per_image=50)
    path = str(tmp_path / 'cohort.h5ad')
    adata.write_h5ad(path)
    reread = load_dataset(path)
    assert reread.n_obs == adata.n_obs
    with pytest.raises(FileNotFoundError):
        load_dataset(str(tmp_path / 'absent.h5ad'))


def test_conform_fills_annotations():
    adata = AnnData(
        X=np.ones((3, 2)),
        obs=DataFrame({'library_id': ['p1', 'p1', 'p2']}, index=['a', 'b', 'c']),
        obsm={'spatial': np.zeros((3, 2))},
    )
    adata = conform_experiment(adata)
    assert list(adata.obs['image_id']) == ['p1', 'p1', 'p2']
    assert list(adata.obs['slide_id']) == ['p1', 'p1', 'p2']
    assert adata.uns['clinical'].shape[0] == 0


def test_conform_requires_coordinates():
    adata = AnnData(X=np.ones((2, 2)), obs=DataFrame(index=['a', 'b']))
    with pytest.raises(KeyError):
        conform_experiment(adata)
