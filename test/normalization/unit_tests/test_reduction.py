import numpy as np
from numpy.random import default_rng
from pandas import DataFrame

from spatialmif.normalization.mx_dataset import MxDataset
from spatialmif.normalization.methods import normalize
from spatialmif.normalization.reduction import reduce_umap


def test_embedding_and_silhouette():
    rng = default_rng(0)
    slides = np.repeat(['s1', 's2', 's3'], 60)
    shift = np.repeat([1.0, 3.0, 9.0], 60)[:, None]
    values = shift * np.exp(rng.normal(0.0, 0.2, size=(180, 3)))
    table = DataFrame(values, columns=['CD3', 'CD8', 'CK'])
    table['slide_id'] = slides
    table['image_id'] = slides
    mx = MxDataset.from_table(table, 'slide_id', 'image_id', ['CD3', 'CD8', 'CK'])
    normalize(mx, 'mean_divide')
    embedding = reduce_umap(mx, table='both', sample_size=150, seed=1)
    assert set(embedding['table']) == {'raw', 'normalized'}
    assert embedding.shape[0] == 300
    assert set(mx.silhouette.keys()) == {'raw', 'normalized'}
    assert mx.silhouette['raw'] > mx.silhouette['normalized']
