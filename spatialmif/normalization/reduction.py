"""UMAP embedding of cells, to see whether cells still group by slide after normalization."""
import warnings

import numpy as np
from pandas import DataFrame
from pandas import concat
from umap import UMAP  # type: ignore
from sklearn.impute import SimpleImputer  # type: ignore
from sklearn.pipeline import make_pipeline  # type: ignore
from sklearn.metrics import silhouette_score  # type: ignore

from spatialmif.normalization.mx_dataset import MxDataset
from spatialmif.standalone_utilities.log_formats import colorized_logger

warnings.filterwarnings(action='ignore', message='n_jobs value 1 overridden to 1 by setting random_state. Use no seed for parallelism.')

logger = colorized_logger(__name__)


def reduce_umap(
    mx: MxDataset,
    table: str = 'normalized',
    sample_size: int = 2000,
    seed: int = 1,
    n_neighbors: int = 15,
) -> DataFrame:
    """Embeds a subsample of cells in 2 dimensions and scores the embedding's grouping by slide
    with the silhouette coefficient (stored in ``mx.silhouette`` per table). Higher silhouette
    means cells still separate by slide.
    """
    embeddings = []
    for name, data in mx.tables(table):
        sample = data.sample(n=min(sample_size, data.shape[0]), random_state=seed)
        if sample.shape[0] < 3:
            raise ValueError('Need at least 3 cells for a UMAP embedding.')
        reducer = make_pipeline(
            SimpleImputer(strategy='mean'),
            UMAP(n_components=2, n_neighbors=min(n_neighbors, sample.shape[0] - 1), random_state=seed),
        )
        coordinates = reducer.fit_transform(sample[list(mx.marker_columns)].to_numpy(dtype=float))
        slides = sample[mx.slide_column].astype(str).to_numpy()
        mx.silhouette[name] = _silhouette(coordinates, slides)
        logger.info('UMAP of %s table: silhouette by slide %.3f', name, mx.silhouette[name])
        embedding = DataFrame({
            'table': name,
            mx.slide_column: slides,
            mx.image_column: sample[mx.image_column].to_numpy(),
            'UMAP1': coordinates[:, 0],
            'UMAP2': coordinates[:, 1],
        })
        embeddings.append(embedding)
    result = concat(embeddings, ignore_index=True)
    mx.umap = result
    return result


def _silhouette(coordinates, labels) -> float:
    number_labels = np.unique(labels).shape[0]
    if number_labels < 2 or number_labels >= labels.shape[0]:
        return float('nan')
    return float(silhouette_score(coordinates, labels))
