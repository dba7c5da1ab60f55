"""Reshape an AnnData imaging experiment into a flat per-cell table joined to clinical data."""
from typing import Sequence

import numpy as np
from numpy.typing import NDArray
from pandas import DataFrame
from pandas import CategoricalDtype
from scipy.sparse import issparse  # type: ignore
from anndata import AnnData  # type: ignore

from spatialmif.datasets.tables import require_columns
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

CELL_ID = 'cell_id'


def cell_table(
    adata: AnnData,
    clinical_key: str = 'clinical',
    join_key: str = 'slide_id',
    coordinates_key: str = 'spatial',
    coordinate_columns: tuple[str, str] = ('cell_x', 'cell_y'),
) -> DataFrame:
    """One row per cell, in ``obs`` order: the ``obs`` annotations, the centroid coordinates, one
    intensity column per marker from ``X``, and the clinical covariates found in
    ``adata.uns[clinical_key]`` joined on ``join_key``.
    """
    table = _base_table(adata, coordinates_key, coordinate_columns)
    intensities = DataFrame(_dense(adata.X), columns=list(adata.var_names))
    table = _bind_columns(table, intensities)
    return _join_clinical(table, _get_clinical(adata, clinical_key), join_key)


def multi_assay_cell_table(
    adata: AnnData,
    layers: Sequence[str] | None = None,
    clinical_key: str = 'clinical',
    join_key: str = 'slide_id',
    coordinates_key: str = 'spatial',
    coordinate_columns: tuple[str, str] = ('cell_x', 'cell_y'),
) -> DataFrame:
    """Like ``cell_table``, but every requested assay layer (default: all layers) is expanded into
    columns named ``<layer>_<marker>``, for datasets that measure each marker in several cell
    compartments.
    """
    if layers is None:
        layers = list(adata.layers.keys())
    unknown = set(layers).difference(adata.layers.keys())
    if len(unknown) > 0:
        raise KeyError(f'Layers not present in the experiment: {sorted(unknown)}')
    if len(layers) == 0:
        logger.warning('Experiment has no assay layers; using X only.')
        return cell_table(adata, clinical_key=clinical_key, join_key=join_key,
                          coordinates_key=coordinates_key, coordinate_columns=coordinate_columns)
    table = _base_table(adata, coordinates_key, coordinate_columns)
    for layer in layers:
        columns = [f'{layer}_{marker}' for marker in adata.var_names]
        table = _bind_columns(table, DataFrame(_dense(adata.layers[layer]), columns=columns))
    return _join_clinical(table, _get_clinical(adata, clinical_key), join_key)


def _base_table(adata: AnnData, coordinates_key: str, coordinate_columns: tuple[str, str]) -> DataFrame:
    table = adata.obs.copy()
    if CELL_ID not in table.columns:
        table.insert(0, CELL_ID, list(adata.obs_names))
    table = table.reset_index(drop=True)
    if coordinates_key not in adata.obsm:
        raise KeyError(f'No "{coordinates_key}" coordinates in obsm.')
    locations = np.asarray(adata.obsm[coordinates_key])
    table[coordinate_columns[0]] = locations[:, 0]
    table[coordinate_columns[1]] = locations[:, 1]
    return table


def _bind_columns(table: DataFrame, other: DataFrame) -> DataFrame:
    collisions = set(table.columns).intersection(other.columns)
    if len(collisions) > 0:
        raise ValueError(f'Intensity columns collide with cell annotations: {sorted(collisions)}')
    other.index = table.index
    return table.join(other)


def _dense(matrix) -> NDArray:
    if issparse(matrix):
        return matrix.toarray()
    return np.asarray(matrix)


def _get_clinical(adata: AnnData, clinical_key: str) -> DataFrame | None:
    clinical = adata.uns.get(clinical_key)
    if clinical is None:
        return None
    return DataFrame(clinical)


def _join_clinical(table: DataFrame, clinical: DataFrame | None, join_key: str) -> DataFrame:
    if clinical is None or clinical.shape[0] == 0:
        logger.info('No clinical table to join.')
        return table
    require_columns(table, [join_key])
    require_columns(clinical, [join_key])
    if clinical[join_key].duplicated().any():
        duplicated = sorted(set(clinical[join_key][clinical[join_key].duplicated()]))
        raise ValueError(f'Clinical table has duplicated "{join_key}" values: {duplicated}')
    collisions = set(clinical.columns).intersection(table.columns).difference([join_key])
    if len(collisions) > 0:
        logger.warning('Clinical columns already present in cell annotations, keeping the latter: %s',
                       sorted(collisions))
        clinical = clinical.drop(columns=sorted(collisions))
    if isinstance(table[join_key].dtype, CategoricalDtype):
        table[join_key] = table[join_key].astype(object)
    unmatched = set(table[join_key]).difference(clinical[join_key])
    if len(unmatched) > 0:
        logger.warning('%s "%s" values have no clinical record: %s', len(unmatched), join_key,
                       sorted(map(str, unmatched)))
    joined = table.merge(clinical, on=join_key, how='left', validate='many_to_one')
    if joined.shape[0] != table.shape[0]:
        raise RuntimeError('Clinical join changed the number of cells.')
    return joined
