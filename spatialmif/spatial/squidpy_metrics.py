"""Ripley statistics from the squidpy library, for cross-checking the in-house estimators."""
from typing import Any
from typing import cast

from numpy.typing import NDArray
from pandas import DataFrame
from squidpy.gr import ripley  # type: ignore
from anndata import AnnData  # type: ignore

from spatialmif.datasets.tables import require_columns
from spatialmif.standalone_utilities.errors import UnknownMethodError
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

SQUIDPY_MODES = ('F', 'G', 'L')


def convert_df_to_anndata(
    cells: DataFrame,
    cluster_column: str,
    coordinate_columns: tuple[str, str] = ('cell_x', 'cell_y'),
) -> AnnData:
    """Convert the cells of one image to an AnnData object with a categorical 'cluster' annotation.

    Parameters:
        cells: DataFrame
            One row per cell, with x and y locations in ``coordinate_columns`` and the cluster or
            phenotype assignment in ``cluster_column``.
        cluster_column: str
            Becomes ``obs['cluster']``. Numeric or string values are both accepted; each distinct
            value is one cluster.
    """
    require_columns(cells, [cluster_column, *coordinate_columns])
    locations: NDArray[Any] = cells[list(coordinate_columns)].to_numpy(dtype=float)
    obs = DataFrame({'cluster': cells[cluster_column].astype(str).to_numpy()})
    obs.index = [str(i) for i in range(obs.shape[0])]
    adata = AnnData(obs=obs, obsm={'spatial': locations})  # type: ignore
    adata.obs['cluster'] = adata.obs['cluster'].astype('category')
    if adata.obs['cluster'].nunique() == 1:
        logger.warning('Only one cluster present in "%s".', cluster_column)
    return adata


def squidpy_ripley(
    cells: DataFrame,
    cluster_column: str,
    mode: str = 'L',
    coordinate_columns: tuple[str, str] = ('cell_x', 'cell_y'),
    n_simulations: int = 100,
    n_steps: int = 50,
    max_dist: float | None = None,
    seed: int = 128,
) -> tuple[DataFrame, DataFrame]:
    """Per-cluster Ripley statistic of one image, computed by ``squidpy.gr.ripley``.

    Returns the long statistic table (columns ``bins``, ``cluster``, ``stats``) and a table of
    simulation-based p-values with one row per cluster and one column per distance bin.
    """
    if mode not in SQUIDPY_MODES:
        raise UnknownMethodError(mode, SQUIDPY_MODES)
    adata = convert_df_to_anndata(cells, cluster_column, coordinate_columns=coordinate_columns)
    result = cast(dict[str, Any], ripley(
        adata,
        'cluster',
        mode=mode,
        n_simulations=n_simulations,
        n_steps=n_steps,
        max_dist=max_dist,
        seed=seed,
        copy=True,
    ))
    key = [k for k in result.keys() if k.endswith('_stat') and k != 'sims_stat'][0]
    statistic = cast(DataFrame, result[key])
    bins = cast(NDArray[Any], result['bins'])
    pvalues = DataFrame(
        result['pvalues'],
        index=list(adata.obs['cluster'].cat.categories),
        columns=bins.tolist(),
    )
    return statistic.reset_index(drop=True), pvalues
