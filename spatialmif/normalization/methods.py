"""Normalization of marker intensities across slides."""
from typing import Callable

import numpy as np
from numpy.typing import NDArray
from numpy.random import default_rng
from pandas import DataFrame
from pandas import Series
from scipy.stats import gaussian_kde  # type: ignore
from anndata import AnnData  # type: ignore
import scanpy as sc  # type: ignore

from spatialmif.normalization.mx_dataset import MxDataset
from spatialmif.standalone_utilities.errors import UnknownMethodError
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

KDE_SUBSAMPLE = 5000
KDE_GRID_SIZE = 512


def normalize(mx: MxDataset, method: str = 'mean_divide', **kwargs) -> MxDataset:
    """Fills ``mx.normalized`` with a copy of the data whose marker columns are normalized by
    ``method``, one of:

    * ``none``: unchanged.
    * ``mean_divide``: each marker divided by its mean over the cell's slide.
    * ``log10``: log10(x + 1).
    * ``log10_mean_divide``: log10(x / slide mean + 1).
    * ``combat``: ComBat empirical Bayes batch correction with slides as batches.
    * ``registration``: per marker, each slide's intensity density peak is warped onto the mean
      peak over slides.
    """
    if method not in METHODS:
        raise UnknownMethodError(method, tuple(METHODS.keys()))
    normalized = mx.data.copy()
    markers = list(mx.marker_columns)
    slides = mx.data[mx.slide_column].astype(str)
    normalized[markers] = METHODS[method](mx.data[markers].astype(float), slides, **kwargs)
    mx.normalized = normalized
    mx.method = method
    logger.info('Normalized %s markers over %s slides with method "%s".', len(markers),
                slides.nunique(), method)
    return mx


def _none(values: DataFrame, slides: Series) -> DataFrame:
    return values.copy()


def _mean_divide(values: DataFrame, slides: Series) -> DataFrame:
    means = values.groupby(slides).transform('mean')
    zero = means == 0
    if zero.to_numpy().any():
        for marker in values.columns[zero.any(axis=0)]:
            affected = sorted(slides[zero[marker]].unique().tolist())
            logger.warning('Marker %s has zero mean on slides %s; left unchanged there.', marker, affected)
    return values.where(zero, values / means.where(~zero, 1.0))


def _log10(values: DataFrame, slides: Series) -> DataFrame:
    return np.log10(values + 1)


def _log10_mean_divide(values: DataFrame, slides: Series) -> DataFrame:
    return np.log10(_mean_divide(values, slides) + 1)


def _combat(values: DataFrame, slides: Series) -> DataFrame:
    if slides.nunique() < 2:
        logger.warning('ComBat needs at least 2 slides; leaving values unchanged.')
        return values.copy()
    obs = DataFrame({'slide': slides.to_numpy()}, index=[str(i) for i in range(values.shape[0])])
    obs['slide'] = obs['slide'].astype('category')
    adata = AnnData(X=values.to_numpy(dtype=np.float64), obs=obs)
    sc.pp.combat(adata, key='slide', inplace=True)
    return DataFrame(np.asarray(adata.X), index=values.index, columns=values.columns)


def _registration(values: DataFrame, slides: Series, seed: int = 1) -> DataFrame:
    registered = values.copy()
    for marker in values.columns:
        registered[marker] = _register_marker(values[marker], slides, seed)
    return registered


def _register_marker(values: Series, slides: Series, seed: int) -> Series:
    peaks = {
        slide: density_peak(group.to_numpy(), seed=seed)
        for slide, group in values.groupby(slides)
    }
    target = float(np.mean(list(peaks.values())))
    registered = values.copy()
    for slide, group in values.groupby(slides):
        low, high = float(group.min()), float(group.max())
        peak = peaks[slide]
        if not low < peak < high:
            logger.warning('%s on slide %s has no interior density peak; left unchanged.', values.name, slide)
            continue
        landmark = min(max(target, low), high)
        if landmark != target:
            logger.warning('Mean %s peak lies outside the range of slide %s; clipped.', values.name, slide)
        registered.loc[group.index] = np.interp(group.to_numpy(), [low, peak, high], [low, landmark, high])
    return registered


def density_peak(values: NDArray, seed: int = 1) -> float:
    """Location of the maximum of a Gaussian kernel density estimate."""
    values = np.asarray(values, dtype=float)
    values = values[np.isfinite(values)]
    if values.shape[0] == 0:
        return float('nan')
    if np.unique(values).shape[0] < 2:
        return float(values[0])
    if values.shape[0] > KDE_SUBSAMPLE:
        values = default_rng(seed).choice(values, size=KDE_SUBSAMPLE, replace=False)
    grid = np.linspace(values.min(), values.max(), KDE_GRID_SIZE)
    density = gaussian_kde(values)(grid)
    return float(grid[int(np.argmax(density))])


METHODS: dict[str, Callable[..., DataFrame]] = {
    'none': _none,
    'mean_divide': _mean_divide,
    'log10': _log10,
    'log10_mean_divide': _log10_mean_divide,
    'combat': _combat,
    'registration': _registration,
}
