"""Functional principal components of curves sampled on a common grid.

Curves are centered and weighted by the square roots of trapezoid quadrature weights, so that
ordinary PCA of the weighted matrix diagonalizes the sample covariance operator. Dividing the
principal axes by the same square roots recovers eigenfunctions of unit L2 norm, and the PCA
scores are the integrals of the centered curves against them.
"""
import numpy as np
from numpy.typing import NDArray
from pandas import DataFrame
from pandas import Series
from pandas import concat
from scipy.signal import savgol_filter  # type: ignore
from sklearn.decomposition import PCA  # type: ignore
from attrs import define

from spatialmif.survival.functional_data import trapezoid_weights
from spatialmif.standalone_utilities.log_formats import colorized_logger

logger = colorized_logger(__name__)

RELATIVE_TOLERANCE = 1e-10


@define
class FPCAResult:
    grid: NDArray
    mean_function: NDArray
    eigenfunctions: NDArray
    eigenvalues: NDArray
    scores: DataFrame
    pve: NDArray

    @property
    def n_components(self) -> int:
        return self.eigenfunctions.shape[0]

    def cumulative_pve(self) -> NDArray:
        return np.cumsum(self.pve)

    def coefficient_function(self, coefficients) -> NDArray:
        """sum_k c_k phi_k(r), on the grid."""
        coefficients = np.asarray(coefficients, dtype=float)
        if coefficients.shape[0] != self.n_components:
            raise ValueError(f'Expected {self.n_components} coefficients, got {coefficients.shape[0]}.')
        return coefficients @ self.eigenfunctions

    def reconstruct(self) -> DataFrame:
        """Curves rebuilt from the mean function and the retained components."""
        values = self.mean_function + self.scores.to_numpy() @ self.eigenfunctions
        return DataFrame(values, index=self.scores.index, columns=self.grid)

    def eigenfunction_table(self) -> DataFrame:
        """Long table (``r``, ``component``, ``value``) of the eigenfunctions, for plotting."""
        frames = [
            DataFrame({'r': self.grid, 'component': name, 'value': self.eigenfunctions[k]})
            for k, name in enumerate(self.scores.columns)
        ]
        return concat(frames, ignore_index=True)


@define
class MFPCAResult:
    """Level 1 describes variation of subject mean curves, level 2 variation of samples within
    subjects."""
    level1: FPCAResult
    level2: FPCAResult
    subjects: Series

    def scores(self) -> DataFrame:
        """Level 2 scores of each sample next to the level 1 scores of its subject."""
        level1 = self.level1.scores.add_prefix('level1_')
        level1 = level1.loc[self.subjects.loc[self.level2.scores.index].to_numpy()]
        level1.index = self.level2.scores.index
        return level1.join(self.level2.scores.add_prefix('level2_'))


def run_fpca(
    curves: DataFrame,
    pve: float = 0.99,
    n_components: int | None = None,
    smooth_window: int | None = None,
    smooth_order: int = 3,
    prefix: str = 'fpc',
) -> FPCAResult:
    """FPCA of the rows of ``curves`` (samples by grid points, columns are the grid).

    Keeps ``n_components`` components if given, otherwise the fewest whose cumulative proportion
    of variance explained reaches ``pve``. ``smooth_window`` enables Savitzky-Golay smoothing of
    each curve before the decomposition.
    """
    if curves.shape[0] < 2:
        raise ValueError(f'FPCA needs at least 2 curves, got {curves.shape[0]}.')
    if not 0 < pve <= 1:
        raise ValueError(f'pve must be in (0, 1], got {pve}.')
    grid = np.asarray(curves.columns, dtype=float)
    weights = trapezoid_weights(grid)
    values = curves.to_numpy(dtype=float)
    if not np.all(np.isfinite(values)):
        raise ValueError('Curves contain missing values.')
    if smooth_window is not None:
        values = _smooth(values, smooth_window, smooth_order)
    mean_function = values.mean(axis=0)
    root_weights = np.sqrt(weights)
    weighted = (values - mean_function) * root_weights
    pca = PCA(svd_solver='full').fit(weighted)
    total = float(np.sum(pca.explained_variance_))
    if not total > 0:
        raise ValueError('All curves are identical; there is no variation to decompose.')
    available = int(np.sum(pca.explained_variance_ > RELATIVE_TOLERANCE * total))
    ratios = pca.explained_variance_ / total
    if n_components is None:
        count = int(np.searchsorted(np.cumsum(ratios), pve - RELATIVE_TOLERANCE) + 1)
        count = min(count, available)
    else:
        if n_components < 1:
            raise ValueError('n_components must be positive.')
        count = n_components
    if count > available:
        logger.warning('Only %s components have nonzero variance; keeping %s.', available, available)
        count = available
    axes = pca.components_[:count]
    eigenfunctions = axes / root_weights
    scores = DataFrame(
        weighted @ axes.T,
        index=curves.index,
        columns=[f'{prefix}{k + 1}' for k in range(count)],
    )
    logger.debug('FPCA kept %s components explaining %.3f of variance.', count, float(np.sum(ratios[:count])))
    return FPCAResult(
        grid,
        mean_function,
        eigenfunctions,
        pca.explained_variance_[:count],
        scores,
        ratios[:count],
    )


def run_mfpca(
    curves: DataFrame,
    subjects: Series,
    pve: float = 0.99,
    n_components: int | None = None,
    smooth_window: int | None = None,
) -> MFPCAResult:
    """Two-level FPCA for repeated curves per subject (several images per patient).

    ``subjects`` maps each row label of ``curves`` to its subject. Level 1 is the FPCA of subject
    mean curves, level 2 the FPCA of each curve's deviation from its subject mean.
    """
    missing = set(curves.index).difference(subjects.index)
    if len(missing) > 0:
        raise ValueError(f'No subject given for {len(missing)} curves.')
    subjects = subjects.loc[curves.index]
    if smooth_window is not None:
        curves = DataFrame(_smooth(curves.to_numpy(dtype=float), smooth_window, 3), index=curves.index, columns=curves.columns)
    means = curves.groupby(subjects.to_numpy(), sort=True).mean()
    level1 = run_fpca(means, pve=pve, n_components=n_components, prefix='fpc')
    deviations = curves - means.loc[subjects.to_numpy()].to_numpy()
    repeated = subjects.map(subjects.value_counts()) > 1
    if not repeated.any():
        raise ValueError('Every subject has a single curve; there is no within-subject variation.')
    level2 = run_fpca(deviations[repeated.to_numpy()], pve=pve, n_components=n_components, prefix='fpc')
    return MFPCAResult(level1, level2, subjects)


def _smooth(values: NDArray, window: int, order: int) -> NDArray:
    if window % 2 == 0 or window < 3:
        raise ValueError(f'Smoothing window must be odd and at least 3, got {window}.')
    if window > values.shape[1]:
        raise ValueError(f'Smoothing window {window} exceeds the {values.shape[1]} grid points.')
    return savgol_filter(values, window_length=window, polyorder=min(order, window - 1), axis=1)
