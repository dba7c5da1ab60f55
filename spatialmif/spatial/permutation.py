"""Expected summary functions under random relabelling of the cells of one image.

Tissue is not homogeneous: cells are absent from lumens, folds and background, so the CSR value
(e.g. pi r^2 for K) is a poor reference. Holding every cell location fixed and permuting which
cells carry the mark gives an expectation that inherits the tissue's own inhomogeneity.
"""
import numpy as np
from numpy.typing import NDArray
from numpy.random import default_rng

from spatialmif.spatial.ripley import lookup_summary_function
from spatialmif.spatial.window import ObservationWindow


def permuted_expectation(
    points: NDArray,
    mask: NDArray,
    summary: str,
    radii: NDArray,
    window: ObservationWindow,
    correction: str,
    permutations: int,
    seed: int = 1,
    mask_to: NDArray | None = None,
) -> NDArray:
    """Mean over ``permutations`` relabellings of the ``observed`` curve.

    ``points`` are all cells of the image. With ``mask_to`` given the statistic is cross-type,
    and both label vectors are permuted together so that the two type counts are preserved.
    """
    if permutations < 1:
        raise ValueError('Need at least one permutation.')
    rng = default_rng(seed)
    cross = mask_to is not None
    function = lookup_summary_function(summary, cross=cross)
    curves = np.empty((permutations, radii.shape[0]))
    for index in range(permutations):
        order = rng.permutation(points.shape[0])
        if cross:
            curve = function(
                points[mask[order]],
                points[mask_to[order]],
                radii=radii,
                window=window,
                correction=correction,
            )
        else:
            curve = function(points[mask[order]], radii=radii, window=window, correction=correction)
        curves[index] = curve['observed'].to_numpy()
    return np.nanmean(curves, axis=0)
