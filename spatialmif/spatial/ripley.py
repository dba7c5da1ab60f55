"""Ripley's K, L and nearest-neighbour G functions, univariate and cross-type.

For a pattern of n points in a rectangular window of area A, the univariate K function is
estimated as

    K(r) = A / (n (n - 1)) * sum_{i != j} 1(d_ij <= r) e_ij

with edge-correction weights e_ij, and the cross-type K function between "from" points (n_i of
them) and "to" points (n_j) as

    K_ij(r) = A / (n_i n_j) * sum_a sum_b 1(d_ab <= r) e_ab .

L(r) = sqrt(K(r) / pi) and G(r) is the distribution function of nearest-neighbour distances.
Under complete spatial randomness (CSR) K(r) = pi r^2, L(r) = r and G(r) = 1 - exp(-lambda pi r^2).
"""
from typing import Callable
from math import pi

import numpy as np
from numpy.typing import NDArray
from pandas import DataFrame
from sklearn.neighbors import BallTree  # type: ignore

from spatialmif.spatial.window import ObservationWindow
from spatialmif.standalone_utilities.errors import InsufficientPointsError
from spatialmif.standalone_utilities.errors import UnknownMethodError

K_CORRECTIONS = ('none', 'translation', 'isotropic', 'border')
G_CORRECTIONS = ('raw', 'rs')


def default_radii(window: ObservationWindow, number: int = 51) -> NDArray:
    """From 0 to a quarter of the shorter side of the window."""
    return np.linspace(0.0, 0.25 * min(window.width, window.height), number)


def default_correction(summary: str) -> str:
    if summary in ('K', 'L'):
        return 'translation'
    if summary == 'G':
        return 'rs'
    raise UnknownMethodError(summary, ('K', 'L', 'G'))


def ripley_k(points, radii=None, window: ObservationWindow | None = None,
             correction: str = 'translation') -> DataFrame:
    points, window, radii = _prepare(points, radii, window, required=2)
    observed = _k_estimate(points, points, radii, window, correction, same=True)
    return _result(radii, observed, pi * radii ** 2)


def ripley_l(points, radii=None, window: ObservationWindow | None = None,
             correction: str = 'translation') -> DataFrame:
    points, window, radii = _prepare(points, radii, window, required=2)
    observed = _k_estimate(points, points, radii, window, correction, same=True)
    return _result(radii, np.sqrt(observed / pi), radii.copy())


def nearest_neighbor_g(points, radii=None, window: ObservationWindow | None = None,
                       correction: str = 'rs') -> DataFrame:
    points, window, radii = _prepare(points, radii, window, required=2)
    distances, _ = BallTree(points).query(points, k=2)
    observed = _g_estimate(distances[:, 1], points, radii, window, correction)
    intensity = points.shape[0] / window.area
    return _result(radii, observed, 1 - np.exp(-intensity * pi * radii ** 2))


def cross_k(points_from, points_to, radii=None, window: ObservationWindow | None = None,
            correction: str = 'translation') -> DataFrame:
    points_from, points_to, window, radii = _prepare_pair(points_from, points_to, radii, window)
    observed = _k_estimate(points_from, points_to, radii, window, correction, same=False)
    return _result(radii, observed, pi * radii ** 2)


def cross_l(points_from, points_to, radii=None, window: ObservationWindow | None = None,
            correction: str = 'translation') -> DataFrame:
    points_from, points_to, window, radii = _prepare_pair(points_from, points_to, radii, window)
    observed = _k_estimate(points_from, points_to, radii, window, correction, same=False)
    return _result(radii, np.sqrt(observed / pi), radii.copy())


def cross_g(points_from, points_to, radii=None, window: ObservationWindow | None = None,
            correction: str = 'rs') -> DataFrame:
    points_from, points_to, window, radii = _prepare_pair(points_from, points_to, radii, window)
    distances, _ = BallTree(points_to).query(points_from, k=1)
    observed = _g_estimate(distances[:, 0], points_from, radii, window, correction)
    intensity = points_to.shape[0] / window.area
    return _result(radii, observed, 1 - np.exp(-intensity * pi * radii ** 2))


SummaryFunction = Callable[..., DataFrame]

UNIVARIATE: dict[str, SummaryFunction] = {
    'K': ripley_k,
    'L': ripley_l,
    'G': nearest_neighbor_g,
}

CROSS: dict[str, SummaryFunction] = {
    'K': cross_k,
    'L': cross_l,
    'G': cross_g,
}


def lookup_summary_function(summary: str, cross: bool = False) -> SummaryFunction:
    functions = CROSS if cross else UNIVARIATE
    if summary not in functions:
        raise UnknownMethodError(summary, tuple(functions.keys()))
    return functions[summary]


def _result(radii: NDArray, observed: NDArray, theoretical: NDArray) -> DataFrame:
    return DataFrame({'r': radii, 'observed': observed, 'theoretical': theoretical})


def _as_points(points) -> NDArray:
    points = np.asarray(points, dtype=float)
    if points.ndim != 2 or points.shape[1] != 2:
        raise ValueError(f'Expected an n x 2 array of coordinates, got shape {points.shape}.')
    return points


def _prepare(points, radii, window, required: int):
    points = _as_points(points)
    if points.shape[0] < required:
        raise InsufficientPointsError(points.shape[0], required)
    if window is None:
        window = ObservationWindow.from_points(points)
    _check_inside(points, window)
    radii = default_radii(window) if radii is None else _as_radii(radii)
    return points, window, radii


def _prepare_pair(points_from, points_to, radii, window):
    points_from = _as_points(points_from)
    points_to = _as_points(points_to)
    for group in (points_from, points_to):
        if group.shape[0] < 1:
            raise InsufficientPointsError(group.shape[0], 1)
    if window is None:
        window = ObservationWindow.from_points(np.concatenate([points_from, points_to]))
    _check_inside(points_from, window)
    _check_inside(points_to, window)
    radii = default_radii(window) if radii is None else _as_radii(radii)
    return points_from, points_to, window, radii


def _as_radii(radii) -> NDArray:
    radii = np.asarray(radii, dtype=float)
    if radii.ndim != 1 or np.any(radii < 0) or np.any(np.diff(radii) <= 0):
        raise ValueError('Radii must be a non-negative, strictly increasing sequence.')
    return radii


def _check_inside(points: NDArray, window: ObservationWindow) -> None:
    outside = int((~window.contains(points)).sum())
    if outside > 0:
        raise ValueError(f'{outside} points lie outside the observation window.')


def _pairs_within(points_from: NDArray, points_to: NDArray, rmax: float,
                  same: bool) -> tuple[NDArray, NDArray, NDArray]:
    tree = BallTree(points_to)
    indices, distances = tree.query_radius(points_from, rmax, return_distance=True)
    counts = [len(i) for i in indices]
    i = np.repeat(np.arange(points_from.shape[0]), counts)
    j = np.concatenate(list(indices)).astype(int)
    d = np.concatenate(list(distances)).astype(float)
    if same:
        distinct = i != j
        i, j, d = i[distinct], j[distinct], d[distinct]
    return i, j, d


def _k_estimate(points_from: NDArray, points_to: NDArray, radii: NDArray,
                window: ObservationWindow, correction: str, same: bool) -> NDArray:
    if correction not in K_CORRECTIONS:
        raise UnknownMethodError(correction, K_CORRECTIONS)
    n_from = points_from.shape[0]
    n_to = points_to.shape[0] - 1 if same else points_to.shape[0]
    i, j, d = _pairs_within(points_from, points_to, float(radii[-1]), same)
    if correction == 'border':
        border = window.border_distances(points_from)
        intensity_to = points_to.shape[0] / window.area
        estimate = np.full(radii.shape, np.nan)
        for index, r in enumerate(radii):
            eligible = border >= r
            number_eligible = int(eligible.sum())
            if number_eligible == 0 or intensity_to == 0:
                continue
            within = (d <= r) & eligible[i]
            estimate[index] = within.sum() / (number_eligible * intensity_to)
        return estimate
    weights = _edge_weights(points_from, points_to, i, j, d, window, correction)
    return window.area / (n_from * n_to) * _cumulative_weights(d, weights, radii)


def _edge_weights(points_from, points_to, i, j, d, window: ObservationWindow, correction: str) -> NDArray:
    if correction == 'none':
        return np.ones(d.shape)
    if correction == 'translation':
        dx = np.abs(points_from[i, 0] - points_to[j, 0])
        dy = np.abs(points_from[i, 1] - points_to[j, 1])
        return window.area / ((window.width - dx) * (window.height - dy))
    return 1.0 / circle_fraction_inside(points_from[i], d, window)


def circle_fraction_inside(centres: NDArray, radii: NDArray, window: ObservationWindow) -> NDArray:
    """Fraction of the circumference of each circle that lies inside the window.

    The circle leaves the window across each edge nearer than its radius, along an arc of
    half-angle arccos(distance / radius) about that edge's normal. Arcs of adjacent edges
    overlap by alpha_a + alpha_b - pi/2 when the corner lies inside the circle.
    """
    edges = window.edge_distances(centres)
    radii = np.asarray(radii, dtype=float)
    fraction = np.ones(radii.shape)
    positive = radii > 0
    ratio = np.ones(edges.shape)
    ratio[positive] = np.clip(edges[positive] / radii[positive][:, None], 0.0, 1.0)
    alpha = np.arccos(ratio)
    excluded = 2 * alpha.sum(axis=1)
    for a, b in ((0, 1), (1, 2), (2, 3), (3, 0)):
        excluded -= np.maximum(0.0, alpha[:, a] + alpha[:, b] - pi / 2)
    fraction[positive] = 1 - excluded[positive] / (2 * pi)
    return fraction


def _cumulative_weights(d: NDArray, weights: NDArray, radii: NDArray) -> NDArray:
    order = np.argsort(d, kind='stable')
    cumulative = np.concatenate([[0.0], np.cumsum(weights[order])])
    return cumulative[np.searchsorted(d[order], radii, side='right')]


def _g_estimate(nearest: NDArray, points: NDArray, radii: NDArray,
                window: ObservationWindow, correction: str) -> NDArray:
    if correction not in G_CORRECTIONS:
        raise UnknownMethodError(correction, G_CORRECTIONS)
    if correction == 'raw':
        return np.array([np.mean(nearest <= r) for r in radii])
    border = window.border_distances(points)
    estimate = np.full(radii.shape, np.nan)
    for index, r in enumerate(radii):
        eligible = border >= r
        if eligible.sum() == 0:
            continue
        estimate[index] = np.mean(nearest[eligible] <= r)
    return estimate
